"""
Merge strategies for combining values found in several sources.

A MergeStrategy is a closed variant:

- first: take the value of the highest-precedence source (no merging)
- unique: concatenate arrays, dropping duplicates (first occurrence wins)
- hash: shallow merge of hashes, higher precedence wins on conflicts
- deep: recursive merge of nested hashes, higher precedence wins at leaves

Strategies are given either as a name or as a hash carrying the name under
`strategy` plus options:

    {"strategy": "deep", "knockout_prefix": "--", "merge_hash_arrays": True}

merge_values() is a pure function of (ordered values, strategy); values are
ordered highest precedence first. The result shares no containers with the
inputs, and inputs are never mutated.
"""

import collections.abc as _abc
import copy as _copy
import dataclasses as _dataclasses
import enum as _enum
import logging as _logging
import typing as _typing

import pydantic as _pydantic

import hieralookup.core.errors as errors
import hieralookup.core.types as types

_logger = _logging.getLogger(__name__)

MISSING_STRATEGY_MESSAGE = "hash given as 'merge' must contain the name of a strategy"


class StrategyKind(_enum.Enum):
    """Names of the supported merge strategies."""

    FIRST = "first"
    """First found wins; the merger is never invoked."""

    UNIQUE = "unique"
    """Arrays concatenated in precedence order, duplicates removed."""

    HASH = "hash"
    """Hashes merged one level deep."""

    DEEP = "deep"
    """Hashes merged recursively."""


@_dataclasses.dataclass(frozen=True)
class MergeStrategy:
    """A strategy kind plus the options only meaningful for `deep`."""

    kind: StrategyKind = StrategyKind.FIRST
    knockout_prefix: str | None = None
    merge_hash_arrays: bool = False

    @property
    def is_merge(self) -> bool:
        """True for strategies that query every source and merge the results."""
        return self.kind is not StrategyKind.FIRST

    def __str__(self) -> str:
        return self.kind.value


FIRST = MergeStrategy()


class MergeOptions(_pydantic.BaseModel):
    """Validated form of a merge strategy given as a hash."""

    model_config = _pydantic.ConfigDict(extra="forbid")

    strategy: str
    knockout_prefix: str | None = None
    merge_hash_arrays: bool = False


def _kind_from_name(name: str) -> StrategyKind:
    try:
        return StrategyKind(name)
    except ValueError:
        known = ", ".join(f"'{kind.value}'" for kind in StrategyKind)
        raise errors.MergeTypeError(
            f"unknown merge strategy '{name}', expected one of {known}"
        ) from None


def parse_strategy(spec: _typing.Any) -> MergeStrategy:
    """
    Turn a merge argument into a MergeStrategy.

    Args:
        spec: None (first found), a strategy name, a MergeStrategy, or a hash
            with a `strategy` entry and optional deep-merge options.

    Raises:
        MergeTypeError: If the hash lacks `strategy`, names an unknown
            strategy, or carries invalid options.
    """
    if spec is None:
        return FIRST
    if isinstance(spec, MergeStrategy):
        return spec
    if isinstance(spec, str):
        return MergeStrategy(_kind_from_name(spec))
    if isinstance(spec, _abc.Mapping):
        if "strategy" not in spec:
            raise errors.MergeTypeError(MISSING_STRATEGY_MESSAGE)
        try:
            options = MergeOptions.model_validate(dict(spec))
        except _pydantic.ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise errors.MergeTypeError(f"invalid merge options: {details}") from e
        kind = _kind_from_name(options.strategy)
        if kind is not StrategyKind.DEEP:
            for option in ("knockout_prefix", "merge_hash_arrays"):
                if option in options.model_fields_set:
                    raise errors.MergeTypeError(
                        f"merge option '{option}' is only valid with the 'deep' strategy"
                    )
        return MergeStrategy(
            kind,
            knockout_prefix=options.knockout_prefix,
            merge_hash_arrays=options.merge_hash_arrays,
        )
    raise errors.MergeTypeError(
        f"merge must be a strategy name or a hash, got {types.infer_type_name(spec)}"
    )


# =============================================================================
# Merging
# =============================================================================


def _require(
    values: _typing.Sequence[_typing.Any],
    kind: type | tuple[type, ...],
    strategy: MergeStrategy,
    expected: str,
) -> None:
    for value in values:
        if not isinstance(value, kind):
            raise errors.MergeTypeError(
                f"'{strategy}' merge requires {expected} values, "
                f"got {types.infer_type_name(value)}"
            )


def _merge_unique(values: _typing.Sequence[_typing.Any]) -> list[_typing.Any]:
    result: list[_typing.Any] = []
    for value in values:
        for item in value:
            if not any(type(seen) is type(item) and seen == item for seen in result):
                result.append(item)
    return result


def _merge_hash(values: _typing.Sequence[_abc.Mapping[_typing.Any, _typing.Any]]) -> dict:
    result: dict[_typing.Any, _typing.Any] = {}
    for value in reversed(values):
        result.update(value)
    return result


def _is_hash_array(value: _typing.Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, _abc.Mapping) for item in value)


def _deep(
    higher: _abc.Mapping[_typing.Any, _typing.Any],
    lower: _abc.Mapping[_typing.Any, _typing.Any],
    strategy: MergeStrategy,
) -> dict:
    """Merge `higher` over `lower` recursively, returning a new dict."""
    result = dict(lower)
    for key, value in higher.items():
        if strategy.knockout_prefix is not None and value == strategy.knockout_prefix:
            result.pop(key, None)
            continue
        existing = result.get(key)
        if isinstance(value, _abc.Mapping):
            if isinstance(existing, _abc.Mapping):
                result[key] = _deep(value, existing, strategy)
            else:
                result[key] = _deep(value, {}, strategy)
            continue
        if strategy.merge_hash_arrays and _is_hash_array(value) and _is_hash_array(existing):
            result[key] = _merge_hash_arrays(value, existing, strategy)
            continue
        result[key] = value
    return result


def _merge_hash_arrays(
    higher: list[_abc.Mapping[_typing.Any, _typing.Any]],
    lower: list[_abc.Mapping[_typing.Any, _typing.Any]],
    strategy: MergeStrategy,
) -> list[_typing.Any]:
    merged: list[_typing.Any] = []
    for index in range(max(len(higher), len(lower))):
        if index < len(higher) and index < len(lower):
            merged.append(_deep(higher[index], lower[index], strategy))
        elif index < len(higher):
            merged.append(higher[index])
        else:
            merged.append(lower[index])
    return merged


def merge_values(
    values: _typing.Sequence[_typing.Any],
    strategy: MergeStrategy,
) -> _typing.Any:
    """
    Combine values found for one key according to a strategy.

    Args:
        values: Found values, highest precedence first. Must not be empty.
        strategy: The strategy to apply.

    Returns:
        The merged value. Undef values do not take part in a merge; if every
        value is undef the result is undef.

    Raises:
        MergeTypeError: If a value has a shape the strategy cannot merge.
    """
    if not values:
        raise ValueError("merge_values() needs at least one value")

    if strategy.kind is StrategyKind.FIRST:
        return _copy.deepcopy(values[0])

    present = [_copy.deepcopy(value) for value in values if value is not None]
    if not present:
        return None

    if strategy.kind is StrategyKind.UNIQUE:
        _require(present, (list, tuple), strategy, "Array")
        result: _typing.Any = _merge_unique(present)
    elif strategy.kind is StrategyKind.HASH:
        _require(present, _abc.Mapping, strategy, "Hash")
        result = _merge_hash(present)
    else:
        _require(present, _abc.Mapping, strategy, "Hash")
        result = {}
        for value in reversed(present):
            result = _deep(value, result, strategy)

    _logger.debug("Merged %d values with '%s' strategy", len(present), strategy)
    return result
