"""
The lookup resolver.

Resolution of a lookup, per key in order until one key produces a result:

1. Override map: a hit is the result; sources are not consulted.
2. Source chain: the first source that has the key (first-found), or every
   source that has it combined by the merge strategy.
3. A found value, undef included, is type-checked and returned.

When no key produced a result:

4. Default-values hash, consulted with the first key only.
5. Deferred default (called with the attempted names) or literal default.
6. Otherwise NotFoundError.

Found values are checked with role "found", literal defaults with role
"default_value" and deferred default results with role "default_block".

The Resolver holds nothing but its immutable context, so a deferred default
may call back into the same Resolver.
"""

from __future__ import annotations

import collections.abc as _abc
import contextlib as _contextlib
import copy as _copy
import logging as _logging
import typing as _typing

import hieralookup.core.context as context
import hieralookup.core.defaults as defaults
import hieralookup.core.errors as errors
import hieralookup.core.explain as explain
import hieralookup.core.interpolate as interpolate
import hieralookup.core.merge as core_merge
import hieralookup.core.options as options
import hieralookup.core.sources as sources
import hieralookup.core.types as types
import hieralookup.core.values as values

_logger = _logging.getLogger(__name__)


def normalize_names(name: _typing.Any) -> list[str]:
    """
    Turn a name argument into the ordered list of keys to try.

    Raises:
        LookupArgumentError: If name is neither a string nor a non-empty
            sequence of strings.
    """
    if isinstance(name, str):
        return [name]
    if isinstance(name, (list, tuple)) and name and all(isinstance(n, str) for n in name):
        return list(name)
    raise errors.LookupArgumentError(
        "name must be a String or a non-empty Array of Strings, "
        f"got {types.infer_type_name(name)}"
    )


def _step(ctx: context.ResolutionContext, label: str) -> _typing.ContextManager[_typing.Any]:
    if ctx.explainer is None:
        return _contextlib.nullcontext()
    return ctx.explainer.section(label)


def _note(ctx: context.ResolutionContext, label: str) -> None:
    if ctx.explainer is not None:
        ctx.explainer.note(label)


def _checked(
    ctx: context.ResolutionContext,
    role: str,
    value: _typing.Any,
    expected: types.TypeDescriptor,
) -> _typing.Any:
    mismatch = types.check(value, expected)
    if mismatch is not None:
        _note(ctx, f"Type check of {role} value failed: {mismatch}")
        raise errors.WrongTypeError(role, mismatch)
    return value


def _search(
    ctx: context.ResolutionContext,
    key: str,
    strategy: core_merge.MergeStrategy,
    override: _abc.Mapping[str, _typing.Any],
) -> _typing.Any:
    """Find key in the override map or the source chain; NOT_FOUND if absent."""
    with _step(ctx, f"Searching for '{key}'"):
        if key in override:
            _note(ctx, f"Override map: found {override[key]!r}")
            return _copy.deepcopy(override[key])

        if not strategy.is_merge:
            hit = ctx.chain.first(key, ctx)
            if hit is None:
                return values.NOT_FOUND
            _logger.debug("Found '%s' in source '%s'", key, hit.source.name)
            return _copy.deepcopy(interpolate.interpolate(hit.value, ctx.scope))

        _note(ctx, f"Merge strategy: {strategy}")
        hits = ctx.chain.collect(key, ctx)
        if not hits:
            return values.NOT_FOUND
        _logger.debug(
            "Merging '%s' from sources %s with '%s' strategy",
            key,
            [hit.source.name for hit in hits],
            strategy,
        )
        merged = core_merge.merge_values(
            [interpolate.interpolate(hit.value, ctx.scope) for hit in hits],
            strategy,
        )
        _note(ctx, f"Merged result: {merged!r}")
        return merged


def resolve(
    ctx: context.ResolutionContext,
    names: _typing.Sequence[str],
    expected: types.TypeDescriptor,
    strategy: core_merge.MergeStrategy,
    override: _abc.Mapping[str, _typing.Any],
    default_values_hash: _abc.Mapping[str, _typing.Any],
    default_value: _typing.Any = values.ABSENT,
    default_func: defaults.DefaultFunction | None = None,
) -> _typing.Any:
    """
    Run the resolution pipeline on already validated arguments.

    Returns:
        The resolved value (None for undef).

    Raises:
        NotFoundError: If nothing resolved and no default was given.
        WrongTypeError: If the chosen value does not match `expected`.
        MergeTypeError: If found values cannot be merged with `strategy`.
    """
    for key in names:
        value = _search(ctx, key, strategy, override)
        if values.is_found(value):
            _note(ctx, f"Result: {value!r}")
            return _checked(ctx, "found", value, expected)

    first = names[0]
    if first in default_values_hash:
        value = default_values_hash[first]
        _note(ctx, f"Default values hash: found '{first}' = {value!r}")
        return _checked(ctx, "found", value, expected)

    if default_func is not None:
        with _step(ctx, "Calling default function"):
            value = defaults.invoke_default(default_func, names)
        _note(ctx, f"Default function returned {value!r}")
        return _checked(ctx, "default_block", value, expected)

    if default_value is not values.ABSENT:
        _note(ctx, f"Using default value {default_value!r}")
        return _checked(ctx, "default_value", default_value, expected)

    _logger.debug("No value found for %s", list(names))
    raise errors.NotFoundError(names)


class Resolver:
    """
    Resolves lookups against a source chain.

    Example:
        chain = sources.SourceChain([
            sources.MappingSource("environment", {"a": "env_a"}),
            sources.MappingSource("module", {"a": "module_a", "b": "module_b"}),
        ])
        resolver = Resolver(chain)
        resolver.lookup("a")                       # 'env_a'
        resolver.lookup(["x", "b"])                # 'module_b'
        resolver.lookup("x", default_value="dflt") # 'dflt'
    """

    def __init__(
        self,
        chain: sources.SourceChain,
        scope: _abc.Mapping[str, _typing.Any] | None = None,
    ) -> None:
        self._context = context.ResolutionContext(chain, scope or {})

    @property
    def context(self) -> context.ResolutionContext:
        return self._context

    @property
    def chain(self) -> sources.SourceChain:
        return self._context.chain

    def lookup(
        self,
        name: str | _typing.Sequence[str],
        value_type: _typing.Any = None,
        merge: _typing.Any = None,
        default_value: _typing.Any = values.ABSENT,
        *,
        override: _abc.Mapping[str, _typing.Any] | None = None,
        default_values_hash: _abc.Mapping[str, _typing.Any] | None = None,
        default_func: defaults.DefaultFunction | None = None,
        explainer: explain.Explainer | None = None,
    ) -> _typing.Any:
        """
        Look up one or more names.

        Args:
            name: Key, or keys tried in order.
            value_type: Type expression or descriptor the result must match.
                None (or "undef") accepts anything.
            merge: Strategy name, strategy hash, or None for first found.
            default_value: Literal default. None is an explicit undef default;
                leave as values.ABSENT for no default.
            override: Values consulted before any source.
            default_values_hash: Values consulted when nothing else was found.
            default_func: Deferred default, called with the attempted names.
            explainer: Records the resolution steps when given.

        Raises:
            LookupArgumentError: If the arguments are malformed, or both a
                default value and a default function are given.
            NotFoundError, WrongTypeError, MergeTypeError: See resolve().
        """
        names = normalize_names(name)
        expected = types.coerce_type(value_type)
        strategy = core_merge.parse_strategy(merge)
        if default_func is not None and default_value is not values.ABSENT:
            raise errors.LookupArgumentError(
                "a default value and a default function cannot both be given"
            )

        ctx = self._context if explainer is None else self._context.with_explainer(explainer)
        return resolve(
            ctx,
            names,
            expected,
            strategy,
            override or {},
            default_values_hash or {},
            default_value,
            default_func,
        )

    def lookup_with_options(
        self,
        lookup_options: _abc.Mapping[str, _typing.Any] | options.LookupOptions,
        default_func: defaults.DefaultFunction | None = None,
        *,
        explainer: explain.Explainer | None = None,
    ) -> _typing.Any:
        """Look up using the single options-hash calling form."""
        if not isinstance(lookup_options, options.LookupOptions):
            lookup_options = options.LookupOptions.from_mapping(lookup_options)
        return self.lookup(
            lookup_options.name,
            lookup_options.value_type,
            lookup_options.merge,
            lookup_options.default,
            override=lookup_options.override,
            default_values_hash=lookup_options.default_values_hash,
            default_func=default_func,
            explainer=explainer,
        )


def lookup(
    resolver: Resolver,
    *args: _typing.Any,
    default_func: defaults.DefaultFunction | None = None,
    **kwargs: _typing.Any,
) -> _typing.Any:
    """
    Dispatch between the positional and the options-hash calling forms.

    `lookup(resolver, {"name": "a", ...})` uses the options hash;
    anything else is passed to Resolver.lookup().
    """
    if len(args) == 1 and isinstance(args[0], (_abc.Mapping, options.LookupOptions)):
        return resolver.lookup_with_options(args[0], default_func, **kwargs)
    return resolver.lookup(*args, default_func=default_func, **kwargs)
