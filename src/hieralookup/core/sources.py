"""
Data sources and the ordered source chain.

A Source answers `lookup(key, context)` with a value or NOT_FOUND. Undef
(None) is a value: a source that maps a key to undef has found it.

Sources provided here:
- MappingSource: an in-memory mapping
- YamlFileSource: a YAML data file, loaded lazily on first query
- CallableSource: adapter for an external key/value backend

The SourceChain holds sources in precedence order (highest first) and is
shared read-only by every lookup of a compilation. Sources are always
queried sequentially in that order; the order defines precedence.
"""

from __future__ import annotations

import abc as _abc
import collections.abc as _collections_abc
import dataclasses as _dataclasses
import logging as _logging
import pathlib as _pathlib
import typing as _typing

import yaml as _yaml

import hieralookup.core.errors as errors
import hieralookup.core.values as values

if _typing.TYPE_CHECKING:
    import hieralookup.core.context as context

_logger = _logging.getLogger(__name__)


class Source(_abc.ABC):
    """A named origin of values."""

    def __init__(self, name: str) -> None:
        self._name = name

    @property
    def name(self) -> str:
        """Name used in explanations and error messages."""
        return self._name

    @_abc.abstractmethod
    def lookup(self, key: str, ctx: context.ResolutionContext) -> _typing.Any:
        """Return the value for key, or values.NOT_FOUND."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._name!r})"


class MappingSource(Source):
    """Source backed by an in-memory mapping."""

    def __init__(self, name: str, data: _collections_abc.Mapping[str, _typing.Any]) -> None:
        super().__init__(name)
        self._data = dict(data)

    def lookup(self, key: str, ctx: context.ResolutionContext) -> _typing.Any:
        return self._data.get(key, values.NOT_FOUND)


class YamlFileSource(Source):
    """
    Source backed by a YAML data file.

    The file is read on the first query and kept for the lifetime of the
    source. A missing file is treated as an empty source, since a tier
    without data is normal.
    """

    def __init__(self, name: str, path: _pathlib.Path) -> None:
        super().__init__(name)
        self._path = _pathlib.Path(path)
        self._data: dict[str, _typing.Any] | None = None

    @property
    def path(self) -> _pathlib.Path:
        return self._path

    def lookup(self, key: str, ctx: context.ResolutionContext) -> _typing.Any:
        if self._data is None:
            self._data = self._load()
        return self._data.get(key, values.NOT_FOUND)

    def _load(self) -> dict[str, _typing.Any]:
        """
        Read and parse the data file.

        Raises:
            DataFileError: If the file cannot be read, is malformed YAML,
                or does not contain a mapping at the top level.
        """
        if not self._path.exists():
            _logger.debug("Data file %s for source '%s' does not exist", self._path, self.name)
            return {}

        try:
            content = self._path.read_text(encoding="utf-8")
        except OSError as e:
            raise errors.DataFileError(self._path, f"cannot read file: {e}") from e

        try:
            parsed = _yaml.safe_load(content)
        except _yaml.YAMLError as e:
            raise errors.DataFileError(self._path, f"invalid YAML: {e}") from e

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise errors.DataFileError(
                self._path,
                f"data must be a YAML mapping, got {type(parsed).__name__}",
            )
        _logger.debug("Loaded %d keys for source '%s' from %s", len(parsed), self.name, self._path)
        return parsed

    def __repr__(self) -> str:
        return f"YamlFileSource({self.name!r}, {str(self._path)!r})"


BackendFunction = _typing.Callable[[str, "context.ResolutionContext"], _typing.Any]


class CallableSource(Source):
    """
    Adapter for an external key/value backend.

    The function is called as `func(key, context)` and must return the value
    or values.NOT_FOUND.
    """

    def __init__(self, name: str, func: BackendFunction) -> None:
        super().__init__(name)
        self._func = func

    def lookup(self, key: str, ctx: context.ResolutionContext) -> _typing.Any:
        return self._func(key, ctx)


@_dataclasses.dataclass(frozen=True)
class SourceHit:
    """A value and the source that supplied it."""

    source: Source
    value: _typing.Any


class SourceChain:
    """Sources in fixed precedence order, highest first."""

    def __init__(self, sources: _typing.Iterable[Source] = ()) -> None:
        self._sources = tuple(sources)
        names = [source.name for source in self._sources]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise errors.LookupArgumentError(
                f"source names must be unique, duplicated: {', '.join(duplicates)}"
            )

    @property
    def names(self) -> list[str]:
        """Source names in precedence order."""
        return [source.name for source in self._sources]

    def __iter__(self) -> _typing.Iterator[Source]:
        return iter(self._sources)

    def __len__(self) -> int:
        return len(self._sources)

    def first(self, key: str, ctx: context.ResolutionContext) -> SourceHit | None:
        """Return the hit of the first source that has key, or None."""
        for source in self._sources:
            value = source.lookup(key, ctx)
            if ctx.explainer is not None:
                ctx.explainer.note(_describe(source, value))
            if values.is_found(value):
                return SourceHit(source, value)
        return None

    def collect(self, key: str, ctx: context.ResolutionContext) -> list[SourceHit]:
        """Query every source; return the hits in precedence order."""
        hits: list[SourceHit] = []
        for source in self._sources:
            value = source.lookup(key, ctx)
            if ctx.explainer is not None:
                ctx.explainer.note(_describe(source, value))
            if values.is_found(value):
                hits.append(SourceHit(source, value))
        return hits

    def __repr__(self) -> str:
        return f"SourceChain({list(self._sources)!r})"


def _describe(source: Source, value: _typing.Any) -> str:
    if values.is_found(value):
        return f"Source '{source.name}': found {value!r}"
    return f"Source '{source.name}': not found"
