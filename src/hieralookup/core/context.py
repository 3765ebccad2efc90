"""
Per-lookup resolution context.

The context is threaded explicitly through the resolver and into every
source query instead of being read from ambient state. It is immutable, so
a deferred default that re-enters the engine can reuse it safely.
"""

from __future__ import annotations

import dataclasses as _dataclasses
import types as _types
import typing as _typing

if _typing.TYPE_CHECKING:
    import hieralookup.core.explain as explain
    import hieralookup.core.sources as sources


def _freeze(scope: _typing.Mapping[str, _typing.Any] | None) -> _typing.Mapping[str, _typing.Any]:
    return _types.MappingProxyType(dict(scope or {}))


@_dataclasses.dataclass(frozen=True)
class ResolutionContext:
    """
    Everything a lookup needs besides its own arguments.

    Attributes:
        chain: Ordered data sources, shared read-only across lookups.
        scope: Variables available for `%{name}` interpolation in data.
        explainer: Optional recorder of the resolution steps.
    """

    chain: sources.SourceChain
    scope: _typing.Mapping[str, _typing.Any] = _dataclasses.field(default_factory=dict)
    explainer: explain.Explainer | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "scope", _freeze(self.scope))

    def with_explainer(self, explainer: explain.Explainer | None) -> ResolutionContext:
        """Return a copy of this context recording into `explainer`."""
        return _dataclasses.replace(self, explainer=explainer)
