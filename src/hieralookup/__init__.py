"""
hieralookup - hierarchical key/value lookup and merge engine

Resolves keys against an ordered chain of data sources, merges values
across sources (unique, hash, deep), layers overrides and defaults on top,
and validates results against structural type descriptors.
"""

import importlib.metadata as _metadata

# Version is defined in pyproject.toml - read it and parse into tuple (primary representation)
_raw_version = _metadata.version("hieralookup")
__version_info__: tuple[int, int, int] = tuple(int(x) for x in _raw_version.split(".")[:3])  # type: ignore[assignment]
__version__: str = ".".join(str(x) for x in __version_info__)
__author__ = "hieralookup Contributors"

from hieralookup.core import (  # noqa: E402
    ABSENT,
    NOT_FOUND,
    LookupEngineError,
    NotFoundError,
    Resolver,
    SourceChain,
    lookup,
)

__all__ = [
    "__version__",
    "__version_info__",
    "ABSENT",
    "NOT_FOUND",
    "LookupEngineError",
    "NotFoundError",
    "Resolver",
    "SourceChain",
    "lookup",
]
