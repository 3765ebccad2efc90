"""
Core lookup engine for hieralookup.

This module contains the resolution and merge algorithm. It has NO
dependencies on hieralookup.config or hieralookup.cli; callers build a
SourceChain however they like and hand it to a Resolver.
"""

from hieralookup.core.context import ResolutionContext
from hieralookup.core.errors import (
    DataFileError,
    LookupArgumentError,
    LookupEngineError,
    MergeTypeError,
    NotFoundError,
    WrongTypeError,
)
from hieralookup.core.explain import Explainer
from hieralookup.core.merge import (
    MergeStrategy,
    StrategyKind,
    merge_values,
    parse_strategy,
)
from hieralookup.core.options import LookupOptions
from hieralookup.core.resolver import Resolver, lookup
from hieralookup.core.sources import (
    CallableSource,
    MappingSource,
    Source,
    SourceChain,
    YamlFileSource,
)
from hieralookup.core.types import Mismatch, check, parse_type
from hieralookup.core.values import ABSENT, NOT_FOUND

__all__ = [
    # Sentinels
    "ABSENT",
    "NOT_FOUND",
    # Errors
    "DataFileError",
    "LookupArgumentError",
    "LookupEngineError",
    "MergeTypeError",
    "NotFoundError",
    "WrongTypeError",
    # Sources
    "CallableSource",
    "MappingSource",
    "Source",
    "SourceChain",
    "YamlFileSource",
    # Merging
    "MergeStrategy",
    "StrategyKind",
    "merge_values",
    "parse_strategy",
    # Types
    "Mismatch",
    "check",
    "parse_type",
    # Resolution
    "Explainer",
    "LookupOptions",
    "ResolutionContext",
    "Resolver",
    "lookup",
]
