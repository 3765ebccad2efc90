"""
Exceptions raised by the lookup engine.

Every failure of a lookup call is terminal: nothing is retried and no
partial result is returned. All exceptions derive from LookupEngineError so
callers can catch engine failures as one category.

The message text of NotFoundError, WrongTypeError and MergeTypeError is
part of the public contract; callers pattern-match on it.
"""

import pathlib as _pathlib
import typing as _typing

if _typing.TYPE_CHECKING:
    import hieralookup.core.types as types


class LookupEngineError(Exception):
    """Base class for all lookup failures."""


class LookupArgumentError(LookupEngineError):
    """A lookup was called with malformed arguments."""


class NotFoundError(LookupEngineError):
    """No key resolved through override, sources, default-values or defaults."""

    def __init__(self, names: _typing.Sequence[str]) -> None:
        self.names = list(names)
        if len(self.names) == 1:
            message = f"did not find a value for the name '{self.names[0]}'"
        else:
            quoted = ", ".join(f"'{name}'" for name in self.names)
            message = f"did not find a value for any of the names [{quoted}]"
        super().__init__(message)


class WrongTypeError(LookupEngineError):
    """
    A resolved value failed the structural type check.

    The role tells which layer produced the value:
    - "found": override map, sources or default-values map
    - "default_value": the literal default
    - "default_block": the result of a deferred default
    """

    def __init__(self, role: str, mismatch: "types.Mismatch") -> None:
        self.role = role
        self.mismatch = mismatch
        super().__init__(f"{role} value has wrong type, {mismatch}")


class MergeTypeError(LookupEngineError):
    """A merge strategy was malformed or values could not be merged with it."""


class DataFileError(LookupEngineError):
    """Error loading or parsing a YAML data file."""

    def __init__(self, path: _pathlib.Path, message: str) -> None:
        self.path = path
        super().__init__(f"Error in data file {path}: {message}")
