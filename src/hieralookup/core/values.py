"""
Sentinel values shared by the lookup engine.

Undef is represented by Python ``None`` and is a legitimate lookup result.
"Not found" is a separate sentinel so the two can never be confused:

- NOT_FOUND: a source (or the whole chain) had nothing for a key.
- ABSENT: an optional argument (such as a default value) was not supplied.
"""

import typing as _typing


class _Sentinel:
    """Named singleton marker that is falsy and compares by identity."""

    __slots__ = ("_name",)

    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return self._name

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> "_Sentinel":
        return self

    def __deepcopy__(self, memo: dict[int, _typing.Any]) -> "_Sentinel":
        return self

    def __reduce__(self) -> str:
        return self._name


NOT_FOUND = _Sentinel("NOT_FOUND")
"""Returned by sources and the chain when a key has no value."""

ABSENT = _Sentinel("ABSENT")
"""Marks an optional argument that was not supplied (``None`` means undef)."""


def is_found(value: _typing.Any) -> bool:
    """True unless value is the NOT_FOUND sentinel (undef counts as found)."""
    return value is not NOT_FOUND
