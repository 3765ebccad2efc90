"""
Structural type descriptors and the type checker.

Descriptors form a closed algebra:

- AnyType: accepts everything, including undef
- UndefType: accepts only undef (None)
- ScalarType: one of the named scalar types (String, Integer, ...)
- ArrayType: Array[T]
- HashType: Hash[K, V]
- OptionalType: Optional[T], i.e. T or undef
- VariantType: Variant[T1, T2, ...]

Descriptors are parsed from their textual form with parse_type():

    >>> str(parse_type("Hash[String,Hash[String,String]]"))
    'Hash[String, Hash[String, String]]'

check() walks a value against a descriptor and returns the first Mismatch
(or None). The Mismatch renders like "entry 'b' expects a String value,
got Integer".
"""

from __future__ import annotations

import collections.abc as _abc
import dataclasses as _dataclasses
import re as _re
import typing as _typing

import hieralookup.core.errors as errors

# =============================================================================
# Descriptors
# =============================================================================


@_dataclasses.dataclass(frozen=True)
class AnyType:
    """Accepts any value, including undef."""

    def __str__(self) -> str:
        return "Any"


@_dataclasses.dataclass(frozen=True)
class UndefType:
    """Accepts only undef."""

    def __str__(self) -> str:
        return "Undef"


@_dataclasses.dataclass(frozen=True)
class ScalarType:
    """A named scalar type; see SCALAR_NAMES."""

    name: str

    def __str__(self) -> str:
        return self.name


@_dataclasses.dataclass(frozen=True)
class ArrayType:
    """Array whose elements all match `element`."""

    element: TypeDescriptor = _dataclasses.field(default_factory=AnyType)

    def __str__(self) -> str:
        if isinstance(self.element, AnyType):
            return "Array"
        return f"Array[{self.element}]"


@_dataclasses.dataclass(frozen=True)
class HashType:
    """Hash whose keys match `key` and values match `value`."""

    key: TypeDescriptor = _dataclasses.field(default_factory=AnyType)
    value: TypeDescriptor = _dataclasses.field(default_factory=AnyType)

    def __str__(self) -> str:
        if isinstance(self.key, AnyType) and isinstance(self.value, AnyType):
            return "Hash"
        return f"Hash[{self.key}, {self.value}]"


@_dataclasses.dataclass(frozen=True)
class OptionalType:
    """The inner type or undef."""

    inner: TypeDescriptor

    def __str__(self) -> str:
        return f"Optional[{self.inner}]"


@_dataclasses.dataclass(frozen=True)
class VariantType:
    """Any one of several types."""

    options: tuple[TypeDescriptor, ...]

    def __str__(self) -> str:
        return f"Variant[{', '.join(str(option) for option in self.options)}]"


TypeDescriptor = _typing.Union[
    AnyType, UndefType, ScalarType, ArrayType, HashType, OptionalType, VariantType
]

ANY = AnyType()
UNDEF = UndefType()


def _is_integer(value: _typing.Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_data(value: _typing.Any) -> bool:
    if value is None or isinstance(value, (str, int, float)):
        return True
    if isinstance(value, list):
        return all(_is_data(item) for item in value)
    if isinstance(value, _abc.Mapping):
        return all(isinstance(k, str) and _is_data(v) for k, v in value.items())
    return False


SCALAR_NAMES: dict[str, _typing.Callable[[_typing.Any], bool]] = {
    "String": lambda v: isinstance(v, str),
    "Integer": _is_integer,
    "Float": lambda v: isinstance(v, float),
    "Numeric": lambda v: _is_integer(v) or isinstance(v, float),
    "Boolean": lambda v: isinstance(v, bool),
    "Scalar": lambda v: isinstance(v, (str, int, float)),
    "Data": _is_data,
}
"""Scalar type names mapped to their membership predicate."""


# =============================================================================
# Parsing
# =============================================================================

_TOKEN_RE = _re.compile(r"\s*(?:([A-Za-z_][A-Za-z0-9_]*)|(\[)|(\])|(,))")


def _tokenize(text: str) -> list[str]:
    tokens: list[str] = []
    pos = 0
    text = text.rstrip()
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise errors.LookupArgumentError(
                f"invalid type expression '{text}': unexpected character at {pos}"
            )
        tokens.append(match.group(match.lastindex or 0))
        pos = match.end()
    return tokens


class _Parser:
    """Recursive descent parser over the token list of a type expression."""

    def __init__(self, text: str) -> None:
        self._text = text
        self._tokens = _tokenize(text)
        self._pos = 0

    def _error(self, message: str) -> errors.LookupArgumentError:
        return errors.LookupArgumentError(f"invalid type expression '{self._text}': {message}")

    def _peek(self) -> str | None:
        return self._tokens[self._pos] if self._pos < len(self._tokens) else None

    def _take(self, expected: str | None = None) -> str:
        token = self._peek()
        if token is None:
            raise self._error("unexpected end of expression")
        if expected is not None and token != expected:
            raise self._error(f"expected '{expected}', got '{token}'")
        self._pos += 1
        return token

    def parse(self) -> TypeDescriptor:
        result = self._type()
        if self._peek() is not None:
            raise self._error(f"unexpected '{self._peek()}'")
        return result

    def _type(self) -> TypeDescriptor:
        name = self._take()
        if name in ("[", "]", ","):
            raise self._error(f"expected a type name, got '{name}'")
        params: list[TypeDescriptor] = []
        if self._peek() == "[":
            self._take("[")
            params.append(self._type())
            while self._peek() == ",":
                self._take(",")
                params.append(self._type())
            self._take("]")
        return self._build(name, params)

    def _build(self, name: str, params: list[TypeDescriptor]) -> TypeDescriptor:
        if name in ("Any", "Undef") or name in SCALAR_NAMES:
            if params:
                raise self._error(f"{name} does not take parameters")
            if name == "Any":
                return ANY
            if name == "Undef":
                return UNDEF
            return ScalarType(name)
        if name == "Array":
            if len(params) > 1:
                raise self._error("Array takes at most one parameter")
            return ArrayType(params[0]) if params else ArrayType()
        if name == "Hash":
            if len(params) not in (0, 2):
                raise self._error("Hash takes a key and a value type")
            return HashType(*params)
        if name == "Optional":
            if len(params) != 1:
                raise self._error("Optional takes exactly one parameter")
            return OptionalType(params[0])
        if name == "Variant":
            if not params:
                raise self._error("Variant needs at least one parameter")
            return VariantType(tuple(params))
        raise self._error(f"unknown type '{name}'")


def parse_type(text: str) -> TypeDescriptor:
    """
    Parse a textual type expression into a descriptor.

    Raises:
        LookupArgumentError: If the expression is malformed or names an
            unknown type.
    """
    return _Parser(text).parse()


def coerce_type(spec: _typing.Any) -> TypeDescriptor:
    """Accept None (meaning Any), a type expression, or a descriptor."""
    if spec is None:
        return ANY
    if isinstance(spec, str):
        if spec == "undef":
            return ANY
        return parse_type(spec)
    if isinstance(
        spec, (AnyType, UndefType, ScalarType, ArrayType, HashType, OptionalType, VariantType)
    ):
        return spec
    raise errors.LookupArgumentError(
        f"value_type must be a type expression, got {type(spec).__name__}"
    )


# =============================================================================
# Checking
# =============================================================================


@_dataclasses.dataclass(frozen=True)
class Mismatch:
    """First point where a value departs from its expected type."""

    path: tuple[str, ...]
    expected: str
    actual: str

    def __str__(self) -> str:
        prefix = " ".join(self.path) + " " if self.path else ""
        return f"{prefix}expects {self.expected}, got {self.actual}"


def _article(name: str) -> str:
    return "an" if name[:1] in "AEIOU" else "a"


def _expectation(expected: TypeDescriptor) -> str:
    if isinstance(expected, (OptionalType, VariantType)):
        return f"a value of type {_alternatives(expected)}"
    name = str(expected).split("[", 1)[0]
    return f"{_article(name)} {name} value"


def _alternatives(expected: TypeDescriptor) -> str:
    if isinstance(expected, OptionalType):
        return f"Undef or {expected.inner}"
    if isinstance(expected, VariantType):
        names = [str(option) for option in expected.options]
        if len(names) == 1:
            return names[0]
        return ", ".join(names[:-1]) + f" or {names[-1]}"
    return str(expected)


def infer_type_name(value: _typing.Any) -> str:
    """Name of the type a value would be reported as in a mismatch."""
    if value is None:
        return "Undef"
    if isinstance(value, bool):
        return "Boolean"
    if isinstance(value, int):
        return "Integer"
    if isinstance(value, float):
        return "Float"
    if isinstance(value, str):
        return "String"
    if isinstance(value, (list, tuple)):
        return "Array"
    if isinstance(value, _abc.Mapping):
        return "Hash"
    return type(value).__name__


def check(
    value: _typing.Any,
    expected: TypeDescriptor,
    path: tuple[str, ...] = (),
) -> Mismatch | None:
    """
    Check a value against a descriptor.

    Args:
        value: Value to validate.
        expected: Descriptor to validate against.
        path: Location of value inside the enclosing structure (recursion).

    Returns:
        None if the value conforms, otherwise the first Mismatch found.
    """
    if isinstance(expected, AnyType):
        return None

    if isinstance(expected, UndefType):
        if value is None:
            return None
        return Mismatch(path, _expectation(expected), infer_type_name(value))

    if isinstance(expected, ScalarType):
        if SCALAR_NAMES[expected.name](value):
            return None
        return Mismatch(path, _expectation(expected), infer_type_name(value))

    if isinstance(expected, OptionalType):
        if value is None:
            return None
        if check(value, expected.inner, path) is None:
            return None
        return Mismatch(path, _expectation(expected), infer_type_name(value))

    if isinstance(expected, VariantType):
        if any(check(value, option, path) is None for option in expected.options):
            return None
        return Mismatch(path, _expectation(expected), infer_type_name(value))

    if isinstance(expected, ArrayType):
        if not isinstance(value, (list, tuple)):
            return Mismatch(path, _expectation(expected), infer_type_name(value))
        for index, item in enumerate(value):
            mismatch = check(item, expected.element, (*path, f"index {index}"))
            if mismatch is not None:
                return mismatch
        return None

    if isinstance(expected, HashType):
        if not isinstance(value, _abc.Mapping):
            return Mismatch(path, _expectation(expected), infer_type_name(value))
        for key, item in value.items():
            mismatch = check(key, expected.key, (*path, f"key '{key}'"))
            if mismatch is not None:
                return mismatch
            mismatch = check(item, expected.value, (*path, f"entry '{key}'"))
            if mismatch is not None:
                return mismatch
        return None

    raise TypeError(f"not a type descriptor: {expected!r}")
