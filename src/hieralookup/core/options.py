"""
The single-config-object form of a lookup call.

    lookup({"name": ["b", "a"], "override": {"a": "override_a"}})

is equivalent to the positional form with the same arguments. Recognized
keys: name, value_type, merge, override, default_values_hash,
default_value. Unknown keys are rejected.

`default_value` is "given" only when the key is present; a present key
with value None is an explicit undef default.
"""

import collections.abc as _abc
import typing as _typing

import pydantic as _pydantic

import hieralookup.core.errors as errors
import hieralookup.core.values as values


class LookupOptions(_pydantic.BaseModel):
    """Validated lookup arguments given as one hash."""

    model_config = _pydantic.ConfigDict(extra="forbid", frozen=True)

    name: str | list[str]
    """Key, or keys tried in order."""

    value_type: _typing.Any = None
    """Type expression or descriptor; None means Any."""

    merge: _typing.Any = None
    """Strategy name or hash; None means first found."""

    override: dict[str, _typing.Any] = _pydantic.Field(default_factory=dict)
    """Values consulted before any source."""

    default_values_hash: dict[str, _typing.Any] = _pydantic.Field(default_factory=dict)
    """Values consulted after every source failed."""

    default_value: _typing.Any = None
    """Literal default; only used when explicitly given."""

    @_pydantic.field_validator("override", "default_values_hash", mode="before")
    @classmethod
    def _undef_is_empty(cls, value: _typing.Any) -> _typing.Any:
        return {} if value is None else value

    @_pydantic.field_validator("name")
    @classmethod
    def _names_not_empty(cls, value: str | list[str]) -> str | list[str]:
        if isinstance(value, list) and not value:
            raise ValueError("at least one name is required")
        return value

    @property
    def default(self) -> _typing.Any:
        """The literal default, or values.ABSENT when none was given."""
        if "default_value" in self.model_fields_set:
            return self.default_value
        return values.ABSENT

    @classmethod
    def from_mapping(cls, options: _abc.Mapping[str, _typing.Any]) -> "LookupOptions":
        """
        Validate a lookup options hash.

        Raises:
            LookupArgumentError: If a key is unknown or a value is malformed.
        """
        try:
            return cls.model_validate(dict(options))
        except _pydantic.ValidationError as e:
            details = "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc']) or 'options'}: {err['msg']}"
                for err in e.errors()
            )
            raise errors.LookupArgumentError(f"invalid lookup options: {details}") from e
