"""Models for the sections of the hieralookup config file.

- TierConfig: one data tier of the hierarchy (YAML file or backend)
- LookupConfig: defaults applied to lookups that do not specify them
- LoggingConfig: log level

Every section accepts unknown keys and keeps them, so `hieralookup config
validate` can point at typos instead of pydantic silently dropping them.
"""

import typing as _typing

import pydantic as _pydantic


def _dotted(prefix: str, key: _typing.Any) -> str:
    return f"{prefix}.{key}" if prefix else str(key)


class ConfigBase(_pydantic.BaseModel):
    """Section model that keeps unknown keys in `model_extra`."""

    model_config = _pydantic.ConfigDict(extra="allow")

    def get_extra_fields(self) -> dict[str, _typing.Any]:
        """Unknown keys given for this section only."""
        return dict(self.model_extra or {})

    def _nested_sections(self) -> _typing.Iterator[tuple[str, "ConfigBase"]]:
        for field_name in type(self).model_fields:
            value = getattr(self, field_name, None)
            if isinstance(value, ConfigBase):
                yield field_name, value
            elif isinstance(value, list):
                for index, item in enumerate(value):
                    if isinstance(item, ConfigBase):
                        yield f"{field_name}.{index}", item

    def collect_all_extra_fields(self, prefix: str = "") -> dict[str, _typing.Any]:
        """
        Unknown keys of this section and every nested section, by dotted path.

            {"logging.levle": "debug", "hierarchy.0.pth": "data.yaml"}
        """
        result = {_dotted(prefix, key): value for key, value in self.get_extra_fields().items()}
        for path, section in self._nested_sections():
            result.update(section.collect_all_extra_fields(_dotted(prefix, path)))
        return result


# =============================================================================
# Hierarchy
# =============================================================================


class TierConfig(ConfigBase):
    """
    One tier of the data hierarchy.

    YAML section: hierarchy[*]

    Tiers are listed highest precedence first. A `yaml` tier reads a data
    file (relative paths resolve against the project root); a `backend`
    tier imports a factory given as "package.module:callable" and calls it
    with `options` to obtain the backend function.
    """

    name: str = _pydantic.Field(min_length=1)
    """Tier name, shown in explanations."""

    type: _typing.Literal["yaml", "backend"] = "yaml"
    """Kind of tier."""

    path: str | None = None
    """Data file for `yaml` tiers."""

    backend: str | None = None
    """Factory import spec for `backend` tiers."""

    options: dict[str, _typing.Any] = _pydantic.Field(default_factory=dict)
    """Keyword arguments passed to the backend factory."""

    @_pydantic.model_validator(mode="after")
    def _check_target(self) -> "TierConfig":
        if self.type == "yaml" and not self.path:
            raise ValueError(f"yaml tier '{self.name}' needs a 'path'")
        if self.type == "backend":
            if not self.backend or ":" not in self.backend:
                raise ValueError(
                    f"backend tier '{self.name}' needs 'backend' as 'package.module:callable'"
                )
        return self


# =============================================================================
# Lookup defaults
# =============================================================================


class LookupConfig(ConfigBase):
    """
    Defaults for lookups that do not specify them.

    YAML section: lookup.*
    """

    merge: str | dict[str, _typing.Any] | None = None
    """Default merge strategy. None = first found."""

    value_type: str | None = None
    """Default expected type. None = Any."""


# =============================================================================
# Logging Settings
# =============================================================================


class LoggingConfig(ConfigBase):
    """
    Logging settings.

    YAML section: logging.*
    """

    level: _typing.Literal["debug", "info", "warning", "error"] = "warning"
    """Log level for the hieralookup loggers."""
