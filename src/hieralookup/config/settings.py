"""
Engine settings: which data tiers make up the hierarchy, lookup defaults,
scope variables and logging.

Values come from, highest precedence first: constructor arguments,
HIERALOOKUP_* environment variables, then the config file stack of
LayeredYamlSettingsSource (project, user, built-in).

Nested config uses double underscore delimiter:
  HIERALOOKUP_LOGGING__LEVEL=debug
  HIERALOOKUP_LOOKUP__MERGE=deep
"""

import importlib as _importlib
import logging as _logging
import pathlib as _pathlib
import typing as _typing

import pydantic as _pydantic
import pydantic_settings as _pydantic_settings

import hieralookup.config.sources as sources
import hieralookup.config.types as types
import hieralookup.constants as constants
import hieralookup.core.resolver as resolver
import hieralookup.core.sources as core_sources

_logger = _logging.getLogger(__name__)


class BackendLoadError(Exception):
    """Raised when a backend tier's factory cannot be imported or called."""

    pass


def find_project_root(start_path: _pathlib.Path | None = None) -> _pathlib.Path:
    """
    Find the project root directory.

    Walks up from start_path looking for a `.hieralookup` directory and
    falls back to start_path itself.
    """
    if start_path is None:
        start_path = _pathlib.Path.cwd()

    current = start_path.resolve()
    while True:
        if (current / constants.PROJECT_CONFIG_DIRNAME).is_dir():
            return current
        if current == current.parent:
            return start_path.resolve()
        current = current.parent


def load_backend(tier: types.TierConfig) -> core_sources.BackendFunction:
    """
    Import and call the factory of a backend tier.

    Args:
        tier: A tier with `backend` set to "package.module:callable".

    Returns:
        The backend function, called as `func(key, context)`.

    Raises:
        BackendLoadError: If the module or attribute cannot be loaded, or
            the factory does not return a callable.
    """
    assert tier.backend is not None
    module_name, _, attr_name = tier.backend.partition(":")
    try:
        module = _importlib.import_module(module_name)
    except ImportError as e:
        raise BackendLoadError(f"Cannot import backend module '{module_name}': {e}") from e

    factory = getattr(module, attr_name, None)
    if not callable(factory):
        raise BackendLoadError(f"Backend factory '{tier.backend}' not found or not callable")

    try:
        func = factory(**tier.options)
    except Exception as e:
        raise BackendLoadError(f"Backend factory '{tier.backend}' failed: {e}") from e

    if not callable(func):
        raise BackendLoadError(
            f"Backend factory '{tier.backend}' returned {type(func).__name__}, expected a callable"
        )
    return func  # type: ignore[no-any-return]


class Settings(_pydantic_settings.BaseSettings):
    """
    hieralookup configuration settings.

    All settings can be overridden via environment variables with
    HIERALOOKUP_ prefix. For nested config, use double underscore:
    HIERALOOKUP_LOGGING__LEVEL=debug

    Config precedence (highest to lowest):
    1. Constructor arguments
    2. Environment variables (HIERALOOKUP_*)
    3. Project config (.hieralookup/config.yaml)
    4. User config (~/.config/hieralookup/config.yaml)
    5. Built-in defaults
    """

    model_config = _pydantic_settings.SettingsConfigDict(
        env_prefix=constants.ENV_PREFIX,
        env_nested_delimiter="__",  # HIERALOOKUP_LOGGING__LEVEL
        extra="allow",  # Preserve unknown fields for auditing
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[_pydantic_settings.BaseSettings],
        init_settings: _pydantic_settings.PydanticBaseSettingsSource,
        env_settings: _pydantic_settings.PydanticBaseSettingsSource,
        dotenv_settings: _pydantic_settings.PydanticBaseSettingsSource,
        file_secret_settings: _pydantic_settings.PydanticBaseSettingsSource,
    ) -> tuple[_pydantic_settings.PydanticBaseSettingsSource, ...]:
        """Constructor args, then HIERALOOKUP_* env vars, then config files; no dotenv."""
        return (
            init_settings,
            env_settings,
            sources.LayeredYamlSettingsSource(settings_cls, find_project_root()),
        )

    # =========================================================================
    # Config version (for future migrations)
    # =========================================================================

    version: int = _pydantic.Field(default=1, description="Config schema version")

    # =========================================================================
    # Nested config sections
    # =========================================================================

    hierarchy: list[types.TierConfig] = _pydantic.Field(default_factory=list)
    """Data tiers, highest precedence first."""

    lookup: types.LookupConfig = _pydantic.Field(default_factory=types.LookupConfig)
    """Defaults for lookups."""

    logging: types.LoggingConfig = _pydantic.Field(default_factory=types.LoggingConfig)
    """Logging settings."""

    scope: dict[str, _typing.Any] = _pydantic.Field(default_factory=dict)
    """Variables for %{name} interpolation in data files."""

    project_root: _pathlib.Path | None = _pydantic.Field(
        default=None,
        description="Root for relative data paths; detected when unset",
    )

    @_pydantic.field_validator("hierarchy")
    @classmethod
    def _unique_tier_names(cls, tiers: list[types.TierConfig]) -> list[types.TierConfig]:
        names = [tier.name for tier in tiers]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"duplicate tier names: {', '.join(duplicates)}")
        return tiers

    # =========================================================================
    # Building the engine
    # =========================================================================

    @property
    def root(self) -> _pathlib.Path:
        """Project root used to resolve relative data paths."""
        if self.project_root is not None:
            return self.project_root
        return find_project_root()

    def build_chain(self) -> core_sources.SourceChain:
        """
        Build the source chain described by `hierarchy`.

        Raises:
            BackendLoadError: If a backend tier cannot be loaded.
        """
        chain_sources: list[core_sources.Source] = []
        for tier in self.hierarchy:
            if tier.type == "backend":
                chain_sources.append(core_sources.CallableSource(tier.name, load_backend(tier)))
                continue
            assert tier.path is not None
            path = _pathlib.Path(tier.path).expanduser()
            if not path.is_absolute():
                path = self.root / path
            chain_sources.append(core_sources.YamlFileSource(tier.name, path))

        _logger.debug("Built source chain: %s", [source.name for source in chain_sources])
        return core_sources.SourceChain(chain_sources)

    def create_resolver(
        self,
        scope: _typing.Mapping[str, _typing.Any] | None = None,
    ) -> resolver.Resolver:
        """Create a Resolver over build_chain(); `scope` entries extend `self.scope`."""
        return resolver.Resolver(self.build_chain(), {**self.scope, **(scope or {})})

    def get_unknown_fields(self) -> dict[str, _typing.Any]:
        """Unknown keys anywhere in the config, as dotted paths."""
        result = {key: value for key, value in (self.model_extra or {}).items()}
        for section_name in ("lookup", "logging"):
            section: types.ConfigBase = getattr(self, section_name)
            result.update(section.collect_all_extra_fields(section_name))
        for index, tier in enumerate(self.hierarchy):
            result.update(tier.collect_all_extra_fields(f"hierarchy.{index}"))
        return result
