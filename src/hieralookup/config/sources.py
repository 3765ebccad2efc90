"""Layered YAML settings source for hieralookup.

Config files are stacked, highest precedence first:

    project   .hieralookup/config.yaml under the project root (optional)
    user      ~/.config/hieralookup/config.yaml or $HIERALOOKUP_CONFIG_DIR (optional)
    built-in  defaults/config.yaml shipped with the package (required)

The stack is merged with the lookup engine's own `deep` strategy, the same
one lookups use for nested data: hashes merge key by key, while lists and
scalars of a higher layer replace the lower value outright. A project that
declares its own `hierarchy` therefore replaces the built-in tiers as a
whole. Environment variables and constructor arguments are layered on top
by pydantic-settings itself.
"""

import dataclasses as _dataclasses
import logging as _logging
import os as _os
import pathlib as _pathlib
import typing as _typing

import pydantic.fields as _pydantic_fields
import pydantic_settings as _pydantic_settings
import yaml as _yaml

import hieralookup.constants as constants
import hieralookup.core.merge as core_merge

_logger = _logging.getLogger(__name__)

_DEEP = core_merge.MergeStrategy(core_merge.StrategyKind.DEEP)


class ConfigFileError(Exception):
    """A config file could not be read or does not hold a mapping."""

    def __init__(self, path: _pathlib.Path, message: str) -> None:
        self.path = path
        super().__init__(f"Error in config file {path}: {message}")


@_dataclasses.dataclass(frozen=True)
class ConfigLayer:
    """One config file in the stack."""

    name: str
    path: _pathlib.Path
    required: bool = False


def read_config_file(path: _pathlib.Path) -> dict[str, _typing.Any] | None:
    """
    Parse one config file.

    Returns None for an empty file.

    Raises:
        ConfigFileError: If the file is unreadable, is not valid YAML, or
            its top level is not a mapping.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigFileError(path, f"cannot read file: {e}") from e

    try:
        data = _yaml.safe_load(text)
    except _yaml.YAMLError as e:
        raise ConfigFileError(path, f"invalid YAML: {e}") from e

    if data is None or isinstance(data, dict):
        return data
    raise ConfigFileError(path, f"config must be a YAML mapping, got {type(data).__name__}")


class LayeredYamlSettingsSource(_pydantic_settings.PydanticBaseSettingsSource):
    """
    pydantic-settings source returning the deep-merged config file stack.

    `user_config_path` and `builtin_config_path` replace the standard
    locations, which keeps tests away from the real home directory.
    """

    def __init__(
        self,
        settings_cls: type[_pydantic_settings.BaseSettings],
        project_root: _pathlib.Path | None = None,
        *,
        user_config_path: _pathlib.Path | None = None,
        builtin_config_path: _pathlib.Path | None = None,
    ) -> None:
        super().__init__(settings_cls)
        stack: list[ConfigLayer] = []
        if project_root is not None:
            stack.append(ConfigLayer("project", get_project_config_path(project_root)))
        stack.append(ConfigLayer("user", user_config_path or get_user_config_path()))
        stack.append(
            ConfigLayer(
                "built-in",
                builtin_config_path or get_builtin_defaults_path(),
                required=True,
            )
        )
        self._loaded: list[ConfigLayer] = []
        self._merged = self._merge(stack)

    def _merge(self, stack: list[ConfigLayer]) -> dict[str, _typing.Any]:
        contents: list[dict[str, _typing.Any]] = []
        for layer in stack:
            if not layer.path.exists():
                if layer.required:
                    raise ConfigFileError(
                        layer.path, "built-in defaults not found (possible installation problem)"
                    )
                continue
            data = read_config_file(layer.path)
            if not data:
                if layer.required:
                    raise ConfigFileError(
                        layer.path,
                        "built-in defaults file is empty (possible installation problem)",
                    )
                continue
            _logger.debug("Loaded %s config from %s", layer.name, layer.path)
            contents.append(data)
            self._loaded.append(layer)

        merged: dict[str, _typing.Any] = core_merge.merge_values(contents, _DEEP)
        return merged

    def get_loaded_layers(self) -> list[tuple[str, _pathlib.Path]]:
        """(name, path) of every file that contributed, highest precedence first."""
        return [(layer.name, layer.path) for layer in self._loaded]

    def get_field_value(
        self,
        field: _pydantic_fields.FieldInfo,  # noqa: ARG002 - required by pydantic-settings interface
        field_name: str,
    ) -> tuple[_typing.Any, str, bool]:
        value = self._merged.get(field_name)
        return value, field_name, isinstance(value, (dict, list))

    def __call__(self) -> dict[str, _typing.Any]:
        # Unknown top-level keys pass through; Settings keeps them in model_extra.
        return dict(self._merged)


def get_builtin_defaults_path() -> _pathlib.Path:
    """Config file bundled with the package."""
    return _pathlib.Path(__file__).parent / "defaults" / constants.CONFIG_FILENAME


def get_user_config_dir() -> _pathlib.Path:
    """$HIERALOOKUP_CONFIG_DIR, else ~/.config/hieralookup."""
    override = _os.environ.get(constants.ENV_CONFIG_DIR)
    if override:
        return _pathlib.Path(override)
    return _pathlib.Path.home() / ".config" / "hieralookup"


def get_user_config_path() -> _pathlib.Path:
    return get_user_config_dir() / constants.CONFIG_FILENAME


def get_project_config_path(project_root: _pathlib.Path) -> _pathlib.Path:
    return project_root / constants.PROJECT_CONFIG_DIRNAME / constants.CONFIG_FILENAME
