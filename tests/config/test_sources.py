"""Tests for the layered YAML settings source.

Covers:
- Path helper functions
- Loading and deep-merging project, user and built-in layers
- Handling missing, empty and malformed files
"""

import pathlib as _pathlib
import typing as _typing

import pydantic_settings as _pydantic_settings
import pytest as _pytest
import yaml as _yaml

import hieralookup.config.settings as settings
import hieralookup.config.sources as sources


def _write(path: _pathlib.Path, data: _typing.Any) -> _pathlib.Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(_yaml.safe_dump(data))
    return path


class TestHelperFunctions:
    """Tests for path helper functions."""

    def test_get_builtin_defaults_path(self) -> None:
        """Should return path to defaults/config.yaml."""
        path = sources.get_builtin_defaults_path()
        assert path.name == "config.yaml"
        assert path.parent.name == "defaults"
        assert path.exists()

    def test_get_user_config_path_default(self, monkeypatch: _pytest.MonkeyPatch) -> None:
        """Without env var, should return XDG-compliant user config path."""
        monkeypatch.delenv("HIERALOOKUP_CONFIG_DIR", raising=False)
        path = sources.get_user_config_path()
        assert path == _pathlib.Path.home() / ".config" / "hieralookup" / "config.yaml"

    def test_get_user_config_path_with_env_var(self, monkeypatch: _pytest.MonkeyPatch) -> None:
        """With env var set, should use that directory."""
        monkeypatch.setenv("HIERALOOKUP_CONFIG_DIR", "/custom/config/dir")
        assert sources.get_user_config_path() == _pathlib.Path("/custom/config/dir/config.yaml")
        assert sources.get_user_config_dir() == _pathlib.Path("/custom/config/dir")

    def test_get_project_config_path(self) -> None:
        """Should return project-relative config path."""
        path = sources.get_project_config_path(_pathlib.Path("/some/project"))
        assert path == _pathlib.Path("/some/project/.hieralookup/config.yaml")


class TestLayeredYamlSettingsSource:
    """Layer loading and merging."""

    @_pytest.fixture
    def builtin(self, tmp_path: _pathlib.Path) -> _pathlib.Path:
        return _write(
            tmp_path / "builtin.yaml",
            {
                "hierarchy": [{"name": "common", "path": "common.yaml"}],
                "lookup": {"merge": None, "value_type": None},
                "logging": {"level": "warning"},
                "scope": {"env": "dev", "region": "eu"},
            },
        )

    def _source(
        self,
        builtin: _pathlib.Path,
        tmp_path: _pathlib.Path,
        project_root: _pathlib.Path | None = None,
    ) -> sources.LayeredYamlSettingsSource:
        return sources.LayeredYamlSettingsSource(
            settings.Settings,
            project_root,
            user_config_path=tmp_path / "user" / "config.yaml",
            builtin_config_path=builtin,
        )

    def test_is_pydantic_settings_source(self) -> None:
        assert issubclass(
            sources.LayeredYamlSettingsSource,
            _pydantic_settings.PydanticBaseSettingsSource,
        )

    def test_builtin_only(self, builtin: _pathlib.Path, tmp_path: _pathlib.Path) -> None:
        source = self._source(builtin, tmp_path)
        assert source()["logging"] == {"level": "warning"}
        assert source.get_loaded_layers() == [("built-in", builtin)]

    def test_user_layer_deep_merges(
        self, builtin: _pathlib.Path, tmp_path: _pathlib.Path
    ) -> None:
        _write(tmp_path / "user" / "config.yaml", {"scope": {"env": "prod"}})
        merged = self._source(builtin, tmp_path)()
        assert merged["scope"] == {"env": "prod", "region": "eu"}
        assert merged["logging"] == {"level": "warning"}

    def test_project_wins_over_user(self, builtin: _pathlib.Path, tmp_path: _pathlib.Path) -> None:
        _write(tmp_path / "user" / "config.yaml", {"logging": {"level": "info"}})
        project = tmp_path / "project"
        project_config = _write(
            project / ".hieralookup" / "config.yaml", {"logging": {"level": "debug"}}
        )
        source = self._source(builtin, tmp_path, project)
        assert source()["logging"] == {"level": "debug"}
        assert [name for name, _ in source.get_loaded_layers()] == ["project", "user", "built-in"]
        assert source.get_loaded_layers()[0][1] == project_config

    def test_lists_replaced_not_merged(
        self, builtin: _pathlib.Path, tmp_path: _pathlib.Path
    ) -> None:
        project = tmp_path / "project"
        _write(
            project / ".hieralookup" / "config.yaml",
            {"hierarchy": [{"name": "only", "path": "only.yaml"}]},
        )
        merged = self._source(builtin, tmp_path, project)()
        assert merged["hierarchy"] == [{"name": "only", "path": "only.yaml"}]

    def test_empty_user_file_skipped(
        self, builtin: _pathlib.Path, tmp_path: _pathlib.Path
    ) -> None:
        user = tmp_path / "user" / "config.yaml"
        user.parent.mkdir(parents=True)
        user.write_text("")
        source = self._source(builtin, tmp_path)
        assert [name for name, _ in source.get_loaded_layers()] == ["built-in"]

    def test_malformed_yaml(self, builtin: _pathlib.Path, tmp_path: _pathlib.Path) -> None:
        user = tmp_path / "user" / "config.yaml"
        user.parent.mkdir(parents=True)
        user.write_text("logging: [unclosed\n")
        with _pytest.raises(sources.ConfigFileError, match="invalid YAML") as excinfo:
            self._source(builtin, tmp_path)
        assert excinfo.value.path == user

    def test_non_mapping_rejected(self, builtin: _pathlib.Path, tmp_path: _pathlib.Path) -> None:
        _write(tmp_path / "user" / "config.yaml", ["a", "b"])
        with _pytest.raises(sources.ConfigFileError, match="got list"):
            self._source(builtin, tmp_path)

    def test_missing_builtin_is_an_error(self, tmp_path: _pathlib.Path) -> None:
        with _pytest.raises(sources.ConfigFileError, match="built-in defaults not found"):
            self._source(tmp_path / "missing.yaml", tmp_path)

    def test_empty_builtin_is_an_error(self, tmp_path: _pathlib.Path) -> None:
        empty = tmp_path / "empty.yaml"
        empty.write_text("")
        with _pytest.raises(sources.ConfigFileError, match="built-in defaults file is empty"):
            self._source(empty, tmp_path)

    def test_get_field_value(self, builtin: _pathlib.Path, tmp_path: _pathlib.Path) -> None:
        source = self._source(builtin, tmp_path)
        field = settings.Settings.model_fields["scope"]
        value, name, is_complex = source.get_field_value(field, "scope")
        assert value == {"env": "dev", "region": "eu"}
        assert name == "scope"
        assert is_complex
