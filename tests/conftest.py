"""
Shared pytest fixtures for hieralookup tests.

This file is automatically loaded by pytest. Fixtures defined here are
available to all test files without explicit imports.

The sample data mirrors a three-tier hierarchy, highest precedence first:
global (empty unless a test supplies data), environment, module. See
tests/fixtures/data/*.yaml.
"""

import os as _os
import pathlib as _pathlib
import typing as _typing

import pytest as _pytest
import yaml as _yaml

import hieralookup.core.resolver as resolver
import hieralookup.core.sources as sources

FIXTURES_DIR = _pathlib.Path(__file__).parent / "fixtures"
DATA_DIR = FIXTURES_DIR / "data"


def _load(name: str) -> dict[str, _typing.Any]:
    data: dict[str, _typing.Any] = _yaml.safe_load((DATA_DIR / f"{name}.yaml").read_text())
    return data


# =============================================================================
# Environment isolation
# =============================================================================


@_pytest.fixture(autouse=True)
def _isolate_config(
    monkeypatch: _pytest.MonkeyPatch,
    tmp_path: _pathlib.Path,
) -> None:
    """Keep the user's config and HIERALOOKUP_* env vars out of tests."""
    for key in list(_os.environ):
        if key.startswith("HIERALOOKUP_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("HIERALOOKUP_CONFIG_DIR", str(tmp_path / "user-config"))


# =============================================================================
# Sample data
# =============================================================================


@_pytest.fixture
def data_dir() -> _pathlib.Path:
    """Directory holding environment.yaml and module.yaml."""
    return DATA_DIR


@_pytest.fixture
def environment_data() -> dict[str, _typing.Any]:
    return _load("environment")


@_pytest.fixture
def module_data() -> dict[str, _typing.Any]:
    return _load("module")


@_pytest.fixture
def make_chain(
    environment_data: dict[str, _typing.Any],
    module_data: dict[str, _typing.Any],
) -> _typing.Callable[..., sources.SourceChain]:
    """Factory for the global/environment/module chain with optional global data."""

    def factory(global_data: dict[str, _typing.Any] | None = None) -> sources.SourceChain:
        return sources.SourceChain(
            [
                sources.MappingSource("global", global_data or {}),
                sources.MappingSource("environment", environment_data),
                sources.MappingSource("module", module_data),
            ]
        )

    return factory


@_pytest.fixture
def make_resolver(
    make_chain: _typing.Callable[..., sources.SourceChain],
) -> _typing.Callable[..., resolver.Resolver]:
    """Factory for a Resolver over the sample chain."""

    def factory(
        global_data: dict[str, _typing.Any] | None = None,
        scope: dict[str, _typing.Any] | None = None,
    ) -> resolver.Resolver:
        return resolver.Resolver(make_chain(global_data), scope)

    return factory


@_pytest.fixture
def sample_resolver(
    make_resolver: _typing.Callable[..., resolver.Resolver],
) -> resolver.Resolver:
    """Resolver over the sample chain with an empty global tier."""
    return make_resolver()


@_pytest.fixture
def project_dir(tmp_path: _pathlib.Path) -> _pathlib.Path:
    """A project directory with .hieralookup/ and the sample data files."""
    root = tmp_path / "project"
    (root / ".hieralookup").mkdir(parents=True)
    (root / "data").mkdir()
    for name in ("environment", "module"):
        (root / "data" / f"{name}.yaml").write_text((DATA_DIR / f"{name}.yaml").read_text())
    return root
