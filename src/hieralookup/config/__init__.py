"""
Configuration module for hieralookup.

Uses pydantic-settings for environment variable and layered YAML loading.
"""

from hieralookup.config.settings import (
    BackendLoadError,
    Settings,
    find_project_root,
)
from hieralookup.config.sources import ConfigFileError

__all__ = ["BackendLoadError", "ConfigFileError", "Settings", "find_project_root"]
