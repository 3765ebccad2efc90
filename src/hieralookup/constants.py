"""
Shared constants for hieralookup.

This module provides a single source of truth for names and default
values that are used across multiple modules.
"""

ENV_PREFIX = "HIERALOOKUP_"
"""Prefix of environment variables read by Settings."""

ENV_CONFIG_DIR = "HIERALOOKUP_CONFIG_DIR"
"""Environment variable overriding the user config directory."""

CONFIG_FILENAME = "config.yaml"
"""Name of config files in every config layer."""

PROJECT_CONFIG_DIRNAME = ".hieralookup"
"""Directory holding the project-level config, also the project root marker."""
