"""
Default configuration for the schema-bridge library.

This module is the single source of truth for every setting the bridge
consumes. Each section mirrors one of the dataclasses defined in
``schema_bridge.settings``.
"""

from __future__ import annotations

from typing import Any

LIBRARY_VERSION = "0.1.0"
LIBRARY_NAME = "schema-bridge"

SUPPORTED_ENGINES = ("native", "graphql-core")


# --------------------------------------------------------------------------- #
# Library-wide defaults
# --------------------------------------------------------------------------- #
LIBRARY_DEFAULTS: dict[str, Any] = {
    "bridge_settings": {
        "engine": "native",
        "max_workers": 1,
        "include_locations": True,
        "log_queries": False,
        "empty_sdl_message": "SDL is empty.",
    },
}


# --------------------------------------------------------------------------- #
# Environment overrides (kept minimal & optional)
# --------------------------------------------------------------------------- #
ENVIRONMENT_DEFAULTS: dict[str, dict[str, Any]] = {
    "development": {
        "bridge_settings": {
            "log_queries": True,
        }
    },
    "testing": {},
    "production": {
        "bridge_settings": {
            "log_queries": False,
        }
    },
}


# --------------------------------------------------------------------------- #
# Helper functions
# --------------------------------------------------------------------------- #
def get_default_settings() -> dict[str, Any]:
    """Return a deep-enough copy of the library defaults."""
    return {section: dict(values) for section, values in LIBRARY_DEFAULTS.items()}


def get_environment_defaults(environment: str) -> dict[str, Any]:
    """Return environment-specific overrides."""
    return {
        section: dict(values)
        for section, values in ENVIRONMENT_DEFAULTS.get(environment, {}).items()
    }


def merge_settings(*settings_dicts: dict[str, Any]) -> dict[str, Any]:
    """
    Merge multiple settings dictionaries with deep merging for nested dicts.
    Later dictionaries override earlier ones.
    """
    result: dict[str, Any] = {}
    for settings_dict in settings_dicts:
        for key, value in (settings_dict or {}).items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = merge_settings(result[key], value)
            else:
                result[key] = value
    return result


def validate_settings(settings: dict[str, Any]) -> list[str]:
    """
    Validate a settings dictionary and return a list of validation errors.
    """
    errors: list[str] = []

    bridge_settings = settings.get("bridge_settings")
    if bridge_settings is None:
        errors.append("Required setting 'bridge_settings' is missing")
        return errors

    engine = bridge_settings.get("engine")
    if engine not in SUPPORTED_ENGINES:
        errors.append(
            f"bridge_settings.engine must be one of {', '.join(SUPPORTED_ENGINES)}, got {engine!r}"
        )

    max_workers = bridge_settings.get("max_workers")
    if not isinstance(max_workers, int) or isinstance(max_workers, bool) or max_workers <= 0:
        errors.append("bridge_settings.max_workers must be a positive integer")

    message = bridge_settings.get("empty_sdl_message")
    if not isinstance(message, str) or not message:
        errors.append("bridge_settings.empty_sdl_message must be a non-empty string")

    return errors
