"""
BridgeSettings implementation.

Values are merged (later wins) from the library defaults, the environment
overrides, the ``SCHEMA_BRIDGE`` dictionary in Django settings and explicit
overrides. Without a configured Django project only defaults apply.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from django.conf import settings as django_settings

from .defaults import (
    get_default_settings,
    get_environment_defaults,
    merge_settings,
    validate_settings,
)

logger = logging.getLogger(__name__)

SETTINGS_KEY = "SCHEMA_BRIDGE"


def _get_django_settings() -> dict[str, Any]:
    """Get the bridge section from Django settings, if Django is configured."""
    if not django_settings.configured:
        return {}
    configured = getattr(django_settings, SETTINGS_KEY, {}) or {}
    if not isinstance(configured, dict):
        logger.warning(f"{SETTINGS_KEY} must be a dict, ignoring {type(configured).__name__}")
        return {}
    if "bridge_settings" in configured:
        return configured
    return {"bridge_settings": configured}


def _get_environment() -> Optional[str]:
    if not django_settings.configured:
        return None
    environment = getattr(django_settings, "ENVIRONMENT", None)
    if environment:
        return environment
    return "development" if getattr(django_settings, "DEBUG", False) else "production"


@dataclass(frozen=True)
class BridgeSettings:
    """Settings controlling how a batch is evaluated and reported."""

    engine: str = "native"
    max_workers: int = 1
    include_locations: bool = True
    log_queries: bool = False
    empty_sdl_message: str = "SDL is empty."

    @classmethod
    def load(cls, **overrides: Any) -> "BridgeSettings":
        """Build settings from defaults, Django settings and ``overrides``."""
        layers = [get_default_settings()]
        environment = _get_environment()
        if environment:
            layers.append(get_environment_defaults(environment))
        layers.append(_get_django_settings())
        if overrides:
            layers.append({"bridge_settings": overrides})
        merged = merge_settings(*layers)

        errors = validate_settings(merged)
        if errors:
            raise ValueError(f"Invalid {SETTINGS_KEY} configuration: {'; '.join(errors)}")

        valid_fields = set(cls.__dataclass_fields__.keys())
        section = merged["bridge_settings"]
        unknown = sorted(set(section) - valid_fields)
        if unknown:
            logger.warning(f"Ignoring unknown {SETTINGS_KEY} keys: {', '.join(unknown)}")
        return cls(**{k: v for k, v in section.items() if k in valid_fields})

    def to_dict(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.__dataclass_fields__}
