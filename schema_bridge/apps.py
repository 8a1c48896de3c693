"""
Django app configuration for the schema-bridge library.

This module configures:
- Django application registration for the ``introspect_sdl`` command
- Library settings validation at startup
"""

import logging

from django.apps import AppConfig as BaseAppConfig
from django.conf import settings as django_settings

logger = logging.getLogger(__name__)


class SchemaBridgeConfig(BaseAppConfig):
    """Django app configuration for schema-bridge."""

    name = "schema_bridge"
    verbose_name = "Schema Introspection Bridge"
    label = "schema_bridge"

    def ready(self):
        """Validate the bridge configuration once Django has loaded."""
        self._validate_configuration()

    def _validate_configuration(self):
        try:
            from .settings import BridgeSettings

            bridge_settings = BridgeSettings.load()
            logger.debug(f"Schema bridge configured with the {bridge_settings.engine} engine")
        except ValueError as e:
            logger.warning(f"Schema bridge configuration validation failed: {e}")
            if getattr(django_settings, "DEBUG", False):
                raise
