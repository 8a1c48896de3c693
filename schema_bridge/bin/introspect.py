#!/usr/bin/env python
import os
import sys

from django.conf import settings
from django.core.management import execute_from_command_line


def main(argv=None):
    """Run ``introspect_sdl`` standalone."""
    # This entry point is for the 'schema-bridge' command.
    # It mimics django-admin but works without a project settings module.

    argv = list(sys.argv if argv is None else argv)

    if not os.environ.get("DJANGO_SETTINGS_MODULE") and not settings.configured:
        settings.configure(INSTALLED_APPS=["schema_bridge"])

    execute_from_command_line([argv[0], "introspect_sdl", *argv[1:]])


if __name__ == "__main__":
    main()
