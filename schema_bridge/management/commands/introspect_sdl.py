import argparse
import json
import sys

from django.core.management.base import BaseCommand, CommandError

from schema_bridge.bridge import IntrospectionBridge
from schema_bridge.defaults import SUPPORTED_ENGINES
from schema_bridge.settings import BridgeSettings


def _read_text(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise argparse.ArgumentTypeError(f"can't read {path}: {e.strerror}")


class Command(BaseCommand):
    help = "Run a batch of introspection queries against an SDL document and print the outcome as JSON."

    def add_arguments(self, parser):
        source = parser.add_mutually_exclusive_group(required=True)
        source.add_argument(
            "--schema",
            dest="sdl",
            type=_read_text,
            help="Path to the SDL file ('-' reads stdin).",
        )
        source.add_argument(
            "--sdl",
            dest="sdl",
            help="SDL text given inline.",
        )
        parser.add_argument(
            "--query",
            dest="queries",
            action="append",
            default=None,
            help="Introspection query text. Repeat for several queries.",
        )
        parser.add_argument(
            "--query-file",
            dest="queries",
            action="append",
            type=_read_text,
            help="Path to a file holding one introspection query. Repeatable.",
        )
        parser.add_argument(
            "--engine",
            choices=SUPPORTED_ENGINES,
            help="Introspection engine (default: SCHEMA_BRIDGE['engine']).",
        )
        parser.add_argument(
            "--max-workers",
            type=int,
            help="Evaluate queries on a thread pool of this size.",
        )
        parser.add_argument(
            "--out",
            dest="output_file",
            help="Output file path (default: stdout).",
        )
        parser.add_argument(
            "--indent",
            type=int,
            default=2,
            help="Indentation level for JSON output (default: 2).",
        )
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Exit with an error when the batch fails.",
        )

    def handle(self, *args, **options):
        overrides = {
            key: options[option]
            for key, option in (("engine", "engine"), ("max_workers", "max_workers"))
            if options.get(option) is not None
        }
        try:
            settings = BridgeSettings.load(**overrides)
        except ValueError as e:
            raise CommandError(str(e))

        queries = options.get("queries") or []
        outcome = IntrospectionBridge(settings=settings).run(options.get("sdl") or "", queries)
        output = json.dumps(outcome.to_dict(), indent=options["indent"])

        if options["output_file"]:
            with open(options["output_file"], "w", encoding="utf-8") as f:
                f.write(output)
            self.stdout.write(self.style.SUCCESS(f"Outcome written to {options['output_file']}"))
        else:
            self.stdout.write(output)

        if options["strict"] and outcome.is_err:
            raise CommandError(f"Introspection failed: {outcome.err[0].message}")
