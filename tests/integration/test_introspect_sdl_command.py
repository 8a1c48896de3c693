import json
from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

pytestmark = pytest.mark.integration

SDL = "type Query { product: Product } type Product { upc: String! name: String }"


def _call(*args):
    out = StringIO()
    call_command("introspect_sdl", *args, stdout=out)
    return json.loads(out.getvalue())


def test_inline_sdl_and_queries():
    outcome = _call(
        "--sdl", SDL,
        "--query", "{ __schema { queryType { name } } }",
        "--query", '{ __type(name: "Product") { fields { name } } }',
    )

    assert outcome == {
        "Ok": [
            {"data": {"__schema": {"queryType": {"name": "Query"}}}},
            {"data": {"__type": {"fields": [{"name": "upc"}, {"name": "name"}]}}},
        ]
    }


def test_schema_and_query_files(tmp_path):
    schema_file = tmp_path / "schema.graphql"
    schema_file.write_text(SDL, encoding="utf-8")
    query_file = tmp_path / "query.graphql"
    query_file.write_text('{ __type(name: "Product") { kind } }', encoding="utf-8")

    outcome = _call(
        "--schema", str(schema_file),
        "--query", "{ __typename }",
        "--query-file", str(query_file),
    )

    assert outcome == {
        "Ok": [
            {"data": {"__typename": "Query"}},
            {"data": {"__type": {"kind": "OBJECT"}}},
        ]
    }


def test_failed_batch_is_printed():
    outcome = _call("--sdl", SDL, "--query", "{ product { name } }")

    assert list(outcome) == ["Err"]
    assert outcome["Err"][0]["extensions"]["queryIndex"] == 0


def test_strict_mode_raises():
    with pytest.raises(CommandError, match="Introspection failed"):
        call_command("introspect_sdl", "--sdl", SDL, "--query", "{ product { name } }", "--strict", stdout=StringIO())


def test_output_file(tmp_path):
    target = tmp_path / "outcome.json"
    out = StringIO()

    call_command("introspect_sdl", "--sdl", SDL, "--query", "{ __typename }", "--out", str(target), stdout=out)

    assert json.loads(target.read_text(encoding="utf-8")) == {"Ok": [{"data": {"__typename": "Query"}}]}
    assert "Outcome written to" in out.getvalue()


def test_graphql_core_engine_option():
    outcome = _call("--sdl", SDL, "--engine", "graphql-core", "--query", '{ __type(name: "Product") { name } }')

    assert outcome == {"Ok": [{"data": {"__type": {"name": "Product"}}}]}


def test_console_script(capsys):
    from schema_bridge.bin.introspect import main

    main(["schema-bridge", "--sdl", SDL, "--query", "{ __typename }", "--indent", "0"])

    assert json.loads(capsys.readouterr().out) == {"Ok": [{"data": {"__typename": "Query"}}]}
