"""
Unit tests for the batch driver and the native engine.
"""

from unittest.mock import Mock, patch

import pytest

from schema_bridge.bridge import IntrospectionBridge, NativeIntrospectionEngine, run
from schema_bridge.bridge.engines import IntrospectionEngine, create_engine
from schema_bridge.exceptions import BatchIntrospectionError
from schema_bridge.introspection import IntrospectionEvaluator
from schema_bridge.results import BatchOutcome, ErrorRecord, IntrospectionResult
from schema_bridge.settings import BridgeSettings

pytestmark = pytest.mark.unit

TYPE_NAME_QUERY = '{{ __type(name: "{name}") {{ name kind }} }}'


def _bridge(engine=None, **settings):
    return IntrospectionBridge(engine=engine, settings=BridgeSettings(**settings))


def test_empty_sdl_never_reaches_the_engine():
    engine = Mock(spec=IntrospectionEngine)

    outcome = _bridge(engine).run("", ["{ __typename }"])

    assert outcome.to_dict() == {"Err": [{"message": "SDL is empty."}]}
    engine.batch_introspect.assert_not_called()


def test_empty_sdl_message_is_configurable():
    outcome = _bridge(Mock(spec=IntrospectionEngine), empty_sdl_message="No schema given.").run(None, [])

    assert outcome.err[0].message == "No schema given."


def test_whitespace_sdl_is_rejected_by_the_parser():
    outcome = _bridge().run("   \n", ["{ __typename }"])

    assert outcome.is_err
    assert outcome.err[0].message == "SDL is empty."
    assert outcome.err[0].extensions == {"phase": "parse"}


def test_results_are_index_aligned(product_sdl):
    names = ["Review", "Product", "Money"]

    outcome = run(product_sdl, [TYPE_NAME_QUERY.format(name=n) for n in names], settings=BridgeSettings())

    assert outcome.is_ok
    assert [result.data["__type"]["name"] for result in outcome.ok] == names


def test_empty_batch_succeeds(product_sdl):
    assert _bridge().run(product_sdl, []).to_dict() == {"Ok": []}


def test_runs_are_deterministic(product_sdl):
    queries = ["{ __schema { types { name fields { name } } } }", '{ __type(name: "Nope") { name } }']

    first = _bridge().run(product_sdl, queries)
    second = _bridge().run(product_sdl, queries)

    assert first == second
    assert first.ok[1].data == {"__type": None}


def test_first_failing_query_fails_the_batch(product_sdl):
    queries = [
        TYPE_NAME_QUERY.format(name="Product"),
        "{ product(upc: \"1\") { name } }",
        TYPE_NAME_QUERY.format(name="Review"),
    ]
    original = IntrospectionEvaluator.evaluate

    with patch.object(IntrospectionEvaluator, "evaluate", autospec=True, side_effect=original) as spy:
        outcome = _bridge().run(product_sdl, queries)

    assert outcome.is_err
    assert len(outcome.err) == 1
    assert outcome.err[0].message.startswith('Field "product" is not an introspection field')
    assert outcome.err[0].extensions == {"phase": "validation", "queryIndex": 1}
    assert spy.call_count == 2


def test_parse_failure_skips_every_query():
    with patch.object(IntrospectionEvaluator, "evaluate") as evaluate:
        outcome = _bridge().run("type Query { a: Missing }", ["{ __typename }"])

    assert outcome.to_dict() == {
        "Err": [
            {
                "message": 'Unknown type "Missing".',
                "locations": [{"line": 1, "column": 17}],
                "extensions": {"phase": "parse"},
            }
        ]
    }
    evaluate.assert_not_called()


def test_locations_can_be_stripped():
    outcome = _bridge(include_locations=False).run("type Query { a: Missing }", [])

    assert outcome.to_dict() == {
        "Err": [{"message": 'Unknown type "Missing".', "extensions": {"phase": "parse"}}]
    }


def test_engine_faults_become_errors():
    engine = Mock(spec=IntrospectionEngine)
    engine.batch_introspect.side_effect = RuntimeError("engine crashed")

    outcome = _bridge(engine).run("type Query { a: String }", ["{ __typename }"])

    assert outcome.to_dict() == {
        "Err": [{"message": "engine crashed", "extensions": {"phase": "engine"}}]
    }


def test_engine_batch_errors_pass_through():
    engine = Mock(spec=IntrospectionEngine)
    engine.batch_introspect.side_effect = BatchIntrospectionError(
        [ErrorRecord(message="first"), ErrorRecord(message="second")]
    )

    outcome = _bridge(engine).run("type Query { a: String }", ["{ __typename }"])

    assert [error.message for error in outcome.err] == ["first", "second"]


def test_engine_results_are_normalized():
    engine = Mock(spec=IntrospectionEngine)
    engine.batch_introspect.return_value = [
        {"data": {"__typename": "Query"}},
        {"__typename": "Query"},
        IntrospectionResult(data={"__typename": "Query"}),
    ]

    outcome = _bridge(engine).run("type Query { a: String }", ["{ __typename }"] * 3)

    assert outcome.to_dict() == {"Ok": [{"data": {"__typename": "Query"}}] * 3}


def test_result_count_mismatch_is_an_error():
    engine = Mock(spec=IntrospectionEngine)
    engine.batch_introspect.return_value = []

    outcome = _bridge(engine).run("type Query { a: String }", ["{ __typename }"])

    assert outcome.err[0].message == "Introspection engine returned 0 results for 1 queries."


@pytest.mark.parametrize("queries", ["{ __typename }", None, ["{ __typename }", 3]])
def test_queries_must_be_a_sequence_of_strings(queries):
    engine = Mock(spec=IntrospectionEngine)

    outcome = _bridge(engine).run("type Query { a: String }", queries)

    assert outcome.is_err
    engine.batch_introspect.assert_not_called()


def test_parallel_evaluation_preserves_order(product_sdl):
    names = ["Query", "Mutation", "Node", "Product", "Review", "Money", "Currency", "Category"]
    queries = [TYPE_NAME_QUERY.format(name=n) for n in names]

    outcome = _bridge(max_workers=4).run(product_sdl, queries)

    assert [result.data["__type"]["name"] for result in outcome.ok] == names
    assert outcome == _bridge().run(product_sdl, queries)


def test_parallel_evaluation_reports_lowest_failing_index(product_sdl):
    queries = [
        TYPE_NAME_QUERY.format(name="Product"),
        "{ __schema { bogus } }",
        "{ hello }",
    ]

    engine = NativeIntrospectionEngine(max_workers=3)
    with pytest.raises(BatchIntrospectionError) as exc_info:
        engine.batch_introspect(product_sdl, queries)

    assert exc_info.value.query_index == 1
    assert exc_info.value.errors[0].extensions["queryIndex"] == 1


def test_create_engine():
    assert isinstance(create_engine("native", max_workers=2), NativeIntrospectionEngine)
    assert create_engine("native", max_workers=2).max_workers == 2
    with pytest.raises(ValueError):
        create_engine("missing")


def test_bridge_uses_configured_engine():
    bridge = IntrospectionBridge(settings=BridgeSettings(engine="graphql-core"))

    assert bridge.engine.name == "graphql-core"


def test_outcome_wire_shape_round_trips(product_sdl):
    outcome = _bridge().run(product_sdl, [TYPE_NAME_QUERY.format(name="Money")])

    assert BatchOutcome.from_dict(outcome.to_dict()) == outcome
