import pytest

from schema_bridge.results import BatchOutcome, ErrorRecord, IntrospectionResult, SourceLocation

pytestmark = pytest.mark.unit


def test_outcome_requires_exactly_one_branch():
    with pytest.raises(ValueError):
        BatchOutcome()
    with pytest.raises(ValueError):
        BatchOutcome(ok=(), err=(ErrorRecord(message="boom"),))


def test_failure_requires_an_error():
    with pytest.raises(ValueError):
        BatchOutcome.failure([])


def test_success_wire_shape():
    outcome = BatchOutcome.success([IntrospectionResult(data={"__typename": "Query"})])

    assert outcome.is_ok and not outcome.is_err
    assert outcome.to_dict() == {"Ok": [{"data": {"__typename": "Query"}}]}


def test_error_record_omits_empty_metadata():
    assert ErrorRecord(message="boom").to_dict() == {"message": "boom"}

    record = ErrorRecord(
        message="boom",
        locations=(SourceLocation(line=2, column=5),),
        path=("__type", "fields", 0),
        extensions={"phase": "execution"},
    )
    assert record.to_dict() == {
        "message": "boom",
        "locations": [{"line": 2, "column": 5}],
        "path": ["__type", "fields", 0],
        "extensions": {"phase": "execution"},
    }
    assert ErrorRecord.from_dict(record.to_dict()) == record


def test_with_extensions_does_not_mutate():
    record = ErrorRecord(message="boom", extensions={"phase": "validation"})
    tagged = record.with_extensions(queryIndex=3)

    assert tagged.extensions == {"phase": "validation", "queryIndex": 3}
    assert record.extensions == {"phase": "validation"}


def test_from_dict_rejects_unknown_branch():
    with pytest.raises(ValueError):
        BatchOutcome.from_dict({"Maybe": []})
    with pytest.raises(ValueError):
        BatchOutcome.from_dict({"Ok": [], "Err": []})
