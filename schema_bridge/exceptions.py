"""
Custom exceptions for the schema bridge.

Every exception carries the structured :class:`ErrorRecord` list that is
surfaced in the ``Err`` branch of a :class:`BatchOutcome`.
"""

from typing import Iterable, Optional

from graphql import GraphQLError
from graphql.language import Node

from .results import ErrorRecord, SourceLocation


class SchemaBridgeError(Exception):
    """Base exception for schema bridge errors."""

    def __init__(self, message: str, errors: Optional[Iterable[ErrorRecord]] = None):
        self.errors: list[ErrorRecord] = list(errors or []) or [ErrorRecord(message=message)]
        super().__init__(message)


class SchemaParseError(SchemaBridgeError):
    """Raised when SDL text cannot be turned into a valid schema document."""

    def __init__(self, message: str, locations: Iterable[SourceLocation] = ()):
        self.locations = tuple(locations)
        record = ErrorRecord(
            message=message,
            locations=self.locations,
            extensions={"phase": "parse"},
        )
        super().__init__(message, [record])


class QueryEvaluationError(SchemaBridgeError):
    """Raised when an introspection query is malformed or unsupported."""

    def __init__(self, errors: Iterable[ErrorRecord]):
        errors = list(errors)
        if not errors:
            raise ValueError("QueryEvaluationError requires at least one error record")
        super().__init__(errors[0].message, errors)


class BatchIntrospectionError(SchemaBridgeError):
    """Raised by an introspection engine when a batch cannot be completed."""

    def __init__(self, errors: Iterable[ErrorRecord], query_index: Optional[int] = None):
        errors = list(errors)
        if not errors:
            raise ValueError("BatchIntrospectionError requires at least one error record")
        self.query_index = query_index
        super().__init__(errors[0].message, errors)


def locations_from_graphql_error(error: GraphQLError) -> tuple[SourceLocation, ...]:
    """Extract source locations from a graphql-core error."""
    return tuple(
        SourceLocation(line=location.line, column=location.column)
        for location in (error.locations or [])
    )


def record_from_graphql_error(error: GraphQLError, phase: str) -> ErrorRecord:
    return ErrorRecord(
        message=error.message,
        locations=locations_from_graphql_error(error),
        path=tuple(error.path or ()),
        extensions={"phase": phase},
    )


def locations_from_node(node: Optional[Node]) -> tuple[SourceLocation, ...]:
    """Source location of an AST node's first token, when the AST kept locations."""
    loc = getattr(node, "loc", None)
    if loc is None:
        return ()
    token = loc.start_token
    return (SourceLocation(line=token.line, column=token.column),)
