"""
Introspection evaluator entry points.
"""

import logging

from graphql import GraphQLError, parse

from ..exceptions import QueryEvaluationError, record_from_graphql_error
from ..results import ErrorRecord, IntrospectionResult
from ..sdl.types import SchemaDocument
from .execution import IntrospectionExecutor
from .validation import QueryValidator, ValidatedQuery

logger = logging.getLogger(__name__)


def prepare(schema: SchemaDocument, query: str) -> ValidatedQuery:
    """Parse and validate a query without executing it."""
    if not isinstance(query, str):
        raise QueryEvaluationError([
            ErrorRecord(
                message=f"Query must be a string, got {type(query).__name__}.",
                extensions={"phase": "syntax"},
            )
        ])
    try:
        document = parse(query)
    except GraphQLError as error:
        raise QueryEvaluationError([record_from_graphql_error(error, "syntax")]) from error
    return QueryValidator(schema, document).validate()


def evaluate(schema: SchemaDocument, query: str) -> IntrospectionResult:
    """
    Evaluate one introspection query against a parsed schema.

    Unknown names passed to ``__type`` evaluate to ``null``; malformed or
    non-introspection queries raise :class:`QueryEvaluationError`.
    """
    validated = prepare(schema, query)
    data = IntrospectionExecutor(schema, validated).execute()
    return IntrospectionResult(data=data)


class IntrospectionEvaluator:
    """Evaluates any number of queries against one schema document."""

    def __init__(self, schema: SchemaDocument):
        self.schema = schema

    def evaluate(self, query: str) -> IntrospectionResult:
        return evaluate(self.schema, query)
