"""
Introspection engines.

An engine is the capability the bridge delegates a whole batch to: it takes
the SDL and the ordered queries and either returns one result per query or
raises. The bridge depends only on :class:`IntrospectionEngine`.
"""

import logging
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from graphql import GraphQLError, build_schema, graphql_sync, parse, validate_schema
from graphql.language import (
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    InlineFragmentNode,
    OperationDefinitionNode,
    OperationType,
)

from ..exceptions import (
    BatchIntrospectionError,
    QueryEvaluationError,
    SchemaParseError,
    locations_from_node,
    record_from_graphql_error,
)
from ..introspection import IntrospectionEvaluator
from ..introspection.meta import INTROSPECTION_ROOT_FIELD_NAMES, non_introspection_field_message
from ..results import ErrorRecord, IntrospectionResult
from ..sdl import parse_sdl

logger = logging.getLogger(__name__)


def _tag(errors: Sequence[ErrorRecord], query_index: int) -> list[ErrorRecord]:
    return [error.with_extensions(queryIndex=query_index) for error in errors]


class IntrospectionEngine(ABC):
    """Abstract batch introspection capability."""

    name = "abstract"

    @abstractmethod
    def batch_introspect(self, sdl: str, queries: Sequence[str]) -> list[IntrospectionResult]:
        """
        Introspect every query against the schema described by ``sdl``.

        Returns one result per query, in input order.

        Raises:
            BatchIntrospectionError: when the schema or any query fails.
        """


class NativeIntrospectionEngine(IntrospectionEngine):
    """
    Engine backed by this package's schema parser and evaluator.

    The SDL is parsed once; queries are evaluated in input order and the
    first failing query stops the batch.
    """

    name = "native"

    def __init__(self, max_workers: int = 1):
        self.max_workers = max(1, int(max_workers or 1))

    def batch_introspect(self, sdl: str, queries: Sequence[str]) -> list[IntrospectionResult]:
        try:
            schema = parse_sdl(sdl)
        except SchemaParseError as error:
            logger.debug(f"Schema parse failed, skipping {len(queries)} queries: {error}")
            raise BatchIntrospectionError(error.errors) from error

        evaluator = IntrospectionEvaluator(schema)
        if self.max_workers > 1 and len(queries) > 1:
            return self._evaluate_concurrently(evaluator, queries)

        results: list[IntrospectionResult] = []
        for index, query in enumerate(queries):
            try:
                results.append(evaluator.evaluate(query))
            except QueryEvaluationError as error:
                raise BatchIntrospectionError(_tag(error.errors, index), query_index=index) from error
        return results

    def _evaluate_concurrently(
        self, evaluator: IntrospectionEvaluator, queries: Sequence[str]
    ) -> list[IntrospectionResult]:
        # Results are read back in input order, so the lowest failing index wins.
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(evaluator.evaluate, query) for query in queries]
            results: list[IntrospectionResult] = []
            for index, future in enumerate(futures):
                try:
                    results.append(future.result())
                except QueryEvaluationError as error:
                    for pending in futures[index + 1:]:
                        pending.cancel()
                    raise BatchIntrospectionError(
                        _tag(error.errors, index), query_index=index
                    ) from error
            return results


class GraphQLCoreIntrospectionEngine(IntrospectionEngine):
    """
    Engine backed by graphql-core's schema builder and executor.

    Unlike the native engine, graphql-core rejects usages of directives the
    SDL does not define.
    """

    name = "graphql-core"

    def batch_introspect(self, sdl: str, queries: Sequence[str]) -> list[IntrospectionResult]:
        try:
            schema = build_schema(sdl)
        except GraphQLError as error:
            raise BatchIntrospectionError([record_from_graphql_error(error, "parse")]) from error
        except TypeError as error:
            # graphql-core reports SDL validation failures as a TypeError
            raise BatchIntrospectionError([
                ErrorRecord(message=message, extensions={"phase": "parse"})
                for message in str(error).split("\n\n")
            ]) from error

        schema_errors = validate_schema(schema)
        if schema_errors:
            raise BatchIntrospectionError([
                record_from_graphql_error(error, "parse") for error in schema_errors
            ])

        root_name = schema.query_type.name
        results: list[IntrospectionResult] = []
        for index, query in enumerate(queries):
            errors = self._non_introspection_errors(query, root_name)
            if errors:
                raise BatchIntrospectionError(_tag(errors, index), query_index=index)
            execution = graphql_sync(schema, query)
            if execution.errors:
                raise BatchIntrospectionError(
                    _tag([record_from_graphql_error(e, "execution") for e in execution.errors], index),
                    query_index=index,
                )
            results.append(IntrospectionResult(data=execution.data))
        return results

    @staticmethod
    def _non_introspection_errors(query: str, root_name: str) -> list[ErrorRecord]:
        try:
            document = parse(query)
        except GraphQLError:
            # Let the executor report syntax errors.
            return []

        fragments = {
            definition.name.value: definition
            for definition in document.definitions
            if isinstance(definition, FragmentDefinitionNode)
        }
        errors: list[ErrorRecord] = []

        def visit(selection_set, seen: frozenset) -> None:
            for selection in selection_set.selections:
                if isinstance(selection, FieldNode):
                    if selection.name.value not in INTROSPECTION_ROOT_FIELD_NAMES:
                        errors.append(ErrorRecord(
                            message=non_introspection_field_message(selection.name.value, root_name),
                            locations=locations_from_node(selection),
                            extensions={"phase": "validation"},
                        ))
                elif isinstance(selection, InlineFragmentNode):
                    visit(selection.selection_set, seen)
                elif isinstance(selection, FragmentSpreadNode):
                    name = selection.name.value
                    if name in fragments and name not in seen:
                        visit(fragments[name].selection_set, seen | {name})

        for definition in document.definitions:
            if isinstance(definition, OperationDefinitionNode):
                if definition.operation is not OperationType.QUERY:
                    errors.append(ErrorRecord(
                        message=(
                            "Only query operations can be introspected, "
                            f"got a {definition.operation.value} operation."
                        ),
                        locations=locations_from_node(definition),
                        extensions={"phase": "validation"},
                    ))
                    continue
                visit(definition.selection_set, frozenset())
        return errors


ENGINES: dict[str, type] = {
    NativeIntrospectionEngine.name: NativeIntrospectionEngine,
    GraphQLCoreIntrospectionEngine.name: GraphQLCoreIntrospectionEngine,
}


def create_engine(name: str, max_workers: int = 1) -> IntrospectionEngine:
    """Instantiate a registered engine by name."""
    try:
        engine_class = ENGINES[name]
    except KeyError:
        raise ValueError(
            f"Unknown introspection engine {name!r}; expected one of {', '.join(ENGINES)}"
        ) from None
    if engine_class is NativeIntrospectionEngine:
        return engine_class(max_workers=max_workers)
    return engine_class()
