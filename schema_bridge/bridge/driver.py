"""
Batch driver: the boundary between callers and an introspection engine.

Whatever the engine does (returns, raises a batch error, or faults), the
caller receives a well-formed :class:`BatchOutcome`.
"""

import logging
from collections.abc import Sequence
from typing import Any, List, Optional

from ..exceptions import BatchIntrospectionError
from ..results import BatchOutcome, ErrorRecord, IntrospectionResult
from ..settings import BridgeSettings
from .engines import IntrospectionEngine, create_engine

logger = logging.getLogger(__name__)


class IntrospectionBridge:
    """
    Runs introspection batches through an injected engine.

    Args:
        engine: the capability that evaluates batches. Defaults to the engine
            named by ``settings.engine``.
        settings: bridge settings. Defaults to :meth:`BridgeSettings.load`.
    """

    def __init__(
        self,
        engine: Optional[IntrospectionEngine] = None,
        settings: Optional[BridgeSettings] = None,
    ):
        self.settings = settings or BridgeSettings.load()
        self.engine = engine or create_engine(
            self.settings.engine, max_workers=self.settings.max_workers
        )

    def run(self, sdl: str, queries: Sequence[str]) -> BatchOutcome:
        """Evaluate ``queries`` against ``sdl`` as one all-or-nothing batch."""
        if not sdl:
            logger.warning("Rejecting introspection batch: SDL is empty")
            return BatchOutcome.failure([ErrorRecord(message=self.settings.empty_sdl_message)])

        precondition_error = self._check_queries(queries)
        if precondition_error is not None:
            logger.warning(f"Rejecting introspection batch: {precondition_error.message}")
            return BatchOutcome.failure([precondition_error])

        queries = list(queries)
        engine_name = getattr(self.engine, "name", type(self.engine).__name__)
        logger.debug(f"Running introspection batch of {len(queries)} queries with the {engine_name} engine")
        if self.settings.log_queries:
            for index, query in enumerate(queries):
                logger.debug(f"Introspection query {index}: {query}")

        try:
            raw_results = self.engine.batch_introspect(sdl, queries)
        except BatchIntrospectionError as error:
            logger.warning(f"Introspection batch failed: {error}")
            return BatchOutcome.failure(self._prepare_errors(error.errors))
        except Exception as error:
            logger.exception(f"Introspection engine {engine_name} raised an unexpected error")
            return BatchOutcome.failure([
                ErrorRecord(
                    message=str(error) or type(error).__name__,
                    extensions={"phase": "engine"},
                )
            ])

        try:
            results = [self._normalize_result(item) for item in raw_results or ()]
        except (TypeError, ValueError) as error:
            logger.error(f"Introspection engine {engine_name} returned malformed results: {error}")
            return BatchOutcome.failure([
                ErrorRecord(message=f"Malformed engine result: {error}", extensions={"phase": "engine"})
            ])

        if len(results) != len(queries):
            message = (
                f"Introspection engine returned {len(results)} results for {len(queries)} queries."
            )
            logger.error(message)
            return BatchOutcome.failure([ErrorRecord(message=message, extensions={"phase": "engine"})])

        logger.debug(f"Introspection batch of {len(queries)} queries succeeded")
        return BatchOutcome.success(results)

    @staticmethod
    def _check_queries(queries: Any) -> Optional[ErrorRecord]:
        if isinstance(queries, (str, bytes)) or not isinstance(queries, Sequence):
            return ErrorRecord(message="Queries must be a sequence of strings.")
        for index, query in enumerate(queries):
            if not isinstance(query, str):
                return ErrorRecord(
                    message=f"Query {index} must be a string, got {type(query).__name__}.",
                    extensions={"queryIndex": index},
                )
        return None

    @staticmethod
    def _normalize_result(item: Any) -> IntrospectionResult:
        if isinstance(item, IntrospectionResult):
            return item
        if isinstance(item, dict):
            if set(item) <= {"data", "errors"} and "data" in item:
                if item.get("errors"):
                    raise ValueError("engine result carries errors")
                return IntrospectionResult.from_dict(item)
            return IntrospectionResult(data=item)
        raise TypeError(f"unsupported result type {type(item).__name__}")

    def _prepare_errors(self, errors: List[ErrorRecord]) -> List[ErrorRecord]:
        prepared = list(errors) or [ErrorRecord(message="Introspection failed.")]
        if not self.settings.include_locations:
            prepared = [error.without_locations() for error in prepared]
        return prepared


def run(
    sdl: str,
    queries: Sequence[str],
    engine: Optional[IntrospectionEngine] = None,
    settings: Optional[BridgeSettings] = None,
) -> BatchOutcome:
    """Run one introspection batch; see :meth:`IntrospectionBridge.run`."""
    return IntrospectionBridge(engine=engine, settings=settings).run(sdl, queries)
