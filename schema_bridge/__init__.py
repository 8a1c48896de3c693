"""
Schema introspection bridge.

Answers batches of GraphQL introspection queries against a schema definition
document (SDL) without standing up a server.
"""

from .bridge import (
    GraphQLCoreIntrospectionEngine,
    IntrospectionBridge,
    IntrospectionEngine,
    NativeIntrospectionEngine,
    run,
)
from .exceptions import (
    BatchIntrospectionError,
    QueryEvaluationError,
    SchemaBridgeError,
    SchemaParseError,
)
from .introspection import evaluate
from .results import BatchOutcome, ErrorRecord, IntrospectionResult, SourceLocation
from .sdl import SchemaDocument, parse_sdl
from .settings import BridgeSettings

__version__ = "0.1.0"

__all__ = [
    "run",
    "parse_sdl",
    "evaluate",
    "IntrospectionBridge",
    "IntrospectionEngine",
    "NativeIntrospectionEngine",
    "GraphQLCoreIntrospectionEngine",
    "BridgeSettings",
    "BatchOutcome",
    "ErrorRecord",
    "IntrospectionResult",
    "SourceLocation",
    "SchemaDocument",
    "SchemaBridgeError",
    "SchemaParseError",
    "QueryEvaluationError",
    "BatchIntrospectionError",
]
