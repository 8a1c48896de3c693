"""
Batch driver and result protocol.
"""

from .driver import IntrospectionBridge, run
from .engines import (
    ENGINES,
    GraphQLCoreIntrospectionEngine,
    IntrospectionEngine,
    NativeIntrospectionEngine,
    create_engine,
)

__all__ = [
    "IntrospectionBridge",
    "run",
    "IntrospectionEngine",
    "NativeIntrospectionEngine",
    "GraphQLCoreIntrospectionEngine",
    "ENGINES",
    "create_engine",
]
