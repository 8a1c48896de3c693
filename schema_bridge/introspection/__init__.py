"""
Introspection evaluator package.

Answers ``__schema`` / ``__type`` queries against a parsed schema document
without an executable schema.
"""

from .evaluator import IntrospectionEvaluator, evaluate, prepare
from .execution import IntrospectionExecutor
from .validation import QueryValidator, ValidatedQuery

__all__ = [
    "evaluate",
    "prepare",
    "IntrospectionEvaluator",
    "IntrospectionExecutor",
    "QueryValidator",
    "ValidatedQuery",
]
