"""
Schema parser package.

Turns SDL text into an immutable :class:`SchemaDocument`.
"""

from .parser import SchemaBuilder, get_prelude, parse_sdl
from .types import (
    DirectiveArgument,
    DirectiveDefinition,
    DirectiveUsage,
    EnumValueDefinition,
    FieldDefinition,
    InputValueDefinition,
    SchemaDocument,
    TypeDefinition,
    TypeKind,
    TypeRef,
)

__all__ = [
    "parse_sdl",
    "get_prelude",
    "SchemaBuilder",
    "SchemaDocument",
    "TypeDefinition",
    "TypeKind",
    "TypeRef",
    "FieldDefinition",
    "InputValueDefinition",
    "EnumValueDefinition",
    "DirectiveDefinition",
    "DirectiveUsage",
    "DirectiveArgument",
]
