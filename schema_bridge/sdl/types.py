"""
Data classes for the parsed type system.

Instances are frozen and built once per batch by
:func:`schema_bridge.sdl.parse_sdl`; nothing mutates them afterwards.
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

DEFAULT_DEPRECATION_REASON = "No longer supported"


class TypeKind(Enum):
    """Kinds of GraphQL types, as named by the introspection vocabulary."""
    SCALAR = "SCALAR"
    OBJECT = "OBJECT"
    INTERFACE = "INTERFACE"
    UNION = "UNION"
    ENUM = "ENUM"
    INPUT_OBJECT = "INPUT_OBJECT"
    LIST = "LIST"
    NON_NULL = "NON_NULL"


OUTPUT_KINDS = frozenset({
    TypeKind.SCALAR, TypeKind.OBJECT, TypeKind.INTERFACE, TypeKind.UNION, TypeKind.ENUM,
})
INPUT_KINDS = frozenset({TypeKind.SCALAR, TypeKind.ENUM, TypeKind.INPUT_OBJECT})
COMPOSITE_KINDS = frozenset({TypeKind.OBJECT, TypeKind.INTERFACE, TypeKind.UNION})


@dataclass(frozen=True)
class TypeRef:
    """
    A reference to a type, possibly wrapped in list/non-null modifiers.

    A named reference has ``name`` set; a wrapping reference has ``wrapper``
    (``LIST`` or ``NON_NULL``) and ``of_type``.
    """
    name: Optional[str] = None
    wrapper: Optional[TypeKind] = None
    of_type: Optional["TypeRef"] = None

    @classmethod
    def named(cls, name: str) -> "TypeRef":
        return cls(name=name)

    @classmethod
    def list_of(cls, of_type: "TypeRef") -> "TypeRef":
        return cls(wrapper=TypeKind.LIST, of_type=of_type)

    @classmethod
    def non_null(cls, of_type: "TypeRef") -> "TypeRef":
        return cls(wrapper=TypeKind.NON_NULL, of_type=of_type)

    @property
    def named_type(self) -> str:
        ref = self
        while ref.of_type is not None:
            ref = ref.of_type
        return ref.name

    @property
    def is_non_null(self) -> bool:
        return self.wrapper is TypeKind.NON_NULL

    def __str__(self) -> str:
        if self.wrapper is TypeKind.NON_NULL:
            return f"{self.of_type}!"
        if self.wrapper is TypeKind.LIST:
            return f"[{self.of_type}]"
        return self.name


@dataclass(frozen=True)
class DirectiveArgument:
    """A literal argument of a directive usage, kept as written."""
    name: str
    value: Any
    literal: str


@dataclass(frozen=True)
class DirectiveUsage:
    """A directive applied to a schema element. Semantics are not interpreted."""
    name: str
    arguments: tuple[DirectiveArgument, ...] = ()

    def argument(self, name: str, default: Any = None) -> Any:
        for argument in self.arguments:
            if argument.name == name:
                return argument.value
        return default

    def has_argument(self, name: str) -> bool:
        return any(argument.name == name for argument in self.arguments)


def _find_directive(directives: tuple[DirectiveUsage, ...], name: str) -> Optional[DirectiveUsage]:
    for directive in directives:
        if directive.name == name:
            return directive
    return None


class _Deprecatable:
    """Mixin for elements that can carry ``@deprecated``."""

    directives: tuple[DirectiveUsage, ...]

    @property
    def is_deprecated(self) -> bool:
        return _find_directive(self.directives, "deprecated") is not None

    @property
    def deprecation_reason(self) -> Optional[str]:
        directive = _find_directive(self.directives, "deprecated")
        if directive is None:
            return None
        if directive.has_argument("reason"):
            return directive.argument("reason")
        return DEFAULT_DEPRECATION_REASON


@dataclass(frozen=True)
class InputValueDefinition(_Deprecatable):
    """A field argument, directive argument or input object field."""
    name: str
    type: TypeRef
    description: Optional[str] = None
    default_value: Optional[str] = None
    directives: tuple[DirectiveUsage, ...] = ()


@dataclass(frozen=True)
class FieldDefinition(_Deprecatable):
    name: str
    type: TypeRef
    description: Optional[str] = None
    arguments: tuple[InputValueDefinition, ...] = ()
    directives: tuple[DirectiveUsage, ...] = ()

    def argument(self, name: str) -> Optional[InputValueDefinition]:
        for argument in self.arguments:
            if argument.name == name:
                return argument
        return None


@dataclass(frozen=True)
class EnumValueDefinition(_Deprecatable):
    name: str
    description: Optional[str] = None
    directives: tuple[DirectiveUsage, ...] = ()


@dataclass(frozen=True)
class TypeDefinition:
    """A named type of the schema (never a list/non-null wrapper)."""
    name: str
    kind: TypeKind
    description: Optional[str] = None
    fields: tuple[FieldDefinition, ...] = ()
    interfaces: tuple[str, ...] = ()
    possible_types: tuple[str, ...] = ()  # union members
    enum_values: tuple[EnumValueDefinition, ...] = ()
    input_fields: tuple[InputValueDefinition, ...] = ()
    directives: tuple[DirectiveUsage, ...] = ()
    is_one_of: bool = False  # @oneOf on the input object definition itself

    @property
    def specified_by_url(self) -> Optional[str]:
        directive = _find_directive(self.directives, "specifiedBy")
        return directive.argument("url") if directive else None

    def field(self, name: str) -> Optional[FieldDefinition]:
        for field_def in self.fields:
            if field_def.name == name:
                return field_def
        return None

    @property
    def is_composite(self) -> bool:
        return self.kind in COMPOSITE_KINDS


@dataclass(frozen=True)
class DirectiveDefinition(_Deprecatable):
    name: str
    locations: tuple[str, ...]
    description: Optional[str] = None
    arguments: tuple[InputValueDefinition, ...] = ()
    is_repeatable: bool = False
    directives: tuple[DirectiveUsage, ...] = ()


@dataclass(frozen=True)
class SchemaDocument:
    """
    The complete, resolved type system of one SDL document.

    ``types`` holds user-defined types in declaration order, followed by the
    built-in scalars in use and the introspection meta-types.
    """
    types: Mapping[str, TypeDefinition]
    directives: tuple[DirectiveDefinition, ...]
    query_type: str
    mutation_type: Optional[str] = None
    subscription_type: Optional[str] = None
    description: Optional[str] = None
    schema_directives: tuple[DirectiveUsage, ...] = ()

    def __post_init__(self):
        if not isinstance(self.types, MappingProxyType):
            object.__setattr__(self, "types", MappingProxyType(dict(self.types)))

    def get_type(self, name: str) -> Optional[TypeDefinition]:
        return self.types.get(name)

    def get_directive(self, name: str) -> Optional[DirectiveDefinition]:
        for directive in self.directives:
            if directive.name == name:
                return directive
        return None

    def possible_types(self, type_def: TypeDefinition) -> list[TypeDefinition]:
        """Object types a union or interface can resolve to, in declaration order."""
        if type_def.kind is TypeKind.UNION:
            return [self.types[name] for name in type_def.possible_types]
        if type_def.kind is TypeKind.INTERFACE:
            return [
                candidate for candidate in self.types.values()
                if candidate.kind is TypeKind.OBJECT and type_def.name in candidate.interfaces
            ]
        return []

    @property
    def named_types(self) -> list[TypeDefinition]:
        """Every type except the introspection meta-types."""
        return [t for t in self.types.values() if not t.name.startswith("__")]
