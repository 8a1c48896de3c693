"""
SDL parsing and schema document building.

Lexing and parsing of the GraphQL grammar is handled by graphql-core; this
module walks the resulting AST, merges extensions, resolves type references
and checks the structural rules a valid type system must satisfy.
"""

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from graphql import GraphQLError, parse, print_ast
from graphql.language import (
    DirectiveDefinitionNode,
    DirectiveNode,
    DocumentNode,
    EnumTypeDefinitionNode,
    EnumTypeExtensionNode,
    ExecutableDefinitionNode,
    FieldDefinitionNode,
    FragmentDefinitionNode,
    InputObjectTypeDefinitionNode,
    InputObjectTypeExtensionNode,
    InputValueDefinitionNode,
    InterfaceTypeDefinitionNode,
    InterfaceTypeExtensionNode,
    ListTypeNode,
    NamedTypeNode,
    Node,
    NonNullTypeNode,
    ObjectTypeDefinitionNode,
    ObjectTypeExtensionNode,
    ScalarTypeDefinitionNode,
    ScalarTypeExtensionNode,
    SchemaDefinitionNode,
    SchemaExtensionNode,
    TypeNode,
    UnionTypeDefinitionNode,
    UnionTypeExtensionNode,
)
from graphql.utilities import value_from_ast_untyped

from ..exceptions import SchemaParseError, locations_from_graphql_error, locations_from_node
from .builtins import (
    ALWAYS_REFERENCED_SCALARS,
    INTROSPECTION_TYPE_NAMES,
    PRELUDE_SDL,
    SPECIFIED_SCALAR_NAMES,
)
from .types import (
    INPUT_KINDS,
    OUTPUT_KINDS,
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

logger = logging.getLogger(__name__)

_DEFINITION_KINDS = {
    ScalarTypeDefinitionNode: TypeKind.SCALAR,
    ObjectTypeDefinitionNode: TypeKind.OBJECT,
    InterfaceTypeDefinitionNode: TypeKind.INTERFACE,
    UnionTypeDefinitionNode: TypeKind.UNION,
    EnumTypeDefinitionNode: TypeKind.ENUM,
    InputObjectTypeDefinitionNode: TypeKind.INPUT_OBJECT,
}

_EXTENSION_KINDS = {
    ScalarTypeExtensionNode: TypeKind.SCALAR,
    ObjectTypeExtensionNode: TypeKind.OBJECT,
    InterfaceTypeExtensionNode: TypeKind.INTERFACE,
    UnionTypeExtensionNode: TypeKind.UNION,
    EnumTypeExtensionNode: TypeKind.ENUM,
    InputObjectTypeExtensionNode: TypeKind.INPUT_OBJECT,
}

_KIND_LABELS = {
    TypeKind.SCALAR: "scalar",
    TypeKind.OBJECT: "object",
    TypeKind.INTERFACE: "interface",
    TypeKind.UNION: "union",
    TypeKind.ENUM: "enum",
    TypeKind.INPUT_OBJECT: "input object",
}

_ROOT_OPERATIONS = (
    ("query", "Query"),
    ("mutation", "Mutation"),
    ("subscription", "Subscription"),
)


@dataclass(frozen=True)
class Prelude:
    """Built-in scalars, directives and introspection types."""
    types: Mapping[str, TypeDefinition]
    directives: tuple[DirectiveDefinition, ...]


@dataclass
class _TypeDraft:
    """Mutable accumulator for one type while definitions and extensions merge."""
    name: str
    kind: TypeKind
    node: Node
    description: Optional[str] = None
    fields: list[FieldDefinitionNode] = field(default_factory=list)
    interfaces: list[NamedTypeNode] = field(default_factory=list)
    members: list[NamedTypeNode] = field(default_factory=list)
    values: list[Any] = field(default_factory=list)
    input_fields: list[InputValueDefinitionNode] = field(default_factory=list)
    directives: list[DirectiveNode] = field(default_factory=list)


def _description(node: Node) -> Optional[str]:
    description = getattr(node, "description", None)
    return description.value if description is not None else None


def _directive_usages(nodes: Iterable[DirectiveNode]) -> tuple[DirectiveUsage, ...]:
    return tuple(
        DirectiveUsage(
            name=node.name.value,
            arguments=tuple(
                DirectiveArgument(
                    name=argument.name.value,
                    value=value_from_ast_untyped(argument.value),
                    literal=print_ast(argument.value),
                )
                for argument in node.arguments or ()
            ),
        )
        for node in nodes or ()
    )


class SchemaBuilder:
    """
    Builds a :class:`SchemaDocument` from a parsed SDL document.

    The builder is single use: create one per document.
    """

    def __init__(
        self,
        document: DocumentNode,
        prelude: Optional[Prelude] = None,
        allow_reserved_names: bool = False,
    ):
        self.document = document
        self.prelude = prelude
        self.allow_reserved_names = allow_reserved_names
        self._drafts: dict[str, _TypeDraft] = {}
        self._directive_nodes: dict[str, DirectiveDefinitionNode] = {}
        self._schema_node: Optional[SchemaDefinitionNode] = None
        self._schema_extensions: list[SchemaExtensionNode] = []
        self._type_extensions: list[Node] = []
        self._referenced: set[str] = set()

    def build(self) -> SchemaDocument:
        """Build the full schema document, including built-in elements."""
        if self.prelude is None:
            raise ValueError("SchemaBuilder.build() requires a prelude")
        types, directives = self.build_type_system()
        operation_types, description, schema_directives = self._resolve_root_types(types)

        user_directive_names = {directive.name for directive in directives}
        all_directives = directives + tuple(
            directive for directive in self.prelude.directives
            if directive.name not in user_directive_names
        )
        return SchemaDocument(
            types=self._order_types(types),
            directives=all_directives,
            query_type=operation_types["query"],
            mutation_type=operation_types.get("mutation"),
            subscription_type=operation_types.get("subscription"),
            description=description,
            schema_directives=schema_directives,
        )

    def build_type_system(self) -> tuple[dict[str, TypeDefinition], tuple[DirectiveDefinition, ...]]:
        """Build only the types and directives defined by this document."""
        self._collect()
        self._apply_extensions()
        types = {name: self._build_type(draft) for name, draft in self._drafts.items()}
        directives = tuple(
            self._build_directive(node) for node in self._directive_nodes.values()
        )
        self._validate_types(types)
        return types, directives

    # ------------------------------------------------------------------ #
    # Collection
    # ------------------------------------------------------------------ #

    def _collect(self) -> None:
        for definition in self.document.definitions:
            if isinstance(definition, ExecutableDefinitionNode):
                label = "Fragment" if isinstance(definition, FragmentDefinitionNode) else "Operation"
                raise SchemaParseError(
                    f"{label} definitions are not allowed in a schema document.",
                    locations_from_node(definition),
                )
            if isinstance(definition, SchemaDefinitionNode):
                if self._schema_node is not None:
                    raise SchemaParseError(
                        "Must provide only one schema definition.", locations_from_node(definition)
                    )
                self._schema_node = definition
            elif isinstance(definition, SchemaExtensionNode):
                self._schema_extensions.append(definition)
            elif isinstance(definition, DirectiveDefinitionNode):
                self._add_directive(definition)
            elif type(definition) in _EXTENSION_KINDS:
                self._type_extensions.append(definition)
            elif type(definition) in _DEFINITION_KINDS:
                self._add_type(definition)
            else:
                raise SchemaParseError(
                    f"Unsupported definition: {definition.kind}.", locations_from_node(definition)
                )

    def _check_name(self, name: str, node: Node) -> None:
        if name.startswith("__") and not self.allow_reserved_names:
            raise SchemaParseError(
                f'Name "{name}" must not begin with "__", which is reserved by GraphQL introspection.',
                locations_from_node(node),
            )

    def _add_directive(self, node: DirectiveDefinitionNode) -> None:
        name = node.name.value
        self._check_name(name, node)
        if name in self._directive_nodes:
            raise SchemaParseError(
                f'There can be only one directive named "@{name}".', locations_from_node(node)
            )
        self._directive_nodes[name] = node

    def _add_type(self, node: Node) -> None:
        kind = _DEFINITION_KINDS[type(node)]
        name = node.name.value
        self._check_name(name, node)
        if self.prelude is not None and name in self.prelude.types:
            if kind is TypeKind.SCALAR and self.prelude.types[name].kind is TypeKind.SCALAR:
                # Restating a specified scalar keeps the built-in definition.
                self._referenced.add(name)
                return
            raise SchemaParseError(
                f'Type "{name}" already exists in the schema. '
                "It cannot also be defined in this type definition.",
                locations_from_node(node),
            )
        if name in self._drafts:
            raise SchemaParseError(
                f'There can be only one type named "{name}".', locations_from_node(node)
            )
        draft = _TypeDraft(name=name, kind=kind, node=node, description=_description(node))
        self._merge(draft, node)
        self._drafts[name] = draft

    def _apply_extensions(self) -> None:
        for node in self._type_extensions:
            name = node.name.value
            draft = self._drafts.get(name)
            if draft is None and self._is_prelude_scalar(name):
                if not isinstance(node, ScalarTypeExtensionNode):
                    raise SchemaParseError(
                        f'Cannot extend non-{_KIND_LABELS[_EXTENSION_KINDS[type(node)]]} type "{name}".',
                        locations_from_node(node),
                    )
                # Directives on a built-in scalar are opaque; the definition is unchanged.
                self._referenced.add(name)
                continue
            if draft is None:
                raise SchemaParseError(
                    f'Cannot extend type "{name}" because it is not defined.', locations_from_node(node)
                )
            kind = _EXTENSION_KINDS[type(node)]
            if draft.kind is not kind:
                raise SchemaParseError(
                    f'Cannot extend non-{_KIND_LABELS[kind]} type "{name}".', locations_from_node(node)
                )
            self._merge(draft, node)

    def _is_prelude_scalar(self, name: str) -> bool:
        if self.prelude is None:
            return False
        type_def = self.prelude.types.get(name)
        return type_def is not None and type_def.kind is TypeKind.SCALAR

    @staticmethod
    def _merge(draft: _TypeDraft, node: Node) -> None:
        draft.directives.extend(node.directives or ())
        if draft.kind in (TypeKind.OBJECT, TypeKind.INTERFACE):
            draft.fields.extend(node.fields or ())
            draft.interfaces.extend(node.interfaces or ())
        elif draft.kind is TypeKind.UNION:
            draft.members.extend(node.types or ())
        elif draft.kind is TypeKind.ENUM:
            draft.values.extend(node.values or ())
        elif draft.kind is TypeKind.INPUT_OBJECT:
            draft.input_fields.extend(node.fields or ())

    # ------------------------------------------------------------------ #
    # Resolution
    # ------------------------------------------------------------------ #

    def _lookup_kind(self, name: str) -> Optional[TypeKind]:
        if name in self._drafts:
            return self._drafts[name].kind
        if self.prelude is not None and not name.startswith("__"):
            type_def = self.prelude.types.get(name)
            if type_def is not None:
                return type_def.kind
        return None

    def _type_ref(self, node: TypeNode) -> tuple[TypeRef, TypeKind]:
        if isinstance(node, NonNullTypeNode):
            inner, kind = self._type_ref(node.type)
            return TypeRef.non_null(inner), kind
        if isinstance(node, ListTypeNode):
            inner, kind = self._type_ref(node.type)
            return TypeRef.list_of(inner), kind
        name = node.name.value
        kind = self._lookup_kind(name)
        if kind is None:
            raise SchemaParseError(f'Unknown type "{name}".', locations_from_node(node))
        self._referenced.add(name)
        return TypeRef.named(name), kind

    def _input_values(
        self, nodes: Iterable[InputValueDefinitionNode], owner: str, argument_style: bool
    ) -> tuple[InputValueDefinition, ...]:
        values: list[InputValueDefinition] = []
        seen: set[str] = set()
        for node in nodes or ():
            name = node.name.value
            self._check_name(name, node)
            label = f"{owner}({name}:)" if argument_style else f"{owner}.{name}"
            if name in seen:
                noun = "Argument" if argument_style else "Field"
                raise SchemaParseError(
                    f'{noun} "{label}" can only be defined once.', locations_from_node(node)
                )
            seen.add(name)
            type_ref, kind = self._type_ref(node.type)
            if kind not in INPUT_KINDS:
                raise SchemaParseError(
                    f"The type of {label} must be Input Type but got: {type_ref}.",
                    locations_from_node(node.type),
                )
            values.append(InputValueDefinition(
                name=name,
                type=type_ref,
                description=_description(node),
                default_value=print_ast(node.default_value) if node.default_value is not None else None,
                directives=_directive_usages(node.directives),
            ))
        return tuple(values)

    def _fields(self, draft: _TypeDraft) -> tuple[FieldDefinition, ...]:
        fields: list[FieldDefinition] = []
        seen: set[str] = set()
        for node in draft.fields:
            name = node.name.value
            self._check_name(name, node)
            if name in seen:
                raise SchemaParseError(
                    f'Field "{draft.name}.{name}" can only be defined once.', locations_from_node(node)
                )
            seen.add(name)
            type_ref, kind = self._type_ref(node.type)
            if kind not in OUTPUT_KINDS:
                raise SchemaParseError(
                    f"The type of {draft.name}.{name} must be Output Type but got: {type_ref}.",
                    locations_from_node(node.type),
                )
            fields.append(FieldDefinition(
                name=name,
                type=type_ref,
                description=_description(node),
                arguments=self._input_values(node.arguments, f"{draft.name}.{name}", True),
                directives=_directive_usages(node.directives),
            ))
        return tuple(fields)

    def _interfaces(self, draft: _TypeDraft) -> tuple[str, ...]:
        names: list[str] = []
        for node in draft.interfaces:
            name = node.name.value
            _, kind = self._type_ref(node)
            if kind is not TypeKind.INTERFACE:
                raise SchemaParseError(
                    f"Type {draft.name} must only implement Interface types, "
                    f"it cannot implement {name}.",
                    locations_from_node(node),
                )
            if name == draft.name:
                raise SchemaParseError(
                    f"Type {name} cannot implement itself because it would create a circular reference.",
                    locations_from_node(node),
                )
            if name in names:
                raise SchemaParseError(
                    f"Type {draft.name} can only implement {name} once.", locations_from_node(node)
                )
            names.append(name)
        return tuple(names)

    def _members(self, draft: _TypeDraft) -> tuple[str, ...]:
        names: list[str] = []
        for node in draft.members:
            name = node.name.value
            _, kind = self._type_ref(node)
            if kind is not TypeKind.OBJECT:
                raise SchemaParseError(
                    f"Union type {draft.name} can only include Object types, "
                    f"it cannot include {name}.",
                    locations_from_node(node),
                )
            if name in names:
                raise SchemaParseError(
                    f"Union type {draft.name} can only include type {name} once.", locations_from_node(node)
                )
            names.append(name)
        return tuple(names)

    def _enum_values(self, draft: _TypeDraft) -> tuple[EnumValueDefinition, ...]:
        values: list[EnumValueDefinition] = []
        seen: set[str] = set()
        for node in draft.values:
            name = node.name.value
            self._check_name(name, node)
            if name in ("true", "false", "null"):
                raise SchemaParseError(
                    f"Enum type {draft.name} cannot include value: {name}.", locations_from_node(node)
                )
            if name in seen:
                raise SchemaParseError(
                    f'Enum value "{draft.name}.{name}" can only be defined once.', locations_from_node(node)
                )
            seen.add(name)
            values.append(EnumValueDefinition(
                name=name,
                description=_description(node),
                directives=_directive_usages(node.directives),
            ))
        return tuple(values)

    def _build_type(self, draft: _TypeDraft) -> TypeDefinition:
        return TypeDefinition(
            name=draft.name,
            kind=draft.kind,
            description=draft.description,
            fields=self._fields(draft),
            interfaces=self._interfaces(draft),
            possible_types=self._members(draft),
            enum_values=self._enum_values(draft),
            input_fields=self._input_values(draft.input_fields, draft.name, False),
            directives=_directive_usages(draft.directives),
            is_one_of=draft.kind is TypeKind.INPUT_OBJECT and any(
                directive.name.value == "oneOf" for directive in draft.node.directives or ()
            ),
        )

    def _build_directive(self, node: DirectiveDefinitionNode) -> DirectiveDefinition:
        name = node.name.value
        return DirectiveDefinition(
            name=name,
            description=_description(node),
            locations=tuple(location.value for location in node.locations),
            arguments=self._input_values(node.arguments, f"@{name}", True),
            is_repeatable=bool(node.repeatable),
            directives=_directive_usages(node.directives),
        )

    # ------------------------------------------------------------------ #
    # Validation
    # ------------------------------------------------------------------ #

    def _validate_types(self, types: dict[str, TypeDefinition]) -> None:
        for name, type_def in types.items():
            node = self._drafts[name].node
            if type_def.kind in (TypeKind.OBJECT, TypeKind.INTERFACE) and not type_def.fields:
                raise SchemaParseError(f"Type {name} must define one or more fields.", locations_from_node(node))
            if type_def.kind is TypeKind.INPUT_OBJECT and not type_def.input_fields:
                raise SchemaParseError(
                    f"Input Object type {name} must define one or more fields.", locations_from_node(node)
                )
            if type_def.is_one_of:
                for input_field in type_def.input_fields:
                    if input_field.type.is_non_null:
                        raise SchemaParseError(
                            f"OneOf input field {name}.{input_field.name} must be nullable.",
                            locations_from_node(node),
                        )
                    if input_field.default_value is not None:
                        raise SchemaParseError(
                            f"OneOf input field {name}.{input_field.name} cannot have a default value.",
                            locations_from_node(node),
                        )
            if type_def.kind is TypeKind.UNION and not type_def.possible_types:
                raise SchemaParseError(
                    f"Union type {name} must define one or more member types.", locations_from_node(node)
                )
            if type_def.kind is TypeKind.ENUM and not type_def.enum_values:
                raise SchemaParseError(
                    f"Enum type {name} must define one or more values.", locations_from_node(node)
                )
            for interface_name in type_def.interfaces:
                interface = types[interface_name]
                for interface_field in interface.fields:
                    if type_def.field(interface_field.name) is None:
                        raise SchemaParseError(
                            f"Interface field {interface_name}.{interface_field.name} "
                            f"expected but {name} does not provide it.",
                            locations_from_node(node),
                        )

    def _resolve_root_types(
        self, types: dict[str, TypeDefinition]
    ) -> tuple[dict[str, str], Optional[str], tuple[DirectiveUsage, ...]]:
        operation_types: dict[str, str] = {}
        schema_nodes: list[Node] = list(self._schema_extensions)
        if self._schema_node is not None:
            schema_nodes.insert(0, self._schema_node)

        directive_nodes: list[DirectiveNode] = []
        for node in schema_nodes:
            directive_nodes.extend(node.directives or ())
            for operation_type in node.operation_types or ():
                operation = operation_type.operation.value
                if operation in operation_types:
                    raise SchemaParseError(
                        f"Type for {operation} already defined in the schema. "
                        "It cannot be redefined.",
                        locations_from_node(operation_type),
                    )
                type_name = operation_type.type.name.value
                if type_name not in types:
                    raise SchemaParseError(
                        f'Specified {operation} type "{type_name}" not found in document.',
                        locations_from_node(operation_type),
                    )
                operation_types[operation] = type_name

        if self._schema_node is None:
            for operation, default_name in _ROOT_OPERATIONS:
                if operation not in operation_types and default_name in types:
                    operation_types[operation] = default_name

        for operation, type_name in operation_types.items():
            if types[type_name].kind is not TypeKind.OBJECT:
                raise SchemaParseError(
                    f"{operation.capitalize()} root type must be Object type, "
                    f"it cannot be {type_name}.",
                    locations_from_node(self._drafts[type_name].node),
                )
        if "query" not in operation_types:
            raise SchemaParseError("Query root type must be provided.", locations_from_node(self._schema_node))

        description = _description(self._schema_node) if self._schema_node is not None else None
        return operation_types, description, _directive_usages(directive_nodes)

    def _order_types(self, types: dict[str, TypeDefinition]) -> dict[str, TypeDefinition]:
        ordered = dict(types)
        for name in SPECIFIED_SCALAR_NAMES:
            if name in self._referenced or name in ALWAYS_REFERENCED_SCALARS:
                ordered[name] = self.prelude.types[name]
        for name in INTROSPECTION_TYPE_NAMES:
            ordered[name] = self.prelude.types[name]
        return ordered


@lru_cache(maxsize=None)
def get_prelude() -> Prelude:
    """Build (once) the built-in elements shared by every schema document."""
    types, directives = SchemaBuilder(
        parse(PRELUDE_SDL), allow_reserved_names=True
    ).build_type_system()
    return Prelude(types=MappingProxyType(types), directives=directives)


def parse_sdl(sdl: str) -> SchemaDocument:
    """
    Parse SDL text into a resolved :class:`SchemaDocument`.

    Raises:
        SchemaParseError: if the text is empty, syntactically malformed, or
            describes an invalid type system.
    """
    if not isinstance(sdl, str):
        raise SchemaParseError(f"SDL must be a string, got {type(sdl).__name__}.")
    if not sdl.strip():
        raise SchemaParseError("SDL is empty.")

    try:
        document = parse(sdl)
    except GraphQLError as error:
        raise SchemaParseError(error.message, locations_from_graphql_error(error)) from error

    schema = SchemaBuilder(document, prelude=get_prelude()).build()
    logger.debug(
        f"Parsed SDL into {len(schema.named_types)} types "
        f"(query root: {schema.query_type})"
    )
    return schema
