"""
Static validation of introspection queries.

The whole document is checked against the introspection meta-schema before
anything executes, so a bad selection is reported even where execution would
never reach it (for example below a ``__type`` lookup that resolves to null).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from graphql import print_ast
from graphql.language import (
    BooleanValueNode,
    DirectiveNode,
    DocumentNode,
    EnumValueNode,
    FieldNode,
    FloatValueNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    InlineFragmentNode,
    IntValueNode,
    ListTypeNode,
    ListValueNode,
    NamedTypeNode,
    Node,
    NonNullTypeNode,
    NullValueNode,
    ObjectValueNode,
    OperationDefinitionNode,
    OperationType,
    SelectionSetNode,
    StringValueNode,
    TypeNode,
    ValueNode,
    VariableNode,
)
from graphql.utilities import value_from_ast_untyped

from ..exceptions import QueryEvaluationError, locations_from_node
from ..results import ErrorRecord
from ..sdl.types import INPUT_KINDS, InputValueDefinition, SchemaDocument, TypeDefinition, TypeKind, TypeRef
from .meta import (
    INTROSPECTION_ROOT_FIELD_NAMES,
    get_field_def,
    non_introspection_field_message,
    type_condition_matches,
)

logger = logging.getLogger(__name__)

_SCALAR_LITERALS = {
    "String": (StringValueNode,),
    "Boolean": (BooleanValueNode,),
    "Int": (IntValueNode,),
    "Float": (IntValueNode, FloatValueNode),
    "ID": (StringValueNode, IntValueNode),
}

_SCALAR_LABELS = {
    "String": "string",
    "Boolean": "boolean",
    "Int": "integer",
    "Float": "numeric",
    "ID": "ID",
}


@dataclass(frozen=True)
class VariableInfo:
    type: TypeRef
    default: Optional[ValueNode] = None

    @property
    def has_non_null_default(self) -> bool:
        return self.default is not None and not isinstance(self.default, NullValueNode)


@dataclass
class ValidatedQuery:
    """A query document that passed validation, ready for execution."""
    document: DocumentNode
    operation: OperationDefinitionNode
    fragments: dict[str, FragmentDefinitionNode] = field(default_factory=dict)
    variable_values: dict[str, Any] = field(default_factory=dict)


def is_subtype(sub: TypeRef, sup: TypeRef) -> bool:
    """Whether a value of type ``sub`` may flow into a position of type ``sup``."""
    if sup.is_non_null:
        return sub.is_non_null and is_subtype(sub.of_type, sup.of_type)
    if sub.is_non_null:
        return is_subtype(sub.of_type, sup)
    if sup.wrapper is TypeKind.LIST:
        return sub.wrapper is TypeKind.LIST and is_subtype(sub.of_type, sup.of_type)
    if sub.wrapper is TypeKind.LIST:
        return False
    return sub.name == sup.name


def _arguments_signature(node: FieldNode) -> list[tuple[str, str]]:
    return sorted((argument.name.value, print_ast(argument.value)) for argument in node.arguments or ())


class QueryValidator:
    """
    Validates one parsed introspection query against a schema document.
    """

    def __init__(self, schema: SchemaDocument, document: DocumentNode):
        self.schema = schema
        self.document = document
        self.errors: list[ErrorRecord] = []
        self.fragments: dict[str, FragmentDefinitionNode] = {}
        self.variables: dict[str, VariableInfo] = {}
        self.operation: Optional[OperationDefinitionNode] = None
        self._used_fragments: set[str] = set()
        self._used_variables: set[str] = set()

    def validate(self) -> ValidatedQuery:
        """
        Run every check and return the executable query.

        Raises:
            QueryEvaluationError: carrying every validation error found.
        """
        self._collect_definitions()
        if self.operation is not None and not self.errors:
            self._validate_operation(self.operation)

        if self.errors:
            logger.debug(f"Introspection query failed validation with {len(self.errors)} error(s)")
            raise QueryEvaluationError(self.errors)

        variable_values = {
            name: value_from_ast_untyped(info.default)
            for name, info in self.variables.items()
            if info.default is not None
        }
        return ValidatedQuery(
            document=self.document,
            operation=self.operation,
            fragments=dict(self.fragments),
            variable_values=variable_values,
        )

    def _error(self, message: str, *nodes: Optional[Node]) -> None:
        locations = tuple(location for node in nodes for location in locations_from_node(node))
        record = ErrorRecord(message=message, locations=locations, extensions={"phase": "validation"})
        if record not in self.errors:
            self.errors.append(record)

    # ------------------------------------------------------------------ #
    # Document structure
    # ------------------------------------------------------------------ #

    def _collect_definitions(self) -> None:
        operations: list[OperationDefinitionNode] = []
        for definition in self.document.definitions:
            if isinstance(definition, OperationDefinitionNode):
                operations.append(definition)
            elif isinstance(definition, FragmentDefinitionNode):
                name = definition.name.value
                if name in self.fragments:
                    self._error(f'There can be only one fragment named "{name}".', definition)
                else:
                    self.fragments[name] = definition
            else:
                name_node = getattr(definition, "name", None)
                label = f'"{name_node.value}"' if name_node is not None else "schema"
                self._error(f"The {label} definition is not executable.", definition)

        if not operations:
            self._error("Must provide an operation.")
        elif len(operations) > 1:
            self._error(
                "Must provide operation name if query contains multiple operations.",
                operations[1],
            )
        else:
            self.operation = operations[0]

    def _validate_operation(self, operation: OperationDefinitionNode) -> None:
        if operation.operation is not OperationType.QUERY:
            self._error(
                f"Only query operations can be introspected, got a {operation.operation.value} operation.",
                operation,
            )
            return

        self._collect_variables(operation)
        self._check_directives(operation.directives, "QUERY")
        root = self.schema.types[self.schema.query_type]
        self._check_selection_set(root, operation.selection_set, ())

        for name, fragment in self.fragments.items():
            if name not in self._used_fragments:
                self._error(f'Fragment "{name}" is never used.', fragment)
        for name, info in self.variables.items():
            if name not in self._used_variables:
                self._error(f'Variable "${name}" is never used.', operation)

    # ------------------------------------------------------------------ #
    # Variables and values
    # ------------------------------------------------------------------ #

    def _type_ref_from_ast(self, node: TypeNode) -> Optional[TypeRef]:
        if isinstance(node, NonNullTypeNode):
            inner = self._type_ref_from_ast(node.type)
            return TypeRef.non_null(inner) if inner else None
        if isinstance(node, ListTypeNode):
            inner = self._type_ref_from_ast(node.type)
            return TypeRef.list_of(inner) if inner else None
        name = node.name.value
        if self.schema.get_type(name) is None:
            self._error(f'Unknown type "{name}".', node)
            return None
        return TypeRef.named(name)

    def _collect_variables(self, operation: OperationDefinitionNode) -> None:
        for definition in operation.variable_definitions or ():
            name = definition.variable.name.value
            if name in self.variables:
                self._error(f'There can be only one variable named "${name}".', definition)
                continue
            self._check_directives(definition.directives, "VARIABLE_DEFINITION")
            type_ref = self._type_ref_from_ast(definition.type)
            if type_ref is None:
                continue
            if self.schema.types[type_ref.named_type].kind not in INPUT_KINDS:
                self._error(
                    f'Variable "${name}" cannot be non-input type "{type_ref}".', definition.type
                )
                continue
            default = definition.default_value
            if default is not None:
                self._check_value(default, type_ref, False)
            elif type_ref.is_non_null:
                self._error(
                    f'Variable "${name}" of required type "{type_ref}" was not provided.', definition
                )
            self.variables[name] = VariableInfo(type=type_ref, default=default)

    def _check_variable_usage(self, node: VariableNode, expected: TypeRef, location_has_default: bool) -> None:
        name = node.name.value
        info = self.variables.get(name)
        if info is None:
            self._error(f'Variable "${name}" is not defined.', node)
            return
        self._used_variables.add(name)
        allowed = is_subtype(info.type, expected)
        if not allowed and expected.is_non_null and not info.type.is_non_null:
            if info.has_non_null_default or location_has_default:
                allowed = is_subtype(info.type, expected.of_type)
        if not allowed:
            self._error(
                f'Variable "${name}" of type "{info.type}" used in position expecting type "{expected}".',
                node,
            )

    def _check_value(self, node: ValueNode, expected: TypeRef, location_has_default: bool) -> None:
        if isinstance(node, VariableNode):
            self._check_variable_usage(node, expected, location_has_default)
            return
        if isinstance(node, NullValueNode):
            if expected.is_non_null:
                self._error(f'Expected value of type "{expected}", found null.', node)
            return
        if expected.is_non_null:
            expected = expected.of_type
        if expected.wrapper is TypeKind.LIST:
            items = node.values if isinstance(node, ListValueNode) else (node,)
            for item in items:
                self._check_value(item, expected.of_type, False)
            return

        type_def = self.schema.types[expected.name]
        if type_def.kind is TypeKind.SCALAR:
            accepted = _SCALAR_LITERALS.get(type_def.name)
            if accepted is not None and not isinstance(node, accepted):
                self._error(
                    f"{type_def.name} cannot represent a non {_SCALAR_LABELS[type_def.name]} "
                    f"value: {print_ast(node)}",
                    node,
                )
        elif type_def.kind is TypeKind.ENUM:
            if not isinstance(node, EnumValueNode):
                self._error(
                    f'Enum "{type_def.name}" cannot represent non-enum value: {print_ast(node)}.', node
                )
            elif node.value not in {value.name for value in type_def.enum_values}:
                self._error(
                    f'Value "{node.value}" does not exist in "{type_def.name}" enum.', node
                )
        elif type_def.kind is TypeKind.INPUT_OBJECT:
            self._check_object_value(node, type_def)

    def _check_object_value(self, node: ValueNode, type_def: TypeDefinition) -> None:
        if not isinstance(node, ObjectValueNode):
            self._error(f'Expected value of type "{type_def.name}", found {print_ast(node)}.', node)
            return
        definitions = {input_field.name: input_field for input_field in type_def.input_fields}
        provided = set()
        for object_field in node.fields:
            name = object_field.name.value
            provided.add(name)
            definition = definitions.get(name)
            if definition is None:
                self._error(f'Field "{name}" is not defined by type "{type_def.name}".', object_field)
                continue
            self._check_value(object_field.value, definition.type, definition.default_value is not None)
        for name, definition in definitions.items():
            if name not in provided and definition.type.is_non_null and definition.default_value is None:
                self._error(
                    f'Field "{type_def.name}.{name}" of required type "{definition.type}" was not provided.',
                    node,
                )

    def _check_arguments(
        self,
        argument_nodes,
        definitions: tuple[InputValueDefinition, ...],
        owner: str,
        subject: str,
        node: Node,
    ) -> None:
        by_name = {definition.name: definition for definition in definitions}
        seen: set[str] = set()
        for argument in argument_nodes or ():
            name = argument.name.value
            if name in seen:
                self._error(f'There can be only one argument named "{name}".', argument)
                continue
            seen.add(name)
            definition = by_name.get(name)
            if definition is None:
                self._error(f'Unknown argument "{name}" on {owner}.', argument)
                continue
            self._check_value(argument.value, definition.type, definition.default_value is not None)
        for definition in definitions:
            if (
                definition.name not in seen
                and definition.type.is_non_null
                and definition.default_value is None
            ):
                self._error(
                    f'{subject} argument "{definition.name}" of type "{definition.type}" '
                    "is required, but it was not provided.",
                    node,
                )

    def _check_directives(self, directives: Optional[tuple[DirectiveNode, ...]], location: str) -> None:
        for directive in directives or ():
            name = directive.name.value
            definition = self.schema.get_directive(name)
            if definition is None:
                self._error(f'Unknown directive "@{name}".', directive)
                continue
            if location not in definition.locations:
                self._error(f'Directive "@{name}" may not be used on {location}.', directive)
            self._check_arguments(
                directive.arguments,
                definition.arguments,
                f'directive "@{name}"',
                f'Directive "@{name}"',
                directive,
            )

    # ------------------------------------------------------------------ #
    # Selections
    # ------------------------------------------------------------------ #

    def _check_selection_set(
        self, parent: TypeDefinition, selection_set: SelectionSetNode, fragment_stack: tuple[str, ...]
    ) -> None:
        fields_by_key: dict[str, list[FieldNode]] = {}
        self._walk(parent, selection_set, fragment_stack, fields_by_key)
        for key, nodes in fields_by_key.items():
            self._check_conflicts(parent, key, nodes)

    def _walk(
        self,
        parent: TypeDefinition,
        selection_set: SelectionSetNode,
        fragment_stack: tuple[str, ...],
        fields_by_key: dict[str, list[FieldNode]],
    ) -> None:
        for selection in selection_set.selections:
            if isinstance(selection, FieldNode):
                self._check_directives(selection.directives, "FIELD")
                key = selection.alias.value if selection.alias else selection.name.value
                fields_by_key.setdefault(key, []).append(selection)
                self._check_field(parent, selection, fragment_stack)
            elif isinstance(selection, InlineFragmentNode):
                self._check_directives(selection.directives, "INLINE_FRAGMENT")
                condition = selection.type_condition
                if condition is not None and not self._check_type_condition(parent, condition, None):
                    continue
                self._walk(parent, selection.selection_set, fragment_stack, fields_by_key)
            elif isinstance(selection, FragmentSpreadNode):
                self._check_directives(selection.directives, "FRAGMENT_SPREAD")
                name = selection.name.value
                fragment = self.fragments.get(name)
                if fragment is None:
                    self._error(f'Unknown fragment "{name}".', selection)
                    continue
                self._used_fragments.add(name)
                if name in fragment_stack:
                    self._error(f'Cannot spread fragment "{name}" within itself.', selection)
                    continue
                self._check_directives(fragment.directives, "FRAGMENT_DEFINITION")
                if not self._check_type_condition(parent, fragment.type_condition, name):
                    continue
                self._walk(parent, fragment.selection_set, fragment_stack + (name,), fields_by_key)

    def _check_type_condition(
        self, parent: TypeDefinition, condition: NamedTypeNode, fragment_name: Optional[str]
    ) -> bool:
        name = condition.name.value
        type_def = self.schema.get_type(name)
        if type_def is None:
            self._error(f'Unknown type "{name}".', condition)
            return False
        subject = f'Fragment "{fragment_name}"' if fragment_name else "Fragment"
        if not type_def.is_composite:
            self._error(f'{subject} cannot condition on non composite type "{name}".', condition)
            return False
        if not type_condition_matches(self.schema, name, parent):
            self._error(
                f'{subject} cannot be spread here as objects of type "{parent.name}" '
                f'can never be of type "{name}".',
                condition,
            )
            return False
        return True

    def _check_field(self, parent: TypeDefinition, node: FieldNode, fragment_stack: tuple[str, ...]) -> None:
        name = node.name.value
        if parent.name == self.schema.query_type and name not in INTROSPECTION_ROOT_FIELD_NAMES:
            self._error(non_introspection_field_message(name, parent.name), node)
            return

        field_def = get_field_def(self.schema, parent, name)
        if field_def is None:
            self._error(f'Cannot query field "{name}" on type "{parent.name}".', node)
            return

        self._check_arguments(
            node.arguments,
            field_def.arguments,
            f'field "{parent.name}.{name}"',
            f'Field "{name}"',
            node,
        )

        named = self.schema.types[field_def.type.named_type]
        if named.is_composite:
            if node.selection_set is None:
                self._error(
                    f'Field "{name}" of type "{field_def.type}" must have a selection of subfields. '
                    f'Did you mean "{name} {{ ... }}"?',
                    node,
                )
            else:
                self._check_selection_set(named, node.selection_set, fragment_stack)
        elif node.selection_set is not None:
            self._error(
                f'Field "{name}" must not have a selection since type "{field_def.type}" has no subfields.',
                node.selection_set,
            )

    def _check_conflicts(self, parent: TypeDefinition, key: str, nodes: list[FieldNode]) -> None:
        conflict = self._find_conflict(parent, nodes)
        if conflict is not None:
            reason, involved = conflict
            self._error(
                f'Fields "{key}" conflict because {reason}. '
                "Use different aliases on the fields to fetch both if this was intentional.",
                *involved,
            )

    def _find_conflict(
        self, parent: TypeDefinition, nodes: list[FieldNode]
    ) -> Optional[tuple[str, list[FieldNode]]]:
        """
        Find why fields sharing one response key cannot be merged.

        Fields of the same name and arguments merge their sub-selections, so
        those are compared as one set, recursively.
        """
        first = nodes[0]
        for other in nodes[1:]:
            if other.name.value != first.name.value:
                return f'"{first.name.value}" and "{other.name.value}" are different fields', [first, other]
            if _arguments_signature(first) != _arguments_signature(other):
                return "they have differing arguments", [first, other]
        if len(nodes) < 2:
            return None

        field_def = get_field_def(self.schema, parent, first.name.value)
        if field_def is None:
            return None
        named = self.schema.types[field_def.type.named_type]
        if not named.is_composite:
            return None

        sub_fields: dict[str, list[FieldNode]] = {}
        for node in nodes:
            if node.selection_set is not None:
                self._gather(named, node.selection_set, (), sub_fields)
        reasons: list[str] = []
        involved: list[FieldNode] = []
        for sub_key, sub_nodes in sub_fields.items():
            conflict = self._find_conflict(named, sub_nodes)
            if conflict is not None:
                reasons.append(f'subfields "{sub_key}" conflict because {conflict[0]}')
                involved.extend(conflict[1])
        if not reasons:
            return None
        return " and ".join(reasons), [*nodes, *involved]

    def _gather(
        self,
        parent: TypeDefinition,
        selection_set: SelectionSetNode,
        fragment_stack: tuple[str, ...],
        fields_by_key: dict[str, list[FieldNode]],
    ) -> None:
        """Collect fields by response key without reporting; ``_walk`` already did."""
        for selection in selection_set.selections:
            if isinstance(selection, FieldNode):
                key = selection.alias.value if selection.alias else selection.name.value
                fields_by_key.setdefault(key, []).append(selection)
            elif isinstance(selection, InlineFragmentNode):
                condition = selection.type_condition
                if condition is not None and not self._applies(parent, condition.name.value):
                    continue
                self._gather(parent, selection.selection_set, fragment_stack, fields_by_key)
            elif isinstance(selection, FragmentSpreadNode):
                name = selection.name.value
                fragment = self.fragments.get(name)
                if fragment is None or name in fragment_stack:
                    continue
                if not self._applies(parent, fragment.type_condition.name.value):
                    continue
                self._gather(parent, fragment.selection_set, fragment_stack + (name,), fields_by_key)

    def _applies(self, parent: TypeDefinition, condition: str) -> bool:
        type_def = self.schema.get_type(condition)
        return (
            type_def is not None
            and type_def.is_composite
            and type_condition_matches(self.schema, condition, parent)
        )
