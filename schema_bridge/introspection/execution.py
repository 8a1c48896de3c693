"""
Execution of validated introspection queries.
"""

from typing import Any, Iterable

from graphql.language import (
    FieldNode,
    FragmentSpreadNode,
    InlineFragmentNode,
    SelectionSetNode,
    VariableNode,
    parse_value,
)
from graphql.utilities import value_from_ast_untyped

from ..exceptions import QueryEvaluationError, locations_from_node
from ..results import ErrorRecord
from ..sdl.types import InputValueDefinition, SchemaDocument, TypeDefinition, TypeKind, TypeRef
from .meta import get_field_def, get_resolver, type_condition_matches
from .validation import ValidatedQuery


class IntrospectionExecutor:
    """
    Walks the selection set of a validated query against a schema document.

    Output keys follow the selection order (first occurrence wins when
    fields are merged), aliases rename keys and fragments are inlined.
    """

    def __init__(self, schema: SchemaDocument, query: ValidatedQuery):
        self.schema = schema
        self.query = query

    def execute(self) -> dict[str, Any]:
        root = self.schema.types[self.schema.query_type]
        return self._execute_selection_set(root, None, [self.query.operation.selection_set], ())

    def _fault(self, message: str, node: FieldNode, path: tuple[Any, ...]) -> QueryEvaluationError:
        return QueryEvaluationError([
            ErrorRecord(
                message=message,
                locations=locations_from_node(node),
                path=path,
                extensions={"phase": "execution"},
            )
        ])

    # ------------------------------------------------------------------ #
    # Field collection
    # ------------------------------------------------------------------ #

    def _collect_fields(
        self, parent: TypeDefinition, selection_sets: Iterable[SelectionSetNode]
    ) -> dict[str, list[FieldNode]]:
        fields: dict[str, list[FieldNode]] = {}
        visited: set[str] = set()
        for selection_set in selection_sets:
            self._collect(parent, selection_set, fields, visited)
        return fields

    def _collect(
        self,
        parent: TypeDefinition,
        selection_set: SelectionSetNode,
        fields: dict[str, list[FieldNode]],
        visited: set[str],
    ) -> None:
        for selection in selection_set.selections:
            if not self._should_include(selection):
                continue
            if isinstance(selection, FieldNode):
                key = selection.alias.value if selection.alias else selection.name.value
                fields.setdefault(key, []).append(selection)
            elif isinstance(selection, InlineFragmentNode):
                condition = selection.type_condition
                if condition is not None and not type_condition_matches(
                    self.schema, condition.name.value, parent
                ):
                    continue
                self._collect(parent, selection.selection_set, fields, visited)
            elif isinstance(selection, FragmentSpreadNode):
                name = selection.name.value
                if name in visited:
                    continue
                visited.add(name)
                fragment = self.query.fragments[name]
                if not type_condition_matches(self.schema, fragment.type_condition.name.value, parent):
                    continue
                self._collect(parent, fragment.selection_set, fields, visited)

    def _should_include(self, selection) -> bool:
        for directive in selection.directives or ():
            name = directive.name.value
            if name not in ("skip", "include"):
                continue
            definition = self.schema.get_directive(name)
            condition = self._argument_values(definition.arguments, directive.arguments).get("if")
            if name == "skip" and condition is True:
                return False
            if name == "include" and condition is False:
                return False
        return True

    def _argument_values(self, definitions: tuple[InputValueDefinition, ...], argument_nodes) -> dict[str, Any]:
        provided = {argument.name.value: argument.value for argument in argument_nodes or ()}
        variables = self.query.variable_values
        values: dict[str, Any] = {}
        for definition in definitions:
            value_node = provided.get(definition.name)
            if isinstance(value_node, VariableNode):
                variable_name = value_node.name.value
                if variable_name in variables:
                    values[definition.name] = variables[variable_name]
                    continue
                value_node = None
            if value_node is not None:
                values[definition.name] = value_from_ast_untyped(value_node, variables)
            elif definition.default_value is not None:
                values[definition.name] = value_from_ast_untyped(parse_value(definition.default_value))
        return values

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #

    def _execute_selection_set(
        self,
        parent: TypeDefinition,
        source: Any,
        selection_sets: list[SelectionSetNode],
        path: tuple[Any, ...],
    ) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key, nodes in self._collect_fields(parent, selection_sets).items():
            result[key] = self._execute_field(parent, source, nodes, path + (key,))
        return result

    def _execute_field(
        self, parent: TypeDefinition, source: Any, nodes: list[FieldNode], path: tuple[Any, ...]
    ) -> Any:
        node = nodes[0]
        name = node.name.value
        if name == "__typename":
            return parent.name

        field_def = get_field_def(self.schema, parent, name)
        resolver = get_resolver(parent.name, name)
        if field_def is None or resolver is None:
            raise self._fault(f'Cannot resolve field "{parent.name}.{name}".', node, path)

        args = self._argument_values(field_def.arguments, node.arguments)
        value = resolver(self.schema, source, args)
        return self._complete_value(field_def.type, value, nodes, path, f"{parent.name}.{name}")

    def _complete_value(
        self,
        type_ref: TypeRef,
        value: Any,
        nodes: list[FieldNode],
        path: tuple[Any, ...],
        label: str,
    ) -> Any:
        if type_ref.is_non_null:
            completed = self._complete_value(type_ref.of_type, value, nodes, path, label)
            if completed is None:
                raise self._fault(f"Cannot return null for non-nullable field {label}.", nodes[0], path)
            return completed
        if value is None:
            return None
        if type_ref.wrapper is TypeKind.LIST:
            return [
                self._complete_value(type_ref.of_type, item, nodes, path + (index,), label)
                for index, item in enumerate(value)
            ]

        type_def = self.schema.types[type_ref.name]
        if not type_def.is_composite:
            return value
        selection_sets = [node.selection_set for node in nodes if node.selection_set is not None]
        return self._execute_selection_set(type_def, value, selection_sets, path)
