"""
Introspection meta fields and their resolvers.

Sources flowing through the resolvers:

- ``__Schema``: the :class:`SchemaDocument` itself
- ``__Type``: a :class:`TypeRef` (named or wrapping)
- ``__Field``: a :class:`FieldDefinition`
- ``__InputValue``: an :class:`InputValueDefinition`
- ``__EnumValue``: an :class:`EnumValueDefinition`
- ``__Directive``: a :class:`DirectiveDefinition`
"""

from typing import Any, Callable, Optional

from ..sdl.types import (
    FieldDefinition,
    InputValueDefinition,
    SchemaDocument,
    TypeDefinition,
    TypeKind,
    TypeRef,
)

Resolver = Callable[[SchemaDocument, Any, dict[str, Any]], Any]

SCHEMA_META_FIELD = FieldDefinition(
    name="__schema",
    type=TypeRef.non_null(TypeRef.named("__Schema")),
    description="Access the current type schema of this server.",
)

TYPE_META_FIELD = FieldDefinition(
    name="__type",
    type=TypeRef.named("__Type"),
    description="Request the type information of a single type.",
    arguments=(
        InputValueDefinition(name="name", type=TypeRef.non_null(TypeRef.named("String"))),
    ),
)

TYPENAME_META_FIELD = FieldDefinition(
    name="__typename",
    type=TypeRef.non_null(TypeRef.named("String")),
    description="The name of the current Object type at runtime.",
)

ROOT_META_FIELDS = {
    SCHEMA_META_FIELD.name: SCHEMA_META_FIELD,
    TYPE_META_FIELD.name: TYPE_META_FIELD,
}

INTROSPECTION_ROOT_FIELD_NAMES = ("__schema", "__type", "__typename")


def non_introspection_field_message(field_name: str, root_name: str) -> str:
    return (
        f'Field "{field_name}" is not an introspection field; only '
        f'{", ".join(INTROSPECTION_ROOT_FIELD_NAMES)} can be selected on "{root_name}".'
    )


def get_field_def(schema: SchemaDocument, parent: TypeDefinition, field_name: str) -> Optional[FieldDefinition]:
    """Look up a selectable field, including the implicit meta fields."""
    if field_name == TYPENAME_META_FIELD.name:
        return TYPENAME_META_FIELD
    if parent.name == schema.query_type and field_name in ROOT_META_FIELDS:
        return ROOT_META_FIELDS[field_name]
    return parent.field(field_name)


def type_condition_matches(schema: SchemaDocument, condition: str, parent: TypeDefinition) -> bool:
    """Whether a fragment typed on ``condition`` applies to objects of ``parent``."""
    if condition == parent.name:
        return True
    condition_def = schema.get_type(condition)
    if condition_def is None:
        return False
    return any(t.name == parent.name for t in schema.possible_types(condition_def))


def _visible(items, args: dict[str, Any]):
    if args.get("includeDeprecated"):
        return list(items)
    return [item for item in items if not item.is_deprecated]


def _named(schema: SchemaDocument, ref: TypeRef) -> Optional[TypeDefinition]:
    return schema.get_type(ref.name) if ref.wrapper is None else None


def _type_kind(schema, ref, args):
    if ref.wrapper is not None:
        return ref.wrapper.value
    return schema.types[ref.name].kind.value


def _type_description(schema, ref, args):
    type_def = _named(schema, ref)
    return type_def.description if type_def else None


def _type_specified_by_url(schema, ref, args):
    type_def = _named(schema, ref)
    if type_def is None or type_def.kind is not TypeKind.SCALAR:
        return None
    return type_def.specified_by_url


def _type_fields(schema, ref, args):
    type_def = _named(schema, ref)
    if type_def is None or type_def.kind not in (TypeKind.OBJECT, TypeKind.INTERFACE):
        return None
    return _visible(type_def.fields, args)


def _type_interfaces(schema, ref, args):
    type_def = _named(schema, ref)
    if type_def is None or type_def.kind not in (TypeKind.OBJECT, TypeKind.INTERFACE):
        return None
    return [TypeRef.named(name) for name in type_def.interfaces]


def _type_possible_types(schema, ref, args):
    type_def = _named(schema, ref)
    if type_def is None or type_def.kind not in (TypeKind.UNION, TypeKind.INTERFACE):
        return None
    return [TypeRef.named(t.name) for t in schema.possible_types(type_def)]


def _type_enum_values(schema, ref, args):
    type_def = _named(schema, ref)
    if type_def is None or type_def.kind is not TypeKind.ENUM:
        return None
    return _visible(type_def.enum_values, args)


def _type_input_fields(schema, ref, args):
    type_def = _named(schema, ref)
    if type_def is None or type_def.kind is not TypeKind.INPUT_OBJECT:
        return None
    return _visible(type_def.input_fields, args)


def _type_is_one_of(schema, ref, args):
    type_def = _named(schema, ref)
    if type_def is None or type_def.kind is not TypeKind.INPUT_OBJECT:
        return None
    return type_def.is_one_of


def _attr(name: str) -> Resolver:
    return lambda schema, source, args: getattr(source, name)


def resolve_schema(schema: SchemaDocument, source: Any, args: dict[str, Any]) -> SchemaDocument:
    return schema


def resolve_type(schema: SchemaDocument, source: Any, args: dict[str, Any]) -> Optional[TypeRef]:
    """``__type(name:)``: unknown names resolve to null rather than an error."""
    name = args.get("name")
    if not isinstance(name, str) or schema.get_type(name) is None:
        return None
    return TypeRef.named(name)


ROOT_RESOLVERS: dict[str, Resolver] = {
    "__schema": resolve_schema,
    "__type": resolve_type,
}

META_RESOLVERS: dict[tuple[str, str], Resolver] = {
    ("__Schema", "description"): lambda schema, source, args: schema.description,
    ("__Schema", "types"): lambda schema, source, args: [TypeRef.named(name) for name in schema.types],
    ("__Schema", "queryType"): lambda schema, source, args: TypeRef.named(schema.query_type),
    ("__Schema", "mutationType"): lambda schema, source, args: (
        TypeRef.named(schema.mutation_type) if schema.mutation_type else None
    ),
    ("__Schema", "subscriptionType"): lambda schema, source, args: (
        TypeRef.named(schema.subscription_type) if schema.subscription_type else None
    ),
    ("__Schema", "directives"): lambda schema, source, args: _visible(schema.directives, args),

    ("__Type", "kind"): _type_kind,
    ("__Type", "name"): _attr("name"),
    ("__Type", "description"): _type_description,
    ("__Type", "specifiedByURL"): _type_specified_by_url,
    ("__Type", "fields"): _type_fields,
    ("__Type", "interfaces"): _type_interfaces,
    ("__Type", "possibleTypes"): _type_possible_types,
    ("__Type", "enumValues"): _type_enum_values,
    ("__Type", "inputFields"): _type_input_fields,
    ("__Type", "ofType"): _attr("of_type"),
    ("__Type", "isOneOf"): _type_is_one_of,

    ("__Field", "name"): _attr("name"),
    ("__Field", "description"): _attr("description"),
    ("__Field", "args"): lambda schema, source, args: _visible(source.arguments, args),
    ("__Field", "type"): _attr("type"),
    ("__Field", "isDeprecated"): _attr("is_deprecated"),
    ("__Field", "deprecationReason"): _attr("deprecation_reason"),

    ("__InputValue", "name"): _attr("name"),
    ("__InputValue", "description"): _attr("description"),
    ("__InputValue", "type"): _attr("type"),
    ("__InputValue", "defaultValue"): _attr("default_value"),
    ("__InputValue", "isDeprecated"): _attr("is_deprecated"),
    ("__InputValue", "deprecationReason"): _attr("deprecation_reason"),

    ("__EnumValue", "name"): _attr("name"),
    ("__EnumValue", "description"): _attr("description"),
    ("__EnumValue", "isDeprecated"): _attr("is_deprecated"),
    ("__EnumValue", "deprecationReason"): _attr("deprecation_reason"),

    ("__Directive", "name"): _attr("name"),
    ("__Directive", "description"): _attr("description"),
    ("__Directive", "isRepeatable"): _attr("is_repeatable"),
    ("__Directive", "locations"): lambda schema, source, args: list(source.locations),
    ("__Directive", "args"): lambda schema, source, args: _visible(source.arguments, args),
    ("__Directive", "isDeprecated"): _attr("is_deprecated"),
    ("__Directive", "deprecationReason"): _attr("deprecation_reason"),
}


def get_resolver(parent_name: str, field_name: str) -> Optional[Resolver]:
    if field_name in ROOT_RESOLVERS:
        return ROOT_RESOLVERS[field_name]
    return META_RESOLVERS.get((parent_name, field_name))
