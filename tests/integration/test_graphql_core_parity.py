"""
Integration tests comparing the native engine with graphql-core's executor.
"""

import pytest
from graphql import get_introspection_query

from schema_bridge.bridge import GraphQLCoreIntrospectionEngine, NativeIntrospectionEngine
from schema_bridge.exceptions import BatchIntrospectionError

pytestmark = pytest.mark.integration

TYPE_REF = "kind name ofType { kind name ofType { kind name ofType { kind name } } }"

PARITY_QUERIES = [
    "{ __typename }",
    "{ __schema { queryType { name } mutationType { name } subscriptionType { name } } }",
    '{ __type(name: "Missing") { name } }',
    f"""
    {{
      __type(name: "Product") {{
        kind
        name
        description
        interfaces {{ name }}
        fields(includeDeprecated: true) {{
          name
          description
          isDeprecated
          deprecationReason
          args {{ name description defaultValue type {{ {TYPE_REF} }} }}
          type {{ {TYPE_REF} }}
        }}
      }}
    }}
    """,
    '{ __type(name: "SearchResult") { kind possibleTypes { name kind } } }',
    '{ __type(name: "Category") { enumValues(includeDeprecated: true) { name isDeprecated deprecationReason } } }',
    f'{{ __type(name: "ReviewInput") {{ inputFields {{ name defaultValue type {{ {TYPE_REF} }} }} }} }}',
    f'{{ __type(name: "Query") {{ fields {{ name args {{ name defaultValue }} type {{ {TYPE_REF} }} }} }} }}',
]

FULL_INTROSPECTION_QUERY = get_introspection_query(
    descriptions=True,
    specified_by_url=True,
    directive_is_repeatable=True,
    schema_description=True,
    input_value_deprecation=True,
    experimental_directive_deprecation=True,
    input_object_one_of=True,
)

LOOKUP_SDL = '''
"""Caching hint."""
directive @cached(ttl: Int = 60) repeatable on FIELD_DEFINITION | OBJECT

scalar DateTime @specifiedBy(url: "https://example.com/datetime")

"""Find a user by exactly one key."""
input UserLookup @oneOf {
  id: ID
  email: String
}

type Query {
  user(by: UserLookup!, since: DateTime, legacy: Boolean @deprecated(reason: "Unused")): String @cached(ttl: 5)
}
'''


def _by_name(items):
    return sorted(items, key=lambda item: item["name"])


def _normalised(data):
    """Order-insensitive view of a full introspection result."""
    schema = dict(data["__schema"])
    schema["types"] = [
        dict(type_, possibleTypes=_by_name(type_["possibleTypes"])) if type_["possibleTypes"] else type_
        for type_ in _by_name(schema["types"])
    ]
    schema["directives"] = _by_name(schema["directives"])
    return schema


@pytest.mark.parametrize("query", PARITY_QUERIES)
def test_engines_agree(product_sdl, query):
    native = NativeIntrospectionEngine().batch_introspect(product_sdl, [query])
    reference = GraphQLCoreIntrospectionEngine().batch_introspect(product_sdl, [query])

    assert native[0].data == reference[0].data


def test_both_engines_reject_non_introspection_fields(product_sdl):
    for engine in (NativeIntrospectionEngine(), GraphQLCoreIntrospectionEngine()):
        with pytest.raises(BatchIntrospectionError) as exc_info:
            engine.batch_introspect(product_sdl, ["{ __typename }", '{ product(upc: "1") { name } }'])

        assert exc_info.value.query_index == 1
        assert exc_info.value.errors[0].message.startswith('Field "product" is not an introspection field')


def test_both_engines_reject_dangling_references():
    for engine in (NativeIntrospectionEngine(), GraphQLCoreIntrospectionEngine()):
        with pytest.raises(BatchIntrospectionError) as exc_info:
            engine.batch_introspect("type Query { a: Missing }", ["{ __typename }"])

        assert exc_info.value.errors[0].message == 'Unknown type "Missing".'
        assert exc_info.value.errors[0].extensions == {"phase": "parse"}


def test_graphql_core_rejects_undeclared_directives():
    with pytest.raises(BatchIntrospectionError):
        GraphQLCoreIntrospectionEngine().batch_introspect(
            'type Query { me: User } type User @key(fields: "id") { id: ID! }', ["{ __typename }"]
        )


@pytest.mark.parametrize("sdl_name", ["product", "lookup"])
def test_full_introspection_query_agrees(product_sdl, sdl_name):
    sdl = product_sdl if sdl_name == "product" else LOOKUP_SDL

    native = NativeIntrospectionEngine().batch_introspect(sdl, [FULL_INTROSPECTION_QUERY])
    reference = GraphQLCoreIntrospectionEngine().batch_introspect(sdl, [FULL_INTROSPECTION_QUERY])

    assert _normalised(native[0].data) == _normalised(reference[0].data)


def test_one_of_input_is_reported():
    query = '{ __type(name: "UserLookup") { isOneOf } __schema { directives { name isDeprecated } } }'

    for engine in (NativeIntrospectionEngine(), GraphQLCoreIntrospectionEngine()):
        data = engine.batch_introspect(LOOKUP_SDL, [query])[0].data

        assert data["__type"] == {"isOneOf": True}
        assert {"name": "oneOf", "isDeprecated": False} in data["__schema"]["directives"]
