"""
Unit tests for evaluating introspection queries against schema documents.
"""

import pytest

from schema_bridge.introspection import IntrospectionEvaluator, evaluate
from schema_bridge.sdl import parse_sdl

pytestmark = pytest.mark.unit


def _data(schema, query):
    return evaluate(schema, query).data


def test_query_root_name():
    schema = parse_sdl("type Query { hello: String }")

    assert _data(schema, "{ __schema { queryType { name } } }") == {
        "__schema": {"queryType": {"name": "Query"}}
    }


def test_object_type_round_trip():
    schema = parse_sdl("type Query { product: Product } type Product { upc: String! name: String }")
    query = """
    {
      __type(name: "Product") {
        name
        kind
        fields { name type { kind name ofType { kind name } } }
      }
    }
    """

    assert _data(schema, query) == {
        "__type": {
            "name": "Product",
            "kind": "OBJECT",
            "fields": [
                {
                    "name": "upc",
                    "type": {"kind": "NON_NULL", "name": None, "ofType": {"kind": "SCALAR", "name": "String"}},
                },
                {
                    "name": "name",
                    "type": {"kind": "SCALAR", "name": "String", "ofType": None},
                },
            ],
        }
    }


def test_unknown_type_is_null(product_schema):
    assert _data(product_schema, '{ __type(name: "Nope") { name kind } }') == {"__type": None}


def test_list_wrapping_chain(product_schema):
    query = """
    {
      __type(name: "Query") {
        fields {
          name
          type { kind name ofType { kind name ofType { kind name ofType { kind name } } } }
        }
      }
    }
    """
    fields = {f["name"]: f["type"] for f in _data(product_schema, query)["__type"]["fields"]}

    assert fields["topProducts"] == {
        "kind": "NON_NULL",
        "name": None,
        "ofType": {
            "kind": "LIST",
            "name": None,
            "ofType": {
                "kind": "NON_NULL",
                "name": None,
                "ofType": {"kind": "OBJECT", "name": "Product"},
            },
        },
    }


def test_deprecated_fields_hidden_by_default(product_schema):
    default = _data(product_schema, '{ __type(name: "Product") { fields { name } } }')
    everything = _data(
        product_schema,
        '{ __type(name: "Product") { fields(includeDeprecated: true) { name isDeprecated deprecationReason } } }',
    )

    assert [f["name"] for f in default["__type"]["fields"]] == ["id", "upc", "name", "cost", "reviews"]
    assert everything["__type"]["fields"][3] == {
        "name": "price",
        "isDeprecated": True,
        "deprecationReason": "Use cost",
    }


def test_enum_values(product_schema):
    query = """
    {
      __type(name: "Currency") {
        kind
        enumValues(includeDeprecated: true) { name isDeprecated deprecationReason }
      }
    }
    """

    assert _data(product_schema, query) == {
        "__type": {
            "kind": "ENUM",
            "enumValues": [
                {"name": "USD", "isDeprecated": False, "deprecationReason": None},
                {"name": "EUR", "isDeprecated": False, "deprecationReason": None},
                {"name": "GBP", "isDeprecated": True, "deprecationReason": "Sunset"},
            ],
        }
    }


def test_possible_types_for_union_and_interface(product_schema):
    query = """
    {
      union: __type(name: "SearchResult") { possibleTypes { name } }
      interface: __type(name: "Node") { possibleTypes { name } }
      object: __type(name: "Product") { possibleTypes { name } interfaces { name } }
    }
    """

    assert _data(product_schema, query) == {
        "union": {"possibleTypes": [{"name": "Product"}, {"name": "Review"}]},
        "interface": {"possibleTypes": [{"name": "Product"}, {"name": "Review"}]},
        "object": {"possibleTypes": None, "interfaces": [{"name": "Node"}]},
    }


def test_input_fields_and_argument_defaults(product_schema):
    query = """
    {
      input: __type(name: "ReviewInput") { inputFields { name defaultValue } }
      product: __type(name: "Product") { fields { name args { name defaultValue } } }
    }
    """
    data = _data(product_schema, query)

    assert data["input"]["inputFields"] == [
        {"name": "productUpc", "defaultValue": None},
        {"name": "body", "defaultValue": None},
        {"name": "rating", "defaultValue": "5"},
    ]
    reviews = next(f for f in data["product"]["fields"] if f["name"] == "reviews")
    assert reviews["args"] == [
        {"name": "first", "defaultValue": "5"},
        {"name": "after", "defaultValue": None},
    ]


def test_fields_not_applicable_to_kind_are_null(product_schema):
    query = """
    {
      __type(name: "String") {
        kind
        fields { name }
        interfaces { name }
        possibleTypes { name }
        enumValues { name }
        inputFields { name }
        ofType { name }
      }
    }
    """

    assert _data(product_schema, query) == {
        "__type": {
            "kind": "SCALAR",
            "fields": None,
            "interfaces": None,
            "possibleTypes": None,
            "enumValues": None,
            "inputFields": None,
            "ofType": None,
        }
    }


def test_specified_by_url():
    schema = parse_sdl(
        'scalar DateTime @specifiedBy(url: "https://example.com/datetime") type Query { now: DateTime }'
    )

    assert _data(schema, '{ __type(name: "DateTime") { specifiedByURL } }') == {
        "__type": {"specifiedByURL": "https://example.com/datetime"}
    }


def test_schema_root_types_and_description(product_schema):
    query = """
    {
      __schema {
        description
        queryType { name }
        mutationType { name }
        subscriptionType { name }
      }
    }
    """

    assert _data(product_schema, query) == {
        "__schema": {
            "description": "The catalog schema.",
            "queryType": {"name": "Query"},
            "mutationType": {"name": "Mutation"},
            "subscriptionType": None,
        }
    }


def test_schema_types_include_builtins(product_schema):
    names = [t["name"] for t in _data(product_schema, "{ __schema { types { name } } }")["__schema"]["types"]]

    assert names[:3] == ["Query", "Mutation", "Node"]
    assert "String" in names
    assert "__Schema" in names
    assert "__TypeKind" in names


def test_directives_listing():
    schema = parse_sdl("directive @cached(ttl: Int) repeatable on FIELD_DEFINITION type Query { a: String }")
    query = "{ __schema { directives { name isRepeatable locations args { name } } } }"
    directives = _data(schema, query)["__schema"]["directives"]

    assert [d["name"] for d in directives] == ["cached", "include", "skip", "deprecated", "specifiedBy", "oneOf"]
    assert directives[0] == {
        "name": "cached",
        "isRepeatable": True,
        "locations": ["FIELD_DEFINITION"],
        "args": [{"name": "ttl"}],
    }


def test_meta_types_are_introspectable(product_schema):
    query = '{ __type(name: "__TypeKind") { kind enumValues { name } } }'

    assert _data(product_schema, query) == {
        "__type": {
            "kind": "ENUM",
            "enumValues": [
                {"name": "SCALAR"},
                {"name": "OBJECT"},
                {"name": "INTERFACE"},
                {"name": "UNION"},
                {"name": "ENUM"},
                {"name": "INPUT_OBJECT"},
                {"name": "LIST"},
                {"name": "NON_NULL"},
            ],
        }
    }


def test_aliases_and_typename(product_schema):
    query = """
    {
      __typename
      first: __type(name: "Product") { label: name kind: __typename }
      second: __type(name: "Money") { name }
    }
    """

    assert _data(product_schema, query) == {
        "__typename": "Query",
        "first": {"label": "Product", "kind": "__Type"},
        "second": {"name": "Money"},
    }


def test_fragments_are_inlined(product_schema):
    query = """
    query {
      __type(name: "Money") { ...TypeParts ... on __Type { description } }
    }

    fragment TypeParts on __Type {
      name
      kind
    }
    """

    assert _data(product_schema, query) == {
        "__type": {"name": "Money", "kind": "OBJECT", "description": None}
    }


def test_repeated_fields_are_merged(product_schema):
    query = '{ __type(name: "Product") { name } __type(name: "Product") { kind } }'

    assert _data(product_schema, query) == {"__type": {"name": "Product", "kind": "OBJECT"}}


def test_skip_and_include(product_schema):
    query = """
    {
      __type(name: "Product") {
        name @skip(if: true)
        kind @include(if: true)
        description @include(if: false)
      }
    }
    """

    assert _data(product_schema, query) == {"__type": {"kind": "OBJECT"}}


def test_variable_defaults(product_schema):
    query = """
    query Lookup($name: String! = "Review", $deprecated: Boolean = true) {
      __type(name: $name) {
        name
        fields(includeDeprecated: $deprecated) { name }
      }
    }
    """

    assert _data(product_schema, query) == {
        "__type": {
            "name": "Review",
            "fields": [{"name": "id"}, {"name": "body"}, {"name": "rating"}, {"name": "author"}],
        }
    }


def test_evaluation_is_deterministic(product_schema):
    evaluator = IntrospectionEvaluator(product_schema)
    query = "{ __schema { types { name kind fields(includeDeprecated: true) { name } } } }"

    assert evaluator.evaluate(query) == evaluator.evaluate(query)
    assert evaluator.evaluate(query).to_dict()["data"]["__schema"]["types"][0]["name"] == "Query"
