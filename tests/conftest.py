import django
import pytest
from django.conf import settings

PRODUCT_SDL = '''
"""The catalog schema."""
schema {
  query: Query
  mutation: Mutation
}

"""Entry points for reading the catalog."""
type Query {
  product(upc: String!): Product
  topProducts(first: Int = 5): [Product!]!
  search(term: String!, category: Category = BOOKS): [SearchResult!]!
  node(id: ID!): Node
}

type Mutation {
  addReview(input: ReviewInput!): Review
}

interface Node {
  id: ID!
}

"""A product in the catalog."""
type Product implements Node {
  id: ID!
  upc: String!
  name: String
  price(currency: Currency = USD): Float @deprecated(reason: "Use cost")
  cost: Money
  reviews(first: Int = 5, after: String): [Review!]!
}

type Review implements Node {
  id: ID!
  body: String!
  rating: Int
  author: String @deprecated
}

type Money {
  amount: Float!
  currency: Currency!
}

enum Currency {
  USD
  EUR
  GBP @deprecated(reason: "Sunset")
}

enum Category {
  BOOKS
  GAMES
  MUSIC @deprecated
}

union SearchResult = Product | Review

input ReviewInput {
  productUpc: String!
  body: String!
  rating: Int = 5
}
'''


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without external services")
    config.addinivalue_line("markers", "integration: tests spanning engines or the management command")
    if not settings.configured:
        settings.configure(
            DEBUG=False,
            ENVIRONMENT="testing",
            INSTALLED_APPS=["schema_bridge"],
            SCHEMA_BRIDGE={},
            USE_TZ=True,
        )
        django.setup()


@pytest.fixture
def product_sdl():
    return PRODUCT_SDL


@pytest.fixture
def product_schema():
    from schema_bridge.sdl import parse_sdl

    return parse_sdl(PRODUCT_SDL)
