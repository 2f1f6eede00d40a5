"""
GraphQL module initialization

civicapp/graphql/__init__.py
"""
from civicapp.graphql.schema import schema, graphql_app
from civicapp.graphql.queries import Query
from civicapp.graphql.subscriptions import Subscription

__all__ = [
    "schema",
    "graphql_app",
    "Query",
    "Subscription"
]
