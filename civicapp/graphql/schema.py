"""
GraphQL schema definition

civicapp/graphql/schema.py

"""
import strawberry
from strawberry.fastapi import GraphQLRouter
from civicapp.graphql.queries import Query
from civicapp.graphql.subscriptions import Subscription
from civicapp.core.security import decode_access_token
from fastapi import Request
from typing import Any, Dict

# Custom context getter for authentication
async def get_context(request: Request = None) -> Dict[str, Any]:
    """Get context with user authentication"""
    context = {"request": request}

    # Extract token from Authorization header
    auth_header = request.headers.get("Authorization") if request else None
    if auth_header and auth_header.startswith("Bearer "):
        token = auth_header.split(" ")[1]
        payload = decode_access_token(token)
        if payload:
            context["user_id"] = payload.get("sub")

    return context

# Create the schema
schema = strawberry.Schema(
    query=Query,
    subscription=Subscription
)

# Create GraphQL router
graphql_app = GraphQLRouter(
    schema,
    context_getter=get_context,
    graphql_ide="graphiql"  # Enable GraphiQL interface
)
