"""GraphQL resolvers for queries and mutations.

This package contains:
- queries.py: users connection, single user lookup and the token namespace
- mutations.py: user writes (create, update, upsert, delete)
- tokens.py: identity token operations
"""

from __future__ import annotations

from identity_directory.features.graphql.resolvers.mutations import Mutation
from identity_directory.features.graphql.resolvers.queries import Query
from identity_directory.features.graphql.resolvers.tokens import TokenNamespace

__all__ = ["Mutation", "Query", "TokenNamespace"]
