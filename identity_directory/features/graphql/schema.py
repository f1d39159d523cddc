"""GraphQL schema assembly.

Combines the Query and Mutation root types into a single schema. The
error-code extension attaches machine-readable codes to every error.
"""

from __future__ import annotations

import logging

import strawberry

from identity_directory.features.graphql.error_handler import ErrorCodeExtension
from identity_directory.features.graphql.resolvers import Mutation, Query

logger = logging.getLogger(__name__)

schema = strawberry.Schema(
    query=Query,
    mutation=Mutation,
    extensions=[ErrorCodeExtension],
)

logger.debug("GraphQL schema created")

__all__ = ["schema"]
