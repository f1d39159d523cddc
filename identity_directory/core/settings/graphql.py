"""GraphQL server configuration settings.

Controls the GraphQL endpoint and IDE.
Environment variables use GRAPHQL_ prefix.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

GraphQLIDE = Literal["graphiql", "apollo-sandbox", "pathfinder", False]


class GraphQLSettings(BaseSettings):
    """GraphQL server configuration.

    Environment variables use GRAPHQL_ prefix.
    Example: GRAPHQL_ENABLED=true, GRAPHQL_PATH=/graphql
    """

    enabled: bool = Field(
        default=True,
        description="Enable GraphQL endpoint",
    )

    path: str = Field(
        default="/graphql",
        min_length=1,
        max_length=255,
        pattern=r"^/.*$",
        description="GraphQL endpoint path",
    )

    graphql_ide: GraphQLIDE = Field(
        default="graphiql",
        description="GraphQL IDE to use: graphiql, apollo-sandbox, pathfinder, or false to disable",
    )
    disable_playground: bool = Field(
        default=False,
        description="Disable GraphQL IDE (like disable_docs for REST)",
    )

    model_config = SettingsConfigDict(
        env_prefix="GRAPHQL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )

    def get_graphql_ide(self) -> GraphQLIDE:
        """Return the configured IDE, or False when the playground is disabled."""
        if self.disable_playground:
            return False
        return self.graphql_ide
