"""Unified settings composition for convenient access.

Usage:
    from identity_directory.core.settings import get_settings

    settings = get_settings()
    print(settings.app.environment)
    print(settings.pagination.max_limit)

Each nested settings class still loads from its own environment prefix
(APP_, LOG_, PAGINATION_, IDENTITY_, GRAPHQL_), not from a unified prefix.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .app import AppSettings
from .graphql import GraphQLSettings
from .identity import IdentitySettings
from .logs import LoggingSettings
from .pagination import PaginationSettings


class Settings(BaseSettings):
    """Unified settings composing all domain settings.

    Example:
        settings = Settings()
        assert settings.pagination.max_limit == 200
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)
    identity: IdentitySettings = Field(default_factory=IdentitySettings)
    graphql: GraphQLSettings = Field(default_factory=GraphQLSettings)

    @property
    def environment(self) -> str:
        """Deployment environment, shortcut for ``app.environment``."""
        return self.app.environment


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get unified settings instance (cached).

    Returns:
        Settings: Unified settings with all domain configurations.
    """
    return Settings()
