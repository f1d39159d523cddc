"""Modular Pydantic Settings v2 configuration.

Settings are split by domain, each with its own environment prefix:
- APP_: service identity and FastAPI toggles
- LOG_: logging handlers and formats
- PAGINATION_: default and maximum page sizes
- IDENTITY_: identity provider endpoints, credentials and tenant cache
- GRAPHQL_: GraphQL endpoint

Import settings via cached loaders (recommended):
    from identity_directory.core.settings import get_pagination_settings

Or use unified settings for convenient access to all domains:
    from identity_directory.core.settings import get_settings

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. Environment variables
    3. .env file (development only)
"""

from __future__ import annotations

from .loader import (
    clear_settings_cache,
    get_app_settings,
    get_graphql_settings,
    get_identity_settings,
    get_logging_settings,
    get_pagination_settings,
)
from .unified import Settings, get_settings

__all__ = [
    "Settings",
    "clear_settings_cache",
    "get_app_settings",
    "get_graphql_settings",
    "get_identity_settings",
    "get_logging_settings",
    "get_pagination_settings",
    "get_settings",
]
