"""Fixtures for executing the GraphQL schema without HTTP."""
from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock

import pytest

from identity_directory.core.settings.identity import IdentitySettings
from identity_directory.features.graphql.context import GraphQLContext
from identity_directory.features.graphql.schema import schema
from identity_directory.features.tokens.service import TokenService
from identity_directory.infra.identity.rest_client import IdentityRestClient


@pytest.fixture
def rest() -> AsyncMock:
    return AsyncMock(spec=IdentityRestClient)


@pytest.fixture
def context(backend, directory, rest) -> GraphQLContext:
    tokens = TokenService(
        backend,
        rest,
        IdentitySettings(project_id="test-project", session_cookie_expires_in=3600),
    )
    return GraphQLContext(directory=directory, tokens=tokens, tenant_id="acme")


@pytest.fixture
def execute(context):
    """Run a query against the schema and return the ExecutionResult."""

    async def _execute(query: str, **variables: Any):
        return await schema.execute(query, variable_values=variables or None, context_value=context)

    return _execute
