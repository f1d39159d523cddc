"""Pytest configuration and shared fixtures.

Organization:
    - Environment: settings that keep tests off the network
    - Identity Fixtures: in-memory backend and sample users
    - Service Fixtures: directory wired to the backend
"""

from __future__ import annotations

import os
from collections.abc import Iterator

import pytest

# Ensure tests run without external infrastructure
os.environ.setdefault("APP_ENVIRONMENT", "test")
os.environ.setdefault("LOG_CONSOLE_ENABLED", "false")
os.environ.setdefault("IDENTITY_PROJECT_ID", "test-project")
os.environ.setdefault("IDENTITY_EMULATOR_HOST", "localhost:9099")

from identity_directory.core.settings import clear_settings_cache  # noqa: E402
from identity_directory.core.settings.pagination import PaginationSettings  # noqa: E402
from identity_directory.features.users.service import UserDirectory  # noqa: E402
from identity_directory.infra.identity.models import UserRecord  # noqa: E402
from identity_directory.infra.identity.testing import InMemoryIdentityBackend  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    """Reload settings for every test so env overrides take effect."""
    clear_settings_cache()
    yield
    clear_settings_cache()


# ============================================================================
# Identity Fixtures
# ============================================================================


@pytest.fixture
def sample_users() -> list[UserRecord]:
    """Five users in provider listing order."""
    return [
        UserRecord(id="u1", email="ada@example.com", phone_number="+15550000001"),
        UserRecord(id="u2", email="grace@example.com", email_verified=True),
        UserRecord(id="u3", email="alan@example.com", phone_number="+15550000003"),
        UserRecord(id="u4", email="edsger@example.com", disabled=True),
        UserRecord(id="u5"),
    ]


@pytest.fixture
def backend(sample_users: list[UserRecord]) -> InMemoryIdentityBackend:
    return InMemoryIdentityBackend.with_users(*sample_users)


@pytest.fixture
def pagination_settings() -> PaginationSettings:
    return PaginationSettings(default_limit=200, max_limit=200)


# ============================================================================
# Service Fixtures
# ============================================================================


@pytest.fixture
def directory(
    backend: InMemoryIdentityBackend,
    pagination_settings: PaginationSettings,
) -> UserDirectory:
    return UserDirectory(backend, pagination_settings)
