"""Pagination settings for user listing.

Environment variables use PAGINATION_ prefix.
Example: PAGINATION_DEFAULT_LIMIT=50, PAGINATION_MAX_LIMIT=200
"""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Page-size ceiling of the users connection; scan resumes fetch limit + offset,
# which stays within the provider listing cap of 1000
MAX_PAGE_SIZE = 200


class PaginationSettings(BaseSettings):
    """Pagination configuration settings.

    Attributes:
        default_limit: Page size used when neither first nor last is given.
        max_limit: Largest page size a request may ask for. Requests above
            it are rejected, never clamped.

    Example:
        settings = PaginationSettings()
        if limit > settings.max_limit:
            raise InvalidArgumentException(...)
    """

    default_limit: int = Field(
        default=200,
        ge=1,
        le=MAX_PAGE_SIZE,
        description="Default page size when first/last not specified",
    )
    max_limit: int = Field(
        default=MAX_PAGE_SIZE,
        ge=1,
        le=MAX_PAGE_SIZE,
        description="Maximum allowed page size; may be lowered, never raised above 200",
    )

    @model_validator(mode="after")
    def validate_default_within_max(self) -> PaginationSettings:
        """Ensure the default page size is itself a valid request."""
        if self.default_limit > self.max_limit:
            msg = "default_limit cannot exceed max_limit"
            raise ValueError(msg)
        return self

    model_config = SettingsConfigDict(
        env_prefix="PAGINATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
    )
