"""Identity provider settings.

Environment variables use IDENTITY_ prefix.
Example: IDENTITY_PROJECT_ID=my-project, IDENTITY_API_KEY=AIza...
"""

from __future__ import annotations

from pathlib import Path

from pydantic import AliasChoices, Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Bounds the provider enforces on session cookie lifetimes
SESSION_COOKIE_MIN_SECONDS = 5 * 60
SESSION_COOKIE_MAX_SECONDS = 14 * 24 * 60 * 60


class IdentitySettings(BaseSettings):
    """Remote identity provider connection settings.

    Admin calls (listing, lookups, writes, session cookies) authenticate with
    service-account credentials, given either as a JSON key file or as the
    client email and private key. Public sign-in calls use the web API key.

    When an emulator host is configured, admin calls go to the emulator with
    the fixed ``owner`` bearer and no credentials are needed.
    """

    # Project and credentials
    project_id: str | None = Field(
        default=None,
        description="Provider project identifier (falls back to the key file's project_id)",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Web API key for public sign-in and token refresh endpoints",
    )
    credentials_file: Path | None = Field(
        default=None,
        description="Path to a service-account JSON key file",
    )
    client_email: str | None = Field(
        default=None,
        description="Service-account email (used when no key file is given)",
    )
    private_key: SecretStr | None = Field(
        default=None,
        description="Service-account PEM private key (used when no key file is given)",
    )
    emulator_host: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "emulator_host",
            "IDENTITY_EMULATOR_HOST",
            "FIREBASE_AUTH_EMULATOR_HOST",
        ),
        description="host:port of a local auth emulator",
    )

    # HTTP
    timeout: float = Field(
        default=10.0,
        gt=0,
        le=120.0,
        description="Request timeout in seconds for provider calls",
    )
    identity_toolkit_url: str = Field(
        default="https://identitytoolkit.googleapis.com",
        description="Base URL of the identity toolkit API",
    )
    secure_token_url: str = Field(
        default="https://securetoken.googleapis.com",
        description="Base URL of the secure token (refresh) API",
    )
    oauth_token_url: str = Field(
        default="https://oauth2.googleapis.com/token",
        description="OAuth2 token endpoint for service-account access tokens",
    )
    id_token_certs_url: str = Field(
        default="https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com",
        description="X.509 certificates used to sign ID tokens",
    )
    session_cookie_certs_url: str = Field(
        default="https://www.googleapis.com/identitytoolkit/v3/relyingparty/publicKeys",
        description="X.509 certificates used to sign session cookies",
    )

    # Multi-tenancy
    tenant_header: str = Field(
        default="X-Tenant-ID",
        min_length=1,
        description="Request header carrying the tenant key",
    )
    default_tenant_id: str | None = Field(
        default=None,
        description="Tenant used when a request carries no tenant header",
    )
    client_cache_max_entries: int = Field(
        default=64,
        ge=1,
        le=10_000,
        description="Maximum number of per-tenant client bundles kept alive",
    )
    client_cache_ttl_seconds: float = Field(
        default=3600.0,
        gt=0,
        description="Seconds a per-tenant client bundle lives before it is rebuilt",
    )

    # Token helpers
    session_cookie_expires_in: int = Field(
        default=5 * 24 * 60 * 60,
        ge=SESSION_COOKIE_MIN_SECONDS,
        le=SESSION_COOKIE_MAX_SECONDS,
        description="Default session cookie lifetime in seconds",
    )
    action_code_continue_url: str | None = Field(
        default=None,
        description="Continue URL embedded in generated email action links",
    )

    @model_validator(mode="after")
    def validate_credentials_pair(self) -> IdentitySettings:
        """Inline credentials need both the email and the key."""
        if (self.client_email is None) != (self.private_key is None):
            msg = "client_email and private_key must be configured together"
            raise ValueError(msg)
        return self

    @property
    def emulator_enabled(self) -> bool:
        """Whether admin calls target a local emulator."""
        return bool(self.emulator_host)

    @property
    def toolkit_base_url(self) -> str:
        """Identity toolkit base URL, rewritten for the emulator when enabled."""
        if self.emulator_enabled:
            return f"http://{self.emulator_host}/identitytoolkit.googleapis.com"
        return self.identity_toolkit_url.rstrip("/")

    @property
    def secure_token_base_url(self) -> str:
        """Secure token base URL, rewritten for the emulator when enabled."""
        if self.emulator_enabled:
            return f"http://{self.emulator_host}/securetoken.googleapis.com"
        return self.secure_token_url.rstrip("/")

    model_config = SettingsConfigDict(
        env_prefix="IDENTITY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        env_ignore_empty=True,
    )
