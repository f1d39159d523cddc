"""Identity provider errors.

The provider reports failures as an upper-case reason string inside a JSON
error body (``{"error": {"code": 400, "message": "USER_NOT_FOUND"}}``). These
are normalized to ``auth/...`` codes so callers can branch on a stable value
whichever backend produced the error.
"""

from __future__ import annotations

from typing import Any, Final

from identity_directory.core.exceptions import AppException

USER_NOT_FOUND: Final[str] = "auth/user-not-found"
ID_TOKEN_REVOKED: Final[str] = "auth/id-token-revoked"
SESSION_COOKIE_REVOKED: Final[str] = "auth/session-cookie-revoked"
USER_DISABLED: Final[str] = "auth/user-disabled"
INVALID_ID_TOKEN: Final[str] = "auth/invalid-id-token"
INVALID_SESSION_COOKIE: Final[str] = "auth/invalid-session-cookie"
UNKNOWN_ERROR: Final[str] = "auth/unknown-error"

_REASON_CODES: Final[dict[str, str]] = {
    "USER_NOT_FOUND": USER_NOT_FOUND,
    "EMAIL_NOT_FOUND": USER_NOT_FOUND,
    "DUPLICATE_LOCAL_ID": "auth/uid-already-exists",
    "DUPLICATE_EMAIL": "auth/email-already-exists",
    "EMAIL_EXISTS": "auth/email-already-exists",
    "PHONE_NUMBER_EXISTS": "auth/phone-number-already-exists",
    "INVALID_PASSWORD": "auth/wrong-password",
    "INVALID_LOGIN_CREDENTIALS": "auth/invalid-credential",
    "USER_DISABLED": USER_DISABLED,
    "INVALID_ID_TOKEN": INVALID_ID_TOKEN,
    "TOKEN_EXPIRED": "auth/id-token-expired",
    "INVALID_REFRESH_TOKEN": "auth/invalid-refresh-token",
    "INVALID_CUSTOM_TOKEN": "auth/invalid-custom-token",
    "INVALID_EMAIL": "auth/invalid-email",
    "INVALID_PHONE_NUMBER": "auth/invalid-phone-number",
    "WEAK_PASSWORD": "auth/invalid-password",
    "INVALID_DURATION": "auth/invalid-session-cookie-duration",
    "TENANT_NOT_FOUND": "auth/tenant-not-found",
    "PROJECT_NOT_FOUND": "auth/project-not-found",
    "CONFIGURATION_NOT_FOUND": "auth/configuration-not-found",
    "INSUFFICIENT_PERMISSION": "auth/insufficient-permission",
}


class IdentityProviderError(AppException):
    """An error reported by the identity provider.

    Raised unchanged through the directory, so ``code``, ``reason`` and
    ``status_code`` always describe what the provider said.

    Attributes:
        provider_code: Normalized ``auth/...`` code
        reason: Raw reason string from the provider, when there was one

    Example:
        raise IdentityProviderError(
            "There is no user record corresponding to the provided identifier.",
            provider_code="auth/user-not-found",
            status_code=404,
        )
    """

    def __init__(
        self,
        detail: str,
        *,
        provider_code: str = UNKNOWN_ERROR,
        reason: str | None = None,
        status_code: int = 502,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.provider_code = provider_code
        self.reason = reason
        final_extra = {"provider_code": provider_code}
        if reason:
            final_extra["reason"] = reason
        if extra:
            final_extra.update(extra)
        super().__init__(
            status_code=status_code,
            detail=detail,
            type="upstream-error",
            title="Identity Provider Error",
            extra=final_extra,
        )

    @property
    def is_not_found(self) -> bool:
        """Whether the provider reported a missing user."""
        return self.provider_code == USER_NOT_FOUND

    @classmethod
    def user_not_found(cls, **lookup: str) -> IdentityProviderError:
        """Error for a point lookup that matched no user."""
        return cls(
            "There is no user record corresponding to the provided identifier.",
            provider_code=USER_NOT_FOUND,
            reason="USER_NOT_FOUND",
            status_code=404,
            extra=dict(lookup),
        )

    @classmethod
    def from_response_body(cls, body: Any, status_code: int) -> IdentityProviderError:
        """Translate a provider error body, keeping its identifying fields."""
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            error = body["error"]
            message = str(error.get("message", ""))
            # Reasons may carry a suffix: "INVALID_ID_TOKEN : Token expired"
            reason = message.split(":", 1)[0].strip()
            return cls(
                message or f"Identity provider returned HTTP {status_code}",
                provider_code=_REASON_CODES.get(reason, UNKNOWN_ERROR),
                reason=reason or None,
                status_code=int(error.get("code", status_code)),
            )
        if isinstance(body, dict) and "error" in body:
            # OAuth/secure-token style: {"error": "invalid_grant", "error_description": "..."}
            reason = str(body["error"])
            return cls(
                str(body.get("error_description") or reason),
                provider_code=_REASON_CODES.get(reason.upper(), UNKNOWN_ERROR),
                reason=reason,
                status_code=status_code,
            )
        return cls(
            str(body) if body else f"Identity provider returned HTTP {status_code}",
            status_code=status_code,
        )


__all__ = [
    "ID_TOKEN_REVOKED",
    "INVALID_ID_TOKEN",
    "INVALID_SESSION_COOKIE",
    "SESSION_COOKIE_REVOKED",
    "USER_DISABLED",
    "USER_NOT_FOUND",
    "IdentityProviderError",
]
