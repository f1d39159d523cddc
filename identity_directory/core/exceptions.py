"""Custom exception classes for the application."""

from __future__ import annotations

from typing import Any


class AppException(Exception):
    """Base application exception.

    All custom exceptions should inherit from this class.
    Follows RFC 7807 Problem Details for HTTP APIs.

    Attributes:
        status_code: HTTP status code for the error.
        detail: Human-readable error message.
        type: Error type identifier (used in RFC 7807 problem details).
        title: Short, human-readable summary of the problem type.
        instance: URI reference that identifies the specific occurrence of the problem.
        extra: Additional context-specific information about the error.

    Example:
            raise AppException(
            status_code=400,
            detail="first MUST be greater than or equal to 0",
            type="invalid-argument",
            extra={"first": -1}
        )
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        type: str = "about:blank",
        title: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application exception.

        Args:
            status_code: HTTP status code.
            detail: Human-readable error message.
            type: Error type identifier.
            title: Short summary of the problem type.
            instance: URI reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        self.status_code = status_code
        self.detail = detail
        self.type = type
        self.title = title or self._default_title(status_code)
        self.instance = instance
        self.extra = extra or {}
        super().__init__(detail)

    @staticmethod
    def _default_title(status_code: int) -> str:
        """Get default title for HTTP status code.

        Args:
            status_code: HTTP status code.

        Returns:
            Human-readable title for the status code.
        """
        titles = {
            400: "Bad Request",
            401: "Unauthorized",
            403: "Forbidden",
            404: "Not Found",
            409: "Conflict",
            422: "Unprocessable Entity",
            429: "Too Many Requests",
            500: "Internal Server Error",
            502: "Bad Gateway",
            503: "Service Unavailable",
            504: "Gateway Timeout",
        }
        return titles.get(status_code, "Error")

    @property
    def code(self) -> str:
        """Machine-readable error code exposed to GraphQL clients."""
        return self.type.upper().replace("-", "_")


class InvalidArgumentException(AppException):
    """Exception raised when a request argument has an invalid value.

    Example:
            raise InvalidArgumentException(
            detail="The maximum number of records that can be requested is 200. Received 250",
            extra={"requested": 250, "maximum": 200}
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "invalid-argument",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize invalid argument exception.

        Args:
            detail: Human-readable error message.
            type: Error type identifier.
            instance: URI reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        super().__init__(
            status_code=400,
            detail=detail,
            type=type,
            title="Invalid Argument",
            instance=instance,
            extra=extra,
        )


class UnsupportedOperationException(AppException):
    """Exception raised for requests the identity provider cannot satisfy.

    The provider offers sequential listing and point lookups only, so
    ordering, backward traversal and non-equality filters are rejected.

    Example:
            raise UnsupportedOperationException(
            detail="User listing does not support ordering",
            extra={"order": ["email"]}
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "unsupported",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize unsupported operation exception.

        Args:
            detail: Human-readable error message.
            type: Error type identifier.
            instance: URI reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        super().__init__(
            status_code=400,
            detail=detail,
            type=type,
            title="Unsupported Operation",
            instance=instance,
            extra=extra,
        )


class MalformedCursorException(AppException):
    """Exception raised when a pagination cursor cannot be decoded.

    Example:
            raise MalformedCursorException(
            detail="Invalid cursor: Incorrect padding",
            extra={"cursor": "not-a-cursor"}
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "malformed-cursor",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize malformed cursor exception.

        Args:
            detail: Human-readable error message.
            type: Error type identifier.
            instance: URI reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        super().__init__(
            status_code=400,
            detail=detail,
            type=type,
            title="Malformed Cursor",
            instance=instance,
            extra=extra,
        )


class ConfigurationError(AppException):
    """Exception raised when a required setting is missing.

    Example:
            raise ConfigurationError(
            detail="No API key available. Unable to generate an ID token",
            extra={"setting": "IDENTITY_API_KEY"}
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "configuration-error",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=500,
            detail=detail,
            type=type,
            title="Internal Server Error",
            instance=instance,
            extra=extra,
        )


__all__ = [
    "AppException",
    "ConfigurationError",
    "InvalidArgumentException",
    "MalformedCursorException",
    "UnsupportedOperationException",
]
