"""GraphQL error handling and production error masking.

Application errors (AppException subclasses) are expected failures: bad
arguments, unsupported requests, malformed cursors, provider rejections. They
are returned as-is with a machine-readable ``extensions.code``. Anything else
is an internal error, logged with its stack trace and masked in production.

Usage:
    schema = strawberry.Schema(
        query=Query,
        mutation=Mutation,
        extensions=[ErrorCodeExtension],
    )
"""

from __future__ import annotations

from datetime import UTC, datetime
import logging
import traceback
from typing import TYPE_CHECKING, Any

from graphql import GraphQLError
from strawberry.extensions import SchemaExtension

from identity_directory.core.exceptions import AppException
from identity_directory.core.settings import get_settings
from identity_directory.infra.identity.errors import IdentityProviderError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from strawberry.types import ExecutionContext

logger = logging.getLogger(__name__)

__all__ = [
    "ErrorCategory",
    "ErrorCodeExtension",
    "is_user_facing_error",
    "mask_internal_error",
    "process_graphql_errors",
]


# ============================================================================
# Error Categories
# ============================================================================


class ErrorCategory:
    """Codes for errors that do not come from an AppException."""

    VALIDATION = "GRAPHQL_VALIDATION_FAILED"
    INTERNAL = "INTERNAL_ERROR"


# ============================================================================
# Main Error Processing
# ============================================================================


def process_graphql_errors(
    errors: list[GraphQLError],
    execution_context: ExecutionContext | None = None,
) -> list[GraphQLError]:
    """Process GraphQL errors before returning to client.

    This function:
    1. Logs all errors with full details server-side
    2. Adds ``extensions.code`` to application errors
    3. Masks internal errors in production

    Args:
        errors: List of GraphQL errors from execution
        execution_context: Execution context with operation info

    Returns:
        Errors safe to return to the client
    """
    is_production = get_settings().environment == "production"
    processed: list[GraphQLError] = []

    for error in errors:
        log_error(error, execution_context)

        if is_user_facing_error(error):
            processed.append(_with_extensions(error, _app_extensions(error)))
        elif is_production:
            processed.append(mask_internal_error(error))
        else:
            extensions: dict[str, Any] = {"code": ErrorCategory.INTERNAL}
            if error.original_error is not None:
                extensions["debug"] = {
                    "exception_type": type(error.original_error).__name__,
                    "exception_message": str(error.original_error),
                }
            processed.append(_with_extensions(error, extensions))

    return processed


class ErrorCodeExtension(SchemaExtension):
    """Schema extension applying process_graphql_errors to every result."""

    def on_operation(self) -> Iterator[None]:
        yield
        result = self.execution_context.result
        if result is not None and result.errors:
            result.errors = process_graphql_errors(result.errors, self.execution_context)


# ============================================================================
# Error Classification
# ============================================================================


def is_user_facing_error(error: GraphQLError) -> bool:
    """Determine if error should be shown to user as-is.

    User-facing errors are:
    - Schema validation errors (no original exception)
    - Application errors with a 4xx status
    - Identity provider errors, whatever their status

    Configuration errors and unexpected exceptions are internal.
    """
    original = error.original_error
    if original is None:
        return True
    if isinstance(original, IdentityProviderError):
        return True
    return isinstance(original, AppException) and original.status_code < 500


def _app_extensions(error: GraphQLError) -> dict[str, Any]:
    original = error.original_error
    if not isinstance(original, AppException):
        return {"code": ErrorCategory.VALIDATION}
    extensions: dict[str, Any] = {"code": original.code, "status": original.status_code}
    if isinstance(original, IdentityProviderError):
        extensions["providerCode"] = original.provider_code
    return extensions


# ============================================================================
# Error Masking
# ============================================================================


def mask_internal_error(error: GraphQLError) -> GraphQLError:
    """Replace internal error details with a generic message.

    The error location and path are kept so clients can tell which field failed.
    """
    return GraphQLError(
        "An internal error occurred. Please try again later.",
        nodes=error.nodes,
        source=error.source,
        positions=error.positions,
        path=error.path,
        extensions={
            "code": ErrorCategory.INTERNAL,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )


def _with_extensions(error: GraphQLError, extensions: dict[str, Any]) -> GraphQLError:
    return GraphQLError(
        error.message,
        nodes=error.nodes,
        source=error.source,
        positions=error.positions,
        path=error.path,
        original_error=error.original_error,
        extensions={**(error.extensions or {}), **extensions},
    )


# ============================================================================
# Error Logging
# ============================================================================


def log_error(error: GraphQLError, execution_context: ExecutionContext | None) -> None:
    """Log error with full details for server-side debugging."""
    log_context: dict[str, Any] = {
        "error_message": error.message,
        "error_path": error.path,
    }

    if execution_context is not None:
        if execution_context.operation_name:
            log_context["operation_name"] = execution_context.operation_name
        context = execution_context.context
        tenant_id = getattr(context, "tenant_id", None)
        if tenant_id:
            log_context["tenant_id"] = tenant_id

    original = error.original_error
    if original is not None:
        log_context["exception_type"] = type(original).__name__
        log_context["exception_message"] = str(original)
        if isinstance(original, AppException):
            log_context["error_code"] = original.code

    if is_user_facing_error(error):
        logger.info("GraphQL user-facing error", extra=log_context)
    else:
        if original is not None:
            log_context["stack_trace"] = "".join(
                traceback.format_exception(type(original), original, original.__traceback__)
            )
        logger.error("GraphQL internal error", extra=log_context)
