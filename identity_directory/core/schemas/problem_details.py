"""RFC 7807 Problem Details schema for error responses."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ProblemDetails(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs.

    Unknown members are allowed so exception context (``extra``) can be
    carried as extension members.

    See: https://datatracker.ietf.org/doc/html/rfc7807

    Example:
            return JSONResponse(
            status_code=502,
            content=ProblemDetails(
                type="upstream-error",
                title="Identity Provider Error",
                status=502,
                detail="Identity provider request failed",
                instance="/graphql"
            ).model_dump(exclude_none=True)
        )
    """

    type: str = Field(
        default="about:blank",
        min_length=1,
        max_length=200,
        description="URI reference identifying the problem type",
    )
    title: str = Field(
        min_length=1, max_length=200, description="Short, human-readable summary of the problem"
    )
    status: int = Field(ge=100, le=599, description="HTTP status code")
    detail: str | None = Field(
        default=None,
        description="Human-readable explanation specific to this occurrence",
    )
    instance: str | None = Field(
        default=None,
        max_length=500,
        description="URI reference identifying the specific occurrence",
    )
    code: str | None = Field(
        default=None,
        description="Machine-readable error code, shared with GraphQL error extensions",
    )

    model_config = ConfigDict(
        extra="allow",
        json_schema_extra={
            "example": {
                "type": "invalid-argument",
                "title": "Bad Request",
                "status": 400,
                "detail": "When supplied, first MUST be greater than or equal to 0",
                "instance": "/graphql",
                "code": "INVALID_ARGUMENT",
            }
        },
        str_strip_whitespace=True,
    )


__all__ = ["ProblemDetails"]
