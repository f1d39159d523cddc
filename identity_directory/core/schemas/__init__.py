"""Shared response schemas."""

from __future__ import annotations

from identity_directory.core.schemas.problem_details import ProblemDetails

__all__ = ["ProblemDetails"]
