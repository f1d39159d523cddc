"""Identity token operations (sign-in, refresh, verification, minting)."""

from __future__ import annotations

from .service import TokenService, parse_claims

__all__ = ["TokenService", "parse_claims"]
