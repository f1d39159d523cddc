"""In-memory identity backend for testing.

This module provides InMemoryIdentityBackend, a Protocol-based test double that
implements the IdentityBackend protocol without a network or a mocking library.

Key Features:
    - Protocol-compliant (implements IdentityBackend via structural subtyping)
    - Provider-like semantics: insertion-ordered listing with opaque page
      tokens, ``auth/user-not-found`` on lookup misses, uniqueness checks on
      id, email and phone number
    - Call recording so tests can assert which primitives were used
    - Registered ID tokens for the token verification paths

Usage:
    from identity_directory.infra.identity.testing import InMemoryIdentityBackend

    backend = InMemoryIdentityBackend.with_users(
        UserRecord(id="u1", email="a@example.com"),
        UserRecord(id="u2", email="b@example.com"),
    )
    page = await backend.list_users(1)
    assert page.next_page_token is not None
    assert backend.call_count("list_users") == 1

Pattern: Protocol-based test double (no mocking library needed)
"""

from __future__ import annotations

import base64
import json
import logging
import time
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode
import uuid

from identity_directory.infra.identity.errors import (
    ID_TOKEN_REVOKED,
    INVALID_ID_TOKEN,
    INVALID_SESSION_COOKIE,
    SESSION_COOKIE_REVOKED,
    IdentityProviderError,
)
from identity_directory.infra.identity.models import ListUsersPage, UserRecord

if TYPE_CHECKING:
    from typing import Self

logger = logging.getLogger(__name__)

_PAGE_TOKEN_PREFIX = "page:"


class InMemoryIdentityBackend:
    """Identity backend holding users in process memory.

    Attributes:
        project_id: Project reported in minted token claims
        calls: Recorded ``(method, args)`` pairs, in call order
    """

    def __init__(
        self,
        users: list[UserRecord] | None = None,
        project_id: str = "test-project",
        link_base_url: str = "https://identity.test/__/auth/action",
    ) -> None:
        self.project_id = project_id
        self.link_base_url = link_base_url
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.closed = False
        self._users: dict[str, UserRecord] = {}
        self._passwords: dict[str, str] = {}
        self._id_tokens: dict[str, dict[str, Any]] = {}
        self._session_cookies: dict[str, dict[str, Any]] = {}
        for user in users or []:
            self._users[user.id] = user

    @classmethod
    def with_users(cls, *users: UserRecord, **kwargs: Any) -> Self:
        """Create a backend pre-populated with ``users`` in listing order."""
        return cls(users=list(users), **kwargs)

    # ========================================================================
    # Test helpers
    # ========================================================================

    def call_count(self, method: str | None = None) -> int:
        """Number of recorded calls, optionally restricted to one method."""
        if method is None:
            return len(self.calls)
        return sum(1 for name, _ in self.calls if name == method)

    def reset_calls(self) -> None:
        self.calls.clear()

    @property
    def users(self) -> list[UserRecord]:
        """Stored users in listing order."""
        return list(self._users.values())

    def password_for(self, uid: str) -> str | None:
        return self._passwords.get(uid)

    def register_id_token(self, token: str, uid: str, **claims: Any) -> dict[str, Any]:
        """Make ``token`` verify as an ID token for ``uid``."""
        now = int(time.time())
        decoded = {
            "iss": f"https://securetoken.google.com/{self.project_id}",
            "aud": self.project_id,
            "auth_time": now,
            "iat": now,
            "exp": now + 3600,
            "sub": uid,
            "uid": uid,
            **claims,
        }
        self._id_tokens[token] = decoded
        return decoded

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))

    # ========================================================================
    # Point lookups
    # ========================================================================

    async def get_user(self, uid: str) -> UserRecord:
        self._record("get_user", uid)
        user = self._users.get(uid)
        if user is None:
            raise IdentityProviderError.user_not_found(uid=uid)
        return user

    async def get_user_by_email(self, email: str) -> UserRecord:
        self._record("get_user_by_email", email)
        for user in self._users.values():
            if user.email is not None and user.email.lower() == email.lower():
                return user
        raise IdentityProviderError.user_not_found(email=email)

    async def get_user_by_phone_number(self, phone_number: str) -> UserRecord:
        self._record("get_user_by_phone_number", phone_number)
        for user in self._users.values():
            if user.phone_number == phone_number:
                return user
        raise IdentityProviderError.user_not_found(phone_number=phone_number)

    # ========================================================================
    # Sequential listing
    # ========================================================================

    async def list_users(
        self,
        max_results: int,
        page_token: str | None = None,
    ) -> ListUsersPage:
        self._record("list_users", max_results, page_token)
        start = self._decode_page_token(page_token)
        users = list(self._users.values())
        batch = users[start : start + max_results]
        end = start + len(batch)
        next_token = self._encode_page_token(end) if end < len(users) else None
        return ListUsersPage(users=batch, next_page_token=next_token)

    @staticmethod
    def _encode_page_token(position: int) -> str:
        raw = f"{_PAGE_TOKEN_PREFIX}{position}".encode()
        return base64.urlsafe_b64encode(raw).decode("ascii")

    @staticmethod
    def _decode_page_token(page_token: str | None) -> int:
        if page_token is None:
            return 0
        try:
            raw = base64.urlsafe_b64decode(page_token.encode("ascii")).decode()
            if not raw.startswith(_PAGE_TOKEN_PREFIX):
                raise ValueError(raw)
            return int(raw.removeprefix(_PAGE_TOKEN_PREFIX))
        except ValueError as e:
            raise IdentityProviderError(
                "INVALID_PAGE_SELECTION",
                reason="INVALID_PAGE_SELECTION",
                status_code=400,
            ) from e

    # ========================================================================
    # Writes
    # ========================================================================

    async def create_user(self, uid: str | None, data: dict[str, Any]) -> UserRecord:
        self._record("create_user", uid, dict(data))
        uid = uid or uuid.uuid4().hex
        if uid in self._users:
            raise IdentityProviderError(
                "DUPLICATE_LOCAL_ID",
                provider_code="auth/uid-already-exists",
                reason="DUPLICATE_LOCAL_ID",
                status_code=400,
            )
        self._check_unique(uid, data)
        user = UserRecord(
            id=uid,
            email=data.get("email"),
            email_verified=data.get("emailVerified"),
            phone_number=data.get("phoneNumber"),
            disabled=bool(data.get("disabled", False)),
        )
        self._users[uid] = user
        if data.get("password"):
            self._passwords[uid] = data["password"]
        return user

    async def update_user(self, uid: str, data: dict[str, Any]) -> UserRecord:
        self._record("update_user", uid, dict(data))
        current = self._users.get(uid)
        if current is None:
            raise IdentityProviderError.user_not_found(uid=uid)
        self._check_unique(uid, data)
        changes: dict[str, Any] = {}
        if "email" in data:
            changes["email"] = data["email"]
        if "emailVerified" in data:
            changes["email_verified"] = data["emailVerified"]
        if "phoneNumber" in data:
            changes["phone_number"] = data["phoneNumber"]
        if "disabled" in data:
            changes["disabled"] = bool(data["disabled"])
        updated = current.model_copy(update=changes)
        self._users[uid] = updated
        if data.get("password"):
            self._passwords[uid] = data["password"]
        return updated

    async def delete_user(self, uid: str) -> None:
        self._record("delete_user", uid)
        if self._users.pop(uid, None) is None:
            raise IdentityProviderError.user_not_found(uid=uid)
        self._passwords.pop(uid, None)

    def _check_unique(self, uid: str, data: dict[str, Any]) -> None:
        for other in self._users.values():
            if other.id == uid:
                continue
            if data.get("email") and other.email == data["email"]:
                raise IdentityProviderError(
                    "EMAIL_EXISTS",
                    provider_code="auth/email-already-exists",
                    reason="EMAIL_EXISTS",
                    status_code=400,
                )
            if data.get("phoneNumber") and other.phone_number == data["phoneNumber"]:
                raise IdentityProviderError(
                    "PHONE_NUMBER_EXISTS",
                    provider_code="auth/phone-number-already-exists",
                    reason="PHONE_NUMBER_EXISTS",
                    status_code=400,
                )

    # ========================================================================
    # Tokens and action links
    # ========================================================================

    async def verify_id_token(
        self,
        id_token: str,
        check_revoked: bool = False,
    ) -> dict[str, Any]:
        self._record("verify_id_token", id_token, check_revoked)
        claims = self._id_tokens.get(id_token)
        if claims is None:
            raise IdentityProviderError(
                "Decoding ID token failed",
                provider_code=INVALID_ID_TOKEN,
                status_code=401,
            )
        if check_revoked:
            self._check_not_revoked(claims, ID_TOKEN_REVOKED)
        return dict(claims)

    async def verify_session_cookie(
        self,
        session_cookie: str,
        check_revoked: bool = False,
    ) -> dict[str, Any]:
        self._record("verify_session_cookie", session_cookie, check_revoked)
        claims = self._session_cookies.get(session_cookie)
        if claims is None:
            raise IdentityProviderError(
                "Decoding session cookie failed",
                provider_code=INVALID_SESSION_COOKIE,
                status_code=401,
            )
        if check_revoked:
            self._check_not_revoked(claims, SESSION_COOKIE_REVOKED)
        return dict(claims)

    def _check_not_revoked(self, claims: dict[str, Any], code: str) -> None:
        user = self._users.get(claims["uid"])
        if user is None:
            raise IdentityProviderError.user_not_found(uid=claims["uid"])
        if user.tokens_valid_after is not None and claims["auth_time"] < user.tokens_valid_after:
            raise IdentityProviderError(
                "The token has been revoked.",
                provider_code=code,
                status_code=401,
            )

    async def create_custom_token(
        self,
        uid: str,
        developer_claims: dict[str, Any] | None = None,
    ) -> str:
        self._record("create_custom_token", uid, developer_claims)
        payload = json.dumps({"uid": uid, "claims": developer_claims or {}}, sort_keys=True)
        return "custom." + base64.urlsafe_b64encode(payload.encode()).decode("ascii")

    async def create_session_cookie(self, id_token: str, expires_in: int) -> str:
        self._record("create_session_cookie", id_token, expires_in)
        claims = self._id_tokens.get(id_token)
        if claims is None:
            raise IdentityProviderError(
                "INVALID_ID_TOKEN",
                provider_code=INVALID_ID_TOKEN,
                reason="INVALID_ID_TOKEN",
                status_code=400,
            )
        cookie = f"session.{uuid.uuid4().hex}"
        self._session_cookies[cookie] = {
            **claims,
            "iss": f"https://session.firebase.google.com/{self.project_id}",
            "exp": int(time.time()) + expires_in,
        }
        return cookie

    async def revoke_refresh_tokens(self, uid: str) -> None:
        self._record("revoke_refresh_tokens", uid)
        user = self._users.get(uid)
        if user is None:
            raise IdentityProviderError.user_not_found(uid=uid)
        # validSince has one-second resolution; tokens from this second are revoked too
        self._users[uid] = user.model_copy(update={"tokens_valid_after": int(time.time()) + 1})

    async def generate_email_verification_link(self, email: str) -> str:
        self._record("generate_email_verification_link", email)
        return self._action_link("verifyEmail", email)

    async def generate_sign_in_with_email_link(self, email: str) -> str:
        self._record("generate_sign_in_with_email_link", email)
        return self._action_link("signIn", email)

    async def generate_password_reset_link(self, email: str) -> str:
        self._record("generate_password_reset_link", email)
        return self._action_link("resetPassword", email)

    def _action_link(self, mode: str, email: str) -> str:
        query = urlencode({"mode": mode, "oobCode": uuid.uuid4().hex, "email": email})
        return f"{self.link_base_url}?{query}"

    async def aclose(self) -> None:
        self.closed = True


__all__ = ["InMemoryIdentityBackend"]
