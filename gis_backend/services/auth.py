from __future__ import annotations

import hmac
import secrets
from dataclasses import dataclass
from typing import Optional, Protocol

from fastapi import Header, Request

from gis_backend.config.app_config import AppConfig
from gis_backend.services.errors import InvalidTokenError, MissingTokenError


@dataclass(frozen=True)
class Principal:
    username: str
    role: str = "admin"


class CredentialVerifier(Protocol):
    def verify(self, username: str, password: str) -> Optional[Principal]: ...


class TokenVerifier(Protocol):
    def issue(self, principal: Principal) -> str: ...

    def verify(self, token: str) -> Optional[Principal]: ...


class SingleAdminCredentials:
    """Placeholder verifier: one configured admin username/password pair."""

    def __init__(self, username: str, password: str):
        self._username = username
        self._password = password

    def verify(self, username: str, password: str) -> Optional[Principal]:
        if not self._password:
            return None
        user_ok = hmac.compare_digest(username.encode(), self._username.encode())
        pass_ok = hmac.compare_digest(password.encode(), self._password.encode())
        if user_ok and pass_ok:
            return Principal(username=self._username)
        return None


class StaticAdminToken:
    """Placeholder token verifier: a single opaque admin token."""

    def __init__(self, token: str, username: str):
        self._token = token
        self._principal = Principal(username=username)

    def issue(self, principal: Principal) -> str:
        return self._token

    def verify(self, token: str) -> Optional[Principal]:
        if token and hmac.compare_digest(token.encode(), self._token.encode()):
            return self._principal
        return None


@dataclass(frozen=True)
class AuthGate:
    mode: str
    credentials: CredentialVerifier
    tokens: TokenVerifier

    @classmethod
    def from_config(cls, cfg: AppConfig) -> "AuthGate":
        token = cfg.admin_token() or secrets.token_urlsafe(32)
        return cls(
            mode=cfg.auth_mode(),
            credentials=SingleAdminCredentials(cfg.admin_username(), cfg.admin_password()),
            tokens=StaticAdminToken(token, cfg.admin_username()),
        )

    @property
    def enabled(self) -> bool:
        return self.mode == "token"

    def login(self, username: str, password: str) -> Optional[str]:
        principal = self.credentials.verify(username or "", password or "")
        if principal is None:
            return None
        return self.tokens.issue(principal)

    def check(self, authorization: Optional[str]) -> Optional[Principal]:
        """
        Behavior:
        - mode=off   -> allow all (returns None)
        - mode=token -> require 'Authorization: Bearer <token>'
          missing -> 401, wrong -> 403
        """
        if not self.enabled:
            return None
        parts = (authorization or "").split(None, 1)
        token = parts[1].strip() if len(parts) == 2 and parts[0].lower() == "bearer" else ""
        if not token:
            raise MissingTokenError("Access denied. No token provided.")
        principal = self.tokens.verify(token)
        if principal is None:
            raise InvalidTokenError("Invalid token.")
        return principal


def require_admin(
    request: Request,
    authorization: str | None = Header(default=None),
) -> Optional[Principal]:
    return request.app.state.auth.check(authorization)


def validate_auth_config_on_startup(cfg: AppConfig) -> None:
    """Fail fast on invalid auth configuration."""
    mode = cfg.auth_mode()
    if mode not in ("off", "token"):
        raise RuntimeError(f"Unknown GIS_AUTH_MODE: {mode!r}")
    if mode == "token" and not cfg.admin_password():
        raise RuntimeError("GIS_ADMIN_PASSWORD must be set when GIS_AUTH_MODE=token")
