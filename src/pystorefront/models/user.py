"""Authenticated user models."""

from __future__ import annotations

from pydantic import field_validator

from pystorefront.models._base import StorefrontModel


class User(StorefrontModel):
    """A console account as returned by ``/api/auth/me``."""

    id: int
    username: str
    full_name: str = ""
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role in {"admin", "superadmin"}


class AuthResponse(StorefrontModel):
    """Body of a successful ``/api/auth/login``."""

    token: str
    user: User

    @field_validator("token")
    @classmethod
    def _token_non_empty(cls, value: str) -> str:
        token = value.strip()
        if not token:
            raise ValueError("token must be non-empty")
        return token
