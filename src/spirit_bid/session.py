"""In-process session store: bearer token and the signed-in user's display fields."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .config import settings

logger = logging.getLogger(__name__)


@dataclass
class SessionStore:
    """Read-only from the client core's point of view.

    Only the login/logout flow (outside the core) calls ``sign_in``/``sign_out``.
    """

    token: str | None = None
    username: str | None = None
    avatar_url: str | None = None
    email: str | None = None

    @classmethod
    def from_settings(cls) -> SessionStore:
        if not settings.session_enabled:
            return cls()
        logger.info("Session loaded for %s", settings.session_username)
        return cls(
            token=settings.session_token,
            username=settings.session_username,
            avatar_url=settings.session_avatar_url or None,
            email=settings.session_email or None,
        )

    def get_token(self) -> str | None:
        return self.token or None

    def get_username(self) -> str | None:
        return self.username or None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def sign_in(self, token: str, username: str, avatar_url: str | None = None, email: str | None = None) -> None:
        self.token = token
        self.username = username
        self.avatar_url = avatar_url
        self.email = email

    def sign_out(self) -> None:
        self.token = None
        self.username = None
        self.avatar_url = None
        self.email = None
