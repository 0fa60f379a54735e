"""Credential storage for the Willys session.

Holds the account identifier, secret and current CSRF token. The session
transport owns the single instance and mutates it only under its lock.
Secrets are excluded from repr and from :meth:`WillysCredentials.to_dict`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field


USERNAME_ENV = "WILLYS_USERNAME"
PASSWORD_ENV = "WILLYS_PASSWORD"


@dataclass
class WillysCredentials:
    """Credentials needed for authenticated Willys API calls.

    Attributes:
        username: Account identifier (email or personal number)
        password: Account password
        csrf_token: Current anti-forgery token, None until first fetched
    """

    username: str = ""
    password: str = field(default="", repr=False)
    csrf_token: str | None = field(default=None, repr=False)

    def is_valid(self) -> bool:
        """Check if a username/password pair is held for re-login."""
        return bool(self.username) and bool(self.password)

    def clear_token(self) -> None:
        self.csrf_token = None

    def to_dict(self) -> dict:
        """Convert to a dictionary safe for display (no secrets)."""
        return {
            "username": self.username,
            "has_password": bool(self.password),
            "has_csrf_token": bool(self.csrf_token),
        }

    @classmethod
    def from_env(cls) -> "WillysCredentials":
        """Create credentials from WILLYS_USERNAME / WILLYS_PASSWORD."""
        return cls(
            username=os.environ.get(USERNAME_ENV, ""),
            password=os.environ.get(PASSWORD_ENV, ""),
        )
