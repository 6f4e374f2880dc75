"""Session context carrying the caller's API credentials."""

from dataclasses import dataclass
from typing import Dict, Optional

from ..utils.config import get_config


@dataclass(frozen=True)
class Session:
    """
    Credentials for the medicine API.

    Passed explicitly to whatever needs to authorize a request; obtaining
    the token (login, OTP, password reset) happens elsewhere.
    """

    token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def auth_headers(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    @classmethod
    def from_config(cls) -> "Session":
        """Build a session from the configured API token."""
        return cls(token=get_config().env.api_token)
