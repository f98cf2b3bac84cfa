"""Credential record persisted in the config file."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Mapping, Optional

CLIENT_ID_KEY = "CLIENT_ID"
CLIENT_SECRET_KEY = "CLIENT_SECRET"
REFRESH_TOKEN_KEY = "REFRESH_TOKEN"
ACCESS_TOKEN_KEY = "ACCESS_TOKEN"
ACCESS_TOKEN_EXPIRY_KEY = "ACCESS_TOKEN_EXPIRY"


@dataclass(slots=True, frozen=True)
class CredentialRecord:
    """
    Client identity plus refresh/access tokens.

    access_token_expiry is epoch seconds. A record is rotated (replaced by a
    new instance), never mutated in place.
    """

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    refresh_token: Optional[str] = None
    access_token: Optional[str] = None
    access_token_expiry: Optional[int] = None

    @classmethod
    def from_config(cls, record: Mapping[str, str]) -> "CredentialRecord":
        expiry_raw = (record.get(ACCESS_TOKEN_EXPIRY_KEY) or "").strip()
        expiry = int(expiry_raw) if expiry_raw.lstrip("-").isdigit() else None
        return cls(
            client_id=record.get(CLIENT_ID_KEY) or None,
            client_secret=record.get(CLIENT_SECRET_KEY) or None,
            refresh_token=record.get(REFRESH_TOKEN_KEY) or None,
            access_token=record.get(ACCESS_TOKEN_KEY) or None,
            access_token_expiry=expiry,
        )

    @property
    def has_client_identity(self) -> bool:
        return bool(self.client_id) and bool(self.client_secret)

    def access_token_valid(self, now: int, *, margin: int = 0) -> bool:
        """True if the access token is non-empty and expires after now + margin."""
        if not self.access_token or self.access_token_expiry is None:
            return False
        return self.access_token_expiry > now + margin

    def with_tokens(
        self,
        *,
        access_token: str,
        access_token_expiry: int,
        refresh_token: Optional[str] = None,
    ) -> "CredentialRecord":
        return replace(
            self,
            access_token=access_token,
            access_token_expiry=access_token_expiry,
            refresh_token=refresh_token or self.refresh_token,
        )

    def __repr__(self) -> str:
        # Secrets stay out of logs and tracebacks.
        return (
            f"CredentialRecord(client_id={self.client_id!r}, "
            f"has_refresh_token={bool(self.refresh_token)}, "
            f"has_access_token={bool(self.access_token)}, "
            f"access_token_expiry={self.access_token_expiry!r})"
        )
