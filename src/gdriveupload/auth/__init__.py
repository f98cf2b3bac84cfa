"""Public auth exports for gdriveupload."""

from __future__ import annotations

from .credential_manager import CredentialManager
from .credential_record import CredentialRecord
from .token_endpoint import GoogleTokenEndpoint, TokenEndpoint, TokenGrant

__all__ = [
    "CredentialManager",
    "CredentialRecord",
    "GoogleTokenEndpoint",
    "TokenEndpoint",
    "TokenGrant",
]
