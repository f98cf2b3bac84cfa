"""Token endpoint of the remote store (OAuth 2.0 via google-auth)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from gdriveupload.errors import AuthError
from gdriveupload.util.time import datetime_to_epoch

AUTH_URI: str = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URI: str = "https://oauth2.googleapis.com/token"
REDIRECT_URI: str = "http://localhost"
DEFAULT_SCOPES: tuple[str, ...] = ("https://www.googleapis.com/auth/drive",)


@dataclass(slots=True, frozen=True)
class TokenGrant:
    """Tokens returned by an exchange. refresh_token is only set by code exchange."""

    access_token: Optional[str]
    expiry: Optional[int]
    refresh_token: Optional[str] = None


class TokenEndpoint(Protocol):
    def authorization_url(self, client_id: str, client_secret: str) -> str: ...

    def exchange_auth_code(
        self, client_id: str, client_secret: str, code: str
    ) -> TokenGrant: ...

    def refresh(
        self, client_id: str, client_secret: str, refresh_token: str
    ) -> TokenGrant: ...


class GoogleTokenEndpoint:
    """Google OAuth endpoints for installed (desktop) clients."""

    def __init__(
        self,
        *,
        scopes: Optional[Sequence[str]] = None,
        redirect_uri: str = REDIRECT_URI,
    ) -> None:
        self._scopes = list(scopes) if scopes is not None else list(DEFAULT_SCOPES)
        self._redirect_uri = redirect_uri
        self._flow = None

    def authorization_url(self, client_id: str, client_secret: str) -> str:
        """
        Start an authorization-code flow and return the consent URL.

        The same flow (and its PKCE verifier) is reused by exchange_auth_code.
        """
        self._flow = self._new_flow(client_id, client_secret)
        url, _ = self._flow.authorization_url(
            access_type="offline",
            prompt="consent",
        )
        return url

    def exchange_auth_code(self, client_id: str, client_secret: str, code: str) -> TokenGrant:
        flow = self._flow or self._new_flow(client_id, client_secret)
        try:
            flow.fetch_token(code=code)
        except Exception as exc:
            raise AuthError("Authorization code exchange failed", cause=exc) from exc
        finally:
            self._flow = None

        creds = flow.credentials
        return TokenGrant(
            access_token=creds.token,
            expiry=datetime_to_epoch(creds.expiry) if creds.expiry else None,
            refresh_token=creds.refresh_token,
        )

    def refresh(self, client_id: str, client_secret: str, refresh_token: str) -> TokenGrant:
        try:
            from google.auth.transport.requests import Request
            from google.oauth2.credentials import Credentials
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "Google auth libraries are not available",
                details={"hint": "Install google-auth"},
                cause=exc,
            ) from exc

        creds = Credentials(
            token=None,
            refresh_token=refresh_token,
            token_uri=TOKEN_URI,
            client_id=client_id,
            client_secret=client_secret,
            scopes=self._scopes,
        )
        try:
            creds.refresh(Request())
        except Exception as exc:
            raise AuthError("Failed to refresh access token", cause=exc) from exc

        return TokenGrant(
            access_token=creds.token,
            expiry=datetime_to_epoch(creds.expiry) if creds.expiry else None,
        )

    def _new_flow(self, client_id: str, client_secret: str):
        try:
            from google_auth_oauthlib.flow import Flow
        except Exception as exc:  # pragma: no cover
            raise AuthError(
                "google-auth-oauthlib is not available",
                details={"hint": "Install google-auth-oauthlib"},
                cause=exc,
            ) from exc

        client_config = {
            "installed": {
                "client_id": client_id,
                "client_secret": client_secret,
                "auth_uri": AUTH_URI,
                "token_uri": TOKEN_URI,
                "redirect_uris": [self._redirect_uri],
            }
        }
        return Flow.from_client_config(
            client_config,
            scopes=self._scopes,
            redirect_uri=self._redirect_uri,
        )
