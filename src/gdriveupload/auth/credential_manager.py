"""Credential lifecycle: load, complete, exchange, refresh, persist."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from gdriveupload.config.store import ConfigStore
from gdriveupload.errors import AuthError
from gdriveupload.util.time import now_epoch

from .credential_record import (
    ACCESS_TOKEN_EXPIRY_KEY,
    ACCESS_TOKEN_KEY,
    CLIENT_ID_KEY,
    CLIENT_SECRET_KEY,
    REFRESH_TOKEN_KEY,
    CredentialRecord,
)
from .token_endpoint import GoogleTokenEndpoint, TokenEndpoint, TokenGrant

logger = logging.getLogger(__name__)

Prompt = Callable[[str], str]

# google-auth treats a token as expired 3 min 45 s before its expiry and then
# tries a refresh, which an access-only worker credential cannot do. Refresh
# well inside that window so workers start with a token google-auth accepts.
EXPIRY_MARGIN_SEC: int = 300

_MAX_PROMPTS: int = 3


class CredentialManager:
    """
    Owns the CredentialRecord stored in a ConfigStore.

    get_valid_access_credential() is the only entry point other components use;
    it returns a record whose access token is non-empty and unexpired.
    """

    def __init__(
        self,
        store: ConfigStore,
        *,
        endpoint: Optional[TokenEndpoint] = None,
        prompt: Optional[Prompt] = None,
        clock: Callable[[], int] = now_epoch,
    ) -> None:
        self._store = store
        self._endpoint = endpoint if endpoint is not None else GoogleTokenEndpoint()
        self._prompt = prompt if prompt is not None else input
        self._clock = clock

    def get_valid_access_credential(self) -> CredentialRecord:
        """
        Return a credential with a valid access token.

        Raises:
            AuthError: if any exchange returns no usable token, or required
                input cannot be obtained.
        """
        record = CredentialRecord.from_config(self._store.load())
        record = self._ensure_client_identity(record)

        if not record.refresh_token:
            record = self._obtain_refresh_token(record)

        if not record.access_token_valid(self._clock(), margin=EXPIRY_MARGIN_SEC):
            logger.info("Access token missing or expired, refreshing")
            record = self._refresh(record)

        return record

    # ----------------------------
    # Internals
    # ----------------------------
    def _ensure_client_identity(self, record: CredentialRecord) -> CredentialRecord:
        if record.has_client_identity:
            return record

        client_id = record.client_id or self._ask("Client ID: ")
        client_secret = record.client_secret or self._ask("Client Secret: ")

        if client_id != record.client_id or client_secret != record.client_secret:
            self._store.update_many(
                {CLIENT_ID_KEY: client_id, CLIENT_SECRET_KEY: client_secret}
            )
        return CredentialRecord(
            client_id=client_id,
            client_secret=client_secret,
            refresh_token=record.refresh_token,
            access_token=record.access_token,
            access_token_expiry=record.access_token_expiry,
        )

    def _obtain_refresh_token(self, record: CredentialRecord) -> CredentialRecord:
        try:
            typed = self._prompt(
                "If you have a refresh token generated, then type the token, "
                "else leave blank and press return key..\n\nRefresh Token: "
            ).strip()
        except EOFError as exc:
            raise AuthError("No input available for credential setup", cause=exc) from exc
        if typed:
            # Validate the typed token with a refresh before persisting it.
            refreshed = self._refresh(
                CredentialRecord(
                    client_id=record.client_id,
                    client_secret=record.client_secret,
                    refresh_token=typed,
                )
            )
            self._store.update(REFRESH_TOKEN_KEY, typed)
            return refreshed

        url = self._endpoint.authorization_url(record.client_id, record.client_secret)
        code = self._ask(
            "\nVisit the below URL, tap on allow and then enter the code obtained:\n"
            f"{url}\nEnter the authorization code: "
        )
        grant = self._endpoint.exchange_auth_code(
            record.client_id, record.client_secret, code
        )
        if not grant.refresh_token:
            raise AuthError("Authorization code exchange returned no refresh token")

        self._store.update(REFRESH_TOKEN_KEY, grant.refresh_token)
        updated = CredentialRecord(
            client_id=record.client_id,
            client_secret=record.client_secret,
            refresh_token=grant.refresh_token,
        )
        if _usable(grant):
            return self._persist_access(updated, grant)
        return updated

    def _refresh(self, record: CredentialRecord) -> CredentialRecord:
        grant = self._endpoint.refresh(
            record.client_id, record.client_secret, record.refresh_token
        )
        if not _usable(grant):
            raise AuthError("Token refresh returned no usable access token")
        return self._persist_access(record, grant)

    def _persist_access(self, record: CredentialRecord, grant: TokenGrant) -> CredentialRecord:
        self._store.update_many(
            {
                ACCESS_TOKEN_KEY: grant.access_token,
                ACCESS_TOKEN_EXPIRY_KEY: str(grant.expiry),
            }
        )
        logger.debug("Access token valid until %s", grant.expiry)
        return record.with_tokens(
            access_token=grant.access_token,
            access_token_expiry=grant.expiry,
        )

    def _ask(self, message: str) -> str:
        for _ in range(_MAX_PROMPTS):
            try:
                value = self._prompt(message).strip()
            except EOFError as exc:
                raise AuthError("No input available for credential setup", cause=exc) from exc
            if value:
                return value
        raise AuthError("Required credential input was not provided")


def _usable(grant: TokenGrant) -> bool:
    return bool(grant.access_token) and grant.expiry is not None
