"""Google Drive API client (the remote store side of an upload run)."""

from __future__ import annotations

import json
import logging
import os
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

from gdriveupload.auth import CredentialRecord
from gdriveupload.errors import (
    ApiError,
    AuthError,
    GDriveUploadError,
    HttpErrorInfo,
    InvalidArgumentError,
    LocalFileError,
    NetworkError,
    is_transient,
    map_http_error,
)
from gdriveupload.models import FileInfo
from gdriveupload.util.mime import FOLDER_MIME
from gdriveupload.util.time import epoch_to_naive_utc

from .fields import FILE_FIELDS, ID_FIELDS, LIST_FIELDS
from .throttle import Throttle, chunk_size_for

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _RetryPolicy:
    max_retries: int = 3
    initial_delay_sec: float = 1.0


class DriveClient:
    """
    Drive v3 client.

    Notes:
        - Metadata requests (get/list/create folder/trash/share) are retried with
          exponential backoff on transient errors.
        - Content transfers (upload_new/update_content/copy) are attempted once;
          the caller owns their retry budget.
        - googleapiclient service objects are not thread-safe, so each worker
          thread builds its own from the shared access credential.
        - The credential carries no refresh token: an expired token surfaces as
          AuthError instead of a refresh from inside a worker.
    """

    def __init__(
        self,
        credential: CredentialRecord,
        *,
        supports_all_drives: bool = True,
        rate_limit: Optional[int] = None,
    ) -> None:
        if not credential.access_token:
            raise AuthError("DriveClient requires an access token")

        creds = _access_only_credentials(credential)
        self._init(
            service_factory=lambda: _build_service(creds),
            supports_all_drives=supports_all_drives,
            rate_limit=rate_limit,
        )

    @classmethod
    def from_service(
        cls,
        service: Any,
        *,
        supports_all_drives: bool = True,
        rate_limit: Optional[int] = None,
    ) -> "DriveClient":
        """Create client from a pre-built Drive service shared by all threads (tests)."""
        obj = cls.__new__(cls)
        obj._init(
            service_factory=lambda: service,
            supports_all_drives=supports_all_drives,
            rate_limit=rate_limit,
        )
        return obj

    def _init(
        self,
        *,
        service_factory: Callable[[], Any],
        supports_all_drives: bool,
        rate_limit: Optional[int],
    ) -> None:
        self._service_factory = service_factory
        self._supports_all_drives = supports_all_drives
        self._rate_limit = rate_limit
        self._chunk_size = chunk_size_for(rate_limit)
        self._retry_policy = _RetryPolicy()
        self._local = threading.local()

    # ----------------------------
    # Public API
    # ----------------------------
    def get_metadata(self, file_id: str, fields: str = FILE_FIELDS) -> FileInfo:
        req = self._service().files().get(
            fileId=file_id,
            fields=fields,
            **self._common_get_kwargs(),
        )
        data = self._execute(req.execute)
        return _file_dict_to_file_info(data)

    def create_folder(self, name: str, parent_id: str) -> FileInfo:
        body = {"name": name, "mimeType": FOLDER_MIME, "parents": [parent_id]}
        req = self._service().files().create(
            body=body,
            fields=FILE_FIELDS,
            **self._common_write_kwargs(),
        )
        data = self._execute(req.execute)
        return _file_dict_to_file_info(data)

    def list_children(
        self,
        parent_id: str,
        *,
        name: Optional[str] = None,
        folders_only: bool = False,
    ) -> list[FileInfo]:
        """List non-trashed children of parent_id, optionally filtered by exact name."""
        q = _build_children_query(parent_id, name=name, folders_only=folders_only)
        return self._find_by_query(q)

    def upload_new(
        self,
        local_path: str,
        parent_id: str,
        *,
        name: Optional[str] = None,
    ) -> FileInfo:
        filename = name if name is not None else os.path.basename(local_path)
        media = self._media(local_path)
        body = {"name": filename, "parents": [parent_id]}

        req = self._service().files().create(
            body=body,
            media_body=media,
            fields=FILE_FIELDS,
            **self._common_write_kwargs(),
        )
        data = self._transfer(req, media)
        return _file_dict_to_file_info(data)

    def update_content(self, file_id: str, local_path: str) -> FileInfo:
        """Replace the content of an existing file; the file ID is kept."""
        media = self._media(local_path)
        req = self._service().files().update(
            fileId=file_id,
            media_body=media,
            fields=FILE_FIELDS,
            **self._common_write_kwargs(),
        )
        data = self._transfer(req, media)
        return _file_dict_to_file_info(data)

    def copy(
        self,
        file_id: str,
        new_parent_id: str,
        *,
        new_name: Optional[str] = None,
    ) -> FileInfo:
        body: dict[str, Any] = {"parents": [new_parent_id]}
        if new_name is not None:
            body["name"] = new_name

        req = self._service().files().copy(
            fileId=file_id,
            body=body,
            fields=FILE_FIELDS,
            **self._common_write_kwargs(),
        )
        # A copy is a transfer: attempted once, like upload_new.
        try:
            data = req.execute()
        except Exception as exc:
            raise self._map_exception(exc) from exc
        return _file_dict_to_file_info(data)

    def trash(self, file_id: str) -> None:
        body = {"trashed": True}
        req = self._service().files().update(
            fileId=file_id,
            body=body,
            fields=ID_FIELDS,
            **self._common_write_kwargs(),
        )
        self._execute(req.execute)

    def share(self, file_id: str, email: Optional[str] = None) -> None:
        """Grant reader access to email, or to anyone with the link."""
        if email:
            body = {"role": "reader", "type": "user", "emailAddress": email}
        else:
            body = {"role": "reader", "type": "anyone"}

        req = self._service().permissions().create(
            fileId=file_id,
            body=body,
            fields=ID_FIELDS,
            **self._common_write_kwargs(),
        )
        self._execute(req.execute)

    # ----------------------------
    # Internals
    # ----------------------------
    def _service(self) -> Any:
        service = getattr(self._local, "service", None)
        if service is None:
            service = self._service_factory()
            self._local.service = service
        return service

    def _common_get_kwargs(self) -> dict[str, Any]:
        if not self._supports_all_drives:
            return {}
        return {"supportsAllDrives": True}

    def _common_list_kwargs(self) -> dict[str, Any]:
        if not self._supports_all_drives:
            return {}
        return {"supportsAllDrives": True, "includeItemsFromAllDrives": True}

    def _common_write_kwargs(self) -> dict[str, Any]:
        if not self._supports_all_drives:
            return {}
        return {"supportsAllDrives": True}

    def _find_by_query(self, q: str) -> list[FileInfo]:
        all_files: list[FileInfo] = []
        page_token: Optional[str] = None

        while True:
            req = self._service().files().list(
                q=q,
                fields=LIST_FIELDS,
                pageToken=page_token,
                **self._common_list_kwargs(),
            )
            data = self._execute(req.execute)
            for f in data.get("files", []):
                all_files.append(_file_dict_to_file_info(f))

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        return all_files

    def _media(self, local_path: str):
        if not local_path or not isinstance(local_path, str):
            raise InvalidArgumentError("local_path must be a non-empty string")

        try:
            from googleapiclient.http import MediaFileUpload
        except Exception as exc:  # pragma: no cover
            raise ApiError(
                "google-api-python-client is not available",
                cause=exc,
            ) from exc

        try:
            size = os.path.getsize(local_path)
            # Empty files cannot be sent as a resumable session.
            return MediaFileUpload(
                local_path,
                chunksize=self._chunk_size,
                resumable=size > 0,
            )
        except OSError as exc:
            raise LocalFileError(
                "Local file is not readable",
                details={"local_path": local_path},
                cause=exc,
            ) from exc

    def _transfer(self, req: Any, media: Any) -> dict[str, Any]:
        """Send a media request once, chunk by chunk, honoring the rate limit."""
        try:
            if not media.resumable():
                return req.execute()

            throttle = Throttle(self._rate_limit) if self._rate_limit else None
            response = None
            while response is None:
                status, response = req.next_chunk()
                if status is not None and throttle is not None:
                    throttle.consumed(status.resumable_progress)
                    logger.debug("Sent %s bytes", status.resumable_progress)
            return response
        except GDriveUploadError:
            raise
        except Exception as exc:
            raise self._map_exception(exc) from exc

    def _execute(self, func: Callable[[], T]) -> T:
        delay = self._retry_policy.initial_delay_sec
        for attempt in range(self._retry_policy.max_retries + 1):
            try:
                return func()
            except Exception as exc:
                mapped = self._map_exception(exc)
                if is_transient(mapped) and attempt < self._retry_policy.max_retries:
                    logger.debug(
                        "Transient Drive error (%s), retrying in %.1fs",
                        mapped,
                        delay,
                    )
                    time.sleep(delay)
                    delay *= 2
                    continue
                raise mapped from exc

        raise ApiError("Unexpected retry loop termination")

    def _map_exception(self, exc: Exception) -> GDriveUploadError:
        if isinstance(exc, GDriveUploadError):
            return exc

        try:
            from googleapiclient.errors import HttpError
        except Exception:  # pragma: no cover
            HttpError = None  # type: ignore[assignment]

        if HttpError is not None and isinstance(exc, HttpError):
            info = _http_error_to_info(exc)
            return map_http_error(info, cause=exc)

        try:
            from google.auth.exceptions import RefreshError, TransportError
        except Exception:  # pragma: no cover
            RefreshError = TransportError = None  # type: ignore[assignment,misc]

        if RefreshError is not None and isinstance(exc, RefreshError):
            return AuthError("Access token is no longer valid", cause=exc)
        if TransportError is not None and isinstance(exc, TransportError):
            return NetworkError("Network error", cause=exc)

        if isinstance(exc, (OSError, TimeoutError)):
            return NetworkError("Network error", cause=exc)

        return ApiError("Drive API error", cause=exc)


def _access_only_credentials(credential: CredentialRecord):
    try:
        from google.oauth2.credentials import Credentials
    except Exception as exc:  # pragma: no cover
        raise AuthError(
            "Google auth libraries are not available",
            details={"hint": "Install google-auth"},
            cause=exc,
        ) from exc

    expiry = None
    if credential.access_token_expiry is not None:
        expiry = epoch_to_naive_utc(credential.access_token_expiry)
    return Credentials(token=credential.access_token, expiry=expiry)


def _build_service(creds: Any) -> Any:
    try:
        from googleapiclient.discovery import build
    except Exception as exc:  # pragma: no cover
        raise ApiError(
            "google-api-python-client is not available",
            details={"hint": "Install google-api-python-client"},
            cause=exc,
        ) from exc

    try:
        return build("drive", "v3", credentials=creds, cache_discovery=False)
    except Exception as exc:
        raise AuthError("Failed to build Drive service", cause=exc) from exc


def _escape_query_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _build_children_query(
    parent_id: str,
    *,
    name: Optional[str],
    folders_only: bool,
) -> str:
    parts = [f"'{_escape_query_value(parent_id)}' in parents", "trashed=false"]
    if name is not None:
        parts.append(f"name='{_escape_query_value(name)}'")
    if folders_only:
        parts.append(f"mimeType='{FOLDER_MIME}'")
    return " and ".join(parts)


def _file_dict_to_file_info(data: dict[str, Any]) -> FileInfo:
    file_id = data.get("id")
    if not isinstance(file_id, str) or not file_id:
        raise ApiError("Drive response has no file id", details={"response": data})

    name = data.get("name", "")
    mime_type = data.get("mimeType", "")
    parents = data.get("parents", []) or []

    size = None
    if isinstance(data.get("size"), str) and data["size"].isdigit():
        size = int(data["size"])
    elif isinstance(data.get("size"), int):
        size = data["size"]

    md5 = data.get("md5Checksum")

    return FileInfo(
        file_id=file_id,
        name=name if isinstance(name, str) else "",
        mime_type=mime_type if isinstance(mime_type, str) else "",
        parents=list(parents) if isinstance(parents, list) else [],
        size=size,
        md5_checksum=md5 if isinstance(md5, str) else None,
    )


def _http_error_to_info(exc: Any) -> HttpErrorInfo:
    status_code = getattr(getattr(exc, "resp", None), "status", None)
    reason = getattr(getattr(exc, "resp", None), "reason", None)

    message = None
    details: dict[str, Any] = {}

    content = getattr(exc, "content", None)
    if isinstance(content, (bytes, bytearray)):
        try:
            payload = json.loads(content.decode("utf-8"))
        except (UnicodeDecodeError, ValueError):
            payload = None
        err = payload.get("error", {}) if isinstance(payload, dict) else {}
        if isinstance(err, dict):
            message = err.get("message") or None
            errors = err.get("errors") or []
            if errors and isinstance(errors, list) and isinstance(errors[0], dict):
                details["domain"] = errors[0].get("domain")
                details["reason_detail"] = errors[0].get("reason")
                if isinstance(errors[0].get("reason"), str):
                    reason = errors[0]["reason"]

    if not isinstance(status_code, int):
        status_code = 0

    return HttpErrorInfo(
        status_code=status_code,
        reason=reason if isinstance(reason, str) else None,
        message=message,
        details=details or None,
    )
