import json
import os
import tempfile
import unittest
from unittest.mock import Mock, patch

from gdriveupload.auth import CredentialRecord
from gdriveupload.auth.credential_manager import EXPIRY_MARGIN_SEC
from gdriveupload.controller.drive_client import (
    DriveClient,
    _access_only_credentials,
    _file_dict_to_file_info,
)
from gdriveupload.errors import (
    ApiError,
    AuthError,
    LocalFileError,
    NotFoundError,
    QuotaExceededError,
)
from gdriveupload.util.mime import FOLDER_MIME
from gdriveupload.util.time import now_epoch


def _http_error(status: int, reason: str = "", payload: dict | None = None):
    from googleapiclient.errors import HttpError

    resp = Mock()
    resp.status = status
    resp.reason = reason
    content = json.dumps(payload or {}).encode("utf-8")
    return HttpError(resp=resp, content=content)


class TestDriveClientHelpers(unittest.TestCase):
    def test_file_dict_to_file_info(self) -> None:
        info = _file_dict_to_file_info(
            {
                "id": "F1",
                "name": "n.txt",
                "mimeType": "text/plain",
                "parents": ["P1"],
                "size": "123",
                "md5Checksum": "abc",
            }
        )
        self.assertEqual(info.file_id, "F1")
        self.assertEqual(info.parents, ["P1"])
        self.assertEqual(info.size, 123)
        self.assertEqual(info.md5_checksum, "abc")

    def test_file_dict_without_id_is_api_error(self) -> None:
        with self.assertRaises(ApiError):
            _file_dict_to_file_info({"name": "x"})

    def test_requires_access_token(self) -> None:
        with self.assertRaises(AuthError):
            DriveClient(CredentialRecord(client_id="cid", refresh_token="rt"))

    def test_token_kept_by_credential_manager_is_valid_for_google_auth(self) -> None:
        kept = CredentialRecord(
            access_token="at", access_token_expiry=now_epoch() + EXPIRY_MARGIN_SEC + 1
        )
        creds = _access_only_credentials(kept)
        self.assertTrue(creds.valid)

        stale = CredentialRecord(access_token="at", access_token_expiry=now_epoch() + 120)
        self.assertFalse(_access_only_credentials(stale).valid)


class TestDriveClientMocked(unittest.TestCase):
    def setUp(self) -> None:
        self.service = Mock()
        self.files = Mock()
        self.service.files.return_value = self.files
        self.client = DriveClient.from_service(self.service)

        self._tmp = tempfile.TemporaryDirectory()
        self.empty_file = os.path.join(self._tmp.name, "empty.txt")
        with open(self.empty_file, "wb"):
            pass
        self.data_file = os.path.join(self._tmp.name, "data.bin")
        with open(self.data_file, "wb") as f:
            f.write(b"x" * 1024)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_list_children_builds_escaped_query(self) -> None:
        req = Mock()
        req.execute.return_value = {"files": []}
        self.files.list.return_value = req

        self.client.list_children("P1", name="it's", folders_only=True)

        kwargs = self.files.list.call_args.kwargs
        self.assertEqual(
            kwargs["q"],
            f"'P1' in parents and trashed=false and name='it\\'s' and mimeType='{FOLDER_MIME}'",
        )
        self.assertTrue(kwargs.get("supportsAllDrives"))
        self.assertTrue(kwargs.get("includeItemsFromAllDrives"))

    def test_list_children_follows_pages(self) -> None:
        req = Mock()
        req.execute.side_effect = [
            {"files": [{"id": "A", "name": "a"}], "nextPageToken": "T2"},
            {"files": [{"id": "B", "name": "b"}]},
        ]
        self.files.list.return_value = req

        result = self.client.list_children("P1")

        self.assertEqual([f.file_id for f in result], ["A", "B"])
        self.assertEqual(self.files.list.call_args_list[1].kwargs["pageToken"], "T2")

    def test_get_metadata_maps_404_to_not_found(self) -> None:
        req = Mock()
        req.execute.side_effect = _http_error(404, "Not Found")
        self.files.get.return_value = req

        with self.assertRaises(NotFoundError):
            self.client.get_metadata("X")

    @patch("gdriveupload.controller.drive_client.time.sleep")
    def test_metadata_calls_retry_on_rate_limit(self, sleep: Mock) -> None:
        req = Mock()
        req.execute.side_effect = [
            _http_error(429, "Too Many Requests"),
            {"id": "F1", "name": "root", "mimeType": FOLDER_MIME},
        ]
        self.files.get.return_value = req

        info = self.client.get_metadata("F1")

        self.assertEqual(info.file_id, "F1")
        self.assertEqual(req.execute.call_count, 2)
        sleep.assert_called_once_with(1.0)

    @patch("gdriveupload.controller.drive_client.time.sleep")
    def test_storage_quota_is_not_retried(self, sleep: Mock) -> None:
        req = Mock()
        req.execute.side_effect = _http_error(
            403,
            "Forbidden",
            {"error": {"message": "full", "errors": [{"reason": "storageQuotaExceeded"}]}},
        )
        self.files.create.return_value = req

        with self.assertRaises(QuotaExceededError):
            self.client.create_folder("docs", "P1")
        self.assertEqual(req.execute.call_count, 1)
        sleep.assert_not_called()

    def test_create_folder_body(self) -> None:
        req = Mock()
        req.execute.return_value = {"id": "D1", "name": "docs", "mimeType": FOLDER_MIME}
        self.files.create.return_value = req

        info = self.client.create_folder("docs", "P1")

        self.assertEqual(info.file_id, "D1")
        body = self.files.create.call_args.kwargs["body"]
        self.assertEqual(body, {"name": "docs", "mimeType": FOLDER_MIME, "parents": ["P1"]})

    @patch("gdriveupload.controller.drive_client.time.sleep")
    def test_content_transfer_is_attempted_once(self, sleep: Mock) -> None:
        req = Mock()
        req.execute.side_effect = _http_error(503, "Service Unavailable")
        self.files.create.return_value = req

        with self.assertRaises(ApiError):
            self.client.upload_new(self.empty_file, "P1")
        self.assertEqual(req.execute.call_count, 1)
        sleep.assert_not_called()

    def test_upload_new_sends_chunks(self) -> None:
        req = Mock()
        progress = Mock()
        progress.resumable_progress = 512
        req.next_chunk.side_effect = [
            (progress, None),
            (None, {"id": "N1", "name": "data.bin", "mimeType": "application/octet-stream"}),
        ]
        self.files.create.return_value = req

        info = self.client.upload_new(self.data_file, "P1")

        self.assertEqual(info.file_id, "N1")
        self.assertEqual(req.next_chunk.call_count, 2)
        body = self.files.create.call_args.kwargs["body"]
        self.assertEqual(body, {"name": "data.bin", "parents": ["P1"]})

    def test_update_content_keeps_file_id(self) -> None:
        req = Mock()
        req.execute.return_value = {"id": "E1", "name": "empty.txt"}
        self.files.update.return_value = req

        info = self.client.update_content("E1", self.empty_file)

        self.assertEqual(info.file_id, "E1")
        self.assertEqual(self.files.update.call_args.kwargs["fileId"], "E1")

    def test_missing_local_file_is_local_file_error(self) -> None:
        with self.assertRaises(LocalFileError):
            self.client.upload_new(os.path.join(self._tmp.name, "gone.txt"), "P1")
        self.files.create.assert_not_called()

    def test_copy_and_trash(self) -> None:
        req = Mock()
        req.execute.return_value = {"id": "C1", "name": "copy"}
        self.files.copy.return_value = req
        self.files.update.return_value = req

        info = self.client.copy("S1", "P1", new_name="copy")
        self.client.trash("OLD")

        self.assertEqual(info.file_id, "C1")
        self.assertEqual(
            self.files.copy.call_args.kwargs["body"], {"parents": ["P1"], "name": "copy"}
        )
        self.assertEqual(self.files.update.call_args.kwargs["body"], {"trashed": True})

    def test_share_with_email_and_anyone(self) -> None:
        permissions = Mock()
        self.service.permissions.return_value = permissions
        permissions.create.return_value.execute.return_value = {"id": "perm"}

        self.client.share("F1", "a@example.com")
        self.client.share("F2")

        first, second = permissions.create.call_args_list
        self.assertEqual(
            first.kwargs["body"],
            {"role": "reader", "type": "user", "emailAddress": "a@example.com"},
        )
        self.assertEqual(second.kwargs["body"], {"role": "reader", "type": "anyone"})
        self.assertEqual(second.kwargs["fileId"], "F2")


if __name__ == "__main__":
    unittest.main()
