import io
import os
import signal
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest.mock import patch

from gdriveupload import cli
from gdriveupload.auth import CredentialRecord
from gdriveupload.config import ConflictPolicy, default_worker_count
from gdriveupload.errors import AuthError, UploadAborted
from gdriveupload.manager import InputReport
from gdriveupload.models import RunSummary


class TestParser(unittest.TestCase):
    def _parse(self, *argv: str):
        with redirect_stderr(io.StringIO()):
            return cli.build_parser().parse_args(list(argv))

    def test_parallel_is_capped(self) -> None:
        self.assertEqual(self._parse("-p", "20", "x").parallel, 10)
        self.assertEqual(self._parse("-p", "3", "x").parallel, 3)
        self.assertEqual(self._parse("x", "-p").parallel, default_worker_count())
        self.assertIsNone(self._parse("x").parallel)

    def test_parallel_must_be_positive(self) -> None:
        for value in ("0", "-2", "many"):
            with self.subTest(value=value):
                with self.assertRaises(SystemExit):
                    self._parse("-p", value, "x")

    def test_overwrite_and_skip_are_exclusive(self) -> None:
        with self.assertRaises(SystemExit):
            self._parse("-o", "-d", "x")

    def test_share_with_and_without_email(self) -> None:
        self.assertEqual(self._parse("x", "-S").share, "")
        self.assertEqual(self._parse("-S", "a@example.com", "x").share, "a@example.com")
        self.assertIsNone(self._parse("x").share)
        with self.assertRaises(SystemExit):
            self._parse("-S", "not-an-email", "x")

    def test_speed_and_retry(self) -> None:
        args = self._parse("--speed", "2M", "-R", "4", "x")
        self.assertEqual(args.speed, 2 * 1024 * 1024)
        self.assertEqual(args.retry, 4)
        with self.assertRaises(SystemExit):
            self._parse("--speed", "2MB", "x")
        with self.assertRaises(SystemExit):
            self._parse("-R", "0", "x")

    def test_repeated_inputs(self) -> None:
        args = self._parse("-f", "a", "--folder", "b", "-cl", "ID1", "-cl", "ID2")
        self.assertEqual(args.extra_inputs, ["a", "b"])
        self.assertEqual(args.clone_ids, ["ID1", "ID2"])


class TestSplitInputs(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.file = os.path.join(self._tmp.name, "a.txt")
        with open(self.file, "w", encoding="utf-8") as f:
            f.write("x")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_trailing_name_is_workspace(self) -> None:
        paths, ids, workspace = cli.split_inputs([self.file, "Inbox"], [], [], None)
        self.assertEqual(paths, [self.file])
        self.assertEqual(ids, [])
        self.assertEqual(workspace, "Inbox")

    def test_create_dir_option_wins(self) -> None:
        _, _, workspace = cli.split_inputs([self.file, "Inbox"], [], [], "Other")
        self.assertEqual(workspace, "Other")

    def test_single_missing_path_stays_an_input(self) -> None:
        paths, _, workspace = cli.split_inputs(["missing.txt"], [], [], None)
        self.assertEqual(paths, ["missing.txt"])
        self.assertIsNone(workspace)

    def test_drive_urls_become_clone_ids(self) -> None:
        url = "https://drive.google.com/file/d/ABC/view"
        paths, ids, _ = cli.split_inputs([self.file, url], ["other"], ["ID9"], None)
        self.assertEqual(paths, [self.file, "other"])
        self.assertEqual(ids, ["ID9", url])


class TestMain(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.conf = os.path.join(self._tmp.name, "googledrive.conf")
        self.file = os.path.join(self._tmp.name, "a.txt")
        with open(self.file, "w", encoding="utf-8") as f:
            f.write("x")

        previous = signal.getsignal(signal.SIGTERM)
        self.addCleanup(signal.signal, signal.SIGTERM, previous)

        patches = {
            "configure_logging": patch("gdriveupload.cli.configure_logging"),
            "resolve": patch("gdriveupload.cli.resolve_config_path", return_value=self.conf),
            "credentials": patch("gdriveupload.cli.CredentialManager"),
            "client": patch("gdriveupload.cli.DriveClient"),
            "manager": patch("gdriveupload.cli.UploadManager"),
        }
        self.mocks = {name: p.start() for name, p in patches.items()}
        for p in patches.values():
            self.addCleanup(p.stop)

        creds = self.mocks["credentials"].return_value
        creds.get_valid_access_credential.return_value = CredentialRecord(
            access_token="at", access_token_expiry=2_000_000_000
        )
        self.manager = self.mocks["manager"].return_value
        self.manager.workspace = None
        self.manager.run.return_value = [
            InputReport(
                source=self.file,
                kind="file",
                summary=RunSummary(success_count=1, root_reference_id="F1"),
                shared=True,
            )
        ]

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _main(self, *argv: str) -> tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = cli.main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_no_inputs(self) -> None:
        code, out, _ = self._main()
        self.assertEqual(code, 0)
        self.assertIn("No valid arguments provided", out)
        self.mocks["credentials"].assert_not_called()

    def test_successful_run(self) -> None:
        code, out, _ = self._main(self.file, "-p", "20", "-o", "-S", "--speed", "1M")

        self.assertEqual(code, 0)
        self.assertIn("DriveLink (SHARED): https://drive.google.com/open?id=F1", out)
        self.assertIn("Total Files Uploaded: 1", out)

        options = self.mocks["manager"].call_args.args[1]
        self.assertEqual(options.parallel, 10)
        self.assertEqual(options.policy, ConflictPolicy.OVERWRITE)
        self.assertTrue(options.share)
        self.assertIsNone(options.share_email)
        self.assertEqual(options.rate_limit, 1024 * 1024)
        self.assertEqual(self.mocks["client"].call_args.kwargs["rate_limit"], 1024 * 1024)
        self.manager.run.assert_called_once_with([self.file], [])

    def test_invalid_input_is_reported(self) -> None:
        self.manager.run.return_value = [
            InputReport(source="nope", kind="invalid", message="Invalid Input")
        ]
        code, _, err = self._main("nope")
        self.assertEqual(code, 0)
        self.assertIn("Invalid Input: nope", err)

    def test_fatal_error_exits_non_zero(self) -> None:
        creds = self.mocks["credentials"].return_value
        creds.get_valid_access_credential.side_effect = AuthError("no token")

        with patch("gdriveupload.cli.os._exit") as exit_:
            code, _, err = self._main(self.file)

        exit_.assert_called_once_with(1)
        self.assertEqual(code, 1)
        self.assertIn("Error: no token", err)
        self.manager.run.assert_not_called()

    def test_fatal_error_during_uploads_exits_without_joining_workers(self) -> None:
        self.manager.run.side_effect = AuthError("Access token is no longer valid")

        with patch("gdriveupload.cli.os._exit") as exit_:
            code, _, err = self._main(self.file, "-p", "4")

        exit_.assert_called_once_with(1)
        self.assertEqual(code, 1)
        self.assertIn("Error: Access token is no longer valid", err)

    def test_interrupt_exits_130(self) -> None:
        self.manager.run.side_effect = UploadAborted("Upload aborted manually")

        with patch("gdriveupload.cli.os._exit") as exit_:
            code, _, err = self._main(self.file)

        exit_.assert_called_once_with(130)
        self.assertEqual(code, 130)
        self.assertIn("Script exited manually.", err)


if __name__ == "__main__":
    unittest.main()
