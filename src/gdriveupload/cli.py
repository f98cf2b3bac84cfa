"""Command-line entry point for gdriveupload."""

from __future__ import annotations

import argparse
import logging
import os
import signal
import sys
import time
from typing import Optional, Sequence

from gdriveupload.auth import CredentialManager
from gdriveupload.config import (
    MAX_PARALLEL,
    ConfigStore,
    ConflictPolicy,
    UploadOptions,
    default_worker_count,
    resolve_config_path,
)
from gdriveupload.controller import DriveClient
from gdriveupload.errors import GDriveUploadError, UploadAborted
from gdriveupload.manager import InputReport, UploadManager
from gdriveupload.util.ids import drive_link, is_drive_url
from gdriveupload.util.validation import is_valid_email, parse_speed

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_ABORTED = 130


def _parallel(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        n = 0
    if n <= 0:
        raise argparse.ArgumentTypeError(f"value ranges between 1 to {MAX_PARALLEL}")
    return min(n, MAX_PARALLEL)


def _retry(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        n = 0
    if n <= 0:
        raise argparse.ArgumentTypeError("only takes positive integers as arguments")
    return n


def _speed(value: str) -> int:
    try:
        return parse_speed(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _email(value: str) -> str:
    if not is_valid_email(value):
        raise argparse.ArgumentTypeError("Provided email address for share option is invalid")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gdriveupload",
        description="Upload files and folders to Google Drive.",
    )
    parser.add_argument(
        "inputs",
        nargs="*",
        metavar="INPUT",
        help="File/folder path or Drive URL. A trailing non-path argument names "
        "the folder to upload into (like -C).",
    )
    parser.add_argument("-C", "--create-dir", metavar="NAME", help="Upload into this folder under the root.")
    parser.add_argument(
        "-r",
        "--root-dir",
        metavar="ID_OR_URL",
        help="Destination root folder. Prefix with 'default=' to save it.",
    )
    parser.add_argument(
        "-s",
        "--skip-subdirs",
        action="store_true",
        help="Upload all files of a folder flat, without sub folders.",
    )
    parser.add_argument(
        "-p",
        "--parallel",
        nargs="?",
        const=default_worker_count(),
        type=_parallel,
        metavar="N",
        help=f"Upload N files in parallel (max {MAX_PARALLEL}, default: CPU count).",
    )
    parser.add_argument(
        "-f",
        "--file",
        "--folder",
        dest="extra_inputs",
        action="append",
        default=[],
        metavar="PATH",
        help="Add a file/folder input. Can be repeated.",
    )
    parser.add_argument(
        "-cl",
        "--clone",
        dest="clone_ids",
        action="append",
        default=[],
        metavar="ID_OR_URL",
        help="Copy a Drive file into the destination without downloading it.",
    )
    conflict = parser.add_mutually_exclusive_group()
    conflict.add_argument(
        "-o",
        "--overwrite",
        action="store_const",
        dest="policy",
        const=ConflictPolicy.OVERWRITE,
        help="Overwrite files with the same name.",
    )
    conflict.add_argument(
        "-d",
        "--skip-duplicates",
        action="store_const",
        dest="policy",
        const=ConflictPolicy.SKIP_IF_EXISTS,
        help="Do not upload files whose name already exists.",
    )
    parser.add_argument(
        "-S",
        "--share",
        nargs="?",
        const="",
        default=None,
        type=lambda v: v if v == "" else _email(v),
        metavar="EMAIL",
        help="Share the upload: reader access for EMAIL, or anyone with the link.",
    )
    parser.add_argument("--speed", type=_speed, help="Limit transfer speed: 1K, 1M or 1G.")
    parser.add_argument("-i", "--save-info", metavar="FILE", help="Save uploaded files info to FILE.")
    parser.add_argument(
        "-z",
        "--config",
        metavar="PATH",
        help="Use this config file. Prefix with 'default=' to save it.",
    )
    parser.add_argument(
        "-R",
        "--retry",
        type=_retry,
        default=1,
        metavar="N",
        help="Attempts per file upload before giving up.",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only show errors and results.")
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Show detailed messages.")
    parser.add_argument("-D", "--debug", action="store_true", help="Show debug messages with logger names.")
    return parser


def configure_logging(*, quiet: bool = False, verbose: bool = False, debug: bool = False) -> None:
    if debug:
        level = logging.DEBUG
        fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    else:
        level = logging.WARNING if quiet else logging.DEBUG if verbose else logging.INFO
        fmt = "%(levelname)s: %(message)s"
    logging.basicConfig(level=level, format=fmt, stream=sys.stderr, force=True)
    # Discovery/transport chatter is only useful with --debug.
    if not debug:
        logging.getLogger("googleapiclient").setLevel(logging.WARNING)


def split_inputs(
    inputs: Sequence[str],
    extra_inputs: Sequence[str],
    clone_ids: Sequence[str],
    create_dir: Optional[str],
) -> tuple[list[str], list[str], Optional[str]]:
    """
    Sort raw arguments into (paths, Drive IDs/URLs, workspace folder name).

    With two or more positionals, a last one that is neither an existing path
    nor a Drive URL names the workspace folder, unless -C was given.
    """
    positionals = list(inputs)
    workspace = create_dir
    if (
        len(positionals) >= 2
        and not os.path.exists(positionals[-1])
        and not is_drive_url(positionals[-1])
    ):
        folder_name = positionals.pop()
        workspace = workspace or folder_name

    paths: list[str] = []
    ids: list[str] = list(clone_ids)
    for value in positionals + list(extra_inputs):
        if is_drive_url(value):
            ids.append(value)
        else:
            paths.append(value)
    return paths, ids, workspace


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(quiet=args.quiet, verbose=args.verbose, debug=args.debug)

    paths, clone_ids, workspace = split_inputs(
        args.inputs, args.extra_inputs, args.clone_ids, args.create_dir
    )
    if not paths and not clone_ids and not workspace:
        print("No valid arguments provided, use -h/--help flag to see usage.")
        return EXIT_OK

    signal.signal(signal.SIGTERM, _raise_interrupt)
    started = time.monotonic()
    try:
        options = UploadOptions(
            parallel=args.parallel,
            policy=args.policy or ConflictPolicy.CREATE,
            retry_budget=args.retry,
            rate_limit=args.speed,
            skip_subdirs=args.skip_subdirs,
            share=args.share is not None,
            share_email=args.share or None,
            workspace_name=workspace,
            root_dir=args.root_dir,
            save_info=args.save_info,
        )
        store = ConfigStore(resolve_config_path(args.config))
        credential = CredentialManager(store).get_valid_access_credential()
        logger.info("Required credentials available.")

        client = DriveClient(credential, rate_limit=options.rate_limit)
        manager = UploadManager(client, options, store=store)
        reports = manager.run(paths, clone_ids)
    except (UploadAborted, KeyboardInterrupt):
        print("\n\nScript exited manually.", file=sys.stderr)
        _terminate(EXIT_ABORTED)
        return EXIT_ABORTED
    except GDriveUploadError as exc:
        logger.debug("Fatal error details: %s", exc.details, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        _terminate(EXIT_FATAL)
        return EXIT_FATAL

    if manager.workspace is not None and workspace:
        print(f"Workspace Folder: {manager.workspace.name} ({manager.workspace.file_id})")
    for report in reports:
        _print_report(report)

    elapsed = int(time.monotonic() - started)
    print(f"Time Elapsed: {elapsed // 60} minute(s) and {elapsed % 60} seconds")
    return EXIT_OK


def _print_report(report: InputReport) -> None:
    summary = report.summary
    if summary is None:
        print(f"{report.message}: {report.source}", file=sys.stderr)
        return

    if summary.success_count > 0 and summary.root_reference_id:
        shared = " (SHARED)" if report.shared else ""
        print(f"DriveLink{shared}: {drive_link(summary.root_reference_id)}")
    if summary.success_count > 0:
        print(f"Total Files Uploaded: {summary.success_count}")
    if summary.skipped_count > 0:
        print(f"Total Files Skipped: {summary.skipped_count}")
    if summary.error_count > 0:
        print(f"Total Files Failed: {summary.error_count}")


def _raise_interrupt(signum, frame) -> None:
    raise KeyboardInterrupt


def _terminate(code: int) -> None:
    """
    Exit at once with code.

    Worker threads still inside a transfer die with the process; a normal exit
    would join them first.
    """
    sys.stdout.flush()
    sys.stderr.flush()
    os._exit(code)


if __name__ == "__main__":
    sys.exit(main())
