"""Command line interface for inspecting and bulk uploading lead spreadsheets."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .api import LeadAPIClient, error_message
from .config import ConfigurationError, UploaderSettings, resolve_settings
from .factory import build_client, build_upload_session
from .ingestion import UnsupportedFileTypeError, ensure_upload_file, export_error_details, write_template
from .models import InspectionResult, UploadResult
from .session import AuthorizationError
from .upload import Failed, SelectionError, UploadSession

LOGGER = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def build_parser(prog: Optional[str] = None) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=prog,
        description="Inspect and bulk upload lead spreadsheets to the lead management backend",
    )
    parser.add_argument(
        "--config",
        help="Path to the uploader configuration file (YAML or JSON)",
    )
    parser.add_argument("--api-url", help="Backend base URL, e.g. http://localhost:5000/api")
    parser.add_argument("--token", help="Bearer token used to authenticate against the backend")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level (e.g. DEBUG, INFO, WARNING)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    inspect_parser = commands.add_parser("inspect", help="Upload a spreadsheet for inspection only")
    inspect_parser.add_argument("file", help="Spreadsheet to inspect (.xlsx, .xls or .csv)")

    upload_parser = commands.add_parser("upload", help="Inspect a spreadsheet and import its leads")
    upload_parser.add_argument("file", help="Spreadsheet to upload (.xlsx, .xls or .csv)")
    upload_parser.add_argument("--source", help="Lead source label recorded on every imported lead")
    upload_parser.add_argument(
        "--sheet",
        dest="sheets",
        action="append",
        default=None,
        help="Worksheet to include (repeatable). Defaults to every worksheet.",
    )
    upload_parser.add_argument(
        "--errors-out",
        help="Write rejected rows to this CSV or Excel file",
    )
    upload_parser.add_argument(
        "--skip-role-check",
        action="store_true",
        help="Do not verify that the token belongs to a Super Admin before uploading",
    )

    template_parser = commands.add_parser("template", help="Write a blank lead upload template")
    template_parser.add_argument("output", help="Destination file (.csv or .xlsx)")
    template_parser.add_argument(
        "--no-sample",
        action="store_true",
        help="Write only the header row",
    )
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING))

    if args.command == "template":
        return _run_template(args)

    try:
        settings = resolve_settings(args.config, api_url=args.api_url, token=args.token)
        file_path = ensure_upload_file(args.file)
    except (ConfigurationError, UnsupportedFileTypeError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_USAGE

    with build_client(settings) as client:
        if args.command == "inspect":
            return _run_inspect(settings, client, file_path)
        return _run_upload(settings, client, file_path, args)


def _run_template(args: argparse.Namespace) -> int:
    try:
        path = write_template(args.output, include_sample=not args.no_sample)
    except UnsupportedFileTypeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_USAGE
    print(f"Template written to {path.resolve()}")
    return EXIT_OK


def _run_inspect(settings: UploaderSettings, client: LeadAPIClient, file_path: Path) -> int:
    session = build_upload_session(settings, client)
    try:
        if not session.select_file(file_path) or session.inspection is None:
            print(f"Error: {session.error}", file=sys.stderr)
            return EXIT_FAILURE
        print_inspection(session.inspection)
        print_preview(session, settings.preview_limit)
        return EXIT_OK
    finally:
        session.close()


def _run_upload(settings: UploaderSettings, client: LeadAPIClient, file_path: Path, args: argparse.Namespace) -> int:
    if not args.skip_role_check:
        try:
            user = client.get_current_user()
            client.session.set_user(user)
            client.session.require_super_admin()
        except AuthorizationError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return EXIT_FAILURE
        except Exception as exc:
            print(f"Error: {error_message(exc, 'Could not verify the current user.')}", file=sys.stderr)
            return EXIT_FAILURE

    session = build_upload_session(settings, client)
    try:
        if not session.select_file(file_path) or session.inspection is None:
            print(f"Error: {session.error}", file=sys.stderr)
            return EXIT_FAILURE
        print_inspection(session.inspection)

        try:
            apply_sheet_choice(session, args.sheets)
        except SelectionError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return EXIT_USAGE
        if args.source:
            session.source = args.source

        result = session.commit()
        if result is None:
            print(f"Error: {session.error}", file=sys.stderr)
            return EXIT_USAGE if not isinstance(session.state, Failed) else EXIT_FAILURE

        print_result(result)
        if args.errors_out and result.error_details:
            try:
                path = export_error_details(result, args.errors_out)
            except UnsupportedFileTypeError as exc:
                print(f"Error: {exc}", file=sys.stderr)
                return EXIT_USAGE
            print(f"Rejected rows written to {path.resolve()}")
        return EXIT_OK
    finally:
        session.close()


def apply_sheet_choice(session: UploadSession, sheets: Optional[List[str]]) -> None:
    """Restrict an Excel session to ``sheets``; ``None`` keeps every worksheet."""

    if not sheets:
        return
    if session.sheets is None:
        raise SelectionError("--sheet can only be used with Excel workbooks.")
    unknown = [name for name in sheets if name not in session.sheet_names]
    if unknown:
        raise SelectionError(
            f"Unknown worksheet(s): {', '.join(unknown)}. Available: {', '.join(session.sheet_names)}"
        )
    session.clear_all_sheets()
    for name in dict.fromkeys(sheets):
        session.toggle_sheet(name)


def print_inspection(inspection: InspectionResult) -> None:
    print(f"File: {inspection.original_name} ({inspection.size / 1024 / 1024:.2f} MB, {inspection.file_type.value})")
    if inspection.sheet_names:
        print(f"Worksheets: {', '.join(inspection.sheet_names)}")
    if not inspection.preview_available:
        print(inspection.preview_disabled_reason or "Preview disabled for this file. Data will still be processed on upload.")
    print(f"Upload token expires in {inspection.expires_in_ms / 1000:.0f}s")


def print_preview(session: UploadSession, limit: int = 10) -> None:
    rows = session.preview_rows(limit)
    if not rows:
        return
    print(f"Preview (first {limit} rows):")
    for sheet, row in rows:
        location = ", ".join(filter(None, [row.mandal, row.state]))
        parts = [row.display_name(), row.phone or "", location]
        prefix = f"[{sheet}] " if session.sheets is not None else ""
        print(f"  {prefix}{' | '.join(parts)}")


def print_result(result: UploadResult) -> None:
    print("Upload complete:")
    print(f"  Total:   {result.total}")
    print(f"  Success: {result.success}")
    print(f"  Errors:  {result.errors}")
    if result.duration_ms is not None:
        print(f"  Duration: {result.duration_ms / 1000:.1f}s")
    if result.sheets_processed:
        print(f"  Sheets processed: {', '.join(result.sheets_processed)}")
    if result.error_details:
        print("Rejected rows:")
        for detail in result.error_details:
            where = f"{detail.sheet} row {detail.row}" if detail.sheet else f"row {detail.row}"
            print(f"  - {where}: {detail.error}")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
