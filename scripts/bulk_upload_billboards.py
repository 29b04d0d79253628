"""
Bulk upload billboards from a CSV or Excel file, without the web UI.

Runs the same preview as the API and, with --commit, inserts the records
using the service role key.

Usage:
    # Preview only
    python scripts/bulk_upload_billboards.py inventario.csv --owner OWNER_ID

    # Fix a mapping, commit, and save the error report
    python scripts/bulk_upload_billboards.py inventario.xlsx --owner OWNER_ID \
        --map public_price="Tarifa mensual" --commit --errors-out errores.xlsx
"""

import argparse
import os
import sys

# Allow imports from the project root when running as a script
_root_dir = os.path.join(os.path.dirname(__file__), "..")
sys.path.insert(0, _root_dir)

from dotenv import load_dotenv
load_dotenv(os.path.join(_root_dir, ".env"))

import structlog

from config import get_admin_client
from exceptions import AppError
from services.billboard_service import BillboardService
from services.column_mapping_service import CANONICAL_FIELDS, field_labels
from services.report_service import get_report_service
from services import upload_session_service as uploads

structlog.configure(
    processors=[
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(),
    ],
)

separator = "=" * 60


def parse_overrides(pairs: list[str]) -> dict[str, str]:
    """Turn ["field=Header", ...] into a mapping override dict."""
    overrides = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"Invalid --map value '{pair}'. Use field=Header")
        key, header = pair.split("=", 1)
        overrides[key.strip()] = header.strip()
    return overrides


def print_mapping(session: uploads.UploadSession) -> None:
    print("Column mapping:")
    for field_spec in CANONICAL_FIELDS:
        header = session.mapping.get(field_spec.key)
        marker = "*" if field_spec.required else " "
        display = header if header else "-- not mapped --"
        print(f"  {marker} {field_spec.label + ':':<22} {display}")
    print()


def print_preview(session: uploads.UploadSession) -> None:
    print(f"Rows: {session.row_count}   Groups: {session.total_groups}   Valid: {session.valid_groups}")
    print()
    for record in session.preview_records:
        print(f"  + {record.name:<35} {record.spots_disponibles} spot(s)  ${record.monthly_price}/mes")
    if session.valid_groups > len(session.preview_records):
        print(f"  ... and {session.valid_groups - len(session.preview_records)} more")
    print()

    if session.issues:
        print(f"Issues ({len(session.issues)}):")
        for issue in session.issues[:20]:
            who = issue.identifier or "-"
            print(f"  row {issue.row:<5} {who:<12} {issue.field:<18} {issue.message}")
        if len(session.issues) > 20:
            print(f"  ... and {len(session.issues) - 20} more")
        print()

    if session.duplicate_identifiers:
        print(f"BLOCKED: {len(session.duplicate_identifiers)} identifier(s) already exist:")
        print(f"  {', '.join(session.duplicate_identifiers[:20])}")
        print()


def write_error_report(session: uploads.UploadSession, path: str) -> None:
    service = get_report_service()
    if path.lower().endswith(".xlsx"):
        output = service.generate_error_report_excel(session.issues, field_labels())
    else:
        output = service.generate_error_report_csv(session.issues, field_labels())
    with open(path, "wb") as f:
        f.write(output.getvalue())
    print(f"Error report written to {path}")


def print_progress(processed: int, total: int, succeeded: int) -> None:
    print(f"\r  {processed}/{total} processed, {succeeded} created", end="", flush=True)


def run_upload(args: argparse.Namespace) -> bool:
    client = get_admin_client()
    if client is None:
        print("ERROR: SUPABASE_URL and SUPABASE_SERVICE_KEY must be set.")
        return False
    store = BillboardService(client=client)

    with open(args.file, "rb") as f:
        content = f.read()

    print(separator)
    print(f"  BULK UPLOAD -- {os.path.basename(args.file)}")
    print(separator)
    print()

    session = uploads.start_session(content, os.path.basename(args.file), args.owner, args.encoding)
    print(f"Encoding: {session.encoding_used}")
    print()

    overrides = parse_overrides(args.map or [])
    if overrides:
        session = uploads.update_mapping(session, overrides)
    print_mapping(session)

    if session.missing_required:
        labels = field_labels()
        print(f"ERROR: Missing required columns: {', '.join(labels[k] for k in session.missing_required)}")
        print("Map them with --map field=Header")
        return False

    session = uploads.preview(session, store)
    print_preview(session)

    if not args.commit:
        if args.errors_out and session.issues:
            write_error_report(session, args.errors_out)
        print("Preview only. Re-run with --commit to create the billboards.")
        return not session.commit_blocked

    if session.commit_blocked:
        print("Commit aborted.")
        return False

    print("Committing:")
    session = uploads.commit(session, store, on_progress=print_progress)
    print()
    report = session.commit_report
    print(f"Created {report.succeeded} of {report.total} billboards ({report.failed} failed)")

    if args.errors_out and session.issues:
        write_error_report(session, args.errors_out)

    print(separator)
    return report.failed == 0


def main():
    parser = argparse.ArgumentParser(
        description="Bulk upload billboards from a CSV or Excel file."
    )
    parser.add_argument("file", help="CSV, XLSX or XLS file")
    parser.add_argument("--owner", required=True, help="Owner id the billboards belong to")
    parser.add_argument(
        "--encoding",
        default=None,
        help="Encoding to try first for CSV files (e.g. windows-1252)",
    )
    parser.add_argument(
        "--map",
        action="append",
        metavar="FIELD=HEADER",
        help="Override a column mapping; repeatable",
    )
    parser.add_argument(
        "--commit",
        action="store_true",
        help="Insert the records after a successful preview",
    )
    parser.add_argument(
        "--errors-out",
        default=None,
        help="Write the issues to this .csv or .xlsx file",
    )

    args = parser.parse_args()

    if not os.path.isfile(args.file):
        print(f"ERROR: File not found: {args.file}")
        sys.exit(1)

    try:
        success = run_upload(args)
    except (AppError, ValueError) as e:
        message = e.message if isinstance(e, AppError) else str(e)
        print(f"ERROR: {message}")
        sys.exit(1)

    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
