from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING, Any, cast

from dotenv import load_dotenv
from pydantic import ValidationError

from dossier import __version__
from dossier.app import (
    acquire_report,
    apply_notification,
    check_existing_report,
    search_companies,
    sync_watchlist,
)
from dossier.config import configure_logging
from dossier.domain.errors import AcquisitionError
from dossier.domain.model import (
    Address,
    Individual,
    NotificationDelta,
    Organisation,
    ReportOptions,
    ReportType,
    TitleReference,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from dossier.domain.model import ReportSnapshot, Subject

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Acquire and cache due-diligence reports")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    acquire = subparsers.add_parser("acquire", help="Fetch a report, reusing a stored one")
    acquire.add_argument("report_type", choices=[item.value for item in ReportType])
    _add_subject_arguments(acquire)
    acquire.add_argument("--title-reference", type=str, help="Title reference, e.g. 99/30539")
    acquire.add_argument("--jurisdiction", type=str, help="Jurisdiction of the title reference")
    acquire.add_argument(
        "--title",
        action="append",
        default=[],
        metavar="JUR:REF",
        help="Title to order for owner searches instead of locating them (repeatable)",
    )
    acquire.add_argument(
        "--state",
        action="append",
        default=[],
        help="State to search, repeatable (defaults to all states)",
    )
    acquire.add_argument(
        "--detail",
        choices=["ALL", "CURRENT", "PAST"],
        default="ALL",
        help="Which owned titles to order (default: %(default)s)",
    )
    acquire.add_argument(
        "--valuation",
        action="store_true",
        help="Add a property valuation to title and property reports",
    )
    acquire.add_argument("--serial", type=str, help="Vehicle serial number (VIN)")
    acquire.add_argument("--address", type=str, help="Free-text property address")
    acquire.add_argument("--unit", type=str)
    acquire.add_argument("--street-number", type=str)
    acquire.add_argument("--street-name", type=str)
    acquire.add_argument("--street-type", type=str)
    acquire.add_argument("--locality", type=str)
    acquire.add_argument("--address-state", type=str)
    acquire.add_argument("--postcode", type=str)

    check = subparsers.add_parser("check", help="Show the stored snapshot for a subject key")
    check.add_argument("report_type", choices=[item.value for item in ReportType])
    check.add_argument("subject_key", type=str)

    delta = subparsers.add_parser("apply-delta", help="Merge a monitoring notification")
    delta.add_argument("path", type=str, help="JSON file holding the notification, or - for stdin")

    subparsers.add_parser("watchlist-sync", help="Copy monitoring alert counts onto snapshots")

    company = subparsers.add_parser("company-search", help="Look a business up by ABN or name")
    company.add_argument("term", type=str)

    return parser.parse_args(list(argv))


def _add_subject_arguments(parser: argparse.ArgumentParser) -> None:
    subject = parser.add_argument_group("subject")
    subject.add_argument("--abn", type=str, help="Business number of an organisation")
    subject.add_argument("--name", type=str, help="Organisation name")
    subject.add_argument("--given-name", type=str, help="Individual's given name(s)")
    subject.add_argument("--family-name", type=str, help="Individual's family name")
    subject.add_argument("--dob", type=str, help="Individual's date of birth (YYYY-MM-DD)")
    subject.add_argument("--person-id", type=str, help="Known ASIC person identifier")


def _build_subject(args: argparse.Namespace) -> Subject:
    if args.family_name:
        dob = None
        if args.dob:
            try:
                dob = date.fromisoformat(args.dob)
            except ValueError as exc:
                raise ValueError(f"Invalid date of birth: {args.dob}") from exc
        return Individual(
            given_name=args.given_name or "",
            family_name=args.family_name,
            date_of_birth=dob,
            person_id=args.person_id,
        )
    if args.abn or args.name:
        return Organisation(business_number=args.abn or "", name=args.name)
    raise ValueError("Provide --abn/--name for an organisation or --family-name for a person")


def _parse_title(value: str) -> TitleReference:
    jurisdiction, separator, reference = value.partition(":")
    if not separator or not jurisdiction or not reference:
        raise ValueError(f"Invalid title {value!r}, expected JUR:REF")
    return TitleReference(reference=reference, jurisdiction=jurisdiction)


def _build_options(args: argparse.Namespace) -> ReportOptions:
    parts = (
        args.address,
        args.unit,
        args.street_number,
        args.street_name,
        args.street_type,
        args.locality,
        args.address_state,
        args.postcode,
    )
    address = None
    if any(parts):
        address = Address(
            text=args.address,
            unit_number=args.unit,
            street_number=args.street_number,
            street_name=args.street_name,
            street_type=args.street_type,
            locality=args.locality,
            state=args.address_state,
            postcode=args.postcode,
        )
    return ReportOptions(
        title_reference=args.title_reference,
        jurisdiction=args.jurisdiction,
        address=address,
        states=tuple(state.upper() for state in args.state),
        title_references=tuple(_parse_title(value) for value in args.title),
        detail=args.detail,
        include_valuation=args.valuation,
        serial_number=args.serial,
    )


def _read_delta(path: str) -> NotificationDelta:
    raw = sys.stdin.read() if path == "-" else Path(path).read_text(encoding="utf-8")
    try:
        return NotificationDelta.model_validate_json(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid notification: {exc}") from exc


def _summary(snapshot: ReportSnapshot) -> dict[str, Any]:
    return {
        "id": snapshot.id,
        "reportType": str(snapshot.report_type),
        "subjectKey": snapshot.subject_key,
        "searchLabel": snapshot.search_label,
        "alertFlag": snapshot.alert_flag,
        "alertCount": snapshot.alert_count,
        "createdAt": snapshot.created_at.isoformat(),
        "updatedAt": snapshot.updated_at.isoformat(),
        "document": snapshot.document,
    }


def _emit(payload: object) -> None:
    print(json.dumps(payload, indent=2, default=str))  # noqa: T201


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    parsed_args: argparse.Namespace
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    try:
        parsed_args = _parse_args(args_list)
        subject: Subject | None = None
        options: ReportOptions | None = None
        delta: NotificationDelta | None = None
        if parsed_args.command == "acquire":
            subject = _build_subject(parsed_args)
            options = _build_options(parsed_args)
        elif parsed_args.command == "apply-delta":
            delta = _read_delta(parsed_args.path)
    except (ValueError, OSError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "acquire":
            snapshot = acquire_report(
                cast("Subject", subject), parsed_args.report_type, options
            )
            _emit(_summary(snapshot))
        elif parsed_args.command == "check":
            existing = check_existing_report(parsed_args.report_type, parsed_args.subject_key)
            if existing is None:
                log.info(
                    "No stored %s snapshot for %s",
                    parsed_args.report_type,
                    parsed_args.subject_key,
                )
                sys.exit(3)
            _emit(_summary(existing))
        elif parsed_args.command == "apply-delta":
            _emit(_summary(apply_notification(cast("NotificationDelta", delta))))
        elif parsed_args.command == "watchlist-sync":
            result = sync_watchlist()
            _emit(
                {
                    "alertCounts": result.alert_counts,
                    "entityIds": result.entity_ids,
                    "updated": result.updated,
                }
            )
        elif parsed_args.command == "company-search":
            matches = search_companies(parsed_args.term)
            _emit([match.model_dump(mode="json") for match in matches])
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except AcquisitionError as exc:
        log.error("%s: %s", exc.code, exc)  # noqa: TRY400
        sys.exit(1)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
