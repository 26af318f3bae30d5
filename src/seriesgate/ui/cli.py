from __future__ import annotations

import argparse
import logging
import mimetypes
import sys
from datetime import timedelta
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from seriesgate.app import (
    attach_media,
    check_entitlement,
    confirm_payment,
    list_visible_papers,
    open_checkout,
    paper_summary,
    quote,
    sweep_orphaned_blobs,
    upload_media,
)
from seriesgate.config import configure_logging
from seriesgate.domain.errors import (
    InvalidSelection,
    MediaUploadRejected,
    PurchaseStateError,
    UnknownSeries,
)
from seriesgate.domain.model import MediaKind, PaperType
from seriesgate.domain.ports.blobs import StoredBlob
from seriesgate.domain.visibility import PaperQuery

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

VALIDATION_ERRORS = (ValueError, UnknownSeries, InvalidSelection, MediaUploadRejected)


def _csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:  # noqa: PLR0915
    parser = argparse.ArgumentParser(description="Test-series catalog and entitlement tools")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    quote_cmd = subparsers.add_parser("quote", help="Price a selection")
    quote_cmd.add_argument("series", help="Tier code (S1-S4) or managed series id")
    quote_cmd.add_argument(
        "--subjects", type=_csv, default=[], help="Comma separated subjects, e.g. FR,AFM"
    )
    quote_cmd.add_argument(
        "--series-instances",
        type=_csv,
        default=[],
        help="Comma separated series instances (S1 only), e.g. series1,series2",
    )
    quote_cmd.add_argument("--coupon", type=str, help="Optional coupon code")

    entitlement = subparsers.add_parser("entitlement", help="Show a user's access to a series")
    entitlement.add_argument("user_id")
    entitlement.add_argument("series")

    papers = subparsers.add_parser("papers", help="List papers visible to a user")
    papers.add_argument("user_id")
    papers.add_argument("series")
    papers.add_argument("--group", type=str)
    papers.add_argument("--subject", type=str)
    papers.add_argument("--series-instance", type=str)
    papers.add_argument("--paper-type", type=PaperType, choices=list(PaperType))

    summary = subparsers.add_parser("summary", help="Published paper counts for a series")
    summary.add_argument("series")

    attach = subparsers.add_parser(
        "attach-media", help="Upload a file, or attach an existing blob, as series media"
    )
    attach.add_argument("series")
    attach.add_argument("kind", help="thumbnail (alias: image) or video")
    source = attach.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", type=Path, help="Local file to upload")
    source.add_argument("--blob-id", type=str, help="Existing blob id to attach")
    attach.add_argument("--public-url", type=str, help="Public URL of an existing blob")
    attach.add_argument("--content-type", type=str, help="Override the detected MIME type")

    sweep = subparsers.add_parser("sweep-blobs", help="Delete blobs nothing references")
    sweep.add_argument(
        "--older-than-hours",
        type=float,
        default=24.0,
        help="Grace period before an unreferenced blob is deleted (default: %(default)s)",
    )
    sweep.add_argument("--dry-run", action="store_true", help="Only report orphaned blobs")

    checkout = subparsers.add_parser("checkout", help="Open a pending purchase")
    checkout.add_argument("user_id")
    checkout.add_argument("series")
    checkout.add_argument("--subjects", type=_csv, default=[])
    checkout.add_argument("--series-instances", type=_csv, default=[])
    checkout.add_argument("--coupon", type=str)

    confirm = subparsers.add_parser("confirm", help="Apply a payment confirmation")
    confirm.add_argument("enrollment_id", type=UUID)
    confirm.add_argument("payment_id")
    confirm.add_argument(
        "--subjects",
        type=_csv,
        default=None,
        help="Subject tokens confirmed by the payment (defaults to those at checkout)",
    )

    return parser.parse_args(list(argv))


def _run_quote(args: argparse.Namespace) -> None:
    result = quote(
        args.series,
        series_instances=args.series_instances,
        subjects=args.subjects,
        coupon_code=args.coupon,
        strict=True,
    )
    if not result.coupon_recognized:
        log.warning("Unknown coupon code %s ignored", args.coupon)
    priced = result.quote
    if priced is None:
        raise InvalidSelection(result.validation.errors)
    log.info(
        "%s %s: base=%s discount=%s final=%s papers=%s (%s)",
        result.tier,
        result.reference,
        priced.base_price,
        priced.discount,
        priced.final_price,
        priced.total_papers,
        priced.breakdown.applied_rule,
    )


def _run_entitlement(args: argparse.Namespace) -> None:
    decision = check_entitlement(args.user_id, args.series)
    if not decision.has_access:
        log.info("User %s has no access to %s", args.user_id, args.series)
        return
    scope = "all subjects" if decision.subjects is None else ", ".join(sorted(decision.subjects))
    log.info(
        "User %s has access to %s (%s record(s)): %s",
        args.user_id,
        args.series,
        decision.record_count,
        scope,
    )


def _run_papers(args: argparse.Namespace) -> None:
    listing = list_visible_papers(
        args.user_id,
        args.series,
        query=PaperQuery(
            group=args.group,
            subject=args.subject,
            series_instance=args.series_instance,
            paper_type=args.paper_type,
        ),
    )
    if not listing.entitlement.has_access:
        log.info("User %s has no access to %s", args.user_id, args.series)
        return
    for subject, papers in listing.by_subject.items():
        log.info("%s: %s paper(s)", subject, len(papers))
        for paper in papers:
            log.info(
                "  #%s %s %s %s",
                paper.paper_number,
                paper.paper_type,
                paper.series_instance or "-",
                paper.public_url or paper.file_name or paper.id,
            )


def _run_summary(args: argparse.Namespace) -> None:
    result = paper_summary(args.series)
    log.info("Published papers: %s", result.total)
    for label, counts in (
        ("group", result.by_group),
        ("subject", result.by_subject),
        ("paper type", result.by_paper_type),
    ):
        for name, count in sorted(counts.items()):
            log.info("  %s %s: %s", label, name, count)


def _run_attach(args: argparse.Namespace) -> None:
    if args.file is not None:
        path: Path = args.file
        content_type = args.content_type or mimetypes.guess_type(path.name)[0]
        result = upload_media(
            args.series,
            args.kind,
            path.read_bytes(),
            path.name,
            content_type,
        )
        if not result.metadata_saved:
            raise RuntimeError(
                f"Blob {result.blob.blob_id} uploaded but metadata was not saved: {result.error}"
            )
        asset = result.asset
    else:
        if not args.public_url:
            raise ValueError("--public-url is required with --blob-id")
        asset = attach_media(
            args.series,
            MediaKind.parse(args.kind),
            StoredBlob(blob_id=args.blob_id, public_url=args.public_url),
        )
    if asset is not None:
        log.info("Active %s for %s is now blob %s", asset.kind, args.series, asset.blob_id)


def _run_sweep(args: argparse.Namespace) -> None:
    if args.older_than_hours < 0:
        raise ValueError("Grace period must be non-negative")
    report = sweep_orphaned_blobs(
        older_than=timedelta(hours=args.older_than_hours),
        dry_run=args.dry_run,
    )
    for blob_id in report.orphaned:
        log.info("orphaned: %s", blob_id)
    log.info(
        "Scanned %s blob(s): %s orphaned, %s deleted, %s failed%s",
        report.scanned,
        len(report.orphaned),
        len(report.deleted),
        len(report.failed),
        " (dry run)" if report.dry_run else "",
    )


def _run_checkout(args: argparse.Namespace) -> None:
    result = open_checkout(
        args.user_id,
        args.series,
        series_instances=args.series_instances,
        subjects=args.subjects,
        coupon_code=args.coupon,
    )
    log.info(
        "Pending enrollment %s: amount=%s subjects=%s",
        result.enrollment.id,
        result.enrollment.amount,
        ", ".join(result.enrollment.purchased_subjects) or "all",
    )


def _run_confirm(args: argparse.Namespace) -> None:
    enrollment = confirm_payment(args.enrollment_id, args.payment_id, args.subjects)
    log.info(
        "Enrollment %s paid; access until %s",
        enrollment.id,
        enrollment.expiry_date.isoformat() if enrollment.expiry_date else "no expiry",
    )


COMMANDS = {
    "quote": _run_quote,
    "entitlement": _run_entitlement,
    "papers": _run_papers,
    "summary": _run_summary,
    "attach-media": _run_attach,
    "sweep-blobs": _run_sweep,
    "checkout": _run_checkout,
    "confirm": _run_confirm,
}


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args: argparse.Namespace
    try:
        parsed_args = _parse_args(args_list)
    except ValueError:
        configure_logging()
        log.exception("CLI validation error")
        sys.exit(2)

    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
    handler = COMMANDS[parsed_args.command]

    try:
        handler(parsed_args)
    except VALIDATION_ERRORS as exc:
        log.error("%s", exc)  # noqa: TRY400
        sys.exit(2)
    except PurchaseStateError as exc:
        log.error("%s", exc)  # noqa: TRY400
        sys.exit(1)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
