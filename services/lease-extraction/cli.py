"""Command-line entry point: run the pipeline on one lease PDF."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from config import Settings
from export import build_lease_export
from model_client import ModelClient, ModelServiceError, ModelServiceUnavailable
from models import DocumentType, PipelineOptions, PipelineOutput, ValidationStatus
from pipeline import LeasePipeline, PipelineError, was_skipped
from values import format_value

logger = logging.getLogger(__name__)

STATUS_ICONS = {
    ValidationStatus.PASS: "✅",
    ValidationStatus.FAIL: "❌",
    ValidationStatus.FLAG: "⚠️",
    ValidationStatus.SKIP: "⏭️",
}

BLURB_PREVIEW_CHARS = 80


def format_report(output: PipelineOutput) -> str:
    """Human-readable summary of a pipeline result for terminal review."""
    rule = "=" * 60
    lines = [
        rule,
        f"📄 {output.filename}",
        f"📋 Type: {output.document_type.value}",
        f"📑 Pages: {output.page_count}",
        f"🤖 Model: {output.model or '(none)'}",
        rule,
        "",
        "📊 Extracted Fields:",
        "",
    ]

    for metric in output.metrics:
        marker = "⚠️ " if metric.flags else "✓ "
        lines.append(f"{marker}{metric.metric}: {format_value(metric.final_value)}")
        if metric.override is not None:
            lines.append(f"   (extracted: {format_value(metric.value)})")
        if metric.source_blurb:
            blurb = metric.source_blurb
            if len(blurb) > BLURB_PREVIEW_CHARS:
                blurb = blurb[:BLURB_PREVIEW_CHARS] + "..."
            lines.append(f'   └─ "{blurb}"')
        for flag in metric.flags:
            lines.append(f"   ⚠️  {flag}")

    if output.validation_results:
        lines += ["", "📋 Validation Checks:"]
        for result in output.validation_results:
            lines.append(f"   {STATUS_ICONS[result.status]} {result.check.value}: {result.detail}")

    if output.errors:
        lines += ["", "❌ Errors:"]
        lines += [f"   - {error}" for error in output.errors]

    lines += ["", rule]
    return "\n".join(lines)


async def run_cli(args: argparse.Namespace) -> int:
    settings = Settings()
    if not settings.MODEL_BASE_URL:
        print("❌ MODEL_BASE_URL is not set", file=sys.stderr)
        return 1

    classification = ModelClient(settings, settings.CLASSIFICATION_MODEL)
    extraction = ModelClient(settings, settings.EXTRACTION_MODEL)
    pipeline = LeasePipeline(settings, classification, extraction)

    options = PipelineOptions(
        force_document_type=DocumentType(args.document_type) if args.document_type else None,
        skip_extraction=args.skip_extraction,
        max_pages=args.max_pages,
    )

    try:
        result = await pipeline.run(args.pdf_path, options=options)
    except (PipelineError, ModelServiceUnavailable, ModelServiceError) as e:
        print(f"\n❌ Pipeline error: {e}", file=sys.stderr)
        return 1
    finally:
        await classification.aclose()
        await extraction.aclose()

    if was_skipped(result):
        if args.json:
            print(result.model_dump_json(indent=2))
        else:
            print(f"\n⏭️  Document skipped: {result.reason}\n")
        return 0

    if args.flat:
        print(build_lease_export(result).model_dump_json(indent=2, by_alias=True))
    elif args.json:
        print(result.model_dump_json(indent=2))
    else:
        print(format_report(result))
    return 0


def _positive_int(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {text!r}") from None
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {value}")
    return value


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Extract lease fields from a commercial lease PDF",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  lease-extract ./leases/my_lease.pdf
  lease-extract ./leases/my_lease.pdf --json > output.json
  lease-extract ./leases/my_lease.pdf --skip-extraction
        """,
    )
    parser.add_argument("pdf_path", type=Path, help="Path to the lease PDF")
    parser.add_argument("--json", action="store_true", help="Output raw JSON instead of the formatted report")
    parser.add_argument("--flat", action="store_true", help="Output the flat 27-field lease record with extraction metadata as JSON")
    parser.add_argument(
        "--skip-extraction",
        action="store_true",
        help="Only render pages and detect the lease type",
    )
    parser.add_argument(
        "--document-type",
        choices=[t.value for t in DocumentType],
        help="Skip lease type detection and use this type",
    )
    parser.add_argument("--max-pages", type=_positive_int, default=None, help="Maximum pages to process")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if not args.pdf_path.is_file():
        print(f"❌ File not found: {args.pdf_path}", file=sys.stderr)
        return 1
    if args.pdf_path.suffix.lower() != ".pdf":
        print(f"❌ File is not a PDF: {args.pdf_path}", file=sys.stderr)
        return 1

    return asyncio.run(run_cli(args))


if __name__ == "__main__":
    sys.exit(main())
