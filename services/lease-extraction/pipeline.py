"""Pipeline orchestrator: skip check, classify, extract, correct, validate.

Stages run strictly in sequence for one document; each depends on the
previous stage's output. A pipeline instance holds only read-only
collaborators, so one instance can serve concurrent runs.
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Union

from classifier import detect_lease_type
from config import Settings
from corrections import apply_corrections
from extraction import extract_lease_data
from model_client import ModelProvider
from models import (
    Metric,
    PipelineOptions,
    PipelineOutput,
    PipelineSkipped,
    ValidationResult,
    ValidationStatus,
)
from pages import PageSource, PdfReadError, PdfSource, render_pdf_pages
from prompts import Synonyms, load_synonyms
from validation import run_validation

logger = logging.getLogger(__name__)

AMENDMENT_MARKERS = ("amendment", "amend", "addendum", "modification")

AMENDMENT_SKIP_REASON = "Amendment detected - amendment processing not yet implemented"

PipelineResult = Union[PipelineOutput, PipelineSkipped]


class PipelineStage(str, Enum):
    START = "start"
    SKIPPED = "skipped"
    CLASSIFY = "classify"
    EXTRACT = "extract"
    VALIDATE = "correct_and_validate"
    DONE = "done"


class PipelineError(Exception):
    """Fatal pipeline condition; the run produces no result."""


class NoPagesError(PipelineError):
    """The page source returned no pages for the document."""


class UnreadableDocumentError(PipelineError):
    """The page source could not read the document."""


def is_amendment(filename: str) -> bool:
    """True when the filename marks an amendment rather than a base lease."""
    lower = filename.lower()
    return any(marker in lower for marker in AMENDMENT_MARKERS)


def was_skipped(result: PipelineResult) -> bool:
    return isinstance(result, PipelineSkipped)


class LeasePipeline:
    """Runs one lease through every stage and returns a single terminal result."""

    def __init__(
        self,
        settings: Settings,
        classification_provider: ModelProvider,
        extraction_provider: ModelProvider,
        page_source: PageSource = render_pdf_pages,
        synonyms: Synonyms | None = None,
    ):
        self._settings = settings
        self._tolerances = settings.tolerances()
        self._classification_provider = classification_provider
        self._extraction_provider = extraction_provider
        self._page_source = page_source
        self._synonyms = synonyms if synonyms is not None else load_synonyms(settings.SYNONYMS_PATH)

    async def run(
        self,
        source: PdfSource,
        filename: str | None = None,
        options: PipelineOptions | None = None,
    ) -> PipelineResult:
        """Process one document.

        Model failures and an empty page list raise; parse problems and
        validation findings are reported inside the returned result.
        """
        options = options or PipelineOptions()
        if filename is None:
            if isinstance(source, bytes):
                raise ValueError("filename is required when the document is given as bytes")
            filename = Path(source).name

        start = time.monotonic()
        _transition(filename, PipelineStage.START)

        if is_amendment(filename):
            _transition(filename, PipelineStage.SKIPPED)
            return PipelineSkipped(reason=AMENDMENT_SKIP_REASON, filename=filename)

        try:
            pages = await asyncio.to_thread(self._page_source, source)
        except PdfReadError as e:
            raise UnreadableDocumentError(f"{filename}: {e}") from e
        if not pages:
            raise NoPagesError(f"No pages extracted from {filename}")

        max_pages = options.max_pages or self._settings.MAX_PAGES
        if len(pages) > max_pages:
            logger.warning("%s: limiting to first %d pages (was %d)", filename, max_pages, len(pages))
            pages = pages[:max_pages]

        _transition(filename, PipelineStage.CLASSIFY)
        if options.force_document_type is not None:
            document_type = options.force_document_type
            logger.info("%s: using forced document type %s", filename, document_type.value)
        else:
            type_result = await detect_lease_type(
                pages[0],
                self._classification_provider,
                max_tokens=self._settings.CLASSIFICATION_MAX_TOKENS,
            )
            document_type = type_result.document_type
            logger.info(
                "%s: detected %s (%dms, %s)",
                filename, document_type.value, type_result.latency_ms, type_result.model,
            )

        metrics: list[Metric] = []
        model = ""
        errors: list[str] = []

        _transition(filename, PipelineStage.EXTRACT)
        if options.skip_extraction:
            logger.info("%s: skipping extraction", filename)
        else:
            extraction = await extract_lease_data(
                pages,
                document_type,
                filename,
                self._extraction_provider,
                self._synonyms,
                max_tokens=self._settings.EXTRACTION_MAX_TOKENS,
            )
            metrics = extraction.metrics
            model = extraction.model
            errors.extend(extraction.errors)
            logger.info(
                "%s: extracted %d fields (%dms, %s, %d errors)",
                filename, len(metrics), extraction.latency_ms, model, len(extraction.errors),
            )

        validation_results: list[ValidationResult] = []
        if metrics:
            _transition(filename, PipelineStage.VALIDATE)
            metrics = apply_corrections(metrics, self._tolerances)
            validation_results = run_validation(metrics, self._settings.BUILDING_SF, self._tolerances)
            _log_validation_summary(filename, metrics, validation_results)

        _transition(filename, PipelineStage.DONE)
        logger.info("%s: pipeline complete (%dms total)", filename, int((time.monotonic() - start) * 1000))

        return PipelineOutput(
            filename=filename,
            document_type=document_type,
            metrics=metrics,
            validation_results=validation_results,
            page_count=len(pages),
            model=model,
            extracted_at=datetime.now(timezone.utc),
            errors=errors,
        )


def _transition(filename: str, stage: PipelineStage):
    logger.debug("%s: -> %s", filename, stage.value)


def _log_validation_summary(filename: str, metrics: list[Metric], results: list[ValidationResult]):
    counts = {status: 0 for status in ValidationStatus}
    for result in results:
        counts[result.status] += 1
    flagged_fields = sum(1 for m in metrics if m.flags)
    logger.info(
        "%s: validation %d passed, %d failed, %d flagged; %d fields have flags for review",
        filename,
        counts[ValidationStatus.PASS],
        counts[ValidationStatus.FAIL],
        counts[ValidationStatus.FLAG],
        flagged_fields,
    )
