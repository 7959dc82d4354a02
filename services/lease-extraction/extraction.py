"""Full field extraction: prompt the model, parse its JSON, repair the schema.

Parsing never raises. A strict JSON parse is tried first; when it fails a
regex scan recovers whatever ``metric``/``value`` pairs it can. Either way
the result is completed to exactly the 27 expected fields, with placeholder
records for anything the model left out.
"""

import json
import logging
import re
from typing import Any, Literal, Union

from pydantic import BaseModel

from model_client import ModelProvider
from models import (
    DocumentType,
    ExtractionResult,
    InferenceOptions,
    Message,
    Metric,
    PageContent,
    TextPart,
)
from prompts import EXTRACTION_USER_PROMPT, Synonyms, build_extraction_system_prompt
from values import coerce_scalar, parse_literal

logger = logging.getLogger(__name__)

FALLBACK_NOTE = "Extracted via fallback parser"
PLACEHOLDER_NOTE = "Field not extracted - requires manual entry"

# Fixed output schema, in presentation order
EXPECTED_METRICS: tuple[str, ...] = (
    "property",
    "tenant_name",
    "suite",
    "document_type",
    "suite_sf",
    "suite_pro_rata_share",
    "lease_start_date",
    "lease_term_months",
    "lease_expiration_date",
    "free_rent_months",
    "starting_rent_monthly",
    "rent_escalations",
    "escalation_type",
    "escalation_frequency",
    "lease_type",
    "security_deposit",
    "renewal_option",
    "renewal_option_term_months",
    "renewal_option_start_mos_prior",
    "renewal_option_exp_mos_prior",
    "termination_option",
    "termination_option_start",
    "termination_option_expiration",
    "rofo_option",
    "rofr_option",
    "purchase_option",
    "_flags",
)

_CODE_FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_METRIC_VALUE = re.compile(
    r'"metric"\s*:\s*"([^"]+)"[\s\S]*?"value"\s*:\s*("(?:[^"\\]|\\.)*"|[^,}\]]+)'
)


class StructuredParse(BaseModel):
    kind: Literal["structured"] = "structured"
    entries: list[Any]


class RecoveredParse(BaseModel):
    kind: Literal["recovered"] = "recovered"
    pairs: list[tuple[str, Any]]
    error: str


class ParseFailure(BaseModel):
    kind: Literal["failure"] = "failure"
    errors: list[str]


ParseOutcome = Union[StructuredParse, RecoveredParse, ParseFailure]


async def extract_lease_data(
    pages: list[PageContent],
    document_type: DocumentType,
    source_document: str,
    provider: ModelProvider,
    synonyms: Synonyms,
    max_tokens: int = 8192,
) -> ExtractionResult:
    """Extract all 27 fields from the page texts in a single model call.

    Model errors propagate; parse problems are returned in ``errors``.
    """
    all_page_text = "\n\n".join(
        f"--- PAGE {page.page_number} ---\n{page.content}" for page in pages
    )

    messages = [
        Message(role="system", content=[TextPart(text=build_extraction_system_prompt(document_type, synonyms))]),
        Message(
            role="user",
            content=[TextPart(text=f"{EXTRACTION_USER_PROMPT}\n\n--- LEASE DOCUMENT TEXT ---\n{all_page_text}")],
        ),
    ]

    response = await provider.complete(messages, InferenceOptions(max_tokens=max_tokens, temperature=0))
    logger.info(
        "Extraction response: %d chars in %dms from %s",
        len(response.content), response.latency_ms, response.model,
    )

    metrics, errors = parse_extraction_response(response.content, source_document)

    return ExtractionResult(
        metrics=metrics,
        model=response.model,
        latency_ms=response.latency_ms,
        errors=errors,
    )


def parse_extraction_response(text: str, source_document: str) -> tuple[list[Metric], list[str]]:
    """Turn raw model output into the complete, ordered 27-field list plus error strings."""
    outcome = parse_response(text)
    errors: list[str] = []

    if isinstance(outcome, StructuredParse):
        metrics = _metrics_from_entries(outcome.entries, source_document, errors)
    elif isinstance(outcome, RecoveredParse):
        errors.append(outcome.error)
        logger.warning("Structured parse failed, recovered %d fields via fallback", len(outcome.pairs))
        metrics = [
            Metric(
                metric=name,
                value=value,
                source_document=source_document,
                flags=[FALLBACK_NOTE],
            )
            for name, value in outcome.pairs
        ]
    else:
        errors.extend(outcome.errors)
        logger.warning("Could not parse extraction response: %s", text[:200])
        metrics = []

    metrics = _drop_unexpected(metrics, errors)
    return complete_schema(metrics, source_document, errors), errors


def parse_response(text: str) -> ParseOutcome:
    """Classify the model output into one of the three parse outcomes."""
    body = strip_code_fence(text).strip()

    try:
        parsed = json.loads(body)
    except json.JSONDecodeError as e:
        error = f"JSON parse error: {e}"
    else:
        if isinstance(parsed, list):
            return StructuredParse(entries=parsed)
        if isinstance(parsed, dict) and isinstance(parsed.get("metrics"), list):
            return StructuredParse(entries=parsed["metrics"])
        error = "JSON parse error: Expected metrics array in response"

    pairs = recover_pairs(text)
    if pairs:
        return RecoveredParse(pairs=pairs, error=error)
    return ParseFailure(errors=[error, "Fallback parsing also failed"])


def strip_code_fence(text: str) -> str:
    """Return the body of a ```/```json fenced block, or the text unchanged."""
    match = _CODE_FENCE.search(text)
    return match.group(1) if match else text


def recover_pairs(text: str) -> list[tuple[str, Any]]:
    """Regex scan for ``"metric": "<name>" ... "value": <value>`` pairs."""
    return [
        (match.group(1), parse_literal(match.group(2)))
        for match in _METRIC_VALUE.finditer(text)
    ]


def complete_schema(metrics: list[Metric], source_document: str, errors: list[str]) -> list[Metric]:
    """Add a placeholder for every expected field not present; return in schema order."""
    by_name = {m.metric: m for m in metrics}
    missing = [name for name in EXPECTED_METRICS if name not in by_name]

    if missing:
        errors.append(f"Missing fields: {', '.join(missing)}")
        for name in missing:
            by_name[name] = Metric(
                metric=name,
                value=None,
                source_document=source_document,
                flags=[PLACEHOLDER_NOTE],
            )

    return [by_name[name] for name in EXPECTED_METRICS]


def _metrics_from_entries(entries: list[Any], source_document: str, errors: list[str]) -> list[Metric]:
    metrics = []
    for i, raw in enumerate(entries):
        if not isinstance(raw, dict) or not isinstance(raw.get("metric"), str):
            errors.append(f"Malformed metric entry at index {i} ignored")
            continue

        flags = raw.get("flags") or []
        if not isinstance(flags, list):
            flags = [flags]

        metrics.append(Metric(
            metric=raw["metric"],
            value=coerce_scalar(raw.get("value")),
            source_document=source_document,
            source_blurb=str(raw.get("source_blurb") or ""),
            flags=[str(f) for f in flags if f],
        ))
    return metrics


def _drop_unexpected(metrics: list[Metric], errors: list[str]) -> list[Metric]:
    """Keep only schema names, first occurrence wins."""
    expected = set(EXPECTED_METRICS)
    seen: set[str] = set()
    kept = []
    for metric in metrics:
        if metric.metric not in expected:
            errors.append(f"Unexpected field ignored: {metric.metric}")
            continue
        if metric.metric in seen:
            errors.append(f"Duplicate field ignored: {metric.metric}")
            continue
        seen.add(metric.metric)
        kept.append(metric)
    return kept
