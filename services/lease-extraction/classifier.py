"""Lease type detection from the first page of a lease."""

import logging

from model_client import ModelProvider
from models import DocumentType, InferenceOptions, LeaseTypeResult, Message, PageContent, TextPart
from prompts import LEASE_TYPE_PROMPT

logger = logging.getLogger(__name__)

# Substring search order; the first code found in the reply wins
CODE_PRIORITY: tuple[DocumentType, ...] = (
    DocumentType.NNN,
    DocumentType.FSG,
    DocumentType.MG,
    DocumentType.IG,
    DocumentType.ANN,
)

# Most common structure for office leases
DEFAULT_DOCUMENT_TYPE = DocumentType.FSG


def parse_lease_type(raw: str) -> DocumentType:
    """Map a free-text model reply onto a document type code."""
    upper = raw.strip().upper()
    for code in CODE_PRIORITY:
        if code.value in upper:
            return code
    logger.warning("No lease type code in classifier reply %r, defaulting to %s", raw[:50], DEFAULT_DOCUMENT_TYPE.value)
    return DEFAULT_DOCUMENT_TYPE


async def detect_lease_type(
    first_page: PageContent,
    provider: ModelProvider,
    max_tokens: int = 10,
) -> LeaseTypeResult:
    """Classify a lease from its first page. Model errors propagate."""
    messages = [
        Message(
            role="user",
            content=[TextPart(text=f"{LEASE_TYPE_PROMPT}\n\n--- FIRST PAGE TEXT ---\n{first_page.content}")],
        )
    ]

    response = await provider.complete(messages, InferenceOptions(max_tokens=max_tokens, temperature=0))

    return LeaseTypeResult(
        document_type=parse_lease_type(response.content),
        raw_response=response.content,
        model=response.model,
        latency_ms=response.latency_ms,
    )
