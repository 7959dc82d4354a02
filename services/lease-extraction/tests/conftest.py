"""Shared test fixtures for lease extraction tests."""

import json
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add parent directory to path so we can import the modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import Settings
from models import Metric, ModelResponse, PageContent


def make_metrics(values: dict, blurbs: dict | None = None) -> list[Metric]:
    """Build a metric list from name -> value (and optional name -> source_blurb)."""
    blurbs = blurbs or {}
    return [
        Metric(metric=name, value=value, source_document="lease.pdf", source_blurb=blurbs.get(name, ""))
        for name, value in values.items()
    ]


def make_provider(content: str = "", model: str = "test-model", latency_ms: int = 1200) -> MagicMock:
    """Model provider double whose complete() returns a fixed reply."""
    provider = MagicMock()
    provider.model = model
    provider.complete = AsyncMock(
        return_value=ModelResponse(content=content, model=model, latency_ms=latency_ms)
    )
    return provider


@pytest.fixture
def settings() -> Settings:
    return Settings(MODEL_BASE_URL="http://fake-model:8000", MODEL_API_KEY="test-key")


@pytest.fixture
def sample_pages() -> list[PageContent]:
    return [
        PageContent(
            page_number=1,
            content="OFFICE LEASE\nThis triple-net lease is made between Bellevue Partners LLC and Acme Design Inc.",
            width=612,
            height=792,
        ),
        PageContent(page_number=2, content="Premises: Suite 200, approximately 2,497 rentable square feet.", width=612, height=792),
        PageContent(page_number=3, content="Monthly Base Rent: $7,907.17. Security Deposit: $17,279.00.", width=612, height=792),
    ]


@pytest.fixture
def full_metrics_payload() -> list[dict]:
    """All 27 fields as a well-formed model would return them."""
    values = {
        "property": "155 Bellevue",
        "tenant_name": "Acme Design",
        "suite": "200",
        "document_type": "NNN",
        "suite_sf": 2497,
        "suite_pro_rata_share": 0.0181,
        "lease_start_date": "2024-09-01",
        "lease_term_months": 40,
        "lease_expiration_date": "2027-12-31",
        "free_rent_months": 4,
        "starting_rent_monthly": 7907.17,
        "rent_escalations": 0.03,
        "escalation_type": "percentage",
        "escalation_frequency": "annual",
        "lease_type": "NNN",
        "security_deposit": 17279,
        "renewal_option": True,
        "renewal_option_term_months": 60,
        "renewal_option_start_mos_prior": 12,
        "renewal_option_exp_mos_prior": 9,
        "termination_option": False,
        "termination_option_start": None,
        "termination_option_expiration": None,
        "rofo_option": True,
        "rofr_option": False,
        "purchase_option": False,
        "_flags": ["Commencement date is anticipated"],
    }
    return [
        {
            "metric": name,
            "value": value,
            "source_blurb": "This lease is a triple-net lease." if name in ("document_type", "lease_type") else "",
            "flags": [],
        }
        for name, value in values.items()
    ]


@pytest.fixture
def mock_extraction_response(full_metrics_payload: list[dict]) -> str:
    return json.dumps({"metrics": full_metrics_payload})


@pytest.fixture
def mock_fenced_response(mock_extraction_response: str) -> str:
    """Model reply wrapped in a markdown code fence."""
    return f"```json\n{mock_extraction_response}\n```"


@pytest.fixture
def mock_truncated_response() -> str:
    """Reply cut off mid-object, as happens when the token limit is hit."""
    return (
        '{"metrics": [\n'
        '  {"metric": "property", "value": "155 Bellevue", "source_blurb": "", "flags": []},\n'
        '  {"metric": "suite_sf", "value": 2497, "source_blurb": "", "flags": []},\n'
        '  {"metric": "renewal_option", "value": true, "source_blurb": "", "flags": []},\n'
        '  {"metric": "lease_start_date", "value": null, "source_blurb": "", "flags": []},\n'
        '  {"metric": "tenant_name", "value": "Acme, Inc.", "source_bl'
    )
