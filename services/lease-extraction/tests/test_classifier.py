"""Tests for lease type detection."""

import asyncio

import pytest

from classifier import DEFAULT_DOCUMENT_TYPE, detect_lease_type, parse_lease_type
from conftest import make_provider
from model_client import ModelServiceUnavailable
from models import DocumentType
from prompts import LEASE_TYPE_PROMPT


class TestParseLeaseType:
    @pytest.mark.parametrize(
        "reply, expected",
        [
            ("NNN", DocumentType.NNN),
            ("  fsg\n", DocumentType.FSG),
            ("This is a Modified Gross (MG) lease.", DocumentType.MG),
            ("IG", DocumentType.IG),
            ("ANN", DocumentType.ANN),
        ],
    )
    def test_codes(self, reply, expected):
        assert parse_lease_type(reply) == expected

    def test_priority_when_several_codes_appear(self):
        assert parse_lease_type("FSG or NNN") == DocumentType.NNN

    def test_unrecognized_defaults_to_fsg(self):
        assert parse_lease_type("I am not sure.") == DEFAULT_DOCUMENT_TYPE == DocumentType.FSG

    def test_empty_defaults(self):
        assert parse_lease_type("") == DocumentType.FSG


class TestDetectLeaseType:
    def test_sends_first_page_text(self, sample_pages):
        provider = make_provider("NNN", model="classify-model", latency_ms=350)

        result = asyncio.run(detect_lease_type(sample_pages[0], provider))

        assert result.document_type == DocumentType.NNN
        assert result.raw_response == "NNN"
        assert result.model == "classify-model"
        assert result.latency_ms == 350

        messages, options = provider.complete.call_args.args
        assert len(messages) == 1
        assert messages[0].role == "user"
        text = messages[0].content[0].text
        assert text.startswith(LEASE_TYPE_PROMPT)
        assert "--- FIRST PAGE TEXT ---\nOFFICE LEASE" in text
        assert options.max_tokens == 10
        assert options.temperature == 0

    def test_model_error_propagates(self, sample_pages):
        provider = make_provider()
        provider.complete.side_effect = ModelServiceUnavailable("overloaded")

        with pytest.raises(ModelServiceUnavailable):
            asyncio.run(detect_lease_type(sample_pages[0], provider))
