"""Tests for prompt construction and the synonym dictionary."""

import json

from config import Settings
from models import DocumentType
from prompts import LEASE_TYPE_CONTEXT, build_extraction_system_prompt, load_synonyms


class TestLoadSynonyms:
    def test_bundled_dictionary(self):
        synonyms = load_synonyms(Settings().SYNONYMS_PATH)
        assert "Rentable Square Feet" in synonyms["suite_sf"]["synonyms"]
        assert "holdover" in synonyms["termination_false_positives"]

    def test_missing_file(self, tmp_path):
        assert load_synonyms(tmp_path / "nope.json") == {}

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "synonyms.json"
        path.write_text("{not json")
        assert load_synonyms(path) == {}

    def test_non_object(self, tmp_path):
        path = tmp_path / "synonyms.json"
        path.write_text(json.dumps(["RSF"]))
        assert load_synonyms(path) == {}


class TestBuildExtractionSystemPrompt:
    def test_includes_type_context(self):
        for document_type in DocumentType:
            prompt = build_extraction_system_prompt(document_type, {})
            assert f"This lease has been classified as: {document_type.value}" in prompt
            assert LEASE_TYPE_CONTEXT[document_type] in prompt

    def test_synonyms_interpolated(self):
        synonyms = {
            "suite_sf": {"synonyms": ["Rentable Area", "RSF"]},
            "termination_false_positives": ["casualty termination"],
        }
        prompt = build_extraction_system_prompt(DocumentType.NNN, synonyms)
        assert "May be called: Rentable Area, RSF." in prompt
        assert "DO NOT count them: casualty termination." in prompt

    def test_malformed_synonym_entries_ignored(self):
        prompt = build_extraction_system_prompt(DocumentType.FSG, {"suite_sf": "RSF", "rofo": {"synonyms": "ROFO"}})
        assert "May be called: ." in prompt
        assert "27 fields" in prompt
