"""Tests for the command-line entry point."""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch

import pytest

from cli import format_report, main
from conftest import make_metrics
from models import CheckId, DocumentType, PipelineOutput, PipelineSkipped, ValidationResult, ValidationStatus


def _output() -> PipelineOutput:
    metrics = make_metrics(
        {"suite": "200", "rent_escalations": 1.14, "_flags": "Anticipated commencement"},
        blurbs={"suite": "Suite 200 " + "x" * 100},
    )
    metrics[1] = metrics[1].model_copy(update={"override": 0.03, "flags": ["Auto-corrected: 3%"]})
    return PipelineOutput(
        filename="lease.pdf",
        document_type=DocumentType.NNN,
        metrics=metrics,
        validation_results=[
            ValidationResult(check=CheckId.RENT_MATH, status=ValidationStatus.PASS, detail="ok"),
            ValidationResult(check=CheckId.DEPOSIT_SANITY, status=ValidationStatus.FLAG, detail="low deposit"),
        ],
        page_count=3,
        model="extract-model",
        extracted_at=datetime(2024, 9, 1, tzinfo=timezone.utc),
        errors=["Missing fields: suite_sf"],
    )


class TestFormatReport:
    def test_report_contents(self):
        report = format_report(_output())

        assert "📄 lease.pdf" in report
        assert "Type: NNN" in report
        assert "rent_escalations: 0.03" in report
        assert "(extracted: 1.14)" in report
        assert "Auto-corrected: 3%" in report
        assert "✅ rent_math: ok" in report
        assert "deposit_sanity: low deposit" in report
        assert "Missing fields: suite_sf" in report

    def test_long_blurb_truncated(self):
        report = format_report(_output())
        assert "x" * 100 not in report
        assert '..."' in report


class TestMain:
    def test_missing_file(self, tmp_path):
        assert main([str(tmp_path / "missing.pdf")]) == 1

    def test_not_a_pdf(self, tmp_path):
        path = tmp_path / "lease.txt"
        path.write_text("lease")
        assert main([str(path)]) == 1

    @pytest.mark.parametrize("limit", ["0", "-1", "two"])
    def test_bad_page_limit_rejected(self, tmp_path, limit):
        path = tmp_path / "lease.pdf"
        path.write_bytes(b"%PDF")

        with pytest.raises(SystemExit) as exc:
            main([str(path), "--max-pages", limit])
        assert exc.value.code == 2

    def test_model_service_not_configured(self, tmp_path, monkeypatch, capsys):
        monkeypatch.delenv("MODEL_BASE_URL", raising=False)
        path = tmp_path / "lease.pdf"
        path.write_bytes(b"%PDF")

        assert main([str(path)]) == 1
        assert "MODEL_BASE_URL" in capsys.readouterr().err

    def test_json_output(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("MODEL_BASE_URL", "http://fake-model:8000")
        path = tmp_path / "lease.pdf"
        path.write_bytes(b"%PDF")

        with patch("cli.LeasePipeline") as pipeline_cls:
            pipeline_cls.return_value.run = AsyncMock(return_value=_output())
            code = main([str(path), "--json", "--document-type", "NNN", "--max-pages", "5"])

        assert code == 0
        body = json.loads(capsys.readouterr().out)
        assert body["filename"] == "lease.pdf"
        options = pipeline_cls.return_value.run.call_args.kwargs["options"]
        assert options.force_document_type == DocumentType.NNN
        assert options.max_pages == 5

    def test_flat_output(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("MODEL_BASE_URL", "http://fake-model:8000")
        path = tmp_path / "lease.pdf"
        path.write_bytes(b"%PDF")

        with patch("cli.LeasePipeline") as pipeline_cls:
            pipeline_cls.return_value.run = AsyncMock(return_value=_output())
            assert main([str(path), "--flat"]) == 0

        body = json.loads(capsys.readouterr().out)
        assert body["rent_escalations"] == 0.03
        assert body["_flags"] == ["Anticipated commencement"]
        assert body["_extraction"]["overrides_applied"] == 1
        assert body["_extraction"]["source_document"] == "lease.pdf"

    def test_skipped_document(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("MODEL_BASE_URL", "http://fake-model:8000")
        path = tmp_path / "First Amendment.pdf"
        path.write_bytes(b"%PDF")

        with patch("cli.LeasePipeline") as pipeline_cls:
            pipeline_cls.return_value.run = AsyncMock(
                return_value=PipelineSkipped(reason="Amendment detected", filename="First Amendment.pdf")
            )
            assert main([str(path)]) == 0

        assert "Document skipped: Amendment detected" in capsys.readouterr().out
