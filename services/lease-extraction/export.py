"""Flat lease record built from reviewed metrics, for the historical flat export."""

from datetime import datetime

from pydantic import BaseModel, Field

from models import DocumentType, Metric, PipelineOutput, Scalar, ValidationResult
from values import effective_values, to_float, to_text

PIPELINE_VERSION = "1.0.0"


class LeaseRecord(BaseModel):
    """All 27 fields at the top level, one effective value each."""

    property: str
    tenant_name: str
    suite: str
    document_type: str
    suite_sf: float
    suite_pro_rata_share: float
    lease_start_date: str | None
    lease_term_months: float
    lease_expiration_date: str | None
    free_rent_months: float
    starting_rent_monthly: float
    rent_escalations: float
    escalation_type: str
    escalation_frequency: str
    security_deposit: float
    lease_type: str
    renewal_option: bool
    renewal_option_term_months: float | None
    renewal_option_start_mos_prior: float | None
    renewal_option_exp_mos_prior: float | None
    termination_option: bool
    termination_option_start: str | None
    termination_option_expiration: str | None
    rofo_option: bool
    rofr_option: bool
    purchase_option: bool
    flags: list[str] = Field(default_factory=list, serialization_alias="_flags")


class ExtractionMeta(BaseModel):
    """Audit trail stored alongside the flat record."""

    extracted_at: datetime
    source_document: str
    model: str
    pipeline_version: str = PIPELINE_VERSION
    validation_results: list[ValidationResult]
    overrides_applied: int


class LeaseExport(LeaseRecord):
    extraction: ExtractionMeta = Field(serialization_alias="_extraction")


def metrics_to_lease_record(metrics: list[Metric]) -> LeaseRecord:
    values = effective_values(metrics)

    def text(name: str, default: str = "") -> str:
        return to_text(values.get(name)) or default

    def number(name: str) -> float:
        return to_float(values.get(name)) or 0.0

    return LeaseRecord(
        property=text("property"),
        tenant_name=text("tenant_name"),
        suite=text("suite"),
        document_type=text("document_type", DocumentType.NNN.value),
        suite_sf=number("suite_sf"),
        suite_pro_rata_share=number("suite_pro_rata_share"),
        lease_start_date=to_text(values.get("lease_start_date")),
        lease_term_months=number("lease_term_months"),
        lease_expiration_date=to_text(values.get("lease_expiration_date")),
        free_rent_months=number("free_rent_months"),
        starting_rent_monthly=number("starting_rent_monthly"),
        rent_escalations=number("rent_escalations"),
        escalation_type=text("escalation_type", "percentage"),
        escalation_frequency=text("escalation_frequency", "annual"),
        security_deposit=number("security_deposit"),
        lease_type=text("lease_type", DocumentType.NNN.value),
        renewal_option=_truthy(values.get("renewal_option")),
        renewal_option_term_months=to_float(values.get("renewal_option_term_months")),
        renewal_option_start_mos_prior=to_float(values.get("renewal_option_start_mos_prior")),
        renewal_option_exp_mos_prior=to_float(values.get("renewal_option_exp_mos_prior")),
        termination_option=_truthy(values.get("termination_option")),
        termination_option_start=to_text(values.get("termination_option_start")),
        termination_option_expiration=to_text(values.get("termination_option_expiration")),
        rofo_option=_truthy(values.get("rofo_option")),
        rofr_option=_truthy(values.get("rofr_option")),
        purchase_option=_truthy(values.get("purchase_option")),
        flags=[f for f in (to_text(values.get("_flags")) or "").split("; ") if f],
    )


def build_lease_export(output: PipelineOutput) -> LeaseExport:
    """Flat record plus extraction metadata for one pipeline result."""
    record = metrics_to_lease_record(output.metrics)
    return LeaseExport(
        **record.model_dump(),
        extraction=ExtractionMeta(
            extracted_at=output.extracted_at,
            source_document=output.filename,
            model=output.model,
            validation_results=output.validation_results,
            overrides_applied=count_overrides(output.metrics),
        ),
    )


def count_overrides(metrics: list[Metric]) -> int:
    return sum(1 for m in metrics if m.override is not None)


def _truthy(value: Scalar) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "yes", "1")
    return bool(value)
