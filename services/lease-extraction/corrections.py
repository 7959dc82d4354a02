"""Heuristic auto-corrections applied to extracted fields before validation.

Two systematic extraction errors are detected here:

* lease type: the source text says "triple-net" but the model answered
  something else (often FSG, because the lease also has a base year);
* escalation units: a fixed $/RSF step that is really a round percentage
  of the starting rate (e.g. $1.14 on $38.00/RSF is 3%).

Correctors are pure: they return a new metric list with ``override`` set and
a note appended, and leave the input untouched.
"""

import logging

from config import Tolerances
from models import Confidence, EscalationAnalysis, EscalationType, Metric
from values import effective_values, to_float, to_text

logger = logging.getLogger(__name__)

TRIPLE_NET_PHRASES = ("triple-net", "triple net", "nnn", "net net net")

# lease_type duplicates document_type for the flat export
LEASE_TYPE_METRICS = ("document_type", "lease_type")


def apply_lease_type_correction(metrics: list[Metric]) -> list[Metric]:
    """Override lease type fields to NNN when their source text says triple-net."""
    corrected = []
    for m in metrics:
        if m.metric in LEASE_TYPE_METRICS and _mentions_triple_net(m.source_blurb):
            current = to_text(m.final_value)
            if current is None or current.upper() != "NNN":
                logger.info("Auto-correcting %s from %s to NNN", m.metric, current)
                m = m.model_copy(update={
                    "override": "NNN",
                    "flags": [*m.flags, "Auto-corrected to NNN: source text contains explicit triple-net language"],
                })
        corrected.append(m)
    return corrected


def _mentions_triple_net(blurb: str) -> bool:
    lower = (blurb or "").lower()
    return any(phrase in lower for phrase in TRIPLE_NET_PHRASES)


def analyze_escalation(
    starting_rent: float,
    suite_sf: float,
    current_value: float,
    current_type: EscalationType,
    tolerances: Tolerances | None = None,
) -> EscalationAnalysis:
    """Decide how an escalation value should be interpreted.

    Only ``Confidence.HIGH`` results are applied automatically.
    """
    tol = tolerances or Tolerances()
    annual_rsf = (starting_rent * 12) / suite_sf

    if current_value >= tol.dollar_floor:
        implied = current_value / annual_rsf
        for low, high, canonical in tol.round_percent_windows:
            if low <= implied <= high:
                return EscalationAnalysis(
                    suggested_type=EscalationType.PERCENTAGE,
                    suggested_value=canonical,
                    confidence=Confidence.HIGH,
                    reasoning=(
                        f"${current_value:g}/RSF increase on ${annual_rsf:.2f}/RSF base = "
                        f"{implied * 100:.1f}% ≈ {canonical * 100:g}% annual escalation"
                    ),
                )

        return EscalationAnalysis(
            suggested_type=EscalationType.FIXED_DOLLAR_PER_RSF,
            suggested_value=current_value,
            confidence=Confidence.MEDIUM,
            reasoning=f"${current_value:g}/RSF appears to be a fixed dollar escalation",
        )

    if current_value < tol.percent_ceiling:
        return EscalationAnalysis(
            suggested_type=EscalationType.PERCENTAGE,
            suggested_value=current_value,
            confidence=Confidence.HIGH,
            reasoning=f"{current_value * 100:.1f}% is a valid percentage escalation",
        )

    return EscalationAnalysis(
        suggested_type=current_type,
        suggested_value=current_value,
        confidence=Confidence.LOW,
        reasoning="Unable to determine escalation pattern with confidence",
    )


def apply_escalation_correction(metrics: list[Metric], tolerances: Tolerances | None = None) -> list[Metric]:
    """Rewrite rent_escalations/escalation_type when the analysis is high confidence."""
    values = effective_values(metrics)
    starting_rent = to_float(values.get("starting_rent_monthly"))
    suite_sf = to_float(values.get("suite_sf"))
    current_value = to_float(values.get("rent_escalations"))
    type_text = to_text(values.get("escalation_type"))

    if not starting_rent or not suite_sf or not current_value or not type_text:
        return metrics

    try:
        current_type = EscalationType(type_text.lower())
    except ValueError:
        logger.warning("Unknown escalation type %r, skipping escalation correction", type_text)
        return metrics

    analysis = analyze_escalation(starting_rent, suite_sf, current_value, current_type, tolerances)

    if analysis.confidence != Confidence.HIGH:
        return metrics
    if analysis.suggested_type == current_type and analysis.suggested_value == current_value:
        return metrics

    logger.info(
        "Auto-correcting escalation %s=%g to %s=%g",
        current_type.value, current_value, analysis.suggested_type.value, analysis.suggested_value,
    )

    corrected = []
    for m in metrics:
        if m.metric == "rent_escalations":
            m = m.model_copy(update={
                "override": analysis.suggested_value,
                "flags": [*m.flags, f"Auto-corrected: {analysis.reasoning}"],
            })
        elif m.metric == "escalation_type":
            m = m.model_copy(update={
                "override": analysis.suggested_type.value,
                "flags": [*m.flags, f"Auto-corrected from {current_type.value} to {analysis.suggested_type.value}"],
            })
        corrected.append(m)
    return corrected


def apply_corrections(metrics: list[Metric], tolerances: Tolerances | None = None) -> list[Metric]:
    """Run both correctors: lease type first, then escalation."""
    return apply_escalation_correction(apply_lease_type_correction(metrics), tolerances)
