"""Cross-validation checks run on corrected extraction output.

Each check reads a read-only snapshot of effective values (override if set,
otherwise the extracted value) and returns PASS, FAIL, FLAG or SKIP. A check
SKIPs when any input it needs is missing, null or zero; it only fails on data
that is present but inconsistent.
"""

import calendar
import logging
from datetime import date
from typing import Mapping

from config import Tolerances
from models import CheckId, EscalationType, Metric, Scalar, ValidationResult, ValidationStatus
from values import effective_values, to_date, to_float, to_text

logger = logging.getLogger(__name__)

DEFAULT_BUILDING_SF = 138130.0

Values = Mapping[str, Scalar]


def run_validation(
    metrics: list[Metric],
    building_sf: float = DEFAULT_BUILDING_SF,
    tolerances: Tolerances | None = None,
) -> list[ValidationResult]:
    """Run all five checks in their fixed presentation order."""
    tol = tolerances or Tolerances()
    values = effective_values(metrics)

    results = [
        validate_rent_math(values, tol),
        validate_pro_rata(values, building_sf, tol),
        validate_date_arithmetic(values, tol),
        validate_escalation_consistency(values, tol),
        validate_deposit_sanity(values, tol),
    ]

    for result in results:
        if result.status in (ValidationStatus.FAIL, ValidationStatus.FLAG):
            logger.info("Validation %s %s: %s", result.check.value, result.status.value, result.detail)
    return results


def validate_rent_math(values: Values, tolerances: Tolerances | None = None) -> ValidationResult:
    """SF × $/RSF ÷ 12 should reproduce the stated monthly rent."""
    tol = tolerances or Tolerances()
    suite_sf = to_float(values.get("suite_sf"))
    monthly_rent = to_float(values.get("starting_rent_monthly"))

    if not suite_sf or not monthly_rent:
        return _result(CheckId.RENT_MATH, ValidationStatus.SKIP, "Missing suite_sf or starting_rent_monthly")

    implied_annual_rsf = (monthly_rent * 12) / suite_sf
    recalculated = (suite_sf * implied_annual_rsf) / 12
    math_text = f"{_num(suite_sf)} SF × ${implied_annual_rsf:.2f}/RSF ÷ 12 = ${recalculated:.2f}"

    if abs(recalculated - monthly_rent) > tol.rent_math_dollars:
        return _result(
            CheckId.RENT_MATH,
            ValidationStatus.FAIL,
            f"Rent math inconsistent: {math_text}, expected ${monthly_rent:.2f}",
        )
    return _result(CheckId.RENT_MATH, ValidationStatus.PASS, math_text)


def validate_pro_rata(
    values: Values,
    building_sf: float = DEFAULT_BUILDING_SF,
    tolerances: Tolerances | None = None,
) -> ValidationResult:
    """suite_sf ÷ building SF should match the stated pro rata share."""
    tol = tolerances or Tolerances()
    suite_sf = to_float(values.get("suite_sf"))
    pro_rata = to_float(values.get("suite_pro_rata_share"))

    if not suite_sf or not pro_rata or not building_sf:
        return _result(CheckId.PRO_RATA, ValidationStatus.SKIP, "Missing suite_sf or suite_pro_rata_share")

    expected = suite_sf / building_sf

    if abs(expected - pro_rata) > tol.pro_rata:
        return _result(
            CheckId.PRO_RATA,
            ValidationStatus.FAIL,
            f"Expected {expected * 100:.2f}% ({_num(suite_sf)}/{_num(building_sf)}), got {pro_rata * 100:.2f}%",
        )
    return _result(
        CheckId.PRO_RATA,
        ValidationStatus.PASS,
        f"{_num(suite_sf)} / {_num(building_sf)} = {expected * 100:.2f}%",
    )


def expected_expiration(start: date, term_months: int) -> date:
    """Last day of the term's final calendar month (start + term, minus one month, end of month)."""
    index = start.year * 12 + (start.month - 1) + term_months - 1
    year, month0 = divmod(index, 12)
    return date(year, month0 + 1, calendar.monthrange(year, month0 + 1)[1])


def validate_date_arithmetic(values: Values, tolerances: Tolerances | None = None) -> ValidationResult:
    """Start date + term months should land on the stated expiration month."""
    tol = tolerances or Tolerances()
    start_raw = values.get("lease_start_date")
    term = to_float(values.get("lease_term_months"))
    expiration_raw = values.get("lease_expiration_date")

    if not to_text(start_raw) or not term or not to_text(expiration_raw) or term < 0:
        return _result(CheckId.DATE_ARITHMETIC, ValidationStatus.SKIP, "Missing date(s) or term")

    start = to_date(start_raw)
    expiration = to_date(expiration_raw)
    if start is None or expiration is None:
        return _result(CheckId.DATE_ARITHMETIC, ValidationStatus.SKIP, "Could not parse dates")

    term_months = round(term)
    try:
        expected = expected_expiration(start, term_months)
    except (ValueError, OverflowError):
        return _result(
            CheckId.DATE_ARITHMETIC,
            ValidationStatus.SKIP,
            f"Term of {term_months} months gives an expiration outside the calendar",
        )

    # Month distance, so Dec -> Jan across a year boundary counts as 1
    delta = abs((expiration.year * 12 + expiration.month) - (expected.year * 12 + expected.month))
    summary = f"{start.isoformat()} + {term_months} months"

    if delta > tol.date_month_slack:
        return _result(
            CheckId.DATE_ARITHMETIC,
            ValidationStatus.FAIL,
            f"{summary} ≠ {expiration.isoformat()} (expected {expected.isoformat()})",
        )
    return _result(CheckId.DATE_ARITHMETIC, ValidationStatus.PASS, f"{summary} = {expiration.isoformat()}")


def validate_escalation_consistency(values: Values, tolerances: Tolerances | None = None) -> ValidationResult:
    """The escalation type should agree with the size of the escalation value."""
    tol = tolerances or Tolerances()
    escalation_value = to_float(values.get("rent_escalations"))
    escalation_type = (to_text(values.get("escalation_type")) or "").lower()
    starting_rent = to_float(values.get("starting_rent_monthly"))
    suite_sf = to_float(values.get("suite_sf"))

    if not escalation_value or not escalation_type or not starting_rent or not suite_sf:
        return _result(CheckId.ESCALATION_CONSISTENCY, ValidationStatus.SKIP, "Missing escalation data")

    annual_rsf = (starting_rent * 12) / suite_sf
    implied_percent = escalation_value / annual_rsf

    if escalation_type == EscalationType.PERCENTAGE.value and escalation_value >= tol.dollar_floor:
        return _result(
            CheckId.ESCALATION_CONSISTENCY,
            ValidationStatus.FLAG,
            f"Classified as percentage but value {escalation_value:g} looks like dollar amount",
        )

    if escalation_type in (EscalationType.FIXED_DOLLAR_PER_RSF.value, EscalationType.STEP_SCHEDULE.value):
        canonical = _round_percent(implied_percent, tol)
        if canonical is not None:
            return _result(
                CheckId.ESCALATION_CONSISTENCY,
                ValidationStatus.FLAG,
                f"Classified as {escalation_type} (${escalation_value:g}/RSF), but this equals "
                f"~{implied_percent * 100:.1f}% annual increase. "
                f"Consider reclassifying as percentage with value {canonical:g}",
            )

    if escalation_type == EscalationType.PERCENTAGE.value and escalation_value < tol.percent_ceiling:
        return _result(
            CheckId.ESCALATION_CONSISTENCY,
            ValidationStatus.PASS,
            f"{escalation_value * 100:.1f}% annual escalation confirmed",
        )

    return _result(
        CheckId.ESCALATION_CONSISTENCY,
        ValidationStatus.PASS,
        f"Escalation: {escalation_type} = {escalation_value:g}",
    )


def validate_deposit_sanity(values: Values, tolerances: Tolerances | None = None) -> ValidationResult:
    """Security deposit should be a plausible multiple of monthly rent."""
    tol = tolerances or Tolerances()
    deposit = to_float(values.get("security_deposit"))
    monthly_rent = to_float(values.get("starting_rent_monthly"))

    if not deposit or not monthly_rent:
        return _result(CheckId.DEPOSIT_SANITY, ValidationStatus.SKIP, "Missing deposit or rent")

    ratio = deposit / monthly_rent

    if ratio < tol.deposit_ratio_min or ratio > tol.deposit_ratio_max:
        return _result(
            CheckId.DEPOSIT_SANITY,
            ValidationStatus.FLAG,
            f"Deposit ratio {ratio:.2f}x monthly rent, outside typical "
            f"{tol.deposit_ratio_min:g}x-{tol.deposit_ratio_max:g}x range",
        )
    return _result(
        CheckId.DEPOSIT_SANITY,
        ValidationStatus.PASS,
        f"${deposit:,g} / ${monthly_rent:,g} = {ratio:.2f}x monthly rent",
    )


def _round_percent(implied: float, tol: Tolerances) -> float | None:
    for low, high, canonical in tol.round_percent_windows:
        if low <= implied <= high:
            return canonical
    return None


def _num(x: float) -> str:
    return str(int(x)) if float(x).is_integer() else str(x)


def _result(check: CheckId, status: ValidationStatus, detail: str) -> ValidationResult:
    return ValidationResult(check=check, status=status, detail=detail)
