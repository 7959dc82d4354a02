"""Prompts for lease type classification and full field extraction.

The extraction prompt is parameterized by the detected document type and
by a synonym dictionary loaded once from JSON (see ``load_synonyms``).
"""

import json
import logging
from pathlib import Path
from typing import Any

from models import DocumentType

logger = logging.getLogger(__name__)

Synonyms = dict[str, Any]


LEASE_TYPE_PROMPT = """You are analyzing the first page of a commercial lease document.

Look at the document header, title, and first paragraph to determine what type of commercial lease this is.

Classify as ONE of these types:
- NNN: Triple-net lease. Tenant pays base rent plus all operating expenses (property taxes, insurance, CAM/maintenance). Look for: "triple-net", "NNN", "net net net"
- FSG: Full Service Gross / Base Year Gross. Landlord includes base operating costs in rent, tenant pays increases over base year. Look for: "full service", "gross lease", "base year"
- MG: Modified Gross. Hybrid where some expenses are included, others passed through. Look for: "modified gross"
- IG: Industrial Gross. Common for warehouse/industrial, typically includes some but not all expenses. Look for: "industrial", warehouse context with gross structure
- ANN: Absolute Net / Bondable Net. Tenant responsible for absolutely everything including structural repairs. Rare. Look for: "absolute net", "bondable"

EXPLICIT LANGUAGE TAKES PRIORITY:
- If the document EXPLICITLY states "triple-net", "NNN", or "net net net" anywhere, classify as NNN
- If the document EXPLICITLY states "gross lease" or "full service", classify as FSG
- Do NOT override explicit lease type language based on perceived structure
- Many NNN leases have base year expense structures but are still NNN leases
- Trust what the lease SAYS it is, not what you infer from structure

Only if NO explicit type language exists, then infer from structure.

Respond with ONLY the type code (NNN, FSG, MG, IG, or ANN) and nothing else."""


LEASE_TYPE_CONTEXT: dict[DocumentType, str] = {
    DocumentType.NNN: """- This is a Triple-Net lease: expect tenant pays all operating costs
- Look for "triple-net" language, CAM charges, property tax pass-throughs
- Rent table may show base rent separate from estimated operating expenses""",
    DocumentType.FSG: """- This is a Full Service Gross / Base Year Gross lease
- Rent includes base operating costs, tenant pays increases over base year
- Look for "Base Year" definition, operating expense escalations
- The rent table shows all-in rent (no separate CAM line)""",
    DocumentType.MG: """- This is a Modified Gross lease: hybrid structure
- Some expenses included in rent, others passed through
- Carefully identify which expenses are tenant responsibility""",
    DocumentType.IG: """- This is an Industrial Gross lease
- Common for warehouse/industrial space
- May include some but not all operating expenses""",
    DocumentType.ANN: """- This is an Absolute Net / Bondable Net lease
- Tenant responsible for absolutely everything including structural
- Very rare, typically long-term credit tenant deals""",
}


EXTRACTION_USER_PROMPT = (
    "Please analyze all the lease pages provided and extract the 27 fields described above. "
    'Return the results as a JSON object with a "metrics" array.'
)


def load_synonyms(path: str | Path) -> Synonyms:
    """Load the synonym dictionary. A missing or invalid file yields {}."""
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.warning("Synonym dictionary not found at %s, prompts will omit synonyms", path)
        return {}
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not load synonym dictionary %s: %s", path, e)
        return {}

    if not isinstance(data, dict):
        logger.warning("Synonym dictionary %s is not a JSON object, ignoring", path)
        return {}
    return data


def _terms(synonyms: Synonyms, key: str, sub: str | None = None) -> str:
    entry = synonyms.get(key)
    if sub is not None:
        entry = entry.get(sub) if isinstance(entry, dict) else None
    if not isinstance(entry, list):
        return ""
    return ", ".join(str(term) for term in entry)


def build_extraction_system_prompt(document_type: DocumentType, synonyms: Synonyms) -> str:
    """Build the system prompt for full extraction of the 27 fields."""
    return f"""You are a commercial lease data extraction system. You will be given the text of every page of a commercial lease. Extract the following 27 fields into a JSON array of metric objects.

LEASE TYPE CONTEXT:
This lease has been classified as: {document_type.value}
{LEASE_TYPE_CONTEXT[document_type]}

FOR EACH METRIC, RETURN THIS EXACT JSON STRUCTURE:
{{
  "metric": "<field_name>",
  "value": <extracted_value_or_null>,
  "source_blurb": "<the paragraph or sentence where you found this>",
  "flags": ["<any concerns, notes, or caveats>"]
}}

Return a JSON object with a "metrics" array containing all 27 field extractions.

FIELD DEFINITIONS AND EXTRACTION RULES:

1. property (string): The building name or address. Normalize to short form.

2. tenant_name (string): The tenant's name. If a DBA/trade name exists ({_terms(synonyms, "tenant_name_dba_indicators")}), use that. Otherwise use the legal entity name with suffix stripped ({_terms(synonyms, "tenant_name_suffixes")}).

3. suite (string): Suite number.

4. document_type (string): The lease type. Values: "NNN", "FSG", "MG", "IG", "ANN"
   If the lease EXPLICITLY states "triple-net", "NNN", or "net net net", classify as NNN.

5. suite_sf (number): Rentable square feet of the leased premises. May be called: {_terms(synonyms, "suite_sf", "synonyms")}.

6. suite_pro_rata_share (number): Tenant's proportionate share of the building, as a decimal. e.g., 4.81% -> 0.0481.

7. lease_start_date (string|null): The lease commencement date in YYYY-MM-DD format. Often conditional ("later to occur of...", "earlier to occur of..."). Extract the explicit calendar date mentioned. If no date is discernible, return null. FLAG if date is anticipated/conditional. Synonyms: {_terms(synonyms, "lease_start", "synonyms")}.

8. lease_term_months (number): Lease term in months.

9. lease_expiration_date (string|null): In YYYY-MM-DD format. Usually NOT stated explicitly; calculate from start date + term months. If start date is null, return null. Common formula: last day of the Nth full calendar month.

10. free_rent_months (number): Number of months of free/abated rent. Return 0 if none. Synonyms: {_terms(synonyms, "free_rent", "synonyms")}. Absence indicators: {_terms(synonyms, "free_rent", "absence_indicators")}.

11. starting_rent_monthly (number): First-year monthly rent in dollars. Found in the rent table. Synonyms: {_terms(synonyms, "starting_rent", "synonyms")}.

12. rent_escalations (number): The escalation rate VALUE.
    - If percentage: the decimal rate (e.g., 0.03 for 3%)
    - If fixed dollar: the dollar amount (e.g., 1.00 for $1.00/RSF/year)
    - If step schedule or not calculable: 0
    Analyze the rent table. Calculate year-over-year changes.
    If the DOLLAR increase per RSF is constant -> it's fixed_dollar_per_rsf.
    If the PERCENTAGE increase is constant -> it's percentage.
    If neither is constant -> it's step_schedule.

13. escalation_type (string): How to interpret rent_escalations. Values: "percentage", "fixed_dollar_per_rsf", "fixed_dollar_per_month", "cpi", "fmv", "step_schedule". DETECT FROM THE RENT TABLE, do not guess.

14. escalation_frequency (string): "annual", "semi_annual", "monthly". Usually inferred from rent table period labels.

15. lease_type (string): Same as document_type. "NNN", "FSG", "MG", "IG", "ANN"
    Must match document_type. Use explicit lease language to determine.

16. security_deposit (number): Dollar amount.

17. renewal_option (boolean): Does the tenant have a voluntary renewal/extension right? Look for: {_terms(synonyms, "renewal_option", "synonyms")}.

18. renewal_option_term_months (number|null): Term of the renewal in months. "five-year" = 60 months. null if no renewal option.

19. renewal_option_start_mos_prior (number|null): The EARLIEST the tenant can give renewal notice, in months before lease expiration. "not more than 12 months" -> 12. If "at least X months" with NO upper bound -> null. null also if no renewal option.

20. renewal_option_exp_mos_prior (number|null): The LATEST the tenant can give renewal notice (deadline). "at least 9 months" -> 9. null if no renewal option.

21. termination_option (boolean): Does the tenant have a VOLUNTARY early termination right?
    This is ONLY for voluntary termination at tenant's discretion.
    The following are NOT voluntary termination options, DO NOT count them: {_terms(synonyms, "termination_false_positives")}.
    When in doubt, flag it and return false.

22. termination_option_start (string|null): null if no termination option.

23. termination_option_expiration (string|null): null if no termination option.

24. rofo_option (boolean): Does the tenant have a Right of First Offer? ROFO = Landlord must offer space to tenant FIRST, before marketing. Synonyms: {_terms(synonyms, "rofo", "synonyms")}.

25. rofr_option (boolean): Does the tenant have a Right of First Refusal? ROFR = Landlord markets space freely, then gives tenant the right to MATCH any third-party offer. Synonyms: {_terms(synonyms, "rofr", "synonyms")}. If present, FLAG with scope limitations.

26. purchase_option (boolean): Does the tenant have a right to purchase the property?

27. _flags (string[]): Top-level flags for the entire lease extraction. Include any document-wide observations.

GENERAL RULES:
- Return null (not empty string, not "N/A") when a value cannot be determined.
- For boolean fields, default to false if you don't find evidence of the right. But if a keyword appears ANYWHERE, investigate.
- source_blurb should be the actual text from the lease, 1-3 sentences, enough for a human reviewer to verify.
- flags should be plain English notes for the reviewer.

OUTPUT FORMAT:
Return a valid JSON object with this structure:
{{
  "metrics": [
    {{"metric": "property", "value": "...", "source_blurb": "...", "flags": []}},
    {{"metric": "tenant_name", "value": "...", "source_blurb": "...", "flags": []}},
    ... (all 27 fields)
  ]
}}"""
