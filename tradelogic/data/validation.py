"""
Local, synchronous checks on an analysis request.

Two independent concerns live here:

* :func:`validate_capital_fit` classifies a capital / tier mismatch as an
  advisory.  It never raises and never blocks submission.
* :func:`check_submission_ready` is the hard gate: it raises
  :class:`~tradelogic.errors.InputValidationError` naming the first unmet
  field.  :func:`is_submission_ready` and :func:`is_step_valid` are the
  non-raising views used by step-wise collaborators.
"""

from __future__ import annotations

from typing import Optional

from tradelogic.data.models import (
    AdvisorySeverity,
    CapitalAdvisory,
    CapitalTier,
    StockAnalysisInput,
)
from tradelogic.errors import InputValidationError

MICRO_CAPITAL_CEILING = 150_000_000
RETAIL_CAPITAL_CEILING = 600_000_000
INSTITUTIONAL_CAPITAL_FLOOR = 1_000_000_000

MIN_INTELLIGENCE_LENGTH = 50

FUNDAMENTAL_FIELDS = ("roe", "der", "pbv", "per", "npm", "growth", "cfo", "fcf")


def _parse_amount(capital: str) -> Optional[float]:
    try:
        return float(capital)
    except (TypeError, ValueError):
        return None


def validate_capital_fit(
    capital: str, tier: CapitalTier
) -> Optional[CapitalAdvisory]:
    """Return an advisory when *capital* looks implausible for *tier*.

    Rules are evaluated in order and the first match wins.  Empty or
    non-numeric capital yields no advisory.
    """
    amount = _parse_amount(capital)
    if amount is None:
        return None

    if tier is CapitalTier.MICRO and amount > MICRO_CAPITAL_CEILING:
        return CapitalAdvisory(
            severity=AdvisorySeverity.CRITICAL,
            message="Capital too large for MICRO tier.",
        )
    if tier is CapitalTier.RETAIL and amount > RETAIL_CAPITAL_CEILING:
        return CapitalAdvisory(
            severity=AdvisorySeverity.WARNING,
            message="Capital is approaching HIGH_NET, consider upgrading tier.",
        )
    if tier is CapitalTier.INSTITUTIONAL and amount < INSTITUTIONAL_CAPITAL_FLOOR:
        return CapitalAdvisory(
            severity=AdvisorySeverity.INVALID,
            message="INSTITUTIONAL tier requires capital ≥ 1 billion.",
        )
    return None


# ---------------------------------------------------------------------------
# Submission gating
# ---------------------------------------------------------------------------

def _step_missing(data: StockAnalysisInput, step: int) -> list[str]:
    if step == 1:
        return [
            name for name in ("ticker", "price", "capital")
            if not getattr(data, name)
        ]
    if step == 2:
        return [
            f"fundamentals.{name}" for name in FUNDAMENTAL_FIELDS
            if not getattr(data.fundamentals, name)
        ]
    if step == 3:
        return [
            f"bandarmology.{name}" for name in ("top_brokers", "bandar_avg_price")
            if not getattr(data.bandarmology, name)
        ]
    if step == 4:
        if len(data.raw_intelligence_data) > MIN_INTELLIGENCE_LENGTH:
            return []
        return ["raw_intelligence_data"]
    raise ValueError(f"Unknown form step: {step}")


def missing_fields(data: StockAnalysisInput) -> list[str]:
    """Every unmet submission requirement, in check order."""
    missing: list[str] = []
    for step in (1, 2, 3, 4):
        missing.extend(_step_missing(data, step))
    return missing


def is_step_valid(data: StockAnalysisInput, step: int) -> bool:
    """Whether wizard step *step* (1-4) has everything it needs."""
    return not _step_missing(data, step)


def check_submission_ready(data: StockAnalysisInput) -> None:
    missing = missing_fields(data)
    if missing:
        raise InputValidationError(missing[0])


def is_submission_ready(data: StockAnalysisInput) -> bool:
    return not missing_fields(data)
