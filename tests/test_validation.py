"""
Tests for the capital-fit advisory and submission gating.
"""

from __future__ import annotations

import pytest

from tradelogic.data.models import (
    AdvisorySeverity,
    Bandarmology,
    CapitalTier,
    Fundamentals,
    StockAnalysisInput,
)
from tradelogic.data.validation import (
    check_submission_ready,
    is_step_valid,
    is_submission_ready,
    missing_fields,
    validate_capital_fit,
)
from tradelogic.errors import InputValidationError


class TestValidateCapitalFit:
    def test_micro_too_large_is_critical(self):
        advisory = validate_capital_fit("150000001", CapitalTier.MICRO)
        assert advisory is not None
        assert advisory.severity == AdvisorySeverity.CRITICAL
        assert "MICRO" in advisory.message

    def test_micro_at_ceiling_is_fine(self):
        assert validate_capital_fit("150000000", CapitalTier.MICRO) is None

    def test_retail_approaching_high_net(self):
        advisory = validate_capital_fit("2000000000", CapitalTier.RETAIL)
        assert advisory is not None
        assert advisory.severity == AdvisorySeverity.WARNING
        assert "approaching HIGH_NET" in advisory.message

    def test_institutional_below_floor(self):
        advisory = validate_capital_fit("500000000", CapitalTier.INSTITUTIONAL)
        assert advisory is not None
        assert advisory.severity == AdvisorySeverity.INVALID
        assert "requires capital ≥ 1 billion" in advisory.message

    def test_institutional_at_floor_is_fine(self):
        assert validate_capital_fit("1000000000", CapitalTier.INSTITUTIONAL) is None

    def test_high_net_never_warns(self):
        assert validate_capital_fit("1", CapitalTier.HIGH_NET) is None
        assert validate_capital_fit("99000000000", CapitalTier.HIGH_NET) is None

    @pytest.mark.parametrize("capital", ["", "abc", "1,000"])
    def test_unparseable_capital_yields_nothing(self, capital):
        assert validate_capital_fit(capital, CapitalTier.INSTITUTIONAL) is None

    def test_pure_and_idempotent(self):
        first = validate_capital_fit("700000000", CapitalTier.RETAIL)
        second = validate_capital_fit("700000000", CapitalTier.RETAIL)
        assert first == second


class TestSubmissionGate:
    def test_complete_input_is_ready(self, sample_input):
        assert is_submission_ready(sample_input)
        check_submission_ready(sample_input)

    def test_empty_input_reports_ticker_first(self):
        with pytest.raises(InputValidationError) as exc_info:
            check_submission_ready(StockAnalysisInput())
        assert exc_info.value.field == "ticker"

    def test_missing_fundamental_is_named(self, sample_input):
        data = sample_input.model_copy(
            update={"fundamentals": sample_input.fundamentals.model_copy(update={"npm": ""})}
        )
        with pytest.raises(InputValidationError) as exc_info:
            check_submission_ready(data)
        assert exc_info.value.field == "fundamentals.npm"

    def test_missing_broker_codes(self, sample_input):
        data = sample_input.model_copy(
            update={"bandarmology": sample_input.bandarmology.model_copy(update={"top_brokers": ""})}
        )
        assert not is_submission_ready(data)
        assert missing_fields(data) == ["bandarmology.top_brokers"]

    def test_intelligence_of_exactly_50_chars_is_rejected(self, sample_input):
        data = sample_input.model_copy(update={"raw_intelligence_data": "x" * 50})
        with pytest.raises(InputValidationError) as exc_info:
            check_submission_ready(data)
        assert exc_info.value.field == "raw_intelligence_data"

    def test_intelligence_of_51_chars_is_accepted(self, sample_input):
        data = sample_input.model_copy(update={"raw_intelligence_data": "x" * 51})
        assert is_submission_ready(data)

    def test_trailing_whitespace_counts_towards_length(self, sample_input):
        data = sample_input.model_copy(update={"raw_intelligence_data": "x" * 50 + "\n"})
        assert is_submission_ready(data)
        assert is_step_valid(data, 4)

    def test_fundamentals_checked_even_with_long_intelligence(self):
        data = StockAnalysisInput(
            ticker="TLKM",
            price="3000",
            capital="1000000",
            fundamentals=Fundamentals(roe="10"),
            bandarmology=Bandarmology(top_brokers="YP", bandar_avg_price="2900"),
            raw_intelligence_data="y" * 80,
        )
        assert not is_submission_ready(data)
        assert "fundamentals.der" in missing_fields(data)


class TestStepValidity:
    def test_steps_on_empty_draft(self):
        draft = StockAnalysisInput()
        assert [is_step_valid(draft, s) for s in (1, 2, 3, 4)] == [False] * 4

    def test_steps_on_complete_input(self, sample_input):
        assert all(is_step_valid(sample_input, s) for s in (1, 2, 3, 4))

    def test_unknown_step(self, sample_input):
        with pytest.raises(ValueError):
            is_step_valid(sample_input, 5)
