"""
Shared test fixtures and helpers.
"""

from __future__ import annotations

import copy
import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from langchain_core.messages import AIMessage

from tradelogic.data.models import (
    AnalysisResult,
    Bandarmology,
    CapitalTier,
    Fundamentals,
    RiskProfile,
    StockAnalysisInput,
)


# ---------------------------------------------------------------------------
# Mock chat models
# ---------------------------------------------------------------------------


def make_mock_llm(response_text: str = "{}") -> MagicMock:
    """Return a MagicMock that behaves like a BaseChatModel.

    ``ainvoke`` resolves to an ``AIMessage`` carrying *response_text*.
    """
    llm = MagicMock()
    llm.ainvoke = AsyncMock(return_value=AIMessage(content=response_text))
    return llm


def make_failing_llm(exc: Exception) -> MagicMock:
    """Return a mock chat model whose ``ainvoke`` raises *exc*."""
    llm = MagicMock()
    llm.ainvoke = AsyncMock(side_effect=exc)
    return llm


# ---------------------------------------------------------------------------
# Canned model responses
# ---------------------------------------------------------------------------


def _plan(status: str) -> dict[str, Any]:
    return {
        "verdict": "ACCUMULATE",
        "entry": "9000-9100",
        "tp": "9800",
        "sl": "8700",
        "reasoning": "Institutional absorption on the offer.",
        "status": status,
    }


SAMPLE_PAYLOAD: dict[str, Any] = {
    "ticker": "BBCA",
    "priceInfo": {
        "current": "9100",
        "bandarAvg": "8950",
        "diffPercent": 1.68,
        "status": "ABOVE BANDAR AVG",
    },
    "marketCapAnalysis": {"category": "Big Cap", "behavior": "Slow, institution-led."},
    "supplyDemand": {
        "bidStrength": 72,
        "offerStrength": 40,
        "verdict": "INSTITUTIONAL ABSORPTION",
    },
    "prediction": {"direction": "UP", "probability": 65, "reasoning": "Foreign inflow."},
    "stressTest": {"passed": True, "score": 81, "details": "CFO covers net income."},
    "brokerAnalysis": {"classification": "ACCUMULATION", "insight": "AK and BK net buy."},
    "summary": "Quality compounder under accumulation.",
    "bearCase": "Rate cuts compress NIM.",
    "strategy": {
        "bestTimeframe": "MEDIUM",
        "shortTerm": _plan("POSSIBLE"),
        "mediumTerm": _plan("RECOMMENDED"),
        "longTerm": _plan("RECOMMENDED"),
    },
    "fullAnalysis": "Executive Summary...\n\nLiquidity & Capital Fit...",
}


def payload(**overrides: Any) -> dict[str, Any]:
    """A deep copy of :data:`SAMPLE_PAYLOAD` with top-level overrides."""
    data = copy.deepcopy(SAMPLE_PAYLOAD)
    data.update(overrides)
    return data


def payload_text(**overrides: Any) -> str:
    return json.dumps(payload(**overrides))


def make_result(
    id: str | None = "case-1",
    timestamp: int | None = 1_000,
    ticker: str = "BBCA",
) -> AnalysisResult:
    data = payload(ticker=ticker)
    data["id"] = id
    data["timestamp"] = timestamp
    return AnalysisResult.model_validate(data)


CONSISTENCY_RESPONSE: dict[str, Any] = {
    "ticker": "BBCA",
    "dataPoints": 3,
    "trendVerdict": "IMPROVING",
    "consistencyScore": 78,
    "analysis": "Stress scores rising across snapshots.",
    "actionItem": "Hold and add on pullbacks.",
}


# ---------------------------------------------------------------------------
# Sample inputs
# ---------------------------------------------------------------------------


INTELLIGENCE = (
    "Foreign net buy five days in a row; management guided 12% loan growth "
    "and a higher interim dividend."
)


@pytest.fixture
def sample_input() -> StockAnalysisInput:
    return StockAnalysisInput(
        ticker="bbca",
        price="9100",
        capital="250000000",
        capital_tier=CapitalTier.RETAIL,
        risk_profile=RiskProfile.BALANCED,
        fundamentals=Fundamentals(
            roe="21.4",
            der="0.9",
            pbv="4.6",
            per="23.1",
            npm="48.2",
            growth="11.7",
            cfo="61.2T",
            fcf="55.0T",
        ),
        bandarmology=Bandarmology(
            order_book_bid="9075 x 12,400 lot",
            order_book_ask="9125 x 3,100 lot",
            trade_book_bid="1,250 lot haki",
            trade_book_ask="4,870 lot haka",
            broker_summary_val=74,
            top_brokers="AK, BK, ZP",
            duration="5 days",
            bandar_avg_price="8950",
        ),
        raw_intelligence_data=INTELLIGENCE,
    )
