"""
Request composer.

Turns a validated :class:`StockAnalysisInput` into the instruction text,
the user prompt and the fixed decoding policy.  Pure: no network I/O,
no clock, no randomness.  Identical input always yields an identical
request.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from tradelogic.agents.prompts import (
    ANALYSIS_PROMPT,
    RISK_POLICY_CLAUSES,
    SYSTEM_INSTRUCTION,
)
from tradelogic.data.models import RiskProfile, StockAnalysisInput
from tradelogic.data.validation import check_submission_ready

FIXED_SEED = 42069


class DecodingPolicy(BaseModel):
    """Sampling parameters sent with every inference call."""

    model_config = ConfigDict(frozen=True)

    temperature: float = 0.0
    top_k: Optional[int] = None
    top_p: Optional[float] = None
    seed: int = FIXED_SEED

    def as_invoke_kwargs(self, send_top_k: bool = False) -> dict[str, Any]:
        """Keyword arguments for ``BaseChatModel.ainvoke``.

        The OpenAI chat endpoint has no ``top_k``; it is forwarded through
        ``extra_body`` only for gateways that accept it.
        """
        kwargs: dict[str, Any] = {"temperature": self.temperature, "seed": self.seed}
        if self.top_p is not None:
            kwargs["top_p"] = self.top_p
        if send_top_k and self.top_k is not None:
            kwargs["extra_body"] = {"top_k": self.top_k}
        return kwargs


ANALYSIS_DECODING = DecodingPolicy(temperature=0.0, top_k=1, top_p=0.1, seed=FIXED_SEED)
CONSISTENCY_DECODING = DecodingPolicy(temperature=0.0, seed=FIXED_SEED)


class ComposedRequest(BaseModel):
    """Everything needed for one analysis call, minus the transport."""

    model_config = ConfigDict(frozen=True)

    instruction: str
    prompt: str
    decoding: DecodingPolicy = ANALYSIS_DECODING


def risk_clause(profile: RiskProfile) -> str:
    return RISK_POLICY_CLAUSES[profile.value]


def build_instruction(profile: RiskProfile) -> str:
    return SYSTEM_INSTRUCTION.format(risk_clause=risk_clause(profile))


def build_prompt(data: StockAnalysisInput) -> str:
    f = data.fundamentals
    b = data.bandarmology
    return ANALYSIS_PROMPT.format(
        ticker=data.ticker,
        price=data.price,
        risk_profile=data.risk_profile.value,
        capital=data.capital,
        capital_tier=data.capital_tier.value,
        roe=f.roe,
        der=f.der,
        pbv=f.pbv,
        per=f.per,
        npm=f.npm,
        growth=f.growth,
        cfo=f.cfo,
        fcf=f.fcf,
        broker_summary_val=b.broker_summary_val,
        top_brokers=b.top_brokers,
        duration=b.duration,
        bandar_avg_price=b.bandar_avg_price,
        order_book_bid=b.order_book_bid,
        order_book_ask=b.order_book_ask,
        trade_book_ask=b.trade_book_ask,
        trade_book_bid=b.trade_book_bid,
        raw_intelligence_data=data.raw_intelligence_data,
    )


def compose(data: StockAnalysisInput) -> ComposedRequest:
    """Build the request payload for *data*.

    Raises :class:`~tradelogic.errors.InputValidationError` when the
    input is not submission-ready.
    """
    check_submission_ready(data)
    return ComposedRequest(
        instruction=build_instruction(data.risk_profile),
        prompt=build_prompt(data),
        decoding=ANALYSIS_DECODING,
    )
