"""
Data models for the TradeLogic workbench.

All Pydantic models representing the analysis request, the structured
verdict returned by the model, archive configuration and the trend
consistency result.

Python attributes are snake_case; the serialised form is camelCase so the
JSON exchanged with the model and written to the vault keeps the
established field names (``priceInfo``, ``bearCase`` ...).  Both
spellings are accepted on input.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class CapitalTier(str, Enum):
    """Coarse bucket of the user's investable capital."""

    MICRO = "MICRO"
    RETAIL = "RETAIL"
    HIGH_NET = "HIGH_NET"
    INSTITUTIONAL = "INSTITUTIONAL"


class RiskProfile(str, Enum):
    """Tolerance policy applied when judging valuation multiples."""

    CONSERVATIVE = "CONSERVATIVE"
    BALANCED = "BALANCED"
    AGGRESSIVE = "AGGRESSIVE"


class AdvisorySeverity(str, Enum):
    CRITICAL = "CRITICAL"
    WARNING = "WARNING"
    INVALID = "INVALID"


class MarketCapCategory(str, Enum):
    SMALL = "Small Cap"
    MID = "Mid Cap"
    BIG = "Big Cap"
    UNKNOWN = "UNKNOWN"


class Direction(str, Enum):
    UP = "UP"
    DOWN = "DOWN"
    CONSOLIDATE = "CONSOLIDATE"
    UNKNOWN = "UNKNOWN"


class Timeframe(str, Enum):
    SHORT = "SHORT"
    MEDIUM = "MEDIUM"
    LONG = "LONG"


class PlanStatus(str, Enum):
    RECOMMENDED = "RECOMMENDED"
    POSSIBLE = "POSSIBLE"
    FORBIDDEN = "FORBIDDEN"


class TrendVerdict(str, Enum):
    IMPROVING = "IMPROVING"
    STABLE = "STABLE"
    DEGRADING = "DEGRADING"
    VOLATILE = "VOLATILE"


# ---------------------------------------------------------------------------
# Analysis request
# ---------------------------------------------------------------------------

class Fundamentals(_CamelModel):
    """Eight fundamental ratios, kept as the strings the user typed."""

    model_config = ConfigDict(frozen=True)

    roe: str = ""
    der: str = ""
    pbv: str = ""
    per: str = ""
    npm: str = ""
    growth: str = ""
    cfo: str = ""
    fcf: str = ""


class Bandarmology(_CamelModel):
    """Order-book depth, aggressive trade flow and broker summary."""

    model_config = ConfigDict(frozen=True)

    order_book_bid: str = ""
    order_book_ask: str = ""
    trade_book_bid: str = Field(default="", description="Aggressive sell flow (haki).")
    trade_book_ask: str = Field(default="", description="Aggressive buy flow (haka).")
    broker_summary_val: int = Field(default=50, ge=0, le=100)
    top_brokers: str = ""
    duration: str = ""
    bandar_avg_price: str = ""


class StockAnalysisInput(_CamelModel):
    """One user-submitted analysis request.

    Empty strings are allowed so an unfinished draft can be represented;
    see :func:`tradelogic.data.validation.check_submission_ready` for the
    submission rules.
    """

    model_config = ConfigDict(frozen=True)

    ticker: str = ""
    price: str = ""
    capital: str = ""
    capital_tier: CapitalTier = CapitalTier.RETAIL
    risk_profile: RiskProfile = RiskProfile.BALANCED
    fundamentals: Fundamentals = Field(default_factory=Fundamentals)
    bandarmology: Bandarmology = Field(default_factory=Bandarmology)
    raw_intelligence_data: str = ""

    @field_validator("ticker")
    @classmethod
    def _normalise_ticker(cls, value: str) -> str:
        return value.strip().upper()


class CapitalAdvisory(BaseModel):
    """Soft warning that capital and tier do not match."""

    severity: AdvisorySeverity
    message: str


# ---------------------------------------------------------------------------
# Structured verdict
# ---------------------------------------------------------------------------

class PriceInfo(_CamelModel):
    current: str
    bandar_avg: str
    diff_percent: float
    status: str


class MarketCapAnalysis(_CamelModel):
    category: MarketCapCategory
    behavior: str


class SupplyDemand(_CamelModel):
    bid_strength: float = Field(ge=0, le=100)
    offer_strength: float = Field(ge=0, le=100)
    verdict: str


class Prediction(_CamelModel):
    direction: Direction
    probability: float = Field(ge=0, le=100)
    reasoning: str


class StressTest(_CamelModel):
    passed: bool
    score: float = Field(ge=0, le=100)
    details: str


class BrokerAnalysis(_CamelModel):
    classification: str
    insight: str


class TradePlan(_CamelModel):
    """Entry / take-profit / stop-loss plan for one timeframe."""

    verdict: str
    entry: str
    tp: str
    sl: str
    reasoning: str
    status: PlanStatus

    @property
    def is_actionable(self) -> bool:
        return self.status is not PlanStatus.FORBIDDEN

    def actionable_levels(self) -> Optional[tuple[str, str, str]]:
        """Return ``(entry, tp, sl)``, or ``None`` when the plan is FORBIDDEN."""
        if not self.is_actionable:
            return None
        return self.entry, self.tp, self.sl


class Strategy(_CamelModel):
    best_timeframe: Timeframe
    short_term: TradePlan
    medium_term: TradePlan
    long_term: TradePlan

    def plan_for(self, timeframe: Timeframe) -> TradePlan:
        return {
            Timeframe.SHORT: self.short_term,
            Timeframe.MEDIUM: self.medium_term,
            Timeframe.LONG: self.long_term,
        }[timeframe]

    @property
    def best_plan(self) -> TradePlan:
        return self.plan_for(self.best_timeframe)


class GroundingSource(_CamelModel):
    uri: str
    title: str


class AnalysisPayload(_CamelModel):
    """The part of a verdict the external model is responsible for.

    Every field is mandatory; a response missing any of them is rejected.
    """

    ticker: str
    price_info: PriceInfo
    market_cap_analysis: MarketCapAnalysis
    supply_demand: SupplyDemand
    prediction: Prediction
    stress_test: StressTest
    broker_analysis: BrokerAnalysis
    summary: str
    bear_case: str
    strategy: Strategy
    full_analysis: str


class AnalysisResult(AnalysisPayload):
    """A verdict plus locally generated identity.

    ``id`` and ``timestamp`` (ms since epoch) are optional only so legacy
    vault entries can be read; the archive assigns them on first read.
    """

    id: Optional[str] = None
    timestamp: Optional[int] = None
    sources: list[GroundingSource] = Field(default_factory=list)


class ConsistencyResult(_CamelModel):
    """Trend judgment over several archived verdicts for one ticker."""

    ticker: str
    data_points: int = Field(ge=0)
    trend_verdict: TrendVerdict
    consistency_score: float = Field(ge=0, le=100)
    analysis: str
    action_item: str


# ---------------------------------------------------------------------------
# Application configuration
# ---------------------------------------------------------------------------

class AppConfig(_CamelModel):
    """User mandate persisted in the ``config`` blob."""

    default_tier: CapitalTier = CapitalTier.RETAIL
    risk_profile: RiskProfile = RiskProfile.BALANCED
    user_name: str = "Trader Pro"
