"""
Consistency engine – trend judgment over archived verdicts for one ticker.

This component only guarantees precondition enforcement and temporal
ordering.  The trend label and the consistency score come from the model.
"""

from __future__ import annotations

import json
import logging
from typing import Sequence

from langchain_core.messages import HumanMessage

from tradelogic.agents.composer import CONSISTENCY_DECODING
from tradelogic.agents.gateway import StructuredCaller
from tradelogic.agents.prompts import CONSISTENCY_PROMPT
from tradelogic.data.models import AnalysisResult, ConsistencyResult
from tradelogic.data.schemas import (
    consistency_response_format,
    parse_consistency_payload,
)
from tradelogic.errors import AnalysisError, PreconditionError, SchemaError, TransportError

logger = logging.getLogger(__name__)

MIN_HISTORY = 2


def check_history(history: Sequence[AnalysisResult]) -> str:
    """Return the shared ticker, or raise :class:`PreconditionError`."""
    if len(history) < MIN_HISTORY:
        raise PreconditionError(
            f"Consistency check needs at least {MIN_HISTORY} entries, got {len(history)}"
        )
    tickers = {entry.ticker for entry in history}
    if len(tickers) != 1:
        raise PreconditionError(
            f"Consistency check needs a single ticker, got {', '.join(sorted(tickers))}"
        )
    return tickers.pop()


def order_history(history: Sequence[AnalysisResult]) -> list[AnalysisResult]:
    """Oldest first; ties keep their relative order."""
    return sorted(history, key=lambda entry: entry.timestamp or 0)


def serialize_history(history: Sequence[AnalysisResult]) -> str:
    return json.dumps(
        [entry.model_dump(mode="json", by_alias=True) for entry in history],
        ensure_ascii=False,
    )


def build_consistency_prompt(ticker: str, ordered: Sequence[AnalysisResult]) -> str:
    return CONSISTENCY_PROMPT.format(
        ticker=ticker,
        count=len(ordered),
        history=serialize_history(ordered),
    )


class ConsistencyEngine(StructuredCaller):
    """Asks the model to classify the trend of a ticker's verdict history."""

    async def run_consistency_check(
        self, history: Sequence[AnalysisResult]
    ) -> ConsistencyResult:
        ticker = check_history(history)
        ordered = order_history(history)
        prompt = build_consistency_prompt(ticker, ordered)

        try:
            text = await self._call(
                [HumanMessage(content=prompt)],
                CONSISTENCY_DECODING,
                consistency_response_format(),
            )
            result = parse_consistency_payload(text)
        except TransportError as exc:
            logger.error("Consistency call failed for %s: %s", ticker, exc)
            raise AnalysisError("transport") from exc
        except SchemaError as exc:
            logger.error("Invalid consistency response for %s: %s", ticker, exc)
            raise AnalysisError("schema") from exc

        logger.info(
            "Consistency check for %s over %d entries: %s (%.0f)",
            ticker,
            len(ordered),
            result.trend_verdict.value,
            result.consistency_score,
        )
        return result
