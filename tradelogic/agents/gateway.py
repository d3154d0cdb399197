"""
Analysis gateway: one request to the inference service per verdict.

Dependency Inversion: the gateway depends on the abstract
``BaseChatModel`` interface, never on a concrete provider class.

Failure policy: a failed call (:class:`TransportError`) and an
unusable response (:class:`SchemaError`) are logged with their kind and
re-raised as a single :class:`AnalysisError`.  There is no retry and no
fallback; the caller decides whether to try again.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Callable

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from tradelogic.agents.composer import DecodingPolicy, compose
from tradelogic.data.models import AnalysisPayload, AnalysisResult, StockAnalysisInput
from tradelogic.data.schemas import analysis_response_format, parse_analysis_payload
from tradelogic.errors import AnalysisError, SchemaError, TransportError

logger = logging.getLogger(__name__)


def new_id() -> str:
    return uuid.uuid4().hex


def now_ms() -> int:
    return int(time.time() * 1000)


def stamp(
    payload: AnalysisPayload,
    *,
    id_factory: Callable[[], str] = new_id,
    clock: Callable[[], int] = now_ms,
) -> AnalysisResult:
    """Attach locally authoritative ``id`` / ``timestamp`` to *payload*.

    Whatever identity the payload carried is discarded.
    """
    data = payload.model_dump()
    data["id"] = id_factory()
    data["timestamp"] = clock()
    data.setdefault("sources", [])
    return AnalysisResult.model_validate(data)


class StructuredCaller:
    """Shared plumbing for a single schema-constrained model call."""

    def __init__(self, llm: BaseChatModel, *, send_top_k: bool = False) -> None:
        self._llm = llm
        self._send_top_k = send_top_k

    async def _call(
        self,
        messages: list[BaseMessage],
        decoding: DecodingPolicy,
        response_format: dict[str, Any],
    ) -> str:
        try:
            response = await self._llm.ainvoke(
                messages,
                response_format=response_format,
                **decoding.as_invoke_kwargs(send_top_k=self._send_top_k),
            )
        except Exception as exc:
            raise TransportError(f"{type(exc).__name__}: {exc}") from exc
        return str(response.content)


class AnalysisGateway(StructuredCaller):
    """Produces a validated, locally stamped :class:`AnalysisResult`."""

    def __init__(
        self,
        llm: BaseChatModel,
        *,
        send_top_k: bool = False,
        id_factory: Callable[[], str] = new_id,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        super().__init__(llm, send_top_k=send_top_k)
        self._id_factory = id_factory
        self._clock = clock

    async def analyze(self, data: StockAnalysisInput) -> AnalysisResult:
        request = compose(data)
        messages: list[BaseMessage] = [
            SystemMessage(content=request.instruction),
            HumanMessage(content=request.prompt),
        ]
        try:
            text = await self._call(messages, request.decoding, analysis_response_format())
            payload = parse_analysis_payload(text)
        except TransportError as exc:
            logger.error("Inference call failed for %s: %s", data.ticker, exc)
            raise AnalysisError("transport") from exc
        except SchemaError as exc:
            logger.error("Invalid analysis response for %s: %s", data.ticker, exc)
            raise AnalysisError("schema") from exc

        result = stamp(payload, id_factory=self._id_factory, clock=self._clock)
        logger.info(
            "Analysis complete for %s (id=%s, direction=%s)",
            result.ticker,
            result.id,
            result.prediction.direction.value,
        )
        return result
