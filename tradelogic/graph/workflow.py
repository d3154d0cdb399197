"""
LangGraph workflow definition.

Runs the local checks first and only then spends a model call:

    START ── validate ──┬── analyst ── END
                        └── END            (input not submission-ready)

Dependency Inversion: the chat model is injected into ``build_graph``
and closed over by the analyst node, so nodes never call ``get_llm()``
directly.
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Optional, TypedDict

from langchain_core.language_models import BaseChatModel
from langgraph.graph import END, StateGraph

from tradelogic.agents.gateway import AnalysisGateway
from tradelogic.data.models import AnalysisResult, CapitalAdvisory, StockAnalysisInput
from tradelogic.data.validation import check_submission_ready, validate_capital_fit
from tradelogic.errors import AnalysisError, InputValidationError

logger = logging.getLogger(__name__)


class GraphState(TypedDict, total=False):
    input: StockAnalysisInput
    advisory: Optional[CapitalAdvisory]
    result: Optional[AnalysisResult]
    error: Optional[str]
    error_kind: Optional[str]


def _validate(state: GraphState) -> GraphState:
    data = state["input"]
    advisory = validate_capital_fit(data.capital, data.capital_tier)
    if advisory is not None:
        logger.info("Capital advisory for %s: %s", data.ticker, advisory.message)
    try:
        check_submission_ready(data)
    except InputValidationError as exc:
        return {"advisory": advisory, "error": str(exc), "error_kind": "validation"}
    return {"advisory": advisory}


def _make_analyst_node(
    gateway: AnalysisGateway,
) -> Callable[[GraphState], Awaitable[GraphState]]:
    """Return the node that performs the single inference call."""

    async def _analyst(state: GraphState) -> GraphState:
        try:
            result = await gateway.analyze(state["input"])
        except AnalysisError as exc:
            return {"error": str(exc), "error_kind": exc.kind}
        return {"result": result}

    return _analyst


def build_graph(llm: BaseChatModel | None = None, *, send_top_k: bool = False) -> Any:
    """Compile the analysis graph around *llm* (default: ``get_llm()``)."""
    if llm is None:
        from tradelogic.infra.config import get_llm

        llm = get_llm()

    workflow = StateGraph(GraphState)
    workflow.add_node("validate", _validate)
    workflow.add_node(
        "analyst", _make_analyst_node(AnalysisGateway(llm, send_top_k=send_top_k))
    )

    workflow.add_edge("__start__", "validate")

    def _route_after_validation(state: GraphState) -> str:
        return END if state.get("error") else "analyst"

    workflow.add_conditional_edges(
        "validate",
        _route_after_validation,
        path_map={"analyst": "analyst", END: END},
    )
    workflow.add_edge("analyst", END)

    return workflow.compile()


async def run_analysis(
    data: StockAnalysisInput,
    llm: BaseChatModel | None = None,
    *,
    send_top_k: bool = False,
) -> dict[str, Any]:
    """
    Validate *data* and, if it is submission-ready, request a verdict.

    Returns
    -------
    dict
        The final state: ``advisory`` (possibly ``None``) and either
        ``result`` or ``error`` / ``error_kind``.
    """
    graph = build_graph(llm=llm, send_top_k=send_top_k)
    initial_state: GraphState = {"input": data}
    return await graph.ainvoke(initial_state)
