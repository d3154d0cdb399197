"""
Error taxonomy for the TradeLogic core.

Local problems (bad input, bad selection, bad snapshot) are raised
synchronously before any model call.  Failures of the external call
itself are collapsed into a single :class:`AnalysisError` at the gateway
boundary; the underlying kind is kept on the exception for logging and
for callers that want to tell them apart.
"""

from __future__ import annotations

from typing import Optional


class TradeLogicError(Exception):
    """Base class for every error raised by the package."""


class InputValidationError(TradeLogicError):
    """A required input field is missing or a precondition is unmet."""

    def __init__(self, field: str, message: Optional[str] = None) -> None:
        self.field = field
        super().__init__(message or f"Required field is missing or too short: {field}")


class SchemaError(TradeLogicError):
    """The model response is not valid JSON or breaks the schema contract."""


class TransportError(TradeLogicError):
    """The call to the inference service itself failed."""


class AnalysisError(TradeLogicError):
    """Opaque failure of an external analysis call.

    ``kind`` is ``"schema"`` or ``"transport"``; the original exception is
    chained as ``__cause__``.
    """

    GENERIC_MESSAGE = "Analysis failed. Verify inputs and retry."

    def __init__(self, kind: str, message: Optional[str] = None) -> None:
        self.kind = kind
        super().__init__(message or self.GENERIC_MESSAGE)


class ArchiveImportError(TradeLogicError):
    """An archive snapshot could not be parsed; nothing was merged."""


class SelectionError(TradeLogicError):
    """A selection of archive entries is unusable (mixed tickers, too few)."""


class PreconditionError(SelectionError):
    """The consistency check was requested on an invalid history."""
