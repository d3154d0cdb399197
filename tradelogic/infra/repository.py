"""
Abstract repository interface for persisted local state.

State is kept as named text blobs:

* ``vault``  – the case archive, a JSON array of analysis results
* ``config`` – the user mandate (:class:`AppConfig`)
* ``draft``  – an unfinished, not yet submitted :class:`StockAnalysisInput`

Dependency Inversion Principle: consumers depend on this abstract
interface, never on a concrete storage backend.
"""

from __future__ import annotations

import abc
import logging
from typing import Optional

from pydantic import ValidationError

from tradelogic.data.models import AppConfig, StockAnalysisInput

logger = logging.getLogger(__name__)

VAULT_BLOB = "vault"
CONFIG_BLOB = "config"
DRAFT_BLOB = "draft"


class AbstractStateRepository(abc.ABC):
    """Interface that all state repositories must implement."""

    @abc.abstractmethod
    def initialize(self) -> None:
        """Create tables / schema if they don't exist."""

    @abc.abstractmethod
    def get_blob(self, name: str) -> Optional[str]:
        """Return the stored text for *name*, or ``None``."""

    @abc.abstractmethod
    def put_blob(self, name: str, value: str) -> None:
        """Create or replace the blob *name*."""

    @abc.abstractmethod
    def delete_blob(self, name: str) -> None:
        """Remove the blob *name*; a missing blob is not an error."""

    @abc.abstractmethod
    def close(self) -> None:
        """Release storage resources."""

    # ------------------------------------------------------------------
    # Typed helpers
    # ------------------------------------------------------------------

    def load_config(self) -> AppConfig:
        """Return the saved mandate, or defaults when absent or unreadable."""
        raw = self.get_blob(CONFIG_BLOB)
        if raw is None:
            return AppConfig()
        try:
            return AppConfig.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Ignoring unreadable config blob: %s", exc)
            return AppConfig()

    def save_config(self, config: AppConfig) -> None:
        self.put_blob(CONFIG_BLOB, config.model_dump_json(by_alias=True))

    def load_draft(self) -> Optional[StockAnalysisInput]:
        raw = self.get_blob(DRAFT_BLOB)
        if raw is None:
            return None
        try:
            return StockAnalysisInput.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning("Ignoring unreadable form draft: %s", exc)
            return None

    def save_draft(self, draft: StockAnalysisInput) -> None:
        self.put_blob(DRAFT_BLOB, draft.model_dump_json(by_alias=True))

    def clear_draft(self) -> None:
        self.delete_blob(DRAFT_BLOB)


class InMemoryStateRepository(AbstractStateRepository):
    """Dict-backed repository for tests and throwaway sessions."""

    def __init__(self) -> None:
        self._blobs: dict[str, str] = {}

    def initialize(self) -> None:
        pass

    def get_blob(self, name: str) -> Optional[str]:
        return self._blobs.get(name)

    def put_blob(self, name: str, value: str) -> None:
        self._blobs[name] = value

    def delete_blob(self, name: str) -> None:
        self._blobs.pop(name, None)

    def close(self) -> None:
        pass
