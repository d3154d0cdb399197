"""
Settings and wiring of the shared resources (chat model, state store,
case archive) into an :class:`AppContext`.

Values come from environment variables, optionally via ``.env``.
Decoding parameters are not configurable here; they are fixed in
:mod:`tradelogic.agents.composer`.
"""

from __future__ import annotations

import datetime as dt
import os
import re as _re
from dataclasses import dataclass
from functools import lru_cache
from zoneinfo import ZoneInfo

from dotenv import load_dotenv
from langchain_core.language_models import BaseChatModel
from langchain_openai import ChatOpenAI

from tradelogic.data.models import AppConfig
from tradelogic.infra.archive import CaseArchive
from tradelogic.infra.repository import AbstractStateRepository

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """Application settings read from environment variables.

    Every attribute has a sensible default so the app runs out of the box
    with just ``OPENAI_API_KEY`` set.
    """

    # -- LLM -------------------------------------------------------------------
    openai_api_key: str = os.getenv("OPENAI_API_KEY", "")
    openai_model: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "")
    # The OpenAI endpoint rejects top_k; enable only for compatible gateways.
    send_top_k: bool = _env_flag("LLM_SEND_TOP_K")

    # -- HTTP timeouts (seconds) -----------------------------------------------
    http_timeout: int = int(os.getenv("HTTP_TIMEOUT", "60"))

    # -- Local state -----------------------------------------------------------
    db_backend: str = os.getenv("DB_BACKEND", "sqlite")
    state_db_path: str = os.getenv("STATE_DB_PATH", "tradelogic.db")

    # -- Timezone ---------------------------------------------------------------
    timezone: str = os.getenv("TIMEZONE", "Asia/Jakarta")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def _parse_tz(name: str) -> dt.tzinfo:
    """Parse a timezone string into a :class:`datetime.tzinfo`.

    Supports:
    * IANA names  – ``Asia/Jakarta``, ``UTC``
    * Offset form – ``UTC+7``, ``GMT+7``, ``UTC-05:30``
    """
    m = _re.match(
        r"^(?:UTC|GMT)([+-])(\d{1,2})(?::(\d{2}))?$", name, _re.IGNORECASE
    )
    if m:
        sign = 1 if m.group(1) == "+" else -1
        hours = int(m.group(2))
        minutes = int(m.group(3) or 0)
        return dt.timezone(dt.timedelta(hours=sign * hours, minutes=sign * minutes))
    return ZoneInfo(name)


def get_today(settings: Settings | None = None) -> dt.date:
    """Return today's date in the user-configured timezone."""
    tz = _parse_tz((settings or get_settings()).timezone)
    return dt.datetime.now(tz=tz).date()


def format_timestamp(timestamp_ms: int | None, settings: Settings | None = None) -> str:
    """Render an archive timestamp in the configured timezone."""
    if timestamp_ms is None:
        return "-"
    tz = _parse_tz((settings or get_settings()).timezone)
    return dt.datetime.fromtimestamp(timestamp_ms / 1000, tz=tz).strftime("%Y-%m-%d %H:%M")


def get_llm(settings: Settings | None = None) -> BaseChatModel:
    """Return a configured chat model.

    Returns the abstract ``BaseChatModel`` so callers never depend on
    a concrete provider.
    """
    s = settings or get_settings()
    return ChatOpenAI(
        model=s.openai_model,
        api_key=s.openai_api_key,  # type: ignore[arg-type]
        base_url=s.openai_base_url or None,
        timeout=s.http_timeout,
        max_retries=0,
    )


def get_repository(settings: Settings | None = None) -> AbstractStateRepository:
    """
    Factory that returns the state repository selected by ``DB_BACKEND``.

    ``memory`` keeps everything in-process; anything else uses SQLite.
    """
    s = settings or get_settings()
    if s.db_backend.lower() == "memory":
        from tradelogic.infra.repository import InMemoryStateRepository

        repo: AbstractStateRepository = InMemoryStateRepository()
    else:
        from tradelogic.infra.repository_sqlite import SQLiteStateRepository

        repo = SQLiteStateRepository(db_path=s.state_db_path)
    repo.initialize()
    return repo


@dataclass
class AppContext:
    """Everything the core needs, passed explicitly instead of read from globals."""

    settings: Settings
    store: AbstractStateRepository
    archive: CaseArchive
    config: AppConfig
    llm: BaseChatModel | None = None

    def require_llm(self) -> BaseChatModel:
        if self.llm is None:
            self.llm = get_llm(self.settings)
        return self.llm

    def close(self) -> None:
        self.store.close()


def build_context(
    settings: Settings | None = None,
    store: AbstractStateRepository | None = None,
    llm: BaseChatModel | None = None,
) -> AppContext:
    s = settings or get_settings()
    repo = store or get_repository(s)
    return AppContext(
        settings=s,
        store=repo,
        archive=CaseArchive.load(repo),
        config=repo.load_config(),
        llm=llm,
    )
