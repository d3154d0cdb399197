"""
Tests for the state repositories and configuration wiring.
"""

from __future__ import annotations

import datetime as dt

import pytest

from tradelogic.data.models import AppConfig, CapitalTier, RiskProfile, StockAnalysisInput
from tradelogic.infra.config import (
    Settings,
    _parse_tz,
    build_context,
    format_timestamp,
    get_repository,
)
from tradelogic.infra.repository import (
    CONFIG_BLOB,
    DRAFT_BLOB,
    InMemoryStateRepository,
)
from tradelogic.infra.repository_sqlite import SQLiteStateRepository
from tests.conftest import make_result


@pytest.fixture(params=["memory", "sqlite"])
def repo(request, tmp_path):
    if request.param == "memory":
        store = InMemoryStateRepository()
    else:
        store = SQLiteStateRepository(db_path=str(tmp_path / "state.db"))
    store.initialize()
    yield store
    store.close()


class TestBlobs:
    def test_missing_blob_is_none(self, repo):
        assert repo.get_blob("vault") is None

    def test_put_then_get(self, repo):
        repo.put_blob("vault", "[]")
        assert repo.get_blob("vault") == "[]"

    def test_put_replaces(self, repo):
        repo.put_blob("vault", "[]")
        repo.put_blob("vault", "[1]")
        assert repo.get_blob("vault") == "[1]"

    def test_delete(self, repo):
        repo.put_blob("draft", "{}")
        repo.delete_blob("draft")
        repo.delete_blob("draft")
        assert repo.get_blob("draft") is None


class TestSQLitePersistence:
    def test_survives_reopen(self, tmp_path):
        path = str(tmp_path / "state.db")
        first = SQLiteStateRepository(db_path=path)
        first.initialize()
        first.put_blob("vault", '["kept"]')
        first.close()

        second = SQLiteStateRepository(db_path=path)
        second.initialize()
        assert second.get_blob("vault") == '["kept"]'
        second.close()


class TestConfigHelpers:
    def test_defaults_when_absent(self, repo):
        assert repo.load_config() == AppConfig()

    def test_round_trip(self, repo):
        config = AppConfig(
            default_tier=CapitalTier.HIGH_NET,
            risk_profile=RiskProfile.AGGRESSIVE,
            user_name="Ayu",
        )
        repo.save_config(config)
        assert repo.load_config() == config
        assert "defaultTier" in repo.get_blob(CONFIG_BLOB)

    def test_unreadable_config_falls_back(self, repo):
        repo.put_blob(CONFIG_BLOB, '{"riskProfile": "YOLO"}')
        assert repo.load_config() == AppConfig()


class TestDraftHelpers:
    def test_round_trip_and_clear(self, repo, sample_input):
        assert repo.load_draft() is None
        repo.save_draft(sample_input)
        assert repo.load_draft() == sample_input
        repo.clear_draft()
        assert repo.get_blob(DRAFT_BLOB) is None

    def test_partial_draft_is_kept(self, repo):
        repo.save_draft(StockAnalysisInput(ticker="tlkm"))
        assert repo.load_draft().ticker == "TLKM"


class TestWiring:
    def test_memory_backend(self):
        settings = Settings()
        settings.db_backend = "memory"
        assert isinstance(get_repository(settings), InMemoryStateRepository)

    def test_sqlite_backend(self, tmp_path):
        settings = Settings()
        settings.db_backend = "sqlite"
        settings.state_db_path = str(tmp_path / "wired.db")
        repo = get_repository(settings)
        assert isinstance(repo, SQLiteStateRepository)
        repo.close()

    def test_build_context_loads_archive_and_config(self):
        store = InMemoryStateRepository()
        store.save_config(AppConfig(user_name="Ayu"))
        ctx = build_context(Settings(), store=store, llm=object())
        ctx.archive.add(make_result())
        assert ctx.config.user_name == "Ayu"
        assert len(ctx.archive) == 1
        assert store.get_blob("vault") is not None


class TestTime:
    def test_offset_timezone(self):
        assert _parse_tz("UTC+7").utcoffset(None) == dt.timedelta(hours=7)

    def test_negative_offset_with_minutes(self):
        assert _parse_tz("GMT-05:30").utcoffset(None) == -dt.timedelta(hours=5, minutes=30)

    def test_iana_name(self):
        assert str(_parse_tz("Asia/Jakarta")) == "Asia/Jakarta"

    def test_missing_timestamp(self):
        assert format_timestamp(None) == "-"

    def test_timestamp_uses_given_settings(self):
        settings = Settings()
        settings.timezone = "UTC-05:30"
        assert format_timestamp(0, settings) == "1969-12-31 18:30"
