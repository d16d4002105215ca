"""
tests/test_config.py

Environment-driven settings: weights, review recipients, database URL.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

import pytest

from app import config
from db.config import load_env_files, normalize_postgres_url, resolve_database_url

_WEIGHT_VARS = [f"QUALITY_WEIGHT_{name.upper()}" for name in config.DIMENSION_ORDER]


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in _WEIGHT_VARS + ["QUALITY_REVIEW_RECIPIENTS", "QUALITY_REVIEW_NOTIFICATION_TYPE"]:
        monkeypatch.delenv(name, raising=False)
    config.get_quality_scoring_settings.cache_clear()
    yield
    config.get_quality_scoring_settings.cache_clear()


class TestQualityScoringSettings:
    def test_defaults(self) -> None:
        settings = config.get_quality_scoring_settings()
        assert settings.weights.total() == 100.0
        assert settings.weights.accuracy == 25.0
        assert settings.review_recipients == ()
        assert settings.review_notification_type == "email"

    def test_valid_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("QUALITY_WEIGHT_ACCURACY", "35")
        monkeypatch.setenv("QUALITY_WEIGHT_UNIQUENESS", "5")

        weights = config.get_quality_scoring_settings().weights

        assert weights.accuracy == 35.0
        assert weights.uniqueness == 5.0

    def test_override_not_summing_to_100_is_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("QUALITY_WEIGHT_ACCURACY", "90")
        weights = config.get_quality_scoring_settings().weights
        assert weights.accuracy == 25.0

    def test_recipients_and_unknown_channel(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("QUALITY_REVIEW_RECIPIENTS", "a@example.com, ,b@example.com")
        monkeypatch.setenv("QUALITY_REVIEW_NOTIFICATION_TYPE", "pager")

        settings = config.get_quality_scoring_settings()

        assert settings.review_recipients == ("a@example.com", "b@example.com")
        assert settings.review_notification_type == "email"


class TestDatabaseUrl:
    @pytest.fixture(autouse=True)
    def _clean_db_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL", "ENVIRONMENT"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setattr("db.config.load_env_files", lambda project_root=None: None)

    def test_normalizes_driver(self) -> None:
        assert normalize_postgres_url("postgres://u@h/db") == "postgresql+psycopg://u@h/db"
        assert normalize_postgres_url("sqlite://") == "sqlite://"

    def test_priority(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LOCAL_DATABASE_URL", "postgresql://local/db")
        monkeypatch.setenv("CLOUD_DATABASE_URL", "postgresql://cloud/db")
        assert resolve_database_url() == "postgresql+psycopg://local/db"

        monkeypatch.setenv("ENVIRONMENT", "production")
        assert resolve_database_url() == "postgresql+psycopg://cloud/db"

        monkeypatch.setenv("DATABASE_URL", "postgresql://direct/db")
        assert resolve_database_url() == "postgresql+psycopg://direct/db"

    def test_missing_configuration(self) -> None:
        with pytest.raises(RuntimeError):
            resolve_database_url()


def test_env_file_does_not_override_process_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".env").write_text(
        "# comment\nINGEST_TEST_A='from-file'\nINGEST_TEST_B=from-file\n",
        encoding="utf-8",
    )
    monkeypatch.delenv("INGEST_TEST_A", raising=False)
    monkeypatch.setenv("INGEST_TEST_B", "from-process")

    load_env_files(tmp_path)

    assert os.environ["INGEST_TEST_A"] == "from-file"
    assert os.environ["INGEST_TEST_B"] == "from-process"
    monkeypatch.delenv("INGEST_TEST_A")
