"""Shared pytest fixtures and test helpers for bcl tests."""

from __future__ import annotations

from collections.abc import Generator
from datetime import date
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from bcl.config.settings import BclSettings
from bcl.infrastructure.database.engine import init_database
from bcl.infrastructure.store import Store

# Fixed reference date for everything that resolves relative dates.
TODAY = date(2024, 6, 15)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Generator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path / "bcl.db")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def store(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[Store]:
    """Store on a fresh database in a temp project root."""
    monkeypatch.delenv("BCL_CONFIG", raising=False)
    settings = BclSettings.from_cli(project_root=tmp_path)
    s = Store(settings)
    try:
        yield s
    finally:
        s.close()


@pytest.fixture
def _isolated_store(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp project root so the CLI creates an isolated database.

    Use via ``@pytest.mark.usefixtures("_isolated_store")`` on CLI test classes.
    """
    monkeypatch.delenv("BCL_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)


# ---------------------------------------------------------------------------
# Shared test helpers (used across service test modules)
# ---------------------------------------------------------------------------


def run(store: Store, line: str, *, today: date = TODAY) -> dict[str, Any]:
    """Run one command line through CommandService, asserting success."""
    from bcl.services.dispatch import CommandService

    result = CommandService(store, today=today).run(line.split())
    assert result.ok, result.error
    return result.data


def run_result(store: Store, line: str, *, today: date = TODAY) -> Any:
    """Run one command line through CommandService and return the ServiceResult."""
    from bcl.services.dispatch import CommandService

    return CommandService(store, today=today).run(line.split())


def seed_garage(store: Store) -> None:
    """Two categories and three bikes: G:1, G:2, MTB:1."""
    run(store, "add cat:G Gravel")
    run(store, "add cat:MTB Mountain")
    run(store, "add bike:G Cross Check 2023-04-01")
    run(store, "add bike:G Grail 2024-01-10")
    run(store, "add bike:MTB Stumpjumper 2022-08-20")


def seed_rides(store: Store) -> None:
    """Rides across May and June 2024 with road/commute/broken tags."""
    seed_garage(store)
    run(store, "add ride G:1 20 2024-05-02 +road +commute")
    run(store, "add ride G:1 35.5 2024-05-10 +road")
    run(store, "add ride G:2 50 2024-05-20 +road +commute +broken")
    run(store, "add ride MTB:1 12 2024-06-01 trail loop")
    run(store, "add ride G:1 8 2024-06-10 +commute")
