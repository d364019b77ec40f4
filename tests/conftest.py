"""Pytest configuration and fixtures for sqlite_engine tests."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Generator

import pytest
from prometheus_client import CollectorRegistry

from sqlite_engine.application import Engine
from sqlite_engine.infrastructure.config import Config, PoolConfig
from sqlite_engine.infrastructure.metrics import MetricsRegistry


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def db_path(temp_dir: Path) -> Path:
    """Path of a database file that does not exist yet."""
    return temp_dir / "test.db"


@pytest.fixture
def test_config() -> Config:
    """Provide a configuration with short waits for tests."""
    return Config(
        pool=PoolConfig(
            connection_timeout_seconds=0.2,  # Fail fast in contention tests
            busy_timeout_seconds=0.5,
        ),
    )


@pytest.fixture
def metrics_registry() -> MetricsRegistry:
    """Provide a fresh metrics registry for each test."""
    # Use a separate registry to avoid conflicts between tests
    registry = CollectorRegistry(auto_describe=True)
    return MetricsRegistry(registry=registry)


@pytest.fixture
def engine(
    db_path: Path, test_config: Config, metrics_registry: MetricsRegistry
) -> Generator[Engine, None, None]:
    """Provide an engine with the test_types and test_users tables."""
    db = Engine(db_path, config=test_config, metrics=metrics_registry)
    db.execute(
        """
        CREATE TABLE IF NOT EXISTS test_types (
            id INTEGER PRIMARY KEY,
            int_col INTEGER,
            real_col REAL,
            text_col TEXT,
            nullable_col INTEGER
        )
        """
    ).unwrap()
    db.execute(
        """
        CREATE TABLE IF NOT EXISTS test_users (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            age INTEGER,
            salary REAL
        )
        """
    ).unwrap()
    yield db
    db.close()


# Markers for test categories
def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")
