"""Shared test fixtures for repostage tests."""

import pytest

from repostage.repository import Staging


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep backend loggers at their default threshold."""
    monkeypatch.delenv("REPOSTAGE_DEBUG", raising=False)
    monkeypatch.delenv("REPOSTAGE_LOG_LEVEL", raising=False)


@pytest.fixture
def staging() -> Staging:
    """An in-memory store with a small nested tree."""
    return (
        Staging()
        .with_file("README.md", b"readme")
        .with_file("pkg/a.txt", b"a")
        .with_file("pkg/sub/b.txt", b"b")
    )
