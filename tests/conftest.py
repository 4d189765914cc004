from __future__ import annotations

import logging
from pathlib import Path

import pytest

from tests._fixtures.archive_builder import ArchiveBuilder
from tests._fixtures.fake_github import FakeGitHub


@pytest.fixture
def archive_builder(tmp_path: Path) -> ArchiveBuilder:
    """Provide a reusable zip builder rooted at the pytest tmp_path."""
    return ArchiveBuilder(tmp_path)


@pytest.fixture
def fake_github(monkeypatch) -> FakeGitHub:
    """Route every urlopen call in the GitHub fetcher through a canned responder."""
    fake = FakeGitHub()
    monkeypatch.setattr("ziptree.ingest.github.urlopen", fake)
    monkeypatch.delenv("ZIPTREE_GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    return fake


@pytest.fixture(autouse=True)
def _reset_ziptree_logger():
    """Drop handlers installed by CLI runs so later tests never write to closed capture streams."""
    yield
    logger = logging.getLogger("ziptree")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
