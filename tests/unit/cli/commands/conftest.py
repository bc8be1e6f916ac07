"""Shared fixtures for CLI command tests."""

import logging
from collections.abc import Generator
from unittest.mock import AsyncMock

import pytest
from click.testing import CliRunner

from ragline.lib.logging_config import ROOT_LOGGER_NAME

GUIDE = """# ガイド

## 第1章

### 1.1 営業時間

平日は9時から18時まで営業しています。

### 1.2 ハッシュタグ

ハッシュタグは5個までにしましょう。
"""


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Drop handlers bound to CliRunner streams and clear RAGLINE_* variables."""
    for name in (
        "RAGLINE_PROVIDER",
        "RAGLINE_API_KEY",
        "RAGLINE_TOP_K",
        "RAGLINE_USE_HYBRID_SEARCH",
        "RAGLINE_CORPUS_PATH",
    ):
        monkeypatch.delenv(name, raising=False)
    root = logging.getLogger(ROOT_LOGGER_NAME)
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def guide_markdown() -> str:
    """Small markdown document with two fine sections."""
    return GUIDE


@pytest.fixture
def mock_embedder() -> AsyncMock:
    """Embedding provider returning a constant vector."""
    embedder = AsyncMock()
    embedder.embed.return_value = [1.0, 0.0]
    return embedder
