"""Pytest configuration and shared fixtures for ragline tests."""

import os
import shutil
import tempfile
from collections.abc import Generator, Sequence
from pathlib import Path

import pytest


@pytest.fixture
def temp_dir() -> Generator[Path]:
    """Create a temporary directory for test file operations.

    Yields:
        Path to temporary directory

    Cleanup:
        Automatically removes directory after test
    """
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def isolated_env() -> Generator[dict[str, str]]:
    """Provide isolated environment variables for testing.

    Saves current environment and restores after test.
    """
    original_env = os.environ.copy()
    yield original_env
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def fixture_dir() -> Path:
    """Get path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def instagram_guide(fixture_dir: Path) -> str:
    """Sample Japanese how-to guide with three heading levels."""
    return (fixture_dir / "markdown" / "instagram_guide.md").read_text(encoding="utf-8")


class KeywordEmbedder:
    """Deterministic embedder mapping texts onto a small vocabulary.

    Each vocabulary term is one dimension; a text's vector has 1.0 in the
    dimensions of the terms it contains.
    """

    def __init__(self, vocabulary: Sequence[str]) -> None:
        self.vocabulary = list(vocabulary)
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        return [1.0 if term in text else 0.0 for term in self.vocabulary]


@pytest.fixture
def keyword_embedder() -> KeywordEmbedder:
    """Embedder over a small Japanese vocabulary."""
    return KeywordEmbedder(["営業時間", "ハッシュタグ", "投稿", "リール"])

