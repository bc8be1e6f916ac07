"""Tests for RagAnswerer and answer post-processing."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ragline.lib.errors import EmbeddingUnavailable, GenerationUnavailable
from ragline.lib.hybrid_search import ScoredCandidate
from ragline.lib.vector_store import IndexedDocument, InMemoryCorpusStore, JsonCorpusStore
from ragline.models.config import AnswerConfig, RagLineConfig, RetrievalConfig
from ragline.rag.answerer import ELLIPSIS, RagAnswerer, create_answerer, truncate_answer


@pytest.fixture
def corpus() -> InMemoryCorpusStore:
    """Corpus of three units over the four-term vocabulary."""
    return InMemoryCorpusStore(
        [
            IndexedDocument(id="a", text="営業時間は9時から18時です", embedding=[1, 0, 0, 0]),
            IndexedDocument(id="b", text="ハッシュタグは5個まで", embedding=[0, 1, 0, 0]),
            IndexedDocument(id="c", text="リール投稿のコツ", embedding=[0, 0, 1, 1]),
        ]
    )


@pytest.fixture
def generator() -> AsyncMock:
    """Generation provider returning a fixed answer."""
    provider = AsyncMock()
    provider.generate.return_value = "9時から18時までです。"
    return provider


class TestTruncateAnswer:
    """Tests for truncate_answer()."""

    def test_short_answer_unchanged(self) -> None:
        """Test answers within the limit are returned as is."""
        assert truncate_answer("こんにちは", 5) == "こんにちは"

    def test_long_answer_truncated(self) -> None:
        """Test long answers end with an ellipsis and respect the limit."""
        result = truncate_answer("あいうえおかきくけこ", 5)
        assert result == "あいうえ" + ELLIPSIS
        assert len(result) == 5


class TestRetrieve:
    """Tests for RagAnswerer.retrieve()."""

    @pytest.mark.asyncio
    async def test_hybrid_ranking(
        self, corpus: InMemoryCorpusStore, generator: AsyncMock, keyword_embedder: Any
    ) -> None:
        """Test the matching unit is ranked first."""
        answerer = RagAnswerer(keyword_embedder, generator, corpus)

        results = await answerer.retrieve("営業時間を教えて")

        assert results[0].id == "a"
        assert keyword_embedder.calls == ["営業時間を教えて"]

    @pytest.mark.asyncio
    async def test_vector_only_when_hybrid_disabled(
        self, corpus: InMemoryCorpusStore, generator: AsyncMock, keyword_embedder: Any
    ) -> None:
        """Test vector ranking yields zero keyword scores."""
        retrieval = RetrievalConfig(use_hybrid_search=False)
        answerer = RagAnswerer(keyword_embedder, generator, corpus, retrieval)

        results = await answerer.retrieve("リール")

        assert [r.id for r in results] == ["c"]
        assert results[0].keyword_score == 0.0
        assert results[0].hybrid_score == results[0].vector_score

    @pytest.mark.asyncio
    async def test_top_k_override(
        self, corpus: InMemoryCorpusStore, generator: AsyncMock
    ) -> None:
        """Test an explicit top_k caps the result count."""
        embedder = AsyncMock()
        embedder.embed.return_value = [1.0, 1.0, 1.0, 1.0]
        answerer = RagAnswerer(embedder, generator, corpus)

        assert len(await answerer.retrieve("q")) == 3
        assert len(await answerer.retrieve("q", top_k=1)) == 1


class TestBuildPrompt:
    """Tests for RagAnswerer.build_prompt()."""

    def test_numbered_context(self, generator: AsyncMock) -> None:
        """Test candidates are numbered in rank order."""
        answerer = RagAnswerer(
            AsyncMock(), generator, InMemoryCorpusStore(), answer=AnswerConfig(max_answer_length=200)
        )
        units = [
            IndexedDocument(id="x", text="一つ目", embedding=[1.0]),
            IndexedDocument(id="y", text="二つ目", embedding=[1.0]),
        ]
        candidates = [ScoredCandidate(u, 1.0, 0.0, 1.0) for u in units]

        prompt = answerer.build_prompt("質問です", candidates)

        assert "【1】一つ目\n\n【2】二つ目" in prompt
        assert "最大200文字以内" in prompt
        assert prompt.endswith("質問:質問です")


class TestAnswer:
    """Tests for RagAnswerer.answer()."""

    @pytest.mark.asyncio
    async def test_answer_uses_retrieved_context(
        self, corpus: InMemoryCorpusStore, generator: AsyncMock, keyword_embedder: Any
    ) -> None:
        """Test the generator receives the ranked context."""
        answerer = RagAnswerer(keyword_embedder, generator, corpus)

        answer = await answerer.answer("営業時間を教えて")

        assert answer == "9時から18時までです。"
        prompt = generator.generate.call_args.args[0]
        assert "【1】営業時間は9時から18時です" in prompt

    @pytest.mark.asyncio
    async def test_empty_corpus_still_generates(
        self, generator: AsyncMock, keyword_embedder: Any
    ) -> None:
        """Test an empty corpus yields a prompt with empty context."""
        answerer = RagAnswerer(keyword_embedder, generator, InMemoryCorpusStore())

        assert await answerer.answer("こんにちは") == "9時から18時までです。"
        assert keyword_embedder.calls == []

    @pytest.mark.asyncio
    async def test_truncates_long_answer(
        self, corpus: InMemoryCorpusStore, keyword_embedder: Any
    ) -> None:
        """Test answers longer than max_answer_length are cut."""
        generator = AsyncMock()
        generator.generate.return_value = "あ" * 50
        answerer = RagAnswerer(
            keyword_embedder, generator, corpus, answer=AnswerConfig(max_answer_length=10)
        )

        answer = await answerer.answer("営業時間")

        assert answer == "あ" * 9 + ELLIPSIS

    @pytest.mark.asyncio
    @pytest.mark.parametrize("output", ["", "   \n"])
    async def test_empty_generation(
        self, corpus: InMemoryCorpusStore, keyword_embedder: Any, output: str
    ) -> None:
        """Test blank generator output yields the empty-answer message."""
        generator = AsyncMock()
        generator.generate.return_value = output
        answerer = RagAnswerer(keyword_embedder, generator, corpus)

        assert await answerer.answer("営業時間") == AnswerConfig().empty_answer_message

    @pytest.mark.asyncio
    async def test_embedding_unavailable(
        self, corpus: InMemoryCorpusStore, generator: AsyncMock
    ) -> None:
        """Test embedding failures yield the unavailable message."""
        embedder = AsyncMock()
        embedder.embed.side_effect = EmbeddingUnavailable("Embedding service call failed")
        answerer = RagAnswerer(embedder, generator, corpus)

        assert await answerer.answer("営業時間") == AnswerConfig().unavailable_message
        generator.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_generation_unavailable(
        self, corpus: InMemoryCorpusStore, keyword_embedder: Any
    ) -> None:
        """Test generation failures yield the configured unavailable message."""
        generator = AsyncMock()
        generator.generate.side_effect = GenerationUnavailable("Chat completion call failed")
        answerer = RagAnswerer(
            keyword_embedder,
            generator,
            corpus,
            answer=AnswerConfig(unavailable_message="しばらくお待ちください"),
        )

        assert await answerer.answer("営業時間") == "しばらくお待ちください"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   "])
    async def test_blank_query_rejected(self, generator: AsyncMock, query: str) -> None:
        """Test blank questions raise ValueError."""
        answerer = RagAnswerer(AsyncMock(), generator, InMemoryCorpusStore())
        with pytest.raises(ValueError, match="non-empty"):
            await answerer.answer(query)


class TestCreateAnswerer:
    """Tests for create_answerer()."""

    def test_wires_configured_components(self) -> None:
        """Test providers and the JSON corpus store come from config."""
        config = RagLineConfig.model_validate(
            {"corpus": {"path": "data/corpus.json"}, "retrieval": {"top_k": 2}}
        )
        with (
            patch("ragline.rag.answerer.create_embedding_provider") as mock_embed,
            patch("ragline.rag.answerer.create_generation_provider") as mock_generate,
        ):
            mock_embed.return_value = MagicMock()
            mock_generate.return_value = MagicMock()
            answerer = create_answerer(config)

        mock_embed.assert_called_once_with(config.model)
        mock_generate.assert_called_once_with(config.model)
        assert isinstance(answerer._corpus, JsonCorpusStore)
        assert str(answerer._corpus.path) == "data/corpus.json"
        assert answerer.retrieval.top_k == 2
