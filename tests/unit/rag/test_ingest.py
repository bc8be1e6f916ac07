"""Tests for document ingestion."""

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest

from ragline.lib.errors import EmbeddingUnavailable, IngestionError
from ragline.lib.vector_store import InMemoryCorpusStore, JsonCorpusStore
from ragline.models.config import ChunkingConfig
from ragline.rag.ingest import (
    embed_chunks,
    ingest_chunks,
    ingest_file,
    ingest_html,
    ingest_markdown,
    ingest_pdf,
)


class TestEmbedChunks:
    """Tests for embed_chunks()."""

    @pytest.mark.asyncio
    async def test_records_follow_chunk_order(
        self, keyword_embedder: Any
    ) -> None:
        """Test ids, pages and embeddings line up with the input chunks."""
        documents = await embed_chunks(
            ["投稿のコツ", "リールの作り方", "営業時間"], keyword_embedder, "guide.md", 2
        )

        assert [d.id for d in documents] == [
            "guide.md_chunk_0",
            "guide.md_chunk_1",
            "guide.md_chunk_2",
        ]
        assert [d.page for d in documents] == [1, 2, 3]
        assert documents[1].text == "リールの作り方"
        assert documents[1].embedding == [0.0, 0.0, 0.0, 1.0]
        assert all(d.source == "guide.md" for d in documents)

    @pytest.mark.asyncio
    async def test_empty_input_skips_embedder(self) -> None:
        """Test no chunks means no embedding calls."""
        embedder = AsyncMock()
        assert await embed_chunks([], embedder, "x") == []
        embedder.embed.assert_not_called()


class TestIngestChunks:
    """Tests for ingest_chunks()."""

    @pytest.mark.asyncio
    async def test_saves_all_records(self, keyword_embedder: Any) -> None:
        """Test every chunk is stored."""
        store = InMemoryCorpusStore()
        count = await ingest_chunks(["a", "b"], keyword_embedder, store, "doc")
        assert count == 2
        assert len(store) == 2

    @pytest.mark.asyncio
    async def test_embedding_failure_saves_nothing(self) -> None:
        """Test a failed embedding leaves the store untouched."""
        embedder = AsyncMock()
        embedder.embed.side_effect = [
            [1.0, 0.0],
            EmbeddingUnavailable("Embedding service call failed"),
        ]
        store = InMemoryCorpusStore()

        with pytest.raises(EmbeddingUnavailable):
            await ingest_chunks(["a", "b"], embedder, store, "doc", concurrency=1)

        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_no_chunks_does_not_save(self) -> None:
        """Test the sink is not called when there is nothing to store."""
        sink = AsyncMock()
        assert await ingest_chunks([], AsyncMock(), sink, "doc") == 0
        sink.save_units.assert_not_called()


class TestIngestMarkdown:
    """Tests for ingest_markdown()."""

    @pytest.mark.asyncio
    async def test_fine_chunks_of_guide(
        self, instagram_guide: str, keyword_embedder: Any
    ) -> None:
        """Test the guide is split at each level-3 section."""
        store = InMemoryCorpusStore()

        count = await ingest_markdown(
            instagram_guide, keyword_embedder, store, "instagram_guide.md"
        )

        units = await store.load_all_units()
        assert count == 4
        assert units[0].text.startswith("# Instagram バズらせる完全ノウハウ集\n")
        assert "### 1.1 バズの定義と仕組み" in units[0].text
        assert "### 2.2 投稿頻度の最適解" in units[3].text
        assert units[3].embedding[2] == 1.0

    @pytest.mark.asyncio
    async def test_coarse_mode(
        self, instagram_guide: str, keyword_embedder: Any
    ) -> None:
        """Test coarse mode splits at level-2 headings."""
        store = InMemoryCorpusStore()
        config = ChunkingConfig(mode="coarse")

        await ingest_markdown(instagram_guide, keyword_embedder, store, "g", config)

        texts = [u.text for u in await store.load_all_units()]
        assert any(t.startswith("## 第1章") for t in texts)
        assert any(t.startswith("## 第2章") for t in texts)

    @pytest.mark.asyncio
    async def test_blank_document(self, keyword_embedder: Any) -> None:
        """Test a blank document stores nothing."""
        store = InMemoryCorpusStore()
        assert await ingest_markdown("  \n", keyword_embedder, store) == 0
        assert keyword_embedder.calls == []


class TestIngestHtml:
    """Tests for ingest_html()."""

    @pytest.mark.asyncio
    async def test_extracts_text(self, keyword_embedder: Any) -> None:
        """Test HTML chrome is stripped before chunking."""
        store = InMemoryCorpusStore()
        html = "<body><nav>メニュー</nav><p>営業時間は9時から</p></body>"

        count = await ingest_html(html, keyword_embedder, store, "page.html")

        units = await store.load_all_units()
        assert count == 1
        assert units[0].text == "営業時間は9時から"
        assert units[0].embedding == [1.0, 0.0, 0.0, 0.0]


class TestIngestPdf:
    """Tests for ingest_pdf()."""

    @pytest.mark.asyncio
    async def test_long_text_split_with_page_numbers(
        self, temp_dir: Path, keyword_embedder: Any
    ) -> None:
        """Test extracted PDF text is split into bounded, numbered chunks."""
        store = InMemoryCorpusStore()
        text = "これは日本語の文章です。" * 100

        with patch("ragline.rag.ingest.extract_text_from_pdf", return_value=text):
            count = await ingest_pdf(temp_dir / "guide.pdf", keyword_embedder, store)

        units = await store.load_all_units()
        assert count == len(units) > 1
        assert all(len(u.text) <= 400 for u in units)
        assert [u.page for u in units] == list(range(1, count + 1))
        assert {u.source for u in units} == {"guide.pdf"}

    @pytest.mark.asyncio
    async def test_custom_flat_chunk_size(
        self, temp_dir: Path, keyword_embedder: Any
    ) -> None:
        """Test the flat chunk settings come from ChunkingConfig."""
        store = InMemoryCorpusStore()
        chunking = ChunkingConfig(flat_chunk_size=50, flat_chunk_overlap=0)

        with patch(
            "ragline.rag.ingest.extract_text_from_pdf",
            return_value="これは日本語の文章です。" * 20,
        ):
            await ingest_pdf(
                temp_dir / "guide.pdf", keyword_embedder, store, chunking=chunking
            )

        units = await store.load_all_units()
        assert len(units) == 5
        assert all(len(u.text) <= 50 for u in units)

    @pytest.mark.asyncio
    async def test_unreadable_pdf(self, temp_dir: Path) -> None:
        """Test a file that is not a PDF raises IngestionError."""
        doc = temp_dir / "broken.pdf"
        doc.write_bytes(b"")
        embedder = AsyncMock()

        with pytest.raises(IngestionError, match="Cannot read PDF"):
            await ingest_pdf(doc, embedder, InMemoryCorpusStore())

        embedder.embed.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_pdf(self, temp_dir: Path) -> None:
        """Test a missing PDF raises IngestionError."""
        with pytest.raises(IngestionError, match="Cannot read PDF"):
            await ingest_pdf(
                temp_dir / "missing.pdf", AsyncMock(), InMemoryCorpusStore()
            )


class TestIngestFile:
    """Tests for ingest_file()."""

    @pytest.mark.asyncio
    async def test_markdown_file_into_json_store(
        self, temp_dir: Path, keyword_embedder: Any
    ) -> None:
        """Test a markdown file is ingested under its file name."""
        doc = temp_dir / "faq.md"
        doc.write_text("## 営業時間\n\n9時から18時まで\n", encoding="utf-8")
        store = JsonCorpusStore(temp_dir / "corpus.json")

        count = await ingest_file(doc, keyword_embedder, store)

        units = await store.load_all_units()
        assert count == 1
        assert units[0].id == "faq.md_chunk_0"
        assert units[0].source == "faq.md"

    @pytest.mark.asyncio
    async def test_html_file(self, temp_dir: Path, keyword_embedder: Any) -> None:
        """Test HTML files go through text extraction."""
        doc = temp_dir / "page.HTML"
        doc.write_text("<p>リール</p>", encoding="utf-8")
        store = InMemoryCorpusStore()

        await ingest_file(doc, keyword_embedder, store, source="custom")

        units = await store.load_all_units()
        assert units[0].text == "リール"
        assert units[0].id == "custom_chunk_0"

    @pytest.mark.asyncio
    async def test_unsupported_suffix(self, temp_dir: Path) -> None:
        """Test unsupported file types are rejected before reading."""
        doc = temp_dir / "report.docx"
        with pytest.raises(IngestionError, match="Unsupported file type"):
            await ingest_file(doc, AsyncMock(), InMemoryCorpusStore())

    @pytest.mark.asyncio
    async def test_non_utf8_file(self, temp_dir: Path) -> None:
        """Test a file that is not valid UTF-8 raises IngestionError."""
        doc = temp_dir / "legacy.txt"
        doc.write_bytes(b"\xff\xfe\x00\x81")
        embedder = AsyncMock()
        store = InMemoryCorpusStore()

        with pytest.raises(IngestionError, match="Cannot read"):
            await ingest_file(doc, embedder, store)

        embedder.embed.assert_not_called()
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_pdf_file(self, temp_dir: Path, keyword_embedder: Any) -> None:
        """Test PDF files go through text extraction and the flat splitter."""
        doc = temp_dir / "manual.PDF"
        store = InMemoryCorpusStore()

        with patch(
            "ragline.rag.ingest.extract_text_from_pdf", return_value="営業時間は9時から"
        ) as mock_extract:
            count = await ingest_file(doc, keyword_embedder, store)

        mock_extract.assert_called_once_with(doc)
        units = await store.load_all_units()
        assert count == 1
        assert units[0].text == "営業時間は9時から"
        assert units[0].source == "manual.PDF"

    @pytest.mark.asyncio
    async def test_missing_file(self, temp_dir: Path) -> None:
        """Test unreadable files raise IngestionError."""
        with pytest.raises(IngestionError, match="Cannot read"):
            await ingest_file(temp_dir / "missing.md", AsyncMock(), InMemoryCorpusStore())
