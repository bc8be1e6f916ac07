"""Pydantic models for ragline configuration.

This module defines the configuration schema read from ``ragline.yaml``:
chunking, retrieval (including the hybrid scorer), model providers,
answer formatting, and the corpus location.
"""

from collections.abc import Mapping, Sequence
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

from ragline.lib.keyword_search import DEFAULT_KEYWORD_SYNONYMS
from ragline.lib.structured_chunker import (
    DEFAULT_FLAT_SEPARATORS,
    ChunkingMode,
    FineSplitTarget,
)


class ProviderType(str, Enum):
    """Supported embedding and generation providers."""

    OPENAI = "openai"
    OLLAMA = "ollama"
    GOOGLE = "google"


class ChunkingConfig(BaseModel):
    """Markdown chunking settings.

    Attributes:
        max_chunk_size: Character budget per chunk
        mode: Split strategy used during ingestion
        coarse_level: Heading level for coarse sections (None = auto)
        fine_min_level: Shallowest heading level that starts a fine chunk
        fine_target: Whether all or only the deepest sub-headings split
        include_preamble: Keep text before the first boundary heading
        flat_chunk_size: Character budget per chunk for text without headings
        flat_chunk_overlap: Characters shared by neighbouring flat chunks
        flat_separators: Break points for text without headings, tried in order
    """

    model_config = ConfigDict(extra="forbid")

    max_chunk_size: int = Field(default=1500, gt=0, description="Characters per chunk")
    mode: ChunkingMode = Field(default=ChunkingMode.FINE)
    coarse_level: int | None = Field(default=None, ge=1, le=6)
    fine_min_level: int = Field(default=3, ge=1, le=6)
    fine_target: FineSplitTarget = Field(default=FineSplitTarget.ALL)
    include_preamble: bool = Field(default=False)
    flat_chunk_size: int = Field(default=400, gt=0)
    flat_chunk_overlap: int = Field(default=80, ge=0)
    flat_separators: list[str] = Field(
        default_factory=lambda: list(DEFAULT_FLAT_SEPARATORS), min_length=1
    )

    @model_validator(mode="after")
    def validate_flat_overlap(self) -> "ChunkingConfig":
        """Validate that the flat overlap is smaller than the flat chunk size."""
        if self.flat_chunk_overlap >= self.flat_chunk_size:
            raise ValueError("flat_chunk_overlap must be smaller than flat_chunk_size")
        return self


class HybridConfig(BaseModel):
    """Weights, threshold and synonym vocabulary of the hybrid scorer.

    Instances are immutable. Use ``merged`` or ``with_synonyms`` to derive an
    updated configuration; the original is left untouched.

    Attributes:
        vector_weight: Weight of the cosine similarity term
        keyword_weight: Weight of the keyword Jaccard term
        min_score: Candidates scoring strictly below this are dropped
        keyword_synonyms: Main term to synonyms mapping
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    vector_weight: float = Field(default=0.7, ge=0.0)
    keyword_weight: float = Field(default=0.3, ge=0.0)
    min_score: float = Field(default=0.05)
    keyword_synonyms: Mapping[str, tuple[str, ...]] = Field(
        default_factory=lambda: DEFAULT_KEYWORD_SYNONYMS
    )

    @field_validator("keyword_synonyms")
    @classmethod
    def freeze_synonyms(
        cls, v: Mapping[str, tuple[str, ...]]
    ) -> Mapping[str, tuple[str, ...]]:
        """Store the synonym table as a read-only mapping of tuples."""
        return MappingProxyType(dict(v))

    @field_serializer("keyword_synonyms")
    def serialize_synonyms(
        self, v: Mapping[str, tuple[str, ...]]
    ) -> dict[str, list[str]]:
        """Dump the synonym table as plain lists, the shape read from YAML."""
        return {term: list(variants) for term, variants in v.items()}

    def merged(self, **overrides: Any) -> "HybridConfig":
        """Return a new config with ``overrides`` applied and re-validated.

        Raises:
            pydantic.ValidationError: If an override is invalid.
        """
        data = self.model_dump()
        data.update(overrides)
        return HybridConfig.model_validate(data)

    def with_synonyms(self, synonyms: Mapping[str, Sequence[str]]) -> "HybridConfig":
        """Return a new config whose synonym table is extended by ``synonyms``.

        Entries in ``synonyms`` replace existing entries for the same term.
        """
        table = dict(self.keyword_synonyms)
        table.update({term: tuple(variants) for term, variants in synonyms.items()})
        return self.merged(keyword_synonyms=table)


class RetrievalConfig(BaseModel):
    """Retrieval settings.

    Attributes:
        top_k: Maximum number of units returned to the answerer
        use_hybrid_search: Use the hybrid ranker instead of vector-only ranking
        vector_min_score: Threshold of the vector-only ranker
        hybrid: Hybrid scorer settings
    """

    model_config = ConfigDict(extra="forbid")

    top_k: int = Field(default=4, ge=0)
    use_hybrid_search: bool = Field(default=True)
    vector_min_score: float = Field(default=0.1)
    hybrid: HybridConfig = Field(default_factory=HybridConfig)


class ModelConfig(BaseModel):
    """Embedding and generation provider settings.

    Attributes:
        provider: Provider backing both models
        embedding_model: Embedding model identifier
        generation_model: Chat completion model identifier
        api_key: Provider API key (required for openai and google)
        endpoint: Provider endpoint (ollama host)
        temperature: Sampling temperature for generation
        max_tokens: Generation token limit
    """

    model_config = ConfigDict(extra="forbid")

    provider: ProviderType = Field(default=ProviderType.OPENAI)
    embedding_model: str = Field(default="text-embedding-3-small")
    generation_model: str = Field(default="gpt-4o-mini")
    api_key: str | None = Field(default=None)
    endpoint: str | None = Field(default=None)
    temperature: float | None = Field(default=0.2, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0)

    @field_validator("embedding_model", "generation_model")
    @classmethod
    def validate_model_name(cls, v: str) -> str:
        """Validate model names are not blank."""
        if not v.strip():
            raise ValueError("model name must be non-empty")
        return v


class AnswerConfig(BaseModel):
    """Answer formatting settings.

    Attributes:
        max_answer_length: Answers longer than this are truncated with an ellipsis
        unavailable_message: Reply used when a provider is unavailable
        empty_answer_message: Reply used when the generator returns nothing
    """

    model_config = ConfigDict(extra="forbid")

    max_answer_length: int = Field(default=500, ge=2)
    unavailable_message: str = Field(
        default="現在サービスが混雑しています。しばらくしてからお試しください。"
    )
    empty_answer_message: str = Field(
        default="回答を生成できませんでした。"
    )


class CorpusConfig(BaseModel):
    """Corpus store location.

    Attributes:
        path: JSON snapshot file holding the indexed documents
    """

    model_config = ConfigDict(extra="forbid")

    path: str = Field(default=".ragline/corpus.json")


class RagLineConfig(BaseModel):
    """Root configuration model for ragline.

    Attributes:
        chunking: Chunking settings
        retrieval: Retrieval settings
        model: Provider settings
        answer: Answer formatting settings
        corpus: Corpus store settings
    """

    model_config = ConfigDict(extra="forbid")

    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    model: ModelConfig = Field(default_factory=ModelConfig)
    answer: AnswerConfig = Field(default_factory=AnswerConfig)
    corpus: CorpusConfig = Field(default_factory=CorpusConfig)

