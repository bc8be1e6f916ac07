"""Hybrid search combining semantic and keyword scoring.

This module ranks corpus units against a query by blending two signals:
cosine similarity of embeddings and Jaccard overlap of synonym-normalized
keyword sets. A vector-only ranker sharing the same ranking rules is
provided for configurations that disable the keyword signal.

Key Features:
- ScoredCandidate dataclass exposing every score component
- HybridRanker with weighted linear fusion and a minimum-score threshold
- VectorRanker for pure cosine ranking
- Deterministic ordering: stable sort, ties keep corpus order

Usage:
    from ragline.lib.hybrid_search import HybridRanker

    ranker = HybridRanker()
    results = await ranker.retrieve(query, units, embedder.embed, top_k=4)
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from ragline.lib.keyword_search import KeywordExtractor, jaccard_similarity
from ragline.lib.logging_config import get_logger
from ragline.lib.vector_store import CorpusUnit, cosine_similarity
from ragline.models.config import HybridConfig

logger = get_logger(__name__)

EmbedFn = Callable[[str], Awaitable[Sequence[float]]]
SimilarityFn = Callable[[Sequence[float], Sequence[float]], float]

DEFAULT_VECTOR_MIN_SCORE = 0.1


@dataclass(frozen=True)
class ScoredCandidate:
    """A corpus unit with its retrieval scores.

    Attributes:
        unit: The scored corpus unit
        vector_score: Similarity between query and unit embeddings
        keyword_score: Jaccard overlap of query and unit keyword sets
        hybrid_score: Weighted combination used for ranking
    """

    unit: CorpusUnit
    vector_score: float
    keyword_score: float
    hybrid_score: float

    @property
    def id(self) -> str:
        """Identifier of the underlying unit."""
        return self.unit.id

    @property
    def text(self) -> str:
        """Text of the underlying unit."""
        return self.unit.text


def rank_candidates(
    candidates: Iterable[ScoredCandidate],
    min_score: float,
    top_k: int | None = None,
) -> list[ScoredCandidate]:
    """Filter, order and truncate scored candidates.

    Candidates with a hybrid score strictly below ``min_score`` are dropped.
    The rest are sorted by hybrid score, highest first; the sort is stable so
    equal scores keep their input order.

    Args:
        candidates: Scored candidates in corpus order.
        min_score: Inclusive lower bound on hybrid score.
        top_k: Maximum number of results, or None for all.

    Returns:
        Ranked candidates.

    Example:
        >>> unit = object()
        >>> ranked = rank_candidates(
        ...     [ScoredCandidate(unit, 0.0, 0.0, 0.01), ScoredCandidate(unit, 0.0, 0.0, 0.5)],
        ...     min_score=0.05,
        ... )
        >>> [c.hybrid_score for c in ranked]
        [0.5]
    """
    kept = [c for c in candidates if c.hybrid_score >= min_score]
    kept.sort(key=lambda c: c.hybrid_score, reverse=True)
    if top_k is not None:
        kept = kept[: max(0, top_k)]
    return kept


class HybridRanker:
    """Rank corpus units by weighted vector and keyword similarity.

    ``hybrid = vector_weight * vector_score + keyword_weight * keyword_score``

    The configuration is immutable; ``update_config`` and ``update_synonyms``
    swap in a new configuration for subsequent calls. The configuration and
    the keyword extractor built from it are replaced together in one
    assignment, so a retrieval always sees a matching pair.

    Example:
        >>> ranker = HybridRanker(HybridConfig(vector_weight=0.0, keyword_weight=1.0))
        >>> ranker.config.keyword_weight
        1.0
    """

    def __init__(self, config: HybridConfig | None = None) -> None:
        """Initialize the ranker.

        Args:
            config: Hybrid scorer settings. Defaults to HybridConfig().
        """
        self._state = self._build_state(config or HybridConfig())

    @staticmethod
    def _build_state(config: HybridConfig) -> tuple[HybridConfig, KeywordExtractor]:
        """Pair a configuration with an extractor over its synonym table."""
        return config, KeywordExtractor(config.keyword_synonyms)

    @property
    def config(self) -> HybridConfig:
        """Current scorer configuration."""
        return self._state[0]

    @property
    def extractor(self) -> KeywordExtractor:
        """Keyword extractor built from the current synonym table."""
        return self._state[1]

    def update_config(self, **overrides: Any) -> HybridConfig:
        """Apply configuration overrides for subsequent retrievals.

        Args:
            **overrides: HybridConfig fields to replace.

        Returns:
            The new configuration.
        """
        self._state = self._build_state(self.config.merged(**overrides))
        return self.config

    def update_synonyms(self, synonyms: Mapping[str, Sequence[str]]) -> HybridConfig:
        """Extend the synonym table for subsequent retrievals."""
        self._state = self._build_state(self.config.with_synonyms(synonyms))
        return self.config

    async def retrieve(
        self,
        query: str,
        units: Sequence[CorpusUnit],
        embed_fn: EmbedFn,
        similarity_fn: SimilarityFn = cosine_similarity,
        top_k: int | None = None,
    ) -> list[ScoredCandidate]:
        """Rank ``units`` against ``query``.

        The query is embedded exactly once. An empty corpus returns an empty
        list without calling ``embed_fn``. Errors raised by ``embed_fn``
        propagate unchanged.

        Args:
            query: User query.
            units: Corpus units to score.
            embed_fn: Async function returning the embedding of a text.
            similarity_fn: Vector similarity function (cosine by default).
            top_k: Maximum number of results, or None for all.

        Returns:
            Candidates with hybrid score >= min_score, best first.
        """
        if not units:
            return []

        config, extractor = self._state

        query_vector = await embed_fn(query)
        query_keywords = extractor.extract(query)

        keyword_cache: dict[str, frozenset[str]] = {}
        candidates: list[ScoredCandidate] = []
        for unit in units:
            if unit.text not in keyword_cache:
                keyword_cache[unit.text] = extractor.extract(unit.text)
            vector_score = similarity_fn(query_vector, unit.embedding)
            keyword_score = jaccard_similarity(query_keywords, keyword_cache[unit.text])
            candidates.append(
                ScoredCandidate(
                    unit=unit,
                    vector_score=vector_score,
                    keyword_score=keyword_score,
                    hybrid_score=config.vector_weight * vector_score
                    + config.keyword_weight * keyword_score,
                )
            )

        ranked = rank_candidates(candidates, config.min_score, top_k)
        logger.debug(
            f"Hybrid retrieval scored {len(candidates)} units, "
            f"kept {len(ranked)} (min_score={config.min_score})"
        )
        return ranked


class VectorRanker:
    """Rank corpus units by embedding similarity only."""

    def __init__(self, min_score: float = DEFAULT_VECTOR_MIN_SCORE) -> None:
        self.min_score = min_score

    async def retrieve(
        self,
        query: str,
        units: Sequence[CorpusUnit],
        embed_fn: EmbedFn,
        similarity_fn: SimilarityFn = cosine_similarity,
        top_k: int | None = None,
    ) -> list[ScoredCandidate]:
        """Rank ``units`` by similarity to the query embedding.

        Candidates carry ``keyword_score == 0.0`` and a hybrid score equal to
        their vector score.
        """
        if not units:
            return []

        query_vector = await embed_fn(query)
        candidates = []
        for unit in units:
            score = similarity_fn(query_vector, unit.embedding)
            candidates.append(
                ScoredCandidate(
                    unit=unit, vector_score=score, keyword_score=0.0, hybrid_score=score
                )
            )

        ranked = rank_candidates(candidates, self.min_score, top_k)
        logger.debug(f"Vector retrieval kept {len(ranked)} of {len(candidates)} units")
        return ranked
