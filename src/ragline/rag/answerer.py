"""Retrieval-augmented answer generation.

``RagAnswerer`` ties the pieces together for a single question: load the
corpus, rank units against the question, render a prompt with the best
units as numbered context, and post-process the generated answer.
"""

import logging

from ragline.lib.errors import EmbeddingUnavailable, GenerationUnavailable
from ragline.lib.hybrid_search import HybridRanker, ScoredCandidate, VectorRanker
from ragline.lib.providers import (
    CorpusSource,
    EmbeddingProvider,
    GenerationProvider,
    create_embedding_provider,
    create_generation_provider,
)
from ragline.lib.vector_store import JsonCorpusStore, cosine_similarity
from ragline.models.config import AnswerConfig, RagLineConfig, RetrievalConfig

logger = logging.getLogger(__name__)

ELLIPSIS = "…"

PROMPT_TEMPLATE = """あなたは有能なサポート担当です。ユーザーの質問に日本語で正確に回答してください。

回答内容：
・もし質問がコンテキストに関連する内容であれば、コンテキストの内容に基づいて回答してください。
・コンテキストと関係ない質問に対しても回答してください。

注意点：
・資料に基づく回答かどうかについて言及せず回答内容だけを返す。
・資料に基づく回答の場合でも、資料のどこに書いてあるかに言及せず回答内容だけを返す。

不要な記述例：
・資料にはーーの内容はありませんが
・資料にはーーに関する具体的な記述はありませんが
・ーーは、今回の資料からは直接読み取れません


回答は最大{max_answer_length}文字以内で簡潔にしてください。

コンテキスト:
{context}

質問:{query}"""


def truncate_answer(answer: str, max_length: int) -> str:
    """Cut an answer to at most ``max_length`` characters.

    Longer answers keep their first ``max_length - 1`` characters followed
    by an ellipsis.

    Example:
        >>> truncate_answer("abcdef", 4)
        'abc…'
    """
    if len(answer) <= max_length:
        return answer
    return answer[: max_length - 1] + ELLIPSIS


class RagAnswerer:
    """Answer questions from an indexed corpus.

    Attributes:
        retrieval: Retrieval settings
        answer_config: Answer formatting settings
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        generator: GenerationProvider,
        corpus: CorpusSource,
        retrieval: RetrievalConfig | None = None,
        answer: AnswerConfig | None = None,
    ) -> None:
        """Initialize the answerer.

        Args:
            embedder: Provider used to embed the question.
            generator: Provider used to generate the answer.
            corpus: Source of indexed units.
            retrieval: Retrieval settings. Defaults to RetrievalConfig().
            answer: Answer settings. Defaults to AnswerConfig().
        """
        self._embedder = embedder
        self._generator = generator
        self._corpus = corpus
        self.retrieval = retrieval or RetrievalConfig()
        self.answer_config = answer or AnswerConfig()
        self._hybrid_ranker = HybridRanker(self.retrieval.hybrid)
        self._vector_ranker = VectorRanker(min_score=self.retrieval.vector_min_score)

    async def retrieve(self, query: str, top_k: int | None = None) -> list[ScoredCandidate]:
        """Rank corpus units against ``query``.

        Args:
            query: User question.
            top_k: Result limit. Defaults to ``retrieval.top_k``.

        Returns:
            Ranked candidates, best first.

        Raises:
            EmbeddingUnavailable: If the question cannot be embedded.
        """
        limit = self.retrieval.top_k if top_k is None else top_k
        units = list(await self._corpus.load_all_units())
        ranker = (
            self._hybrid_ranker if self.retrieval.use_hybrid_search else self._vector_ranker
        )
        results = await ranker.retrieve(
            query, units, self._embedder.embed, cosine_similarity, top_k=limit
        )
        logger.debug(f"Retrieved {len(results)} of {len(units)} units for query")
        return results

    def build_prompt(self, query: str, candidates: list[ScoredCandidate]) -> str:
        """Render the generation prompt.

        Args:
            query: User question.
            candidates: Context units, best first.

        Returns:
            Prompt with candidates numbered ``【1】``, ``【2】``... as context.
        """
        context = "\n\n".join(
            f"【{i + 1}】{candidate.text}" for i, candidate in enumerate(candidates)
        )
        return PROMPT_TEMPLATE.format(
            max_answer_length=self.answer_config.max_answer_length,
            context=context,
            query=query,
        )

    async def answer(self, query: str) -> str:
        """Answer a question.

        Provider failures are logged and answered with the configured
        unavailable message instead of raising.

        Args:
            query: User question.

        Returns:
            Answer text no longer than ``max_answer_length``.

        Raises:
            ValueError: If the question is blank.
        """
        if not query or not query.strip():
            raise ValueError("query must be a non-empty string")

        try:
            candidates = await self.retrieve(query)
            prompt = self.build_prompt(query, candidates)
            generated = await self._generator.generate(prompt)
        except (EmbeddingUnavailable, GenerationUnavailable) as e:
            logger.warning(f"Provider unavailable while answering: {e.message}")
            return self.answer_config.unavailable_message

        if not generated or not generated.strip():
            return self.answer_config.empty_answer_message

        return truncate_answer(generated, self.answer_config.max_answer_length)


def create_answerer(config: RagLineConfig) -> RagAnswerer:
    """Build an answerer wired to the configured providers and corpus file.

    Raises:
        ConfigError: If the provider configuration is incomplete.
    """
    return RagAnswerer(
        embedder=create_embedding_provider(config.model),
        generator=create_generation_provider(config.model),
        corpus=JsonCorpusStore(config.corpus.path),
        retrieval=config.retrieval,
        answer=config.answer,
    )
