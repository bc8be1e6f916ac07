"""Provider contracts and Semantic Kernel adapters.

The retrieval and answering code depends only on the small protocols defined
here. Concrete implementations wrap Semantic Kernel embedding and chat
completion services, which are created from ``ModelConfig`` by the factory
functions at the bottom of this module.

Semantic Kernel connectors are imported lazily inside the factories so that
importing ragline does not require optional connector packages.
"""

import logging
import math
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from ragline.lib.errors import ConfigError, EmbeddingUnavailable, GenerationUnavailable
from ragline.lib.vector_store import IndexedDocument
from ragline.models.config import ModelConfig, ProviderType

if TYPE_CHECKING:
    from semantic_kernel.connectors.ai.prompt_execution_settings import (
        PromptExecutionSettings,
    )

logger = logging.getLogger(__name__)


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Turns text into an embedding vector."""

    async def embed(self, text: str) -> list[float]: ...


@runtime_checkable
class GenerationProvider(Protocol):
    """Turns a prompt into generated text."""

    async def generate(self, prompt: str) -> str: ...


@runtime_checkable
class CorpusSource(Protocol):
    """Read side of a corpus store."""

    async def load_all_units(self) -> Sequence[IndexedDocument]: ...


@runtime_checkable
class CorpusSink(Protocol):
    """Write side of a corpus store."""

    async def save_units(self, units: Sequence[IndexedDocument]) -> None: ...


class SemanticKernelEmbeddingProvider:
    """EmbeddingProvider backed by a Semantic Kernel embedding service."""

    def __init__(self, embedding_service: Any) -> None:
        """Wrap an SK service exposing ``generate_embeddings``."""
        self._embedding_service = embedding_service

    async def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Args:
            text: Text to embed.

        Returns:
            Embedding vector as a list of floats.

        Raises:
            EmbeddingUnavailable: If the service fails or returns an empty
                or non-numeric vector.
        """
        try:
            embeddings = await self._embedding_service.generate_embeddings([text])
        except Exception as e:
            raise EmbeddingUnavailable("Embedding service call failed", e) from e

        if embeddings is None or len(embeddings) == 0:
            raise EmbeddingUnavailable("Embedding service returned no vectors")

        try:
            vector = [float(v) for v in embeddings[0]]
        except (TypeError, ValueError) as e:
            raise EmbeddingUnavailable(
                "Embedding service returned a malformed vector", e
            ) from e

        if not vector:
            raise EmbeddingUnavailable("Embedding service returned an empty vector")
        if not all(math.isfinite(v) for v in vector):
            raise EmbeddingUnavailable("Embedding service returned non-finite values")

        return vector


class SemanticKernelGenerationProvider:
    """GenerationProvider backed by a Semantic Kernel chat completion service."""

    def __init__(
        self,
        chat_service: Any,
        execution_settings: "PromptExecutionSettings | None" = None,
    ) -> None:
        """Wrap an SK chat completion service.

        Args:
            chat_service: Service exposing ``get_chat_message_contents``.
            execution_settings: Optional prompt execution settings. When None,
                a default PromptExecutionSettings is used.
        """
        self._chat_service = chat_service
        self._execution_settings = execution_settings

    async def generate(self, prompt: str) -> str:
        """Send the prompt as a single user message.

        Args:
            prompt: Fully rendered prompt.

        Returns:
            Response text stripped of surrounding whitespace, or "" when the
            service returned no content.

        Raises:
            GenerationUnavailable: If the service call fails.
        """
        # Import here to keep Semantic Kernel out of module import time
        from semantic_kernel.connectors.ai.prompt_execution_settings import (
            PromptExecutionSettings,
        )
        from semantic_kernel.contents import ChatHistory

        chat_history = ChatHistory()
        chat_history.add_user_message(prompt)
        settings = self._execution_settings or PromptExecutionSettings()

        try:
            result = await self._chat_service.get_chat_message_contents(
                chat_history=chat_history,
                settings=settings,
            )
        except Exception as e:
            raise GenerationUnavailable("Chat completion call failed", e) from e

        if result and len(result) > 0:
            content = result[0].content
            return str(content).strip() if content else ""
        return ""


def _require_api_key(config: ModelConfig) -> str:
    if not config.api_key:
        raise ConfigError(
            "model.api_key",
            f"API key is required for provider '{config.provider.value}'",
        )
    return config.api_key


def create_embedding_service(config: ModelConfig) -> Any:
    """Create an SK embedding service from model config.

    Args:
        config: Provider settings.

    Returns:
        An initialized TextEmbedding service instance.

    Raises:
        ConfigError: If the provider needs an API key and none is set, or the
            connector package is not installed.
    """
    logger.debug(
        "Creating embedding service: model=%s, provider=%s",
        config.embedding_model,
        config.provider.value,
    )

    if config.provider == ProviderType.OPENAI:
        from semantic_kernel.connectors.ai.open_ai import OpenAITextEmbedding

        return OpenAITextEmbedding(
            ai_model_id=config.embedding_model,
            api_key=_require_api_key(config),
        )

    if config.provider == ProviderType.OLLAMA:
        try:
            from semantic_kernel.connectors.ai.ollama import OllamaTextEmbedding
        except ImportError as exc:
            raise ConfigError(
                "model.provider",
                "Ollama provider requires 'ollama' package. "
                "Install with: pip install ollama",
            ) from exc

        return OllamaTextEmbedding(
            ai_model_id=config.embedding_model,
            host=config.endpoint if config.endpoint else None,
        )

    try:
        from semantic_kernel.connectors.ai.google.google_ai import GoogleAITextEmbedding
    except ImportError as exc:
        raise ConfigError(
            "model.provider",
            "Google provider requires 'google-generativeai' package. "
            "Install with: pip install 'semantic-kernel[google]'",
        ) from exc

    return GoogleAITextEmbedding(
        embedding_model_id=config.embedding_model,
        api_key=_require_api_key(config),
    )


def create_chat_service(config: ModelConfig) -> Any:
    """Create an SK chat completion service from model config.

    Args:
        config: Provider settings.

    Returns:
        An initialized ChatCompletion service instance.

    Raises:
        ConfigError: If the provider needs an API key and none is set, or the
            connector package is not installed.
    """
    logger.debug(
        "Creating chat service: model=%s, provider=%s",
        config.generation_model,
        config.provider.value,
    )

    if config.provider == ProviderType.OPENAI:
        from semantic_kernel.connectors.ai.open_ai import OpenAIChatCompletion

        return OpenAIChatCompletion(
            ai_model_id=config.generation_model,
            api_key=_require_api_key(config),
        )

    if config.provider == ProviderType.OLLAMA:
        try:
            from semantic_kernel.connectors.ai.ollama import OllamaChatCompletion
        except ImportError as exc:
            raise ConfigError(
                "model.provider",
                "Ollama provider requires 'ollama' package. "
                "Install with: pip install ollama",
            ) from exc

        return OllamaChatCompletion(
            ai_model_id=config.generation_model,
            host=config.endpoint if config.endpoint else None,
        )

    try:
        from semantic_kernel.connectors.ai.google.google_ai import (
            GoogleAIChatCompletion,
        )
    except ImportError as exc:
        raise ConfigError(
            "model.provider",
            "Google provider requires 'google-generativeai' package. "
            "Install with: pip install 'semantic-kernel[google]'",
        ) from exc

    return GoogleAIChatCompletion(
        gemini_model_id=config.generation_model,
        api_key=_require_api_key(config),
    )


def create_execution_settings(config: ModelConfig) -> "PromptExecutionSettings":
    """Build prompt execution settings carrying temperature and token limits."""
    from semantic_kernel.connectors.ai.prompt_execution_settings import (
        PromptExecutionSettings,
    )

    extension_data: dict[str, Any] = {}
    if config.temperature is not None:
        extension_data["temperature"] = config.temperature
    if config.max_tokens is not None:
        extension_data["max_tokens"] = config.max_tokens
    return PromptExecutionSettings(extension_data=extension_data)


def create_embedding_provider(config: ModelConfig) -> SemanticKernelEmbeddingProvider:
    """Create an EmbeddingProvider for the configured provider."""
    return SemanticKernelEmbeddingProvider(create_embedding_service(config))


def create_generation_provider(config: ModelConfig) -> SemanticKernelGenerationProvider:
    """Create a GenerationProvider for the configured provider."""
    return SemanticKernelGenerationProvider(
        create_chat_service(config),
        execution_settings=create_execution_settings(config),
    )
