"""Default configuration values for ragline."""

DEFAULT_CONFIG_FILENAME = "ragline.yaml"

# Ollama provider defaults
OLLAMA_DEFAULTS: dict[str, str] = {
    "endpoint": "http://localhost:11434",
    "embedding_model": "nomic-embed-text:latest",
    "generation_model": "llama3.1",
}

# Google AI provider defaults
GOOGLE_DEFAULTS: dict[str, str] = {
    "embedding_model": "text-embedding-004",
    "generation_model": "gemini-1.5-flash",
}


# Provider-specific model defaults applied when the provider is set but the
# model fields are not
PROVIDER_DEFAULTS: dict[str, dict[str, str]] = {
    "ollama": OLLAMA_DEFAULTS,
    "google": GOOGLE_DEFAULTS,
}

# Dotted config path to environment variable mapping
ENV_VAR_MAP: dict[str, str] = {
    "model.provider": "RAGLINE_PROVIDER",
    "model.api_key": "RAGLINE_API_KEY",
    "model.endpoint": "RAGLINE_ENDPOINT",
    "model.embedding_model": "RAGLINE_EMBEDDING_MODEL",
    "model.generation_model": "RAGLINE_GENERATION_MODEL",
    "retrieval.top_k": "RAGLINE_TOP_K",
    "retrieval.use_hybrid_search": "RAGLINE_USE_HYBRID_SEARCH",
    "chunking.max_chunk_size": "RAGLINE_MAX_CHUNK_SIZE",
    "corpus.path": "RAGLINE_CORPUS_PATH",
}
