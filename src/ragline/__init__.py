"""ragline - Heading-aware chunking and hybrid retrieval for markdown corpora.

ragline splits long structured markdown documents into context-preserving
chunks, indexes them with embeddings, and answers questions by ranking the
chunks with a blend of vector similarity and synonym-aware keyword overlap.

Main features:
- Coarse and fine hierarchical markdown chunking
- Hybrid (vector + keyword) and vector-only ranking
- Semantic Kernel embedding and chat completion providers
- YAML configuration with environment variable substitution
"""

from ragline.config.loader import ConfigLoader
from ragline.lib.errors import ConfigError, RagLineError, ValidationError

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ConfigLoader",
    "ConfigError",
    "RagLineError",
    "ValidationError",
]
