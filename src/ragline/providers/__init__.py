"""Provider implementations for ragline.

- EmbeddingClient: Abstract base class for embedding providers
- LiteLLMEmbeddingClient: Embeddings through LiteLLM (OpenAI, Gemini, Bedrock, ...)

Usage:
    from ragline.providers import EmbeddingClient
    from ragline.providers.litellm import LiteLLMEmbeddingClient, EmbeddingModels
"""

from ragline.providers.base import EmbeddingClient
from ragline.providers.litellm import EmbeddingModels, LiteLLMEmbeddingClient

__all__ = [
    "EmbeddingClient",
    "EmbeddingModels",
    "LiteLLMEmbeddingClient",
]
