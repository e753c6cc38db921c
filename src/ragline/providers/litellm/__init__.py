"""LiteLLM embedding provider for ragline.

Usage:
    from ragline.providers.litellm import LiteLLMEmbeddingClient, EmbeddingModels

    client = LiteLLMEmbeddingClient(model=EmbeddingModels.TEXT_3_LARGE, dimensions=3072)
"""

from ragline.providers.litellm.client import LiteLLMEmbeddingClient
from ragline.providers.litellm.models import EmbeddingModels

__all__ = [
    "EmbeddingModels",
    "LiteLLMEmbeddingClient",
]
