"""LiteLLM embedding client implementation."""

import litellm

from ragline.exceptions import ProviderError
from ragline.providers.base import EmbeddingClient
from ragline.providers.litellm.models import EmbeddingModels
from ragline.retry import ErrorKind


class LiteLLMEmbeddingClient(EmbeddingClient):
    """LiteLLM-based embedding client.

    Supports any embedding model available through LiteLLM. Each ``aembed``
    call is a single request; LiteLLM's own retries are disabled so that
    retrying is controlled by ragline's retry policy.

    Example:
        from ragline.providers.litellm import LiteLLMEmbeddingClient, EmbeddingModels

        client = LiteLLMEmbeddingClient(model=EmbeddingModels.TEXT_3_LARGE, dimensions=3072)
        embeddings = await client.aembed(["Hello world", "How are you?"])
    """

    def __init__(
        self,
        model: str = EmbeddingModels.TEXT_3_LARGE,
        dimensions: int | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the LiteLLM embedding client.

        Args:
            model: LiteLLM embedding model identifier.
                   Examples: "openai/text-embedding-3-large", "gemini/gemini-embedding-001"
            dimensions: Requested output dimensionality, for models that support it.
                        None uses the model's native size.
            timeout: Per-request timeout in seconds. None uses LiteLLM's default.
        """
        self.model = model
        self.dimensions = dimensions
        self.timeout = timeout

    async def aembed(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings using LiteLLM."""
        if not texts:
            return []

        kwargs: dict = {"model": self.model, "input": texts, "num_retries": 0}
        if self.dimensions is not None:
            kwargs["dimensions"] = self.dimensions
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout

        try:
            response = await litellm.aembedding(**kwargs)
        except litellm.Timeout as e:
            raise ProviderError(
                f"Embedding request timed out: {e}", ErrorKind.TIMEOUT, 408, "litellm"
            ) from e
        except litellm.APIConnectionError as e:
            raise ProviderError(
                f"Embedding provider unreachable: {e}", ErrorKind.NETWORK, None, "litellm"
            ) from e
        except Exception as e:
            status_code = getattr(e, "status_code", None)
            if not isinstance(status_code, int):
                raise ProviderError(
                    f"Embedding request failed: {e}", ErrorKind.UNKNOWN, None, "litellm"
                ) from e
            raise ProviderError(
                f"Embedding API error ({status_code}): {e}",
                ErrorKind.from_status(status_code),
                status_code,
                "litellm",
            ) from e

        # Sort by index to maintain order
        sorted_data = sorted(response.data, key=lambda x: x["index"])
        return [item["embedding"] for item in sorted_data]
