"""Curated embedding model constants for the LiteLLM provider.

These are convenience constants for IDE autocomplete. Any valid LiteLLM
embedding model string works.
"""


class EmbeddingModels:
    """Embedding models for LiteLLMEmbeddingClient."""

    # OpenAI (support the ``dimensions`` parameter)
    TEXT_3_SMALL = "openai/text-embedding-3-small"
    TEXT_3_LARGE = "openai/text-embedding-3-large"

    # Google Gemini
    GEMINI_EMBEDDING_001 = "gemini/gemini-embedding-001"

    # AWS Bedrock
    BEDROCK_TITAN_V2 = "bedrock/amazon.titan-embed-text-v2:0"
    BEDROCK_COHERE_V3 = "bedrock/cohere.embed-english-v3"
