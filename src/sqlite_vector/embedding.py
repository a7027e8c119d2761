"""Embedding collaborators for ``vector_embed``.

SQL scalar functions run synchronously inside the statement, so embedders
expose a blocking ``embed`` call. Supports the OpenAI API and is extensible
to local models.
"""

import time
from collections.abc import Sequence
from typing import Protocol

from loguru import logger
from openai import APIStatusError, APITimeoutError, OpenAI, RateLimitError
from pydantic import BaseModel, Field


class EmbeddingConfig(BaseModel):
    """Configuration for embedding generation.

    Attributes:
        model: Model identifier (e.g., "openai/text-embedding-3-small")
        version: Version tag for reindexing triggers (e.g., "v1")
        dimensions: Expected embedding dimensionality
        max_retries: Maximum attempts for transient failures
        timeout_seconds: API request timeout
        api_key: API key for external services (set via env var)
    """

    model: str
    version: str = "v1"
    dimensions: int = Field(ge=1, le=4096)
    max_retries: int = Field(default=3, ge=1, le=10)
    timeout_seconds: float = Field(default=30.0, ge=1.0, le=300.0)
    api_key: str | None = None


class Embedder(Protocol):
    """Protocol for embedding implementations."""

    def embed(self, text: str) -> Sequence[float]:
        """Generate the embedding vector for one text.

        Args:
            text: Input text

        Returns:
            Embedding vector
        """
        ...


class OpenAIEmbedding:
    """OpenAI embedding client with retry logic."""

    def __init__(self, config: EmbeddingConfig):
        """Initialize OpenAI client.

        Args:
            config: Embedding configuration with API key
        """
        self.config = config
        # Retries are handled here so backoff and logging stay in one place
        self.client = OpenAI(api_key=config.api_key, timeout=config.timeout_seconds, max_retries=0)

        self.model_name = config.model.removeprefix("openai/")

    def embed(self, text: str) -> list[float]:
        """Generate an embedding with retry logic.

        Raises:
            ValueError: If the response dimensionality is wrong
            APITimeoutError: If every attempt timed out
            RateLimitError: If still rate limited after all retries
            APIStatusError: For non-retryable HTTP errors
        """
        for attempt in range(self.config.max_retries):
            try:
                response = self.client.embeddings.create(
                    model=self.model_name,
                    input=[text],
                    dimensions=self.config.dimensions,
                )
                embedding = response.data[0].embedding

                if len(embedding) != self.config.dimensions:
                    raise ValueError(
                        f"Expected {self.config.dimensions} dimensions, got {len(embedding)}"
                    )

                logger.debug(
                    f"Embedded text with {self.model_name} "
                    f"(attempt {attempt + 1}/{self.config.max_retries})"
                )
                return embedding

            except APITimeoutError as e:
                logger.warning(
                    f"Timeout embedding text (attempt {attempt + 1}/{self.config.max_retries}): {e}"
                )
                if attempt < self.config.max_retries - 1:
                    time.sleep(2**attempt)
                else:
                    raise

            except RateLimitError as e:
                logger.warning(
                    f"Rate limited (attempt {attempt + 1}/{self.config.max_retries}): {e}"
                )
                if attempt < self.config.max_retries - 1:
                    time.sleep(2 ** (attempt + 1))
                else:
                    raise

            except APIStatusError as e:
                logger.error(f"HTTP error embedding text: {e}")
                raise

        raise RuntimeError("Exhausted all retry attempts")


def create_embedding_client(config: EmbeddingConfig) -> Embedder:
    """Factory function to create an embedder based on the model prefix.

    Example:
        >>> config = EmbeddingConfig(
        ...     model="openai/text-embedding-3-small",
        ...     dimensions=384,
        ...     api_key="sk-..."
        ... )
        >>> client = create_embedding_client(config)
    """
    if config.model.startswith("openai/"):
        return OpenAIEmbedding(config)
    if config.model.startswith("local/"):
        raise NotImplementedError("Local embeddings not yet implemented. Use OpenAI for now.")
    raise ValueError(f"Unknown model prefix in {config.model!r}. Expected 'openai/' or 'local/'")
