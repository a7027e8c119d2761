"""Chunkers that feed the ``vector_chunk`` table-valued function.

``vector_chunk(text)`` yields one row per string returned by the registered
chunker, so a chunker only has to satisfy the one-method :class:`Chunker`
protocol. :class:`RecursiveTokenChunker` is the implementation built from
settings: it measures chunk size in tokens and never depends on the
database, so the same text always produces the same rows.
"""

from dataclasses import dataclass
from typing import Protocol

import tiktoken
from langchain_text_splitters import RecursiveCharacterTextSplitter

# Coarsest first: paragraphs, lines, sentences, words, characters.
BOUNDARY_SEPARATORS = ["\n\n", "\n", ". ", " ", ""]


@dataclass(frozen=True)
class ChunkingConfig:
    """Settings for the ``chunking`` section of the extension config.

    Attributes:
        chunk_size: Upper bound on tokens per ``vector_chunk`` row
        overlap: Tokens repeated at the start of the following row
        tokenizer: tiktoken encoding used to count tokens
        preserve_boundaries: Split on :data:`BOUNDARY_SEPARATORS` instead of
            the splitter's defaults
    """

    chunk_size: int = 400
    overlap: int = 50
    tokenizer: str = "cl100k_base"
    preserve_boundaries: bool = True

    def __post_init__(self) -> None:
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.overlap < 0:
            raise ValueError(f"overlap must be non-negative, got {self.overlap}")
        if self.overlap >= self.chunk_size:
            raise ValueError(
                f"overlap ({self.overlap}) must be less than chunk_size ({self.chunk_size})"
            )


class Chunker(Protocol):
    """Anything that splits one source text into ordered chunk strings."""

    def chunk(self, text: str) -> list[str]:
        """Return the chunks of ``text``; row ``i`` of ``vector_chunk`` is element ``i``."""
        ...


class RecursiveTokenChunker:
    """Chunker sized in tiktoken tokens, splitting recursively on separators.

    Row lengths are measured with the configured encoding, so ``chunk_size``
    lines up with embedding model limits rather than character counts.
    """

    def __init__(self, config: ChunkingConfig):
        self.config = config
        self.encoding = tiktoken.get_encoding(config.tokenizer)
        separators = BOUNDARY_SEPARATORS if config.preserve_boundaries else None
        self.splitter = RecursiveCharacterTextSplitter(
            chunk_size=config.chunk_size,
            chunk_overlap=config.overlap,
            length_function=self.count_tokens,
            separators=separators,
        )

    def count_tokens(self, text: str) -> int:
        # Special-token markers in stored documents are counted as plain text.
        return len(self.encoding.encode(text, disallowed_special=()))

    def chunk(self, text: str) -> list[str]:
        """Split ``text`` into overlapping token-bounded chunks.

        Blank or whitespace-only text yields no chunks, so ``vector_chunk('')``
        returns zero rows.
        """
        if not text or not text.strip():
            return []
        return self.splitter.split_text(text)


def chunk_text(
    text: str,
    chunk_size: int = 400,
    overlap: int = 50,
    tokenizer: str = "cl100k_base",
    preserve_boundaries: bool = True,
) -> list[str]:
    """Chunk ``text`` once without building a chunker by hand.

    Handy for previewing what ``vector_chunk`` would return for a given
    ``chunking`` config section.
    """
    chunker = RecursiveTokenChunker(
        ChunkingConfig(
            chunk_size=chunk_size,
            overlap=overlap,
            tokenizer=tokenizer,
            preserve_boundaries=preserve_boundaries,
        )
    )
    return chunker.chunk(text)
