"""Pytest configuration for test discovery, env, and fixtures.

This file ensures that:
- `src/` is importable
- Integration tests can read credentials from `conf/secrets.yml`
- Every test gets fresh in-memory connections and simple collaborators
"""

from __future__ import annotations

import os
import sys
from collections.abc import Iterator
from pathlib import Path

import apsw
import pytest

# Ensure src directory is in path for imports
repo_root = Path(__file__).parent.parent
src_path = repo_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from sqlite_vector.quantization import QuantizationRange  # noqa: E402


def _load_secrets_into_env() -> None:
    """Load secrets from conf/secrets.yml into environment if not set.

    Only sets variables that are currently unset to avoid overriding user-provided
    environment.
    """
    secrets_path = repo_root / "conf" / "secrets.yml"
    if not secrets_path.exists():
        return

    import yaml  # type: ignore[import-untyped]

    data = yaml.safe_load(secrets_path.read_text()) or {}
    for env_key in ("OPENAI_API_KEY",):
        if os.environ.get(env_key):
            continue
        value = data.get(env_key)
        if value:
            os.environ[env_key] = str(value)


def pytest_sessionstart(session: object) -> None:
    _load_secrets_into_env()


class WhitespaceChunker:
    """Chunker that splits on runs of whitespace."""

    def __init__(self) -> None:
        self.calls: list[str] = []

    def chunk(self, text: str) -> list[str]:
        self.calls.append(text)
        return text.split()


class FailingChunker:
    def chunk(self, text: str) -> list[str]:
        raise RuntimeError("tokenizer exploded")


class FixedEmbedder:
    """Embedder returning a preset vector for every text."""

    def __init__(self, vector: list[float]) -> None:
        self.vector = vector
        self.calls: list[str] = []

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        return self.vector


@pytest.fixture
def whitespace_chunker() -> WhitespaceChunker:
    return WhitespaceChunker()


@pytest.fixture
def failing_chunker() -> FailingChunker:
    return FailingChunker()


@pytest.fixture
def unit_range() -> QuantizationRange:
    """The symmetric (-1, 1) quantization range."""
    return QuantizationRange(minimum=-1.0, maximum=1.0)


@pytest.fixture
def conn() -> Iterator[apsw.Connection]:
    """Fresh in-memory SQLite connection."""
    connection = apsw.Connection(":memory:")
    yield connection
    connection.close()


@pytest.fixture
def make_embedder() -> type[FixedEmbedder]:
    """Factory for embedders that return a preset vector."""
    return FixedEmbedder
