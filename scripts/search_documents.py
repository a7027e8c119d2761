#!/usr/bin/env python
"""Index text files into a SQLite database and search them by similarity.

Chunks each file with vector_chunk, embeds every chunk with vector_embed,
and answers queries with a brute-force ORDER BY vector_distance scan.
Settings come from the Hydra config (embedding requires OPENAI_API_KEY).

Usage:
    python scripts/search_documents.py index notes.db docs/*.md
    python scripts/search_documents.py search notes.db "quantization error bound" --limit 5
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import apsw
import click
from loguru import logger

from sqlite_vector import load_config, register_from_settings

logger.remove()
logger.add(sys.stderr, level="INFO", format="<level>{message}</level>")

SCHEMA = """
CREATE TABLE IF NOT EXISTS chunks(
    id INTEGER PRIMARY KEY,
    source TEXT NOT NULL,
    chunk_index INTEGER NOT NULL,
    body TEXT NOT NULL,
    embedding BLOB NOT NULL
)
"""


def open_database(path: Path, overrides: tuple[str, ...]) -> apsw.Connection:
    settings = load_config("default", overrides=list(overrides))
    conn = apsw.Connection(str(path))
    register_from_settings(conn, settings)
    conn.execute(SCHEMA)
    return conn


@click.group()
def cli() -> None:
    """sqlite_vector document search."""


@cli.command()
@click.argument("database", type=click.Path(path_type=Path))
@click.argument("files", nargs=-1, type=click.Path(exists=True, path_type=Path))
@click.option("--override", "overrides", multiple=True, help="Hydra override, e.g. vector.dim=768")
def index(database: Path, files: tuple[Path, ...], overrides: tuple[str, ...]) -> None:
    """Chunk, embed and store FILES."""
    conn = open_database(database, overrides)
    with conn:
        for path in files:
            conn.execute("DELETE FROM chunks WHERE source = ?", (str(path),))
            conn.execute(
                "INSERT INTO chunks(source, chunk_index, body, embedding) "
                "SELECT ?, chunk_index, value, vector_embed(value) FROM vector_chunk(?)",
                (str(path), path.read_text()),
            )
            count = conn.execute(
                "SELECT count(*) FROM chunks WHERE source = ?", (str(path),)
            ).fetchall()[0][0]
            logger.info(f"Indexed {count} chunks from {path}")


@cli.command()
@click.argument("database", type=click.Path(exists=True, path_type=Path))
@click.argument("query")
@click.option("--limit", type=int, default=5, show_default=True)
@click.option("--override", "overrides", multiple=True, help="Hydra override, e.g. vector.dim=768")
def search(database: Path, query: str, limit: int, overrides: tuple[str, ...]) -> None:
    """Print the LIMIT chunks closest to QUERY."""
    conn = open_database(database, overrides)
    rows = conn.execute(
        "SELECT source, chunk_index, body, vector_distance(embedding, q.v) AS d "
        "FROM chunks, (SELECT vector_embed(?) AS v) AS q ORDER BY d LIMIT ?",
        (query, limit),
    ).fetchall()
    if not rows:
        logger.info("No results found")
    for source, chunk_index, body, distance in rows:
        click.echo(f"[{distance:.4f}] {source}#{chunk_index}")
        click.echo(f"    {body[:200]}")


if __name__ == "__main__":
    cli()
