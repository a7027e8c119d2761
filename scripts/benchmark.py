#!/usr/bin/env python
"""Micro-benchmarks for the vector hot paths.

Times squared L2 distance, quantization and JSON encoding at common
embedding dimensions, both as direct calls and through SQL.

Usage:
    python scripts/benchmark.py
    python scripts/benchmark.py --dims 384 --dims 1536 --number 5000
"""

import json
import sys
import timeit
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import apsw
import click
import numpy as np
from loguru import logger

from sqlite_vector import QuantizationRange, encode_raw, quantize, register, squared_l2

logger.remove()
logger.add(sys.stderr, level="INFO", format="<level>{message}</level>")


def random_vector(rng: np.random.Generator, dim: int) -> np.ndarray:
    """Uniform float32 vector in [-1, 1]."""
    return (rng.random(dim, dtype=np.float32) * 2 - 1).astype(np.float32)


def report(name: str, dim: int, seconds: float, number: int) -> None:
    per_call_us = seconds / number * 1e6
    logger.info(f"{name:<22} dim={dim:<5} {per_call_us:9.2f} µs/op")


@click.command()
@click.option("--dims", multiple=True, type=int, default=(384, 768, 1536), show_default=True)
@click.option("--number", type=int, default=2000, show_default=True, help="Calls per timing")
@click.option("--seed", type=int, default=0, show_default=True)
def main(dims: tuple[int, ...], number: int, seed: int) -> None:
    """Run the benchmarks."""
    rng = np.random.default_rng(seed)
    quant_range = QuantizationRange(minimum=-1.0, maximum=1.0)

    for dim in dims:
        a = random_vector(rng, dim)
        b = random_vector(rng, dim)
        json_vector = json.dumps(a.tolist())

        report("l2_squared", dim, timeit.timeit(lambda: squared_l2(a, b), number=number), number)
        elapsed = timeit.timeit(lambda: quantize(a, quant_range), number=number)
        report("quantize", dim, elapsed, number)
        report("encode_raw", dim, timeit.timeit(lambda: encode_raw(a), number=number), number)

        conn = apsw.Connection(":memory:")
        register(conn, dim, quant_range=quant_range)
        blob_a, blob_b = encode_raw(a), encode_raw(b)

        def sql_distance() -> None:
            conn.execute("SELECT vector_distance(?, ?)", (blob_a, blob_b)).fetchall()

        def sql_encode() -> None:
            conn.execute("SELECT vector_encode(?)", (json_vector,)).fetchall()

        report("sql vector_distance", dim, timeit.timeit(sql_distance, number=number), number)
        report("sql vector_encode", dim, timeit.timeit(sql_encode, number=number), number)
        conn.close()


if __name__ == "__main__":
    main()
