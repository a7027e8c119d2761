"""Squared Euclidean distance over raw and quantized vector blobs.

No square root is taken: ordering by squared distance is equivalent to
ordering by true distance, and ORDER BY/LIMIT is all the host engine needs.
"""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt

from sqlite_vector.codec import (
    decode_raw,
    is_quantized_format,
    quantized_blob_size,
    raw_blob_size,
)
from sqlite_vector.errors import ConfigurationError, DimensionError, FormatError
from sqlite_vector.quantization import QuantizationRange, dequantize


def squared_l2(a: Sequence[float] | npt.ArrayLike, b: Sequence[float] | npt.ArrayLike) -> float:
    """Return the sum of squared element differences, accumulated in float64.

    Raises:
        DimensionError: If the vectors differ in length
    """
    left = np.asarray(a, dtype=np.float64)
    right = np.asarray(b, dtype=np.float64)
    if left.shape != right.shape:
        raise DimensionError(f"vector lengths differ: {left.size} != {right.size}")
    diff = left - right
    return float(np.dot(diff, diff))


def _check_length(blob: bytes, expected: int, dim: int) -> None:
    if len(blob) != expected:
        raise DimensionError(
            f"expected {expected} bytes (dim={dim}), got {len(blob)}",
            context={"expected": expected, "actual": len(blob), "dim": dim},
        )


def distance_raw(blob_a: bytes, blob_b: bytes, dim: int) -> float:
    """Squared L2 distance between two RawBlobs of dimension ``dim``.

    The magic-byte check runs on raw input too, so a RawBlob whose first
    float starts with bytes ``00 01`` (for example bits ``0x3F800100``,
    about 1.0000305) is rejected as quantized.

    Raises:
        FormatError: If either blob carries the quantized magic bytes
        DimensionError: If either blob is not ``dim * 4`` bytes long
    """
    for label, blob in (("a", blob_a), ("b", blob_b)):
        if is_quantized_format(blob):
            raise FormatError(
                f"input {label} is quantized, use vector_distance_q",
                context={"argument": label},
            )
    expected = raw_blob_size(dim)
    _check_length(blob_a, expected, dim)
    _check_length(blob_b, expected, dim)
    return squared_l2(decode_raw(blob_a), decode_raw(blob_b))


def distance_quantized(
    blob_a: bytes, blob_b: bytes, dim: int, quant_range: QuantizationRange | None
) -> float:
    """Squared L2 distance between two QuantizedBlobs, after dequantization.

    Raises:
        ConfigurationError: If no quantization range is configured
        FormatError: If either blob lacks the quantized magic bytes
        DimensionError: If either blob is not ``dim + 2`` bytes long
    """
    if quant_range is None:
        raise ConfigurationError("quantization not configured, register with a quant_range")
    for label, blob in (("a", blob_a), ("b", blob_b)):
        if not is_quantized_format(blob):
            raise FormatError(
                f"input {label} is not quantized (missing magic bytes)",
                context={"argument": label},
            )
    expected = quantized_blob_size(dim)
    _check_length(blob_a, expected, dim)
    _check_length(blob_b, expected, dim)
    return squared_l2(dequantize(blob_a, quant_range, dim), dequantize(blob_b, quant_range, dim))
