"""Binary layouts for vectors stored in SQLite BLOB columns.

Two interchangeable representations share the same column type:

- RawBlob: ``dim`` little-endian IEEE-754 float32 values, no header.
- QuantizedBlob: the two magic bytes ``0x00 0x01`` (format id, version)
  followed by ``dim`` signed 8-bit codes (see :mod:`sqlite_vector.quantization`).

Encoding is a bit reinterpretation, not a numeric transform, so NaN and
infinity bit patterns survive a round trip unchanged.
"""

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt

from sqlite_vector.errors import FormatError

FLOAT32_LE = np.dtype("<f4")
FLOAT32_SIZE = FLOAT32_LE.itemsize

QUANTIZED_FORMAT_ID = 0x00
QUANTIZED_FORMAT_VERSION = 0x01
QUANTIZED_HEADER = bytes([QUANTIZED_FORMAT_ID, QUANTIZED_FORMAT_VERSION])

Vector = npt.NDArray[np.float32]


def as_vector(values: Sequence[float] | npt.ArrayLike) -> Vector:
    """Narrow ``values`` to a float32 vector.

    Values beyond the float32 range saturate to +/-inf, matching a C-style
    float32 cast.
    """
    with np.errstate(over="ignore"):
        return np.asarray(values, dtype=np.float32)


def encode_raw(vector: Sequence[float] | npt.ArrayLike) -> bytes:
    """Encode a vector as a RawBlob (``4 * len(vector)`` bytes, little-endian)."""
    return as_vector(vector).astype(FLOAT32_LE, copy=False).tobytes()


def decode_raw(blob: bytes) -> Vector:
    """Decode a RawBlob into a float32 vector.

    Raises:
        FormatError: If the blob length is not a multiple of 4
    """
    if len(blob) % FLOAT32_SIZE != 0:
        raise FormatError(
            f"blob length {len(blob)} is not a multiple of {FLOAT32_SIZE}",
            context={"length": len(blob)},
        )
    return np.frombuffer(blob, dtype=FLOAT32_LE).astype(np.float32)


def is_quantized_format(blob: bytes) -> bool:
    """Return True if ``blob`` starts with the QuantizedBlob magic bytes."""
    return len(blob) >= len(QUANTIZED_HEADER) and blob[: len(QUANTIZED_HEADER)] == QUANTIZED_HEADER


def raw_blob_size(dim: int) -> int:
    return dim * FLOAT32_SIZE


def quantized_blob_size(dim: int) -> int:
    return len(QUANTIZED_HEADER) + dim
