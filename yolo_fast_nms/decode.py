"""
Raw output buffer -> float32 matrix.

The buffer is a contiguous row-major dump of 32-bit floats in native byte
order, e.g. `tensor.tobytes()` on a `(rows, columns)` float32 array.
"""

from __future__ import annotations

from typing import Union

import numpy as np

from .errors import ShapeMismatchError


BufferLike = Union[bytes, bytearray, memoryview]

# native byte order
FLOAT32 = np.dtype("=f4")


def binary_to_matrix(buffer: BufferLike, rows: int, columns: int) -> np.ndarray:
    """
    Reinterpret `buffer` as a `(rows, columns)` float32 matrix.

    Raises ShapeMismatchError unless the buffer holds exactly
    `rows * columns` floats.
    """

    if rows <= 0 or columns <= 0:
        raise ShapeMismatchError(f"rows and columns must be positive, got ({rows}, {columns}).")

    nbytes = memoryview(buffer).nbytes
    row_size = columns * FLOAT32.itemsize
    total_size = rows * row_size
    if nbytes != total_size:
        raise ShapeMismatchError(
            f"Buffer size ({nbytes}) does not match the declared shape "
            f"({rows}, {columns}): expected {total_size} bytes."
        )
    if nbytes % row_size != 0:
        raise ShapeMismatchError(f"Buffer size ({nbytes}) is not a multiple of the row size ({row_size}).")

    # frombuffer shares memory with (possibly mutable) input; copy to own it
    return np.frombuffer(buffer, dtype=FLOAT32).reshape(rows, columns).copy()


def transpose_matrix(matrix: np.ndarray) -> np.ndarray:
    """
    Swap rows and columns, e.g. `(84, 8400)` channel-first output -> `(8400, 84)`.
    """

    m = np.asarray(matrix)
    if m.ndim != 2:
        raise ShapeMismatchError(f"Expected a 2-D matrix, got shape {m.shape}.")
    return np.ascontiguousarray(m.T)
