import jax.numpy as jnp
import numpy as np

from nearcheck.core.typing import ElementKind

KIND_DTYPES = {
    ElementKind.REAL32: np.float32,
    ElementKind.REAL64: np.float64,
    ElementKind.REDUCED: np.float16,
    ElementKind.COMPLEX64: np.complex64,
    ElementKind.COMPLEX128: np.complex128,
}

ALL_DTYPES = list(KIND_DTYPES.values()) + [jnp.bfloat16]


def random_matrices(batch_count, m, n, dtype, seed=0):
    """Array of shape (batch_count, m, n) with values of the given dtype"""
    rng = np.random.default_rng(seed)
    vals = rng.standard_normal((batch_count, m, n))
    if np.issubdtype(np.dtype(dtype), np.complexfloating):
        vals = vals + 1j * rng.standard_normal((batch_count, m, n))
    return vals.astype(dtype)


def column_major(matrix, lda=None, fill=0.0):
    """Flat column-major buffer of an m x n matrix, padded to lda rows with fill"""
    m, n = matrix.shape
    lda = m if lda is None else lda
    buf = np.full((n, lda), fill, dtype=matrix.dtype)
    buf[:, :m] = matrix.T
    return buf.reshape(-1)


def strided_batch(matrices, lda=None, stride_a=None, fill=0.0):
    """Flat buffer of column-major matrices stride_a elements apart"""
    batch_count, m, n = matrices.shape
    lda = m if lda is None else lda
    stride_a = lda * n if stride_a is None else stride_a
    size = stride_a * (batch_count - 1) + lda * n if batch_count else 0
    buf = np.full(size, fill, dtype=matrices.dtype)
    for k in range(batch_count):
        buf[k * stride_a : k * stride_a + lda * n] = column_major(matrices[k], lda, fill)
    return buf


def buffer_list(matrices, lda=None, fill=0.0):
    """One flat column-major buffer per matrix"""
    return [column_major(mat, lda, fill) for mat in matrices]
