from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from nearcheck.core import flags
from nearcheck.core.exceptions import InvalidShapeError
from nearcheck.core.typing import BufferLike, BufferSequence, ElementKind, element_kind_of


def as_flat_buffer(
    buf: BufferLike,
    copy: bool = False,
) -> np.ndarray:
    arr = np.array(buf, copy=True) if copy else np.asarray(buf)
    if arr.ndim != 1:
        if flags.VALIDATE_INPUTS:
            raise InvalidShapeError(
                "Buffers must be flat column-major sequences",
                context={"ndim": arr.ndim, "shape": arr.shape},
            )
        arr = arr.reshape(-1)
    return arr


def column_offsets(
    m: int,
    n: int,
    lda: int,
) -> np.ndarray:
    """
    Offsets of an m x n column-major block inside one buffer.

    Returns:
        np.ndarray: Integer array of shape (n, m), entry [j, i] = i + j * lda
    """
    rows = np.arange(m, dtype=np.int64)
    cols = np.arange(n, dtype=np.int64)
    return rows[None, :] + cols[:, None] * lda


@dataclass(frozen=True, kw_only=True, eq=False)
class StridedBatchView:
    """One flat buffer holding batch_count column-major matrices, stride_a elements apart."""

    data: BufferLike
    lda: int
    stride_a: int = 0

    def __post_init__(self):
        object.__setattr__(self, "data", as_flat_buffer(self.data))

    @property
    def kind(self) -> ElementKind:
        return element_kind_of(self.data.dtype)

    def offset(self, i: int, j: int, k: int = 0) -> int:
        return i + j * self.lda + k * self.stride_a

    def element(self, i: int, j: int, k: int = 0):
        return self.data[self.offset(i, j, k)]

    def gather(
        self,
        m: int,
        n: int,
        batch_count: int,
    ) -> np.ndarray:
        """Elements as an array of shape (batch_count, n, m)."""
        batches = np.arange(batch_count, dtype=np.int64) * self.stride_a
        offsets = column_offsets(m, n, self.lda)[None, :, :] + batches[:, None, None]
        return self.data[offsets]


@dataclass(frozen=True, kw_only=True, eq=False)
class _BufferArrayBase:
    buffers: BufferSequence
    lda: int

    def __len__(self) -> int:
        return len(self.buffers)

    @property
    def kind(self) -> ElementKind | None:
        if not self.buffers:
            return None
        return element_kind_of(self.buffers[0].dtype)

    def offset(self, i: int, j: int, k: int = 0) -> tuple[int, int]:
        return k, i + j * self.lda

    def element(self, i: int, j: int, k: int = 0):
        buf_idx, offset = self.offset(i, j, k)
        return self.buffers[buf_idx][offset]

    def gather(
        self,
        m: int,
        n: int,
        batch_count: int,
    ) -> np.ndarray:
        """Elements as an array of shape (batch_count, n, m)."""
        if flags.VALIDATE_INPUTS and len(self.buffers) < batch_count:
            raise InvalidShapeError(
                "Fewer buffers than batches",
                context={"buffers": len(self.buffers), "batch_count": batch_count},
            )
        offsets = column_offsets(m, n, self.lda)
        if batch_count == 0:
            dtype = self.buffers[0].dtype if self.buffers else np.float64
            return np.empty((0, n, m), dtype=dtype)
        return np.stack([self.buffers[k][offsets] for k in range(batch_count)])


@dataclass(frozen=True, kw_only=True, eq=False)
class BufferArrayView(_BufferArrayBase):
    """Sequence of buffers owned by the view. Each buffer is copied and frozen on construction."""

    def __post_init__(self):
        owned = []
        for buf in self.buffers:
            arr = as_flat_buffer(buf, copy=True)
            arr.flags.writeable = False
            owned.append(arr)
        object.__setattr__(self, "buffers", tuple(owned))


@dataclass(frozen=True, kw_only=True, eq=False)
class BufferPointerView(_BufferArrayBase):
    """Sequence of references to caller-owned buffers. Nothing is copied."""

    def __post_init__(self):
        object.__setattr__(self, "buffers", tuple(as_flat_buffer(buf) for buf in self.buffers))
