import jax.numpy as jnp
import numpy as np
import pytest

from nearcheck.core import flags
from nearcheck.core.exceptions import InvalidShapeError
from nearcheck.core.typing import ElementKind
from nearcheck.layout.views import (
    BufferArrayView,
    BufferPointerView,
    StridedBatchView,
    as_flat_buffer,
    column_offsets,
)
from utils import buffer_list, random_matrices, strided_batch


def test_column_offsets():
    offsets = column_offsets(2, 3, 4)
    assert offsets.shape == (3, 2)
    assert offsets.tolist() == [[0, 1], [4, 5], [8, 9]]


def test_strided_offset_and_element():
    """Element (i, j, k) lives at i + j * lda + k * stride_a"""
    data = np.arange(40, dtype=np.float64)
    view = StridedBatchView(data=data, lda=3, stride_a=20)
    assert view.offset(1, 2, 1) == 1 + 2 * 3 + 20
    assert view.element(1, 2, 1) == 27.0
    assert view.element(2, 0) == 2.0
    assert view.kind is ElementKind.REAL64


def test_strided_gather_matches_matrices():
    mats = random_matrices(3, 4, 5, np.float32)
    buf = strided_batch(mats, lda=6, stride_a=33, fill=np.nan)
    view = StridedBatchView(data=buf, lda=6, stride_a=33)
    block = view.gather(4, 5, 3)
    assert block.shape == (3, 5, 4)
    # block is (batch, column, row)
    np.testing.assert_array_equal(block, np.transpose(mats, (0, 2, 1)))


def test_strided_gather_zero_stride_repeats_matrix():
    mats = random_matrices(1, 2, 2, np.float64)
    view = StridedBatchView(data=strided_batch(mats), lda=2, stride_a=0)
    block = view.gather(2, 2, 3)
    for k in range(3):
        np.testing.assert_array_equal(block[k], mats[0].T)


def test_strided_view_accepts_jax_arrays():
    data = jnp.arange(6, dtype=jnp.float32)
    view = StridedBatchView(data=data, lda=2)
    assert isinstance(view.data, np.ndarray)
    assert view.kind is ElementKind.REAL32
    assert view.element(1, 2) == 5.0


def test_buffer_offset_and_element():
    bufs = [np.arange(6, dtype=np.complex64) + 10 * k for k in range(3)]
    view = BufferPointerView(buffers=bufs, lda=2)
    assert view.offset(1, 2, 2) == (2, 5)
    assert view.element(1, 2, 2) == 25
    assert view.kind is ElementKind.COMPLEX64
    assert len(view) == 3


@pytest.mark.parametrize("cls", [BufferArrayView, BufferPointerView])
def test_buffer_gather_matches_matrices(cls):
    mats = random_matrices(2, 3, 4, np.complex128)
    view = cls(buffers=buffer_list(mats, lda=5), lda=5)
    block = view.gather(3, 4, 2)
    assert block.shape == (2, 4, 3)
    np.testing.assert_array_equal(block, np.transpose(mats, (0, 2, 1)))


def test_buffer_array_view_owns_copies():
    """The value variant is unaffected by later writes to the source buffers"""
    src = [np.zeros(4), np.ones(4)]
    view = BufferArrayView(buffers=src, lda=2)
    src[0][0] = 99.0
    assert view.element(0, 0, 0) == 0.0
    assert not view.buffers[0].flags.writeable
    with pytest.raises(ValueError):
        view.buffers[1][0] = 5.0


def test_buffer_pointer_view_references_sources():
    """The pointer variant reads the caller's buffers in place"""
    src = [np.zeros(4), np.ones(4)]
    view = BufferPointerView(buffers=src, lda=2)
    src[0][0] = 99.0
    assert view.element(0, 0, 0) == 99.0
    assert view.buffers[1] is src[1]


def test_empty_buffer_views():
    view = BufferArrayView(buffers=[], lda=1)
    assert view.kind is None
    assert view.gather(2, 2, 0).shape == (0, 2, 2)


def test_buffer_gather_too_few_buffers():
    view = BufferPointerView(buffers=[np.zeros(4)], lda=2)
    with pytest.raises(InvalidShapeError):
        view.gather(2, 2, 2)


def test_as_flat_buffer_rejects_matrices():
    with pytest.raises(InvalidShapeError):
        as_flat_buffer(np.zeros((2, 2)))


def test_as_flat_buffer_without_validation(monkeypatch):
    monkeypatch.setattr(flags, "VALIDATE_INPUTS", False)
    assert as_flat_buffer(np.zeros((2, 3))).shape == (6,)


def test_as_flat_buffer_python_sequences():
    assert as_flat_buffer([1.0, 2.0]).dtype == np.float64
    assert as_flat_buffer((1 + 1j,)).dtype == np.complex128
