# ruff: noqa: F811
import logging
import math
from numbers import Integral, Real
from typing import Iterator

import jax
import numpy as np
from plum import dispatch, overload

from nearcheck.core import flags
from nearcheck.core.exceptions import InvalidShapeError
from nearcheck.core.report import Mismatch, NearReport
from nearcheck.core.tolerance import tolerance_policy
from nearcheck.core.typing import BufferLike, BufferSequence, ElementKind, element_kind_of
from nearcheck.functional.comparator import apply_nan_gate, component_pass_mask, widen
from nearcheck.layout.views import (
    BufferArrayView,
    BufferPointerView,
    StridedBatchView,
    _BufferArrayBase,
)

logger = logging.getLogger(__name__)

ArrayTypes = np.ndarray | jax.Array | list | tuple


def _validate_shape(
    m: int,
    n: int,
    batch_count: int,
    lda: int,
    abs_error: float,
) -> None:
    if not flags.VALIDATE_INPUTS:
        return
    negative = {k: v for k, v in {"m": m, "n": n, "batch_count": batch_count, "lda": lda}.items() if v < 0}
    if negative:
        raise InvalidShapeError("Dimensions must be non-negative", context=negative)
    if math.isnan(abs_error) or abs_error < 0:
        raise InvalidShapeError("abs_error must be a non-negative number", context={"abs_error": abs_error})


def _resolve_kind(
    reference: np.ndarray,
    candidate: np.ndarray,
    kind: ElementKind | None,
) -> ElementKind:
    if kind is not None:
        return kind
    ref_kind = element_kind_of(reference.dtype)
    if flags.VALIDATE_INPUTS:
        cand_kind = element_kind_of(candidate.dtype)
        if cand_kind != ref_kind:
            raise InvalidShapeError(
                "Reference and candidate hold different element kinds",
                context={"reference": ref_kind.value, "candidate": cand_kind.value},
            )
    return ref_kind


def _max_abs_diff(reference: np.ndarray, candidate: np.ndarray) -> float:
    if np.iscomplexobj(reference) or np.iscomplexobj(candidate):
        pairs = [(reference.real, candidate.real), (reference.imag, candidate.imag)]
    else:
        pairs = [(reference, candidate)]
    largest = 0.0
    with np.errstate(invalid="ignore", over="ignore"):
        for r, c in pairs:
            diffs = np.abs(r.astype(np.float64) - c.astype(np.float64))
            finite = diffs[np.isfinite(diffs)]
            if finite.size:
                largest = max(largest, float(finite.max()))
    return largest


def _collect_mismatches(
    mask: np.ndarray,
    gated: np.ndarray | None,
    reference: np.ndarray,
    candidate: np.ndarray,
    abs_error: float,
    kind: ElementKind,
) -> Iterator[Mismatch]:
    # argwhere walks in C order: batch slowest, then column, row, component
    components = ("real", "imag") if kind.is_complex else (None,)
    for k, j, i, c in np.argwhere(~mask):
        r, cd = reference[k, j, i], candidate[k, j, i]
        component = components[c]
        if gated is not None and gated[k, j, i]:
            component = None
        elif kind.is_complex:
            r, cd = (r.real, cd.real) if c == 0 else (r.imag, cd.imag)
        yield Mismatch(
            batch=int(k),
            column=int(j),
            row=int(i),
            component=component,
            reference=r.item(),
            candidate=cd.item(),
            abs_error=abs_error,
        )


def _near_check(
    m: int,
    n: int,
    batch_count: int,
    reference: StridedBatchView | _BufferArrayBase,
    candidate: StridedBatchView | _BufferArrayBase,
    abs_error: float,
    kind: ElementKind | None,
    nan_gate: bool,
) -> NearReport:
    abs_error = float(abs_error)
    shape = (m, n, batch_count)
    if m * n * batch_count == 0:
        kind = kind if kind is not None else reference.kind
        err = abs_error if kind is None else tolerance_policy(kind).scale(abs_error)
        return NearReport(kind=kind, shape=shape, abs_error=abs_error, effective_abs_error=err, checked=0)

    ref_block = reference.gather(m, n, batch_count)
    cand_block = candidate.gather(m, n, batch_count)
    kind = _resolve_kind(ref_block, cand_block, kind)
    ref_block, cand_block = widen(ref_block, kind), widen(cand_block, kind)

    err = tolerance_policy(kind).scale(abs_error)
    logger.debug(
        "near check %s m=%d n=%d batch_count=%d abs_error=%g (effective %g) nan_gate=%s",
        kind.value, m, n, batch_count, abs_error, err, nan_gate,
    )

    mask = component_pass_mask(ref_block, cand_block, err, kind)
    gated = None
    if nan_gate:
        mask, gated = apply_nan_gate(mask, ref_block, cand_block, kind)

    report = NearReport(
        kind=kind,
        shape=shape,
        abs_error=abs_error,
        effective_abs_error=err,
        checked=m * n * batch_count,
        mismatches=tuple(_collect_mismatches(mask, gated, ref_block, cand_block, err, kind)),
        max_abs_diff=_max_abs_diff(ref_block, cand_block),
    )
    if not report.passed:
        logger.warning(
            "near check %s failed: %d mismatch(es), first at %s",
            kind.value, len(report.mismatches), report.mismatches[0],
        )
    return report


def _as_buffer_view(
    cls: type[_BufferArrayBase],
    buffers: BufferSequence | _BufferArrayBase,
    lda: int,
) -> _BufferArrayBase:
    if isinstance(buffers, cls) and buffers.lda == lda:
        return buffers
    if isinstance(buffers, _BufferArrayBase):
        buffers = buffers.buffers
    return cls(buffers=buffers, lda=lda)


## Report-returning entry points ############
def compare_strided_batched(
    m: int,
    n: int,
    batch_count: int,
    lda: int,
    stride_a: int,
    reference: BufferLike,
    candidate: BufferLike,
    abs_error: float,
    *,
    kind: ElementKind | None = None,
) -> NearReport:
    """
    Near check of batch_count column-major m x n matrices stored stride_a elements apart in one buffer.

    Args:
        m (int): Rows
        n (int): Columns
        batch_count (int): Number of matrices
        lda (int): Leading dimension, elements between successive columns
        stride_a (int): Elements between successive matrices
        reference (BufferLike): Flat buffer from the reference computation
        candidate (BufferLike): Flat buffer from the computation under test
        abs_error (float): Absolute error bound, scaled by sqrt(0.5) for complex kinds
        kind (ElementKind | None): Element kind, inferred from the reference dtype if None

    Returns:
        NearReport: Every mismatch in batch, column, row order
    """
    _validate_shape(m, n, batch_count, lda, abs_error)
    return _near_check(
        m,
        n,
        batch_count,
        StridedBatchView(data=reference, lda=lda, stride_a=stride_a),
        StridedBatchView(data=candidate, lda=lda, stride_a=stride_a),
        abs_error,
        kind,
        nan_gate=False,
    )


def compare(
    m: int,
    n: int,
    lda: int,
    reference: BufferLike,
    candidate: BufferLike,
    abs_error: float,
    *,
    kind: ElementKind | None = None,
) -> NearReport:
    """Near check of a single column-major m x n matrix."""
    return compare_strided_batched(m, n, 1, lda, 0, reference, candidate, abs_error, kind=kind)


def compare_batched(
    m: int,
    n: int,
    batch_count: int,
    lda: int,
    reference: BufferSequence | BufferArrayView,
    candidate: BufferSequence | BufferArrayView,
    abs_error: float,
    *,
    kind: ElementKind | None = None,
) -> NearReport:
    """
    Near check of one matrix per owned buffer. A NaN reference element passes iff the candidate element
    is NaN as well, without a tolerance comparison.
    """
    _validate_shape(m, n, batch_count, lda, abs_error)
    return _near_check(
        m,
        n,
        batch_count,
        _as_buffer_view(BufferArrayView, reference, lda),
        _as_buffer_view(BufferArrayView, candidate, lda),
        abs_error,
        kind,
        nan_gate=True,
    )


def compare_batched_pointers(
    m: int,
    n: int,
    batch_count: int,
    lda: int,
    reference: BufferSequence | BufferPointerView,
    candidate: BufferSequence | BufferPointerView,
    abs_error: float,
    *,
    kind: ElementKind | None = None,
) -> NearReport:
    """Same as compare_batched, but the buffers are referenced rather than copied."""
    _validate_shape(m, n, batch_count, lda, abs_error)
    return _near_check(
        m,
        n,
        batch_count,
        _as_buffer_view(BufferPointerView, reference, lda),
        _as_buffer_view(BufferPointerView, candidate, lda),
        abs_error,
        kind,
        nan_gate=True,
    )


## near_check_general #######################
@overload
def near_check_general(
    m: Integral,
    n: Integral,
    lda: Integral,
    reference: ArrayTypes,
    candidate: ArrayTypes,
    abs_error: Real,
    *,
    kind: ElementKind | None = None,
) -> NearReport:
    return compare(m, n, lda, reference, candidate, abs_error, kind=kind).raise_if_failed()


@overload
def near_check_general(
    m: Integral,
    n: Integral,
    batch_count: Integral,
    lda: Integral,
    stride_a: Integral,
    reference: ArrayTypes,
    candidate: ArrayTypes,
    abs_error: Real,
    *,
    kind: ElementKind | None = None,
) -> NearReport:
    return compare_strided_batched(
        m, n, batch_count, lda, stride_a, reference, candidate, abs_error, kind=kind
    ).raise_if_failed()


@overload
def near_check_general(
    m: Integral,
    n: Integral,
    batch_count: Integral,
    lda: Integral,
    reference: BufferArrayView | list | tuple,
    candidate: BufferArrayView | list | tuple,
    abs_error: Real,
    *,
    kind: ElementKind | None = None,
) -> NearReport:
    return compare_batched(m, n, batch_count, lda, reference, candidate, abs_error, kind=kind).raise_if_failed()


@overload
def near_check_general(
    m: Integral,
    n: Integral,
    batch_count: Integral,
    lda: Integral,
    reference: BufferPointerView,
    candidate: BufferPointerView,
    abs_error: Real,
    *,
    kind: ElementKind | None = None,
) -> NearReport:
    return compare_batched_pointers(
        m, n, batch_count, lda, reference, candidate, abs_error, kind=kind
    ).raise_if_failed()


@dispatch
def near_check_general(
    *args,
    **kwargs,
):
    del args, kwargs
    raise NotImplementedError()
