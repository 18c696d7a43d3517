from __future__ import annotations

from typing import Any, Callable

import numpy as np
from frozendict import frozendict

from nearcheck.core.typing import ElementKind


def abs_near(
    a: Any,
    b: Any,
    err: float,
) -> bool | np.ndarray:
    """
    Absolute-tolerance check |a - b| <= err, evaluated in float64.

    Two NaNs are near each other, a NaN and a number never are. Equal values always pass,
    which keeps equal infinities near each other even though their difference is NaN.

    Args:
        a (Any): Real scalar or array
        b (Any): Real scalar or array, broadcastable against a
        err (float): Absolute error bound (inclusive)

    Returns:
        bool | np.ndarray: bool for scalar inputs, otherwise a boolean array
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    with np.errstate(invalid="ignore", over="ignore"):
        result = (np.isnan(a) & np.isnan(b)) | (a == b) | (np.abs(a - b) <= err)
    if result.ndim == 0:
        return bool(result)
    return result


def widen(values: Any, kind: ElementKind) -> np.ndarray:
    values = np.asarray(values)
    if kind.is_reduced_precision:
        return values.astype(np.float32)
    return values


def near_real(reference: Any, candidate: Any, abs_error: float) -> np.ndarray:
    return np.asarray(abs_near(reference, candidate, abs_error))[..., None]


def near_reduced(reference: Any, candidate: Any, abs_error: float) -> np.ndarray:
    # compared in single precision, no reduced-precision arithmetic involved
    return near_real(
        widen(reference, ElementKind.REDUCED),
        widen(candidate, ElementKind.REDUCED),
        abs_error,
    )


def near_complex(reference: Any, candidate: Any, abs_error: float) -> np.ndarray:
    """Real and imaginary parts are checked independently against the (already cutoff-scaled) bound."""
    reference = np.asarray(reference)
    candidate = np.asarray(candidate)
    return np.stack(
        [
            abs_near(reference.real, candidate.real, abs_error),
            abs_near(reference.imag, candidate.imag, abs_error),
        ],
        axis=-1,
    )


COMPARATORS: frozendict[ElementKind, Callable[[Any, Any, float], np.ndarray]] = frozendict(
    {
        ElementKind.REAL32: near_real,
        ElementKind.REAL64: near_real,
        ElementKind.REDUCED: near_reduced,
        ElementKind.COMPLEX64: near_complex,
        ElementKind.COMPLEX128: near_complex,
    }
)


def component_pass_mask(
    reference: Any,
    candidate: Any,
    abs_error: float,
    kind: ElementKind,
) -> np.ndarray:
    """
    Per-component pass mask of element pairs.

    Returns:
        np.ndarray: Boolean array with the input shape plus a trailing component axis
        of length 1 for real kinds and 2 (real, imag) for complex kinds
    """
    return COMPARATORS[kind](reference, candidate, abs_error)


def is_nan_element(values: Any, kind: ElementKind) -> np.ndarray:
    # for complex values np.isnan is true if either component is NaN
    return np.isnan(widen(values, kind))


def apply_nan_gate(
    mask: np.ndarray,
    reference: Any,
    candidate: Any,
    kind: ElementKind,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Where the reference element is NaN, the element passes iff the candidate element is NaN,
    regardless of the tolerance result. Only the reference side is inspected.

    Returns:
        tuple[np.ndarray, np.ndarray]: Gated component mask and the element mask of gated positions
    """
    gated = is_nan_element(reference, kind)
    gate_ok = is_nan_element(candidate, kind)
    mask = np.array(mask, copy=True)
    mask[gated, 0] = gate_ok[gated]
    mask[gated, 1:] = True
    return mask, gated


def near_element(
    reference: Any,
    candidate: Any,
    abs_error: float,
    kind: ElementKind,
    nan_gate: bool = False,
) -> bool:
    """Pass/fail of a single element pair against an already cutoff-scaled bound."""
    reference = np.asarray(reference).reshape(1)
    candidate = np.asarray(candidate).reshape(1)
    mask = component_pass_mask(reference, candidate, abs_error, kind)
    if nan_gate:
        mask, _ = apply_nan_gate(mask, reference, candidate, kind)
    return bool(np.all(mask))
