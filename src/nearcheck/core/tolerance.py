from __future__ import annotations

from typing import NamedTuple

from frozendict import frozendict

from nearcheck.core.constants import SQRT_HALF
from nearcheck.core.typing import ElementKind

# Sum error tolerance for large sums. Multiplied by the number of terms
# in the sum to get an expected absolute error bound.
SUM_ERROR_TOLERANCE: frozendict[ElementKind, float] = frozendict(
    {
        ElementKind.REAL32: 0.0,
        ElementKind.REAL64: 0.0,
        ElementKind.REDUCED: 1 / 900.0,
        ElementKind.COMPLEX64: 1 / 10000.0,
        ElementKind.COMPLEX128: 1 / 1000000.0,
    }
)


class TolerancePolicy(NamedTuple):
    sum_error_tolerance: float
    cutoff_scale: float

    def scale(self, abs_error: float) -> float:
        return float(abs_error) * self.cutoff_scale


def sum_error_tolerance(kind: ElementKind) -> float:
    return SUM_ERROR_TOLERANCE[kind]


def complex_cutoff_scale(kind: ElementKind) -> float:
    """
    Complex values are compared component-wise, so a magnitude bound is split
    over two orthogonal components by 1/sqrt(2). Real kinds are left unscaled.
    """
    return SQRT_HALF if kind.is_complex else 1.0


def tolerance_policy(kind: ElementKind) -> TolerancePolicy:
    return TolerancePolicy(
        sum_error_tolerance=sum_error_tolerance(kind),
        cutoff_scale=complex_cutoff_scale(kind),
    )


def effective_abs_error(kind: ElementKind, abs_error: float) -> float:
    return tolerance_policy(kind).scale(abs_error)


def sum_error_bound(kind: ElementKind, num_terms: int) -> float:
    """
    Expected absolute error of a sum of ``num_terms`` products of the given kind.

    Args:
        kind (ElementKind): Element kind of the summed values
        num_terms (int): Number of summed terms, usually the reduction dimension K

    Returns:
        float: Absolute error bound to pass to a near check
    """
    if num_terms < 0:
        raise ValueError(f"Number of summed terms must be non-negative, got {num_terms}")
    return sum_error_tolerance(kind) * num_terms
