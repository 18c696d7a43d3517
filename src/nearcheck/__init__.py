from nearcheck.core.exceptions import (
    InvalidShapeError,
    NearCheckError,
    NearMismatchError,
    UnsupportedElementKindError,
)
from nearcheck.core.report import Mismatch, NearReport
from nearcheck.core.tolerance import (
    complex_cutoff_scale,
    effective_abs_error,
    sum_error_bound,
    sum_error_tolerance,
    tolerance_policy,
)
from nearcheck.core.typing import ElementKind, element_kind_of
from nearcheck.functional.batched import (
    compare,
    compare_batched,
    compare_batched_pointers,
    compare_strided_batched,
    near_check_general,
)
from nearcheck.functional.comparator import abs_near, near_element
from nearcheck.layout.views import BufferArrayView, BufferPointerView, StridedBatchView


__all__ = [
    "ElementKind",
    "element_kind_of",
    "abs_near",
    "near_element",
    "compare",
    "compare_strided_batched",
    "compare_batched",
    "compare_batched_pointers",
    "near_check_general",
    "StridedBatchView",
    "BufferArrayView",
    "BufferPointerView",
    "Mismatch",
    "NearReport",
    "sum_error_tolerance",
    "complex_cutoff_scale",
    "tolerance_policy",
    "effective_abs_error",
    "sum_error_bound",
    "NearCheckError",
    "NearMismatchError",
    "InvalidShapeError",
    "UnsupportedElementKindError",
]
