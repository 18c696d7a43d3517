from __future__ import annotations

from enum import Enum
from functools import lru_cache
from typing import Any, Sequence, Tuple, Union

import jax
import jax.numpy as jnp
import numpy as np
from frozendict import frozendict

from nearcheck.core.exceptions import UnsupportedElementKindError


# Closed set of element representations a near check understands.
class ElementKind(Enum):
    REAL32 = "real32"
    REAL64 = "real64"
    REDUCED = "reduced-precision-real"
    COMPLEX64 = "complex64"
    COMPLEX128 = "complex128"

    @property
    def is_complex(self) -> bool:
        return self in (ElementKind.COMPLEX64, ElementKind.COMPLEX128)

    @property
    def is_reduced_precision(self) -> bool:
        return self is ElementKind.REDUCED


# A single flat, column-major buffer
BufferLike = Union[
    np.ndarray,
    jax.Array,
    Sequence[float],
    Sequence[complex],
]

# An ordered collection of buffers, one per batch index
BufferSequence = Sequence[BufferLike]


def _jax_dtype_works(dtype: Any) -> bool:
    """
    dtype must be constructible and usable in a simple op
    on the current default backend.
    """
    try:
        x = jnp.array([1, 2, 3], dtype=dtype)
        _ = jnp.sum(x + x)
        return True
    except Exception:
        return False


@lru_cache(maxsize=1)
def _reduced_precision_dtypes() -> Tuple[np.dtype, ...]:
    """
    Return the numpy dtypes treated as reduced-precision reals.
    - Always include float16 and bfloat16.
    - Conditionally include float8 dtypes if supported by the active JAX backend.
    """
    dtypes: list[Any] = [np.float16, jnp.bfloat16]

    float8_names = (
        "float8_e4m3b11fnuz",
        "float8_e4m3fn",
        "float8_e4m3fnuz",
        "float8_e5m2",
        "float8_e5m2fnuz",
    )
    for name in float8_names:
        dt = getattr(jnp, name, None)
        if dt is not None and _jax_dtype_works(dt):
            dtypes.append(dt)

    out: list[np.dtype] = []
    for dt in dtypes:
        np_dt = np.dtype(dt)
        if np_dt not in out:
            out.append(np_dt)
    return tuple(out)


REDUCED_PRECISION_DTYPES = _reduced_precision_dtypes()

_STANDARD_KINDS: frozendict[np.dtype, ElementKind] = frozendict(
    {
        np.dtype(np.float32): ElementKind.REAL32,
        np.dtype(np.float64): ElementKind.REAL64,
        np.dtype(np.complex64): ElementKind.COMPLEX64,
        np.dtype(np.complex128): ElementKind.COMPLEX128,
    }
)


def element_kind_of(dtype: Any) -> ElementKind:
    """Map a numpy or jax dtype to its element kind."""
    try:
        dt = np.dtype(dtype)
    except TypeError as e:
        raise UnsupportedElementKindError(
            "Not a dtype",
            context={"dtype": dtype},
        ) from e
    if dt in _STANDARD_KINDS:
        return _STANDARD_KINDS[dt]
    if dt in REDUCED_PRECISION_DTYPES:
        return ElementKind.REDUCED
    raise UnsupportedElementKindError(
        "Cannot near-check arrays of this dtype",
        context={"dtype": dt},
    )
