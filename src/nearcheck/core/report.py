from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, NamedTuple

from nearcheck.core import constants
from nearcheck.core.exceptions import NearMismatchError
from nearcheck.core.typing import ElementKind

Component = Literal["real", "imag"]


class Mismatch(NamedTuple):
    batch: int
    column: int
    row: int
    # None for real kinds and for NaN-equivalence failures, which concern the whole element
    component: Component | None
    reference: float | complex
    candidate: float | complex
    abs_error: float

    @property
    def position(self) -> tuple[int, int, int]:
        return (self.row, self.column, self.batch)

    def __str__(self) -> str:
        where = f"(row={self.row}, column={self.column}, batch={self.batch})"
        if self.component is not None:
            where += f" [{self.component}]"
        return (
            f"{where}: reference={self.reference!r}, candidate={self.candidate!r}, "
            f"abs_error={self.abs_error!r}"
        )


@dataclass(frozen=True, kw_only=True)
class NearReport:
    kind: ElementKind | None
    shape: tuple[int, int, int]  # (m, n, batch_count)
    abs_error: float
    effective_abs_error: float
    checked: int
    mismatches: tuple[Mismatch, ...] = field(default_factory=tuple)
    max_abs_diff: float = 0.0

    @property
    def passed(self) -> bool:
        return not self.mismatches

    def __bool__(self) -> bool:
        return self.passed

    def summary(self) -> str:
        m, n, batch_count = self.shape
        kind_name = self.kind.value if self.kind is not None else "empty"
        head = (
            f"near check {kind_name} m={m} n={n} batch_count={batch_count}: "
            f"{len(self.mismatches)} mismatch(es) in {self.checked} elements, "
            f"abs_error={self.abs_error!r} (effective {self.effective_abs_error!r}), "
            f"max |diff|={self.max_abs_diff!r}"
        )
        if self.passed:
            return head
        limit = constants.MAX_REPORTED_MISMATCHES
        lines = [head] + [f"  {mm}" for mm in self.mismatches[:limit]]
        if len(self.mismatches) > limit:
            lines.append(f"  ... and {len(self.mismatches) - limit} more")
        return "\n".join(lines)

    def raise_if_failed(self) -> NearReport:
        if not self.passed:
            raise NearMismatchError(self)
        return self
