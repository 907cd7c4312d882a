"""Per-line execution status."""

from enum import Enum

from cov_report.models import Count, Numeric


class LineStatus(Enum):
    ZERO = "zero"
    COVERED = "covered"
    SKIPPED = "skipped"

    @property
    def css_class(self) -> str:
        return self.value


def classify_line(count: Count) -> LineStatus:
    """Return SKIPPED for uninstrumented lines, ZERO for 0 hits, else COVERED."""
    if not isinstance(count, Numeric):
        return LineStatus.SKIPPED
    if count.value == 0:
        return LineStatus.ZERO
    return LineStatus.COVERED
