"""Percentage grading against per-metric thresholds.

Usage:
    grade(80, 100, fair_threshold=75, good_threshold=90)
        -> Grade(percentage=Fraction(80, 1), tier=Tier.FAIR)
    grade_metric("branches", 40, 50, DEFAULT_THRESHOLDS).tier   -> Tier.GOOD
"""

import math
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import Mapping


class Tier(Enum):
    NOT_APPLICABLE = "na"
    BAD = "bad"
    FAIR = "fair"
    GOOD = "good"

    @property
    def css_class(self) -> str:
        return self.value


@dataclass(frozen=True)
class Thresholds:
    fair: float
    good: float

    def __post_init__(self) -> None:
        if self.fair > self.good:
            raise ValueError(
                f"fair threshold ({self.fair}) must not exceed good threshold ({self.good})"
            )


# --------------------------------------------------------------------------- #
# Metric table
# --------------------------------------------------------------------------- #

#: Default thresholds per metric. "returns" grades any non-zero share of
#: returning calls as good; only 0% (or no calls at all) renders otherwise.
DEFAULT_THRESHOLDS: dict[str, Thresholds] = {
    "lines": Thresholds(fair=75, good=90),
    "functions": Thresholds(fair=75, good=90),
    "returns": Thresholds(fair=0, good=0),
    "blocks": Thresholds(fair=75, good=90),
    "branches": Thresholds(fair=50, good=75),
}


@dataclass(frozen=True)
class Grade:
    percentage: Fraction | None
    tier: Tier

    @property
    def display(self) -> str:
        if self.percentage is None:
            return "n/a"
        # floor so the text never shows a threshold the tier did not reach
        return f"{math.floor(self.percentage)}%"

    def to_dict(self) -> dict:
        return {
            "percentage": (
                None if self.percentage is None
                else round(float(self.percentage), 2)
            ),
            "tier": self.tier.css_class,
            "display": self.display,
        }


NOT_APPLICABLE = Grade(None, Tier.NOT_APPLICABLE)


def grade(value: int, total: int, fair_threshold: float, good_threshold: float) -> Grade:
    """Return the percentage ``100 * value / total`` and its tier.

    A zero *total* is not an error: it yields ``NOT_APPLICABLE``.
    """
    if total == 0:
        return NOT_APPLICABLE
    percentage = Fraction(100 * value, total)
    if percentage >= good_threshold:
        tier = Tier.GOOD
    elif percentage >= fair_threshold:
        tier = Tier.FAIR
    else:
        tier = Tier.BAD
    return Grade(percentage, tier)


def grade_metric(metric: str, value: int, total: int,
                 thresholds: Mapping[str, Thresholds]) -> Grade:
    """Grade *value*/*total* with the thresholds registered for *metric*.

    Raises:
        KeyError: if *metric* has no thresholds in the table.
    """
    try:
        t = thresholds[metric]
    except KeyError:
        raise KeyError(f"no thresholds configured for metric '{metric}'") from None
    return grade(value, total, t.fair, t.good)
