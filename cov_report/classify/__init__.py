"""Pure classifiers turning coverage counters into render categories."""

from cov_report.classify.branches import (
    BranchClass,
    Direction,
    LinkKind,
    LinkTarget,
    Locality,
    classify_branch,
)
from cov_report.classify.grading import Grade, Thresholds, Tier, grade, grade_metric
from cov_report.classify.lines import LineStatus, classify_line

__all__ = [
    "BranchClass",
    "Direction",
    "Grade",
    "LineStatus",
    "LinkKind",
    "LinkTarget",
    "Locality",
    "Thresholds",
    "Tier",
    "classify_branch",
    "classify_line",
    "grade",
    "grade_metric",
]
