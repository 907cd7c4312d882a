"""Branch edge classification.

Usage:
    result = classify_branch(branch, current_line=10, current_symbol=7)
    result.direction     # Direction.UP
    result.icon          # "⬆"
    result.link          # LinkTarget(kind=LinkKind.LINE, symbol=7, line=3)

The icon table ``ICONS`` covers every (Direction, status) pair; a missing
entry is an import-time error, never a silently blank icon.
"""

import itertools
from dataclasses import dataclass
from enum import Enum

from cov_report.classify.lines import LineStatus
from cov_report.models import Branch


class Locality(Enum):
    LOCAL = "local"
    EXTERNAL = "external"
    UNKNOWN = "unknown"


class Direction(Enum):
    UP = "up"
    SAME = "same"
    DOWN = "down"
    EXTERNAL = "external"
    UNKNOWN = "unknown"


#: Branch status reuses the line vocabulary, minus SKIPPED
BRANCH_STATUSES = (LineStatus.ZERO, LineStatus.COVERED)


# ---------------------------------------------------------------------------
# Icons
# ---------------------------------------------------------------------------

ICONS: dict[tuple[Direction, LineStatus], str] = {
    (Direction.UP, LineStatus.ZERO): "⇧",
    (Direction.UP, LineStatus.COVERED): "⬆",
    (Direction.SAME, LineStatus.ZERO): "↺",
    (Direction.SAME, LineStatus.COVERED): "⟲",
    (Direction.DOWN, LineStatus.ZERO): "⇩",
    (Direction.DOWN, LineStatus.COVERED): "⬇",
    (Direction.EXTERNAL, LineStatus.ZERO): "⇨",
    (Direction.EXTERNAL, LineStatus.COVERED): "➡",
    (Direction.UNKNOWN, LineStatus.ZERO): "○",
    (Direction.UNKNOWN, LineStatus.COVERED): "●",
}


def _check_icon_table() -> None:
    expected = set(itertools.product(Direction, BRANCH_STATUSES))
    missing = expected - ICONS.keys()
    extra = ICONS.keys() - expected
    if missing or extra:
        raise RuntimeError(
            f"branch icon table out of sync: missing={sorted(map(str, missing))} "
            f"extra={sorted(map(str, extra))}"
        )
    if len(set(ICONS.values())) != len(ICONS):
        raise RuntimeError("branch icon table has duplicate glyphs")


_check_icon_table()


def icon_for(direction: Direction, status: LineStatus) -> str:
    """Return the glyph for a (direction, status) pair.

    Raises:
        KeyError: for a pair outside the table (e.g. a SKIPPED status).
    """
    return ICONS[(direction, status)]


# ---------------------------------------------------------------------------
# Navigation
# ---------------------------------------------------------------------------

class LinkKind(Enum):
    NONE = "none"        # indeterminate target, not navigable
    LINE = "line"        # another line of the current function
    SYMBOL = "symbol"    # a line inside a different function


@dataclass(frozen=True)
class LinkTarget:
    kind: LinkKind
    symbol: int | None = None
    line: int | None = None

    @property
    def navigable(self) -> bool:
        return self.kind is not LinkKind.NONE


NO_LINK = LinkTarget(LinkKind.NONE)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BranchClass:
    locality: Locality
    direction: Direction
    status: LineStatus
    icon: str
    link: LinkTarget


def classify_branch(branch: Branch, current_line: int,
                    current_symbol: int | None) -> BranchClass:
    """Classify one branch edge leaving *current_line*.

    *current_symbol* is the symbol of the function enclosing the line; a
    branch whose target symbol differs from it leaves the function.
    """
    status = LineStatus.ZERO if branch.count == 0 else LineStatus.COVERED

    if branch.is_indeterminate:
        locality, direction = Locality.UNKNOWN, Direction.UNKNOWN
        link = NO_LINK
    elif branch.symbol != current_symbol:
        locality, direction = Locality.EXTERNAL, Direction.EXTERNAL
        link = LinkTarget(LinkKind.SYMBOL, branch.symbol, branch.target_line)
    else:
        locality = Locality.LOCAL
        direction = _direction(branch.target_line, current_line)
        link = LinkTarget(LinkKind.LINE, branch.symbol, branch.target_line)

    return BranchClass(
        locality=locality,
        direction=direction,
        status=status,
        icon=icon_for(direction, status),
        link=link,
    )


def _direction(target_line: int, current_line: int) -> Direction:
    if target_line < current_line:
        return Direction.UP
    if target_line == current_line:
        return Direction.SAME
    return Direction.DOWN
