"""Render-model assembly for a single source file.

Functions:
    assemble(source, ...)          -> FileReport
    enclosing_symbols(functions)   -> callable(line_number) -> symbol | None
    default_anchor(link)           -> str | None

The assembler only composes the classifiers: it threads the enclosing
function's symbol into branch classification for every line and grades each
function's metric cells. Functions keep their input order.
"""

import bisect
from dataclasses import dataclass
from typing import Callable, Mapping, Sequence

from cov_report.classify.branches import BranchClass, LinkKind, LinkTarget, classify_branch
from cov_report.classify.grading import DEFAULT_THRESHOLDS, Grade, Thresholds, grade_metric
from cov_report.classify.lines import LineStatus, classify_line
from cov_report.models import FunctionSummary, Numeric, SourceFile, check_line_order
from cov_report.sourcepath import SourceType, identify_source_path, simplify_source_path

SymbolLookup = Callable[[int], int | None]
AnchorResolver = Callable[[LinkTarget], str | None]


# --------------------------------------------------------------------------- #
# Render model
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class RenderedFunction:
    name: str
    display_name: str
    symbol: int
    line: int
    entry_count: int
    returns: Grade
    blocks: Grade
    branches: Grade

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "display_name": self.display_name,
            "symbol": self.symbol,
            "line": self.line,
            "calls": self.entry_count,
            "returns": self.returns.to_dict(),
            "blocks": self.blocks.to_dict(),
            "branches": self.branches.to_dict(),
        }


@dataclass(frozen=True)
class RenderedBranch:
    count: int
    classification: BranchClass
    anchor: str | None

    def to_dict(self) -> dict:
        c = self.classification
        return {
            "count": self.count,
            "locality": c.locality.value,
            "direction": c.direction.value,
            "status": c.status.css_class,
            "icon": c.icon,
            "link": c.link.kind.value,
            "anchor": self.anchor,
        }


@dataclass(frozen=True)
class RenderedLine:
    line_number: int
    status: LineStatus
    count: int | None
    source_text: str | None
    branches: tuple[RenderedBranch, ...]
    function: RenderedFunction | None = None

    def to_dict(self) -> dict:
        return {
            "line": self.line_number,
            "status": self.status.css_class,
            "count": self.count,
            "source": self.source_text,
            "branches": [b.to_dict() for b in self.branches],
            "function": self.function.symbol if self.function else None,
        }


@dataclass(frozen=True)
class FileReport:
    path: str
    display_path: str
    source_type: SourceType
    lines: tuple[RenderedLine, ...]
    functions: tuple[RenderedFunction, ...]
    summary: dict[str, Grade]
    totals: dict[str, tuple[int, int]]

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "display_path": self.display_path,
            "source_type": self.source_type.name.lower(),
            "summary": {
                metric: {"hit": hit, "total": total, **self.summary[metric].to_dict()}
                for metric, (hit, total) in self.totals.items()
            },
            "functions": [f.to_dict() for f in self.functions],
            "lines": [ln.to_dict() for ln in self.lines],
        }


# --------------------------------------------------------------------------- #
# Collaborators
# --------------------------------------------------------------------------- #

def enclosing_symbols(functions: Sequence[FunctionSummary]) -> SymbolLookup:
    """Return a lookup giving the symbol of the function enclosing a line.

    A line belongs to the function with the greatest start line at or before
    it. Lines before the first function have no enclosing symbol.
    """
    ordered = sorted(functions, key=lambda f: f.line)
    starts = [f.line for f in ordered]

    def lookup(line_number: int) -> int | None:
        i = bisect.bisect_right(starts, line_number)
        return ordered[i - 1].symbol if i else None

    return lookup


def default_anchor(link: LinkTarget) -> str | None:
    """Resolve a link to an in-page anchor, or None when it is not navigable."""
    if link.kind is LinkKind.LINE:
        return f"#L{link.line}"
    if link.kind is LinkKind.SYMBOL:
        return f"#S{link.symbol}-L{link.line}"
    return None


# --------------------------------------------------------------------------- #
# Public API
# --------------------------------------------------------------------------- #

def assemble(
    source: SourceFile,
    *,
    thresholds: Mapping[str, Thresholds] = DEFAULT_THRESHOLDS,
    enclosing_symbol: SymbolLookup | None = None,
    resolve_anchor: AnchorResolver = default_anchor,
    demangle: Callable[[str], str] | None = None,
    registry_path: str | None = None,
) -> FileReport:
    """Compose line and function classifications into a FileReport.

    Raises:
        MalformedInputError: if line numbers are not strictly increasing.
        KeyError:            if *thresholds* lacks one of the graded metrics.
    """
    check_line_order(source.lines)
    if enclosing_symbol is None:
        enclosing_symbol = enclosing_symbols(source.functions)

    functions = tuple(_render_function(f, thresholds, demangle) for f in source.functions)
    # First function wins when two start on the same line
    by_line: dict[int, RenderedFunction] = {}
    for f in functions:
        by_line.setdefault(f.line, f)

    lines = tuple(
        _render_line(ln, enclosing_symbol(ln.line_number), resolve_anchor,
                     by_line.get(ln.line_number))
        for ln in source.lines
    )

    totals = _totals(source, lines)
    summary = {
        metric: grade_metric(metric, hit, total, thresholds)
        for metric, (hit, total) in totals.items()
    }
    source_type, _ = identify_source_path(source.path, source.crate_path, registry_path)

    return FileReport(
        path=source.path,
        display_path=simplify_source_path(source.path, source.crate_path, registry_path),
        source_type=source_type,
        lines=lines,
        functions=functions,
        summary=summary,
        totals=totals,
    )


# --------------------------------------------------------------------------- #
# Private helpers
# --------------------------------------------------------------------------- #

def _render_line(line, current_symbol, resolve_anchor, function) -> RenderedLine:
    branches = []
    for branch in line.branches:
        classification = classify_branch(branch, line.line_number, current_symbol)
        anchor = resolve_anchor(classification.link) if classification.link.navigable else None
        branches.append(RenderedBranch(branch.count, classification, anchor))
    return RenderedLine(
        line_number=line.line_number,
        status=classify_line(line.count),
        count=line.count.value if isinstance(line.count, Numeric) else None,
        source_text=line.source_text,
        branches=tuple(branches),
        function=function,
    )


def _render_function(func: FunctionSummary, thresholds, demangle) -> RenderedFunction:
    return RenderedFunction(
        name=func.name,
        display_name=demangle(func.name) if demangle else func.name,
        symbol=func.symbol,
        line=func.line,
        entry_count=func.entry_count,
        returns=grade_metric("returns", func.exit_count, func.entry_count, thresholds),
        blocks=grade_metric("blocks", func.blocks_executed, func.blocks_count, thresholds),
        branches=grade_metric("branches", func.branches_taken, func.branches_count, thresholds),
    )


def _totals(source: SourceFile, lines: Sequence[RenderedLine]) -> dict[str, tuple[int, int]]:
    """(hit, total) pairs for the file-level summary row."""
    instrumented = [ln for ln in lines if ln.status is not LineStatus.SKIPPED]
    all_branches = [b for ln in lines for b in ln.branches]
    return {
        "lines": (
            sum(1 for ln in instrumented if ln.status is LineStatus.COVERED),
            len(instrumented),
        ),
        "functions": (
            sum(1 for f in source.functions if f.entry_count > 0),
            len(source.functions),
        ),
        "branches": (
            sum(1 for b in all_branches if b.count > 0),
            len(all_branches),
        ),
    }
