"""Data model for one source file's coverage counters.

Contains the immutable records the classifiers work on:
    - Numeric / NOT_INSTRUMENTED   (line execution count, decided at ingestion)
    - Branch
    - CoverageLine
    - FunctionSummary
    - SourceFile

Usage:
    source = load_source_file(json.load(f))   # raises MalformedInputError
"""

from dataclasses import dataclass
from typing import Any, Union


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class CoverageDataError(Exception):
    """Base exception for coverage data problems."""


class MalformedInputError(CoverageDataError):
    """Raised when a record is missing a field or its counters are inconsistent."""


# ---------------------------------------------------------------------------
# Line execution count
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Numeric:
    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise MalformedInputError(f"execution count must be >= 0, got {self.value}")


class _NotInstrumented:
    """Marker for lines that carry no execution counter."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_INSTRUMENTED"


NOT_INSTRUMENTED = _NotInstrumented()

Count = Union[Numeric, _NotInstrumented]


def parse_count(raw: Any) -> Count:
    """Turn a raw ``count`` field into a ``Numeric`` or ``NOT_INSTRUMENTED``.

    Integers (and integral floats such as ``3.0``) are counters; ``None``,
    strings and any other marker mean the line was not instrumented.
    """
    if isinstance(raw, bool):
        raise MalformedInputError(f"execution count must be a number, got {raw!r}")
    if isinstance(raw, int):
        return Numeric(raw)
    if isinstance(raw, float):
        if raw.is_integer():
            return Numeric(int(raw))
        raise MalformedInputError(f"execution count must be integral, got {raw!r}")
    return NOT_INSTRUMENTED


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Branch:
    count: int
    symbol: int
    target_line: int

    def __post_init__(self) -> None:
        if self.count < 0:
            raise MalformedInputError(f"branch count must be >= 0, got {self.count}")

    @property
    def is_indeterminate(self) -> bool:
        # (0, 0) is reserved for "target unknown"
        return self.symbol == 0 and self.target_line == 0


@dataclass(frozen=True)
class CoverageLine:
    line_number: int
    count: Count
    source_text: str | None = None
    branches: tuple[Branch, ...] = ()

    def __post_init__(self) -> None:
        if self.line_number < 1:
            raise MalformedInputError(
                f"line number must be positive, got {self.line_number}"
            )

    @property
    def is_end_of_file(self) -> bool:
        return self.source_text is None


@dataclass(frozen=True)
class FunctionSummary:
    name: str
    line: int
    entry_count: int = 0
    exit_count: int = 0
    blocks_executed: int = 0
    blocks_count: int = 0
    branches_taken: int = 0
    branches_count: int = 0
    symbol: int = 0

    def __post_init__(self) -> None:
        errors: list[str] = []
        for name in ("entry_count", "exit_count", "blocks_executed",
                     "blocks_count", "branches_taken", "branches_count"):
            if getattr(self, name) < 0:
                errors.append(f"{name} must be >= 0")
        if self.exit_count > self.entry_count:
            errors.append(
                f"exit_count ({self.exit_count}) > entry_count ({self.entry_count})"
            )
        if self.blocks_executed > self.blocks_count:
            errors.append(
                f"blocks_executed ({self.blocks_executed}) > blocks_count ({self.blocks_count})"
            )
        if self.branches_taken > self.branches_count:
            errors.append(
                f"branches_taken ({self.branches_taken}) > branches_count ({self.branches_count})"
            )
        if errors:
            raise MalformedInputError(
                f"function '{self.name}': " + "; ".join(errors)
            )


@dataclass(frozen=True)
class SourceFile:
    path: str
    crate_path: str = ""
    lines: tuple[CoverageLine, ...] = ()
    functions: tuple[FunctionSummary, ...] = ()

    def __post_init__(self) -> None:
        check_line_order(self.lines)


def check_line_order(lines) -> None:
    """Raise MalformedInputError unless line numbers strictly increase.

    Only the last row may lack source text (the synthetic end-of-file row).
    """
    previous = 0
    last = len(lines) - 1
    for i, line in enumerate(lines):
        if line.line_number <= previous:
            raise MalformedInputError(
                f"line numbers must be strictly increasing: "
                f"{line.line_number} follows {previous}"
            )
        if line.is_end_of_file and i != last:
            raise MalformedInputError(
                f"line {line.line_number}: missing source text"
            )
        previous = line.line_number


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------

def load_source_file(data: dict) -> SourceFile:
    """Build a SourceFile from an already-extracted coverage document.

    Raises:
        MalformedInputError: if a record is missing a required field, has a
                             field of the wrong type, or inconsistent counters.
    """
    if not isinstance(data, dict):
        raise MalformedInputError("coverage document must be a mapping")

    path = _require(data, "path", "document", str)
    crate_path = data.get("crate_path") or ""
    if not isinstance(crate_path, str):
        raise MalformedInputError("document: 'crate_path' must be a string")

    lines = tuple(
        _load_line(raw, f"lines[{i}]")
        for i, raw in enumerate(_list(data, "lines", "document"))
    )
    functions = tuple(
        _load_function(raw, f"functions[{i}]")
        for i, raw in enumerate(_list(data, "functions", "document"))
    )
    return SourceFile(path=path, crate_path=crate_path, lines=lines, functions=functions)


def _load_line(raw: Any, where: str) -> CoverageLine:
    if not isinstance(raw, dict):
        raise MalformedInputError(f"{where}: expected a mapping")
    source = raw.get("source")
    if source is not None and not isinstance(source, str):
        raise MalformedInputError(f"{where}: 'source' must be a string")
    line_number = _require(raw, "line", where, int)
    branches = tuple(
        _load_branch(b, f"{where}.branches[{j}]")
        for j, b in enumerate(_list(raw, "branches", where))
    )
    try:
        return CoverageLine(
            line_number=line_number,
            count=parse_count(raw.get("count")),
            source_text=source,
            branches=branches,
        )
    except MalformedInputError as exc:
        raise MalformedInputError(f"{where}: {exc}") from exc


def _load_branch(raw: Any, where: str) -> Branch:
    if not isinstance(raw, dict):
        raise MalformedInputError(f"{where}: expected a mapping")
    fields = {
        "count": _require(raw, "count", where, int),
        "symbol": _require(raw, "symbol", where, int),
        "target_line": _require(raw, "line", where, int),
    }
    try:
        return Branch(**fields)
    except MalformedInputError as exc:
        raise MalformedInputError(f"{where}: {exc}") from exc


def _load_function(raw: Any, where: str) -> FunctionSummary:
    if not isinstance(raw, dict):
        raise MalformedInputError(f"{where}: expected a mapping")
    counters = {
        key: _require(raw, key, where, int)
        for key in ("entry_count", "exit_count", "blocks_executed",
                    "blocks_count", "branches_taken", "branches_count")
    }
    symbol = raw.get("symbol", 0)
    if isinstance(symbol, bool) or not isinstance(symbol, int):
        raise MalformedInputError(f"{where}: 'symbol' must be an integer")
    name = _require(raw, "name", where, str)
    line = _require(raw, "line", where, int)
    try:
        return FunctionSummary(name=name, line=line, symbol=symbol, **counters)
    except MalformedInputError as exc:
        raise MalformedInputError(f"{where}: {exc}") from exc


def _require(raw: dict, key: str, where: str, kind: type):
    """Return ``raw[key]``, checking presence and type."""
    if key not in raw:
        raise MalformedInputError(f"{where}: missing '{key}'")
    value = raw[key]
    if isinstance(value, bool) or not isinstance(value, kind):
        raise MalformedInputError(
            f"{where}: '{key}' must be {'an integer' if kind is int else 'a string'}"
        )
    return value


def _list(raw: dict, key: str, where: str) -> list:
    value = raw.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise MalformedInputError(f"{where}: '{key}' must be a list")
    return value
