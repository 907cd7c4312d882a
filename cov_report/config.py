"""Configuration loading and validation.

Usage:
    config = load("cov-report.yaml")         # raises ConfigError on bad config
    config = load(None)                      # built-in defaults
    config.thresholds["blocks"]              # Thresholds(fair=75, good=90)
    generate_template("cov-report.yaml")     # writes example file to disk
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from cov_report.classify.grading import DEFAULT_THRESHOLDS, Thresholds
from cov_report.sourcepath import SourceType, UnsupportedSourceTypeName


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


# ---------------------------------------------------------------------------
# Config dataclass
# ---------------------------------------------------------------------------

@dataclass
class Config:
    crate_path: str = ""
    include: SourceType = SourceType.DEFAULT
    thresholds: dict[str, Thresholds] = field(
        default_factory=lambda: dict(DEFAULT_THRESHOLDS)
    )


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load(config_path: str | None = None) -> Config:
    """Load and validate configuration from a YAML file.

    With no path, the built-in defaults are returned (environment overrides
    still apply). COV_REPORT_CRATE_PATH and COV_REPORT_INCLUDE override file
    values.

    Raises:
        ConfigError: if the file is missing, malformed, or a threshold or
                     source type entry is invalid.
    """
    raw: dict = {}
    if config_path is not None:
        raw = _read_yaml(config_path)

    crate_path = os.environ.get("COV_REPORT_CRATE_PATH") or raw.get("crate_path") or ""
    include_env = os.environ.get("COV_REPORT_INCLUDE")
    include_raw = include_env.split(",") if include_env else raw.get("include")

    return Config(
        crate_path=str(crate_path).strip(),
        include=_parse_include(include_raw),
        thresholds=_parse_thresholds(raw.get("thresholds")),
    )


def _read_yaml(config_path: str) -> dict:
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(
            f"Config file not found: '{config_path}'\n"
            "Run `cov-report init` to generate a template."
        )

    try:
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse '{config_path}': {exc}") from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"'{config_path}' must be a YAML mapping at the top level.")
    return raw


def _parse_include(raw) -> SourceType:
    if raw is None:
        return SourceType.DEFAULT
    if isinstance(raw, str):
        raw = raw.split(",")
    if not isinstance(raw, list):
        raise ConfigError("'include' must be a list of source type names.")
    try:
        return SourceType.parse_many(str(name) for name in raw)
    except UnsupportedSourceTypeName as exc:
        raise ConfigError(str(exc)) from exc


def _parse_thresholds(raw) -> dict[str, Thresholds]:
    """Merge per-metric {fair, good} entries over the defaults."""
    table = dict(DEFAULT_THRESHOLDS)
    if raw is None:
        return table
    if not isinstance(raw, dict):
        raise ConfigError("'thresholds' must be a mapping of metric name to {fair, good}.")

    errors: list[str] = []
    for metric, entry in raw.items():
        if not isinstance(entry, dict):
            errors.append(f"  - thresholds.{metric}: expected a mapping with 'fair' and 'good'")
            continue
        base = table.get(metric)
        fair = entry.get("fair", base.fair if base else None)
        good = entry.get("good", base.good if base else None)
        if not _is_number(fair) or not _is_number(good):
            errors.append(f"  - thresholds.{metric}: 'fair' and 'good' must be numbers")
            continue
        try:
            table[metric] = Thresholds(fair=fair, good=good)
        except ValueError as exc:
            errors.append(f"  - thresholds.{metric}: {exc}")

    if errors:
        raise ConfigError("Invalid configuration:\n" + "\n".join(errors))
    return table


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# ---------------------------------------------------------------------------
# Template generator (used by `init` command)
# ---------------------------------------------------------------------------

TEMPLATE = """\
# Workspace root; files below it are shown as ./relative/path
crate_path: "/path/to/workspace/"

# Source types to render: local, macros, unknown, crates, rustsrc, all
include: [local, macros, unknown]

# Percentage tiers per metric: below fair is bad, at or above good is good
thresholds:
  lines:     {fair: 75, good: 90}
  functions: {fair: 75, good: 90}
  returns:   {fair: 0,  good: 0}     # any returning call counts as good
  blocks:    {fair: 75, good: 90}
  branches:  {fair: 50, good: 75}
"""


def generate_template(output_path: str = "cov-report.yaml") -> None:
    """Write a template cov-report.yaml to *output_path*.

    Raises:
        ConfigError: if the file already exists.
    """
    path = Path(output_path)
    if path.exists():
        raise ConfigError(
            f"'{output_path}' already exists. Remove it first or choose a different path."
        )
    path.write_text(TEMPLATE, encoding="utf-8")
