"""Tests for cov_report/config.py"""

import textwrap
from pathlib import Path

import pytest

from cov_report.classify.grading import DEFAULT_THRESHOLDS, Thresholds
from cov_report.config import ConfigError, generate_template, load
from cov_report.sourcepath import SourceType


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def write_config(tmp_path: Path, content: str) -> Path:
    p = tmp_path / "cov-report.yaml"
    p.write_text(textwrap.dedent(content), encoding="utf-8")
    return p


VALID_YAML = """\
    crate_path: "/work/project/"
    include: [local, crates]
    thresholds:
      blocks: {fair: 60, good: 80}
    """


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("COV_REPORT_CRATE_PATH", raising=False)
    monkeypatch.delenv("COV_REPORT_INCLUDE", raising=False)


# ---------------------------------------------------------------------------
# load(): happy path
# ---------------------------------------------------------------------------

def test_load_valid_config(tmp_path):
    p = write_config(tmp_path, VALID_YAML)
    config = load(str(p))
    assert config.crate_path == "/work/project/"
    assert config.include == SourceType.LOCAL | SourceType.CRATES
    assert config.thresholds["blocks"] == Thresholds(fair=60, good=80)


def test_partial_thresholds_keep_defaults(tmp_path):
    p = write_config(tmp_path, VALID_YAML)
    config = load(str(p))
    assert config.thresholds["branches"] == DEFAULT_THRESHOLDS["branches"]
    assert config.thresholds["returns"] == Thresholds(fair=0, good=0)


def test_partial_threshold_entry_merges(tmp_path):
    p = write_config(tmp_path, """\
        thresholds:
          branches: {good: 60}
        """)
    assert load(str(p)).thresholds["branches"] == Thresholds(fair=50, good=60)


def test_load_without_path_returns_defaults():
    config = load(None)
    assert config.crate_path == ""
    assert config.include == SourceType.DEFAULT
    assert config.thresholds == DEFAULT_THRESHOLDS


def test_defaults_are_not_shared():
    config = load(None)
    config.thresholds["blocks"] = Thresholds(0, 0)
    assert DEFAULT_THRESHOLDS["blocks"] == Thresholds(fair=75, good=90)


def test_empty_file_is_defaults(tmp_path):
    p = write_config(tmp_path, "")
    assert load(str(p)).thresholds == DEFAULT_THRESHOLDS


def test_new_metric_can_be_added(tmp_path):
    p = write_config(tmp_path, """\
        thresholds:
          calls: {fair: 10, good: 20}
        """)
    assert load(str(p)).thresholds["calls"] == Thresholds(fair=10, good=20)


# ---------------------------------------------------------------------------
# load(): errors
# ---------------------------------------------------------------------------

def test_load_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load(str(tmp_path / "no-such-file.yaml"))


def test_load_invalid_yaml(tmp_path):
    p = write_config(tmp_path, "thresholds: [unclosed\n")
    with pytest.raises(ConfigError, match="Failed to parse"):
        load(str(p))


def test_load_non_mapping(tmp_path):
    p = write_config(tmp_path, "- a\n- b\n")
    with pytest.raises(ConfigError, match="mapping"):
        load(str(p))


def test_fair_above_good(tmp_path):
    p = write_config(tmp_path, """\
        thresholds:
          blocks: {fair: 95, good: 90}
        """)
    with pytest.raises(ConfigError, match="thresholds.blocks"):
        load(str(p))


def test_non_numeric_threshold(tmp_path):
    p = write_config(tmp_path, """\
        thresholds:
          lines: {fair: high, good: 90}
        """)
    with pytest.raises(ConfigError, match="must be numbers"):
        load(str(p))


def test_new_metric_needs_both_thresholds(tmp_path):
    p = write_config(tmp_path, """\
        thresholds:
          calls: {fair: 10}
        """)
    with pytest.raises(ConfigError, match="thresholds.calls"):
        load(str(p))


def test_unknown_source_type(tmp_path):
    p = write_config(tmp_path, "include: [local, vendored]\n")
    with pytest.raises(ConfigError, match="vendored"):
        load(str(p))


# ---------------------------------------------------------------------------
# load(): environment variable overrides
# ---------------------------------------------------------------------------

def test_env_crate_path_overrides_config(tmp_path, monkeypatch):
    p = write_config(tmp_path, VALID_YAML)
    monkeypatch.setenv("COV_REPORT_CRATE_PATH", "/override/")
    assert load(str(p)).crate_path == "/override/"


def test_env_include_overrides_config(tmp_path, monkeypatch):
    p = write_config(tmp_path, VALID_YAML)
    monkeypatch.setenv("COV_REPORT_INCLUDE", "rustsrc,macros")
    assert load(str(p)).include == SourceType.RUSTSRC | SourceType.MACROS


def test_env_applies_without_file(monkeypatch):
    monkeypatch.setenv("COV_REPORT_CRATE_PATH", "/from/env/")
    assert load(None).crate_path == "/from/env/"


# ---------------------------------------------------------------------------
# generate_template()
# ---------------------------------------------------------------------------

def test_generate_template_creates_file(tmp_path):
    out = tmp_path / "cov-report.yaml"
    generate_template(str(out))
    assert out.exists()
    content = out.read_text(encoding="utf-8")
    assert "thresholds:" in content
    assert "include:" in content


def test_generated_template_loads_to_defaults(tmp_path):
    out = tmp_path / "cov-report.yaml"
    generate_template(str(out))
    config = load(str(out))
    assert config.thresholds == DEFAULT_THRESHOLDS
    assert config.include == SourceType.DEFAULT


def test_generate_template_refuses_to_overwrite(tmp_path):
    out = tmp_path / "cov-report.yaml"
    out.write_text("existing content")
    with pytest.raises(ConfigError, match="already exists"):
        generate_template(str(out))
