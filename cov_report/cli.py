"""CLI entry point: command definitions using Click.

Commands:
    init          Generate a template config file
    render        Classify one coverage document into a render-ready model
    grade         Grade a single value/total pair against a metric's thresholds
"""

import json
import sys
from typing import Any

import click

from cov_report import __version__


# ---------------------------------------------------------------------------
# Helpers shared by all data commands
# ---------------------------------------------------------------------------

def _load_config(ctx: click.Context):
    """Load the configuration named by --config. Exits on error."""
    from cov_report.config import ConfigError, load

    obj = ctx.obj
    try:
        config = load(obj["config_path"])
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)

    if obj["verbose"]:
        source = obj["config_path"] or "built-in defaults"
        click.echo(f"[verbose] Using configuration from {source}", err=True)

    return config


def _emit_json(data: Any, ctx: click.Context) -> None:
    """Write JSON to stdout or to the file specified by --output."""
    obj = ctx.obj
    indent = 2 if obj["pretty"] else None
    text = json.dumps(data, indent=indent, ensure_ascii=False)

    output_path: str | None = obj["output_path"]
    if output_path:
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(text)
        click.echo(f"Report written to '{output_path}'", err=True)
    else:
        click.echo(text)


def _handle_data_errors(func):
    """Decorator that catches coverage data exceptions and exits cleanly."""
    import functools

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        from cov_report.models import CoverageDataError

        try:
            return func(*args, **kwargs)
        except CoverageDataError as exc:
            click.echo(f"Data error: {exc}", err=True)
            sys.exit(1)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            click.echo(f"Data error: invalid JSON: {exc}", err=True)
            sys.exit(1)

    return wrapper


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--config", "config_path", default=None,
              help="Path to the configuration file (defaults are used when omitted).")
@click.option("--output", "output_path", default=None,
              help="Write JSON output to a file instead of stdout.")
@click.option("--pretty", is_flag=True, default=False,
              help="Pretty-print the JSON output.")
@click.option("--verbose", is_flag=True, default=False,
              help="Enable verbose logging.")
@click.version_option(__version__, prog_name="cov-report")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, output_path: str | None,
        pretty: bool, verbose: bool) -> None:
    """Classify coverage counters into render-ready JSON."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["output_path"] = output_path
    ctx.obj["pretty"] = pretty
    ctx.obj["verbose"] = verbose


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@cli.command("init")
@click.option("--output", "output_path", default="cov-report.yaml", show_default=True,
              help="Path where the template config file will be written.")
def init_command(output_path: str) -> None:
    """Generate a template cov-report.yaml file."""
    from cov_report.config import ConfigError, generate_template
    try:
        generate_template(output_path)
        click.echo(f"Template written to '{output_path}'.")
        click.echo("Edit it with your workspace path and metric thresholds.")
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# render
# ---------------------------------------------------------------------------

@cli.command("render")
@click.argument("data_file", type=click.File("r", encoding="utf-8"))
@click.option("--crate-path", default=None,
              help="Workspace root (overrides the config and the document).")
@click.pass_context
@_handle_data_errors
def render_command(ctx: click.Context, data_file, crate_path: str | None) -> None:
    """Classify the coverage document DATA_FILE ('-' for stdin)."""
    import dataclasses

    from cov_report.models import load_source_file
    from cov_report.report import assemble
    from cov_report.sourcepath import identify_source_path

    config = _load_config(ctx)
    source = load_source_file(json.load(data_file))

    crate_path = crate_path or config.crate_path or source.crate_path
    if crate_path != source.crate_path:
        source = dataclasses.replace(source, crate_path=crate_path)

    source_type, _ = identify_source_path(source.path, source.crate_path)
    if source_type not in config.include:
        click.echo(
            f"Skipping '{source.path}': source type '{source_type.name.lower()}' "
            "is not included.",
            err=True,
        )
        return

    if ctx.obj["verbose"]:
        click.echo(
            f"[verbose] Classifying {len(source.lines)} lines and "
            f"{len(source.functions)} functions of {source.path}",
            err=True,
        )

    report = assemble(source, thresholds=config.thresholds)
    _emit_json(report.to_dict(), ctx)


# ---------------------------------------------------------------------------
# grade
# ---------------------------------------------------------------------------

@cli.command("grade")
@click.argument("value", type=click.IntRange(min=0))
@click.argument("total", type=click.IntRange(min=0))
@click.option("--metric", default="lines", show_default=True,
              help="Metric whose thresholds are applied.")
@click.pass_context
def grade_command(ctx: click.Context, value: int, total: int, metric: str) -> None:
    """Grade VALUE out of TOTAL against the configured thresholds."""
    from cov_report.classify.grading import grade_metric

    config = _load_config(ctx)
    if metric not in config.thresholds:
        available = ", ".join(config.thresholds)
        click.echo(f"Unknown metric '{metric}'. Available metrics: {available}", err=True)
        sys.exit(1)
    if value > total:
        click.echo(f"VALUE ({value}) must not exceed TOTAL ({total}).", err=True)
        sys.exit(1)

    result = grade_metric(metric, value, total, config.thresholds)
    _emit_json({"metric": metric, **result.to_dict()}, ctx)
