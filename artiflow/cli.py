"""CLI entrypoint for artiflow."""

import sys
from dataclasses import replace
from pathlib import Path

import click

from . import __version__
from .config import load_config
from .logging_setup import configure_logging

_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@click.group()
@click.version_option(__version__, prog_name="artiflow")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="TOML config file (defaults to ./artiflow.toml or [tool.artiflow] in ./pyproject.toml)",
)
@click.option(
    "--log-level",
    type=click.Choice(_LEVELS, case_sensitive=False),
    default=None,
    help="Override the configured log level",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None, log_level: str | None) -> None:
    """artiflow - inspect typed, incrementally streamed artifacts."""
    ctx.ensure_object(dict)
    try:
        config = load_config(config_path)
    except ValueError as e:
        raise click.ClickException(str(e))
    if log_level:
        config = replace(config, log_level=log_level)

    configure_logging(config.log_level)
    ctx.obj["config"] = config


@cli.command()
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def kinds(output_json: bool) -> None:
    """List registered artifact kinds."""
    from .commands.artifact_cmd import run_kinds

    sys.exit(run_kinds(output_json=output_json))


@cli.command()
@click.argument("kind")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "output_json", is_flag=True, help="Output result as JSON")
def validate(kind: str, file: Path, output_json: bool) -> None:
    """Validate a serialized artifact (or bare data object) against KIND."""
    from .commands.artifact_cmd import run_validate

    sys.exit(run_validate(kind, file, output_json=output_json))


def _journal_path(ctx: click.Context, journal: Path | None) -> Path:
    if journal is not None:
        return journal
    configured = ctx.obj["config"].journal_path
    if configured is None:
        raise click.UsageError("No JOURNAL given and no journal_path configured.")
    return configured


@cli.command()
@click.argument("journal", required=False, type=click.Path(dir_okay=False, path_type=Path))
@click.option("--json", "output_json", is_flag=True, help="Output the replayed store as JSON")
@click.pass_context
def replay(ctx: click.Context, journal: Path | None, output_json: bool) -> None:
    """Replay a writer journal and list the artifacts it produced."""
    from .commands.artifact_cmd import run_replay

    sys.exit(run_replay(_journal_path(ctx, journal), output_json=output_json))


@cli.command()
@click.argument("artifact_id")
@click.argument("journal", required=False, type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def show(ctx: click.Context, artifact_id: str, journal: Path | None) -> None:
    """Print one replayed artifact as JSON."""
    from .commands.artifact_cmd import run_show

    sys.exit(run_show(_journal_path(ctx, journal), artifact_id))


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
