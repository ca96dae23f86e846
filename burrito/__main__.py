"""Entry point: python -m burrito SCHEMA

Generates a Python client package from an API schema file.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Annotated

import typer

from .codegen import write_manifest
from .config import GeneratorOptions
from .errors import SchemaError
from .pipeline import run

app = typer.Typer(
    name="burrito",
    help="Roll up a JSON API schema into a typed Python client.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _configure_logging(verbose: int, quiet: bool) -> None:
    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="[%(levelname)s] %(name)s: %(message)s")


def _output_dir(output: Path, schema: Path) -> Path:
    """Use a child directory named after the schema if output is not empty."""
    if output.exists() and any(output.iterdir()):
        return output / schema.stem
    return output


@app.command()
def generate(
    schema: Annotated[Path, typer.Argument(exists=True, dir_okay=False, help="API schema JSON file.")],
    output: Annotated[Path, typer.Option("--output", "-o", help="Directory to generate into.")] = Path("."),
    sync_only: Annotated[bool, typer.Option("--sync-only", help="Do not emit sync twins of async routes.")] = False,
    snake_case: Annotated[bool, typer.Option("--snake-case", help="Use snake_case record attributes.")] = False,
    timeout: Annotated[float | None, typer.Option(help="Seconds to wait for each probe request.")] = None,
    verbose: Annotated[int, typer.Option("--verbose", "-v", count=True, help="More logging, repeatable.")] = 0,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Only log errors.")] = False,
) -> None:
    """Generate a client library from SCHEMA."""
    _configure_logging(verbose, quiet)

    options = GeneratorOptions.from_env()
    if sync_only:
        options.generate_async_and_sync = False
    if snake_case:
        options.follow_naming_conventions = True
    if timeout is not None:
        options.probe_timeout = timeout

    started = time.perf_counter()
    try:
        result = run(schema, options)
    except SchemaError as e:
        for violation in e.violations:
            typer.secho(f"[ERR] - {violation}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from e

    write_manifest(result.manifest, _output_dir(output, schema))
    elapsed = time.perf_counter() - started

    typer.echo(
        "Rolled up the API schema in "
        + typer.style(f"{elapsed:.2f}s", fg=typer.colors.GREEN)
        + f", {result.file_count} classes generated."
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
