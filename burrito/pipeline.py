"""One generation run: validate, probe, infer, assemble, emit.

Probing is the only concurrent stage. Its results are keyed by route
position and consumed in declaration order, so repeated runs against the
same API produce the same names.

A SchemaError aborts the run before anything is probed. Failing routes
are reported as error diagnostics and left out of the generated classes.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator

import httpx

from .assembler import build_project
from .codegen import Emitter, Manifest
from .config import GeneratorOptions
from .diagnostics import Diagnostics
from .loader import load_raw_schema
from .model import Project
from .probe import make_client, probe_routes
from .records import TypeRegistry
from .schema import Schema, parse_schema

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of a run. Unpacks as (file_count, diagnostics)."""

    file_count: int
    diagnostics: Diagnostics
    manifest: Manifest
    project: Project

    def __iter__(self) -> Iterator[Any]:
        yield self.file_count
        yield self.diagnostics


async def run_parsed_async(
    schema: Schema,
    options: GeneratorOptions | None = None,
    client: httpx.AsyncClient | None = None,
) -> RunResult:
    options = options or GeneratorOptions()
    diagnostics = Diagnostics()

    if client is None:
        async with make_client(options.probe_timeout, options.headers) as owned:
            probes = await probe_routes(schema, owned, options.max_concurrency)
    else:
        probes = await probe_routes(schema, client, options.max_concurrency)

    registry = TypeRegistry()
    project = build_project(schema, probes, diagnostics, registry)
    manifest = Emitter(options, diagnostics).emit(project)

    logger.info(
        "Generated %d classes for %s (%d errors, %d warnings)",
        manifest.file_count, schema.name, len(diagnostics.errors), len(diagnostics.warnings),
    )
    return RunResult(manifest.file_count, diagnostics, manifest, project)


def run_parsed(
    schema: Schema,
    options: GeneratorOptions | None = None,
    client: httpx.AsyncClient | None = None,
) -> RunResult:
    """Generate from an already validated Schema."""
    return asyncio.run(run_parsed_async(schema, options, client))


def run_schema(
    raw_schema: dict[str, Any],
    options: GeneratorOptions | None = None,
    client: httpx.AsyncClient | None = None,
) -> RunResult:
    """Validate raw schema data and generate from it."""
    return run_parsed(parse_schema(raw_schema), options, client)


def run(
    schema_path: Path | str,
    options: GeneratorOptions | None = None,
    client: httpx.AsyncClient | None = None,
) -> RunResult:
    """Load a schema file and generate the client library model."""
    logger.info("Loading schema %s", schema_path)
    return run_schema(load_raw_schema(schema_path), options, client)
