"""Assemble the code model from a validated schema and probe results.

Sections and routes are processed in declaration order, so record names
(and their collision suffixes) never depend on which probe finished first.
"""

from __future__ import annotations

import logging

from .diagnostics import Diagnostics
from .errors import AssemblyError, InferenceError
from .inference import TypeInferrer, check_example
from .model import (
    DATA_NAMESPACE,
    ROOT_NAMESPACE,
    ClassDef,
    GetMethod,
    MethodDef,
    PostMethod,
    Project,
    check_references,
)
from .naming import derive_base_name, route_summary
from .probe import ProbeResult, RouteKey
from .records import TypeRegistry
from .schema import Route, Schema

logger = logging.getLogger(__name__)


def build_method(route: Route, probe: ProbeResult, inferrer: TypeInferrer) -> MethodDef:
    """Type one route and describe it as a method.

    Raises InferenceError if the route has to be skipped.
    """
    check_example(route)
    if not probe.ok:
        raise probe.error

    returns = inferrer.infer_response(route, probe.body)
    common = dict(
        base_name=derive_base_name(route),
        route=route.url_template,
        route_params=tuple(route.path_variables),
        returns=returns,
        is_async=route.is_async,
        summary=route_summary(route),
    )
    if route.is_post:
        sent = inferrer.infer_example(route)
        return PostMethod(send_type=sent.name, **common)
    return GetMethod(**common)


def build_project(
    schema: Schema,
    probes: dict[RouteKey, ProbeResult],
    diagnostics: Diagnostics,
    registry: TypeRegistry | None = None,
) -> Project:
    """Build the full code model for a schema."""
    if registry is None:
        registry = TypeRegistry()
    inferrer = TypeInferrer(registry, diagnostics)

    project = Project(name=schema.name, root_url=schema.root_path)
    project.add_namespace(DATA_NAMESPACE)
    project.add_namespace(ROOT_NAMESPACE)

    for s, section in enumerate(schema.sections):
        cls = ClassDef(name=section.name)
        for r, route in enumerate(section.routes):
            probe = probes.get(RouteKey(s, r))
            if probe is None:
                raise AssemblyError(
                    f"No probe result for route #{r} of section '{section.name}'."
                )
            try:
                method = build_method(route, probe, inferrer)
            except InferenceError as e:
                diagnostics.error(f"Skipping route '{route.url_template}' in '{section.name}': {e}")
                continue
            cls.methods.append(method)
            logger.debug("Added %s.%s", section.name, method.name)
        project.add_class(ROOT_NAMESPACE, cls)

    for record in registry:
        project.add_class(DATA_NAMESPACE, ClassDef.from_record(record))
    project.add_globals()

    check_references(project)
    return project
