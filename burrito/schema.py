"""Schema model and validation.

A schema names an API, gives its root URL and groups routes into
sections. parse_schema turns the raw JSON document into Schema objects,
collecting every violation before raising a single SchemaError.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any

from .errors import SchemaError
from .naming import derive_method_name, effective_url, extract_path_variables

SCHEMA_NAME_RE = re.compile(r"^[A-Za-z0-9_]+$")
SECTION_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
TYPE_NAME_RE = re.compile(r"^[A-Za-z_0-9]+$")
URL_TEMPLATE_RE = re.compile(r"^[A-Za-z_\-.0-9?=%#@/{}]+$")

HTTP_METHODS = ("GET", "POST")


@dataclass
class Route:
    url_template: str
    http_method: str
    returned_type_name: str
    sent_type_name: str | None = None
    example_request_payload: Any = None
    is_async: bool = False
    description: str | None = None
    method_name_override: str | None = None
    resolved_url_template: str | None = None

    @property
    def path_variables(self) -> list[str]:
        return extract_path_variables(self.url_template)

    @property
    def method_name(self) -> str:
        return derive_method_name(self)

    @property
    def effective_url(self) -> str:
        return effective_url(self)

    @property
    def is_post(self) -> bool:
        return self.http_method == "POST"


@dataclass
class Section:
    name: str
    routes: list[Route] = field(default_factory=list)


@dataclass
class Schema:
    name: str
    root_path: str
    sections: list[Section] = field(default_factory=list)


def normalize_root(root: str) -> str:
    """Root URLs always end with a slash so route templates can be appended."""
    return root if root.endswith("/") else root + "/"


def _validate_route(raw: Any, where: str, violations: list[str]) -> Route | None:
    """Check a single route, appending problems to violations."""
    if not isinstance(raw, dict):
        violations.append(f"{where}: route must be a JSON object.")
        return None

    start = len(violations)
    url = raw.get("route")
    if url is None:
        violations.append(f"{where}: no URL provided for route.")
    elif not isinstance(url, str):
        violations.append(f"{where}: route URL must be a string.")
        url = None
    elif url and not URL_TEMPLATE_RE.match(url):
        violations.append(f"{where}: invalid relative route provided ('{url}').")

    label = f"{where} ('{url}')" if url is not None else where
    resolved = raw.get("validroute")
    if resolved is not None and not isinstance(resolved, str):
        violations.append(f"{label}: 'validroute' must be a string.")
        resolved = None
    if url is not None:
        route_vars = extract_path_variables(url)
        if route_vars and not resolved:
            violations.append(
                f"{label}: must include a valid, full relative URL ('validroute')"
                " when putting variables in routes."
            )
        if len(set(route_vars)) != len(route_vars):
            violations.append(
                f"{label}: route variables must be unique, duplicated names detected."
            )

    returns = raw.get("returns")
    if returns is None:
        violations.append(f"{label}: no name given for data returned from route.")
    elif not isinstance(returns, str) or not TYPE_NAME_RE.match(returns):
        violations.append(f"{label}: invalid returned data name '{returns}'.")

    method = raw.get("type")
    if method is None:
        violations.append(f"{label}: no method type provided for route.")
    elif not isinstance(method, str) or method.upper() not in HTTP_METHODS:
        violations.append(f"{label}: unsupported HTTP method '{method}'.")
        method = None
    else:
        method = method.upper()

    sends = raw.get("sends")
    if method == "POST":
        if sends is None:
            violations.append(f"{label}: no send data type name defined for POST route.")
        elif not isinstance(sends, str) or not TYPE_NAME_RE.match(sends):
            violations.append(f"{label}: send data type name '{sends}' is invalid.")
        if raw.get("data") is None:
            violations.append(f"{label}: no example POST data given for route.")

    is_async = raw.get("async", False)
    if not isinstance(is_async, bool):
        violations.append(f"{label}: 'async' must be true or false.")

    override = raw.get("method")
    if override is not None and (not isinstance(override, str) or not SECTION_NAME_RE.match(override)):
        violations.append(f"{label}: invalid method name override '{override}'.")

    description = raw.get("desc")
    if description is not None and not isinstance(description, str):
        violations.append(f"{label}: 'desc' must be a string.")

    if len(violations) != start:
        return None

    return Route(
        url_template=url,
        http_method=method,
        returned_type_name=returns,
        sent_type_name=sends if method == "POST" else None,
        example_request_payload=raw.get("data"),
        is_async=is_async,
        description=description,
        method_name_override=override,
        resolved_url_template=resolved,
    )


def _validate_section(raw: Any, index: int, violations: list[str]) -> Section | None:
    if not isinstance(raw, dict):
        violations.append(f"Section #{index}: section must be a JSON object.")
        return None

    name = raw.get("name")
    if not isinstance(name, str) or not SECTION_NAME_RE.match(name):
        violations.append(f"Section #{index}: invalid section name '{name}'.")
        name = None

    where = f"Section '{name}'" if name else f"Section #{index}"
    raw_routes = raw.get("routes")
    if not isinstance(raw_routes, list):
        violations.append(f"{where}: 'routes' must be a list.")
        return None

    routes: list[Route] = []
    method_names: dict[str, int] = {}
    for i, raw_route in enumerate(raw_routes):
        route = _validate_route(raw_route, f"{where}, route #{i}", violations)
        if route is None:
            continue
        name_ = route.method_name
        if name_ in method_names:
            violations.append(
                f"{where}: routes #{method_names[name_]} and #{i} both generate"
                f" method '{name_}'."
            )
        else:
            method_names[name_] = i
        routes.append(route)

    if name is None:
        return None
    return Section(name=name, routes=routes)


def parse_schema(data: dict[str, Any]) -> Schema:
    """Validate raw schema data and build a Schema.

    Raises SchemaError listing every violation found.
    """
    violations: list[str] = []

    name = data.get("name")
    root = data.get("root")
    raw_sections = data.get("sections")

    if name is None or root is None or raw_sections is None:
        violations.append(
            "Required schema property missing (one of 'name', 'root' or 'sections')."
        )
    if name is not None and (not isinstance(name, str) or not SCHEMA_NAME_RE.match(name)):
        violations.append(
            "Invalid schema name given. Must only be alphanumeric or underscores."
        )
    if root is not None and not isinstance(root, str):
        violations.append("Schema 'root' must be a string.")
    if raw_sections is not None and not isinstance(raw_sections, list):
        violations.append("Schema 'sections' must be a list.")
        raw_sections = None

    sections: list[Section] = []
    seen: set[str] = set()
    for index, raw_section in enumerate(raw_sections or []):
        section = _validate_section(raw_section, index, violations)
        if section is None:
            continue
        if section.name in seen:
            violations.append(f"Duplicate section name '{section.name}' detected.")
            continue
        seen.add(section.name)
        sections.append(section)

    if violations:
        raise SchemaError(violations)

    return Schema(name=name, root_path=normalize_root(root), sections=sections)
