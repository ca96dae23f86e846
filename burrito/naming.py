"""Derive method names, path variables and Python identifiers from routes.

Method names follow the pattern {Verb}{Segment}{Segment}...[Async]:
  GET  ""                    -> GetRoot
  GET  users                 -> GetUsers
  GET  users/{id}/posts      -> GetUsersPosts
  POST users?notify=1        -> PostUsers
  GET  users (async)         -> GetUsersAsync

Placeholders are stripped before the URL is split into segments, and any
query string is dropped from each segment. An explicit method name on the
route always wins; only the Async suffix is added to it.
"""

from __future__ import annotations

import keyword
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .schema import Route

PATH_VARIABLE_RE = re.compile(r"\{([A-Za-z0-9_]+)\}")
ASYNC_SUFFIX = "Async"


def _capitalize_first(text: str) -> str:
    return text[:1].upper() + text[1:]


def extract_path_variables(template: str) -> list[str]:
    """Return the {name} placeholders of a URL template, left to right."""
    return PATH_VARIABLE_RE.findall(template or "")


def strip_path_variables(template: str) -> str:
    return PATH_VARIABLE_RE.sub("", template)


def effective_url(route: Route) -> str:
    """The URL fetched during inference: the resolved one if placeholders exist."""
    if extract_path_variables(route.url_template):
        return route.resolved_url_template or ""
    return route.url_template


def derive_base_name(route: Route) -> str:
    """The method name without the Async suffix."""
    if route.method_name_override:
        return route.method_name_override

    verb = route.http_method.lower()
    name = _capitalize_first(verb)
    if route.url_template == "":
        return name + "Root"
    for part in strip_path_variables(route.url_template).split("/"):
        part = part.split("?", 1)[0]
        if part:
            name += _capitalize_first(part)
    return name


def method_name(base_name: str, is_async: bool) -> str:
    return base_name + ASYNC_SUFFIX if is_async else base_name


def derive_method_name(route: Route) -> str:
    """Build the generated method name for a route."""
    return method_name(derive_base_name(route), route.is_async)


def route_summary(route: Route) -> str:
    """Docstring for a generated method: the description or a stock sentence."""
    if route.description is not None:
        return route.description
    return f"{route.http_method.upper()}s /{route.url_template}/."


def camel_to_snake(name: str) -> str:
    """Convert camelCase or PascalCase to snake_case."""
    s1 = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", name)
    return re.sub(r"([a-z\d])([A-Z])", r"\1_\2", s1).lower()


def python_identifier(name: str, snake_case: bool = False) -> str:
    """Turn an arbitrary JSON key or URL fragment into a usable identifier.

    Invalid characters become underscores, a leading digit gets an
    underscore prefix and keywords get an underscore suffix.
    """
    if snake_case:
        name = camel_to_snake(name)
    name = re.sub(r"[^A-Za-z0-9_]", "_", name)
    if not name:
        return "_"
    if name[0].isdigit():
        name = "_" + name
    if keyword.iskeyword(name):
        name += "_"
    return name
