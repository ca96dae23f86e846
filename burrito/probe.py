"""Sample live endpoints so their responses can be typed.

Each route gets exactly one request: GET with no body, or POST with the
example payload as JSON. Requests run concurrently on one AsyncClient,
bounded by a semaphore. Failures are returned per route instead of
raised so one unreachable endpoint never stops the rest of the run.
POST routes whose example payload is not an object are not requested.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass

import httpx

from .errors import InferenceError
from .inference import TypeInferrer, check_example
from .records import FieldSpec
from .schema import Route, Schema

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteKey:
    """Position of a route in the schema: section index, route index."""

    section: int
    route: int


@dataclass
class ProbeResult:
    url: str
    body: bytes | None = None
    error: InferenceError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def fetch_route(client: httpx.AsyncClient, base_url: str, route: Route) -> bytes:
    """Perform the single sampling request for a route.

    Raises InferenceError on transport failures and non-2xx responses.
    """
    url = base_url + route.effective_url
    verb = route.http_method
    try:
        if route.is_post:
            response = await client.post(
                url,
                content=json.dumps(route.example_request_payload),
                headers={"Content-Type": "application/json"},
            )
        else:
            response = await client.get(url)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        raise InferenceError(
            f"Failed to derive data from route '{route.url_template}', {verb} {url}"
            f" returned {e.response.status_code}."
        ) from e
    except httpx.HTTPError as e:
        raise InferenceError(
            f"Failed to derive data from route '{route.url_template}', could not {verb}"
            f" {url}: {e!r}"
        ) from e
    logger.debug("%s %s -> %d (%d bytes)", verb, url, response.status_code, len(response.content))
    return response.content


async def probe_routes(
    schema: Schema,
    client: httpx.AsyncClient,
    max_concurrency: int = 8,
) -> dict[RouteKey, ProbeResult]:
    """Probe every route of the schema, returning results keyed by position."""
    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def _probe(route: Route) -> ProbeResult:
        url = schema.root_path + route.effective_url
        try:
            check_example(route)
        except InferenceError as e:
            logger.debug("Not probing %s: %s", url, e)
            return ProbeResult(url=url, error=e)
        async with semaphore:
            try:
                body = await fetch_route(client, schema.root_path, route)
            except InferenceError as e:
                return ProbeResult(url=url, error=e)
        return ProbeResult(url=url, body=body)

    keys: list[RouteKey] = []
    tasks = []
    for s, section in enumerate(schema.sections):
        for r, route in enumerate(section.routes):
            keys.append(RouteKey(s, r))
            tasks.append(_probe(route))

    logger.info("Probing %d routes under %s", len(tasks), schema.root_path)
    results = await asyncio.gather(*tasks)
    return dict(zip(keys, results))


def make_client(timeout: float, headers: dict[str, str] | None = None) -> httpx.AsyncClient:
    """AsyncClient used for probing when the caller does not supply one."""
    return httpx.AsyncClient(
        timeout=timeout,
        headers=headers or {},
        follow_redirects=True,
    )


async def derive_from_route(
    client: httpx.AsyncClient,
    base_url: str,
    route: Route,
    inferrer: TypeInferrer,
) -> FieldSpec:
    """Sample one route and type its response in a single step."""
    body = await fetch_route(client, base_url, route)
    return inferrer.infer_response(route, body)
