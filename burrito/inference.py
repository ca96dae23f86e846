"""Structural type inference over sampled JSON.

Objects become records registered in a TypeRegistry, arrays are typed
from their first element, and scalars map to a Kind. Problems with a
single field are reported as warnings and never stop the surrounding
object from being inferred.
"""

from __future__ import annotations

import datetime
import json
import logging
import re
import uuid
from typing import Any

from .diagnostics import Diagnostics
from .errors import InferenceError
from .naming import python_identifier
from .records import FieldSpec, Kind, TypeRecord, TypeRegistry
from .schema import Route

logger = logging.getLogger(__name__)

_DATETIME_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?$"
)
_UUID_RE = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)


def _is_datetime_literal(text: str) -> bool:
    if not _DATETIME_RE.match(text):
        return False
    try:
        datetime.datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return False
    return True


def classify_string(text: str) -> Kind:
    """Recognise date/time and uuid literals inside JSON strings."""
    if _is_datetime_literal(text):
        return Kind.DATETIME
    if _UUID_RE.match(text):
        return Kind.UUID
    return Kind.STRING


def check_example(route: Route) -> None:
    """A POST route's example payload must be an object to type its send record."""
    if route.is_post and not isinstance(route.example_request_payload, dict):
        raise InferenceError(
            f"Example data for route '{route.url_template}' must be a JSON object"
            f" to derive '{route.sent_type_name}'."
        )


class TypeInferrer:
    """Walks JSON values, registering every object it meets as a record."""

    def __init__(self, registry: TypeRegistry, diagnostics: Diagnostics) -> None:
        self.registry = registry
        self.diagnostics = diagnostics

    def infer_object(self, name: str, obj: dict[str, Any]) -> TypeRecord:
        """Build and register a record for a JSON object.

        Nested objects are registered first, named {name}_{field}.
        """
        fields: list[FieldSpec] = []
        for key, value in obj.items():
            spec = self.infer_value(name, key, value)
            if spec is not None:
                fields.append(spec)
        record = self.registry.register(name, fields)
        logger.debug("Registered record %s with %d fields", record.name, len(fields))
        return record

    def infer_value(self, root_name: str, field_name: str, value: Any) -> FieldSpec | None:
        """Derive the field spec for one property of an object."""
        record_name = f"{root_name}_{python_identifier(field_name)}"
        return self._infer(record_name, field_name, value, f"{root_name}.{field_name}")

    def _infer(self, record_name: str, field_name: str, value: Any, where: str) -> FieldSpec | None:
        if isinstance(value, dict):
            record = self.infer_object(record_name, value)
            return FieldSpec(field_name, Kind.RECORD, ref=record.name)

        if isinstance(value, list):
            if not value:
                self.diagnostics.warning(
                    f"Cannot generate a type from an empty array at '{where}'."
                    " Leaving an unknown list type here."
                )
                return FieldSpec(field_name, Kind.UNKNOWN, is_list=True)
            element = self._infer(record_name, field_name, value[0], where)
            return element.as_list() if element is not None else None

        if value is None:
            self.diagnostics.warning(
                f"Null value at '{where}', no type information available."
                " Using an unknown object type."
            )
            return FieldSpec(field_name, Kind.UNKNOWN)

        kind = self._scalar_kind(value)
        if kind is None:
            self.diagnostics.warning(
                f"Unsupported type '{type(value).__name__}' at '{where}'. Skipped property."
            )
            return None
        return FieldSpec(field_name, kind)

    @staticmethod
    def _scalar_kind(value: Any) -> Kind | None:
        if isinstance(value, bool):
            return Kind.BOOLEAN
        if isinstance(value, int):
            return Kind.INTEGER
        if isinstance(value, float):
            return Kind.FLOAT
        if isinstance(value, str):
            return classify_string(value)
        if isinstance(value, (bytes, bytearray)):
            return Kind.BLOB
        if isinstance(value, datetime.datetime):
            return Kind.DATETIME
        if isinstance(value, uuid.UUID):
            return Kind.UUID
        return None

    def infer_document(self, root_name: str, document: Any) -> FieldSpec:
        """Type a whole response body: an object, or an array of values.

        Objects and arrays of objects are registered under root_name itself.
        """
        if isinstance(document, dict):
            record = self.infer_object(root_name, document)
            return FieldSpec(root_name, Kind.RECORD, ref=record.name)

        if isinstance(document, list):
            if not document:
                self.diagnostics.warning(
                    f"Empty array returned for '{root_name}', element type unknown."
                    " Substituting an unknown list type."
                )
                return FieldSpec(root_name, Kind.UNKNOWN, is_list=True)
            element = self._infer(root_name, root_name, document[0], root_name)
            if element is None:
                raise InferenceError(
                    f"Unsupported array element in response for '{root_name}'."
                )
            return element.as_list()

        raise InferenceError(
            f"Response for '{root_name}' is neither a JSON object nor a JSON array."
        )

    def infer_response(self, route: Route, body: str | bytes) -> FieldSpec:
        """Parse a probed response body and type it as the route's return value."""
        try:
            document = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise InferenceError(
                f"Failed to derive data from route '{route.url_template}', invalid JSON response: {e}"
            ) from e
        return self.infer_document(route.returned_type_name, document)

    def infer_example(self, route: Route) -> TypeRecord:
        """Build the send type of a POST route from its example payload."""
        check_example(route)
        return self.infer_object(route.sent_type_name, route.example_request_payload)
