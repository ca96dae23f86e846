"""Inferred record types and the registry that keeps their names unique."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Container, Iterator

COLLISION_SUFFIX = "_"


class Kind(enum.Enum):
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    STRING = "string"
    DATETIME = "datetime"
    BLOB = "blob"
    UUID = "uuid"
    RECORD = "record"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class FieldSpec:
    """One typed field. `ref` names the record when kind is RECORD."""

    name: str
    kind: Kind
    is_list: bool = False
    ref: str | None = None

    def as_list(self) -> FieldSpec:
        return FieldSpec(self.name, self.kind, True, self.ref)


@dataclass(frozen=True)
class TypeRecord:
    name: str
    fields: tuple[FieldSpec, ...] = ()

    def shape(self) -> list[tuple[str, Kind, bool]]:
        """Field names and kinds, ignoring generated record names."""
        return [(f.name, f.kind, f.is_list) for f in self.fields]


def unique_name(name: str, taken: Container[str]) -> str:
    """Append the collision suffix until name is not in taken."""
    while name in taken:
        name += COLLISION_SUFFIX
    return name


class TypeRegistry:
    """Run-scoped store of inferred records, in registration order."""

    def __init__(self) -> None:
        self._records: dict[str, TypeRecord] = {}

    def register(self, name: str, fields: list[FieldSpec] | tuple[FieldSpec, ...]) -> TypeRecord:
        """Create a record under the first free variant of name."""
        record = TypeRecord(unique_name(name, self._records), tuple(fields))
        self._records[record.name] = record
        return record

    def get(self, name: str) -> TypeRecord | None:
        return self._records.get(name)

    def __getitem__(self, name: str) -> TypeRecord:
        return self._records[name]

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def __iter__(self) -> Iterator[TypeRecord]:
        return iter(self._records.values())

    def __len__(self) -> int:
        return len(self._records)

    def names(self) -> list[str]:
        return list(self._records)
