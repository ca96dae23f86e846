"""In-memory model of the client library to be generated.

A Project maps namespace names to ordered class lists. Records inferred
from responses live in the "Data" namespace; section classes and the
globals class live in the root namespace "@".
"""

from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass, field

from .errors import AssemblyError
from .naming import method_name
from .records import FieldSpec, Kind, TypeRecord, unique_name

DATA_NAMESPACE = "Data"
ROOT_NAMESPACE = "@"
GLOBALS_CLASS_NAME = "_globals"
ROOT_URL_CONSTANT = "ROOT_URL"


class HttpVerb(enum.Enum):
    GET = "GET"
    POST = "POST"


@dataclass(frozen=True)
class GetMethod:
    base_name: str
    route: str
    route_params: tuple[str, ...]
    returns: FieldSpec
    is_async: bool = False
    summary: str = ""

    verb = HttpVerb.GET

    @property
    def name(self) -> str:
        return method_name(self.base_name, self.is_async)

    def as_sync(self) -> GetMethod:
        return dataclasses.replace(self, is_async=False)


@dataclass(frozen=True)
class PostMethod:
    base_name: str
    route: str
    route_params: tuple[str, ...]
    returns: FieldSpec
    send_type: str
    is_async: bool = False
    summary: str = ""

    verb = HttpVerb.POST

    @property
    def name(self) -> str:
        return method_name(self.base_name, self.is_async)

    def as_sync(self) -> PostMethod:
        return dataclasses.replace(self, is_async=False)


MethodDef = GetMethod | PostMethod


@dataclass(frozen=True)
class StaticDef:
    name: str
    type_name: str
    value: str


@dataclass
class ClassDef:
    name: str
    fields: list[FieldSpec] = field(default_factory=list)
    methods: list[MethodDef] = field(default_factory=list)
    statics: list[StaticDef] = field(default_factory=list)

    @classmethod
    def from_record(cls, record: TypeRecord) -> ClassDef:
        return cls(name=record.name, fields=list(record.fields))


@dataclass
class Project:
    name: str
    root_url: str
    namespaces: dict[str, list[ClassDef]] = field(default_factory=dict)
    globals_class: ClassDef | None = None

    def add_namespace(self, name: str) -> list[ClassDef]:
        """Add an empty namespace. "@" is the root namespace."""
        if name in self.namespaces:
            raise ValueError(f"A namespace named '{name}' already exists.")
        self.namespaces[name] = []
        return self.namespaces[name]

    def add_class(self, namespace: str, cls: ClassDef) -> ClassDef:
        self.namespaces[namespace].append(cls)
        return cls

    def classes(self, namespace: str) -> list[ClassDef]:
        return self.namespaces.get(namespace, [])

    def find_class(self, namespace: str, name: str) -> ClassDef | None:
        for cls in self.classes(namespace):
            if cls.name == name:
                return cls
        return None

    def add_globals(self) -> ClassDef:
        """Inject the class holding the root URL constant into "@"."""
        self.globals_class = ClassDef(
            name=GLOBALS_CLASS_NAME,
            statics=[StaticDef(ROOT_URL_CONSTANT, "str", repr(self.root_url))],
        )
        return self.add_class(ROOT_NAMESPACE, self.globals_class)

    @property
    def class_count(self) -> int:
        return sum(len(classes) for classes in self.namespaces.values())


def resolve_collisions(
    project: Project,
    reserved: dict[str, set[str]] | None = None,
) -> dict[str, list[tuple[str, str]]]:
    """Make class names unique within each namespace.

    Classes are visited in declaration order; a class whose name is
    already taken (or reserved for the namespace) gets "_" appended until
    it is free. Returns the (old, new) renames per namespace.
    """
    reserved = reserved or {}
    renames: dict[str, list[tuple[str, str]]] = {}
    for namespace, classes in project.namespaces.items():
        seen: set[str] = set(reserved.get(namespace, ()))
        for cls in classes:
            new_name = unique_name(cls.name, seen)
            if new_name != cls.name:
                renames.setdefault(namespace, []).append((cls.name, new_name))
                cls.name = new_name
            seen.add(new_name)
    return renames


def _renamed(spec: FieldSpec, mapping: dict[str, str]) -> FieldSpec:
    if spec.kind is Kind.RECORD and spec.ref in mapping:
        return dataclasses.replace(spec, ref=mapping[spec.ref])
    return spec


def rename_records(project: Project, mapping: dict[str, str]) -> None:
    """Point every field and method at the new names of renamed records."""
    if not mapping:
        return
    for classes in project.namespaces.values():
        for cls in classes:
            cls.fields = [_renamed(spec, mapping) for spec in cls.fields]
            methods: list[MethodDef] = []
            for method in cls.methods:
                method = dataclasses.replace(method, returns=_renamed(method.returns, mapping))
                if isinstance(method, PostMethod) and method.send_type in mapping:
                    method = dataclasses.replace(method, send_type=mapping[method.send_type])
                methods.append(method)
            cls.methods = methods


def check_references(project: Project) -> None:
    """Every record a field or method points at must exist in "Data"."""
    known = {cls.name for cls in project.classes(DATA_NAMESPACE)}
    for namespace, classes in project.namespaces.items():
        for cls in classes:
            for spec in cls.fields:
                if spec.kind is Kind.RECORD and spec.ref not in known:
                    raise AssemblyError(
                        f"Field '{spec.name}' of {namespace}.{cls.name} references"
                        f" missing record '{spec.ref}'."
                    )
            for method in cls.methods:
                refs = [method.returns.ref] if method.returns.kind is Kind.RECORD else []
                if isinstance(method, PostMethod):
                    refs.append(method.send_type)
                for ref in refs:
                    if ref not in known:
                        raise AssemblyError(
                            f"Method {cls.name}.{method.name} references missing record '{ref}'."
                        )
