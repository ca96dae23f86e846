"""Render the code model to Python source and write it to disk.

Emission runs the final collision pass over the project, then renders
one module per class through the Jinja2 templates in templates/:

  <Project>/__init__.py        re-exports the root namespace
  <Project>/_api.py            httpx runtime used by every method
  <Project>/_globals.py        ROOT_URL constant
  <Project>/<Section>.py       one class per schema section
  <Project>/Data/<Record>.py   one dataclass per inferred record
"""

from __future__ import annotations

import ast
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jinja2

from .config import TEMPLATE_DIR, GeneratorOptions
from .diagnostics import Diagnostics
from .errors import AssemblyError
from .model import (
    DATA_NAMESPACE,
    ROOT_NAMESPACE,
    ClassDef,
    GetMethod,
    MethodDef,
    PostMethod,
    Project,
    check_references,
    rename_records,
    resolve_collisions,
)
from .naming import PATH_VARIABLE_RE, python_identifier
from .records import FieldSpec, Kind, unique_name

logger = logging.getLogger(__name__)

_DATA_QUALIFIER = DATA_NAMESPACE + "."

# Names bound at module level in every record module.
_RECORD_MODULE_GLOBALS = {"__init__", "_api", "datetime", "uuid", "dataclass", "Any"}

_SCALAR_ANNOTATIONS: dict[Kind, str] = {
    Kind.BOOLEAN: "bool",
    Kind.INTEGER: "int",
    Kind.FLOAT: "float",
    Kind.STRING: "str",
    Kind.DATETIME: "datetime.datetime",
    Kind.BLOB: "bytes",
    Kind.UUID: "uuid.UUID",
    Kind.UNKNOWN: "Any",
}

_SCALAR_PARSERS: dict[Kind, str] = {
    Kind.DATETIME: "_api.parse_datetime",
    Kind.BLOB: "_api.parse_blob",
    Kind.UUID: "_api.parse_uuid",
}


@dataclass(frozen=True)
class GeneratedFile:
    namespace: str
    class_name: str
    source: str

    @property
    def relative_path(self) -> Path:
        """Path inside the generated package. "@" is the package root."""
        if self.namespace == ROOT_NAMESPACE:
            return Path(f"{self.class_name}.py")
        return Path(self.namespace) / f"{self.class_name}.py"


@dataclass
class Manifest:
    project_name: str
    root_url: str
    files: list[GeneratedFile] = field(default_factory=list)
    support_files: list[GeneratedFile] = field(default_factory=list)

    def __getitem__(self, key: tuple[str, str]) -> str:
        namespace, class_name = key
        for f in self.files:
            if f.namespace == namespace and f.class_name == class_name:
                return f.source
        raise KeyError(key)

    def __contains__(self, key: object) -> bool:
        return any((f.namespace, f.class_name) == key for f in self.files)

    @property
    def file_count(self) -> int:
        return len(self.files)

    def all_files(self) -> list[GeneratedFile]:
        return self.files + self.support_files


def annotation(spec: FieldSpec, qualifier: str = "") -> str:
    """Python annotation for a field or return value.

    qualifier prefixes record names, e.g. "Data." inside section modules.
    """
    if spec.kind is Kind.RECORD:
        base = qualifier + python_identifier(spec.ref)
    else:
        base = _SCALAR_ANNOTATIONS[spec.kind]
    return f"list[{base}]" if spec.is_list else base


def parser_expr(spec: FieldSpec, qualifier: str = "") -> str:
    if spec.kind is Kind.RECORD:
        return f"{qualifier}{python_identifier(spec.ref)}.from_json"
    return _SCALAR_PARSERS.get(spec.kind, "None")


def decode_args(spec: FieldSpec, qualifier: str = "") -> list[str]:
    """Arguments after the raw value for _api.decode / _api.get / _api.post."""
    args = []
    parser = parser_expr(spec, qualifier)
    if parser != "None" or spec.is_list:
        args.append(parser)
    if spec.is_list:
        args.append("is_list=True")
    return args


def route_fstring(template: str, params: dict[str, str]) -> str:
    """Render a URL template as an f-string literal body.

    Placeholders become {param}; any other brace is escaped.
    """
    out = []
    pos = 0
    for match in PATH_VARIABLE_RE.finditer(template):
        out.append(template[pos:match.start()].replace("{", "{{").replace("}", "}}"))
        out.append("{" + params[match.group(1)] + "}")
        pos = match.end()
    out.append(template[pos:].replace("{", "{{").replace("}", "}}"))
    return 'f"' + "".join(out) + '"'


def docstring_text(text: str) -> str:
    text = " ".join(text.splitlines()).replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    if text.endswith('"'):
        text += " "
    return text


def _record_refs(specs: list[FieldSpec]) -> list[str]:
    refs: list[str] = []
    for spec in specs:
        if spec.kind is Kind.RECORD:
            name = python_identifier(spec.ref)
            if name not in refs:
                refs.append(name)
    return refs


class Emitter:
    """Renders a Project into a Manifest of Python modules."""

    def __init__(
        self,
        options: GeneratorOptions | None = None,
        diagnostics: Diagnostics | None = None,
        template_dir: Path = TEMPLATE_DIR,
    ) -> None:
        self.options = options or GeneratorOptions()
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self.env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(str(template_dir)),
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=jinja2.StrictUndefined,
        )

    def _render(self, template_name: str, **context: Any) -> str:
        return self.env.get_template(template_name).render(**context)

    def _checked(self, namespace: str, class_name: str, source: str) -> GeneratedFile:
        try:
            ast.parse(source)
        except SyntaxError as e:
            self.diagnostics.warning(
                f"Generated module {namespace}.{class_name} is not valid Python: {e.msg}"
                f" (line {e.lineno})."
            )
        return GeneratedFile(namespace, class_name, source)

    # -- records -----------------------------------------------------------

    def record_context(self, cls: ClassDef) -> dict[str, Any]:
        used: set[str] = {"from_json", "to_json"}
        fields = []
        for spec in cls.fields:
            attr = unique_name(
                python_identifier(spec.name, snake_case=self.options.follow_naming_conventions),
                used,
            )
            used.add(attr)
            value = f"data.get({spec.name!r})"
            fields.append({
                "attr": attr,
                "key": repr(spec.name),
                "annotation": annotation(spec),
                "decode": "_api.decode(" + ", ".join([value, *decode_args(spec)]) + ")",
            })
        return {
            "name": python_identifier(cls.name),
            "fields": fields,
            "imports": _record_refs(cls.fields),
            "uses_datetime": any(f.kind is Kind.DATETIME for f in cls.fields),
            "uses_uuid": any(f.kind is Kind.UUID for f in cls.fields),
        }

    # -- sections ----------------------------------------------------------

    def expand_methods(self, cls: ClassDef) -> list[MethodDef]:
        """Methods in render order, with sync twins ahead of async methods."""
        declared = {m.name for m in cls.methods}
        expanded: list[MethodDef] = []
        for method in cls.methods:
            if method.is_async and self.options.generate_async_and_sync:
                twin = method.as_sync()
                if twin.name in declared:
                    self.diagnostics.warning(
                        f"Not generating a sync twin of {cls.name}.{method.name},"
                        f" {twin.name} is already declared."
                    )
                else:
                    expanded.append(twin)
            expanded.append(method)
        return expanded

    def method_context(self, method: MethodDef, globals_name: str) -> dict[str, Any]:
        # Parameters shadow the section module's globals inside the method body.
        taken = {DATA_NAMESPACE, "_api", globals_name}
        params: list[str] = []
        args: list[str] = []

        match method:
            case GetMethod():
                call = "get"
            case PostMethod(send_type=send_type):
                call = "post"
                params.append(f"post_data: {_DATA_QUALIFIER}{python_identifier(send_type)}")
                args.append("post_data")
                taken.add("post_data")

        param_names: dict[str, str] = {}
        for p in method.route_params:
            param_names[p] = unique_name(python_identifier(p), taken)
            taken.add(param_names[p])
        params.extend(f'{name}: str = ""' for name in param_names.values())
        args.insert(0, f"{globals_name}.ROOT_URL + {route_fstring(method.route, param_names)}")
        args.extend(decode_args(method.returns, _DATA_QUALIFIER))
        if method.is_async:
            call += "_async"

        return {
            "name": python_identifier(method.name),
            "is_async": method.is_async,
            "params": params,
            "returns": annotation(method.returns, _DATA_QUALIFIER),
            "summary": docstring_text(method.summary),
            "call": call,
            "args": args,
        }

    def section_context(self, cls: ClassDef, globals_name: str) -> dict[str, Any]:
        methods = []
        seen: set[str] = set()
        uses_data = uses_any = False
        for method in self.expand_methods(cls):
            ctx = self.method_context(method, globals_name)
            if ctx["name"] in seen:
                self.diagnostics.warning(
                    f"Method {cls.name}.{ctx['name']} is generated twice; keeping the first."
                )
                continue
            seen.add(ctx["name"])
            methods.append(ctx)
            uses_data |= method.returns.kind is Kind.RECORD or isinstance(method, PostMethod)
            uses_any |= method.returns.kind is Kind.UNKNOWN
        return {
            "name": python_identifier(cls.name),
            "methods": methods,
            "uses_data": uses_data,
            "uses_any": uses_any,
            "globals_name": globals_name,
        }

    # -- project -----------------------------------------------------------

    def emit(self, project: Project) -> Manifest:
        """Resolve name collisions and render every class in the project."""
        original = {id(cls): cls.name for cls in project.classes(DATA_NAMESPACE)}
        for classes in project.namespaces.values():
            for cls in classes:
                cls.name = python_identifier(cls.name)
        reserved = {
            ROOT_NAMESPACE: {"__init__", "_api", *(ns for ns in project.namespaces if ns != ROOT_NAMESPACE)},
            DATA_NAMESPACE: set(_RECORD_MODULE_GLOBALS),
        }
        for namespace, renamed in resolve_collisions(project, reserved).items():
            for old, new in renamed:
                logger.info("Renamed %s.%s to %s to avoid a collision", namespace, old, new)
        rename_records(project, {
            original[id(cls)]: cls.name
            for cls in project.classes(DATA_NAMESPACE)
            if original[id(cls)] != cls.name
        })
        check_references(project)

        if project.globals_class is None:
            raise AssemblyError("Project has no globals class.")
        globals_name = python_identifier(project.globals_class.name)

        manifest = Manifest(project_name=project.name, root_url=project.root_url)
        for namespace, classes in project.namespaces.items():
            for cls in classes:
                class_name = python_identifier(cls.name)
                if cls is project.globals_class:
                    source = self._render("globals.py.j2", name=class_name, statics=cls.statics)
                elif namespace == DATA_NAMESPACE:
                    source = self._render("record.py.j2", **self.record_context(cls))
                else:
                    source = self._render(
                        "section.py.j2", **self.section_context(cls, globals_name)
                    )
                manifest.files.append(self._checked(namespace, class_name, source))

        manifest.support_files.append(self._checked(
            ROOT_NAMESPACE, "_api", self._render("api.py.j2", project_name=project.name),
        ))
        for namespace, classes in project.namespaces.items():
            names = [python_identifier(cls.name) for cls in classes]
            title = project.name if namespace == ROOT_NAMESPACE else f"{project.name} {namespace}"
            manifest.support_files.append(self._checked(
                namespace, "__init__", self._render("init.py.j2", title=title, classes=names),
            ))

        logger.info("Rendered %d classes for %s", manifest.file_count, project.name)
        return manifest


def generate(
    project: Project,
    options: GeneratorOptions | None = None,
    diagnostics: Diagnostics | None = None,
) -> Manifest:
    """Render a project with a default Emitter."""
    return Emitter(options, diagnostics).emit(project)


def write_manifest(manifest: Manifest, output_dir: Path | str) -> list[Path]:
    """Write the generated package under output_dir/<project name>/."""
    package_dir = Path(output_dir) / manifest.project_name
    written: list[Path] = []
    for f in manifest.all_files():
        path = package_dir / f.relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f.source, encoding="utf-8")
        written.append(path)
    logger.info("Wrote %d files to %s", len(written), package_dir)
    return written
