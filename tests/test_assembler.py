"""Tests for code model assembly."""

import pytest

from burrito.assembler import build_project, check_references
from burrito.diagnostics import Diagnostics
from burrito.errors import AssemblyError
from burrito.model import DATA_NAMESPACE, ROOT_NAMESPACE, ClassDef, GetMethod, PostMethod
from burrito.probe import ProbeResult, RouteKey
from burrito.errors import InferenceError
from burrito.records import FieldSpec, Kind
from burrito.schema import parse_schema
from conftest import ROOT


def _ok(body: bytes) -> ProbeResult:
    return ProbeResult(url=ROOT, body=body)


@pytest.fixture
def blog_probes() -> dict[RouteKey, ProbeResult]:
    return {
        RouteKey(0, 0): _ok(b'{"id": 1, "name": "a", "address": {"city": "c"}}'),
        RouteKey(0, 1): _ok(b'[{"id": 7, "title": "t"}]'),
        RouteKey(0, 2): _ok(b'{"id": 2}'),
        RouteKey(1, 0): _ok(b'{"ok": true}'),
    }


class TestBuildProject:
    """Sections become classes, routes become methods."""

    def test_structure(self, blog_schema, blog_probes):
        diagnostics = Diagnostics()
        project = build_project(parse_schema(blog_schema), blog_probes, diagnostics)
        root = project.classes(ROOT_NAMESPACE)
        assert [c.name for c in root] == ["Users", "Health", "_globals"]
        assert [m.name for m in root[0].methods] == ["GetUsers", "GetUsersPostsAsync", "PostUsers"]
        assert [c.name for c in project.classes(DATA_NAMESPACE)] == [
            "User_address", "User", "Post", "User_", "NewUser", "Status",
        ]
        assert len(diagnostics) == 0

    def test_method_metadata(self, blog_schema, blog_probes):
        project = build_project(parse_schema(blog_schema), blog_probes, Diagnostics())
        users = project.find_class(ROOT_NAMESPACE, "Users")
        get_posts, post_user = users.methods[1], users.methods[2]

        assert isinstance(get_posts, GetMethod)
        assert get_posts.route == "users/{id}/posts"
        assert get_posts.route_params == ("id",)
        assert get_posts.is_async
        assert get_posts.returns == FieldSpec("Post", Kind.RECORD, is_list=True, ref="Post")
        assert get_posts.summary == "GETs /users/{id}/posts/."

        assert isinstance(post_user, PostMethod)
        assert post_user.send_type == "NewUser"
        assert post_user.returns.ref == "User_"
        assert post_user.summary == "Create a user."

    def test_failed_probe_skips_route(self, blog_schema, blog_probes):
        blog_probes[RouteKey(0, 0)] = ProbeResult(url=ROOT, error=InferenceError("boom"))
        diagnostics = Diagnostics()
        project = build_project(parse_schema(blog_schema), blog_probes, diagnostics)
        users = project.find_class(ROOT_NAMESPACE, "Users")
        assert "GetUsers" not in [m.name for m in users.methods]
        assert len(diagnostics.errors) == 1
        assert "boom" in diagnostics.errors[0].message

    def test_unparseable_response_skips_route(self, blog_schema, blog_probes):
        blog_probes[RouteKey(1, 0)] = _ok(b"not json")
        diagnostics = Diagnostics()
        project = build_project(parse_schema(blog_schema), blog_probes, diagnostics)
        assert project.find_class(ROOT_NAMESPACE, "Health").methods == []
        assert project.find_class(DATA_NAMESPACE, "Status") is None
        assert len(diagnostics.errors) == 1

    def test_non_object_example_skips_route(self, blog_schema, blog_probes):
        blog_schema["sections"][0]["routes"][2]["data"] = [1, 2]
        diagnostics = Diagnostics()
        project = build_project(parse_schema(blog_schema), blog_probes, diagnostics)
        users = project.find_class(ROOT_NAMESPACE, "Users")
        assert [m.name for m in users.methods] == ["GetUsers", "GetUsersPostsAsync"]
        assert project.find_class(DATA_NAMESPACE, "User_") is None

    def test_missing_probe_is_a_defect(self, blog_schema, blog_probes):
        del blog_probes[RouteKey(1, 0)]
        with pytest.raises(AssemblyError):
            build_project(parse_schema(blog_schema), blog_probes, Diagnostics())


class TestCheckReferences:
    def test_missing_record(self, blog_schema, blog_probes):
        project = build_project(parse_schema(blog_schema), blog_probes, Diagnostics())
        project.add_class(DATA_NAMESPACE, ClassDef("Broken", fields=[
            FieldSpec("ghost", Kind.RECORD, ref="Ghost"),
        ]))
        with pytest.raises(AssemblyError, match="Ghost"):
            check_references(project)
