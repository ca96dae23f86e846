"""Tests for schema validation."""

import json

import pytest

from burrito.errors import SchemaError
from burrito.loader import load_raw_schema, load_schema
from burrito.schema import parse_schema


def _schema(routes=None, **overrides):
    data = {
        "name": "Demo",
        "root": "http://x/",
        "sections": [{"name": "Users", "routes": routes if routes is not None else [
            {"type": "GET", "route": "users", "returns": "User"},
        ]}],
    }
    data.update(overrides)
    return data


def _violations(data) -> list[str]:
    with pytest.raises(SchemaError) as exc:
        parse_schema(data)
    return exc.value.violations


class TestSchemaName:
    """Schema names must match ^[A-Za-z0-9_]+$."""

    @pytest.mark.parametrize("name", ["Demo", "demo_api", "API2", "_", "123"])
    def test_accepts_identifiers(self, name):
        assert parse_schema(_schema(name=name)).name == name

    @pytest.mark.parametrize("name", ["", "my-api", "my api", "a.b"])
    def test_rejects_others(self, name):
        assert any("schema name" in v for v in _violations(_schema(name=name)))

    def test_missing_top_level_property(self):
        data = _schema()
        del data["root"]
        assert any("Required schema property missing" in v for v in _violations(data))


class TestSchemaParsing:
    """Successful parsing and normalisation."""

    def test_root_normalized(self):
        assert parse_schema(_schema(root="http://x")).root_path == "http://x/"

    def test_route_fields(self):
        schema = parse_schema(_schema(routes=[{
            "type": "post", "route": "users/{id}", "validroute": "users/1",
            "returns": "User", "sends": "NewUser", "data": {"a": 1},
            "async": True, "desc": "Make one.", "method": "Make",
        }]))
        route = schema.sections[0].routes[0]
        assert route.http_method == "POST"
        assert route.sent_type_name == "NewUser"
        assert route.example_request_payload == {"a": 1}
        assert route.is_async is True
        assert route.description == "Make one."
        assert route.method_name == "MakeAsync"
        assert route.path_variables == ["id"]
        assert route.effective_url == "users/1"

    def test_empty_route_allowed(self):
        schema = parse_schema(_schema(routes=[{"type": "GET", "route": "", "returns": "Root"}]))
        assert schema.sections[0].routes[0].method_name == "GetRoot"

    def test_sections_keep_order(self):
        data = _schema()
        data["sections"].append({"name": "Posts", "routes": []})
        assert [s.name for s in parse_schema(data).sections] == ["Users", "Posts"]


class TestRouteValidation:
    """Per-route checks."""

    def test_duplicate_section_names(self):
        data = _schema()
        data["sections"].append({"name": "Users", "routes": []})
        assert any("Duplicate section name 'Users'" in v for v in _violations(data))

    def test_invalid_url_characters(self):
        routes = [{"type": "GET", "route": "users list", "returns": "User"}]
        assert any("invalid relative route" in v for v in _violations(_schema(routes=routes)))

    def test_missing_url(self):
        routes = [{"type": "GET", "returns": "User"}]
        assert any("no URL provided" in v for v in _violations(_schema(routes=routes)))

    def test_placeholder_requires_validroute(self):
        routes = [{"type": "GET", "route": "users/{id}", "returns": "User"}]
        assert any("validroute" in v for v in _violations(_schema(routes=routes)))

    def test_validroute_must_be_string(self):
        routes = [{"type": "GET", "route": "users/{id}", "validroute": 1, "returns": "User"}]
        assert any("'validroute' must be a string" in v for v in _violations(_schema(routes=routes)))

    def test_duplicate_path_variables(self):
        routes = [{"type": "GET", "route": "a/{id}/b/{id}", "validroute": "a/1/b/2", "returns": "T"}]
        assert any("duplicated names" in v for v in _violations(_schema(routes=routes)))

    def test_missing_returns(self):
        routes = [{"type": "GET", "route": "users"}]
        assert any("no name given for data returned" in v for v in _violations(_schema(routes=routes)))

    def test_invalid_returns(self):
        routes = [{"type": "GET", "route": "users", "returns": "User-1"}]
        assert any("invalid returned data name" in v for v in _violations(_schema(routes=routes)))

    def test_missing_method(self):
        routes = [{"route": "users", "returns": "User"}]
        assert any("no method type" in v for v in _violations(_schema(routes=routes)))

    def test_unsupported_method(self):
        routes = [{"type": "DELETE", "route": "users", "returns": "User"}]
        assert any("unsupported HTTP method" in v for v in _violations(_schema(routes=routes)))

    def test_post_requires_sends(self):
        routes = [{"type": "POST", "route": "users", "returns": "User", "data": {"a": 1}}]
        assert any("no send data type name" in v for v in _violations(_schema(routes=routes)))

    def test_post_requires_data(self):
        routes = [{"type": "POST", "route": "users", "returns": "User", "sends": "NewUser"}]
        assert any("no example POST data" in v for v in _violations(_schema(routes=routes)))

    def test_colliding_method_names(self):
        routes = [
            {"type": "GET", "route": "users", "returns": "User"},
            {"type": "GET", "route": "users/{id}", "validroute": "users/1", "returns": "User"},
        ]
        assert any("both generate method 'GetUsers'" in v for v in _violations(_schema(routes=routes)))

    def test_all_violations_reported(self):
        routes = [
            {"type": "GET", "route": "users"},
            {"type": "POST", "route": "users", "returns": "User"},
        ]
        violations = _violations(_schema(routes=routes, name="bad name"))
        assert len(violations) == 4

    def test_invalid_section_name(self):
        data = _schema()
        data["sections"][0]["name"] = "my section"
        assert any("invalid section name" in v for v in _violations(data))


class TestLoader:
    """Reading schema files from disk."""

    def test_load_schema(self, tmp_path, demo_schema):
        path = tmp_path / "demo.json"
        path.write_text(json.dumps(demo_schema))
        assert load_schema(path).name == "Demo"

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(SchemaError, match="invalid JSON"):
            load_raw_schema(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(SchemaError, match="Failed to load"):
            load_raw_schema(tmp_path / "nope.json")

    def test_top_level_must_be_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[]")
        with pytest.raises(SchemaError, match="must be a JSON object"):
            load_raw_schema(path)
