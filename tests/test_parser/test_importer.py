"""Tests for reqtree.parser.importer -- OpenAPI document to request tree."""

from __future__ import annotations

import json
from typing import Any

import pytest

from reqtree.exceptions import ParseError
from reqtree.models import (
    ApiKeyAuth,
    ApiKeyLocation,
    HTTPMethod,
    HttpBasicAuth,
    HttpBearerAuth,
    NoAuth,
    TreeNode,
)
from reqtree.parser.importer import (
    DEFAULT_TITLE,
    FALLBACK_SERVER_URL,
    build_tree_from_openapi,
    import_openapi,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _doc(paths: dict[str, Any], **extra: Any) -> dict[str, Any]:
    return {"openapi": "3.0.3", "info": {"title": "T", "version": "1"}, "paths": paths, **extra}


def _only_leaf(root: TreeNode) -> TreeNode:
    assert len(root.children) == 1
    leaf = root.children[0]
    assert leaf.content is not None
    return leaf


def _rows(rows) -> list[tuple[str, str]]:
    return [(row.key, row.value) for row in rows]


# ---------------------------------------------------------------------------
# Petstore fixture
# ---------------------------------------------------------------------------


class TestPetstoreImport:
    @pytest.fixture
    def result(self, petstore_yaml: str):
        return import_openapi(petstore_yaml)

    def test_root(self, result) -> None:
        assert result.root.label == "Petstore"
        assert result.root.expanded is True

    def test_folders_first_then_untagged(self, result) -> None:
        assert [child.label for child in result.root.children] == ["pets", "store", "/health"]
        assert result.root.children[0].is_folder
        assert result.root.children[0].expanded is True
        assert result.root.children[2].is_leaf

    def test_methods_in_canonical_order(self, result) -> None:
        pets = result.root.children[0]
        assert [(leaf.label, leaf.content.method) for leaf in pets.children] == [
            ("/pets", HTTPMethod.GET),
            ("/pets", HTTPMethod.POST),
            ("/pets/{petId}", HTTPMethod.GET),
            ("/pets/{petId}", HTTPMethod.DELETE),
        ]

    def test_parameters_become_rows(self, result) -> None:
        list_pets = result.root.children[0].children[0].content
        assert list_pets.url == "/pets"
        assert _rows(list_pets.query_params) == [("limit", "20")]
        assert _rows(list_pets.headers) == [("X-Trace-Id", "abc-123")]
        assert list_pets.body == ""

    def test_synthesised_json_body(self, result) -> None:
        create_pet = result.root.children[0].children[1].content
        assert create_pet.body == json.dumps({"name": "", "tag": ""}, indent=2)
        assert _rows(create_pet.headers) == [("Content-Type", "application/json")]

    def test_explicit_media_example(self, result) -> None:
        order = result.root.children[1].children[0].content
        assert json.loads(order.body) == {"petId": 1, "quantity": 2}

    def test_path_rows_seeded_from_placeholders(self, result) -> None:
        show_pet = result.root.children[0].children[2].content
        assert _rows(show_pet.path_params) == [("petId", "")]
        assert show_pet.path_params[0].enabled is True

    def test_servers_take_default_security(self, result) -> None:
        assert len(result.servers) == 1
        server = result.servers[0]
        assert server.base_url == "https://petstore.example.com/v1"
        assert isinstance(server.auth, HttpBearerAuth)
        assert server.auth.token == ""


# ---------------------------------------------------------------------------
# Document-level edge cases
# ---------------------------------------------------------------------------


class TestDocumentEdgeCases:
    def test_title_fallback(self) -> None:
        result = build_tree_from_openapi({"openapi": "3.0.3", "paths": {}})
        assert result.root.label == DEFAULT_TITLE
        assert result.root.children == []

    def test_fallback_server_when_paths_exist(self) -> None:
        result = build_tree_from_openapi(_doc({"/ping": {"get": {}}}))
        assert [s.base_url for s in result.servers] == [FALLBACK_SERVER_URL]

    def test_no_servers_without_paths(self) -> None:
        assert build_tree_from_openapi(_doc({})).servers == []

    def test_missing_openapi_field_still_imports(self) -> None:
        result = build_tree_from_openapi({"paths": {"/ping": {"get": {}}}})
        assert _only_leaf(result.root).label == "/ping"

    def test_path_without_leading_slash(self) -> None:
        result = build_tree_from_openapi(_doc({"ping": {"get": {}}}))
        assert _only_leaf(result.root).content.url == "/ping"

    def test_unparseable_text(self) -> None:
        with pytest.raises(ParseError):
            import_openapi("- not\n- a\n- mapping\n")

    def test_strict_requires_openapi_3(self) -> None:
        with pytest.raises(ParseError, match="Missing 'openapi'"):
            build_tree_from_openapi({"paths": {"/ping": {"get": {}}}}, strict=True)
        with pytest.raises(ParseError, match="Unsupported OpenAPI version: 2.0"):
            import_openapi('{"openapi": "2.0", "paths": {}}', strict=True)

    def test_strict_accepts_openapi_3(self) -> None:
        result = build_tree_from_openapi(_doc({"/ping": {"get": {}}}), strict=True)
        assert _only_leaf(result.root).label == "/ping"

    def test_ignores_non_operation_keys(self) -> None:
        paths = {"/ping": {"summary": "s", "get": {}, "x-internal": True}}
        result = build_tree_from_openapi(_doc(paths))
        assert _only_leaf(result.root).content.method == HTTPMethod.GET

    def test_referenced_path_item(self) -> None:
        document = _doc(
            {"/ping": {"$ref": "#/components/pathItems/Ping"}},
            components={"pathItems": {"Ping": {"head": {}}}},
        )
        result = build_tree_from_openapi(document)
        assert _only_leaf(result.root).content.method == HTTPMethod.HEAD


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


class TestOperations:
    def test_operation_parameter_overrides_path_level(self) -> None:
        paths = {
            "/items": {
                "parameters": [
                    {"name": "limit", "in": "query", "example": 10},
                    {"name": "X-Tenant", "in": "header", "example": "acme"},
                ],
                "get": {"parameters": [{"name": "limit", "in": "query", "example": 50}]},
            }
        }
        content = _only_leaf(build_tree_from_openapi(_doc(paths)).root).content
        assert _rows(content.query_params) == [("limit", "50")]
        assert _rows(content.headers) == [("X-Tenant", "acme")]

    def test_cookie_and_path_params_not_rows(self) -> None:
        paths = {
            "/items/{id}": {
                "get": {
                    "parameters": [
                        {"name": "id", "in": "path", "required": True},
                        {"name": "session", "in": "cookie"},
                    ]
                }
            }
        }
        content = _only_leaf(build_tree_from_openapi(_doc(paths)).root).content
        assert content.query_params == []
        assert content.headers == []
        assert _rows(content.path_params) == [("id", "")]

    def test_json_media_preferred(self) -> None:
        body = {
            "content": {
                "text/plain": {"example": "plain"},
                "application/json": {"example": {"a": 1}},
            }
        }
        paths = {"/x": {"post": {"requestBody": body}}}
        content = _only_leaf(build_tree_from_openapi(_doc(paths)).root).content
        assert json.loads(content.body) == {"a": 1}
        assert _rows(content.headers) == [("Content-Type", "application/json")]

    def test_first_media_when_no_json(self) -> None:
        body = {"content": {"text/plain": {"example": "hello"}}}
        paths = {"/x": {"put": {"requestBody": body}}}
        content = _only_leaf(build_tree_from_openapi(_doc(paths)).root).content
        assert content.body == "hello"
        assert _rows(content.headers) == [("Content-Type", "text/plain")]

    def test_media_type_replaces_content_type_parameter(self) -> None:
        paths = {
            "/x": {
                "post": {
                    "parameters": [{"name": "content-type", "in": "header", "example": "x/y"}],
                    "requestBody": {"content": {"application/json": {"example": {}}}},
                }
            }
        }
        content = _only_leaf(build_tree_from_openapi(_doc(paths)).root).content
        assert _rows(content.headers) == [("content-type", "application/json")]

    def test_referenced_request_body(self) -> None:
        document = _doc(
            {"/x": {"post": {"requestBody": {"$ref": "#/components/requestBodies/B"}}}},
            components={
                "requestBodies": {
                    "B": {"content": {"application/json": {"schema": {"type": "array", "items": {"type": "string"}}}}}
                }
            },
        )
        content = _only_leaf(build_tree_from_openapi(document).root).content
        assert json.loads(content.body) == [""]

    def test_broken_refs_do_not_abort(self) -> None:
        paths = {
            "/x": {
                "post": {
                    "parameters": [{"$ref": "#/components/parameters/Missing"}],
                    "requestBody": {
                        "content": {"application/json": {"schema": {"$ref": "#/nowhere"}}}
                    },
                }
            }
        }
        content = _only_leaf(build_tree_from_openapi(_doc(paths)).root).content
        assert content.body == "null"

    def test_folders_sorted_by_tag(self) -> None:
        paths = {
            "/b": {"get": {"tags": ["zeta"]}},
            "/a": {"get": {"tags": ["alpha", "zeta"]}},
        }
        root = build_tree_from_openapi(_doc(paths)).root
        assert [child.label for child in root.children] == ["alpha", "zeta"]


# ---------------------------------------------------------------------------
# Servers and auth
# ---------------------------------------------------------------------------


class TestServerAuth:
    def test_extension_wins_over_security(self) -> None:
        document = _doc(
            {},
            servers=[
                {
                    "url": "https://a.test",
                    "x-reqtree-auth": {"type": "http_basic", "username": "u", "password": "p"},
                },
                {"url": "https://b.test"},
            ],
            security=[{"key": []}],
            components={"securitySchemes": {"key": {"type": "apiKey", "name": "X-Key", "in": "header"}}},
        )
        servers = build_tree_from_openapi(document).servers
        assert servers[0].auth == HttpBasicAuth(username="u", password="p")
        assert servers[1].auth == ApiKeyAuth(name="X-Key", location=ApiKeyLocation.HEADER)

    def test_invalid_extension_falls_back(self) -> None:
        document = _doc({}, servers=[{"url": "https://a.test", "x-reqtree-auth": {"type": "magic"}}])
        assert isinstance(build_tree_from_openapi(document).servers[0].auth, NoAuth)

    def test_only_first_requirement_used(self) -> None:
        document = _doc(
            {},
            servers=[{"url": "https://a.test"}],
            security=[{"basic": [], "key": []}, {"key": []}],
            components={
                "securitySchemes": {
                    "basic": {"type": "http", "scheme": "basic"},
                    "key": {"type": "apiKey", "name": "k", "in": "query"},
                }
            },
        )
        assert isinstance(build_tree_from_openapi(document).servers[0].auth, HttpBasicAuth)

    def test_undeclared_scheme_is_no_auth(self) -> None:
        document = _doc({}, servers=[{"url": "https://a.test"}], security=[{"ghost": []}])
        assert isinstance(build_tree_from_openapi(document).servers[0].auth, NoAuth)

    def test_servers_without_url_skipped(self) -> None:
        document = _doc({}, servers=[{"description": "no url"}, {"url": " https://a.test "}])
        assert [s.base_url for s in build_tree_from_openapi(document).servers] == ["https://a.test"]
