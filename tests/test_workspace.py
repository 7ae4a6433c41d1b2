"""Tests for reqtree.workspace -- the tree + servers aggregate and its files."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
import yaml

from reqtree.client.transport import HttpxTransport
from reqtree.exceptions import (
    AlreadyExistsError,
    ConfigError,
    ParseError,
    ReqtreeError,
    RequestBuildError,
    ValidationError,
)
from reqtree.models import (
    ApiKeyAuth,
    HTTPMethod,
    HttpBearerAuth,
    KeyValueRow,
    NoAuth,
    RequestContent,
    TreeNode,
)
from reqtree.tree import MoveNode, Rename
from reqtree.workspace import (
    Workspace,
    ensure_openapi_extension,
    export_to_file,
    load_workspace,
    read_text,
    save_workspace,
    write_text,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _mock_transport(handler) -> HttpxTransport:
    return HttpxTransport(client=httpx.Client(transport=httpx.MockTransport(handler)))


@pytest.fixture
def workspace(sample_tree: TreeNode) -> Workspace:
    ws = Workspace(root=sample_tree)
    ws.add_server("https://api.test")
    return ws


# ---------------------------------------------------------------------------
# save_request
# ---------------------------------------------------------------------------


class TestSaveRequest:
    def test_untagged(self) -> None:
        ws = Workspace()
        path = ws.save_request(RequestContent(url="users"))
        assert path == (0,)
        leaf = ws.root.children[0]
        assert leaf.label == "/users"
        assert leaf.content.url == "/users"

    def test_query_kept_in_url_not_label(self) -> None:
        ws = Workspace()
        ws.save_request(RequestContent(url="/search?q=1"))
        leaf = ws.root.children[0]
        assert leaf.label == "/search"
        assert leaf.content.url == "/search?q=1"

    def test_blank_url(self) -> None:
        with pytest.raises(ValidationError, match="Invalid path"):
            Workspace().save_request(RequestContent(url="  "))

    def test_query_only_url(self) -> None:
        with pytest.raises(ValidationError, match="Invalid path"):
            Workspace().save_request(RequestContent(url="?q=1"))

    def test_tag_creates_folder(self) -> None:
        ws = Workspace()
        ws.save_request(RequestContent(url="/health"))
        first = ws.save_request(RequestContent(url="/pets"), tag="pets")
        second = ws.save_request(RequestContent(url="/pets/{id}"), tag=" pets ")
        assert first == (1, 0)
        assert second == (1, 1)
        folder = ws.root.children[1]
        assert folder.is_folder
        assert folder.label == "pets"
        assert [child.label for child in folder.children] == ["/pets", "/pets/{id}"]

    def test_tag_reuses_existing_folder(self, workspace: Workspace) -> None:
        path = workspace.save_request(RequestContent(url="/admin/users"), tag="admin")
        assert path == (1, 1)
        assert len(workspace.root.children) == 3

    def test_duplicate_label_rejected(self, workspace: Workspace) -> None:
        with pytest.raises(ValidationError, match=r"request already exists: /users/\{id\}"):
            workspace.save_request(RequestContent(url="/users/{id}"))

    def test_duplicate_label_rejected_when_other_node_selected(self, workspace: Workspace) -> None:
        with pytest.raises(ValidationError, match="already exists"):
            workspace.save_request(RequestContent(url="/health"), selected_path=(0, 0))

    def test_selected_duplicate_replaced(self, workspace: Workspace) -> None:
        content = RequestContent(method=HTTPMethod.HEAD, url="/health")
        path = workspace.save_request(content, selected_path=[2])
        assert path == (2,)
        assert workspace.root.children[2].content.method == HTTPMethod.HEAD
        assert len(workspace.root.children) == 3

    def test_selected_folder_supplies_tag(self, workspace: Workspace) -> None:
        path = workspace.save_request(RequestContent(url="/users/me"), selected_path=(0,))
        assert path == (0, 3)
        assert workspace.root.children[0].children[3].label == "/users/me"

    def test_selected_leaf_supplies_parent_folder(self, workspace: Workspace) -> None:
        path = workspace.save_request(RequestContent(url="/admin/jobs"), selected_path=(1, 0))
        assert path == (1, 1)

    def test_selected_top_level_leaf_saves_at_top_level(self, workspace: Workspace) -> None:
        path = workspace.save_request(RequestContent(url="/ready"), selected_path=(2,))
        assert path == (3,)

    def test_explicit_tag_beats_selection(self, workspace: Workspace) -> None:
        path = workspace.save_request(RequestContent(url="/jobs"), tag="ops", selected_path=(0,))
        assert path == (3, 0)
        assert workspace.root.children[3].label == "ops"

    def test_path_rows_synced(self) -> None:
        ws = Workspace()
        content = RequestContent(
            url="/u/{id}/{tab}",
            path_params=[KeyValueRow(key="stale", value="x"), KeyValueRow(key="id", value="7")],
        )
        ws.save_request(content)
        rows = ws.root.children[0].content.path_params
        assert [(r.key, r.value) for r in rows] == [("id", "7"), ("tab", "")]
        # The caller's object is not modified.
        assert content.path_params[0].key == "stale"


# ---------------------------------------------------------------------------
# Tree dispatch
# ---------------------------------------------------------------------------


class TestDispatch:
    def test_rename(self, workspace: Workspace) -> None:
        assert workspace.dispatch(Rename((0,), "people")) is None
        assert workspace.root.children[0].label == "people"

    def test_move_returns_path(self, workspace: Workspace) -> None:
        assert workspace.dispatch(MoveNode((2,), (1,))) == (1, 1)


# ---------------------------------------------------------------------------
# Servers
# ---------------------------------------------------------------------------


class TestServers:
    def test_add_normalises(self) -> None:
        ws = Workspace()
        assert ws.add_server(" https://api.test/v1/ ") == 0
        assert ws.servers[0].base_url == "https://api.test/v1"
        assert isinstance(ws.servers[0].auth, NoAuth)

    def test_add_duplicate_returns_existing(self, workspace: Workspace) -> None:
        assert workspace.add_server("https://api.test/") == 0
        assert len(workspace.servers) == 1

    def test_add_invalid(self) -> None:
        with pytest.raises(RequestBuildError, match="invalid base URL"):
            Workspace().add_server("localhost:8080")

    def test_add_with_auth(self) -> None:
        ws = Workspace()
        ws.add_server("https://a.test", ApiKeyAuth(name="k"))
        assert ws.servers[0].auth == ApiKeyAuth(name="k")

    def test_remove(self, workspace: Workspace) -> None:
        removed = workspace.remove_server(0)
        assert removed.base_url == "https://api.test"
        assert workspace.servers == []

    def test_remove_out_of_range(self, workspace: Workspace) -> None:
        with pytest.raises(ValidationError, match="No server at index 3"):
            workspace.remove_server(3)

    def test_update_auth(self, workspace: Workspace) -> None:
        workspace.update_auth(0, HttpBearerAuth(token="t"))
        assert workspace.servers[0].auth == HttpBearerAuth(token="t")


# ---------------------------------------------------------------------------
# Import / export
# ---------------------------------------------------------------------------


class TestImportExport:
    def test_import_replaces_everything(self, workspace: Workspace, petstore_yaml: str) -> None:
        workspace.import_text(petstore_yaml)
        assert workspace.root.label == "Petstore"
        assert [s.base_url for s in workspace.servers] == ["https://petstore.example.com/v1"]

    def test_failed_import_changes_nothing(self, workspace: Workspace) -> None:
        before = workspace.model_copy(deep=True)
        with pytest.raises(ParseError):
            workspace.import_text("[1, 2, 3]")
        assert workspace == before

    def test_export_text(self, workspace: Workspace) -> None:
        document = yaml.safe_load(workspace.export_text())
        assert document["info"]["title"] == "Sample API"
        assert set(document["paths"]) == {"/users", "/users/{id}", "/admin/cache", "/health"}

    def test_export_empty(self) -> None:
        with pytest.raises(ValidationError):
            Workspace().export_text()


# ---------------------------------------------------------------------------
# send
# ---------------------------------------------------------------------------


class TestSend:
    def test_response_stored_on_leaf(self, workspace: Workspace) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=str(request.url))

        with _mock_transport(handler) as transport:
            snapshot = workspace.send((0, 0), 0, transport)

        assert snapshot.data == "https://api.test/users?page=1"
        assert workspace.root.children[0].children[0].content.response == snapshot

    def test_bearer_refresh_persists_on_server(self, workspace: Workspace) -> None:
        workspace.update_auth(0, HttpBearerAuth(token="old", auto_update=True, token_path="$.data.token"))

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": {"token": "new"}})

        with _mock_transport(handler) as transport:
            workspace.send((2,), 0, transport)
        assert workspace.servers[0].auth.token == "new"

    def test_not_a_leaf(self, workspace: Workspace) -> None:
        with _mock_transport(lambda request: httpx.Response(200)) as transport:
            with pytest.raises(ValidationError, match="No request at path 0"):
                workspace.send((0,), 0, transport)

    def test_bad_server_index(self, workspace: Workspace) -> None:
        with _mock_transport(lambda request: httpx.Response(200)) as transport:
            with pytest.raises(ValidationError, match="No server at index 5"):
                workspace.send((2,), 5, transport)

    def test_no_server_selected(self, workspace: Workspace) -> None:
        with _mock_transport(lambda request: httpx.Response(200)) as transport:
            with pytest.raises(RequestBuildError, match="select a server"):
                workspace.send((2,), None, transport)


# ---------------------------------------------------------------------------
# Persistence and files
# ---------------------------------------------------------------------------


class TestPersistence:
    def test_round_trip(self, workspace: Workspace, tmp_path: Path) -> None:
        workspace.update_auth(0, ApiKeyAuth(name="X-Key", value="v"))
        path = tmp_path / "nested" / "ws.json"
        save_workspace(workspace, path)
        assert load_workspace(path) == workspace

    def test_file_is_json(self, workspace: Workspace, tmp_path: Path) -> None:
        path = tmp_path / "ws.json"
        save_workspace(workspace, path)
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["servers"][0]["auth"] == {"type": "none"}

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        ws = load_workspace(tmp_path / "missing.json")
        assert ws.root.children == []
        assert ws.servers == []

    def test_invalid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "ws.json"
        path.write_text("{broken", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid workspace"):
            load_workspace(path)

    def test_wrong_shape(self, tmp_path: Path) -> None:
        path = tmp_path / "ws.json"
        path.write_text('{"servers": [{"auth": {"type": "none"}}]}', encoding="utf-8")
        with pytest.raises(ConfigError):
            load_workspace(path)


class TestFiles:
    def test_read_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ReqtreeError, match="Cannot read"):
            read_text(tmp_path / "missing.yaml")

    def test_write_and_read(self, tmp_path: Path) -> None:
        path = tmp_path / "a.txt"
        write_text(path, "héllo")
        assert read_text(path) == "héllo"

    def test_create_new_refuses_existing(self, tmp_path: Path) -> None:
        path = tmp_path / "a.txt"
        path.write_text("keep", encoding="utf-8")
        with pytest.raises(AlreadyExistsError):
            write_text(path, "replace", create_new=True)
        assert path.read_text(encoding="utf-8") == "keep"

    @pytest.mark.parametrize(
        ("name", "expected"),
        [("api", "api.yaml"), ("api.yml", "api.yml"), ("api.JSON", "api.JSON"), ("api.v2", "api.v2.yaml")],
    )
    def test_ensure_openapi_extension(self, tmp_path: Path, name: str, expected: str) -> None:
        assert ensure_openapi_extension(tmp_path / name).name == expected

    def test_export_to_file(self, workspace: Workspace, tmp_path: Path) -> None:
        target = export_to_file(workspace, tmp_path / "api")
        assert target == tmp_path / "api.yaml"
        assert yaml.safe_load(target.read_text(encoding="utf-8"))["openapi"] == "3.0.3"

    def test_export_refuses_overwrite(self, workspace: Workspace, tmp_path: Path) -> None:
        target = tmp_path / "api.yaml"
        target.write_text("old", encoding="utf-8")
        with pytest.raises(AlreadyExistsError):
            export_to_file(workspace, target)
        export_to_file(workspace, target, overwrite=True)
        assert target.read_text(encoding="utf-8") != "old"

    def test_empty_export_writes_nothing(self, tmp_path: Path) -> None:
        with pytest.raises(ValidationError):
            export_to_file(Workspace(), tmp_path / "api.yaml")
        assert not (tmp_path / "api.yaml").exists()
