"""The workspace aggregate: one collection tree plus its server list.

A :class:`Workspace` owns the root :class:`~reqtree.models.TreeNode` and
the :class:`~reqtree.models.ServerEntry` list. All edits go through its
methods, one at a time, so the tree and the servers never disagree:

* tree edits are :mod:`reqtree.tree` actions applied by :meth:`Workspace.dispatch`;
* :meth:`Workspace.save_request` files a request under its path label;
* :meth:`Workspace.import_text` / :meth:`Workspace.export_text` exchange
  the whole aggregate with an OpenAPI document;
* :meth:`Workspace.send` runs a leaf and stores the response on it.

Workspaces persist as JSON (:func:`load_workspace` / :func:`save_workspace`).
:func:`read_text`, :func:`write_text` and :func:`export_to_file` are the
file-system side of import and export.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path as FilePath
from typing import Optional, Sequence

from pydantic import BaseModel, Field

from reqtree.auth.manager import AuthManager
from reqtree.client.sender import send_request
from reqtree.client.transport import Transport
from reqtree.config import atomic_write
from reqtree.exceptions import (
    AlreadyExistsError,
    ConfigError,
    ReqtreeError,
    RequestBuildError,
    ValidationError,
)
from reqtree.exporter import export_openapi
from reqtree.models import (
    AuthDescriptor,
    NoAuth,
    Path,
    RequestContent,
    ResponseSnapshot,
    ServerEntry,
    TreeNode,
)
from reqtree.parser.importer import import_openapi
from reqtree.tree import (
    AddChild,
    ReplaceNode,
    TreeAction,
    find_folder_index,
    find_request_path,
    infer_tag,
    node_at,
    reduce,
)
from reqtree.urls import normalize_request_path, normalize_server_url, strip_query

logger = logging.getLogger(__name__)

DEFAULT_ROOT_LABEL = "Collection"
OPENAPI_EXTENSIONS = (".yaml", ".yml", ".json")


def _empty_root() -> TreeNode:
    return TreeNode(label=DEFAULT_ROOT_LABEL, expanded=True)


class Workspace(BaseModel):
    """The collection tree and the servers its requests are sent to."""

    root: TreeNode = Field(default_factory=_empty_root)
    servers: list[ServerEntry] = Field(default_factory=list)

    # --- Tree ---

    def dispatch(self, action: TreeAction) -> Optional[Path]:
        """Apply a tree action; returns the new path for moves."""
        self.root, path = reduce(self.root, action)
        return path

    def save_request(
        self,
        content: RequestContent,
        tag: str = "",
        selected_path: Optional[Sequence[int]] = None,
    ) -> Path:
        """Save *content* as a leaf labelled by its normalised path.

        An existing request with the same label is replaced only when it is
        the selected node. Otherwise the leaf is added at the top level, or
        under the top-level folder named *tag* (created when missing). A blank
        *tag* falls back to the folder of the selected node, as reported by
        :func:`~reqtree.tree.infer_tag`.

        Returns:
            The path of the saved leaf.

        Raises:
            ValidationError: If the url is blank, or a different request with
                the same label already exists.
        """
        path_value = normalize_request_path(content.url)
        label = strip_query(path_value)
        if not label:
            raise ValidationError("Invalid path: use /path")

        saved = content.model_copy(deep=True, update={"url": path_value})
        saved.sync_path_params()
        node = TreeNode(label=label, content=saved)

        existing = find_request_path(self.root, label)
        if existing is not None:
            selected = tuple(selected_path) if selected_path is not None else None
            if selected != existing:
                raise ValidationError(f"request already exists: {label}")
            self.dispatch(ReplaceNode(existing, node))
            logger.debug("Replaced request %s at %s", label, existing)
            return existing

        tag = tag.strip() or infer_tag(self.root, selected_path) or ""
        if not tag:
            self.dispatch(AddChild((), node))
            return (len(self.root.children) - 1,)

        folder_index, found = find_folder_index(self.root, tag)
        if not found:
            self.dispatch(AddChild((), TreeNode(label=tag, expanded=True)))
        self.dispatch(AddChild((folder_index,), node))
        return (folder_index, len(self.root.children[folder_index].children) - 1)

    # --- Servers ---

    def add_server(self, url: str, auth: Optional[AuthDescriptor] = None) -> int:
        """Add a server, returning its index.

        Adding a URL already present is a no-op that returns the existing
        index.

        Raises:
            RequestBuildError: If *url* is not an absolute http(s) URL.
        """
        normalized = normalize_server_url(url)
        if normalized is None:
            raise RequestBuildError("invalid base URL")
        for index, server in enumerate(self.servers):
            if server.base_url == normalized:
                return index
        self.servers.append(ServerEntry(base_url=normalized, auth=auth or NoAuth()))
        return len(self.servers) - 1

    def _server(self, index: int) -> ServerEntry:
        if not 0 <= index < len(self.servers):
            raise ValidationError(f"No server at index {index}")
        return self.servers[index]

    def remove_server(self, index: int) -> ServerEntry:
        """Remove and return the server at *index*."""
        self._server(index)
        return self.servers.pop(index)

    def update_auth(self, index: int, auth: AuthDescriptor) -> None:
        """Replace the auth descriptor of the server at *index*."""
        self._server(index).auth = auth

    # --- Import / export ---

    def import_text(self, text: str, hint: str = "", strict: bool = False) -> None:
        """Replace the tree and servers with the content of an OpenAPI document.

        *hint* and *strict* are passed to
        :func:`~reqtree.parser.importer.import_openapi`.

        Raises:
            ParseError: If *text* cannot be parsed or fails the strict version
                check. The workspace is unchanged.
        """
        result = import_openapi(text, hint=hint, strict=strict)
        self.root = result.root
        self.servers = result.servers

    def export_text(self, include_secrets: bool = False) -> str:
        """Render the workspace as OpenAPI YAML.

        Credentials are blanked in the output unless *include_secrets* is set.

        Raises:
            ValidationError: If there is nothing to export.
        """
        return export_openapi(self.root, self.servers, include_secrets=include_secrets)

    # --- Sending ---

    def send(
        self,
        path: Sequence[int],
        server_index: Optional[int],
        transport: Transport,
        auth_manager: Optional[AuthManager] = None,
    ) -> ResponseSnapshot:
        """Send the leaf at *path* and store the response snapshot on it.

        Raises:
            ValidationError: If *path* is not a leaf or *server_index* is out
                of range.
            RequestBuildError: If the request cannot be compiled.
        """
        path = tuple(path)
        node = node_at(self.root, path)
        if node is None or node.content is None:
            raise ValidationError(f"No request at path {_format_path(path)}")
        server = self._server(server_index) if server_index is not None else None

        snapshot = send_request(node.content, server, transport, auth_manager)
        updated = node.model_copy(deep=True)
        assert updated.content is not None
        updated.content.response = snapshot
        self.dispatch(ReplaceNode(path, updated))
        return snapshot


def _format_path(path: Sequence[int]) -> str:
    return ".".join(str(i) for i in path) or "<root>"


# --- Persistence ---


def load_workspace(path: FilePath) -> Workspace:
    """Load a workspace from JSON, or return an empty one when *path* is missing.

    Raises:
        ConfigError: If the file is not a valid workspace.
    """
    if not path.is_file():
        logger.debug("No workspace at %s, starting empty", path)
        return Workspace()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return Workspace.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid workspace at {path}: {exc}") from exc


def save_workspace(workspace: Workspace, path: FilePath) -> None:
    """Persist *workspace* atomically as JSON."""
    data = workspace.model_dump(mode="json")
    atomic_write(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


# --- Files ---


def read_text(path: FilePath) -> str:
    """Read a UTF-8 text file.

    Raises:
        ReqtreeError: If the file cannot be read.
    """
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ReqtreeError(f"Cannot read {path}: {exc}") from exc


def write_text(path: FilePath, text: str, create_new: bool = False) -> None:
    """Write *text* to *path*.

    Args:
        create_new: Refuse to touch an existing file.

    Raises:
        AlreadyExistsError: If *create_new* is set and *path* exists.
        ReqtreeError: On any other write failure.
    """
    try:
        with open(path, "x" if create_new else "w", encoding="utf-8") as fh:
            fh.write(text)
    except FileExistsError as exc:
        raise AlreadyExistsError(f"{path} already exists") from exc
    except OSError as exc:
        raise ReqtreeError(f"Cannot write {path}: {exc}") from exc


def ensure_openapi_extension(path: FilePath) -> FilePath:
    """Append ``.yaml`` unless *path* already ends in ``.yaml``, ``.yml`` or ``.json``."""
    if path.suffix.lower() in OPENAPI_EXTENSIONS:
        return path
    return path.with_name(f"{path.name}.yaml")


def export_to_file(
    workspace: Workspace,
    path: FilePath,
    overwrite: bool = False,
    include_secrets: bool = False,
) -> FilePath:
    """Export *workspace* to an OpenAPI file.

    The document is built before anything is written, so an empty workspace
    leaves the file system untouched.

    Returns:
        The path actually written (with the extension applied).

    Raises:
        ValidationError: If there is nothing to export.
        AlreadyExistsError: If the target exists and *overwrite* is false.
    """
    text = workspace.export_text(include_secrets=include_secrets)
    target = ensure_openapi_extension(path)
    write_text(target, text, create_new=not overwrite)
    logger.info("Exported workspace to %s", target)
    return target
