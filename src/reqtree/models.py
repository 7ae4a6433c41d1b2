"""Canonical Pydantic models shared across all reqtree modules.

This is the single source of truth for data shapes in the project. The models
fall into four groups:

**Request models** -- one saved HTTP request and its last response:
    :class:`HTTPMethod`, :class:`KeyValueRow`, :class:`RequestEcho`,
    :class:`ResponseSnapshot`, and :class:`RequestContent`.

**Tree models** -- the saved-request collection:
    :class:`TreeNode` and the :data:`Path` alias.

**Server and auth models** -- where requests are sent and how they are
authenticated: :class:`ServerEntry` and the :data:`AuthDescriptor` tagged
union (:class:`NoAuth`, :class:`ApiKeyAuth`, :class:`HttpBasicAuth`,
:class:`HttpBearerAuth`, :class:`OAuth2Auth`, :class:`OpenIdConnectAuth`).

**Configuration models** -- :class:`GlobalConfig` and its
:class:`RequestConfig` / :class:`OutputConfig` sections.

All models use Pydantic v2, so a whole workspace round-trips through
``model_dump(mode="json")`` / ``model_validate``.
"""

from __future__ import annotations

import enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter


# --- Requests ---


class HTTPMethod(str, enum.Enum):
    """The eight HTTP methods a saved request may use."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"
    HEAD = "HEAD"
    TRACE = "TRACE"

    @property
    def key(self) -> str:
        """Lower-case operation key used in OpenAPI path items."""
        return self.value.lower()

    @property
    def sends_body(self) -> bool:
        """Whether a request body is dispatched for this method."""
        return self in (HTTPMethod.POST, HTTPMethod.PUT, HTTPMethod.PATCH)

    @classmethod
    def parse(cls, text: str) -> Optional[HTTPMethod]:
        """Parse *text* case-insensitively, returning ``None`` for unknown methods."""
        try:
            return cls(text.strip().upper())
        except ValueError:
            return None


class KeyValueRow(BaseModel):
    """One editable row of a header, query-parameter, or path-parameter table.

    Rows with ``enabled=False`` or a blank ``key`` are kept for editing but
    ignored when a request is compiled or exported.
    """

    enabled: bool = True
    key: str = ""
    value: str = ""

    @property
    def is_active(self) -> bool:
        """True when the row is enabled and has a non-blank key."""
        return self.enabled and bool(self.key.strip())


class RequestEcho(BaseModel):
    """The literal request that produced a :class:`ResponseSnapshot`."""

    method: str
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    body: Optional[str] = None


class ResponseSnapshot(BaseModel):
    """The last response received for a saved request.

    A transport failure is recorded as ``ok=False, status=0`` with the error
    message in ``data``.
    """

    url: str = ""
    status: int = 200
    ok: bool = True
    headers: dict[str, str] = Field(default_factory=dict)
    raw_headers: dict[str, list[str]] = Field(default_factory=dict)
    data: str = ""
    request: Optional[RequestEcho] = None
    duration_ms: Optional[float] = None


class RequestContent(BaseModel):
    """The payload of a leaf node: one saved HTTP request.

    ``url`` is normally a path template such as ``/users/{id}``, optionally
    carrying a literal query string; a full absolute URL is accepted as an
    escape hatch that bypasses the selected server.
    """

    method: HTTPMethod = HTTPMethod.GET
    url: str = ""
    headers: list[KeyValueRow] = Field(default_factory=list)
    query_params: list[KeyValueRow] = Field(default_factory=list)
    path_params: list[KeyValueRow] = Field(default_factory=list)
    body: str = ""
    response: ResponseSnapshot = Field(default_factory=ResponseSnapshot)

    def sync_path_params(self) -> None:
        """Align ``path_params`` with the ``{name}`` placeholders in ``url``.

        Existing rows keep their value and enabled flag and are reordered to
        follow the placeholders; new placeholders get an empty enabled row and
        rows whose placeholder disappeared are dropped.
        """
        from reqtree.urls import path_placeholders

        existing = {row.key: row for row in self.path_params}
        self.path_params = [
            existing.get(name) or KeyValueRow(key=name)
            for name in path_placeholders(self.url)
        ]


# --- Tree ---


class TreeNode(BaseModel):
    """A node of the saved-request collection.

    The presence of ``content`` is the only folder/leaf discriminator: a
    leaf carries a :class:`RequestContent`, a folder carries ``None`` and
    groups children (folders map to OpenAPI tags).
    """

    label: str
    content: Optional[RequestContent] = None
    expanded: bool = False
    children: list[TreeNode] = Field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return self.content is not None

    @property
    def is_folder(self) -> bool:
        return self.content is None


TreeNode.model_rebuild()

Path = tuple[int, ...]
"""Sibling indices from the root to a node; the empty tuple addresses the root.

Paths are not stable identities. Any insert, remove, or move invalidates
previously captured paths to later positions in the same subtree, so callers
must re-derive them after every mutation.
"""


# --- Auth ---


class ApiKeyLocation(str, enum.Enum):
    """Where an API key is sent, per the OpenAPI ``in`` field."""

    HEADER = "header"
    QUERY = "query"
    COOKIE = "cookie"


class OAuth2Flow(str, enum.Enum):
    """OAuth2 flow names as spelled in OpenAPI ``flows`` objects."""

    IMPLICIT = "implicit"
    PASSWORD = "password"
    CLIENT_CREDENTIALS = "clientCredentials"
    AUTHORIZATION_CODE = "authorizationCode"


class OAuthScope(BaseModel):
    name: str
    description: str = ""


class NoAuth(BaseModel):
    """No authentication."""

    type: Literal["none"] = "none"


class ApiKeyAuth(BaseModel):
    """API key sent in a header, query parameter, or cookie."""

    type: Literal["api_key"] = "api_key"
    name: str = ""
    location: ApiKeyLocation = ApiKeyLocation.HEADER
    value: str = ""


class HttpBasicAuth(BaseModel):
    """HTTP Basic authentication (:rfc:`7617`)."""

    type: Literal["http_basic"] = "http_basic"
    username: str = ""
    password: str = ""


class HttpBearerAuth(BaseModel):
    """Bearer token, optionally refreshed from response bodies.

    When ``auto_update`` is set, every response body is parsed as JSON and
    the value at ``token_path`` (``$.data.token`` style) replaces ``token``.
    """

    type: Literal["http_bearer"] = "http_bearer"
    token: str = ""
    bearer_format: str = "Bearer"
    auto_update: bool = False
    token_path: str = ""


class OAuth2Auth(BaseModel):
    """OAuth2 metadata plus an already-obtained access token."""

    type: Literal["oauth2"] = "oauth2"
    flow: OAuth2Flow = OAuth2Flow.AUTHORIZATION_CODE
    auth_url: str = ""
    token_url: str = ""
    refresh_url: str = ""
    scopes: list[OAuthScope] = Field(default_factory=list)
    access_token: str = ""


class OpenIdConnectAuth(BaseModel):
    """OpenID Connect discovery URL plus an already-obtained access token."""

    type: Literal["openid_connect"] = "openid_connect"
    url: str = ""
    access_token: str = ""


AuthDescriptor = Annotated[
    Union[
        NoAuth,
        ApiKeyAuth,
        HttpBasicAuth,
        HttpBearerAuth,
        OAuth2Auth,
        OpenIdConnectAuth,
    ],
    Field(discriminator="type"),
]
"""Closed tagged union of every supported auth scheme, discriminated on ``type``."""

AUTH_TYPES: tuple[type[BaseModel], ...] = (
    NoAuth,
    ApiKeyAuth,
    HttpBasicAuth,
    HttpBearerAuth,
    OAuth2Auth,
    OpenIdConnectAuth,
)
"""Every :data:`AuthDescriptor` variant, for exhaustiveness checks."""

auth_adapter: TypeAdapter[AuthDescriptor] = TypeAdapter(AuthDescriptor)
"""Validates raw dicts (e.g. the ``x-reqtree-auth`` extension) into descriptors."""


class ServerEntry(BaseModel):
    """A base URL requests can be sent to, with its auth configuration."""

    base_url: str
    auth: AuthDescriptor = Field(default_factory=NoAuth)


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP settings applied by the transports."""

    timeout: float = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    follow_redirects: bool = Field(default=True, description="Follow HTTP redirects")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: Literal["auto", "json", "plain", "rich"] = Field(
        default="auto", description="Output format used when no --json/--plain flag is given"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/reqtree/config.json``.

    Loaded and saved by :func:`~reqtree.config.load_global_config` and
    :func:`~reqtree.config.save_global_config`. See
    :func:`~reqtree.config.resolve_config` for the precedence chain.
    """

    workspace_path: Optional[str] = Field(
        default=None, description="Workspace file; defaults to <data_dir>/workspace.json"
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
