"""Mapping between auth descriptors and OpenAPI *Security Scheme Objects*.

Used in both directions:

* :func:`descriptor_from_scheme` -- importer side, turns a
  ``components.securitySchemes`` entry into an
  :data:`~reqtree.models.AuthDescriptor` with empty secrets.
* :func:`scheme_from_descriptor` -- exporter side, the reverse. Secrets are
  never written into the scheme; the full descriptor travels separately in
  the :data:`AUTH_EXTENSION` vendor field.

Both functions branch over every descriptor variant; adding a variant to
:data:`~reqtree.models.AUTH_TYPES` requires a branch here.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from reqtree.models import (
    ApiKeyAuth,
    ApiKeyLocation,
    AuthDescriptor,
    HttpBasicAuth,
    HttpBearerAuth,
    NoAuth,
    OAuth2Auth,
    OAuth2Flow,
    OAuthScope,
    OpenIdConnectAuth,
    auth_adapter,
)

logger = logging.getLogger(__name__)

AUTH_EXTENSION = "x-reqtree-auth"
"""Vendor extension on server objects carrying the full auth descriptor."""

_SCHEME_BASE_NAMES: dict[type, str] = {
    ApiKeyAuth: "apiKeyAuth",
    HttpBasicAuth: "basicAuth",
    HttpBearerAuth: "bearerAuth",
    OAuth2Auth: "oauth2Auth",
    OpenIdConnectAuth: "openIdConnectAuth",
}


def descriptor_from_scheme(scheme: Any) -> AuthDescriptor:
    """Map a resolved security scheme object onto an auth descriptor.

    Unknown or malformed schemes map to :class:`~reqtree.models.NoAuth`.
    """
    if not isinstance(scheme, dict):
        return NoAuth()

    scheme_type = scheme.get("type", "")

    if scheme_type == "apiKey":
        try:
            location = ApiKeyLocation(str(scheme.get("in", "header")).lower())
        except ValueError:
            location = ApiKeyLocation.HEADER
        return ApiKeyAuth(name=str(scheme.get("name", "")), location=location)

    if scheme_type == "http":
        http_scheme = str(scheme.get("scheme", "")).lower()
        if http_scheme == "basic":
            return HttpBasicAuth()
        if http_scheme == "bearer":
            return HttpBearerAuth(bearer_format=str(scheme.get("bearerFormat") or "Bearer"))
        return NoAuth()

    if scheme_type == "oauth2":
        flows = scheme.get("flows")
        if not isinstance(flows, dict) or not flows:
            return OAuth2Auth()
        flow_name, flow = next(iter(flows.items()))
        try:
            flow_enum = OAuth2Flow(flow_name)
        except ValueError:
            flow_enum = OAuth2Flow.AUTHORIZATION_CODE
        flow = flow if isinstance(flow, dict) else {}
        scopes = flow.get("scopes")
        scopes = scopes if isinstance(scopes, dict) else {}
        return OAuth2Auth(
            flow=flow_enum,
            auth_url=str(flow.get("authorizationUrl", "")),
            token_url=str(flow.get("tokenUrl", "")),
            refresh_url=str(flow.get("refreshUrl", "")),
            scopes=[
                OAuthScope(name=str(name), description=str(desc or ""))
                for name, desc in scopes.items()
            ],
        )

    if scheme_type == "openIdConnect":
        return OpenIdConnectAuth(url=str(scheme.get("openIdConnectUrl", "")))

    return NoAuth()


def descriptor_from_extension(value: Any) -> Optional[AuthDescriptor]:
    """Validate the :data:`AUTH_EXTENSION` payload of a server object.

    Returns:
        The descriptor, or ``None`` when the payload is missing or invalid.
    """
    if value is None:
        return None
    try:
        return auth_adapter.validate_python(value)
    except PydanticValidationError as exc:
        logger.warning("Ignoring invalid %s extension: %s", AUTH_EXTENSION, exc)
        return None


def scheme_base_name(auth: AuthDescriptor) -> Optional[str]:
    """Return the default ``components.securitySchemes`` key for *auth*."""
    return _SCHEME_BASE_NAMES.get(type(auth))


def scheme_from_descriptor(auth: AuthDescriptor) -> Optional[dict[str, Any]]:
    """Build the security scheme object for *auth*, or ``None`` for NoAuth."""
    if isinstance(auth, NoAuth):
        return None

    if isinstance(auth, ApiKeyAuth):
        return {"type": "apiKey", "name": auth.name, "in": auth.location.value}

    if isinstance(auth, HttpBasicAuth):
        return {"type": "http", "scheme": "basic"}

    if isinstance(auth, HttpBearerAuth):
        scheme: dict[str, Any] = {"type": "http", "scheme": "bearer"}
        if auth.bearer_format.strip() and auth.bearer_format.strip() != "Bearer":
            scheme["bearerFormat"] = auth.bearer_format.strip()
        return scheme

    if isinstance(auth, OAuth2Auth):
        flow: dict[str, Any] = {}
        if auth.flow in (OAuth2Flow.IMPLICIT, OAuth2Flow.AUTHORIZATION_CODE):
            flow["authorizationUrl"] = auth.auth_url
        if auth.flow != OAuth2Flow.IMPLICIT:
            flow["tokenUrl"] = auth.token_url
        if auth.refresh_url:
            flow["refreshUrl"] = auth.refresh_url
        flow["scopes"] = {scope.name: scope.description for scope in auth.scopes}
        return {"type": "oauth2", "flows": {auth.flow.value: flow}}

    if isinstance(auth, OpenIdConnectAuth):
        return {"type": "openIdConnect", "openIdConnectUrl": auth.url}

    raise TypeError(f"Unhandled auth descriptor: {type(auth).__name__}")


def requirement_scopes(auth: AuthDescriptor) -> list[str]:
    """Scope names listed in a security requirement for *auth* (OAuth2 only)."""
    if isinstance(auth, OAuth2Auth):
        return [scope.name for scope in auth.scopes]
    return []
