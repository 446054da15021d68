"""
api_template.features.openapi.transformers

Document and operation transformers applied to the generated OpenAPI document.

Every transformer writes keyed collections by assignment, so running the pipeline
twice over the same document leaves it unchanged.
"""

from __future__ import annotations

from typing import Any

from fastapi.routing import APIRoute

import api_template
from api_template.features.openapi.composer import DocumentContext, OpenApiDocument, requires_authorization

OAUTH2_SCHEME = "oauth2"
BEARER_SCHEME = "bearer"

FORWARDED_PROTO_HEADER = "x-forwarded-proto"
FORWARDED_HOST_HEADER = "x-forwarded-host"


def _security_schemes(document: OpenApiDocument) -> dict[str, Any]:
    components = document.setdefault("components", {})
    return components.setdefault("securitySchemes", {})


def _first_header_value(value: str | None) -> str | None:
    # Proxies append to forwarded headers; the first entry is the client-facing one.
    if not value:
        return None
    first = value.split(",")[0].strip()
    return first or None


def info_transformer(document: OpenApiDocument, context: DocumentContext) -> OpenApiDocument:
    open_api = context.settings.open_api
    info = document.setdefault("info", {})
    info["title"] = open_api.title
    info["version"] = f"Version {api_template.__version__}"
    info["description"] = f"{open_api.description} - Environment: {context.environment}"
    document["servers"] = []
    return document


def servers_transformer(document: OpenApiDocument, context: DocumentContext) -> OpenApiDocument:
    request = context.request
    if request is None:
        return document

    proto = _first_header_value(request.headers.get(FORWARDED_PROTO_HEADER)) or request.url.scheme
    host = (
        _first_header_value(request.headers.get(FORWARDED_HOST_HEADER))
        or request.headers.get("host")
        or request.url.netloc
    )
    document["servers"] = [{"url": f"{proto}://{host}".rstrip("/")}]
    return document


def oauth2_security_scheme_transformer(document: OpenApiDocument, context: DocumentContext) -> OpenApiDocument:
    azure_ad = context.settings.azure_ad
    authority = azure_ad.authority
    scopes = {f"{azure_ad.app_identifier}/{name}": name for name in azure_ad.scope_names}

    _security_schemes(document)[OAUTH2_SCHEME] = {
        "type": "oauth2",
        "flows": {
            "authorizationCode": {
                "authorizationUrl": f"{authority}/oauth2/v2.0/authorize",
                "tokenUrl": f"{authority}/oauth2/v2.0/token",
                "scopes": scopes,
                "x-usePkce": "SHA-256",
            }
        },
    }
    return document


def bearer_security_scheme_transformer(document: OpenApiDocument, context: DocumentContext) -> OpenApiDocument:
    _security_schemes(document)[BEARER_SCHEME] = {
        "type": "http",
        "scheme": "bearer",
        "bearerFormat": "JWT",
    }
    return document


def security_requirement_transformer(
    operation: dict[str, Any],
    route: APIRoute,
    context: DocumentContext,
) -> dict[str, Any]:
    if not requires_authorization(route):
        return operation

    responses = operation.setdefault("responses", {})
    responses["401"] = {"description": "Unauthorized"}
    responses["403"] = {"description": "Forbidden"}

    # Alternatives: a client may authenticate with either scheme.
    scopes = context.settings.azure_ad.qualified_scopes
    operation["security"] = [
        {OAUTH2_SCHEME: list(scopes)},
        {BEARER_SCHEME: list(scopes)},
    ]
    return operation


DEFAULT_DOCUMENT_TRANSFORMERS = (
    info_transformer,
    servers_transformer,
    oauth2_security_scheme_transformer,
    bearer_security_scheme_transformer,
)

DEFAULT_OPERATION_TRANSFORMERS = (security_requirement_transformer,)
