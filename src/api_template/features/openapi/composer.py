"""
api_template.features.openapi.composer

Per-request OpenAPI document generation.

Responsibilities:
- Generate the base document from the app's routes (never the cached `app.openapi()`).
- Apply document transformers, then operation transformers, in registration order.
- Detect which operations require authorization.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from fastapi import FastAPI, Request
from fastapi.dependencies.models import Dependant
from fastapi.openapi.utils import get_openapi
from fastapi.routing import APIRoute
from starlette.routing import BaseRoute

import api_template
from api_template.auth.deps import require_authorization
from api_template.settings import Settings

OpenApiDocument = dict[str, Any]


@dataclass(frozen=True, slots=True)
class DocumentContext:
    settings: Settings
    environment: str
    # None when the document is built outside a request (scripts, tests).
    request: Request | None = None


DocumentTransformer = Callable[[OpenApiDocument, DocumentContext], OpenApiDocument]
OperationTransformer = Callable[[dict[str, Any], APIRoute, DocumentContext], dict[str, Any]]


def _depends_on(dependant: Dependant, call: Callable[..., Any]) -> bool:
    return any(dep.call is call or _depends_on(dep, call) for dep in dependant.dependencies)


def requires_authorization(route: APIRoute) -> bool:
    return _depends_on(route.dependant, require_authorization)


def iter_api_routes(routes: Iterable[BaseRoute]) -> Iterator[APIRoute]:
    """
    Yield every API route reachable from `routes`, including those of included routers.

    Older FastAPI releases copy included routes onto the parent router. Newer ones keep
    the included router as a single nested entry whose route contexts carry the prefixed
    path and the combined dependency tree; those contexts are yielded in place of the
    original routes.
    """
    for route in routes:
        if isinstance(route, APIRoute):
            yield route
            continue
        effective_route_contexts = getattr(route, "effective_route_contexts", None)
        if effective_route_contexts is None:
            continue
        for route_context in effective_route_contexts():
            if isinstance(route_context.original_route, APIRoute):
                yield route_context


class OpenApiComposer:
    def __init__(
        self,
        *,
        settings: Settings,
        document_transformers: Iterable[DocumentTransformer] = (),
        operation_transformers: Iterable[OperationTransformer] = (),
    ) -> None:
        self._settings = settings
        self._document_transformers: list[DocumentTransformer] = list(document_transformers)
        self._operation_transformers: list[OperationTransformer] = list(operation_transformers)

    def add_document_transformer(self, transformer: DocumentTransformer) -> OpenApiComposer:
        self._document_transformers.append(transformer)
        return self

    def add_operation_transformer(self, transformer: OperationTransformer) -> OpenApiComposer:
        self._operation_transformers.append(transformer)
        return self

    def context(self, request: Request | None = None) -> DocumentContext:
        return DocumentContext(settings=self._settings, environment=self._settings.environment, request=request)

    def generate(self, app: FastAPI) -> OpenApiDocument:
        return get_openapi(
            title=self._settings.open_api.title,
            version=api_template.__version__,
            routes=app.routes,
        )

    def transform(
        self,
        document: OpenApiDocument,
        routes: Sequence[BaseRoute],
        context: DocumentContext,
    ) -> OpenApiDocument:
        for transformer in self._document_transformers:
            document = transformer(document, context)

        paths = document.get("paths", {})
        for route in iter_api_routes(routes):
            if not route.include_in_schema:
                continue
            path_item = paths.get(route.path_format)
            if not path_item:
                continue
            for method in sorted(route.methods):
                key = method.lower()
                operation = path_item.get(key)
                if operation is None:
                    continue
                for transformer in self._operation_transformers:
                    operation = transformer(operation, route, context)
                path_item[key] = operation
        return document

    def build(self, request: Request) -> OpenApiDocument:
        # Rebuilt on every call: the servers list depends on the caller's forwarded headers.
        return self.transform(self.generate(request.app), request.app.routes, self.context(request))
