"""
api_template.features.openapi.module

OpenAPI feature module.

Responsibilities:
- Validate the identity configuration the security schemes are built from.
- Register the document composer with its default transformer pipeline.
- Map `/openapi`, `/openapi.yaml` and `/scalar` in the Development environment only.
"""

from __future__ import annotations

import yaml
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response

import api_template
from api_template.api.deps import service, settings_dep
from api_template.features.openapi.composer import OpenApiComposer
from api_template.features.openapi.scalar import get_scalar_html, scalar_configuration
from api_template.features.openapi.transformers import (
    DEFAULT_DOCUMENT_TRANSFORMERS,
    DEFAULT_OPERATION_TRANSFORMERS,
)
from api_template.modules import FeatureModuleInfo, ModuleContext, ModuleRegistrationError
from api_template.settings import Settings

OPENAPI_SERVICE = "openapi_composer"
OPENAPI_URL = "/openapi"

router = APIRouter(include_in_schema=False)


@router.get(OPENAPI_URL)
async def get_openapi_document(
    request: Request,
    composer: OpenApiComposer = Depends(service(OPENAPI_SERVICE)),
) -> JSONResponse:
    return JSONResponse(composer.build(request))


@router.get(f"{OPENAPI_URL}.yaml")
async def get_openapi_document_yaml(
    request: Request,
    composer: OpenApiComposer = Depends(service(OPENAPI_SERVICE)),
) -> Response:
    document = composer.build(request)
    return Response(yaml.safe_dump(document, sort_keys=False, allow_unicode=True), media_type="application/yaml")


@router.get("/scalar")
async def get_scalar_reference(settings: Settings = Depends(settings_dep)) -> HTMLResponse:
    return get_scalar_html(
        openapi_url=OPENAPI_URL,
        title=settings.scalar.title,
        configuration=scalar_configuration(settings),
    )


class OpenApiModule:
    def __init__(self) -> None:
        self.module_info = FeatureModuleInfo(
            name=f"{type(self).__module__}.{type(self).__qualname__}",
            version=api_template.__version__,
        )

    def register_module(self, context: ModuleContext) -> ModuleContext:
        azure_ad = context.settings.azure_ad
        if not azure_ad.instance.startswith(("https://", "http://")):
            raise ModuleRegistrationError("azure_ad.instance must be an absolute http(s) URL")
        if not azure_ad.tenant_id:
            raise ModuleRegistrationError("azure_ad.tenant_id is required")

        composer = OpenApiComposer(
            settings=context.settings,
            document_transformers=DEFAULT_DOCUMENT_TRANSFORMERS,
            operation_transformers=DEFAULT_OPERATION_TRANSFORMERS,
        )
        context.add_service(OPENAPI_SERVICE, composer)
        return context

    def map_endpoints(self, app: FastAPI) -> None:
        settings: Settings = app.state.settings
        if settings.is_development:
            app.include_router(router)
