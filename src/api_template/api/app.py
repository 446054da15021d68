"""
api_template.api.app

FastAPI app factory for the service.

Responsibilities:
- Capture the configuration snapshot and register feature modules (fatal on failure).
- Build the FastAPI application and install middleware and error handling.
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import Iterable

from fastapi import FastAPI
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.httpsredirect import HTTPSRedirectMiddleware

import api_template
from api_template.api.errors import (
    ExceptionHandlerMiddleware,
    GlobalExceptionHandler,
    ProblemDetailsService,
    StatusCodeSelector,
    http_exception_handler,
)
from api_template.api.routers.health import router as health_router
from api_template.configuration import ConfigurationSnapshot
from api_template.features import default_modules
from api_template.modules import (
    CONFIGURATION_SERVICE,
    REGISTRY_SERVICE,
    FeatureModule,
    ModuleContext,
    ModuleRegistry,
)
from api_template.observability.logging import configure_logging, get_logger
from api_template.observability.middleware import RequestContextMiddleware
from api_template.settings import Settings

log = get_logger(__name__)


def create_app(
    *,
    settings: Settings,
    modules: Iterable[FeatureModule] | None = None,
    status_codes: StatusCodeSelector | None = None,
) -> FastAPI:
    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(
        service_name=settings.service_name,
        environment=settings.environment,
        level=settings.log_level,
    )

    registry = ModuleRegistry(default_modules() if modules is None else modules)
    context = ModuleContext(settings=settings, environment=settings.environment)
    context.add_service(CONFIGURATION_SERVICE, ConfigurationSnapshot.capture(settings))
    context.add_service(REGISTRY_SERVICE, registry)
    # Raises ModuleRegistrationError: there is no partial-start mode.
    context = registry.register_all(context)

    app = FastAPI(
        title=settings.open_api.title,
        version=api_template.__version__,
        # Served per request by the OpenAPI module instead.
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.services = context.services

    # The last middleware added is the outermost one.
    app.add_middleware(
        ExceptionHandlerMiddleware,
        handler=GlobalExceptionHandler(ProblemDetailsService()),
        selector=status_codes or StatusCodeSelector(),
    )
    app.add_middleware(RequestContextMiddleware)
    if settings.https_redirection:
        app.add_middleware(HTTPSRedirectMiddleware)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)

    app.include_router(health_router, tags=["health"])
    registry.map_all(app)

    log.info(
        "startup",
        env=settings.environment,
        modules=[info.name for info in registry.infos()],
    )
    return app


# --- Module Notes -----------------------------------------------------------
# This file is intentionally small: app composition stays here; endpoints stay in
# feature modules.
