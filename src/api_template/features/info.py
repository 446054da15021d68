"""
api_template.features.info

Diagnostic endpoints: service version, redacted configuration and registered modules.
"""

from __future__ import annotations

import platform
import sysconfig
from datetime import UTC, datetime
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

from fastapi import APIRouter, Depends, FastAPI
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal

import api_template
from api_template.api.deps import service, settings_dep
from api_template.auth.deps import require_authorization
from api_template.configuration import ConfigurationSnapshot
from api_template.modules import (
    CONFIGURATION_SERVICE,
    REGISTRY_SERVICE,
    FeatureModuleInfo,
    ModuleContext,
    ModuleRegistry,
)
from api_template.settings import Settings

DISTRIBUTION_NAME = "api-template"
BUILD_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Info(BaseModel):
    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True)

    name: str = Field(description="The name of the service.")
    version: str = Field(description="The version of the service.")
    date_time: datetime = Field(description="The date and time of the request.")
    environment: str = Field(description="The environment the service is running in.")
    framework_description: str = Field(description="The Python implementation and version running the app.")
    os_version: str = Field(alias="OSVersion", description="The platform identifier and version.")
    build_date: str = Field(description="The build date of the service.")
    os_architecture: str = Field(alias="OSArchitecture", description="The platform architecture.")
    runtime_identifier: str = Field(description="The platform tag the runtime was built for.")


class ModuleInfoResponse(BaseModel):
    name: str
    version: str | None


def service_version() -> str:
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return api_template.__version__


def build_date() -> str:
    built = datetime.fromtimestamp(Path(api_template.__file__).stat().st_mtime)
    return built.strftime(BUILD_DATE_FORMAT)


router = APIRouter(prefix="/info", tags=["Info"])


@router.get(
    "/version",
    response_model=Info,
    operation_id="GetVersion",
    summary="Get service version",
)
async def get_version(settings: Settings = Depends(settings_dep)) -> Info:
    return Info(
        name=settings.service_name,
        version=service_version(),
        date_time=datetime.now(tz=UTC),
        environment=settings.environment,
        framework_description=f"{platform.python_implementation()} {platform.python_version()}",
        os_version=platform.platform(),
        build_date=build_date(),
        os_architecture=platform.machine(),
        runtime_identifier=sysconfig.get_platform(),
    )


@router.get(
    "/config",
    response_class=PlainTextResponse,
    operation_id="GetConfig",
    dependencies=[Depends(require_authorization)],
)
async def get_config(
    snapshot: ConfigurationSnapshot = Depends(service(CONFIGURATION_SERVICE)),
) -> PlainTextResponse:
    return PlainTextResponse(snapshot.render())


@router.get(
    "/modules",
    response_model=list[ModuleInfoResponse],
    operation_id="GetFeatureModuleInfos",
    dependencies=[Depends(require_authorization)],
)
async def get_feature_module_infos(
    registry: ModuleRegistry = Depends(service(REGISTRY_SERVICE)),
) -> list[ModuleInfoResponse]:
    return [ModuleInfoResponse(**info.as_dict()) for info in registry.infos()]


class InfoModule:
    def __init__(self) -> None:
        self.module_info = FeatureModuleInfo(
            name=f"{type(self).__module__}.{type(self).__qualname__}",
            version=api_template.__version__,
        )

    def register_module(self, context: ModuleContext) -> ModuleContext:
        # Reads only services registered by the bootstrap.
        return context

    def map_endpoints(self, app: FastAPI) -> None:
        app.include_router(router)
