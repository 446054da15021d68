"""
tests.test_openapi

OpenAPI module: per-request document composition, security schemes and reference UI.
"""

from __future__ import annotations

import copy

import pytest
import yaml
from fastapi import APIRouter, Depends, FastAPI

from api_template.api.app import create_app
from api_template.auth.deps import require_authorization
from api_template.features.openapi.composer import iter_api_routes
from api_template.features.openapi.module import OPENAPI_SERVICE
from api_template.modules import ModuleRegistrationError

SCOPES = ["api://api-template/user_impersonation", "api://api-template/Data.Read"]


@pytest.fixture
def dev_settings(make_settings):
    return make_settings(
        environment="Development",
        azure_ad={"tenant_id": "tenant-1", "scopes": "user_impersonation Data.Read"},
        open_api={"title": "Template API", "description": "Diagnostics"},
    )


@pytest.mark.asyncio
async def test_document_info_and_servers(dev_settings, make_client) -> None:
    app = create_app(settings=dev_settings)

    async with make_client(app) as client:
        r = await client.get("/openapi")

    assert r.status_code == 200
    doc = r.json()
    assert doc["info"]["title"] == "Template API"
    assert doc["info"]["version"].startswith("Version ")
    assert doc["info"]["description"] == "Diagnostics - Environment: Development"
    assert doc["servers"] == [{"url": "http://test"}]
    assert "/openapi" not in doc["paths"]
    assert "/info/version" in doc["paths"]


@pytest.mark.asyncio
async def test_servers_follow_forwarded_headers(dev_settings, make_client) -> None:
    app = create_app(settings=dev_settings)

    async with make_client(app) as client:
        r = await client.get(
            "/openapi",
            headers={"X-Forwarded-Proto": "https", "X-Forwarded-Host": "api.example.com, internal-proxy"},
        )

    assert r.json()["servers"] == [{"url": "https://api.example.com"}]


@pytest.mark.asyncio
async def test_security_schemes(dev_settings, make_client) -> None:
    app = create_app(settings=dev_settings)

    async with make_client(app) as client:
        doc = (await client.get("/openapi")).json()

    schemes = doc["components"]["securitySchemes"]
    assert set(schemes) == {"oauth2", "bearer"}

    flow = schemes["oauth2"]["flows"]["authorizationCode"]
    assert flow["authorizationUrl"] == "https://login.microsoftonline.com/tenant-1/oauth2/v2.0/authorize"
    assert flow["tokenUrl"] == "https://login.microsoftonline.com/tenant-1/oauth2/v2.0/token"
    assert flow["scopes"] == {
        "api://api-template/user_impersonation": "user_impersonation",
        "api://api-template/Data.Read": "Data.Read",
    }
    assert flow["x-usePkce"] == "SHA-256"

    assert schemes["bearer"] == {"type": "http", "scheme": "bearer", "bearerFormat": "JWT"}


@pytest.mark.asyncio
async def test_protected_operations_require_oauth2_or_bearer(dev_settings, make_client) -> None:
    app = create_app(settings=dev_settings)

    async with make_client(app) as client:
        doc = (await client.get("/openapi")).json()

    for path in ("/info/config", "/info/modules"):
        operation = doc["paths"][path]["get"]
        assert operation["security"] == [{"oauth2": SCOPES}, {"bearer": SCOPES}]
        assert operation["responses"]["401"] == {"description": "Unauthorized"}
        assert operation["responses"]["403"] == {"description": "Forbidden"}

    version = doc["paths"]["/info/version"]["get"]
    assert "security" not in version
    assert "401" not in version["responses"]
    assert version["operationId"] == "GetVersion"


@pytest.mark.asyncio
async def test_document_is_rebuilt_per_request(dev_settings, make_client) -> None:
    app = create_app(settings=dev_settings)

    async with make_client(app) as client:
        first = (await client.get("/openapi", headers={"X-Forwarded-Host": "one.example.com"})).json()
        second = (await client.get("/openapi", headers={"X-Forwarded-Host": "two.example.com"})).json()

    assert first["servers"] == [{"url": "http://one.example.com"}]
    assert second["servers"] == [{"url": "http://two.example.com"}]


def test_pipeline_can_run_twice_on_one_document(dev_settings) -> None:
    app = create_app(settings=dev_settings)
    composer = app.state.services[OPENAPI_SERVICE]
    context = composer.context()

    document = composer.transform(composer.generate(app), app.routes, context)
    once = copy.deepcopy(document)
    twice = composer.transform(document, app.routes, context)

    assert twice == once
    assert set(twice["components"]["securitySchemes"]) == {"oauth2", "bearer"}
    assert len(twice["paths"]["/info/config"]["get"]["security"]) == 2
    # Without a request there is nothing to derive a server URL from.
    assert twice["servers"] == []


@pytest.mark.asyncio
async def test_yaml_document(dev_settings, make_client) -> None:
    app = create_app(settings=dev_settings)

    async with make_client(app) as client:
        r = await client.get("/openapi.yaml")

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("application/yaml")
    doc = yaml.safe_load(r.text)
    assert doc["info"]["title"] == "Template API"
    assert "oauth2" in doc["components"]["securitySchemes"]


@pytest.mark.asyncio
async def test_scalar_reference_page(dev_settings, make_client) -> None:
    app = create_app(settings=dev_settings)

    async with make_client(app) as client:
        r = await client.get("/scalar")

    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/html")
    assert 'data-url="/openapi"' in r.text
    assert dev_settings.azure_ad.client_id in r.text
    assert "api://api-template/user_impersonation" in r.text
    assert '"clientKey": "curl"' in r.text


@pytest.mark.asyncio
async def test_documentation_is_development_only(make_settings, make_client) -> None:
    app = create_app(settings=make_settings(environment="Production"))

    async with make_client(app) as client:
        for path in ("/openapi", "/openapi.yaml", "/scalar", "/docs", "/openapi.json"):
            r = await client.get(path)
            assert r.status_code == 404, path


def test_missing_identity_instance_aborts_startup(make_settings) -> None:
    with pytest.raises(ModuleRegistrationError):
        create_app(settings=make_settings(azure_ad={"instance": ""}))


def _include_report_routers(app: FastAPI) -> None:
    daily = APIRouter(prefix="/daily")

    @daily.get("/summary", dependencies=[Depends(require_authorization)])
    async def daily_summary() -> dict[str, str]:
        return {}

    @daily.get("/public")
    async def daily_public() -> dict[str, str]:
        return {}

    archive = APIRouter(prefix="/archive")

    @archive.get("/latest")
    async def archive_latest() -> dict[str, str]:
        return {}

    reports = APIRouter(prefix="/reports")
    reports.include_router(daily)
    # Router-level dependencies apply to every operation of the included router.
    reports.include_router(archive, dependencies=[Depends(require_authorization)])
    app.include_router(reports)


@pytest.mark.asyncio
async def test_nested_router_operations_are_secured(dev_settings, make_client) -> None:
    app = create_app(settings=dev_settings)
    _include_report_routers(app)

    async with make_client(app) as client:
        doc = (await client.get("/openapi")).json()

    for path in ("/reports/daily/summary", "/reports/archive/latest"):
        operation = doc["paths"][path]["get"]
        assert operation["security"] == [{"oauth2": SCOPES}, {"bearer": SCOPES}], path
        assert operation["responses"]["401"] == {"description": "Unauthorized"}

    public = doc["paths"]["/reports/daily/public"]["get"]
    assert "security" not in public
    assert "401" not in public["responses"]


def test_route_walk_reaches_included_routers(dev_settings) -> None:
    app = create_app(settings=dev_settings)
    _include_report_routers(app)

    paths = {route.path_format for route in iter_api_routes(app.routes)}

    assert {
        "/info/version",
        "/info/config",
        "/reports/daily/summary",
        "/reports/daily/public",
        "/reports/archive/latest",
    } <= paths


def test_registered_transformers_run_after_defaults(dev_settings) -> None:
    app = create_app(settings=dev_settings)
    composer = app.state.services[OPENAPI_SERVICE]
    seen: list[str] = []

    def tag_document(document, context):
        seen.append("document")
        document.setdefault("tags", []).append({"name": context.environment})
        return document

    def mark_secured(operation, route, context):
        seen.append(f"operation:{route.path_format}")
        operation["x-secured"] = "security" in operation
        return operation

    assert composer.add_document_transformer(tag_document) is composer
    assert composer.add_operation_transformer(mark_secured) is composer

    document = composer.transform(composer.generate(app), app.routes, composer.context())

    assert seen[0] == "document"
    assert "operation:/info/config" in seen
    assert document["tags"] == [{"name": "Development"}]
    assert set(document["components"]["securitySchemes"]) == {"oauth2", "bearer"}
    assert document["paths"]["/info/config"]["get"]["x-secured"] is True
    assert document["paths"]["/info/version"]["get"]["x-secured"] is False
