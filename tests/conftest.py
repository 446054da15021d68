"""
tests.conftest

Shared fixtures: isolated environment, settings, app clients and bearer tokens.
"""

from __future__ import annotations

import os

import httpx
import pytest

from api_template.auth.jwt import JwtConfig, issue_token
from api_template.settings import ENV_PREFIX, Settings


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    # Developer shells may export TEMPLATE_* variables; tests start from defaults.
    for key in list(os.environ):
        if key.upper().startswith(ENV_PREFIX):
            monkeypatch.delenv(key)


@pytest.fixture
def make_settings():
    def _make(**overrides) -> Settings:
        overrides.setdefault("environment", "IntegrationTest")
        return Settings(**overrides)

    return _make


@pytest.fixture
def make_client():
    def _make(app) -> httpx.AsyncClient:
        transport = httpx.ASGITransport(app=app)
        return httpx.AsyncClient(transport=transport, base_url="http://test")

    return _make


@pytest.fixture
def auth_headers():
    def _headers(settings: Settings, *, scopes=("user_impersonation",), roles=()) -> dict[str, str]:
        token = issue_token(
            cfg=JwtConfig.from_azure_ad(settings.azure_ad),
            subject="integration-test",
            scopes=list(scopes),
            roles=list(roles),
        )
        return {"Authorization": f"Bearer {token}"}

    return _headers
