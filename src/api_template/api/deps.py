"""
api_template.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings and registered services.
- Encapsulate app.state access patterns.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request

from api_template.settings import Settings


def settings_dep(request: Request) -> Settings:
    # The settings snapshot is stored once by `api_template.api.app.create_app`.
    return request.app.state.settings  # type: ignore[attr-defined]


def service(name: str):
    """
    Dependency factory resolving a service registered through a `ModuleContext`.
    """

    def _dep(request: Request) -> Any:
        return request.app.state.services[name]  # type: ignore[attr-defined]

    return _dep


# --- Module Notes -----------------------------------------------------------
# Services are registered at startup and never replaced, so lookups need no locking.
