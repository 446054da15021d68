"""
api_template.modules

Feature module contract and registry.

Responsibilities:
- Define the `FeatureModule` protocol (register services, map endpoints).
- Register modules exactly once at startup and expose their metadata.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from fastapi import FastAPI

from api_template.observability.logging import get_logger
from api_template.settings import Settings

log = get_logger(__name__)

# Service names shared between the bootstrap and feature modules.
CONFIGURATION_SERVICE = "configuration"
REGISTRY_SERVICE = "module_registry"


class ModuleRegistrationError(RuntimeError):
    """Raised when a feature module cannot be registered; aborts startup."""


@dataclass(frozen=True, slots=True)
class FeatureModuleInfo:
    name: str
    version: str | None = None

    def as_dict(self) -> dict[str, str | None]:
        return {"name": self.name, "version": self.version}


@dataclass(slots=True)
class ModuleContext:
    """
    Shared registration context: settings snapshot, environment name and service container.
    """

    settings: Settings
    environment: str
    services: dict[str, Any] = field(default_factory=dict)

    def add_service(self, name: str, instance: Any) -> None:
        if name in self.services:
            raise ModuleRegistrationError(f"Service {name!r} is already registered")
        self.services[name] = instance


@runtime_checkable
class FeatureModule(Protocol):
    module_info: FeatureModuleInfo

    def register_module(self, context: ModuleContext) -> ModuleContext: ...

    def map_endpoints(self, app: FastAPI) -> None: ...


class ModuleRegistry:
    def __init__(self, modules: Iterable[FeatureModule]) -> None:
        self._modules: tuple[FeatureModule, ...] = tuple(modules)
        self._registered = False
        self._mapped = False

    @property
    def modules(self) -> tuple[FeatureModule, ...]:
        return self._modules

    def infos(self) -> list[FeatureModuleInfo]:
        return [m.module_info for m in self._modules]

    def register_all(self, context: ModuleContext) -> ModuleContext:
        if self._registered:
            log.warning("modules_already_registered")
            return context
        for module in self._modules:
            try:
                context = module.register_module(context)
            except ModuleRegistrationError:
                raise
            except Exception as e:
                raise ModuleRegistrationError(
                    f"Failed to register module {module.module_info.name}: {e}"
                ) from e
            log.info("module_registered", module=module.module_info.name, version=module.module_info.version)
        self._registered = True
        return context

    def map_all(self, app: FastAPI) -> None:
        if self._mapped:
            log.warning("modules_already_mapped")
            return
        for module in self._modules:
            module.map_endpoints(app)
        self._mapped = True


# --- Module Notes -----------------------------------------------------------
# Modules are listed explicitly in `api_template.features.default_modules`; there is no
# dynamic plugin discovery.
