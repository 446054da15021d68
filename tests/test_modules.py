"""
tests.test_modules

Module registry: single registration, ordering and fatal failures.
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI

from api_template.modules import (
    FeatureModule,
    FeatureModuleInfo,
    ModuleContext,
    ModuleRegistrationError,
    ModuleRegistry,
)


class RecordingModule:
    def __init__(self, name: str, calls: list[str]) -> None:
        self.module_info = FeatureModuleInfo(name=name, version="1.0")
        self._calls = calls

    def register_module(self, context: ModuleContext) -> ModuleContext:
        self._calls.append(f"register:{self.module_info.name}")
        context.add_service(self.module_info.name, object())
        return context

    def map_endpoints(self, app: FastAPI) -> None:
        self._calls.append(f"map:{self.module_info.name}")


class BrokenModule:
    module_info = FeatureModuleInfo(name="broken")

    def register_module(self, context: ModuleContext) -> ModuleContext:
        raise KeyError("azure_ad")

    def map_endpoints(self, app: FastAPI) -> None:
        raise AssertionError("never mapped")


def test_modules_register_and_map_once_in_order(make_settings) -> None:
    calls: list[str] = []
    first, second = RecordingModule("a", calls), RecordingModule("b", calls)
    registry = ModuleRegistry([first, second])
    context = ModuleContext(settings=make_settings(), environment="IntegrationTest")
    app = FastAPI()

    context = registry.register_all(context)
    registry.register_all(context)
    registry.map_all(app)
    registry.map_all(app)

    assert calls == ["register:a", "register:b", "map:a", "map:b"]
    assert set(context.services) == {"a", "b"}
    assert [info.name for info in registry.infos()] == ["a", "b"]
    assert registry.modules == (first, second)


def test_registration_failure_is_fatal(make_settings) -> None:
    registry = ModuleRegistry([BrokenModule()])
    context = ModuleContext(settings=make_settings(), environment="IntegrationTest")

    with pytest.raises(ModuleRegistrationError, match="broken"):
        registry.register_all(context)


def test_duplicate_service_registration_fails(make_settings) -> None:
    context = ModuleContext(settings=make_settings(), environment="IntegrationTest")
    context.add_service("composer", object())

    with pytest.raises(ModuleRegistrationError):
        context.add_service("composer", object())


def test_feature_modules_satisfy_protocol() -> None:
    from api_template.features import default_modules

    modules = default_modules()
    assert all(isinstance(m, FeatureModule) for m in modules)
    assert modules[0].module_info.as_dict() == {
        "name": "api_template.features.info.InfoModule",
        "version": "0.1.0",
    }
