"""
api_template.features

Feature modules: self-contained units that register services and HTTP endpoints.
"""

from __future__ import annotations

from api_template.features.info import InfoModule
from api_template.features.openapi import OpenApiModule
from api_template.modules import FeatureModule


def default_modules() -> list[FeatureModule]:
    # Registration and mapping follow this order.
    return [InfoModule(), OpenApiModule()]
