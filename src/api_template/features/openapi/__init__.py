"""
api_template.features.openapi

OpenAPI document composition and interactive reference UI.
"""

from api_template.features.openapi.module import OpenApiModule

__all__ = ["OpenApiModule"]
