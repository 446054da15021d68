"""
api_template.api

API package for the service.

Responsibilities:
- FastAPI app factory, error handling and service-default routers.
- API-layer dependency wiring.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Feature endpoints live in `api_template.features`; this package only composes them.
