"""
api_template.auth

Authentication/authorization scaffolding.

Responsibilities:
- JWT helpers and validation.
- FastAPI auth dependencies (Principal + authorization marker).
"""

# Package marker.
