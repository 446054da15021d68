"""
api_template.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Convert a bearer token into a typed `Principal`.
- Provide `require_authorization`, the marker dependency for protected endpoints.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from api_template.api.deps import settings_dep
from api_template.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from api_template.auth.models import Principal
from api_template.observability.logging import get_logger
from api_template.settings import Settings

log = get_logger(__name__)

# Named "bearer" so the generated scheme lines up with the one the OpenAPI module publishes.
_bearer = HTTPBearer(auto_error=False, scheme_name="bearer")

_CHALLENGE = {"WWW-Authenticate": "Bearer"}


def get_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(settings_dep),
) -> Principal:
    if creds is None or not creds.credentials:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Missing bearer token", headers=_CHALLENGE)

    try:
        payload = decode_and_validate(cfg=JwtConfig.from_azure_ad(settings.azure_ad), token=creds.credentials)
    except JwtValidationError as e:
        log.info("token_rejected", reason=str(e))
        raise HTTPException(
            status_code=HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}", headers=_CHALLENGE
        ) from e

    subject = str(payload.get("sub", ""))
    scopes_raw = payload.get("scp", "")
    roles_raw = payload.get("roles", [])
    if not subject:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token subject", headers=_CHALLENGE)
    if not isinstance(scopes_raw, str) or not isinstance(roles_raw, list):
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Invalid token claims", headers=_CHALLENGE)

    return Principal(
        subject=subject,
        scopes=frozenset(scopes_raw.split()),
        roles=frozenset(str(r) for r in roles_raw),
    )


def require_authorization(
    principal: Principal = Depends(get_principal),
    settings: Settings = Depends(settings_dep),
) -> Principal:
    # Delegated tokens must carry one of the configured scopes; app-only tokens carry roles instead.
    # The OpenAPI module keys off this dependency to mark operations as protected.
    if principal.roles or principal.has_any_scope(frozenset(settings.azure_ad.scope_names)):
        return principal
    raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Insufficient scope")


# --- Module Notes -----------------------------------------------------------
# Authorization failures are raised as HTTPException and rendered as status-code pages;
# they never reach the global exception handler.
