"""
api_template.auth.jwt

JWT issuing and validation helpers.

Responsibilities:
- Issue short-lived JWTs for local development and tests.
- Decode and validate JWTs with strict claim requirements (iss/aud/exp/iat/sub).

Note:
- The identity provider is external; tokens it issues are validated with the configured
  key and algorithm. Production setups usually move to RS256 + JWKS.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from api_template.settings import AzureAdSettings


@dataclass(frozen=True, slots=True)
class JwtConfig:
    alg: str
    issuer: str
    audience: str
    secret: str

    @classmethod
    def from_azure_ad(cls, azure_ad: AzureAdSettings) -> JwtConfig:
        return cls(
            alg=azure_ad.algorithm,
            issuer=azure_ad.issuer,
            audience=azure_ad.audience or azure_ad.client_id,
            secret=azure_ad.signing_key.get_secret_value(),
        )


class JwtValidationError(Exception):
    pass


def issue_token(
    *,
    cfg: JwtConfig,
    subject: str,
    scopes: list[str] | None = None,
    roles: list[str] | None = None,
    ttl: timedelta = timedelta(hours=1),
) -> str:
    now = datetime.now(tz=UTC)
    # `scp` is space separated, matching what the identity provider emits for delegated tokens.
    payload: dict[str, Any] = {
        "iss": cfg.issuer,
        "aud": cfg.audience,
        "sub": subject,
        "scp": " ".join(scopes or []),
        "roles": roles or [],
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    return jwt.encode(payload, cfg.secret, algorithm=cfg.alg)


def decode_and_validate(*, cfg: JwtConfig, token: str) -> dict[str, Any]:
    try:
        return jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            issuer=cfg.issuer,
            audience=cfg.audience,
            options={
                "require": ["exp", "iat", "iss", "aud", "sub"],
            },
        )
    except InvalidTokenError as e:
        raise JwtValidationError(str(e)) from e


# --- Module Notes -----------------------------------------------------------
# `issue_token` is not exposed over HTTP; tests and local scripts call it directly.
