"""
api_template.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Read secrets from a mounted secret store directory with the highest
  precedence after explicit overrides.
- Hide secrets from repr/logging (signing key, client secret).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, SecretStr
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

ENV_PREFIX = "TEMPLATE_"
SECRETS_DIR_ENV = f"{ENV_PREFIX}SECRETS_DIR"

# Secret store file names use "--" between key path segments (azure_ad--client_secret).
SECRET_KEY_DELIMITER = "--"


class AzureAdSettings(BaseModel):
    instance: str = "https://login.microsoftonline.com/"
    tenant_id: str = "common"
    client_id: str = "00000000-0000-0000-0000-000000000000"
    app_identifier: str = "api://api-template"
    # Space separated scope names, prefixed with `app_identifier` when published.
    scopes: str = "user_impersonation"
    audience: str | None = None
    client_secret: SecretStr | None = Field(default=None, repr=False)

    # Local token validation; production deployments typically switch to RS256 + JWKS.
    algorithm: str = "HS256"
    signing_key: SecretStr = Field(default=SecretStr("dev-signing-key-change-me-0123456789abcdef"), repr=False)

    @property
    def authority(self) -> str:
        return f"{self.instance}{self.tenant_id}"

    @property
    def issuer(self) -> str:
        return f"{self.authority}/v2.0"

    @property
    def scope_names(self) -> list[str]:
        return self.scopes.split()

    @property
    def qualified_scopes(self) -> list[str]:
        return [f"{self.app_identifier}/{scope}" for scope in self.scope_names]


class OpenApiSettings(BaseModel):
    title: str = "API Template"
    description: str = "Starter template for web API services"


class ScalarSettings(BaseModel):
    title: str = "API Template Reference"
    theme: str = "default"
    preferred_security_scheme: str = "oauth2"


class SecretStoreSettingsSource(PydanticBaseSettingsSource):
    """
    Settings source backed by a directory of secret files (Docker/Kubernetes secret mounts).

    Every regular file is one value; its name is the lower-cased key path joined by `--`.
    """

    def __init__(self, settings_cls: type[BaseSettings], secrets_dir: str | Path | None) -> None:
        super().__init__(settings_cls)
        self.secrets_dir = Path(secrets_dir) if secrets_dir else None

    @classmethod
    def from_environment(cls, settings_cls: type[BaseSettings]) -> SecretStoreSettingsSource:
        # The process environment is the only place the store location is read from;
        # `.env` and init overrides are themselves sources and load too late.
        return cls(settings_cls, os.environ.get(SECRETS_DIR_ENV))

    def read_secrets(self) -> dict[str, str]:
        # Flat view: "azure_ad:client_secret" -> value.
        if self.secrets_dir is None or not self.secrets_dir.is_dir():
            return {}
        secrets: dict[str, str] = {}
        for path in sorted(self.secrets_dir.iterdir()):
            # Skip mount bookkeeping entries such as `..data`.
            if path.name.startswith(".") or not path.is_file():
                continue
            key = ":".join(path.name.lower().split(SECRET_KEY_DELIMITER))
            secrets[key] = path.read_text(encoding="utf-8").strip()
        return secrets

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        value = self().get(field_name)
        return value, field_name, isinstance(value, dict)

    def __call__(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for key, value in self.read_secrets().items():
            head, *rest = key.split(":")
            if head not in self.settings_cls.model_fields:
                continue
            if not rest:
                data[head] = value
                continue
            node = data.setdefault(head, {})
            for part in rest[:-1]:
                node = node.setdefault(part, {})
            node[rest[-1]] = value
        return data


class Settings(BaseSettings):
    """
    Service configuration.

    - Env vars use the `TEMPLATE_` prefix and `__` for nested sections
      (`TEMPLATE_AZURE_AD__TENANT_ID`).
    - Precedence: explicit overrides > secret store > env > .env > defaults.
    - Treated as an immutable snapshot once the app is built.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        env_file=".env",
        case_sensitive=False,
        frozen=True,
    )

    environment: str = "Development"
    service_name: str = "api-template"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080
    https_redirection: bool = False

    azure_ad: AzureAdSettings = Field(default_factory=AzureAdSettings)
    open_api: OpenApiSettings = Field(default_factory=OpenApiSettings)
    scalar: ScalarSettings = Field(default_factory=ScalarSettings)
    connection_strings: dict[str, str] = Field(default_factory=dict)

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        secret_store = SecretStoreSettingsSource.from_environment(settings_cls)
        return init_settings, secret_store, env_settings, dotenv_settings


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars and secret files for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Settings are the only process-wide configuration; everything else receives the
# instance explicitly (create_app, ModuleContext, request dependencies).
