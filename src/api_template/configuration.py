"""
api_template.configuration

Flattened, provider-aware view of the active configuration.

Responsibilities:
- Capture an immutable snapshot of every leaf setting with the provider that supplied it.
- Render a redacted text dump for diagnostics (`GET /info/config`).
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import SecretStr
from pydantic_settings import DotEnvSettingsSource, EnvSettingsSource

from api_template.settings import SecretStoreSettingsSource, Settings

MASK = "******"

# Matched case-insensitively against the key path with underscores removed.
SENSITIVE_KEY_FRAGMENTS: tuple[str, ...] = ("ConnectionString", "Auth", "Secret")

SECRET_STORE_PROVIDER = "SecretStore"
ENVIRONMENT_PROVIDER = "EnvironmentVariables"
DOTENV_PROVIDER = "DotEnv"
APPLICATION_PROVIDER = "Application"


@dataclass(frozen=True, slots=True)
class ConfigEntry:
    path: str
    value: Any
    provider: str

    @property
    def from_secret_store(self) -> bool:
        return self.provider == SECRET_STORE_PROVIDER


def is_sensitive_key(path: str) -> bool:
    normalized = path.replace("_", "").lower()
    return any(fragment.lower() in normalized for fragment in SENSITIVE_KEY_FRAGMENTS)


def should_mask(entry: ConfigEntry) -> bool:
    return entry.from_secret_store or isinstance(entry.value, SecretStr) or is_sensitive_key(entry.path)


def flatten(data: Mapping[str, Any], prefix: str = "") -> Iterator[tuple[str, Any]]:
    for key, value in data.items():
        path = f"{prefix}:{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            if value:
                yield from flatten(value, path)
            continue
        yield path, value


@dataclass(frozen=True, slots=True)
class ConfigurationSnapshot:
    entries: tuple[ConfigEntry, ...]

    @classmethod
    def capture(cls, settings: Settings) -> ConfigurationSnapshot:
        settings_cls = type(settings)
        # Highest precedence first; values not supplied by any provider come from code defaults
        # or explicit overrides.
        providers: list[tuple[str, set[str]]] = [
            (
                SECRET_STORE_PROVIDER,
                set(SecretStoreSettingsSource.from_environment(settings_cls).read_secrets()),
            ),
            (ENVIRONMENT_PROVIDER, {path for path, _ in flatten(EnvSettingsSource(settings_cls)())}),
            (DOTENV_PROVIDER, {path for path, _ in flatten(DotEnvSettingsSource(settings_cls)())}),
        ]

        entries = []
        for path, value in flatten(settings.model_dump()):
            provider = next(
                (name for name, paths in providers if path in paths or path.lower() in paths),
                APPLICATION_PROVIDER,
            )
            entries.append(ConfigEntry(path=path, value=value, provider=provider))
        return cls(entries=tuple(sorted(entries, key=lambda e: e.path)))

    def get(self, path: str) -> ConfigEntry | None:
        return next((e for e in self.entries if e.path == path), None)

    def render(self) -> str:
        lines = []
        for entry in self.entries:
            value = MASK if should_mask(entry) else _format_value(entry.value)
            lines.append(f"{entry.path}={value} ({entry.provider})")
        return "\n".join(lines) + "\n"


def _format_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


# --- Module Notes -----------------------------------------------------------
# Provider attribution re-reads the sources once at startup; the snapshot is then
# shared read-only by every request.
