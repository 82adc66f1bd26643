"""Typed settings for the Gogs branch source integration.

Server location, scan credentials, proxy and receiver settings are wrapped in
Pydantic models so the API client, the webhook receiver and the CLI all rely
on validated values. Settings are read from a JSON file and can be
overridden from the environment.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlsplit

from pydantic import BaseModel, Field, SecretStr, ValidationError, field_validator
from requests.utils import should_bypass_proxies


DEFAULT_CONFIG_PATH = Path.home() / ".gogs-branch-source" / "config.json"
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_READ_TIMEOUT = 60.0

ENV_OVERRIDES = {
    "GOGS_SERVER_URL": ("server", "server_url"),
    "GOGS_USERNAME": ("server", "username"),
    "GOGS_PASSWORD": ("server", "password"),
    "GOGS_ROOT_URL": ("receiver", "root_url"),
    "GOGS_LISTEN_PORT": ("receiver", "listen_port"),
}


def normalize_server_url(value: str) -> str:
    """Validate an http(s) URL and strip a trailing slash."""
    value = value.strip()
    parts = urlsplit(value)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise ValueError(f"Invalid URL: {value!r}")
    return value.rstrip("/")


class Credentials(BaseModel):
    """Username/password pair used for HTTP Basic authentication."""

    username: str = Field(..., min_length=1)
    password: SecretStr

    @classmethod
    def from_values(
        cls, username: Optional[str], password: Optional[str]
    ) -> Optional["Credentials"]:
        """Build credentials, or ``None`` (anonymous) if either part is blank."""
        if not username or not username.strip() or not password or not password.strip():
            return None
        return cls(username=username, password=SecretStr(password))


class ProxySettings(BaseModel):
    """HTTP proxy used for outbound API requests."""

    host: str = Field(..., min_length=1)
    port: int = Field(..., ge=1, le=65535)
    username: Optional[str] = None
    password: Optional[SecretStr] = None
    no_proxy_hosts: List[str] = Field(default_factory=list)

    def proxy_url(self) -> str:
        auth = ""
        if self.username and self.username.strip():
            secret = self.password.get_secret_value() if self.password else ""
            auth = f"{quote(self.username, safe='')}:{quote(secret, safe='')}@"
        return f"http://{auth}{self.host}:{self.port}"

    def applies_to(self, url: str) -> bool:
        """Return False when the host of ``url`` is on the no-proxy list."""
        no_proxy = ",".join(
            "." + entry[2:] if entry.startswith("*.") else entry
            for entry in (host.strip() for host in self.no_proxy_hosts)
            if entry
        )
        if not no_proxy:
            return True
        return not should_bypass_proxies(url, no_proxy=no_proxy)


class ServerSettings(BaseModel):
    """Gogs server connection settings."""

    server_url: str = Field(..., description="Gogs server base URL")
    username: Optional[str] = None
    password: Optional[SecretStr] = None
    connect_timeout: float = Field(DEFAULT_CONNECT_TIMEOUT, gt=0)
    read_timeout: float = Field(DEFAULT_READ_TIMEOUT, gt=0)
    proxy: Optional[ProxySettings] = None

    @field_validator("server_url")
    @classmethod
    def _validate_server_url(cls, value: str) -> str:
        return normalize_server_url(value)

    def credentials(self) -> Optional[Credentials]:
        password = self.password.get_secret_value() if self.password else None
        return Credentials.from_values(self.username, password)


class ReceiverSettings(BaseModel):
    """Settings of the inbound webhook receiver."""

    root_url: Optional[str] = Field(
        default=None,
        description="Public root URL of this system, used to build the hook URL",
    )
    listen_host: str = Field(default="127.0.0.1")
    listen_port: int = Field(default=8080, ge=1, le=65535)

    @field_validator("root_url")
    @classmethod
    def _validate_root_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        normalized = normalize_server_url(value)
        return normalized + "/"


class Settings(BaseModel):
    """Root configuration state."""

    server: ServerSettings
    receiver: ReceiverSettings = Field(default_factory=ReceiverSettings)


def load_settings(path: Path = DEFAULT_CONFIG_PATH) -> Settings:
    """Load settings from disk or raise if invalid."""

    if not path.exists():
        raise FileNotFoundError(f"Settings file not found at {path}")
    payload = json.loads(path.read_text(encoding="utf-8"))
    payload = apply_env_overrides(payload)
    try:
        return Settings.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc


def save_settings(settings: Settings, path: Path = DEFAULT_CONFIG_PATH) -> None:
    """Persist settings to disk without passwords.

    Reloading the file yields no password, so credentials come from
    ``GOGS_PASSWORD`` or the host.
    """

    payload = _strip_secret_fields(settings.model_dump(mode="json"))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def apply_env_overrides(
    payload: Dict[str, Any], environ: Optional[Dict[str, str]] = None
) -> Dict[str, Any]:
    """Overlay ``GOGS_*`` environment variables onto a raw settings dict."""

    environ = os.environ if environ is None else environ
    merged = json.loads(json.dumps(payload))
    for variable, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(variable)
        if value:
            merged.setdefault(section, {})[key] = value
    return merged


def _strip_secret_fields(payload: Dict[str, Any]) -> Dict[str, Any]:
    stripped: Dict[str, Any] = {}
    for key, value in payload.items():
        if key == "password":
            continue
        stripped[key] = _strip_secret_fields(value) if isinstance(value, dict) else value
    return stripped


__all__ = [
    "Credentials",
    "DEFAULT_CONFIG_PATH",
    "ENV_OVERRIDES",
    "ProxySettings",
    "ReceiverSettings",
    "ServerSettings",
    "Settings",
    "apply_env_overrides",
    "load_settings",
    "normalize_server_url",
    "save_settings",
]
