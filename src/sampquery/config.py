"""Configuration loading for the query client."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from sampquery.client import DEFAULT_TIMEOUT
from sampquery.encoding import DEFAULT_CODEPAGE
from sampquery.protocol import DEFAULT_ADDRESS, DEFAULT_PORT

CONFIG_DIR = Path.home() / ".config" / "sampquery"
CONFIG_FILE = CONFIG_DIR / "config.toml"
HISTORY_FILE = CONFIG_DIR / "history"


@dataclass(frozen=True)
class QueryDefaults:
    """Options applied to every server that does not override them."""

    timeout: float = DEFAULT_TIMEOUT
    encoding: str = DEFAULT_CODEPAGE
    resolve: bool = False


@dataclass(frozen=True)
class ServerConfig:
    """Configuration for a single SA-MP server.

    ``timeout``, ``encoding`` and ``resolve`` are None when not set for this
    server, in which case the defaults apply.
    """

    name: str
    host: str
    port: int = DEFAULT_PORT
    timeout: float | None = None
    encoding: str | None = None
    resolve: bool | None = None

    def effective_timeout(self, defaults: QueryDefaults) -> float:
        return self.timeout if self.timeout is not None else defaults.timeout

    def effective_encoding(self, defaults: QueryDefaults) -> str:
        return self.encoding if self.encoding is not None else defaults.encoding

    def effective_resolve(self, defaults: QueryDefaults) -> bool:
        return self.resolve if self.resolve is not None else defaults.resolve


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration."""

    default_server: str | None
    defaults: QueryDefaults
    servers: dict[str, ServerConfig]


def load_config(path: Path = CONFIG_FILE) -> AppConfig:
    """Load and parse the configuration file.

    Returns hardcoded defaults if no config file exists.
    """
    if not path.exists():
        return _default_config()

    with path.open("rb") as f:
        raw = tomllib.load(f)

    defaults_raw = raw.get("defaults", {})
    defaults = QueryDefaults(
        timeout=float(defaults_raw.get("timeout", DEFAULT_TIMEOUT)),
        encoding=defaults_raw.get("encoding", DEFAULT_CODEPAGE),
        resolve=bool(defaults_raw.get("resolve", False)),
    )

    servers: dict[str, ServerConfig] = {}
    for key, val in raw.get("servers", {}).items():
        timeout = val.get("timeout")
        servers[key] = ServerConfig(
            name=val.get("name", key),
            host=val["host"],
            port=val.get("port", DEFAULT_PORT),
            timeout=float(timeout) if timeout is not None else None,
            encoding=val.get("encoding"),
            resolve=val.get("resolve"),
        )

    return AppConfig(
        default_server=defaults_raw.get("server"),
        defaults=defaults,
        servers=servers,
    )


def _default_config() -> AppConfig:
    """Return the hardcoded default configuration."""
    return AppConfig(
        default_server="local",
        defaults=QueryDefaults(),
        servers={
            "local": ServerConfig(name="Local server", host=DEFAULT_ADDRESS),
        },
    )


def ensure_config_dir() -> None:
    """Create the config directory if it does not exist."""
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
