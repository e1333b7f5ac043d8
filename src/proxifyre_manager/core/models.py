"""Configuration data model for the ProxiFyre service.

This module defines the in-memory shape of ``app-config.json``:
- Log level of the controlled service
- Proxy rules mapping applications to a SOCKS5 endpoint
- Global exclude list

Each type converts to and from the JSON wire format. Field names on the wire
are fixed by the service (``appNames``, ``socks5ProxyEndpoint`` and so on) and
must not change. Parsing is lenient about missing keys and ``null`` lists but
raises ``TypeError`` or ``ValueError`` when the document has the wrong
structure, leaving the fallback decision to the caller.

Example:
    rule = ProxyRule(app_names=["firefox"], endpoint="127.0.0.1:1080")
    config = AppConfig(proxies=[rule])
    config.to_dict()["proxies"][0]["supportedProtocols"]  # ["TCP"]
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Final

from loguru import logger


class LogLevel(str, Enum):
    """Log levels understood by the ProxiFyre service."""

    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"
    DEBUG = "Debug"
    ALL = "All"


class Protocol(str, Enum):
    """Transport protocols a rule can redirect."""

    TCP = "TCP"
    UDP = "UDP"


# Canonical order on the wire
PROTOCOL_ORDER: Final = (Protocol.TCP, Protocol.UDP)


def normalize_protocols(protocols: Iterable[Protocol]) -> tuple[Protocol, ...]:
    """Deduplicate protocols and put them in canonical order (TCP before UDP)."""
    chosen = set(protocols)
    return tuple(proto for proto in PROTOCOL_ORDER if proto in chosen)


@dataclass
class Credentials:
    """SOCKS5 username/password pair."""

    username: str = ""
    password: str = ""

    @property
    def is_empty(self) -> bool:
        return not self.username and not self.password


@dataclass
class ProxyRule:
    """A set of applications routed through one SOCKS5 endpoint.

    Attributes:
        app_names: Process image names to match, in the order entered
        endpoint: SOCKS5 upstream, intended form ``host:port`` (not validated)
        credentials: Optional authentication; None means unauthenticated
        supported_protocols: Subset of TCP/UDP, TCP first
    """

    app_names: list[str] = field(default_factory=list)
    endpoint: str = ""
    credentials: Credentials | None = None
    supported_protocols: tuple[Protocol, ...] = (Protocol.TCP,)

    def __post_init__(self) -> None:
        self.supported_protocols = normalize_protocols(self.supported_protocols)
        # An all-empty pair is written as "no credentials", so it must compare that way too
        if self.credentials is not None and self.credentials.is_empty:
            self.credentials = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON wire format, omitting empty credentials."""
        data: dict[str, Any] = {
            "appNames": list(self.app_names),
            "socks5ProxyEndpoint": self.endpoint,
        }
        if self.credentials is not None:
            if self.credentials.username:
                data["username"] = self.credentials.username
            if self.credentials.password:
                data["password"] = self.credentials.password
        data["supportedProtocols"] = [proto.value for proto in self.supported_protocols]
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "ProxyRule":
        """Build a rule from one entry of the ``proxies`` array."""
        if not isinstance(data, Mapping):
            msg = f"proxy entry must be an object, got {type(data).__name__}"
            raise TypeError(msg)

        username = _string(data.get("username"), "username")
        password = _string(data.get("password"), "password")

        protocols = []
        for name in _string_list(data.get("supportedProtocols"), "supportedProtocols"):
            try:
                protocols.append(Protocol(name.strip().upper()))
            except ValueError:
                logger.warning(f"Ignoring unknown protocol {name!r}")

        return cls(
            app_names=_string_list(data.get("appNames"), "appNames"),
            endpoint=_string(data.get("socks5ProxyEndpoint"), "socks5ProxyEndpoint"),
            credentials=Credentials(username, password),
            supported_protocols=tuple(protocols),
        )


@dataclass
class AppConfig:
    """Top-level configuration object representing app-config.json."""

    log_level: LogLevel = LogLevel.ERROR
    proxies: list[ProxyRule] = field(default_factory=list)
    excludes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dict ready for JSON dump, in wire field order."""
        return {
            "logLevel": self.log_level.value,
            "proxies": [rule.to_dict() for rule in self.proxies],
            "excludes": list(self.excludes),
        }

    @classmethod
    def from_dict(cls, data: Any) -> "AppConfig":
        """Build a config from a decoded JSON document.

        Raises:
            TypeError: If the document or one of its fields has the wrong type
        """
        if not isinstance(data, Mapping):
            msg = f"configuration must be a JSON object, got {type(data).__name__}"
            raise TypeError(msg)

        raw_level = data.get("logLevel")
        if raw_level is None:
            log_level = LogLevel.ERROR
        elif not isinstance(raw_level, str):
            msg = f"logLevel must be a string, got {type(raw_level).__name__}"
            raise TypeError(msg)
        else:
            try:
                log_level = LogLevel(raw_level)
            except ValueError:
                logger.warning(f"Unknown log level {raw_level!r}, using {LogLevel.ERROR.value}")
                log_level = LogLevel.ERROR

        raw_proxies = data.get("proxies")
        if raw_proxies is None:
            raw_proxies = []
        elif not isinstance(raw_proxies, list):
            msg = f"proxies must be an array, got {type(raw_proxies).__name__}"
            raise TypeError(msg)

        return cls(
            log_level=log_level,
            proxies=[ProxyRule.from_dict(entry) for entry in raw_proxies],
            excludes=_string_list(data.get("excludes"), "excludes"),
        )


def _string(value: Any, name: str) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        msg = f"{name} must be a string, got {type(value).__name__}"
        raise TypeError(msg)
    return value


def _string_list(value: Any, name: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        msg = f"{name} must be an array of strings"
        raise TypeError(msg)
    return list(value)
