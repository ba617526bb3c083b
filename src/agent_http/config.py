"""Configuration models and proxy URL validation."""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

import httpx

from agent_http.exceptions import ConfigurationError, ProxyConfigError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
DEFAULT_MAX_REDIRECTS = 5

_PASSWORD_IN_URL = re.compile(r"(://[^/@:]*:)[^/@]*@")


class ProxyScheme(str, Enum):
    """Category of outbound traffic that can be routed through its own proxy."""

    HTTP = "http"
    HTTPS = "https"
    SOCKS = "socks"


# URL schemes accepted for each proxy slot (must be understood by httpx.Proxy)
ALLOWED_URL_SCHEMES = {
    ProxyScheme.HTTP: frozenset({"http", "https", "socks5", "socks5h"}),
    ProxyScheme.HTTPS: frozenset({"http", "https", "socks5", "socks5h"}),
    ProxyScheme.SOCKS: frozenset({"socks5", "socks5h"}),
}

_PROXY_KEYS = ("http", "https", "socks", "username", "password")
_CONFIG_KEYS = ("proxy", "originator", "timeout", "follow_redirects", "max_redirects")


def redact_url(value: str) -> str:
    """Replace the password in a URL's userinfo with ``***``."""
    return _PASSWORD_IN_URL.sub(r"\1***@", value)


def parse_proxy_url(value: str, scheme: ProxyScheme, field: Optional[str] = None) -> httpx.URL:
    """
    Parse and validate a proxy endpoint for the given slot.

    Args:
        value: Proxy URL (e.g., http://proxy:8080)
        scheme: Slot the URL is meant for
        field: Name reported in the error (defaults to the slot name)

    Returns:
        Parsed httpx.URL, userinfo included

    Raises:
        ProxyConfigError: If the URL is not absolute, has no host or uses a
            scheme the slot does not support
    """
    field = field or scheme.value
    text = value.strip()
    shown = redact_url(text)

    if "://" not in text:
        raise ProxyConfigError(
            f"Invalid proxy URL for '{field}': {shown!r} is missing a scheme "
            f"(expected e.g. {sorted(ALLOWED_URL_SCHEMES[scheme])[0]}://host:port)",
            field=field,
            value=shown,
        )

    try:
        url = httpx.URL(text)
    except httpx.InvalidURL as e:
        raise ProxyConfigError(
            f"Invalid proxy URL for '{field}': {shown!r}: {e}", field=field, value=shown
        ) from e

    if url.scheme not in ALLOWED_URL_SCHEMES[scheme]:
        allowed = ", ".join(sorted(ALLOWED_URL_SCHEMES[scheme]))
        raise ProxyConfigError(
            f"Unsupported scheme {url.scheme!r} for '{field}' proxy {shown!r} (allowed: {allowed})",
            field=field,
            value=shown,
        )

    if not url.host:
        raise ProxyConfigError(
            f"Invalid proxy URL for '{field}': {shown!r} has no host", field=field, value=shown
        )

    return url


def _optional_str(data: Mapping[str, Any], key: str, prefix: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(
            f"'{prefix}{key}' must be a string, got {type(value).__name__}", field=f"{prefix}{key}"
        )
    return value


def _reject_unknown_keys(data: Mapping[str, Any], known: Tuple[str, ...], prefix: str) -> None:
    unknown = sorted(str(key) for key in data if key not in known)
    if unknown:
        raise ConfigurationError(
            f"Unknown key(s) in {prefix.rstrip('.') or 'configuration'}: {', '.join(unknown)}",
            field=f"{prefix}{unknown[0]}",
        )


@dataclass(frozen=True)
class ProxyConfig:
    """Explicitly configured proxy endpoints.

    Credentials apply to every configured URL. Blank strings count as unset.
    """

    http: Optional[str] = None
    https: Optional[str] = None
    socks: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    def __post_init__(self) -> None:
        for name in _PROXY_KEYS:
            value = getattr(self, name)
            if value is None:
                continue
            if not isinstance(value, str):
                raise ProxyConfigError(
                    f"'proxy.{name}' must be a string, got {type(value).__name__}",
                    field=f"proxy.{name}",
                )
            if not value.strip():
                object.__setattr__(self, name, None)

        for scheme in ProxyScheme:
            value = self.url_for(scheme)
            if value is not None:
                parse_proxy_url(value, scheme, field=f"proxy.{scheme.value}")

        if self.password is not None and self.username is None:
            raise ProxyConfigError(
                "Proxy password is configured without a username", field="proxy.password"
            )

    def __repr__(self) -> str:
        password = "***" if self.password is not None else None
        http, https, socks = (
            redact_url(value) if value is not None else None
            for value in (self.http, self.https, self.socks)
        )
        return (
            f"ProxyConfig(http={http!r}, https={https!r}, socks={socks!r}, "
            f"username={self.username!r}, password={password!r})"
        )

    def url_for(self, scheme: ProxyScheme) -> Optional[str]:
        return getattr(self, scheme.value)

    @property
    def credentials(self) -> Optional[Tuple[str, str]]:
        """Configured (username, password), or None."""
        if self.username is None:
            return None
        return (self.username, self.password or "")

    def is_empty(self) -> bool:
        return all(self.url_for(scheme) is None for scheme in ProxyScheme)

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> Optional["ProxyConfig"]:
        """
        Build a ProxyConfig from an already-parsed ``proxy`` table.

        Args:
            data: Mapping with optional http/https/socks/username/password keys

        Returns:
            ProxyConfig, or None if no table was given

        Raises:
            ConfigurationError: On unknown keys, non-string values or invalid URLs
        """
        if data is None:
            return None
        if not isinstance(data, Mapping):
            raise ConfigurationError(
                f"'proxy' must be a table, got {type(data).__name__}", field="proxy"
            )
        _reject_unknown_keys(data, _PROXY_KEYS, "proxy.")
        return cls(**{key: _optional_str(data, key, "proxy.") for key in _PROXY_KEYS})


@dataclass(frozen=True)
class Config:
    """Settings consumed by the HTTP client factory."""

    proxy: Optional[ProxyConfig] = None
    originator: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT
    follow_redirects: bool = True
    max_redirects: int = DEFAULT_MAX_REDIRECTS

    def __post_init__(self) -> None:
        if self.proxy is not None and not isinstance(self.proxy, ProxyConfig):
            raise ConfigurationError(
                f"'proxy' must be a ProxyConfig, got {type(self.proxy).__name__}", field="proxy"
            )
        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)) or self.timeout <= 0:
            raise ConfigurationError(
                f"'timeout' must be a positive number, got {self.timeout!r}", field="timeout"
            )
        if not isinstance(self.follow_redirects, bool):
            raise ConfigurationError(
                f"'follow_redirects' must be a boolean, got {self.follow_redirects!r}",
                field="follow_redirects",
            )
        if isinstance(self.max_redirects, bool) or not isinstance(self.max_redirects, int) or self.max_redirects < 0:
            raise ConfigurationError(
                f"'max_redirects' must be a non-negative integer, got {self.max_redirects!r}",
                field="max_redirects",
            )

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "Config":
        """Build a Config from an already-parsed settings mapping."""
        if not data:
            return cls()
        _reject_unknown_keys(data, _CONFIG_KEYS, "")

        proxy = ProxyConfig.from_mapping(data.get("proxy"))
        if proxy is not None:
            logger.debug(f"Loaded proxy configuration: {proxy!r}")

        return cls(
            proxy=proxy,
            originator=_optional_str(data, "originator", ""),
            timeout=data.get("timeout", DEFAULT_TIMEOUT),
            follow_redirects=data.get("follow_redirects", True),
            max_redirects=data.get("max_redirects", DEFAULT_MAX_REDIRECTS),
        )
