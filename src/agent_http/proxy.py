"""Per-scheme proxy resolution: configuration, then environment, then sandbox override."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional, Tuple

import httpx

from agent_http.config import Config, ProxyConfig, ProxyScheme, parse_proxy_url, redact_url
from agent_http.exceptions import ProxyConfigError

logger = logging.getLogger(__name__)

SOURCE_CONFIG = "config"
SOURCE_ENV = "env"

# Environment fallback per scheme, uppercase first (same order curl uses)
PROXY_ENV_VARS = {
    ProxyScheme.HTTP: ("HTTP_PROXY", "http_proxy"),
    ProxyScheme.HTTPS: ("HTTPS_PROXY", "https_proxy"),
    ProxyScheme.SOCKS: ("SOCKS_PROXY", "socks_proxy"),
}


@dataclass(frozen=True)
class ResolvedProxy:
    """A proxy endpoint chosen for one scheme."""

    url: str
    auth: Optional[Tuple[str, str]] = None
    source: str = SOURCE_CONFIG
    env_var: Optional[str] = None

    def __repr__(self) -> str:
        user = self.auth[0] if self.auth else None
        return f"ResolvedProxy(url={self.url!r}, user={user!r}, source={self.source!r})"

    def to_httpx(self) -> httpx.Proxy:
        return httpx.Proxy(self.url, auth=self.auth)


@dataclass(frozen=True)
class EffectiveProxySelection:
    """Proxy decision per scheme for one client construction.

    ``sandboxed`` is True when built in sandboxed mode, in which case every
    scheme is None. ``ignored_env`` maps rejected environment variables to the reason.
    """

    proxies: Dict[ProxyScheme, Optional[ResolvedProxy]] = field(default_factory=dict)
    sandboxed: bool = False
    ignored_env: Dict[str, str] = field(default_factory=dict)

    def get(self, scheme: ProxyScheme) -> Optional[ResolvedProxy]:
        return self.proxies.get(scheme)

    def is_empty(self) -> bool:
        return all(self.get(scheme) is None for scheme in ProxyScheme)

    def as_table(self) -> Dict[str, Optional[str]]:
        """Return ``{scheme: url or None}`` for every scheme."""
        table: Dict[str, Optional[str]] = {}
        for scheme in ProxyScheme:
            resolved = self.get(scheme)
            table[scheme.value] = resolved.url if resolved else None
        return table


def _to_resolved(
    url: httpx.URL, credentials: Optional[Tuple[str, str]], source: str, env_var: Optional[str] = None
) -> ResolvedProxy:
    """Split userinfo out of the URL; explicit credentials win over embedded ones."""
    auth = credentials
    if url.username or url.password:
        if auth is None:
            auth = (url.username, url.password)
        url = url.copy_with(username=None, password=None)
    return ResolvedProxy(url=str(url), auth=auth, source=source, env_var=env_var)


def _read_env(environ: Mapping[str, str], scheme: ProxyScheme) -> Tuple[Optional[str], Optional[str]]:
    """Return (variable name, value) of the first non-blank variable for the scheme."""
    for name in PROXY_ENV_VARS[scheme]:
        value = environ.get(name)
        if value is not None and value.strip():
            return name, value.strip()
    return None, None


def resolve_from_config(proxy_config: Optional[ProxyConfig]) -> Dict[ProxyScheme, ResolvedProxy]:
    """
    Resolve every scheme explicitly set in a ProxyConfig.

    Raises:
        ProxyConfigError: If a configured URL cannot be parsed
    """
    resolved: Dict[ProxyScheme, ResolvedProxy] = {}
    if proxy_config is None:
        return resolved

    for scheme in ProxyScheme:
        value = proxy_config.url_for(scheme)
        if value is None:
            continue
        url = parse_proxy_url(value, scheme, field=f"proxy.{scheme.value}")
        resolved[scheme] = _to_resolved(url, proxy_config.credentials, SOURCE_CONFIG)
        logger.debug(f"{scheme.value} proxy from configuration: {redact_url(value)}")

    return resolved


def resolve_from_env(
    environ: Mapping[str, str], schemes: Tuple[ProxyScheme, ...]
) -> Tuple[Dict[ProxyScheme, ResolvedProxy], Dict[str, str]]:
    """
    Resolve the given schemes from proxy environment variables.

    Invalid values are logged and skipped, never raised.

    Returns:
        Tuple of (resolved proxies, {ignored variable: reason})
    """
    resolved: Dict[ProxyScheme, ResolvedProxy] = {}
    ignored: Dict[str, str] = {}

    for scheme in schemes:
        name, value = _read_env(environ, scheme)
        if name is None:
            continue
        try:
            url = parse_proxy_url(value, scheme, field=name)
        except ProxyConfigError as e:
            logger.warning(f"Ignoring {name}: {e}")
            ignored[name] = str(e)
            continue
        resolved[scheme] = _to_resolved(url, None, SOURCE_ENV, env_var=name)
        logger.debug(f"{scheme.value} proxy from {name}: {redact_url(value)}")

    return resolved, ignored


def resolve_proxy_selection(
    config: Optional[Config] = None,
    environ: Optional[Mapping[str, str]] = None,
    sandboxed: bool = False,
) -> EffectiveProxySelection:
    """
    Decide which proxy each scheme uses.

    Precedence per scheme: sandbox > configuration > environment > none.

    Args:
        config: Effective configuration (its ``proxy`` may be None)
        environ: Environment snapshot; no environment fallback if None
        sandboxed: Drop every proxy when running in sandboxed execution mode

    Returns:
        EffectiveProxySelection

    Raises:
        ProxyConfigError: If an explicitly configured proxy URL is invalid
    """
    proxy_config = config.proxy if config is not None else None
    proxies: Dict[ProxyScheme, Optional[ResolvedProxy]] = {scheme: None for scheme in ProxyScheme}
    proxies.update(resolve_from_config(proxy_config))

    unset = tuple(scheme for scheme in ProxyScheme if proxies[scheme] is None)
    ignored: Dict[str, str] = {}
    if environ is not None and unset:
        from_env, ignored = resolve_from_env(environ, unset)
        proxies.update(from_env)

    if sandboxed:
        discarded = [scheme.value for scheme in ProxyScheme if proxies[scheme] is not None]
        if discarded:
            logger.info(f"Sandboxed execution: ignoring resolved proxies for {', '.join(discarded)}")
        proxies = {scheme: None for scheme in ProxyScheme}

    return EffectiveProxySelection(proxies=proxies, sandboxed=sandboxed, ignored_env=ignored)
