"""HTTP client factory with proxy support."""

import logging
import os
from typing import Callable, Dict, Mapping, Optional

import httpx

from agent_http.config import Config, ProxyScheme
from agent_http.exceptions import ProxyConfigError
from agent_http.identity import default_headers, resolve_originator
from agent_http.proxy import SOURCE_CONFIG, EffectiveProxySelection, resolve_proxy_selection
from agent_http.sandbox import is_sandboxed

logger = logging.getLogger(__name__)

TransportFactory = Callable[..., httpx.BaseTransport]

# httpx matches the most specific pattern first, so "all://" only catches
# traffic the scheme-specific mounts leave over
MOUNT_PATTERNS = {
    ProxyScheme.HTTP: "http://",
    ProxyScheme.HTTPS: "https://",
    ProxyScheme.SOCKS: "all://",
}


def build_proxy_mounts(
    selection: EffectiveProxySelection,
    transport_factory: Optional[TransportFactory] = None,
) -> Dict[str, httpx.BaseTransport]:
    """
    Create one proxy transport per scheme that has a resolved proxy.

    Args:
        selection: Resolved proxies
        transport_factory: Transport constructor (default: httpx.HTTPTransport)

    Returns:
        httpx mounts dict keyed by URL pattern

    Raises:
        ProxyConfigError: If a configured proxy cannot be turned into a transport
            (e.g., SOCKS without the socksio package)
    """
    factory = transport_factory or httpx.HTTPTransport
    mounts: Dict[str, httpx.BaseTransport] = {}

    for scheme, pattern in MOUNT_PATTERNS.items():
        resolved = selection.get(scheme)
        if resolved is None:
            continue
        try:
            mounts[pattern] = factory(proxy=resolved.to_httpx())
        except (ImportError, ValueError) as e:
            if resolved.source == SOURCE_CONFIG:
                for transport in mounts.values():
                    transport.close()
                raise ProxyConfigError(
                    f"Cannot use {scheme.value} proxy {resolved.url!r}: {e}",
                    field=f"proxy.{scheme.value}",
                    value=resolved.url,
                ) from e
            logger.warning(f"Ignoring {resolved.env_var}: cannot use proxy {resolved.url!r}: {e}")
            continue
        logger.debug(f"Mounted {scheme.value} proxy {resolved.url} on {pattern}")

    return mounts


def create_http_client(
    config: Optional[Config] = None,
    *,
    sandboxed: Optional[bool] = None,
    environ: Optional[Mapping[str, str]] = None,
    headers: Optional[Mapping[str, str]] = None,
    transport_factory: Optional[TransportFactory] = None,
) -> httpx.Client:
    """
    Create HTTP client with identity headers and resolved proxy settings.

    Args:
        config: Effective configuration (default: Config())
        sandboxed: Sandboxed execution mode; detected from environ if None
        environ: Environment snapshot (default: a copy of os.environ)
        headers: Extra default headers, overriding the identity headers
        transport_factory: Transport constructor for proxy mounts

    Returns:
        Configured httpx.Client

    Raises:
        ConfigurationError: If the configuration is invalid; no client is created
    """
    if config is None:
        config = Config()
    if environ is None:
        environ = dict(os.environ)
    if sandboxed is None:
        sandboxed = is_sandboxed(environ)

    originator = resolve_originator(config.originator, environ)
    selection = resolve_proxy_selection(config, environ, sandboxed=sandboxed)
    mounts = build_proxy_mounts(selection, transport_factory)

    client_headers = default_headers(originator)
    if headers:
        client_headers.update(headers)

    logger.debug(f"Creating HTTP client (originator={originator}, proxies={selection.as_table()})")

    # proxy variables are honored only through resolve_proxy_selection
    return httpx.Client(
        headers=client_headers,
        timeout=config.timeout,
        follow_redirects=config.follow_redirects,
        max_redirects=config.max_redirects if config.follow_redirects else 0,
        mounts=mounts,
        trust_env=False,
    )
