"""Proxy-aware HTTP client factory for agent tooling."""

__version__ = "0.1.0"

from agent_http.config import Config, ProxyConfig, ProxyScheme
from agent_http.exceptions import AgentHttpError, ConfigurationError, ProxyConfigError
from agent_http.http_client import build_proxy_mounts, create_http_client
from agent_http.proxy import EffectiveProxySelection, ResolvedProxy, resolve_proxy_selection
from agent_http.sandbox import is_sandboxed

__all__ = [
    "__version__",
    "AgentHttpError",
    "Config",
    "ConfigurationError",
    "EffectiveProxySelection",
    "ProxyConfig",
    "ProxyConfigError",
    "ProxyScheme",
    "ResolvedProxy",
    "build_proxy_mounts",
    "create_http_client",
    "is_sandboxed",
    "resolve_proxy_selection",
]
