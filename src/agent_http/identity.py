"""Client identity: originator header and User-Agent string."""

import logging
import os
import platform
from typing import Dict, Mapping, Optional

from agent_http import __version__
from agent_http.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_ORIGINATOR = "agent_http"
ORIGINATOR_OVERRIDE_ENV_VAR = "AGENT_ORIGINATOR_OVERRIDE"


def _validate_header_value(value: str, field: str) -> str:
    if not value or any(ord(ch) < 0x20 or ord(ch) > 0x7E for ch in value):
        raise ConfigurationError(
            f"'{field}' must be a non-empty printable ASCII header value, got {value!r}",
            field=field,
        )
    return value


def resolve_originator(
    originator: Optional[str] = None, environ: Optional[Mapping[str, str]] = None
) -> str:
    """
    Pick the originator: explicit value, then the override variable, then the default.

    An override variable that cannot be sent as a header is logged and ignored.

    Raises:
        ConfigurationError: If the explicit originator cannot be sent as a header
    """
    if originator is not None:
        return _validate_header_value(originator, "originator")
    if environ is None:
        environ = os.environ
    override = environ.get(ORIGINATOR_OVERRIDE_ENV_VAR)
    if override:
        try:
            return _validate_header_value(override, ORIGINATOR_OVERRIDE_ENV_VAR)
        except ConfigurationError as e:
            logger.warning(f"Ignoring {ORIGINATOR_OVERRIDE_ENV_VAR}: {e}")
    return DEFAULT_ORIGINATOR


def get_user_agent(originator: str = DEFAULT_ORIGINATOR) -> str:
    """Return e.g. ``agent_http/0.1.0 (Linux 6.8.0; x86_64)``."""
    system = platform.system() or "unknown"
    release = platform.release() or "unknown"
    machine = platform.machine() or "unknown"
    user_agent = f"{originator}/{__version__} ({system} {release}; {machine})"
    # platform strings are not guaranteed ASCII
    return "".join(ch if 0x20 <= ord(ch) <= 0x7E else "_" for ch in user_agent)


def default_headers(originator: str = DEFAULT_ORIGINATOR) -> Dict[str, str]:
    return {
        "originator": originator,
        "User-Agent": get_user_agent(originator),
    }
