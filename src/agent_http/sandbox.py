"""Default detection of sandboxed execution mode."""

import logging
import os
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

SANDBOX_ENV_VAR = "AGENT_SANDBOX"

# Values set by the sandbox launchers (seatbelt on macOS, landlock on Linux)
SANDBOX_KINDS = ("seatbelt", "landlock", "container")
_TRUTHY = ("1", "true", "yes")


def is_sandboxed(environ: Optional[Mapping[str, str]] = None) -> bool:
    """
    Check whether the process runs in sandboxed execution mode.

    Args:
        environ: Environment snapshot (defaults to os.environ)

    Returns:
        True if AGENT_SANDBOX names a known sandbox kind or is truthy
    """
    if environ is None:
        environ = os.environ
    value = environ.get(SANDBOX_ENV_VAR, "").strip().lower()
    if not value:
        return False
    if value in SANDBOX_KINDS or value in _TRUTHY:
        return True
    logger.debug(f"Unrecognized {SANDBOX_ENV_VAR} value {value!r}, assuming not sandboxed")
    return False
