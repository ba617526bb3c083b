"""Structured exception taxonomy for HTTP client construction."""


class AgentHttpError(Exception):
    """Base exception for all agent-http errors."""

    pass


class ConfigurationError(AgentHttpError):
    """Explicit configuration is malformed or semantically invalid."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class ProxyConfigError(ConfigurationError):
    """A configured proxy endpoint cannot be used.

    ``value`` is the offending value with any password redacted.
    """

    def __init__(self, message: str, field: str | None = None, value: str | None = None):
        super().__init__(message, field=field)
        self.value = value
