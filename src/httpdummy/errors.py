# src/httpdummy/errors.py
"""httpdummy exceptions.

Startup errors (ConfigError, BindError) are fatal and abort the process.
DurationError is raised per request and surfaces as HTTP 400.
"""


class ConfigError(Exception):
    """Raised when the server cannot be constructed from its configuration."""


class DuplicateMetricError(ConfigError):
    """Raised when a metric name is registered twice.

    Attributes:
        name: The metric name that was already taken
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"metric '{name}' is already registered")


class BindError(Exception):
    """Raised when the listen socket cannot be bound.

    Attributes:
        listen_addr: The address that failed to bind
    """

    def __init__(self, listen_addr: str, reason: str) -> None:
        self.listen_addr = listen_addr
        super().__init__(f"cannot listen on {listen_addr}: {reason}")


class DurationError(ValueError):
    """Raised when a duration string cannot be parsed."""
