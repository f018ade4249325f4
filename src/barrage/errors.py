"""
Error taxonomy.

ConfigError is fatal to a run. Everything deriving from RequestError is
raised by the executor for a single request and is folded into the
campaign's counters by the worker that caught it.
"""


class BarrageError(Exception):
    pass


class ConfigError(BarrageError):
    """Target file or run parameters are unusable."""


class RequestError(BarrageError):
    kind = "transport_error"

    def __init__(self, message: str, elapsed_ms: float | None = None):
        super().__init__(message)
        self.elapsed_ms = elapsed_ms


class BuildError(RequestError):
    """The request could not be built (bad URL, unserializable body, bad method)."""

    kind = "build_error"


class TransportError(RequestError):
    kind = "transport_error"


class RequestTimeoutError(RequestError):
    """The client deadline fired before the response was fully received."""

    kind = "timeout"


class BodyReadError(RequestError):
    kind = "body_read_error"
