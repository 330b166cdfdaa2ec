"""Error hierarchy and handling helpers."""

from .handling import handle_api_error, handle_retryable_error, log_error  # noqa: F401
from .internal import (  # noqa: F401
    ConfigError,
    InternalError,
    MooseNotFoundError,
    NetworkError,
    ParsingError,
    PersistenceError,
)

__all__ = [
    "ConfigError",
    "InternalError",
    "MooseNotFoundError",
    "NetworkError",
    "ParsingError",
    "PersistenceError",
    "handle_api_error",
    "handle_retryable_error",
    "log_error",
]
