"""Translate library failures into the InternalError hierarchy and log them."""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

import aiohttp
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..logging_config import log_structured_error
from .internal import (
    ConfigError,
    InternalError,
    MooseNotFoundError,
    NetworkError,
    ParsingError,
    PersistenceError,
)

T = TypeVar("T")

# Most specific first; the first isinstance match names the category.
_CATEGORIES: tuple[tuple[type[BaseException] | tuple[type[BaseException], ...], str], ...] = (
    ((NetworkError, OSError), "network"),
    (ParsingError, "parsing"),
    (MooseNotFoundError, "not_found"),
    (PersistenceError, "persistence"),
    (ConfigError, "config"),
    (InternalError, "internal"),
)


def error_category(error: BaseException) -> str:
    for types, name in _CATEGORIES:
        if isinstance(error, types):
            return name
    return "unknown"


def log_error(message: str, error: BaseException, context: dict | None = None) -> None:
    """Log ``error`` under its category and count it in the error summary.

    Args:
        message: What was being attempted.
        error: The failure.
        context: Extra key/value pairs worth seeing in the log line.
    """
    log_structured_error(
        error_type=error_category(error),
        message=f"{message}: {error}",
        exception=error if isinstance(error, Exception) else None,
        context=context,
    )


async def handle_api_error(operation: Callable[[], Awaitable[T]], context: str) -> T:
    """Await a moose service call, converting failures to InternalError.

    InternalError subclasses raised by ``operation`` pass through untouched.

    Raises:
        NetworkError: Timeouts, connection problems and other client errors.
        ParsingError: Bodies that are not the JSON we expect.
    """
    try:
        return await operation()
    except InternalError:
        raise
    except TimeoutError as e:
        log_error(f"Moose service timed out during {context}", e)
        raise NetworkError(f"Moose service timed out ({context})") from e
    except (json.JSONDecodeError, aiohttp.ContentTypeError, ValueError) as e:
        log_error(f"Malformed moose service response during {context}", e)
        raise ParsingError(f"Moose service response was malformed: {e}") from e
    except (aiohttp.ClientError, OSError) as e:
        details: dict[str, object] = {"operation": context}
        status = getattr(e, "status", None)
        if status is not None:
            details["http_status"] = status
        log_error(f"Moose service call failed during {context}", e, context=details)
        raise NetworkError(f"Failed to talk to moose service: {e}") from e


async def handle_retryable_error(
    operation: Callable[[int], Awaitable[T]],
    context: str,
    max_attempts: int = 3,
    *,
    initial_backoff: float = 1,
    max_backoff: float = 60,
) -> T:
    """Run ``operation(attempt)`` with exponential backoff on transport errors.

    Used for connecting to the IRC server. Moose lookups are never retried.

    Raises:
        NetworkError: When every attempt failed with a transport error.
        InternalError: Non-transport internal errors, on first occurrence.
    """
    attempt = 0

    def before(state: RetryCallState) -> None:
        nonlocal attempt
        attempt = state.attempt_number
        if attempt > 1:
            logging.info(f"🔁 Retrying {context} (attempt {attempt}/{max_attempts})")

    def after(state: RetryCallState) -> None:
        if state.outcome is not None and state.outcome.failed:
            log_error(
                f"{context} attempt {attempt} failed",
                state.outcome.exception(),
                context={"attempt": attempt},
            )

    async def call() -> T:
        return await operation(attempt)

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=initial_backoff, max=max_backoff),
        retry=retry_if_exception_type((NetworkError, OSError)),
        before=before,
        after=after,
        reraise=True,
    )
    try:
        return await retrying(call)
    except InternalError:
        raise
    except OSError as e:
        raise NetworkError(f"{context} failed after {max_attempts} attempts: {e}") from e
