"""
logging_config.py
------------------

This module defines a shared logging configuration and utilities for
structured logging throughout the EasyBuy client.  It uses Python's
built‑in ``logging`` module rather than ``print`` so that log output
can be captured by standard logging handlers.  Messages are serialised
as JSON to make them easier to parse downstream.

To use this module, import ``logger`` and call its methods instead
of ``logging.info`` directly.  The ``log_call`` decorator can be
applied to functions and coroutines to record entry and exit points at
the DEBUG level without leaking sensitive information such as ID
tokens, refresh tokens or passwords.
"""

from __future__ import annotations

import inspect
import json
import logging
import sys
from functools import wraps
from typing import Any, Callable, Dict

from easybuy.core.config import get_settings

# -----------------------------------------------------------------------------
# Configure global logging
# -----------------------------------------------------------------------------

# Set up the root logger once.  We direct log output to stdout and format
# messages with a timestamp, log level and the raw message.  The message
# itself should be a JSON string so downstream consumers can parse it easily.
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

# Expose a module level logger.  Code elsewhere can import this and log
# messages without repeatedly instantiating new Logger instances.
logger = logging.getLogger("easybuy")
logger.setLevel(get_settings().log_level.upper())

_SENSITIVE_KEYS = ("token", "password", "secret", "authorization")


def _sanitize(obj: Any) -> Any:
    """Recursively sanitise objects for logging.

    The goal of this helper is to prevent sensitive information such as
    authentication tokens, passwords or binary payloads from ending up in
    the logs.  Dictionaries will have keys containing 'token', 'password',
    'secret' or 'authorization' removed.  Lists and tuples are processed
    element‑wise.  Pydantic models are dumped first.

    Parameters
    ----------
    obj : Any
        Arbitrary Python object to sanitise.

    Returns
    -------
    Any
        A sanitised representation of the input suitable for JSON serialisation.
    """
    # Avoid logging image contents or byte strings directly
    if isinstance(obj, (bytes, bytearray)):
        return f"<binary {len(obj)} bytes>"
    if isinstance(obj, dict):
        clean: Dict[str, Any] = {}
        for k, v in obj.items():
            if any(keyword in str(k).lower() for keyword in _SENSITIVE_KEYS):
                continue
            clean[k] = _sanitize(v)
        return clean
    if isinstance(obj, (list, tuple)):
        return [_sanitize(i) for i in obj]
    if hasattr(obj, "model_dump"):
        try:
            return _sanitize(obj.model_dump(mode="json"))
        except Exception:
            return repr(obj)
    try:
        return json.loads(json.dumps(obj))  # ensure JSON serialisable
    except (TypeError, ValueError):
        return str(obj)


def _log_start(func: Callable[..., Any], args: Any, kwargs: Any) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    try:
        logger.debug(json.dumps({
            "event": "call_start",
            "function": func.__qualname__,
            "args": _sanitize(args),
            "kwargs": _sanitize(kwargs),
        }))
    except (TypeError, ValueError):
        logger.debug(json.dumps({"event": "call_start", "function": func.__qualname__}))


def _log_end(func: Callable[..., Any], result: Any) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    try:
        logger.debug(json.dumps({
            "event": "call_end",
            "function": func.__qualname__,
            "result": _sanitize(result),
        }))
    except (TypeError, ValueError):
        logger.debug(json.dumps({"event": "call_end", "function": func.__qualname__}))


def log_call(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator to log entry and exit of functions.

    This decorator logs a DEBUG level message before a function is executed
    and another after it returns.  The messages include the function name
    and a sanitised snapshot of the arguments and return value.  Sensitive
    information is stripped via the ``_sanitize`` helper.  Coroutine
    functions are wrapped with a coroutine so the exit event is emitted
    after the awaited result is available.

    Examples
    --------

    >>> @log_call
    ... async def fetch(client):
    ...     return await client.fetch_user()
    """

    if inspect.iscoroutinefunction(func):
        @wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            _log_start(func, args, kwargs)
            result = await func(*args, **kwargs)
            _log_end(func, result)
            return result

        return async_wrapper

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        _log_start(func, args, kwargs)
        result = func(*args, **kwargs)
        _log_end(func, result)
        return result

    return wrapper


def log_http_request(method: str, url: str, *, headers: Dict[str, Any] | None = None,
                     body_size: int | None = None, status: int | None = None,
                     duration_ms: float | None = None) -> None:
    """Log an outbound HTTP request at DEBUG level.

    This helper centralises HTTP request logging so that tokens are
    automatically removed from headers and only high‑level information
    (method, URL, status and duration) is recorded.  It is invoked by
    the HTTP client wrapper before and after performing requests.

    Parameters
    ----------
    method : str
        The HTTP method (GET, POST, etc.)
    url : str
        The URL being requested.
    headers : dict, optional
        Request headers.  ``Authorization`` is removed.
    body_size : int, optional
        Size of the request body in bytes.
    status : int, optional
        Response status code (log end only).
    duration_ms : float, optional
        Time taken in milliseconds (log end only).
    """
    data: Dict[str, Any] = {
        "event": "http_request",
        "method": method,
        "url": url,
    }
    if headers is not None:
        data["headers"] = {k: v for k, v in headers.items() if k.lower() != "authorization"}
    if body_size:
        data["body_size"] = body_size
    if status is not None:
        data["status"] = status
    if duration_ms is not None:
        data["duration_ms"] = round(duration_ms, 2)
    logger.debug(json.dumps(data))
