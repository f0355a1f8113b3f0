"""
core/decoding.py
-----------------

Response decoding for the API Client.

Bodies are validated straight from bytes with pydantic. Date fields are
handled by :data:`easybuy.schemas.common.Timestamp`, which enforces the
backend's fractional‑second ISO‑8601 profile; every other field uses
pydantic's standard rules. Any mismatch is reported as a single
:class:`DecodeError` whose detail names the offending input.
"""

from __future__ import annotations

import json
from typing import Any, Type, TypeVar, Union

from pydantic import TypeAdapter, ValidationError

from easybuy.core.errors import DecodeError
from easybuy.logging_config import logger

T = TypeVar("T")


def _describe(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors(include_url=False):
        location = ".".join(str(p) for p in error.get("loc", ())) or "<root>"
        message = error.get("msg", "invalid value")
        if error.get("type") == "value_error":
            # the validator message already quotes the input
            parts.append(f"{location}: {message}")
        else:
            parts.append(f"{location}: {message} (input: {error.get('input')!r})")
    return "; ".join(parts)


def decode(model: Union[Type[T], Any], content: Union[bytes, str]) -> T:
    """Decode ``content`` into ``model``.

    :param model: a pydantic model class or any type pydantic can adapt
        (for example ``List[CartLine]``)
    :param content: raw JSON body
    :raises DecodeError: on malformed JSON or a shape/timestamp mismatch
    :return: the decoded value
    """
    try:
        return TypeAdapter(model).validate_json(content)
    except ValidationError as exc:
        detail = _describe(exc)
        logger.warning(json.dumps({
            "event": "decode_failed",
            "model": getattr(model, "__name__", str(model)),
            "detail": detail,
        }))
        raise DecodeError(detail) from exc
