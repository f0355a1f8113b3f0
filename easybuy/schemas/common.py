"""
schemas/common.py
------------------

Shared building blocks for the wire schemas: the camelCase base model
and the strict timestamp type used by every date field the backend
returns.

The backend emits timestamps such as ``2024-03-01T12:34:56.789Z``.
Only that profile is accepted: a full date, a ``T`` separated time,
fractional seconds and either ``Z`` or a ``+HH:MM`` offset. Anything
else is rejected with a message that quotes the offending string.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

_TIMESTAMP_RE = re.compile(
    r"([0-9]{4})-([0-9]{2})-([0-9]{2})T([0-9]{2}):([0-9]{2}):([0-9]{2})\.([0-9]+)(Z|[+-][0-9]{2}:[0-9]{2})"
)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO‑8601 string with fractional seconds and a zone designator.

    :param value: raw value from the JSON payload
    :raises ValueError: if the value is not a string in the accepted profile
    :return: an aware :class:`datetime`
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if not isinstance(value, str):
        raise ValueError(f"Unable to parse date string: {value!r}")
    match = _TIMESTAMP_RE.fullmatch(value)
    if not match:
        raise ValueError(f"Unable to parse date string: {value}")
    year, month, day, hour, minute, second, fraction, designator = match.groups()
    # datetime keeps microseconds; longer fractions are truncated
    micros = int(fraction[:6].ljust(6, "0"))
    if designator == "Z":
        tz = timezone.utc
    else:
        sign = 1 if designator[0] == "+" else -1
        hours, minutes = designator[1:].split(":")
        offset = timedelta(hours=int(hours), minutes=int(minutes))
        if offset >= timedelta(hours=24):
            raise ValueError(f"Unable to parse date string: {value}")
        tz = timezone(sign * offset)
    try:
        return datetime(int(year), int(month), int(day), int(hour), int(minute),
                        int(second), micros, tzinfo=tz)
    except ValueError:
        raise ValueError(f"Unable to parse date string: {value}") from None


def format_timestamp(value: datetime) -> str:
    """Render a datetime in the backend's profile (UTC, milliseconds, ``Z``)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


Timestamp = Annotated[
    datetime,
    BeforeValidator(parse_timestamp),
    PlainSerializer(format_timestamp, return_type=str),
]


class WireModel(BaseModel):
    """Base model whose fields travel as camelCase JSON keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_bytes(self) -> bytes:
        """Serialise using the wire aliases."""
        return self.model_dump_json(by_alias=True).encode("utf-8")
