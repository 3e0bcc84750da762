"""Instants to and from ``xsd:dateTime`` / ``xsd:date`` literals."""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone, tzinfo

from rdflib import Literal
from rdflib.namespace import XSD

_FRACTION = re.compile(r"\.(\d+)")
_DATE_OFFSET = re.compile(r"^(.+?)(Z|[+-]\d{2}:\d{2})?$")

# XML Schema whitespace, not Python's wider notion of it
_XML_WHITESPACE = " \t\n\r"


def _fromisoformat(value: str) -> datetime:
    normalized = value.replace("Z", "+00:00")
    # older interpreters only take three or six fraction digits
    normalized = _FRACTION.sub(
        lambda m: "." + m.group(1)[:6].ljust(6, "0"), normalized, count=1
    )
    return datetime.fromisoformat(normalized)


def _format_offset(offset: timedelta | None) -> str:
    if not offset:
        return "Z"
    seconds = int(offset.total_seconds())
    sign = "-" if seconds < 0 else "+"
    hours, rest = divmod(abs(seconds), 3600)
    return f"{sign}{hours:02d}:{rest // 60:02d}"


def to_literal(instant: datetime, zone: tzinfo = timezone.utc) -> Literal:
    """Render ``instant`` in ``zone`` as an ``xsd:dateTime`` literal.

    Naive datetimes are taken to be UTC and the offset is always explicit.
    """

    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    local = instant.astimezone(zone)
    text = local.strftime("%Y-%m-%dT%H:%M:%S")
    if local.microsecond:
        text += "." + f"{local.microsecond:06d}".rstrip("0")
    text += _format_offset(local.utcoffset())
    return Literal(text, datatype=XSD.dateTime)


def to_instant(literal: Literal, zone: tzinfo = timezone.utc) -> datetime:
    """Parse an ``xsd:date`` or ``xsd:dateTime`` literal into an aware UTC datetime.

    Values without an offset are read in ``zone``. Anything else raises
    :class:`ValueError`.
    """

    if not isinstance(literal, Literal):
        raise ValueError(f"Not a literal: {literal!r}")
    text = str(literal).strip(_XML_WHITESPACE)
    if literal.datatype == XSD.date:
        day, offset = _DATE_OFFSET.match(text or "-").groups()
        try:
            start = datetime.combine(date.fromisoformat(day), datetime.min.time())
        except ValueError as exc:
            raise ValueError(f"Invalid xsd:date '{text}'") from exc
        if offset:
            start = _fromisoformat(start.isoformat() + offset)
    elif literal.datatype == XSD.dateTime:
        if "T" not in text:
            raise ValueError(f"Invalid xsd:dateTime '{text}'")
        try:
            start = _fromisoformat(text)
        except ValueError as exc:
            raise ValueError(f"Invalid xsd:dateTime '{text}'") from exc
    else:
        raise ValueError(f"Literal is not a temporal type: {literal.datatype}")
    if start.tzinfo is None:
        start = start.replace(tzinfo=zone)
    return start.astimezone(timezone.utc)


__all__ = ["to_literal", "to_instant"]
