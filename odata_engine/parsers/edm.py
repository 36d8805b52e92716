"""
odata_engine.parsers.edm - Primitive EDM type parsers
======================================================

Built-in parsers for the reserved ``Edm.*`` types. Values are converted to
their natural Python representation on deserialize and back to the JSON wire
representation on serialize.
"""

from __future__ import annotations

import base64
import re
import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Optional

from odata_engine.parsers.base import DEFAULT_OPTIONS, Parser, ParserOptions


_LEGACY_DATE = re.compile(r"^/Date\((-?\d+)([+-]\d{4})?\)/$")
_DURATION = re.compile(
    r"^(?P<sign>-)?P(?:(?P<days>\d+)D)?"
    r"(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$"
)
_FRACTION = re.compile(r"\.(\d+)")


def escape_odata_literal(value: str) -> str:
    """
    Escape a string value for use in OData URLs and $filter expressions.

    Examples
    --------
    >>> escape_odata_literal("O'Brien")
    "O''Brien"
    """
    return value.replace("'", "''")


def _six_digit_fraction(text: str) -> str:
    # fromisoformat before 3.11 only takes 3 or 6 fractional digits
    return _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)


def parse_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z``."""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(_six_digit_fraction(text))


def format_datetime(value: datetime) -> str:
    text = value.isoformat()
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


def parse_legacy_date(value: str) -> Optional[datetime]:
    """Parse the v2 ``/Date(milliseconds)/`` form."""
    match = _LEGACY_DATE.match(value)
    if not match:
        return None
    millis = int(match.group(1))
    return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=millis)


def parse_duration(value: str) -> timedelta:
    match = _DURATION.match(value.strip())
    if not match:
        raise ValueError(f"Invalid ISO-8601 duration: {value!r}")
    delta = timedelta(
        days=int(match.group("days") or 0),
        hours=int(match.group("hours") or 0),
        minutes=int(match.group("minutes") or 0),
        seconds=float(match.group("seconds") or 0),
    )
    return -delta if match.group("sign") else delta


def format_duration(value: timedelta) -> str:
    sign = "-" if value < timedelta(0) else ""
    value = abs(value)
    hours, rest = divmod(value.seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    secs = f"{seconds}.{value.microseconds:06d}".rstrip("0").rstrip(".") if value.microseconds else str(seconds)
    return f"{sign}P{value.days}DT{hours}H{minutes}M{secs}S"


class EdmParser(Parser):
    """
    Parser for a single primitive type.

    Parameters
    ----------
    type : str
        Qualified EDM name, e.g. ``"Edm.Int32"``
    load : callable
        Wire value -> python value
    dump : callable
        Python value -> wire value
    literal : callable, optional
        Python value -> URL literal text (defaults to ``str(dump(value))``)
    """

    def __init__(
        self,
        type: str,
        load: Callable[[Any, ParserOptions], Any],
        dump: Callable[[Any, ParserOptions], Any],
        literal: Optional[Callable[[Any, ParserOptions], str]] = None,
        json_type: str = "string",
        json_format: Optional[str] = None,
    ):
        self.type = type
        self._load = load
        self._dump = dump
        self._literal = literal
        self.json_type = json_type
        self.json_format = json_format

    def deserialize(self, value: Any, options: ParserOptions = DEFAULT_OPTIONS) -> Any:
        if value is None:
            return None
        if isinstance(value, list):
            return [self.deserialize(v, options) for v in value]
        return self._load(value, options)

    def serialize(self, value: Any, options: ParserOptions = DEFAULT_OPTIONS) -> Any:
        if value is None:
            return None
        if isinstance(value, list):
            return [self.serialize(v, options) for v in value]
        return self._dump(value, options)

    def literal(self, value: Any, options: ParserOptions = DEFAULT_OPTIONS) -> str:
        if value is None:
            return "null"
        if self._literal is not None:
            return self._literal(value, options)
        return str(self._dump(value, options))

    def to_json_schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {"type": self.json_type}
        if self.json_format:
            schema["format"] = self.json_format
        return schema

    def __repr__(self) -> str:
        return f"EdmParser({self.type})"


# ---------------- load/dump helpers ----------------

def _identity(value: Any, options: ParserOptions) -> Any:
    return value


def _load_bool(value: Any, options: ParserOptions) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def _load_int(value: Any, options: ParserOptions) -> int:
    return int(value)


def _dump_int64(value: Any, options: ParserOptions) -> Any:
    return str(int(value)) if options.ieee754_compatible else int(value)


def _load_float(value: Any, options: ParserOptions) -> float:
    return float(value)


def _load_decimal(value: Any, options: ParserOptions) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid Edm.Decimal value: {value!r}") from exc


def _dump_decimal(value: Any, options: ParserOptions) -> Any:
    number = _load_decimal(value, options)
    field = options.field
    if field is not None and field.scale is not None:
        number = number.quantize(Decimal(1).scaleb(-field.scale))
    if options.ieee754_compatible:
        return str(number)
    # Encoded as an exact JSON number by the transport
    return number


def _load_string(value: Any, options: ParserOptions) -> str:
    return value if isinstance(value, str) else str(value)


def _literal_string(value: Any, options: ParserOptions) -> str:
    return f"'{escape_odata_literal(str(value))}'"


def _literal_bool(value: Any, options: ParserOptions) -> str:
    return "true" if value else "false"


def _load_date(value: Any, options: ParserOptions) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _dump_date(value: Any, options: ParserOptions) -> str:
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def _load_datetime(value: Any, options: ParserOptions) -> datetime:
    if isinstance(value, datetime):
        return value
    text = str(value)
    legacy = parse_legacy_date(text)
    if legacy is not None:
        return legacy
    return parse_datetime(text)


def _dump_datetime(value: Any, options: ParserOptions) -> str:
    if isinstance(value, str):
        return value
    return format_datetime(value)


def _dump_legacy_datetime(value: Any, options: ParserOptions) -> str:
    if isinstance(value, str):
        return value
    if options.helper.is_v2:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        millis = int(value.timestamp() * 1000)
        return f"/Date({millis})/"
    return format_datetime(value)


def _literal_legacy_datetime(value: Any, options: ParserOptions) -> str:
    if isinstance(value, str):
        value = parse_datetime(value)
    text = value.replace(tzinfo=None).isoformat()
    return f"datetime'{text}'" if options.helper.is_v2 else format_datetime(value)


def _load_time(value: Any, options: ParserOptions) -> time:
    if isinstance(value, time):
        return value
    return time.fromisoformat(_six_digit_fraction(str(value)))


def _dump_time(value: Any, options: ParserOptions) -> str:
    return value.isoformat()


def _load_duration(value: Any, options: ParserOptions) -> timedelta:
    if isinstance(value, timedelta):
        return value
    return parse_duration(str(value))


def _dump_duration(value: Any, options: ParserOptions) -> str:
    return format_duration(value)


def _literal_duration(value: Any, options: ParserOptions) -> str:
    return f"duration'{format_duration(value)}'"


def _load_guid(value: Any, options: ParserOptions) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def _dump_guid(value: Any, options: ParserOptions) -> str:
    return str(value)


def _literal_guid(value: Any, options: ParserOptions) -> str:
    return f"guid'{value}'" if options.helper.is_v2 else str(value)


def _load_binary(value: Any, options: ParserOptions) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    return base64.b64decode(value)


def _dump_binary(value: Any, options: ParserOptions) -> str:
    return base64.b64encode(value).decode("ascii")


def _literal_binary(value: Any, options: ParserOptions) -> str:
    return f"binary'{_dump_binary(value, options)}'"


def _build() -> Dict[str, EdmParser]:
    int_types = ("Edm.Byte", "Edm.SByte", "Edm.Int16", "Edm.Int32")
    parsers = [
        EdmParser("Edm.String", _load_string, _identity, _literal_string),
        EdmParser("Edm.Boolean", _load_bool, _load_bool, _literal_bool, json_type="boolean"),
        EdmParser("Edm.Int64", _load_int, _dump_int64, lambda v, o: str(int(v)), json_type="integer"),
        EdmParser("Edm.Single", _load_float, _load_float, json_type="number"),
        EdmParser("Edm.Double", _load_float, _load_float, json_type="number"),
        EdmParser("Edm.Decimal", _load_decimal, _dump_decimal, lambda v, o: str(_load_decimal(v, o)), json_type="number"),
        EdmParser("Edm.Date", _load_date, _dump_date, json_format="date"),
        EdmParser("Edm.DateTimeOffset", _load_datetime, _dump_datetime, json_format="date-time"),
        EdmParser("Edm.DateTime", _load_datetime, _dump_legacy_datetime, _literal_legacy_datetime, json_format="date-time"),
        EdmParser("Edm.TimeOfDay", _load_time, _dump_time, json_format="time"),
        EdmParser("Edm.Time", _load_duration, _dump_duration, _literal_duration, json_format="duration"),
        EdmParser("Edm.Duration", _load_duration, _dump_duration, _literal_duration, json_format="duration"),
        EdmParser("Edm.Guid", _load_guid, _dump_guid, _literal_guid, json_format="uuid"),
        EdmParser("Edm.Binary", _load_binary, _dump_binary, _literal_binary, json_format="byte"),
    ]
    parsers.extend(EdmParser(t, _load_int, _load_int, json_type="integer") for t in int_types)
    return {p.type: p for p in parsers}


EDM_PARSERS: Dict[str, EdmParser] = _build()


def format_literal(value: Any) -> str:
    """
    Render a plain Python value as an OData URL literal.

    Used when no typed parser is known for the value.

    Examples
    --------
    >>> format_literal("O'Brien")
    "'O''Brien'"
    >>> format_literal(True)
    'true'
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        return str(value)
    if isinstance(value, datetime):
        return format_datetime(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, time):
        return value.isoformat()
    if isinstance(value, timedelta):
        return f"duration'{format_duration(value)}'"
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return f"binary'{base64.b64encode(bytes(value)).decode('ascii')}'"
    return f"'{escape_odata_literal(str(value))}'"
