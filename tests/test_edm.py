"""
Tests for odata_engine.parsers.edm (primitive types and literals).
"""

import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

import pytest

from odata_engine.parsers.base import ParserOptions
from odata_engine.parsers.edm import (
    EDM_PARSERS,
    escape_odata_literal,
    format_duration,
    format_literal,
    parse_duration,
    parse_legacy_date,
)

V2 = ParserOptions(version="2.0")
IEEE754 = ParserOptions(ieee754_compatible=True)


def edm(name):
    return EDM_PARSERS[f"Edm.{name}"]


class TestHelperFunctions:
    """Tests for helper functions."""

    def test_escape_odata_literal(self):
        assert escape_odata_literal("simple") == "simple"
        assert escape_odata_literal("O'Brien") == "O''Brien"
        assert escape_odata_literal("test''double") == "test''''double"

    def test_parse_legacy_date(self):
        assert parse_legacy_date("/Date(0)/") == datetime(1970, 1, 1, tzinfo=timezone.utc)
        assert parse_legacy_date("/Date(86400000+0000)/") == datetime(1970, 1, 2, tzinfo=timezone.utc)
        assert parse_legacy_date("2024-01-01") is None

    def test_durations(self):
        assert parse_duration("P1DT2H3M4S") == timedelta(days=1, hours=2, minutes=3, seconds=4)
        assert parse_duration("PT0.5S") == timedelta(milliseconds=500)
        assert parse_duration("-PT1H") == timedelta(hours=-1)
        assert format_duration(timedelta(days=1, hours=2, minutes=3, seconds=4)) == "P1DT2H3M4S"
        assert format_duration(timedelta(milliseconds=500)) == "P0DT0H0M0.5S"
        with pytest.raises(ValueError):
            parse_duration("1 hour")


class TestEdmParsers:
    """Tests for deserialize/serialize of primitive values."""

    def test_numbers(self):
        assert edm("Int32").deserialize("12") == 12
        assert edm("Int64").serialize(12) == 12
        assert edm("Int64").serialize(12, IEEE754) == "12"
        assert edm("Double").deserialize("1.5") == 1.5
        assert edm("Boolean").deserialize("true") is True
        assert edm("Boolean").deserialize(False) is False

    def test_decimal(self):
        assert edm("Decimal").deserialize("10.25") == Decimal("10.25")
        assert edm("Decimal").serialize(Decimal("10.25")) == Decimal("10.25")
        assert edm("Decimal").serialize("10") == Decimal("10")
        assert isinstance(edm("Decimal").serialize(Decimal("10.25")), Decimal)
        assert edm("Decimal").serialize(Decimal("10.25"), IEEE754) == "10.25"
        with pytest.raises(ValueError):
            edm("Decimal").deserialize("ten")

    def test_dates_and_times(self):
        assert edm("Date").deserialize("2024-02-29") == date(2024, 2, 29)
        assert edm("Date").serialize(date(2024, 2, 29)) == "2024-02-29"
        assert edm("DateTimeOffset").deserialize("2024-01-01T10:00:00Z") == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)
        assert edm("DateTimeOffset").serialize(datetime(2024, 1, 1, 10, tzinfo=timezone.utc)) == "2024-01-01T10:00:00Z"
        assert edm("TimeOfDay").deserialize("08:30:00") == time(8, 30)
        assert edm("Duration").deserialize("PT1M") == timedelta(minutes=1)

    @pytest.mark.parametrize("text,expected", [
        ("2014-01-01T00:00:00.1234567Z", datetime(2014, 1, 1, 0, 0, 0, 123456, tzinfo=timezone.utc)),
        ("2014-01-01T00:00:00.5+02:00", datetime(2014, 1, 1, 0, 0, 0, 500000, tzinfo=timezone(timedelta(hours=2)))),
        ("2014-01-01T00:00:00.1234Z", datetime(2014, 1, 1, 0, 0, 0, 123400, tzinfo=timezone.utc)),
    ])
    def test_fractional_seconds_of_any_length(self, text, expected):
        assert edm("DateTimeOffset").deserialize(text) == expected

    def test_seven_digit_time_of_day(self):
        assert edm("TimeOfDay").deserialize("12:30:00.0000000") == time(12, 30)
        assert edm("TimeOfDay").deserialize("12:30:00.1234567") == time(12, 30, 0, 123456)

    def test_legacy_datetime(self):
        parser = edm("DateTime")
        assert parser.deserialize("/Date(0)/") == datetime(1970, 1, 1, tzinfo=timezone.utc)
        assert parser.serialize(datetime(1970, 1, 1, 0, 0, 1, tzinfo=timezone.utc), V2) == "/Date(1000)/"
        assert parser.literal(datetime(2024, 1, 1, 10), V2) == "datetime'2024-01-01T10:00:00'"

    def test_guid_and_binary(self):
        value = uuid.UUID("12345678-1234-5678-1234-567812345678")
        assert edm("Guid").deserialize(str(value)) == value
        assert edm("Guid").literal(value) == str(value)
        assert edm("Guid").literal(value, V2) == f"guid'{value}'"
        assert edm("Binary").deserialize("aGk=") == b"hi"
        assert edm("Binary").serialize(b"hi") == "aGk="
        assert edm("Binary").literal(b"hi") == "binary'aGk='"

    def test_none_and_lists(self):
        assert edm("Int32").deserialize(None) is None
        assert edm("Int32").deserialize(["1", "2"]) == [1, 2]
        assert edm("String").literal(None) == "null"

    def test_string_literal(self):
        assert edm("String").literal("O'Brien") == "'O''Brien'"

    def test_json_schema(self):
        assert edm("Int32").to_json_schema() == {"type": "integer"}
        assert edm("Date").to_json_schema() == {"type": "string", "format": "date"}


class TestFormatLiteral:
    """Tests for untyped literal rendering."""

    @pytest.mark.parametrize("value,expected", [
        (None, "null"),
        (True, "true"),
        (3, "3"),
        (Decimal("1.50"), "1.50"),
        ("O'Brien", "'O''Brien'"),
        (date(2024, 1, 2), "2024-01-02"),
        (timedelta(hours=1), "duration'P0DT1H0M0S'"),
    ])
    def test_values(self, value, expected):
        assert format_literal(value) == expected
