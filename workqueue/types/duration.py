"""
Duration value used by delivery options.

A Duration is an integer count of nanoseconds. It is built from compact strings
such as "168h", "5min" or "1h30m" and written to the wire in canonical form
("168h0m0s", "5m0s", "1.5s", "250ms").
"""

import re
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from functools import total_ordering
from typing import Any

from pydantic import GetCoreSchemaHandler, GetJsonSchemaHandler
from pydantic.json_schema import JsonSchemaValue
from pydantic_core import core_schema

from workqueue.errors import ParseError

NANOSECOND = 1
MICROSECOND = 1000 * NANOSECOND
MILLISECOND = 1000 * MICROSECOND
SECOND = 1000 * MILLISECOND
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE

# Unit suffix -> nanoseconds
_UNITS: dict[str, int] = {
    "ns": NANOSECOND,
    "us": MICROSECOND,
    "µs": MICROSECOND,  # U+00B5 micro sign
    "μs": MICROSECOND,  # U+03BC greek mu
    "ms": MILLISECOND,
    "s": SECOND,
    "m": MINUTE,
    "min": MINUTE,
    "h": HOUR,
}

_TERM = re.compile(r"([0-9]+\.?[0-9]*|\.[0-9]+)([^0-9.]*)")


def _fraction(value: int, precision: int) -> str:
    """Render value / 10**precision without trailing zeros."""
    whole, frac = divmod(value, 10**precision)
    if not frac:
        return str(whole)
    digits = f"{frac:0{precision}d}".rstrip("0")
    return f"{whole}.{digits}"


@total_ordering
class Duration:
    """
    Immutable span of time stored in nanoseconds.

    Example:
        >>> Duration.parse("5min")
        Duration('5m0s')
        >>> str(Duration.parse("168h"))
        '168h0m0s'
    """

    __slots__ = ("_nanoseconds",)

    def __init__(self, nanoseconds: int = 0) -> None:
        if isinstance(nanoseconds, bool) or not isinstance(nanoseconds, int):
            raise TypeError(
                f"Duration expects an integer nanosecond count, got {type(nanoseconds).__name__}"
            )
        self._nanoseconds = nanoseconds

    @classmethod
    def parse(cls, text: str) -> "Duration":
        """
        Parse a duration string.

        Accepts an optional sign followed by one or more <number><unit> terms.
        Units: ns, us, µs, ms, s, m, min, h. A bare "0" is zero.

        Args:
            text: The duration string.

        Returns:
            The parsed Duration.

        Raises:
            ParseError: On empty input, a missing or unknown unit, or a
                non-numeric magnitude.
        """
        if not isinstance(text, str):
            raise ParseError(f"duration must be a string, got {type(text).__name__}")

        body = text
        negative = False
        if body[:1] in ("-", "+"):
            negative = body[0] == "-"
            body = body[1:]

        if body == "0":
            return cls(0)
        if not body:
            raise ParseError(f'invalid duration "{text}"')

        total = Decimal(0)
        pos = 0
        while pos < len(body):
            match = _TERM.match(body, pos)
            if match is None:
                raise ParseError(f'invalid duration "{text}"')
            number, unit = match.groups()
            if not unit:
                raise ParseError(f'missing unit in duration "{text}"')
            if unit not in _UNITS:
                raise ParseError(f'unknown unit "{unit}" in duration "{text}"')
            try:
                total += Decimal(number) * _UNITS[unit]
            except InvalidOperation as exc:
                raise ParseError(f'invalid duration "{text}"') from exc
            pos = match.end()

        nanoseconds = int(total)
        return cls(-nanoseconds if negative else nanoseconds)

    @classmethod
    def from_timedelta(cls, value: timedelta) -> "Duration":
        """Convert a timedelta (microsecond precision) to a Duration."""
        micros = (value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds
        return cls(micros * MICROSECOND)

    @property
    def nanoseconds(self) -> int:
        return self._nanoseconds

    def total_seconds(self) -> float:
        return self._nanoseconds / SECOND

    def to_timedelta(self) -> timedelta:
        """Convert to a timedelta, truncating below microsecond precision."""
        micros = abs(self._nanoseconds) // MICROSECOND
        return timedelta(microseconds=-micros if self._nanoseconds < 0 else micros)

    def to_wire(self) -> str:
        """Canonical wire form; always parses back to the same span."""
        return str(self)

    def __str__(self) -> str:
        if self._nanoseconds == 0:
            return "0s"

        sign = "-" if self._nanoseconds < 0 else ""
        value = abs(self._nanoseconds)

        if value < SECOND:
            if value < MICROSECOND:
                return f"{sign}{value}ns"
            if value < MILLISECOND:
                return f"{sign}{_fraction(value, 3)}µs"
            return f"{sign}{_fraction(value, 6)}ms"

        hours, rest = divmod(value, HOUR)
        minutes, rest = divmod(rest, MINUTE)
        seconds = f"{_fraction(rest, 9)}s"
        if hours:
            return f"{sign}{hours}h{minutes}m{seconds}"
        if minutes:
            return f"{sign}{minutes}m{seconds}"
        return f"{sign}{seconds}"

    def __repr__(self) -> str:
        return f"Duration({str(self)!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return self._nanoseconds == other._nanoseconds

    def __lt__(self, other: "Duration") -> bool:
        if not isinstance(other, Duration):
            return NotImplemented
        return self._nanoseconds < other._nanoseconds

    def __hash__(self) -> int:
        return hash(self._nanoseconds)

    def __bool__(self) -> bool:
        return self._nanoseconds != 0

    # ------------------------------------------------------------------
    # Pydantic integration
    # ------------------------------------------------------------------

    @classmethod
    def _coerce(cls, value: Any) -> "Duration":
        if isinstance(value, Duration):
            return value
        if isinstance(value, str):
            return cls.parse(value)
        if isinstance(value, timedelta):
            return cls.from_timedelta(value)
        if isinstance(value, int) and not isinstance(value, bool):
            return cls(value)
        raise ParseError(f"cannot build a duration from {type(value).__name__}")

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        return core_schema.no_info_plain_validator_function(
            cls._coerce,
            serialization=core_schema.to_string_ser_schema(when_used="json-unless-none"),
        )

    @classmethod
    def __get_pydantic_json_schema__(
        cls, schema: core_schema.CoreSchema, handler: GetJsonSchemaHandler
    ) -> JsonSchemaValue:
        return {"type": "string", "examples": ["5m0s", "168h0m0s"]}
