"""Value formatting services used by the expansion operators.

These wrap the codecs and formatters the operators treat as black boxes:
printf-style conversion, date patterns with time zones, percent-encoding
and base64.
"""

import base64
import binascii
import math
import re
import struct
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Optional
from urllib.parse import quote_plus, unquote_plus

from babel.dates import PATTERN_CHARS, get_timezone, parse_pattern

from .errors import (
    FormatConversionError,
    InvalidPatternError,
    MalformedEncodingError,
    UnknownTimeZoneError,
)
from .references import text_of

ISO8601 = "yyyy-MM-dd'T'HH:mm:ss.SSSX"

_PRINTF = re.compile(
    r"^%(?P<flag>[-#+ 0,(]?)(?P<width>\d*)(?:\.(?P<precision>\d+))?"
    r"(?P<conversion>[bBhHsScCdoxXeEfgGaA])$"
)
_HEX_FLOAT = re.compile(
    r"^(?P<lead>-?0x[01])\.(?P<fraction>[0-9a-f]+)p(?P<exponent>[+-]\d+)$"
)
_BAD_PERCENT = re.compile(r"%(?![0-9A-Fa-f]{2})")
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def current_instant() -> datetime:
    """Return the current time as an aware datetime in the system zone."""
    return datetime.now().astimezone()


def printf(spec: str, value: Any) -> str:
    """Apply a single printf-style specifier to a typed value.

    Args:
        spec: Specifier such as ``%-6s`` or ``%10.3e``
        value: Value to convert; its type must suit the conversion letter

    Returns:
        Formatted text

    Raises:
        FormatConversionError: If the specifier is unsupported or does not
            apply to the value's type
    """
    match = _PRINTF.match(spec)
    if not match:
        raise FormatConversionError(f"Unsupported format specifier: {spec}")

    flag = match.group("flag")
    width = match.group("width")
    precision = match.group("precision")
    conversion = match.group("conversion")
    kind = conversion.lower()

    if kind in "bhsc":
        if flag not in ("", "-"):
            raise FormatConversionError(
                f"Flag '{flag}' does not apply to %{conversion} in {spec}"
            )
        text = _general(kind, value, spec)
        if precision:
            if kind == "c":
                raise FormatConversionError(f"Precision is not allowed in {spec}")
            text = text[: int(precision)]
        if conversion.isupper():
            text = text.upper()
        return _pad(text, flag, width)

    if kind in "dox":
        if not isinstance(value, int) or isinstance(value, bool):
            raise FormatConversionError(
                f"%{conversion} requires an integer, got {type(value).__name__}"
            )
        if precision:
            raise FormatConversionError(f"Precision is not allowed in {spec}")
        if kind != "d" and value < 0:
            value = _unsigned(value)
        if kind == "o" and flag == "#":
            return _pad("0" + format(value, "o"), "", width)
    elif not isinstance(value, float):
        raise FormatConversionError(
            f"%{conversion} requires a floating point value, got {type(value).__name__}"
        )
    elif kind == "g" and flag == "#":
        raise FormatConversionError(
            f"Flag '#' does not apply to %{conversion} in {spec}"
        )

    if kind == "a":
        text = _hex_float(value)
        if conversion.isupper():
            text = text.upper()
        return _pad(text, flag, width)

    # %g keeps trailing zeros
    alternate = "#" if kind == "g" else ""
    if flag in (",", "("):
        grouping = "," if flag == "," else ""
        dot = f".{precision}" if precision else ""
        magnitude = abs(value) if flag == "(" else value
        text = format(magnitude, f"{alternate}{grouping}{dot}{conversion}")
        if flag == "(" and value < 0:
            text = f"({text})"
        return _pad(text, "", width)

    dot = f".{precision}" if precision else ""
    return f"%{flag}{alternate}{width}{dot}{conversion}" % value


def _unsigned(value: int) -> int:
    """Reinterpret a negative integer as a 32-bit word, or 64-bit if it needs one."""
    bits = 32 if value >= -(1 << 31) else 64
    return value + (1 << bits)


def _hex_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    match = _HEX_FLOAT.match(value.hex())
    fraction = match.group("fraction").rstrip("0") or "0"
    return f"{match.group('lead')}.{fraction}p{int(match.group('exponent'))}"


def _hash_code(value: Any) -> int:
    """Return the 32-bit hash code the JVM gives the same value.

    Strings hash over their UTF-16 code units, integers and floats fold their
    64-bit form, anything else hashes its text.
    """
    if isinstance(value, bool):
        return 1231 if value else 1237
    if isinstance(value, int):
        if -(1 << 31) <= value < (1 << 31):
            return value & 0xFFFFFFFF
        return (value ^ (value >> 32)) & 0xFFFFFFFF
    if isinstance(value, float):
        (bits,) = struct.unpack(">q", struct.pack(">d", value))
        return (bits ^ (bits >> 32)) & 0xFFFFFFFF

    code = 0
    units = text_of(value).encode("utf-16-be")
    for i in range(0, len(units), 2):
        code = (31 * code + int.from_bytes(units[i : i + 2], "big")) & 0xFFFFFFFF
    return code


def _general(kind: str, value: Any, spec: str) -> str:
    if kind == "s":
        return text_of(value)
    if kind == "b":
        if value is None:
            return "false"
        if isinstance(value, bool):
            return "true" if value else "false"
        return "true"
    if kind == "h":
        if value is None:
            return "null"
        return format(_hash_code(value), "x")
    # %c
    if isinstance(value, str) and len(value) == 1:
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        try:
            return chr(value)
        except (ValueError, OverflowError) as e:
            raise FormatConversionError(
                f"Invalid code point for {spec}: {value}"
            ) from e
    raise FormatConversionError(
        f"%c requires a character or code point, got {type(value).__name__}"
    )


def _pad(text: str, flag: str, width: str) -> str:
    if not width:
        return text
    if flag == "-":
        return text.ljust(int(width))
    return text.rjust(int(width))


def resolve_zone(zone: Optional[str], default: Optional[str] = None) -> tzinfo:
    """Look up a time zone by name; empty means the default or system zone.

    Raises:
        UnknownTimeZoneError: If the zone name cannot be resolved
    """
    name = zone or default or None
    try:
        return get_timezone(name)
    except (LookupError, ValueError) as e:
        raise UnknownTimeZoneError(f"Unknown time zone: {name}", zone=name) from e


def to_instant(value: Any) -> Optional[datetime]:
    """Coerce a working value to an aware datetime.

    Datetimes pass through (naive ones are taken as local time) and
    integers are epoch milliseconds. Anything else returns None.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.astimezone()
    if isinstance(value, int) and not isinstance(value, bool):
        return _EPOCH + timedelta(milliseconds=value)
    return None


def format_date(instant: datetime, pattern: str, zone: tzinfo, locale: str) -> str:
    """Format an instant with a date pattern in the given zone.

    Unquoted ASCII letters must be field letters known to babel; others,
    such as ``n`` (nano-of-second), are rejected rather than copied.

    Raises:
        InvalidPatternError: If the pattern uses an unknown field letter or
            a field length babel does not support
    """
    _check_field_letters(pattern)
    try:
        return parse_pattern(pattern).apply(instant.astimezone(zone), locale)
    except (KeyError, ValueError) as e:
        raise InvalidPatternError(
            f"Invalid date pattern: {pattern}", pattern=pattern
        ) from e


def _check_field_letters(pattern: str) -> None:
    quoted = False
    for char in pattern:
        if char == "'":
            quoted = not quoted
        elif (
            not quoted
            and char.isascii()
            and char.isalpha()
            and char not in PATTERN_CHARS
        ):
            raise InvalidPatternError(
                f"Unknown date field letter '{char}' in pattern: {pattern}",
                pattern=pattern,
            )


def url_encode(text: str) -> str:
    """Percent-encode using the UTF-8 www-form convention (space becomes +)."""
    return quote_plus(text, safe="*", encoding="utf-8").replace("~", "%7E")


def url_decode(text: str) -> str:
    """Decode www-form percent-encoding.

    Raises:
        MalformedEncodingError: If a ``%`` is not followed by two hex digits
    """
    bad = _BAD_PERCENT.search(text)
    if bad:
        raise MalformedEncodingError(
            f"Incomplete percent escape at offset {bad.start()}: {text!r}"
        )
    return unquote_plus(text, encoding="utf-8", errors="replace")


def b64_encode(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def b64_decode(text: str) -> Optional[str]:
    """Decode standard base64, returning None when the input is not valid."""
    padded = text
    if len(text) % 4 in (2, 3) and not text.endswith("="):
        padded = text + "=" * (4 - len(text) % 4)
    try:
        data = base64.b64decode(padded, validate=True)
    except (binascii.Error, ValueError):
        return None
    return data.decode("utf-8", errors="replace")
