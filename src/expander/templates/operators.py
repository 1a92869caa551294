"""Operators applied to the working value of a replacement token."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

import regex

from .errors import InvalidPatternError
from .formatting import (
    ISO8601,
    b64_decode,
    b64_encode,
    format_date,
    printf,
    resolve_zone,
    to_instant,
    url_decode,
    url_encode,
)
from .references import ExpansionContext, Reference, text_of

logger = logging.getLogger(__name__)


class OpType(Enum):
    """The closed set of operators a token can apply."""

    TRIM = "trim"
    LOWER = "lower"
    UPPER = "upper"
    URLENCODE = "urlencode"
    URLDECODE = "urldecode"
    B64ENCODE = "b64encode"
    B64DECODE = "b64decode"
    SUBSTR_RANGE = "substr_range"
    SUBSTR_LEN = "substr_len"
    REGEX_EXTRACT = "regex_extract"
    PRINTF = "printf"
    DATE = "date"


@dataclass(frozen=True)
class Operator:
    """One compiled option with up to two reference operands.

    Operand meaning depends on the type:

    - SUBSTR_RANGE: start, end
    - SUBSTR_LEN: start, length
    - REGEX_EXTRACT: pattern, group
    - PRINTF: specifier
    - DATE: pattern, zone
    """

    type: OpType
    first: Optional[Reference] = None
    second: Optional[Reference] = None

    def apply(self, value: Any, context: ExpansionContext) -> Any:
        """Transform the working value, resolving operands against the context."""
        return _HANDLERS[self.type](self, value, context)


def _trim(op: Operator, value: Any, context: ExpansionContext) -> str:
    return text_of(value).strip()


def _lower(op: Operator, value: Any, context: ExpansionContext) -> str:
    return text_of(value).lower()


def _upper(op: Operator, value: Any, context: ExpansionContext) -> str:
    return text_of(value).upper()


def _urlencode(op: Operator, value: Any, context: ExpansionContext) -> str:
    return url_encode(text_of(value))


def _urldecode(op: Operator, value: Any, context: ExpansionContext) -> str:
    return url_decode(text_of(value))


def _b64encode(op: Operator, value: Any, context: ExpansionContext) -> str:
    return b64_encode(text_of(value))


def _b64decode(op: Operator, value: Any, context: ExpansionContext) -> str:
    text = text_of(value)
    decoded = b64_decode(text)
    if decoded is None:
        logger.debug(f"Input is not valid base64, passing through: {text[:50]!r}")
        return text
    return decoded


def _substr_range(op: Operator, value: Any, context: ExpansionContext) -> str:
    text = text_of(value)
    length = len(text)
    start = max(0, min(op.first.resolve_int(context), length))
    end = op.second.resolve_int(context)
    if end < 0:
        end = max(0, length + 1 + end)
    else:
        end = min(end, length)
    end = max(end, start)
    return text[start:end]


def _substr_len(op: Operator, value: Any, context: ExpansionContext) -> str:
    text = text_of(value)
    length = len(text)
    start = max(0, min(op.first.resolve_int(context), length - 1))
    end = min(start + max(0, op.second.resolve_int(context)), length)
    return text[start:end]


def _regex_extract(op: Operator, value: Any, context: ExpansionContext) -> str:
    text = text_of(value)
    pattern = op.first.resolve_string(context)
    try:
        compiled = regex.compile(pattern)
    except regex.error as e:
        raise InvalidPatternError(
            f"Invalid extraction pattern {pattern!r}: {e}", pattern=pattern
        ) from e

    match = compiled.search(text)
    if match is None:
        return ""

    # the group operand is only consumed once the pattern has matched
    group = op.second.resolve_string(context) or "0"
    try:
        result = match.group(int(group)) if group.isdecimal() else match.group(group)
    except IndexError:
        return ""
    return result if result is not None else ""


def _printf(op: Operator, value: Any, context: ExpansionContext) -> str:
    return printf(op.first.resolve_string(context), value)


def _date(op: Operator, value: Any, context: ExpansionContext) -> str:
    pattern = op.first.resolve_string(context) or ISO8601
    zone = resolve_zone(op.second.resolve_string(context), context.default_timezone)
    instant = to_instant(value)
    if instant is None:
        logger.debug(f"Cannot format {type(value).__name__} as a date")
        return ""
    return format_date(instant, pattern, zone, context.locale)


_HANDLERS: Dict[OpType, Callable[[Operator, Any, ExpansionContext], Any]] = {
    OpType.TRIM: _trim,
    OpType.LOWER: _lower,
    OpType.UPPER: _upper,
    OpType.URLENCODE: _urlencode,
    OpType.URLDECODE: _urldecode,
    OpType.B64ENCODE: _b64encode,
    OpType.B64DECODE: _b64decode,
    OpType.SUBSTR_RANGE: _substr_range,
    OpType.SUBSTR_LEN: _substr_len,
    OpType.REGEX_EXTRACT: _regex_extract,
    OpType.PRINTF: _printf,
    OpType.DATE: _date,
}
