"""Option grammar for replacement tokens.

The text between a token's braces is a sequence of options, each optionally
followed by a comma. Options are case-insensitive:

- ``n`` (digits): use parameter ``n`` (1-based) as the token's base value
- ``trim``, ``lower``/``tolower``, ``upper``/``toupper``
- ``urlencode``, ``urldecode``, ``b64encode``/``base64encode``,
  ``b64decode``/``base64decode``
- ``[start]``, ``[start,end]``, ``[start:length]``: substrings, where any
  bound may be ``{}`` or ``{n}`` to read it from the parameters
- ``[/pattern/]``, ``[/pattern/group]``: regular expression extraction
- ``%spec``: a printf-style conversion such as ``%-6s`` or ``%10.3e``
- ``date``/``now`` with optional ``(format)`` and, after a format,
  ``[zone]``. ``now`` formats the current time instead of a parameter.

The whole body must decompose into options; anything else means the braces
are not a token at all.
"""

import re
from dataclasses import dataclass
from typing import Optional, Tuple

from .formatting import ISO8601
from .operators import Operator, OpType
from .references import Reference

NEXT_PARAMETER = 0
CURRENT_TIME = -1

_SUBSTR = (
    r"\[(?:(?P<start>\d+|\{\d*\})(?:(?P<sep>[:,])(?P<end>-?\d+|\{\d*\}))?"
    r"|/(?P<pattern>(?:[^/\\]|\\.)*)/(?P<grp>[^\]]*))\]"
)
_PRINTF = r"%[-#+ 0,(]?\d*(?:\.\d+)?[bhscdoxefga]"
_DATE = (
    r"(?P<tag>date|now)"
    r"(?:\((?P<format>(?:[^)\\]|\\.)*)\)(?:\[(?P<zone>[\w/+-]+|\{\d*\})\])?)?"
)

OPTION_PATTERN = re.compile(
    r"(?P<index>\d+)"
    r"|(?P<trim>trim)"
    r"|(?:to)?(?P<case>lower|upper)"
    r"|(?P<codec>(?:url|b64|base64)(?:en|de)code)"
    rf"|(?P<substr>{_SUBSTR})"
    rf"|(?P<printf>{_PRINTF})"
    rf"|(?P<date>{_DATE})",
    re.IGNORECASE,
)

_UNESCAPE = re.compile(r"\\(.)")

_SIMPLE = {
    "lower": OpType.LOWER,
    "upper": OpType.UPPER,
    "urlencode": OpType.URLENCODE,
    "urldecode": OpType.URLDECODE,
    "b64encode": OpType.B64ENCODE,
    "base64encode": OpType.B64ENCODE,
    "b64decode": OpType.B64DECODE,
    "base64decode": OpType.B64DECODE,
}


@dataclass(frozen=True)
class TokenOptions:
    """Compiled contents of a replacement token's braces.

    Attributes:
        raw: The option text exactly as written between the braces
        operators: Operators to apply, in order
        index: Base parameter selection; NEXT_PARAMETER, CURRENT_TIME or a
            fixed 1-based position
    """

    raw: str
    operators: Tuple[Operator, ...] = ()
    index: int = NEXT_PARAMETER

    @property
    def uses_current_time(self) -> bool:
        return self.index == CURRENT_TIME


def parse_options(text: str, pos: int = 0) -> Optional[Tuple[TokenOptions, int]]:
    """Parse options starting at ``pos`` up to a closing brace.

    Args:
        text: Text containing the options (typically the whole template)
        pos: Offset just past the opening brace

    Returns:
        The compiled options and the offset of the closing brace, or None
        if the text from ``pos`` is not a valid option sequence ending in
        ``}``
    """
    start = pos
    operators = []
    index = NEXT_PARAMETER

    while not text.startswith("}", pos):
        match = OPTION_PATTERN.match(text, pos)
        if match is None:
            return None

        if match.group("index") is not None:
            index = int(match.group("index"))
        elif match.group("trim") is not None:
            operators.append(Operator(OpType.TRIM))
        elif match.group("case") is not None:
            operators.append(Operator(_SIMPLE[match.group("case").lower()]))
        elif match.group("codec") is not None:
            operators.append(Operator(_SIMPLE[match.group("codec").lower()]))
        elif match.group("substr") is not None:
            operators.append(_substring(match))
        elif match.group("printf") is not None:
            operators.append(
                Operator(OpType.PRINTF, Reference.literal(match.group("printf")))
            )
        else:
            if match.group("tag").lower() == "now":
                index = CURRENT_TIME
            operators.append(_date(match))

        pos = match.end()
        if text.startswith(",", pos):
            pos += 1

    options = TokenOptions(raw=text[start:pos], operators=tuple(operators), index=index)
    return options, pos


def compile_options(body: str) -> Optional[TokenOptions]:
    """Compile a complete options body, or return None if it is not valid."""
    parsed = parse_options(body + "}")
    if parsed is None or parsed[1] != len(body):
        return None
    return parsed[0]


def _substring(match: "re.Match[str]") -> Operator:
    if match.group("pattern") is not None:
        return Operator(
            OpType.REGEX_EXTRACT,
            Reference.parse(match.group("pattern")),
            Reference.parse(match.group("grp")),
        )

    start = Reference.parse(match.group("start"))
    separator = match.group("sep")
    if separator is None:
        return Operator(OpType.SUBSTR_RANGE, start, Reference.literal("-1"))
    end = Reference.parse(match.group("end"))
    if separator == ",":
        return Operator(OpType.SUBSTR_RANGE, start, end)
    return Operator(OpType.SUBSTR_LEN, start, end)


def _date(match: "re.Match[str]") -> Operator:
    pattern = match.group("format") or ISO8601
    return Operator(
        OpType.DATE,
        Reference.parse(_UNESCAPE.sub(r"\1", pattern)),
        Reference.parse(match.group("zone")),
    )
