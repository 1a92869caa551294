"""Single-pass tokenizer for expansion templates."""

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple, Union

from .grammar import TokenOptions, parse_options

CONDITIONAL_OPEN = "{?}"
CONDITIONAL_CLOSE = "{.}"
ESCAPE = "\\"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiteralText:
    """Template text copied to the output unchanged."""

    text: str


@dataclass(frozen=True)
class Replacement:
    """A ``{...}`` token, with 0-2 backslashes in front of it.

    One backslash emits the token text itself; two evaluate the token and
    prefix the result with a single backslash.
    """

    escape: int
    options: TokenOptions

    @property
    def source(self) -> str:
        return ESCAPE * self.escape + "{" + self.options.raw + "}"


@dataclass(frozen=True)
class ConditionalOpen:
    pass


@dataclass(frozen=True)
class ConditionalClose:
    pass


Token = Union[LiteralText, Replacement, ConditionalOpen, ConditionalClose]


def scan(template: str) -> Iterator[Token]:
    """Split a template into tokens from left to right.

    Brace spans whose contents are not valid options are left inside the
    surrounding literal text.
    """
    literal_start = 0
    pos = template.find("{")

    while pos != -1:
        found = _token_at(template, pos, literal_start)
        if found is None:
            logger.debug(f"Brace at offset {pos} is not a token, keeping it as text")
            pos = template.find("{", pos + 1)
            continue

        token, start, end = found
        if start > literal_start:
            yield LiteralText(template[literal_start:start])
        yield token
        literal_start = end
        pos = template.find("{", end)

    if literal_start < len(template):
        yield LiteralText(template[literal_start:])


def _token_at(
    template: str, pos: int, floor: int
) -> Optional[Tuple[Token, int, int]]:
    """Recognize a token whose opening brace is at ``pos``.

    Returns the token with its start and end offsets. Escape backslashes are
    only taken from text at or after ``floor``.
    """
    if template.startswith(CONDITIONAL_OPEN, pos):
        return ConditionalOpen(), pos, pos + len(CONDITIONAL_OPEN)
    if template.startswith(CONDITIONAL_CLOSE, pos):
        return ConditionalClose(), pos, pos + len(CONDITIONAL_CLOSE)

    parsed = parse_options(template, pos + 1)
    if parsed is None:
        return None
    options, close = parsed

    escape = 0
    while escape < 2 and pos - escape > floor and template[pos - escape - 1] == ESCAPE:
        escape += 1
    return Replacement(escape, options), pos - escape, close + 1
