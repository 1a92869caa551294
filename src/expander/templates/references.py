"""Parameter references and the shared argument cursor."""

import re
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from .errors import InvalidReferenceError

_INDIRECT = re.compile(r"^\{(\d*)\}$")
_INTEGER = re.compile(r"^[-+]?\d+$")


def text_of(value: Any) -> str:
    """Return the text representation of a parameter or working value."""
    if value is None:
        return ""
    return str(value)


def int_of(value: Any) -> int:
    """Coerce a parameter to an integer.

    Integers pass through, floats truncate toward zero, anything else is
    parsed from its text form (empty text is zero).

    Raises:
        InvalidReferenceError: If the text form is not an integer
    """
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        return int(value)
    text = text_of(value)
    if not text:
        return 0
    if not _INTEGER.match(text):
        raise InvalidReferenceError(f"Expected an integer reference, got {text!r}")
    return int(text)


@dataclass
class ArgumentCursor:
    """Position of the last parameter consumed by a sequential reference.

    One cursor is created per expansion call and shared by every ``{}``
    reference in the template. It only moves forward.
    """

    position: int = 0

    def advance(self) -> int:
        """Consume the next parameter and return its 1-based index."""
        self.position += 1
        return self.position


@dataclass
class ExpansionContext:
    """Per-call state threaded through operator evaluation."""

    params: Sequence[Any]
    cursor: ArgumentCursor = field(default_factory=ArgumentCursor)
    locale: str = "en_US"
    default_timezone: Optional[str] = None

    def parameter(self, index: int) -> Any:
        """Return the parameter at a 1-based index, or None past the end."""
        if index > len(self.params):
            return None
        return self.params[index - 1]

    def has_parameter(self, index: int) -> bool:
        return 0 < index <= len(self.params)


@dataclass(frozen=True)
class Reference:
    """An operand that is either literal text or a pointer into the parameters.

    ``index`` is None for literals, 0 for ``{}`` (next sequential parameter)
    and n for ``{n}`` (fixed 1-based position).
    """

    value: Optional[str] = None
    index: Optional[int] = None

    @classmethod
    def parse(cls, text: Optional[str]) -> "Reference":
        """Build a reference from the raw operand text of an option."""
        if text is not None:
            match = _INDIRECT.match(text)
            if match:
                return cls(index=int(match.group(1) or 0))
        return cls(value=text)

    @classmethod
    def literal(cls, value: Optional[str]) -> "Reference":
        return cls(value=value)

    @property
    def indirect(self) -> bool:
        return self.index is not None

    def _bind(self, context: ExpansionContext) -> int:
        if self.index == 0:
            return context.cursor.advance()
        return self.index

    def resolve_int(self, context: ExpansionContext) -> int:
        """Resolve to an integer; missing parameters yield 0."""
        if not self.indirect:
            if self.value is None or not _INTEGER.match(self.value):
                raise InvalidReferenceError(
                    f"Expected an integer literal, got {self.value!r}"
                )
            return int(self.value)
        index = self._bind(context)
        if not context.has_parameter(index):
            return 0
        return int_of(context.parameter(index))

    def resolve_string(self, context: ExpansionContext) -> Optional[str]:
        """Resolve to text; missing parameters yield an empty string."""
        if not self.indirect:
            return self.value
        index = self._bind(context)
        if not context.has_parameter(index):
            return ""
        return text_of(context.parameter(index))
