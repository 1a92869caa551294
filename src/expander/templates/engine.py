"""Template expansion driver."""

from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from ..config.models import ExpanderSettings
from .conditional import ConditionalBlock, OutputBuffer
from .formatting import current_instant
from .references import ArgumentCursor, ExpansionContext, Reference, text_of
from .scanner import (
    ESCAPE,
    ConditionalClose,
    ConditionalOpen,
    LiteralText,
    Replacement,
    scan,
)


class TemplateExpander:
    """Expands templates against ordered parameter lists.

    An expander only holds configuration, so one instance can serve any
    number of calls, including concurrent ones. Each call gets its own
    argument cursor and conditional block state.
    """

    def __init__(
        self,
        settings: Optional[ExpanderSettings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        """Initialize the expander.

        Args:
            settings: Formatter settings (locale and default time zone)
            clock: Source of the current instant for ``now`` tokens
        """
        self.settings = settings or ExpanderSettings()
        self.clock = clock or current_instant

    def expand(self, template: str, params: Sequence[Any] = ()) -> str:
        """Expand a template.

        Args:
            template: Template text containing replacement tokens
            params: Parameters consumed by the tokens, in order

        Returns:
            The expanded text

        Raises:
            ExpansionError: If an operator fails in a way that cannot be
                recovered (see ``expander.templates.errors``)
        """
        context = ExpansionContext(
            params=params,
            cursor=ArgumentCursor(),
            locale=self.settings.locale,
            default_timezone=self.settings.default_timezone,
        )
        buffer = OutputBuffer()
        block = ConditionalBlock(buffer)

        for token in scan(template):
            if isinstance(token, LiteralText):
                buffer.append(token.text)
            elif isinstance(token, ConditionalOpen):
                block.open()
            elif isinstance(token, ConditionalClose):
                block.close()
            else:
                result = self._replace(token, context)
                buffer.append(result)
                block.record(result)

        block.finish()
        return buffer.getvalue()

    def _replace(self, token: Replacement, context: ExpansionContext) -> str:
        if token.escape == 1:
            return "{" + token.options.raw + "}"

        options = token.options
        if options.uses_current_time:
            working = self.clock()
        else:
            working = _base_value(Reference(index=options.index), context)

        for operator in options.operators:
            working = operator.apply(working, context)

        result = text_of(working)
        if token.escape == 2:
            result = ESCAPE + result
        return result


def _base_value(base: Reference, context: ExpansionContext) -> Any:
    """Select a token's typed base parameter, advancing the cursor for ``{}``."""
    index = context.cursor.advance() if base.index == 0 else base.index
    if not context.has_parameter(index):
        return ""
    return context.parameter(index)


def expand(
    template: str,
    *params: Any,
    settings: Optional[ExpanderSettings] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> str:
    """Expand ``template`` with positional parameters.

    >>> expand("a{}b{}c", "0", "1")
    'a0b1c'
    """
    return TemplateExpander(settings=settings, clock=clock).expand(template, params)
