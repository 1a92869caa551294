"""Static analysis of expansion templates."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

import regex

from ..config.models import ExpanderSettings
from .errors import ExpansionError
from .formatting import format_date, resolve_zone
from .operators import Operator, OpType
from .references import Reference
from .scanner import ConditionalClose, ConditionalOpen, LiteralText, Replacement, scan


class ValidationLevel(Enum):
    """Validation strictness levels."""

    PERMISSIVE = "permissive"  # Token structure only
    STANDARD = "standard"  # Also checks literal operands
    STRICT = "strict"  # Warnings count as errors


@dataclass
class ValidationResult:
    """Result of template validation."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    tokens: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_warnings(self) -> bool:
        """Check if validation has warnings."""
        return len(self.warnings) > 0

    @property
    def has_errors(self) -> bool:
        """Check if validation has errors."""
        return len(self.errors) > 0


class TemplateValidator:
    """Reports how a template will be tokenized and what may fail at expansion.

    Malformed braces never fail an expansion; they are reported as warnings
    because they are usually typos. Literal operands that would make every
    expansion fail (bad zones, regexes or date patterns) are errors.
    """

    def __init__(
        self,
        level: ValidationLevel = ValidationLevel.STANDARD,
        settings: Optional[ExpanderSettings] = None,
    ) -> None:
        """Initialize the validator.

        Args:
            level: Validation strictness level
            settings: Settings used to check date operators
        """
        self.level = level
        self.settings = settings or ExpanderSettings()

    def validate(self, template: str) -> ValidationResult:
        """Validate a template string.

        Args:
            template: Template to validate

        Returns:
            ValidationResult with errors, warnings, tokens and metadata
        """
        errors: List[str] = []
        warnings: List[str] = []
        tokens: List[str] = []
        sequential = 0
        max_index = 0
        uses_current_time = False
        block_open = False
        offset = 0

        for token in scan(template):
            if isinstance(token, LiteralText):
                warnings.extend(_stray_braces(token.text, offset))
                offset += len(token.text)
                continue

            if isinstance(token, ConditionalOpen):
                if block_open:
                    warnings.append(
                        f"Conditional block at offset {offset} also closes the "
                        f"previous block"
                    )
                block_open = True
                tokens.append("{?}")
                offset += 3
                continue

            if isinstance(token, ConditionalClose):
                if not block_open:
                    warnings.append(
                        f"Close marker at offset {offset} has no open block"
                    )
                block_open = False
                tokens.append("{.}")
                offset += 3
                continue

            tokens.append(token.source)
            if token.escape != 1:
                options = token.options
                if options.uses_current_time:
                    uses_current_time = True
                elif options.index == 0:
                    sequential += 1
                else:
                    max_index = max(max_index, options.index)

                for operator in options.operators:
                    for ref in (operator.first, operator.second):
                        if ref is not None and ref.indirect:
                            if ref.index == 0:
                                sequential += 1
                            else:
                                max_index = max(max_index, ref.index)
                    if self.level != ValidationLevel.PERMISSIVE:
                        error = self._check_operator(operator)
                        if error:
                            errors.append(
                                f"{token.source} at offset {offset}: {error}"
                            )
            offset += len(token.source)

        if self.level == ValidationLevel.STRICT:
            errors.extend(warnings)
            warnings = []

        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            tokens=tokens,
            metadata={
                "length": len(template),
                "lines": template.count("\n") + 1 if template else 0,
                "sequential_references": sequential,
                "max_index": max_index,
                "uses_current_time": uses_current_time,
            },
        )

    def _check_operator(self, operator: Operator) -> Optional[str]:
        """Check literal operands that would fail every expansion."""
        if operator.type == OpType.REGEX_EXTRACT and _is_literal(operator.first):
            try:
                regex.compile(operator.first.value)
            except regex.error as e:
                return f"invalid pattern: {e}"

        if operator.type == OpType.DATE:
            try:
                zone = timezone.utc
                if _is_literal(operator.second) and operator.second.value:
                    zone = resolve_zone(operator.second.value)
                if _is_literal(operator.first) and operator.first.value:
                    format_date(
                        datetime.now(timezone.utc),
                        operator.first.value,
                        zone,
                        self.settings.locale,
                    )
            except ExpansionError as e:
                return str(e)
        return None


def _is_literal(ref: Optional[Reference]) -> bool:
    return ref is not None and not ref.indirect


def _stray_braces(text: str, offset: int) -> List[str]:
    """Warn about opening braces left in literal text."""
    warnings = []
    pos = text.find("{")
    while pos != -1:
        end = text.find("}", pos)
        snippet = text[pos : end + 1] if end != -1 else text[pos : pos + 20]
        warnings.append(
            f"'{snippet}' at offset {offset + pos} is not a valid token and "
            f"will be copied as text"
        )
        pos = text.find("{", pos + 1)
    return warnings
