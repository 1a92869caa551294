"""Environment variable substitution for expansion job files."""

import os
import re
from typing import Any, Collection, Union

_VARIABLE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)((?::\?|:-|:)[^}]*)?\}")


class EnvironmentSubstitutionError(Exception):
    """Exception raised when environment variable substitution fails."""

    pass


def substitute_environment_variables(
    value: Any,
    strict: bool = False,
    skip_keys: Collection[str] = ("template",),
) -> Any:
    """Substitute environment variables in job values.

    Supports the following formats:
    - ${VAR} - Replaced when set; left as-is otherwise unless strict
    - ${VAR:default} or ${VAR:-default} - Optional variable with default
    - ${VAR:?message} - Required, fails with the given message

    Mapping keys listed in ``skip_keys`` are copied untouched; by default
    that is the template itself, whose braces belong to the template syntax.

    Args:
        value: Value to process (string, dict, list, or primitive)
        strict: If True, every variable must be set (defaults are rejected)
        skip_keys: Mapping keys whose values are not substituted

    Returns:
        Value with environment variables substituted

    Raises:
        EnvironmentSubstitutionError: If a required variable is missing
    """
    if isinstance(value, str):
        return _substitute_in_string(value, strict)
    elif isinstance(value, dict):
        return {
            k: (
                v
                if k in skip_keys
                else substitute_environment_variables(v, strict, skip_keys)
            )
            for k, v in value.items()
        }
    elif isinstance(value, list):
        return [
            substitute_environment_variables(item, strict, skip_keys)
            for item in value
        ]
    else:
        return value


def _substitute_in_string(text: str, strict: bool) -> Union[str, int, float, bool]:
    if "${" not in text:
        return text

    def replace_var(match: "re.Match[str]") -> str:
        var_name, modifier = match.group(1), match.group(2)

        env_value = os.environ.get(var_name)
        if env_value is not None:
            return env_value

        if modifier is None:
            if strict:
                raise EnvironmentSubstitutionError(
                    f"Required environment variable '{var_name}' is not set. "
                    f"Suggestion: Set the variable with 'export {var_name}=value'"
                )
            return match.group(0)

        if modifier.startswith(":?"):
            error_msg = modifier[2:] or f"Variable {var_name} is required"
            raise EnvironmentSubstitutionError(
                f"Environment variable substitution failed: {error_msg}. "
                f"Suggestion: Set the variable with 'export {var_name}=value'"
            )

        if strict:
            raise EnvironmentSubstitutionError(
                f"Environment variable '{var_name}' is not set and strict mode "
                f"is enabled. Suggestion: Set the variable with 'export "
                f"{var_name}=value'"
            )
        return modifier[2:] if modifier.startswith(":-") else modifier[1:]

    result = _VARIABLE.sub(replace_var, text)

    # a value that is exactly one variable keeps a scalar type
    if result != text and _VARIABLE.fullmatch(text):
        return _coerce_type(result)
    return result


def _coerce_type(value: str) -> Union[str, int, float, bool]:
    """Coerce string value to appropriate type."""
    if value.lower() in ("true", "false"):
        return value.lower() == "true"

    try:
        if "." not in value and "e" not in value.lower():
            return int(value)
        return float(value)
    except ValueError:
        return value
