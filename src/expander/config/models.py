from typing import Any, List, Literal, Optional

from babel import Locale, UnknownLocaleError
from babel.dates import get_timezone
from pydantic import BaseModel, Field, field_validator


class ExpanderSettings(BaseModel):
    """Settings shared by every expansion an expander performs.

    Attributes:
        locale: Locale used by date patterns for month and day names.
        default_timezone: Zone used by date operators without a ``[zone]``.
            None means the system zone.
        log_level: Logging level applied by the command line interface.

    Example:
        ExpanderSettings(default_timezone="UTC")
    """

    locale: str = "en_US"
    default_timezone: Optional[str] = None
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"

    @field_validator("locale")
    @classmethod
    def validate_locale(cls, v: str) -> str:
        try:
            Locale.parse(v)
        except (UnknownLocaleError, ValueError) as e:
            raise ValueError(
                f"Unknown locale '{v}'. Suggestion: Use an identifier "
                f"such as 'en_US'."
            ) from e
        return v

    @field_validator("default_timezone")
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        if v:
            try:
                get_timezone(v)
            except (LookupError, ValueError) as e:
                raise ValueError(
                    f"Unknown time zone '{v}'. Suggestion: Use an IANA "
                    f"zone name such as 'UTC' or 'Europe/Paris'."
                ) from e
        return v or None


class ExpansionJob(BaseModel):
    """A template with the parameter lists to expand it against.

    Attributes:
        template: Template text.
        parameters: One list of parameters per expansion. A scalar entry is
            taken as a single-parameter list.
        settings: Formatter settings for this job.

    Example (YAML):
        template: "?a=b{?}&c={}{?}&e={}"
        parameters:
          - [d, f]
          - ["", f]
    """

    template: str
    parameters: List[List[Any]] = Field(default_factory=list)
    settings: ExpanderSettings = Field(default_factory=ExpanderSettings)

    @field_validator("parameters", mode="before")
    @classmethod
    def wrap_scalar_rows(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, list):
            return [row if isinstance(row, list) else [row] for row in v]
        return v
