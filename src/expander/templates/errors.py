"""Exceptions raised by the template expansion engine."""


class ExpansionError(Exception):
    """Base exception for fatal expansion failures."""

    pass


class InvalidReferenceError(ExpansionError, ValueError):
    """A value used as an integer reference is not numeric."""

    pass


class FormatConversionError(ExpansionError, TypeError):
    """A printf-style specifier does not apply to the value's type."""

    pass


class UnknownTimeZoneError(ExpansionError, LookupError):
    """A date operator named a time zone that cannot be resolved."""

    def __init__(self, message: str, zone: str):
        super().__init__(message)
        self.zone = zone


class MalformedEncodingError(ExpansionError, ValueError):
    """Percent-encoded input could not be decoded."""

    pass


class InvalidPatternError(ExpansionError, ValueError):
    """An extraction regex does not compile or a date pattern is invalid."""

    def __init__(self, message: str, pattern: str):
        super().__init__(message)
        self.pattern = pattern
