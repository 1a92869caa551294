"""Shared pytest fixtures and configuration."""

from datetime import datetime, timezone

from pytest import fixture

from expander.config import ExpanderSettings
from expander.templates import TemplateExpander

# 2020-05-05T16:52:02.346Z, a Tuesday
INSTANT = datetime(2020, 5, 5, 16, 52, 2, 346000, tzinfo=timezone.utc)
INSTANT_MS = 1588697522346


@fixture
def instant() -> datetime:
    """A fixed aware datetime."""
    return INSTANT


@fixture
def instant_ms() -> int:
    """INSTANT as epoch milliseconds."""
    return INSTANT_MS


@fixture
def utc_settings() -> ExpanderSettings:
    """Settings with UTC as the default zone so dates do not depend on the host."""
    return ExpanderSettings(default_timezone="UTC")


@fixture
def expander(utc_settings):
    """Expander in UTC whose clock always returns INSTANT."""
    return TemplateExpander(settings=utc_settings, clock=lambda: INSTANT)


@fixture
def expand(expander):
    """Call the fixture expander with positional parameters."""

    def _expand(template, *params):
        return expander.expand(template, params)

    return _expand


@fixture
def job_file(tmp_path):
    """Write a YAML job file and return its path."""

    def _write(content: str, name: str = "job.yaml"):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write
