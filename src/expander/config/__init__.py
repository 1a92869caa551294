"""Configuration management for the expander."""

from .environment import EnvironmentSubstitutionError, substitute_environment_variables
from .loader import load_job, load_job_string
from .models import ExpanderSettings, ExpansionJob

__all__ = [
    "ExpanderSettings",
    "ExpansionJob",
    "load_job",
    "load_job_string",
    "EnvironmentSubstitutionError",
    "substitute_environment_variables",
]
