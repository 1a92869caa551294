"""YAML job loader for the expander."""

import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml
from pydantic import ValidationError

from .environment import EnvironmentSubstitutionError, substitute_environment_variables
from .models import ExpansionJob

logger = logging.getLogger(__name__)


def load_job(
    file_path: Union[str, Path],
    enable_env_substitution: bool = True,
    env_strict: bool = False,
) -> ExpansionJob:
    """Load and validate an expansion job file.

    Args:
        file_path: Path to the YAML job file
        enable_env_substitution: Whether to substitute environment variables
        env_strict: Whether environment variable substitution is strict

    Returns:
        Validated ExpansionJob object

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the extension is wrong or the job fails validation
        yaml.YAMLError: If the YAML is invalid
        EnvironmentSubstitutionError: If environment variable substitution fails
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(
            f"Job file not found: {path}. "
            f"Suggestion: Check the path or create the file."
        )

    if path.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError(
            f"Invalid file extension: {path.suffix}. "
            f"Suggestion: Use .yaml or .yml extension for job files."
        )

    with open(path, "r", encoding="utf-8") as f:
        content = f.read()

    try:
        return load_job_string(
            content,
            enable_env_substitution=enable_env_substitution,
            env_strict=env_strict,
        )
    except EnvironmentSubstitutionError as e:
        raise EnvironmentSubstitutionError(
            f"Environment variable substitution failed in {path}: {e}"
        ) from e
    except yaml.YAMLError as e:
        raise yaml.YAMLError(
            f"Failed to parse YAML file {path}: {e}. "
            f"Suggestion: Check YAML syntax using a validator."
        ) from e
    except ValueError as e:
        raise ValueError(f"Job validation failed for {path}:\n{e}") from e


def load_job_string(
    content: str,
    enable_env_substitution: bool = True,
    env_strict: bool = False,
) -> ExpansionJob:
    """Parse and validate a job from YAML text.

    Raises:
        yaml.YAMLError: If the YAML is invalid
        ValueError: If the job does not match the schema
        EnvironmentSubstitutionError: If environment variable substitution fails
    """
    data = yaml.safe_load(content)
    if not isinstance(data, dict):
        raise ValueError(
            "Job must be a mapping with a 'template' key. "
            "Suggestion: Start the file with 'template: ...'"
        )

    if enable_env_substitution:
        data = substitute_environment_variables(data, strict=env_strict)

    return _build_job(data)


def _build_job(data: Dict[str, Any]) -> ExpansionJob:
    try:
        job = ExpansionJob(**data)
    except ValidationError as e:
        raise ValueError(str(e)) from e
    logger.info(f"Loaded job with {len(job.parameters)} parameter set(s)")
    return job
