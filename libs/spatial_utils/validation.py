# =============================================================================
# Run Validation - Configuration and environment checks
# =============================================================================
# Turns raw option values into a TileIndexConfig and checks that the input
# file exists and both GDAL tools resolve on PATH. No side effects beyond
# logging.
# =============================================================================

import logging
from pathlib import Path
from typing import Any, Dict

from pydantic import ValidationError as PydanticValidationError

from libs.errors import ValidationError
from libs.models import TileIndexConfig

__all__ = [
    "build_config",
    "check_input_file",
    "check_tools",
    "validate_run",
]

logger = logging.getLogger(__name__)

# Operator-facing messages for field-level failures
_FIELD_MESSAGES = {
    "batch_size": "Batch size must be a positive integer",
    "jobs": "Number of jobs must be a positive integer",
    "timeout_seconds": "Timeout must be a positive number of seconds",
}


def build_config(values: Dict[str, Any]) -> TileIndexConfig:
    """
    Validate raw option values into a TileIndexConfig.

    Args:
        values: Field values, possibly still strings from the command line

    Returns:
        Validated configuration

    Raises:
        ValidationError: If any field is invalid (first failing field reported)
    """
    try:
        return TileIndexConfig(**values)
    except PydanticValidationError as e:
        errors = e.errors()
        first = errors[0] if errors else {}
        field = str(first.get("loc", ("",))[0]) if first.get("loc") else ""
        message = _FIELD_MESSAGES.get(field) or f"Invalid value for {field or 'configuration'}: {first.get('msg', e)}"
        raise ValidationError(message) from e


def check_input_file(input_file: Path) -> None:
    """Raise ValidationError unless input_file is an existing regular file."""
    if not input_file.is_file():
        raise ValidationError(f"Input file does not exist: {input_file}")


def check_tools(gdal, tools: list[str]) -> None:
    """
    Confirm every tool resolves on PATH.

    Args:
        gdal: GDALResource (or any object with a which(tool) method)
        tools: Executable names to resolve

    Raises:
        ValidationError: Naming the first missing tool
    """
    for tool in tools:
        location = gdal.which(tool)
        if location is None:
            raise ValidationError(
                f"Required command not found: {tool}",
                hint="Install GDAL command-line utilities or adjust PATH",
            )
        logger.debug(f"Found {tool}: {location}")


def validate_run(values: Dict[str, Any], gdal) -> TileIndexConfig:
    """
    Full validation: option values, input file, then tool availability.

    Args:
        values: Raw option values
        gdal: GDALResource used to resolve tools

    Returns:
        Validated configuration

    Raises:
        ValidationError: On the first failed check
    """
    config = build_config(values)
    check_input_file(config.input_file)
    check_tools(gdal, [config.indexer_bin, config.merge_bin])
    return config
