"""
Locate the policy file.

Search order:
    1. An explicit override path, returned as-is (not checked for existence)
    2. <dir>/depcheck.yml for the working directory and each of its parents
"""

import logging
from pathlib import Path

from depcheck.errors import ConfigNotFoundError, ConfigReadError
from depcheck.schema import DEFAULT_CONFIG_NAME

logger = logging.getLogger(__name__)


def locate_config(
    name: str = DEFAULT_CONFIG_NAME,
    override: str | None = None,
    start: Path | str | None = None,
) -> Path:
    """
    Find the policy file.

    Args:
        name: File name to look for in each directory
        override: Explicit path (e.g. from DEPCHECK_CONFIG); wins if non-empty
        start: Directory to start the upward search from (default: cwd)

    Returns:
        Path to the policy file

    Raises:
        ConfigNotFoundError: If the filesystem root is reached without a match,
            or the working directory no longer exists
        ConfigReadError: If a directory on the way up cannot be inspected
    """
    if override:
        logger.debug("Using config override %s", override)
        return Path(override)

    try:
        origin = Path(start) if start is not None else Path.cwd()
        directory = origin.absolute()
    except OSError as e:
        raise ConfigNotFoundError(
            message=f"Cannot search for {name}: working directory unavailable ({e})",
            filename=name,
        ) from e

    while True:
        candidate = directory / name
        try:
            found = candidate.exists()
        except OSError as e:
            raise ConfigReadError(path=str(candidate), underlying_error=str(e)) from e
        if found:
            logger.debug("Found config at %s", candidate)
            return candidate

        parent = directory.parent
        if parent == directory:
            break
        directory = parent

    raise ConfigNotFoundError(filename=name, search_start=str(origin))
