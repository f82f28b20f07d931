"""
Build-file discovery: walk from a directory up to the filesystem root.
"""

import logging
from pathlib import Path

from lake.core.config import settings
from lake.core.errors import DiscoveryError

_log = logging.getLogger(__name__)


def find_build_file(start: str | Path | None = None, filename: str | None = None) -> Path:
    """
    Return the first ``filename`` found in ``start`` or any of its ancestors.

    ``start`` defaults to the current directory and ``filename`` to
    ``settings.BUILD_FILE_NAME``. Raises DiscoveryError once the root is
    passed without a match.
    """
    name = filename or settings.BUILD_FILE_NAME
    current = Path(start).resolve() if start is not None else Path.cwd()
    for directory in (current, *current.parents):
        candidate = directory / name
        if candidate.is_file():
            _log.debug("Found build file: %s", candidate)
            return candidate
    raise DiscoveryError(f"Could not find {name} in {current} or any parent directory")
