"""
HostContext: working directory and environment for one Lake run.

Capability modules resolve relative paths against ``cwd`` and spawn processes
with ``environ``; neither touches ``os.chdir`` nor ``os.environ``, so two runs
in the same host process stay independent.
"""

import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path

_log = logging.getLogger(__name__)


class HostContext:
    """Per-invocation view of the host: cwd plus a private copy of the environment."""

    def __init__(self, cwd: str | Path, environ: Mapping[str, str] | None = None) -> None:
        self.cwd = Path(cwd).resolve()
        self.environ: dict[str, str] = dict(os.environ if environ is None else environ)
        self._cleanups: list[Callable[[], None]] = []

    @classmethod
    def for_build_file(cls, build_file: str | Path) -> "HostContext":
        """cwd = directory containing the build file; environ = snapshot of os.environ."""
        return cls(Path(build_file).resolve().parent)

    def resolve_path(self, path: str | Path) -> Path:
        p = Path(path)
        return p if p.is_absolute() else self.cwd / p

    def add_cleanup(self, fn: Callable[[], None]) -> None:
        self._cleanups.append(fn)

    def release(self) -> None:
        """Call at run end: runs cleanups (e.g. closing the HTTP client) in reverse order."""
        while self._cleanups:
            fn = self._cleanups.pop()
            try:
                fn()
            except Exception as e:
                _log.warning("HostContext cleanup failed: %s", e)

    def __repr__(self) -> str:
        return f"HostContext(cwd={str(self.cwd)!r})"
