"""
Process module: exec(cmd, args=None) -> {"status", "stdout", "stderr"}.

Runs synchronously in HostContext.cwd with HostContext.environ, so values set
through the `env` module reach the child. A process that runs and exits
non-zero is a normal result; a process that cannot be spawned is PluginError.
"""

import logging
import subprocess
from typing import Any

from ..context import HostContext
from .base import CapabilityModule, plugin_error

_log = logging.getLogger(__name__)


def _as_argv(cmd: str, args: Any) -> list[str]:
    if args is None:
        return [str(cmd)]
    if isinstance(args, (str, bytes)) or not isinstance(args, (list, tuple)):
        raise plugin_error(TypeError(f"expected a list, got {type(args).__name__}"), "process.exec args")
    return [str(cmd), *(str(a) for a in args)]


def make_process_module(*, context: HostContext) -> CapabilityModule:
    """Build the `process` module bound to ``context``."""

    def exec(cmd: str, args: list[str] | None = None) -> dict[str, Any]:
        argv = _as_argv(cmd, args)
        _log.debug("exec %s (cwd=%s)", argv, context.cwd)
        try:
            proc = subprocess.run(
                argv,
                cwd=context.cwd,
                env=context.environ,
                capture_output=True,
                check=False,
            )
        except OSError as e:
            raise plugin_error(e, f"Failed to execute process {cmd}") from e
        return {
            "status": proc.returncode,
            "stdout": proc.stdout.decode("utf-8", errors="replace"),
            "stderr": proc.stderr.decode("utf-8", errors="replace"),
        }

    return CapabilityModule("process", {"exec": exec})
