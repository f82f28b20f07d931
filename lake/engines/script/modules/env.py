"""
Env module for build scripts: get, set, unset, os.

Reads and writes HostContext.environ, a per-run copy of os.environ. Changes
are seen by later `env.get` calls and by processes spawned through `process`.
"""

import sys

from ..context import HostContext
from .base import CapabilityModule


def _os_name() -> str:
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform == "darwin":
        return "macos"
    if sys.platform.startswith("linux"):
        return "linux"
    return "unknown"


def make_env_module(*, context: HostContext) -> CapabilityModule:
    """Build the `env` object: get, set, unset, os."""
    environ = context.environ

    def get(name: str) -> str | None:
        return environ.get(str(name))

    def set(name: str, value: str) -> None:
        environ[str(name)] = str(value)

    def unset(name: str) -> None:
        environ.pop(str(name), None)

    def os() -> str:
        return _os_name()

    return CapabilityModule("env", {"get": get, "set": set, "unset": unset, "os": os})
