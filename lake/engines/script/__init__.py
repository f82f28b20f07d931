"""
Script engine (restricted Python via RestrictedPython) for build files.

Exports: ScriptExecutor, HostContext, Sandbox, TaskRegistry, PluginRegistry,
compile_script, build_restricted_globals.
"""

from .context import HostContext
from .executor import ScriptExecutor
from .plugins import PLUGIN_PREFIX, Found, NotFound, PluginRegistry, qualified_name
from .sandbox import TASK_REGISTRY_KEY, Sandbox, build_restricted_globals, compile_script
from .tasks import TaskRegistry

__all__ = [
    "HostContext",
    "ScriptExecutor",
    "PLUGIN_PREFIX",
    "Found",
    "NotFound",
    "PluginRegistry",
    "qualified_name",
    "TASK_REGISTRY_KEY",
    "Sandbox",
    "TaskRegistry",
    "compile_script",
    "build_restricted_globals",
]
