"""
Engines: Engine (load build file, dispatch one task) and the restricted
Python script engine it runs on.
"""

from lake.engines.executor import Engine, EngineState, run_lake
from lake.engines.script import HostContext, PluginRegistry, Sandbox, TaskRegistry

__all__ = [
    "Engine",
    "EngineState",
    "run_lake",
    "HostContext",
    "PluginRegistry",
    "Sandbox",
    "TaskRegistry",
]
