"""
Lake engine: load one build file and dispatch one task.

run(build_file, task_name, task_args) goes through fixed gates, each fatal:

    UNINITIALIZED -> SANDBOX_READY -> PLUGINS_REGISTERED -> SCRIPT_LOADED -> TASK_DISPATCHED

with FAILED reachable from any state. The build script runs to completion
before any task is looked up; the task registry read at dispatch is the
same object the script wrote into.
"""

import logging
from collections.abc import Sequence
from enum import Enum
from pathlib import Path
from typing import Any

from lake.core.config import Settings
from lake.core.config import settings as default_settings
from lake.core.errors import (
    BuildFileNotFoundError,
    DispatchError,
    LoadError,
    SetupError,
)
from lake.engines.script import (
    HostContext,
    PluginRegistry,
    Sandbox,
    ScriptExecutor,
    TaskRegistry,
    build_restricted_globals,
)
from lake.engines.script.plugins import BuiltinFactory

_log = logging.getLogger(__name__)


class EngineState(str, Enum):
    UNINITIALIZED = "uninitialized"
    SANDBOX_READY = "sandbox_ready"
    PLUGINS_REGISTERED = "plugins_registered"
    SCRIPT_LOADED = "script_loaded"
    TASK_DISPATCHED = "task_dispatched"
    FAILED = "failed"


class Engine:
    """
    One engine instance per invocation. ``tasks`` and ``context`` stay
    available after ``run`` for inspection (tests, embedding hosts).
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        builtins: list[tuple[str, BuiltinFactory]] | None = None,
    ) -> None:
        self._settings = settings or default_settings
        self._builtins = builtins
        self.state = EngineState.UNINITIALIZED
        self.tasks: TaskRegistry | None = None
        self.context: HostContext | None = None

    def run(
        self,
        build_file: str | Path,
        task_name: str | None = None,
        task_args: Sequence[str] = (),
    ) -> None:
        if self.state is not EngineState.UNINITIALIZED:
            raise RuntimeError("Engine.run() can only be called once per Engine")
        try:
            if task_name is None:
                task_name = self._settings.DEFAULT_TASK
            self._run(Path(build_file), task_name, list(task_args))
        except BaseException:
            self.state = EngineState.FAILED
            raise

    def _run(self, path: Path, task_name: str, task_args: list[str]) -> None:
        if not path.is_file():
            raise BuildFileNotFoundError(f"{self._settings.BUILD_FILE_NAME} not found at {path}")

        # Relative paths in the script resolve against the build file's directory
        ctx = HostContext.for_build_file(path)
        self.context = ctx
        try:
            executor = ScriptExecutor(timeout=self._settings.SCRIPT_EXEC_TIMEOUT)
            g = self._setup(ctx)
            self._load(executor, path, g)
            self._dispatch(executor, path, task_name, task_args)
        finally:
            ctx.release()

    def _setup(self, ctx: HostContext) -> dict[str, Any]:
        registry = PluginRegistry(ctx, settings=self._settings, builtins=self._builtins)
        try:
            g = build_restricted_globals({})
            sandbox = Sandbox(registry.resolve)
            sandbox.install(g)
        except Exception as e:
            raise SetupError("Failed to create sandbox") from e
        self.tasks = sandbox.tasks
        self.state = EngineState.SANDBOX_READY

        try:
            registry.register_all(g)
        except SetupError:
            raise
        except Exception as e:
            raise SetupError("Failed to register core plugins") from e
        self.state = EngineState.PLUGINS_REGISTERED
        _log.debug("Working directory for build: %s", ctx.cwd)
        return g

    def _load(self, executor: ScriptExecutor, path: Path, g: dict[str, Any]) -> None:
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise LoadError(f"Failed to read {path}") from e
        # Exit-style exceptions raised by the script are load failures too
        try:
            executor.execute(source, g, filename=path.name)
        except BaseException as e:
            raise LoadError(f"Failed to execute {path.name}") from e
        self.tasks.freeze()
        self.state = EngineState.SCRIPT_LOADED
        _log.debug("Loaded %s; tasks: %s", path, ", ".join(self.tasks.names()))

    def _dispatch(self, executor: ScriptExecutor, path: Path, task_name: str, task_args: list[str]) -> None:
        if len(self.tasks) == 0:
            raise DispatchError(f"no tasks registered in {path.name}. Did you define any tasks?")
        handler = self.tasks.get(task_name)
        if handler is None:
            raise DispatchError(
                f"task '{task_name}' not found in {path.name} (available: {', '.join(self.tasks.names())})"
            )
        _log.debug("Running task '%s' with args %s", task_name, task_args)
        try:
            executor.call(handler, task_args)
        except BaseException as e:
            raise DispatchError(f"Failed to execute task '{task_name}'") from e
        self.state = EngineState.TASK_DISPATCHED


def run_lake(
    build_file: str | Path,
    task_name: str | None = None,
    task_args: Sequence[str] = (),
    *,
    settings: Settings | None = None,
) -> Engine:
    """Run one task from ``build_file``; returns the finished Engine. Raises LakeError."""
    engine = Engine(settings)
    engine.run(build_file, task_name, task_args)
    return engine
