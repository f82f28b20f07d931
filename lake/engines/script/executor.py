"""
ScriptExecutor: run a build script body, then one task handler.

Compiles with RestrictedPython and execs in the prepared sandbox globals.
Optional: SCRIPT_EXEC_TIMEOUT (signal.SIGALRM on Unix, main thread only)
aborts a script body or task handler that runs too long.
"""

import signal
import threading
from collections.abc import Callable, Sequence
from typing import Any

from lake.core.errors import ScriptTimeoutError

from .sandbox import compile_script


def _call_with_timeout(fn: Callable[[], Any], timeout_sec: int) -> Any:
    """Run fn() under signal.SIGALRM. Unix only; requires hasattr(signal, 'SIGALRM')."""
    def _handler(signum: int, frame: Any) -> None:
        raise ScriptTimeoutError(f"Script execution timed out after {timeout_sec}s")

    old = signal.signal(signal.SIGALRM, _handler)
    try:
        signal.alarm(timeout_sec)
        try:
            return fn()
        finally:
            signal.alarm(0)
    finally:
        signal.signal(signal.SIGALRM, old)


class ScriptExecutor:
    def __init__(self, *, timeout: int | None = None) -> None:
        self._timeout = timeout

    def _use_signal(self) -> bool:
        return (
            self._timeout is not None
            and self._timeout > 0
            and hasattr(signal, "SIGALRM")
            and threading.current_thread() is threading.main_thread()
        )

    def _run(self, fn: Callable[[], Any]) -> Any:
        if self._use_signal():
            return _call_with_timeout(fn, self._timeout)
        return fn()

    def execute(self, script: str, g: dict[str, Any], filename: str = "<build>") -> None:
        """Compile script and exec it in ``g``. Raises whatever compile or exec raises."""
        code = compile_script(script, filename)
        self._run(lambda: exec(code, g))  # noqa: S102 - restricted environment

    def call(self, handler: Callable[..., Any], args: Sequence[str]) -> Any:
        """Invoke a task handler once with positional string arguments."""
        argv = [str(a) for a in args]
        return self._run(lambda: handler(*argv))
