"""
RestrictedPython sandbox for build scripts and user plugins.

Allowed: dict, list, str, int, float, bool, range, enumerate, zip, sorted,
len, round, min, max, sum, abs, json.loads/dumps, datetime/date/time/timedelta,
print (to stdout), and the injected primitives (plugin, task).

Blocked: open, exec, eval, __import__, import statements, compile, names
starting with "_", os, subprocess, etc. Host access goes through plugins only.
"""

import builtins
import json
import logging
import operator
import sys
import warnings
from collections.abc import Callable
from datetime import date, datetime, time, timedelta
from types import SimpleNamespace
from typing import Any

from RestrictedPython import compile_restricted
from RestrictedPython.Eval import default_guarded_getitem, default_guarded_getiter
from RestrictedPython.Guards import (
    full_write_guard,
    guarded_iter_unpack_sequence,
    guarded_unpack_sequence,
    safe_builtins,
    safer_getattr,
)

from .modules import CapabilityModule
from .tasks import TaskRegistry

_log = logging.getLogger(__name__)

TASK_REGISTRY_KEY = "__lake_tasks__"

_MISSING = object()

_PROCESS_EXITS = ("BaseException", "SystemExit", "KeyboardInterrupt", "GeneratorExit")

_INPLACE_OPS: dict[str, Callable[[Any, Any], Any]] = {
    "+=": operator.iadd,
    "-=": operator.isub,
    "*=": operator.imul,
    "/=": operator.itruediv,
    "//=": operator.ifloordiv,
    "%=": operator.imod,
    "**=": operator.ipow,
    "<<=": operator.ilshift,
    ">>=": operator.irshift,
    "&=": operator.iand,
    "|=": operator.ior,
    "^=": operator.ixor,
}


class StdoutPrinter:
    """
    ``_print_`` factory: RestrictedPython rewrites ``print(...)`` into
    ``_print_(_getattr_)._call_print(...)``. Output goes to the process's stdout.
    """

    def __init__(self, _getattr_: Any = None) -> None:
        self._getattr_ = _getattr_

    def _call_print(self, *objects: Any, **kwargs: Any) -> None:
        kwargs.pop("file", None)
        kwargs["file"] = sys.stdout
        print(*objects, **kwargs)

    def __call__(self) -> str:
        # Value of the `printed` name; nothing is collected.
        return ""


def guarded_getattr(obj: Any, name: str, *default: Any) -> Any:
    """safer_getattr that raises AttributeError for missing names instead of returning None."""
    value = safer_getattr(obj, name, _MISSING)
    if value is _MISSING:
        if default:
            return default[0]
        return getattr(obj, name)
    return value


def _apply(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    return fn(*args, **kwargs)


def _inplacevar(op: str, x: Any, y: Any) -> Any:
    fn = _INPLACE_OPS.get(op)
    if fn is None:
        raise SyntaxError(f"Unsupported in-place operator: {op}")
    return fn(x, y)


def _make_safe_builtins() -> dict[str, Any]:
    """safe_builtins plus a few harmless container/utility builtins it leaves out."""
    safe = dict(safe_builtins)
    # Scripts may only raise Exception subclasses
    for name in _PROCESS_EXITS:
        safe.pop(name, None)
    for name in ("list", "dict", "set", "enumerate", "sum", "min", "max", "all", "any", "map", "filter", "reversed"):
        safe.setdefault(name, getattr(builtins, name))
    return safe


def _make_guard_globals() -> dict[str, Any]:
    """Guards required by RestrictedPython's rewritten bytecode."""
    return {
        "_getattr_": guarded_getattr,
        "_getiter_": default_guarded_getiter,
        "_getitem_": default_guarded_getitem,
        "_iter_unpack_sequence_": guarded_iter_unpack_sequence,
        "_unpack_sequence_": guarded_unpack_sequence,
        "_write_": full_write_guard,
        "_apply_": _apply,
        "_inplacevar_": _inplacevar,
        "_print_": StdoutPrinter,
    }


def _make_extra_globals() -> dict[str, Any]:
    """Extra safe symbols: json.loads/dumps and the datetime value types."""
    return {
        "json": SimpleNamespace(loads=json.loads, dumps=json.dumps),
        "datetime": datetime,
        "date": date,
        "time": time,
        "timedelta": timedelta,
    }


def compile_script(script: str, filename: str = "<script>") -> Any:
    """
    Compile script with RestrictedPython. Raises SyntaxError on failure.

    Returns a code object suitable for exec(bytecode, globals).
    """
    with warnings.catch_warnings():
        # print() without reading `printed` is the normal case here
        warnings.filterwarnings("ignore", message=".*never reads 'printed' variable", category=SyntaxWarning)
        code = compile_restricted(script, filename, "exec")
    if code is None:
        raise SyntaxError("RestrictedPython: compile failed")
    return code


def build_restricted_globals(context_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Build the globals dict for exec(compiled, globals): safe builtins, guards,
    extra (json, datetime), and context (plugin, task, lake.* modules).
    """
    g: dict[str, Any] = {
        "__builtins__": _make_safe_builtins(),
        "__name__": "build",
    }
    g.update(_make_guard_globals())
    g.update(_make_extra_globals())
    g.update(context_dict)
    return g


class Sandbox:
    """
    Installs the script-facing primitives into a namespace:

    - ``_print_``: output to stdout (``print(...)`` in the script)
    - ``plugin(name)``: delegates to ``resolve_plugin``
    - ``task(name, handler)`` / ``@task(name)``: writes into ``self.tasks``
    - the live TaskRegistry under TASK_REGISTRY_KEY

    Scripts cannot name ``__lake_tasks__`` (RestrictedPython rejects leading
    underscores); the engine reads ``self.tasks`` directly.
    """

    def __init__(self, resolve_plugin: Callable[[str], CapabilityModule]) -> None:
        self._resolve_plugin = resolve_plugin
        self.tasks = TaskRegistry()

    def plugin(self, name: str) -> CapabilityModule:
        if not isinstance(name, str):
            raise TypeError(f"plugin() expects a name string, got {type(name).__name__}")
        return self._resolve_plugin(name)

    def task(self, name: str, handler: Callable[..., Any] | None = None) -> Any:
        if handler is None:
            def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
                self.tasks.register(name, fn)
                return fn

            return decorator
        self.tasks.register(name, handler)
        return None

    def install(self, namespace: dict[str, Any]) -> dict[str, Any]:
        namespace["_print_"] = StdoutPrinter
        namespace["plugin"] = self.plugin
        namespace["task"] = self.task
        namespace[TASK_REGISTRY_KEY] = self.tasks
        _log.debug("Sandbox primitives installed")
        return namespace
