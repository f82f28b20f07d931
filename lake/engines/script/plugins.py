"""
Plugin registry and the resolution protocol behind ``plugin(name)``.

Built-in modules are registered once per run under ``lake.<name>``. A name is
resolved in this order:

1. ``lake.<name>`` given verbatim: must be a registered built-in, otherwise
   PluginNotFoundError.
2. ``<name>``: the built-in ``lake.<name>`` if there is one.
3. ``<PLUGIN_DIR>/<name><PLUGIN_EXTENSION>`` relative to the build directory,
   executed in a fresh sandbox namespace. The file is re-read on every
   resolution; nothing is cached.
4. Otherwise NotFound. ``resolve`` turns that into an empty module with a
   warning, so a misspelled plugin only fails when one of its operations is used.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from lake.core.config import Settings
from lake.core.config import settings as default_settings
from lake.core.errors import PluginLoadError, PluginNotFoundError, SetupError

from .context import HostContext
from .modules import (
    CapabilityModule,
    make_crypto_module,
    make_env_module,
    make_fs_module,
    make_log_module,
    make_net_module,
    make_process_module,
    make_random_module,
)
from .sandbox import build_restricted_globals, compile_script

_log = logging.getLogger(__name__)

PLUGIN_PREFIX = "lake"

# Only plain identifiers; no path separators or dots in user plugin names
_SAFE_PLUGIN_NAME_RE = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

BuiltinFactory = Callable[[HostContext, Settings], CapabilityModule]

BUILTIN_MODULES: list[tuple[str, BuiltinFactory]] = [
    ("crypto", lambda ctx, s: make_crypto_module()),
    ("fs", lambda ctx, s: make_fs_module(context=ctx)),
    ("process", lambda ctx, s: make_process_module(context=ctx)),
    ("env", lambda ctx, s: make_env_module(context=ctx)),
    ("net", lambda ctx, s: make_net_module(context=ctx, timeout=s.HTTP_TIMEOUT)),
    ("logger", lambda ctx, s: make_log_module()),
    ("random", lambda ctx, s: make_random_module()),
]


def qualified_name(name: str) -> str:
    return f"{PLUGIN_PREFIX}.{name}"


@dataclass(frozen=True)
class Found:
    module: CapabilityModule
    source: str  # "builtin" or the plugin file path


@dataclass(frozen=True)
class NotFound:
    name: str
    reason: str


def _plugin_table(name: str, g: dict[str, Any], preset: set[str]) -> dict[str, Any]:
    """`exports` if the plugin sets it, else every public callable it defined."""
    if "exports" in g:
        exports = g["exports"]
        if isinstance(exports, CapabilityModule):
            return {op: exports[op] for op in exports}
        if not isinstance(exports, dict):
            raise PluginLoadError(
                f"Plugin '{name}': 'exports' must be a dict, got {type(exports).__name__}"
            )
        return exports
    return {
        k: v
        for k, v in g.items()
        if k not in preset and not k.startswith("_") and callable(v)
    }


class PluginRegistry:
    """
    Built-in capability modules for one run plus user plugin lookup.

    ``register_all`` installs each built-in into the script namespace under its
    dotted key; ``resolve`` is the function scripts reach through ``plugin()``.
    """

    def __init__(
        self,
        context: HostContext,
        *,
        settings: Settings | None = None,
        builtins: list[tuple[str, BuiltinFactory]] | None = None,
    ) -> None:
        self._ctx = context
        self._settings = settings or default_settings
        self._builtins = list(BUILTIN_MODULES if builtins is None else builtins)
        self._modules: dict[str, CapabilityModule] = {}

    def register_all(self, namespace: dict[str, Any]) -> None:
        """Build every built-in module in order; the first failure aborts with SetupError."""
        for name, factory in self._builtins:
            try:
                module = factory(self._ctx, self._settings)
                if not isinstance(module, CapabilityModule):
                    raise TypeError(f"factory returned {type(module).__name__}, not CapabilityModule")
            except Exception as e:
                raise SetupError(f"Failed to register core plugin '{name}'") from e
            key = qualified_name(name)
            self._modules[key] = module
            namespace[key] = module
            _log.debug("Registered plugin: %s", name)

    def builtin_names(self) -> list[str]:
        return list(self._modules)

    def lookup(self, name: str) -> Found | NotFound:
        if name.startswith(PLUGIN_PREFIX + "."):
            module = self._modules.get(name)
            if module is None:
                raise PluginNotFoundError(name)
            return Found(module, "builtin")

        module = self._modules.get(qualified_name(name))
        if module is not None:
            return Found(module, "builtin")

        return self._load_user_plugin(name)

    def resolve(self, name: str) -> CapabilityModule:
        result = self.lookup(name)
        if isinstance(result, NotFound):
            _log.warning("Plugin '%s' not found (%s), returning empty module", name, result.reason)
            return CapabilityModule.empty(name)
        return result.module

    def plugin_path(self, name: str) -> Path:
        s = self._settings
        return self._ctx.resolve_path(Path(s.PLUGIN_DIR) / f"{name}{s.PLUGIN_EXTENSION}")

    def _load_user_plugin(self, name: str) -> Found | NotFound:
        if not _SAFE_PLUGIN_NAME_RE.match(name):
            return NotFound(name, "invalid plugin name")
        path = self.plugin_path(name)
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            return NotFound(name, f"cannot read {path}: {e}")

        try:
            code = compile_script(source, filename=str(path))
            g = build_restricted_globals({"plugin": self.resolve})
            preset = set(g)
            exec(code, g)  # noqa: S102 - restricted environment
            module = CapabilityModule(name, _plugin_table(name, g, preset))
        except PluginLoadError:
            raise
        except Exception as e:
            raise PluginLoadError(f"Failed to load plugin '{name}' from {path}: {e}") from e

        _log.debug("Loaded external plugin: %s", name)
        return Found(module, str(path))
