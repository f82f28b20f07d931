"""
CapabilityModule: the named, immutable table of host operations a script sees.

Scripts call operations by attribute (``fs.mkdir("out")``) or by key
(``fs["mkdir"]``). Operations are validated once, when the module is built:
names must be public identifiers and values must be callables with a readable
signature. A missing operation only fails when it is looked up.
"""

import inspect
import logging
from collections.abc import Callable, Iterator, Mapping
from types import MappingProxyType
from typing import Any

from lake.core.errors import PluginError

_log = logging.getLogger(__name__)


def plugin_error(exc: BaseException, context: str) -> PluginError:
    """Log a host failure and build the PluginError to raise into the script."""
    _log.error("%s: %s", context, exc)
    return PluginError(f"{context}: {exc}")


def _check_operation(module: str, op_name: Any, fn: Any) -> inspect.Signature:
    if not isinstance(op_name, str) or not op_name.isidentifier() or op_name.startswith("_"):
        raise TypeError(f"{module}: invalid operation name {op_name!r}")
    if op_name in _RESERVED:
        raise TypeError(f"{module}: operation name {op_name!r} is reserved")
    if not callable(fn):
        raise TypeError(f"{module}.{op_name} is not callable ({type(fn).__name__})")
    try:
        return inspect.signature(fn)
    except (TypeError, ValueError) as e:
        raise TypeError(f"{module}.{op_name}: signature not introspectable: {e}") from e


class CapabilityModule:
    __slots__ = ("_name", "_ops", "_signatures")

    def __init__(self, name: str, operations: Mapping[str, Callable[..., Any]] | None = None) -> None:
        ops = dict(operations or {})
        sigs = {k: _check_operation(name, k, v) for k, v in ops.items()}
        object.__setattr__(self, "_name", name)
        object.__setattr__(self, "_ops", MappingProxyType(ops))
        object.__setattr__(self, "_signatures", MappingProxyType(sigs))

    @classmethod
    def empty(cls, name: str) -> "CapabilityModule":
        return cls(name, {})

    @property
    def name(self) -> str:
        return self._name

    def operations(self) -> list[str]:
        """Sorted operation names."""
        return sorted(self._ops)

    def signature(self, op_name: str) -> inspect.Signature:
        return self._signatures[op_name]

    def __getattr__(self, op_name: str) -> Callable[..., Any]:
        # Only reached for names that are not slots/methods
        if op_name.startswith("_"):
            raise AttributeError(op_name)
        try:
            return self._ops[op_name]
        except KeyError:
            raise AttributeError(f"Plugin '{self._name}' has no operation '{op_name}'") from None

    def __getitem__(self, op_name: str) -> Callable[..., Any]:
        try:
            return self._ops[op_name]
        except KeyError:
            raise KeyError(f"Plugin '{self._name}' has no operation '{op_name}'") from None

    def __contains__(self, op_name: object) -> bool:
        return op_name in self._ops

    def __iter__(self) -> Iterator[str]:
        return iter(self._ops)

    def __len__(self) -> int:
        return len(self._ops)

    def __setattr__(self, key: str, value: Any) -> None:
        raise TypeError(f"Plugin '{self._name}' is read-only")

    def __delattr__(self, key: str) -> None:
        raise TypeError(f"Plugin '{self._name}' is read-only")

    def __setitem__(self, key: str, value: Any) -> None:
        raise TypeError(f"Plugin '{self._name}' is read-only")

    def __repr__(self) -> str:
        return f"<CapabilityModule {self._name} ops={self.operations()}>"


# Public attributes of CapabilityModule itself; an operation may not shadow them
_RESERVED = frozenset(n for n in dir(CapabilityModule) if not n.startswith("_"))
