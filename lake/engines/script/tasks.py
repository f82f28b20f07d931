"""
TaskRegistry: task name -> handler for a single Lake run.

Filled by the script's ``task(...)`` calls during top-level execution, frozen
afterwards and read by the engine for dispatch. Registration is
last-write-wins.
"""

import logging
from collections.abc import Callable, Iterator
from typing import Any

_log = logging.getLogger(__name__)


class TaskRegistry:
    def __init__(self) -> None:
        self._tasks: dict[str, Callable[..., Any]] = {}
        self._frozen = False

    def register(self, name: str, handler: Callable[..., Any]) -> None:
        if self._frozen:
            raise RuntimeError(f"Cannot register task '{name}' after the build script has finished")
        if not isinstance(name, str):
            raise TypeError(f"Task name must be a string, got {type(name).__name__}")
        if not callable(handler):
            raise TypeError(f"Task '{name}' handler must be callable, got {type(handler).__name__}")
        self._tasks[name] = handler
        _log.debug("Registered task: %s", name)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> Callable[..., Any] | None:
        return self._tasks.get(name)

    def names(self) -> list[str]:
        return sorted(self._tasks)

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __iter__(self) -> Iterator[str]:
        return iter(self._tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def __repr__(self) -> str:
        return f"TaskRegistry({self.names()})"
