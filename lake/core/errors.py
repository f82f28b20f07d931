"""
Error taxonomy for a Lake invocation.

Every failure that ends a run is a LakeError subclass. Causes are chained with
``raise ... from e`` so the CLI can print the whole chain once at the top level.
"""


class LakeError(Exception):
    """Base class for errors that abort a Lake invocation."""

    pass


class DiscoveryError(LakeError):
    """Raised when the build file cannot be located."""

    pass


class BuildFileNotFoundError(DiscoveryError):
    """Raised when an explicit build file path does not exist."""

    pass


class SetupError(LakeError):
    """Raised when the sandbox or built-in plugin registration fails."""

    pass


class LoadError(LakeError):
    """Raised when the build script fails to compile or run its top level."""

    pass


class DispatchError(LakeError):
    """Raised when the requested task cannot be found or fails while running."""

    pass


class ScriptTimeoutError(TimeoutError):
    """Raised when script execution exceeds LAKE_SCRIPT_EXEC_TIMEOUT."""

    pass


class PluginError(RuntimeError):
    """Raised into the script when a capability operation fails on the host."""

    pass


class PluginNotFoundError(KeyError):
    """Raised when a fully-qualified plugin name (``lake.<name>``) is not registered."""

    def __str__(self) -> str:
        return f"Plugin '{self.args[0]}' is not registered"


class PluginLoadError(RuntimeError):
    """Raised when a user plugin file exists but fails to compile or run."""

    pass


def format_error_chain(exc: BaseException) -> str:
    """Render ``exc`` and its causes as ``outer: cause: root``."""
    parts: list[str] = []
    seen: set[int] = set()
    cur: BaseException | None = exc
    while cur is not None and id(cur) not in seen:
        seen.add(id(cur))
        msg = str(cur) or type(cur).__name__
        if not parts or parts[-1] != msg:
            parts.append(msg)
        cur = cur.__cause__ or cur.__context__
    return ": ".join(parts)
