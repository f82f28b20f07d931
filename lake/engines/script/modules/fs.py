"""
Filesystem module: mkdir, rmdir, rm, copy, exists, is_file, is_dir, glob,
read_file, write_file, list_dir.

Relative paths resolve against HostContext.cwd (the build file's directory).
Mutating operations return True; any OSError is raised into the script as
PluginError.
"""

import glob as _glob
import os
import shutil

from ..context import HostContext
from .base import CapabilityModule, plugin_error


def make_fs_module(*, context: HostContext) -> CapabilityModule:
    """Build the `fs` module bound to ``context``."""
    _p = context.resolve_path

    def mkdir(path: str) -> bool:
        try:
            _p(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise plugin_error(e, f"Error creating directory {path}") from e
        return True

    def rmdir(path: str) -> bool:
        target = _p(path)
        if not target.exists():
            return True
        try:
            shutil.rmtree(target)
        except OSError as e:
            raise plugin_error(e, f"Error removing directory {path}") from e
        return True

    def rm(path: str) -> bool:
        try:
            _p(path).unlink()
        except OSError as e:
            raise plugin_error(e, f"Error removing file {path}") from e
        return True

    def copy(src: str, dst: str) -> bool:
        try:
            shutil.copyfile(_p(src), _p(dst))
        except OSError as e:
            raise plugin_error(e, f"Error copying {src} to {dst}") from e
        return True

    def exists(path: str) -> bool:
        return _p(path).exists()

    def is_file(path: str) -> bool:
        return _p(path).is_file()

    def is_dir(path: str) -> bool:
        return _p(path).is_dir()

    def glob(pattern: str) -> list[str]:
        """Matches in the same form as the pattern: relative patterns give relative paths."""
        try:
            if os.path.isabs(pattern):
                matches = _glob.glob(pattern, recursive=True)
            else:
                matches = _glob.glob(pattern, root_dir=context.cwd, recursive=True)
        except (OSError, ValueError) as e:
            raise plugin_error(e, f"Invalid glob pattern: {pattern!r}") from e
        return sorted(matches)

    def read_file(path: str) -> str:
        try:
            return _p(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise plugin_error(e, f"Error reading file {path}") from e

    def write_file(path: str, content: str) -> bool:
        try:
            _p(path).write_text(str(content), encoding="utf-8")
        except OSError as e:
            raise plugin_error(e, f"Error writing file {path}") from e
        return True

    def list_dir(path: str) -> list[str]:
        try:
            names = sorted(os.listdir(_p(path)))
        except OSError as e:
            raise plugin_error(e, f"Error listing directory {path}") from e
        return [os.path.join(path, n) for n in names]

    return CapabilityModule(
        "fs",
        {
            "mkdir": mkdir,
            "rmdir": rmdir,
            "rm": rm,
            "copy": copy,
            "exists": exists,
            "is_file": is_file,
            "is_dir": is_dir,
            "glob": glob,
            "read_file": read_file,
            "write_file": write_file,
            "list_dir": list_dir,
        },
    )
