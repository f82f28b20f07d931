from collections.abc import Callable
from pathlib import Path

import pytest

from lake.core.config import Settings


@pytest.fixture
def write_build(tmp_path: Path) -> Callable[[str], Path]:
    """Write a build.lake with the given source into tmp_path and return its path."""

    def _write(source: str, name: str = "build.lake") -> Path:
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_plugin(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write plugins/<name>.py under tmp_path."""

    def _write(name: str, source: str) -> Path:
        plugin_dir = tmp_path / "plugins"
        plugin_dir.mkdir(exist_ok=True)
        path = plugin_dir / f"{name}.py"
        path.write_text(source, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def lake_settings() -> Settings:
    return Settings(_env_file=None)
