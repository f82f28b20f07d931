"""Engine end-to-end tests: load build.lake, dispatch one task."""

import json
import os
import signal
from pathlib import Path

import pytest

from lake.core.config import Settings
from lake.core.errors import (
    BuildFileNotFoundError,
    DiscoveryError,
    DispatchError,
    LoadError,
    PluginError,
    ScriptTimeoutError,
    SetupError,
)
from lake.engines import Engine, EngineState, run_lake

ABC_SHA256 = "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"


class TestDispatch:
    def test_task_prints_ok(self, write_build, capsys: pytest.CaptureFixture[str]) -> None:
        path = write_build("def build():\n    print('ok')\n\ntask('build', build)\n")
        engine = run_lake(path, "build", [])
        assert capsys.readouterr().out == "ok\n"
        assert engine.state is EngineState.TASK_DISPATCHED

    def test_only_requested_task_runs(self, write_build, capsys: pytest.CaptureFixture[str]) -> None:
        path = write_build(
            "def a():\n    print('a')\n"
            "def b():\n    print('b')\n"
            "def c():\n    print('c')\n"
            "task('a', a)\ntask('b', b)\ntask('c', c)\n"
        )
        run_lake(path, "b")
        assert capsys.readouterr().out == "b\n"

    def test_args_forwarded_in_order(self, write_build, capsys: pytest.CaptureFixture[str]) -> None:
        path = write_build(
            "def record(*args):\n    print(json.dumps(list(args)))\n\ntask('record', record)\n"
        )
        run_lake(path, "record", ["foo", "bar"])
        assert json.loads(capsys.readouterr().out) == ["foo", "bar"]

    def test_last_registration_wins(self, write_build, capsys: pytest.CaptureFixture[str]) -> None:
        path = write_build(
            "def first():\n    print('first')\n"
            "def second():\n    print('second')\n"
            "task('build', first)\ntask('build', second)\n"
        )
        run_lake(path, "build")
        assert capsys.readouterr().out == "second\n"

    def test_default_task_used_when_name_omitted(self, write_build, capsys: pytest.CaptureFixture[str]) -> None:
        path = write_build("@task('default')\ndef default():\n    print('default ran')\n")
        run_lake(path)
        assert capsys.readouterr().out == "default ran\n"

    def test_missing_default_task(self, write_build, capsys: pytest.CaptureFixture[str]) -> None:
        path = write_build("def build():\n    print('build ran')\n\ntask('build', build)\n")
        engine = Engine()
        with pytest.raises(DispatchError, match="task 'default' not found"):
            engine.run(path)
        assert engine.state is EngineState.FAILED
        assert capsys.readouterr().out == ""

    def test_unknown_task_runs_nothing(self, write_build, capsys: pytest.CaptureFixture[str]) -> None:
        path = write_build("def build():\n    print('side effect')\n\ntask('build', build)\n")
        with pytest.raises(DispatchError, match="not found"):
            run_lake(path, "deploy")
        assert capsys.readouterr().out == ""

    def test_no_tasks_registered(self, write_build) -> None:
        path = write_build("x = 1\n")
        with pytest.raises(DispatchError, match="no tasks registered"):
            run_lake(path, "build")

    def test_handler_failure_is_dispatch_error(self, write_build) -> None:
        path = write_build("def build():\n    return 1 / 0\n\ntask('build', build)\n")
        with pytest.raises(DispatchError, match="Failed to execute task 'build'") as exc_info:
            run_lake(path, "build")
        assert isinstance(exc_info.value.__cause__, ZeroDivisionError)

    def test_wrong_arity_is_dispatch_error(self, write_build) -> None:
        path = write_build("def build():\n    pass\n\ntask('build', build)\n")
        with pytest.raises(DispatchError) as exc_info:
            run_lake(path, "build", ["unexpected"])
        assert isinstance(exc_info.value.__cause__, TypeError)

    def test_handler_converts_its_own_args(self, write_build, capsys: pytest.CaptureFixture[str]) -> None:
        path = write_build("def add(a, b):\n    print(int(a) + int(b))\n\ntask('add', add)\n")
        run_lake(path, "add", ["2", "3"])
        assert capsys.readouterr().out == "5\n"
        with pytest.raises(DispatchError) as exc_info:
            run_lake(path, "add", ["two", "3"])
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_empty_task_name_is_not_default(self, write_build, capsys: pytest.CaptureFixture[str]) -> None:
        path = write_build(
            "def blank():\n    print('blank')\n"
            "def default():\n    print('default')\n"
            "task('', blank)\ntask('default', default)\n"
        )
        run_lake(path, "")
        assert capsys.readouterr().out == "blank\n"

    def test_base_exception_from_handler_is_dispatch_error(self, write_build) -> None:
        path = write_build(
            "def build():\n    raise ValueError.mro()[2]('stop')\n\ntask('build', build)\n"
        )
        engine = Engine()
        with pytest.raises(DispatchError) as exc_info:
            engine.run(path, "build")
        assert type(exc_info.value.__cause__) is BaseException
        assert engine.state is EngineState.FAILED


class TestLoadAndSetup:
    def test_missing_build_file(self, tmp_path: Path) -> None:
        engine = Engine()
        with pytest.raises(BuildFileNotFoundError) as exc_info:
            engine.run(tmp_path / "build.lake", "build")
        assert isinstance(exc_info.value, DiscoveryError)
        assert engine.state is EngineState.FAILED

    def test_syntax_error_is_load_error(self, write_build) -> None:
        path = write_build("def build(:\n")
        with pytest.raises(LoadError, match="Failed to execute build.lake") as exc_info:
            run_lake(path, "build")
        assert isinstance(exc_info.value.__cause__, SyntaxError)

    def test_runtime_error_at_top_level_is_load_error(self, write_build, capsys: pytest.CaptureFixture[str]) -> None:
        path = write_build(
            "def build():\n    print('should not run')\n\ntask('build', build)\nraise ValueError('boom')\n"
        )
        with pytest.raises(LoadError) as exc_info:
            run_lake(path, "build")
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert capsys.readouterr().out == ""

    def test_system_exit_at_top_level_is_load_error(self, write_build, capsys: pytest.CaptureFixture[str]) -> None:
        path = write_build(
            "def build():\n    print('should not run')\n\nraise SystemExit(0)\ntask('build', build)\n"
        )
        with pytest.raises(LoadError, match="Failed to execute build.lake"):
            run_lake(path, "build")
        assert capsys.readouterr().out == ""

    def test_sandbox_blocks_open(self, write_build) -> None:
        path = write_build("data = open('/etc/passwd').read()\n")
        with pytest.raises(LoadError) as exc_info:
            run_lake(path, "build")
        assert isinstance(exc_info.value.__cause__, NameError)

    def test_plugin_registration_failure_is_setup_error(self, write_build) -> None:
        path = write_build("task('build', lambda: None)\n")

        def broken(ctx, s):
            raise RuntimeError("no entropy")

        engine = Engine(builtins=[("random", broken)])
        with pytest.raises(SetupError, match="'random'"):
            engine.run(path, "build")
        assert engine.state is EngineState.FAILED

    def test_registry_frozen_after_script(self, write_build) -> None:
        path = write_build(
            "def build():\n    task('late', build)\n\ntask('build', build)\n"
        )
        engine = Engine()
        with pytest.raises(DispatchError) as exc_info:
            engine.run(path, "build")
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert engine.tasks.names() == ["build"]

    def test_engine_runs_once(self, write_build) -> None:
        path = write_build("task('build', lambda: None)\n")
        engine = Engine()
        engine.run(path, "build")
        with pytest.raises(RuntimeError, match="once"):
            engine.run(path, "build")

    @pytest.mark.skipif(not hasattr(signal, "SIGALRM"), reason="SIGALRM not available (e.g. Windows)")
    def test_script_timeout(self, write_build) -> None:
        path = write_build("while True:\n    pass\n")
        settings = Settings(_env_file=None, SCRIPT_EXEC_TIMEOUT=1)
        with pytest.raises(LoadError) as exc_info:
            run_lake(path, "build", settings=settings)
        assert isinstance(exc_info.value.__cause__, ScriptTimeoutError)


class TestPluginsFromScript:
    def test_crypto_sha256(self, write_build, capsys: pytest.CaptureFixture[str]) -> None:
        path = write_build(
            "crypto = plugin('crypto')\n\n"
            "def digest(text):\n    print(crypto.hash_sha256(text))\n\n"
            "task('digest', digest)\n"
        )
        run_lake(path, "digest", ["abc"])
        assert capsys.readouterr().out.strip() == ABC_SHA256

    def test_short_and_qualified_plugin_names(self, write_build, capsys: pytest.CaptureFixture[str]) -> None:
        path = write_build(
            "def check():\n"
            "    a = plugin('fs')\n"
            "    b = plugin('lake.fs')\n"
            "    print(sorted(a.operations()) == sorted(b.operations()))\n"
            "task('check', check)\n"
        )
        run_lake(path, "check")
        assert capsys.readouterr().out == "True\n"

    def test_unknown_plugin_is_empty_until_used(self, write_build, capsys: pytest.CaptureFixture[str]) -> None:
        path = write_build(
            "missing = plugin('doesnotexist')\n"
            "def count():\n    print(len(missing))\n"
            "def use():\n    missing.build()\n"
            "task('count', count)\ntask('use', use)\n"
        )
        run_lake(path, "count")
        assert capsys.readouterr().out == "0\n"
        with pytest.raises(DispatchError) as exc_info:
            run_lake(path, "use")
        assert isinstance(exc_info.value.__cause__, AttributeError)

    def test_user_plugin(self, write_build, write_plugin, capsys: pytest.CaptureFixture[str]) -> None:
        write_plugin("greet", "def hello(name):\n    return 'hello ' + name\n")
        path = write_build(
            "greet = plugin('greet')\n\n"
            "def hi(name):\n    print(greet.hello(name))\n\n"
            "task('hi', hi)\n"
        )
        run_lake(path, "hi", ["lake"])
        assert capsys.readouterr().out == "hello lake\n"

    def test_fs_writes_relative_to_build_dir_without_chdir(self, write_build, tmp_path: Path, monkeypatch) -> None:
        elsewhere = tmp_path / "elsewhere"
        elsewhere.mkdir()
        monkeypatch.chdir(elsewhere)
        path = write_build(
            "fs = plugin('fs')\n\n"
            "def build():\n    fs.write_file('out.txt', 'built')\n\n"
            "task('build', build)\n"
        )
        run_lake(path, "build")
        assert (tmp_path / "out.txt").read_text() == "built"
        assert not (elsewhere / "out.txt").exists()
        assert Path(os.getcwd()).resolve() == elsewhere.resolve()

    def test_plugin_error_surfaces_as_dispatch_error(self, write_build) -> None:
        path = write_build(
            "fs = plugin('fs')\n\n"
            "def build():\n    fs.read_file('missing.txt')\n\n"
            "task('build', build)\n"
        )
        with pytest.raises(DispatchError) as exc_info:
            run_lake(path, "build")
        assert isinstance(exc_info.value.__cause__, PluginError)

    def test_env_changes_do_not_leak_into_host(self, write_build, monkeypatch) -> None:
        monkeypatch.delenv("LAKE_SCRIPT_SET", raising=False)
        path = write_build(
            "env = plugin('env')\n\n"
            "def build():\n    env.set('LAKE_SCRIPT_SET', 'yes')\n\n"
            "task('build', build)\n"
        )
        engine = run_lake(path, "build")
        assert engine.context.environ["LAKE_SCRIPT_SET"] == "yes"
        assert "LAKE_SCRIPT_SET" not in os.environ
