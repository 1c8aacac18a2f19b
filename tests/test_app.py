"""Tests for the bootstrap pipeline and error boundary (cli/app.py).

The dispatcher is replaced by :class:`FakeDispatcher` and dependency
activation by a mock, so these tests exercise only the ordering,
environment handling, exit codes and teardown guarantees of the
bootstrap itself.

Coverage:
* Version fast path bypasses every later stage.
* Mode-sensitive environment injection reaches the process environment.
* Re-exec guard, ``--debug`` toggling and argument recombination.
* Dependency recovery: missing plugins degrade, conflicts exit 1.
* Failure translation: status codes, ``error-exit`` records, early
  failures, unclassified re-raise, teardown exactly once.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any
from unittest.mock import MagicMock

import pytest

from boxwrap.cli import app as app_module
from boxwrap.cli import exit_codes
from boxwrap.cli.app import cli, main
from boxwrap.core import environment
from boxwrap.core.models import BootstrapOptions, UIMode
from boxwrap.exceptions import (
    BoxwrapError,
    DependencyMissingError,
    DependencyVersionConflictError,
    PluginRegistryError,
)
from boxwrap.infra.dependencies import DEFAULT_GROUP, PLUGINS_GROUP, ActivatedDependencies
from boxwrap.infra.runtime import PREPARE_MODULE
from boxwrap.version import __version__


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class RecordingUI:
    mode = UIMode.BASIC

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []
        self.records: list[tuple[str, ...]] = []

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def warn(self, message: str) -> None:
        self.messages.append(("warn", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def machine(self, type_: str, *data: str, target: str = "") -> None:
        self.records.append((type_, *data))

    def error_exit(self, error_class: str, message: str) -> None:
        self.records.append(("error-exit", error_class, message))


class FakeDispatcher:
    def __init__(
        self,
        options: BootstrapOptions,
        env: Any,
        dependencies: ActivatedDependencies,
        behaviour: Callable[[list[str]], int],
    ) -> None:
        self.options = options
        self.env = env
        self.dependencies = dependencies
        self.ui = RecordingUI()
        self.behaviour = behaviour
        self.received: list[str] | None = None
        self.teardown_calls = 0

    def run(self, args: list[str]) -> int:
        self.received = args
        return self.behaviour(args)

    def teardown(self) -> None:
        self.teardown_calls += 1


@dataclass
class FakeProbe:
    color: bool = True
    tty: bool = True

    def supports_color(self) -> bool:
        return self.color

    def stdout_isatty(self) -> bool:
        return self.tty

    def is_cygwin(self) -> bool:
        return False


DispatcherInstaller = Callable[..., list[FakeDispatcher]]


@pytest.fixture
def activate(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    mock = MagicMock(
        side_effect=lambda env, groups: ActivatedDependencies(groups=tuple(groups))
    )
    monkeypatch.setattr("boxwrap.infra.dependencies.activate_dependencies", mock)
    return mock


@pytest.fixture
def dispatch(monkeypatch: pytest.MonkeyPatch, activate: MagicMock) -> DispatcherInstaller:
    monkeypatch.setattr(app_module, "SystemTerminalProbe", lambda values: FakeProbe())

    def install(behaviour: Callable[[list[str]], int] = lambda args: 0) -> list[FakeDispatcher]:
        created: list[FakeDispatcher] = []

        def factory(options: BootstrapOptions, env: Any, dependencies: Any) -> FakeDispatcher:
            dispatcher = FakeDispatcher(options, env, dependencies, behaviour)
            created.append(dispatcher)
            return dispatcher

        monkeypatch.setattr(app_module, "Environment", factory)
        return created

    return install


def _raise(exc: BaseException) -> Callable[[list[str]], int]:
    def behaviour(args: list[str]) -> int:
        raise exc

    return behaviour


# ---------------------------------------------------------------------------
# Version fast path
# ---------------------------------------------------------------------------

class TestVersionFastPath:
    @pytest.mark.parametrize("argv", [["-v"], ["--version"], ["status", "--version"]])
    def test_prints_version_and_exits_zero(
        self,
        argv: list[str],
        environ: dict[str, str],
        activate: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        assert main(argv, environ=environ) == exit_codes.SUCCESS
        assert capsys.readouterr().out == f"boxwrap {__version__}\n"
        activate.assert_not_called()

    def test_runs_before_the_re_exec_guard(
        self, monkeypatch: pytest.MonkeyPatch, activate: MagicMock
    ) -> None:
        replace = MagicMock()
        monkeypatch.setattr(app_module, "replace_process", replace)
        assert main(["-v"], environ={}) == exit_codes.SUCCESS
        replace.assert_not_called()

    def test_version_flag_after_sentinel_is_passed_through(
        self, environ: dict[str, str], dispatch: DispatcherInstaller
    ) -> None:
        created = dispatch()
        assert main(["ssh", "--", "-v"], environ=environ) == exit_codes.SUCCESS
        assert created[0].received == ["ssh", "--", "-v"]


# ---------------------------------------------------------------------------
# Environment injection and re-exec
# ---------------------------------------------------------------------------

class TestEnvironmentInjection:
    def test_plugin_command_disables_plugins(
        self, environ: dict[str, str], dispatch: DispatcherInstaller, activate: MagicMock
    ) -> None:
        created = dispatch()
        main(["plugin", "install", "foo"], environ=environ)

        assert environ[environment.NO_PLUGINS] == "1"
        assert environ[environment.PROJECT_FILE].startswith("plugin_command_")
        assert activate.call_args.args[1] == (DEFAULT_GROUP,)
        assert created[0].options.project_file == environ[environment.PROJECT_FILE]

    def test_box_list_pins_project_file_only(
        self, environ: dict[str, str], dispatch: DispatcherInstaller, activate: MagicMock
    ) -> None:
        dispatch()
        main(["box", "list"], environ=environ)

        assert environ[environment.PROJECT_FILE].startswith("plugin_command_")
        assert environment.NO_PLUGINS not in environ
        assert activate.call_args.args[1] == (DEFAULT_GROUP, PLUGINS_GROUP)

    def test_unprepared_runtime_is_replaced(
        self, monkeypatch: pytest.MonkeyPatch, activate: MagicMock
    ) -> None:
        replace = MagicMock()
        monkeypatch.setattr(app_module, "replace_process", replace)
        environ: dict[str, str] = {}

        with pytest.raises(RuntimeError, match="returned control"):
            main(["help", "--debug"], environ=environ)

        argv, child_environ = replace.call_args.args
        assert argv == [sys.executable, "-m", PREPARE_MODULE, "help", "--debug"]
        assert child_environ[environment.PROJECT_FILE].startswith("plugin_command_")
        # --debug is only honoured inside the prepared runtime.
        assert environment.LOG not in child_environ
        activate.assert_not_called()

    def test_debug_flag_is_consumed_after_the_guard(
        self, environ: dict[str, str], dispatch: DispatcherInstaller
    ) -> None:
        created = dispatch()
        main(["--debug", "status"], environ=environ)

        assert environ[environment.LOG] == "debug"
        assert created[0].received == ["status"]


# ---------------------------------------------------------------------------
# Argument recombination and UI selection
# ---------------------------------------------------------------------------

class TestDispatchArguments:
    def test_passthrough_is_reattached(
        self, environ: dict[str, str], dispatch: DispatcherInstaller
    ) -> None:
        created = dispatch()
        main(["ssh", "--no-color", "--", "-c", "uptime"], environ=environ)
        assert created[0].received == ["ssh", "--", "-c", "uptime"]
        assert created[0].options.ui_mode is UIMode.BASIC

    def test_trailing_sentinel_is_dropped(
        self, environ: dict[str, str], dispatch: DispatcherInstaller
    ) -> None:
        created = dispatch()
        main(["status", "--"], environ=environ)
        assert created[0].received == ["status"]

    def test_machine_readable_flag_is_consumed(
        self, environ: dict[str, str], dispatch: DispatcherInstaller
    ) -> None:
        created = dispatch()
        main(["status", "--machine-readable", "--no-color"], environ=environ)
        assert created[0].options.ui_mode is UIMode.MACHINE_READABLE
        assert created[0].received == ["status"]

    def test_dispatcher_status_is_returned(
        self, environ: dict[str, str], dispatch: DispatcherInstaller
    ) -> None:
        dispatch(lambda args: 3)
        assert main(["status"], environ=environ) == 3


# ---------------------------------------------------------------------------
# Dependency recovery
# ---------------------------------------------------------------------------

class TestDependencyRecovery:
    def test_version_conflict_exits_one_without_dispatch(
        self,
        environ: dict[str, str],
        dispatch: DispatcherInstaller,
        activate: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        created = dispatch()
        activate.side_effect = DependencyVersionConflictError(
            "boxwrap-old requires 'boxwrap<2'", group=PLUGINS_GROUP, name="boxwrap-old"
        )

        with pytest.raises(SystemExit) as exc_info:
            main(["up"], environ=environ)

        assert exc_info.value.code == exit_codes.DEPENDENCY_CONFLICT
        assert created == []
        err = capsys.readouterr().err
        assert "version conflict" in err
        assert "boxwrap-old requires 'boxwrap<2'" in err

    def test_missing_plugin_degrades_to_default_group(
        self,
        environ: dict[str, str],
        dispatch: DispatcherInstaller,
        activate: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        created = dispatch()
        activate.side_effect = [
            DependencyMissingError("gone", group=PLUGINS_GROUP, name="boxwrap-gone"),
            ActivatedDependencies(groups=(DEFAULT_GROUP,)),
        ]

        assert main(["up"], environ=environ) == exit_codes.SUCCESS

        assert activate.call_count == 2
        assert activate.call_args.args[1] == (DEFAULT_GROUP,)
        assert created[0].dependencies.groups == (DEFAULT_GROUP,)
        assert "plugins.json" in capsys.readouterr().err

    def test_missing_core_dependency_is_an_early_failure(
        self,
        environ: dict[str, str],
        dispatch: DispatcherInstaller,
        activate: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        created = dispatch()
        activate.side_effect = DependencyMissingError("no rich", group=DEFAULT_GROUP, name="rich")

        assert main(["up"], environ=environ) == exit_codes.UNDECLARED_ERROR
        assert created == []
        assert "very early stage" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# Failure translation
# ---------------------------------------------------------------------------

class TestFailureTranslation:
    def test_declared_status_code_and_single_error_exit_record(
        self, environ: dict[str, str], dispatch: DispatcherInstaller
    ) -> None:
        created = dispatch(_raise(BoxwrapError("boom", status_code=7)))

        assert main(["up"], environ=environ) == 7

        ui = created[0].ui
        assert ui.records == [("error-exit", "BoxwrapError", "boom")]
        assert ("error", "boom") in ui.messages
        assert created[0].teardown_calls == 1

    def test_undeclared_status_code_is_255(
        self, environ: dict[str, str], dispatch: DispatcherInstaller
    ) -> None:
        dispatch(_raise(BoxwrapError("boom")))
        assert main(["up"], environ=environ) == exit_codes.UNDECLARED_ERROR

    def test_hint_is_rendered(
        self, environ: dict[str, str], dispatch: DispatcherInstaller
    ) -> None:
        created = dispatch(_raise(BoxwrapError("boom", hint="try this")))
        main(["up"], environ=environ)
        assert ("warn", "Hint: try this") in created[0].ui.messages

    def test_error_is_logged_with_cause_chain(
        self,
        environ: dict[str, str],
        dispatch: DispatcherInstaller,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        def behaviour(args: list[str]) -> int:
            try:
                raise OSError("disk on fire")
            except OSError as exc:
                raise BoxwrapError("provider failed") from exc

        dispatch(behaviour)
        environ[environment.LOG] = "error"

        with caplog.at_level(logging.ERROR):
            main(["up"], environ=environ)

        assert "BoxwrapError: provider failed" in caplog.text
        assert "OSError: disk on fire" in caplog.text

    def test_failure_before_dispatcher_goes_to_stderr(
        self,
        environ: dict[str, str],
        dispatch: DispatcherInstaller,
        activate: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        dispatch()
        activate.side_effect = PluginRegistryError("registry unreadable", hint="remove it")

        assert main(["up"], environ=environ) == exit_codes.UNDECLARED_ERROR

        err = capsys.readouterr().err
        assert "very early stage" in err
        assert "registry unreadable" in err
        assert "Hint: remove it" in err

    def test_unclassified_error_is_reraised(
        self, environ: dict[str, str], dispatch: DispatcherInstaller
    ) -> None:
        created = dispatch(_raise(ValueError("not ours")))

        with pytest.raises(ValueError, match="not ours"):
            main(["up"], environ=environ)

        assert created[0].teardown_calls == 1
        assert created[0].ui.records == []

    def test_teardown_once_on_success(
        self, environ: dict[str, str], dispatch: DispatcherInstaller
    ) -> None:
        created = dispatch()
        main(["up"], environ=environ)
        assert created[0].teardown_calls == 1

    def test_dependencies_released_when_dispatcher_construction_fails(
        self,
        monkeypatch: pytest.MonkeyPatch,
        environ: dict[str, str],
        activate: MagicMock,
    ) -> None:
        activated = ActivatedDependencies(groups=(DEFAULT_GROUP,))
        activated.deinit = MagicMock()  # type: ignore[method-assign]
        activate.side_effect = None
        activate.return_value = activated

        def broken_factory(*args: Any) -> Any:
            raise BoxwrapError("no ui")

        monkeypatch.setattr(app_module, "Environment", broken_factory)
        monkeypatch.setattr(app_module, "SystemTerminalProbe", lambda values: FakeProbe())

        assert main(["up"], environ=environ) == exit_codes.UNDECLARED_ERROR
        activated.deinit.assert_called_once_with()

    def test_teardown_once_when_advisory_output_breaks(
        self,
        monkeypatch: pytest.MonkeyPatch,
        environ: dict[str, str],
        dispatch: DispatcherInstaller,
    ) -> None:
        def closed_stream(self: RecordingUI, message: str) -> None:
            raise BrokenPipeError("stderr closed")

        monkeypatch.setattr(RecordingUI, "warn", closed_stream)
        created = dispatch()
        del environ[environment.IN_INSTALLER]

        with pytest.raises(BrokenPipeError):
            main(["up"], environ=environ)

        assert created[0].teardown_calls == 1
        assert created[0].received is None

    def test_teardown_once_when_advisory_raises_domain_error(
        self,
        monkeypatch: pytest.MonkeyPatch,
        environ: dict[str, str],
        dispatch: DispatcherInstaller,
    ) -> None:
        def failing(self: RecordingUI, message: str) -> None:
            raise BoxwrapError("advisory failed", status_code=3)

        monkeypatch.setattr(RecordingUI, "warn", failing)
        created = dispatch()
        environ[environment.EXPERIMENTAL] = "1"

        assert main(["up"], environ=environ) == 3
        assert created[0].teardown_calls == 1
        assert created[0].ui.records == [("error-exit", "BoxwrapError", "advisory failed")]


# ---------------------------------------------------------------------------
# error-exit record with the real output strategies
# ---------------------------------------------------------------------------

class TestErrorExitRecord:
    @pytest.mark.parametrize(
        ("probe", "argv"),
        [
            (FakeProbe(color=False, tty=False), ["no-such-command"]),
            (FakeProbe(color=True, tty=True), ["no-such-command"]),
            (FakeProbe(), ["no-such-command", "--machine-readable"]),
        ],
        ids=["basic", "colored", "machine-readable"],
    )
    def test_printed_once_on_stdout_in_every_mode(
        self,
        probe: FakeProbe,
        argv: list[str],
        monkeypatch: pytest.MonkeyPatch,
        environ: dict[str, str],
        activate: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setattr(app_module, "SystemTerminalProbe", lambda values: probe)

        assert main(argv, environ=environ) == exit_codes.GENERAL_ERROR

        out = capsys.readouterr().out
        records = [line for line in out.splitlines() if ",error-exit," in line]
        assert len(records) == 1
        timestamp, target, type_, error_class, message = records[0].split(",")
        assert timestamp.isdigit()
        assert (target, type_, error_class) == ("", "error-exit", "CommandNotFoundError")
        assert message == "Unknown command 'no-such-command'."


# ---------------------------------------------------------------------------
# Startup advisories
# ---------------------------------------------------------------------------

class TestStartupAdvisories:
    def test_installer_warning_outside_installer(
        self, environ: dict[str, str], dispatch: DispatcherInstaller
    ) -> None:
        created = dispatch()
        del environ[environment.IN_INSTALLER]
        main(["up"], environ=environ)
        warnings = [m for kind, m in created[0].ui.messages if kind == "warn"]
        assert len(warnings) == 1
        assert "outside of the official installers" in warnings[0]

    def test_very_quiet_silences_installer_warning(
        self, environ: dict[str, str], dispatch: DispatcherInstaller
    ) -> None:
        created = dispatch()
        del environ[environment.IN_INSTALLER]
        environ[environment.VERY_QUIET] = "1"
        main(["up"], environ=environ)
        assert created[0].ui.messages == []

    def test_experimental_features_are_announced(
        self, environ: dict[str, str], dispatch: DispatcherInstaller
    ) -> None:
        created = dispatch()
        environ[environment.EXPERIMENTAL] = "typed_triggers"
        main(["up"], environ=environ)
        (warning,) = [m for kind, m in created[0].ui.messages if kind == "warn"]
        assert "typed_triggers" in warning

    def test_experimental_all(
        self, environ: dict[str, str], dispatch: DispatcherInstaller
    ) -> None:
        created = dispatch()
        environ[environment.EXPERIMENTAL] = "1"
        main(["up"], environ=environ)
        (warning,) = [m for kind, m in created[0].ui.messages if kind == "warn"]
        assert "all features" in warning


# ---------------------------------------------------------------------------
# Script-level entry
# ---------------------------------------------------------------------------

class TestCli:
    @pytest.fixture(autouse=True)
    def _no_process_setup(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(app_module, "install_early_interrupt_trap", lambda: None)
        monkeypatch.setattr(app_module, "unbuffer_streams", lambda: None)

    def test_exits_with_main_status(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(app_module, "main", lambda argv: 7)
        with pytest.raises(SystemExit) as exc_info:
            cli(["up"])
        assert exc_info.value.code == 7

    def test_keyboard_interrupt_exits_130(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        def interrupted(argv: object) -> int:
            raise KeyboardInterrupt

        monkeypatch.setattr(app_module, "main", interrupted)
        with pytest.raises(SystemExit) as exc_info:
            cli(["up"])
        assert exc_info.value.code == exit_codes.KEYBOARD_INTERRUPT
        assert "Aborted by user." in capsys.readouterr().err
