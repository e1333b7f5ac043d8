import os
import stat
import subprocess
import sys
import threading
import time

import pytest
from conftest import FakeRunner

from proxifyre_manager.core.exceptions import ServiceNotFoundError, ServiceStageError, StageFailure
from proxifyre_manager.core.service import ServiceController, run_subprocess, running_executable_dir
from proxifyre_manager.core.settings import ManagerSettings


@pytest.mark.parametrize(
    ("operation", "stages"),
    [
        ("install", ["install", "start"]),
        ("uninstall", ["stop", "uninstall"]),
        ("restart", ["stop", "start"]),
        ("start", ["start"]),
        ("stop", ["stop"]),
    ],
)
def test_operations_run_stages_in_order(settings, operation, stages):
    runner = FakeRunner()
    getattr(ServiceController(settings, runner), operation)()
    assert runner.calls == stages
    assert runner.timeouts == [5.0] * len(stages)


def test_restart_stops_when_stop_fails(settings):
    runner = FakeRunner(fail_on={"stop"})
    with pytest.raises(ServiceStageError) as excinfo:
        ServiceController(settings, runner).restart()

    assert runner.calls == ["stop"]
    error = excinfo.value
    assert error.operation == "restart"
    assert error.stage == "stop"
    assert error.kind is StageFailure.EXIT
    assert error.returncode == 1
    assert error.completed == ()


def test_install_does_not_start_when_install_fails(settings):
    runner = FakeRunner(fail_on={"install"}, returncode=5)
    with pytest.raises(ServiceStageError, match="exit status 5"):
        ServiceController(settings, runner).install()
    assert runner.calls == ["install"]


def test_uninstall_does_not_uninstall_when_stop_fails(settings):
    runner = FakeRunner(fail_on={"stop"})
    with pytest.raises(ServiceStageError):
        ServiceController(settings, runner).uninstall()
    assert runner.calls == ["stop"]


def test_partial_restart_reports_completed_stages(settings):
    runner = FakeRunner(fail_on={"start"})
    with pytest.raises(ServiceStageError) as excinfo:
        ServiceController(settings, runner).restart()
    assert runner.calls == ["stop", "start"]
    assert excinfo.value.stage == "start"
    assert excinfo.value.completed == ("stop",)


def test_launch_failure(settings):
    runner = FakeRunner(fail_on={"start"}, error=PermissionError("access denied"))
    with pytest.raises(ServiceStageError) as excinfo:
        ServiceController(settings, runner).start()
    assert excinfo.value.kind is StageFailure.LAUNCH
    assert "access denied" in str(excinfo.value)


def test_timeout_is_a_distinct_failure(settings):
    runner = FakeRunner(fail_on={"stop"}, error=subprocess.TimeoutExpired(["ProxiFyre", "stop"], 5.0))
    with pytest.raises(ServiceStageError) as excinfo:
        ServiceController(settings, runner).stop()
    assert excinfo.value.kind is StageFailure.TIMEOUT
    assert excinfo.value.returncode is None


def test_missing_executable_attempts_no_stage(tmp_path):
    runner = FakeRunner()
    controller = ServiceController(ManagerSettings(service_dir=tmp_path), runner)
    with pytest.raises(ServiceNotFoundError) as excinfo:
        controller.install()
    assert runner.calls == []
    assert excinfo.value.operation == "install"
    assert excinfo.value.executable == tmp_path / controller.settings.executable_name


def test_executable_is_beside_the_launched_entry_point(tmp_path, monkeypatch):
    bin_dir = tmp_path / "venv" / "bin"
    bin_dir.mkdir(parents=True)
    entry_point = bin_dir / "proxifyre-manager"
    entry_point.write_text("")
    monkeypatch.setattr(sys, "argv", [str(entry_point), "service", "start"])
    monkeypatch.setattr(sys, "executable", str(tmp_path / "base" / "python3"))

    assert running_executable_dir() == bin_dir
    controller = ServiceController(ManagerSettings(executable_name="ProxiFyre.exe"))
    assert controller.executable == bin_dir / "ProxiFyre.exe"


@pytest.mark.skipif(os.name == "nt", reason="creates a symlink")
def test_module_launch_uses_interpreter_dir_without_resolving_symlinks(tmp_path, monkeypatch):
    base_dir = tmp_path / "base"
    base_dir.mkdir()
    (base_dir / "python3").write_text("")
    venv_bin = tmp_path / "venv" / "bin"
    venv_bin.mkdir(parents=True)
    (venv_bin / "python").symlink_to(base_dir / "python3")
    monkeypatch.setattr(sys, "argv", [str(tmp_path / "proxifyre_manager" / "__main__.py")])
    monkeypatch.setattr(sys, "executable", str(venv_bin / "python"))

    assert running_executable_dir() == venv_bin


def test_frozen_build_uses_its_own_executable_dir(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "frozen", True, raising=False)
    monkeypatch.setattr(sys, "executable", str(tmp_path / "ProxiFyreManager.exe"))
    monkeypatch.setattr(sys, "argv", ["elsewhere"])
    assert running_executable_dir() == tmp_path


class BlockingRunner(FakeRunner):
    """Runner whose first stage blocks until ``release`` is set."""

    def __init__(self):
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def __call__(self, executable, argument, timeout):
        returncode = super().__call__(executable, argument, timeout)
        if len(self.calls) == 1:
            self.entered.set()
            self.release.wait(5)
        return returncode


def test_concurrent_restarts_do_not_interleave(settings):
    runner = BlockingRunner()
    controller = ServiceController(settings, runner)
    first = threading.Thread(target=controller.restart)
    second = threading.Thread(target=controller.restart)

    first.start()
    assert runner.entered.wait(5)
    second.start()
    time.sleep(0.1)
    assert runner.calls == ["stop"]

    runner.release.set()
    first.join(5)
    second.join(5)
    assert runner.calls == ["stop", "start", "stop", "start"]



def test_default_runner_is_looked_up_lazily(settings, monkeypatch):
    runner = FakeRunner()
    monkeypatch.setattr("proxifyre_manager.core.service.run_subprocess", runner)
    ServiceController(settings).stop()
    assert runner.calls == ["stop"]


posix_only = pytest.mark.skipif(os.name == "nt", reason="uses a shell script as the service")


def write_script(path, body):
    path.write_text(f"#!/bin/sh\n{body}\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR)
    return path


@posix_only
def test_run_subprocess_returns_exit_status(tmp_path):
    script = write_script(tmp_path / "svc", 'echo "$1" > "$(dirname "$0")/arg"; exit 3')
    assert run_subprocess(script, "start", timeout=10) == 3
    assert (tmp_path / "arg").read_text().strip() == "start"


@posix_only
def test_run_subprocess_times_out(tmp_path):
    script = write_script(tmp_path / "svc", "sleep 5")
    with pytest.raises(subprocess.TimeoutExpired):
        run_subprocess(script, "stop", timeout=0.2)


@posix_only
def test_real_executable_that_cannot_launch(tmp_path):
    (tmp_path / "ProxiFyre").write_text("not executable")
    controller = ServiceController(ManagerSettings(service_dir=tmp_path, executable_name="ProxiFyre"))
    with pytest.raises(ServiceStageError) as excinfo:
        controller.start()
    assert excinfo.value.kind is StageFailure.LAUNCH


@posix_only
def test_undecodable_service_output_does_not_fail_the_stage(tmp_path):
    write_script(tmp_path / "ProxiFyre", "printf '\\377\\376 bad bytes'; printf '\\377' >&2; exit 0")
    assert run_subprocess(tmp_path / "ProxiFyre", "start", timeout=10) == 0

    controller = ServiceController(ManagerSettings(service_dir=tmp_path, executable_name="ProxiFyre"))
    controller.start()
