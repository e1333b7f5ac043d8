import os

import pytest

from proxifyre_manager.core.settings import ManagerSettings, default_executable_name

# Keep Rich from wrapping CLI messages; set before the consoles are created
os.environ["COLUMNS"] = "200"


class FakeRunner:
    """Records service subcommands and fails the ones listed in ``fail_on``."""

    def __init__(self, fail_on=(), returncode=1, error=None):
        self.fail_on = set(fail_on)
        self.returncode = returncode
        self.error = error
        self.calls = []
        self.timeouts = []

    def __call__(self, executable, argument, timeout):
        self.calls.append(argument)
        self.timeouts.append(timeout)
        if argument in self.fail_on:
            if self.error is not None:
                raise self.error
            return self.returncode
        return 0


@pytest.fixture
def service_dir(tmp_path):
    directory = tmp_path / "bin"
    directory.mkdir()
    (directory / default_executable_name()).write_text("")
    return directory


@pytest.fixture
def settings(tmp_path, service_dir):
    return ManagerSettings(
        config_path=tmp_path / "app-config.json",
        service_dir=service_dir,
        stage_timeout=5.0,
    )
