"""Lifecycle control of the ProxiFyre service executable.

This module drives the service through its own command line. Each lifecycle
operation is a fixed sequence of stages, and a stage is one invocation of the
service executable with a single subcommand:

- install:   install -> start
- uninstall: stop -> uninstall
- restart:   stop -> start
- start:     start
- stop:      stop

Stages run synchronously and fail fast: the first failing stage aborts the
rest of the operation, and stages that already completed are not rolled
back. The true service state is never observed; only the outcome of each
invocation is reported.

Process execution goes through a ``ProcessRunner`` so the controller can be
exercised with a fake runner instead of a real executable.

Example:
    controller = ServiceController(ManagerSettings())
    try:
        controller.restart()
    except ServiceStageError as e:
        print(f"{e.operation} stopped at {e.stage} ({e.kind.value})")
"""

import subprocess
import sys
import threading
from pathlib import Path
from typing import Final, Protocol

from loguru import logger

from proxifyre_manager.core.exceptions import (
    ServiceNotFoundError,
    ServiceStageError,
    StageFailure,
)
from proxifyre_manager.core.settings import ManagerSettings

# Stage subcommands understood by the service executable
INSTALL: Final = "install"
UNINSTALL: Final = "uninstall"
START: Final = "start"
STOP: Final = "stop"

OPERATIONS: Final[dict[str, tuple[str, ...]]] = {
    "install": (INSTALL, START),
    "uninstall": (STOP, UNINSTALL),
    "restart": (STOP, START),
    "start": (START,),
    "stop": (STOP,),
}


class ProcessRunner(Protocol):
    """Runs one executable with one argument and returns its exit status.

    Implementations raise ``OSError`` when the process cannot be launched and
    ``subprocess.TimeoutExpired`` when it does not finish in time.
    """

    def __call__(self, executable: Path, argument: str, timeout: float | None) -> int: ...


def run_subprocess(executable: Path, argument: str, timeout: float | None) -> int:
    """Default runner: run the executable with no stdin and wait for it."""
    result = subprocess.run(
        [str(executable), argument],
        stdin=subprocess.DEVNULL,
        capture_output=True,
        text=True,
        errors="replace",
        timeout=timeout,
        check=False,
    )
    output = (result.stderr or "").strip() or (result.stdout or "").strip()
    if output:
        logger.debug(f"{executable.name} {argument}: {output}")
    return result.returncode


def running_executable_dir() -> Path:
    """Return the directory of the program that was launched.

    Symlinks are not followed: a console script installed into a virtual
    environment reports the environment's script directory, not the base
    interpreter behind it.
    """
    if getattr(sys, "frozen", False):
        return Path(sys.executable).absolute().parent
    launched = Path(sys.argv[0]) if sys.argv and sys.argv[0] else None
    # "python -m" and plain scripts report a .py file; use the interpreter then
    if launched is not None and launched.suffix != ".py" and launched.is_file():
        return launched.absolute().parent
    return Path(sys.executable).absolute().parent


class ServiceController:
    """Sequences service subcommands for each lifecycle operation."""

    def __init__(self, settings: ManagerSettings, runner: ProcessRunner | None = None) -> None:
        """Initialize the controller.

        Args:
            settings: Manager settings (service directory, executable name, timeout)
            runner: Process runner; defaults to ``run_subprocess``
        """
        self.settings = settings
        self.runner: ProcessRunner = runner or run_subprocess
        self._lock = threading.Lock()

    @property
    def executable(self) -> Path:
        """Full path of the service executable."""
        directory = self.settings.service_dir or running_executable_dir()
        return Path(directory) / self.settings.executable_name

    def install(self) -> None:
        """Install the service, then start it."""
        self._run_operation("install")

    def uninstall(self) -> None:
        """Stop the service, then uninstall it."""
        self._run_operation("uninstall")

    def restart(self) -> None:
        """Stop the service, then start it again."""
        self._run_operation("restart")

    def start(self) -> None:
        self._run_operation("start")

    def stop(self) -> None:
        self._run_operation("stop")

    def _run_operation(self, operation: str) -> None:
        with self._lock:
            executable = self.executable
            if not executable.exists():
                logger.error(f"Service executable not found: {executable}")
                raise ServiceNotFoundError(operation, executable)

            completed: list[str] = []
            for stage in OPERATIONS[operation]:
                self._run_stage(operation, stage, executable, tuple(completed))
                completed.append(stage)
            logger.info(f"Service {operation} completed ({' -> '.join(completed)})")

    def _run_stage(
        self, operation: str, stage: str, executable: Path, completed: tuple[str, ...]
    ) -> None:
        timeout = self.settings.stage_timeout
        logger.info(f"Running '{executable.name} {stage}' for {operation}")
        try:
            returncode = self.runner(executable, stage, timeout)
        except subprocess.TimeoutExpired as e:
            logger.error(f"'{stage}' timed out after {timeout}s")
            raise ServiceStageError(
                operation, stage, StageFailure.TIMEOUT, f"timed out after {timeout}s", completed
            ) from e
        except OSError as e:
            logger.error(f"Could not launch '{executable.name} {stage}': {e}")
            raise ServiceStageError(operation, stage, StageFailure.LAUNCH, str(e), completed) from e

        if returncode != 0:
            logger.error(f"'{stage}' exited with status {returncode}")
            raise ServiceStageError(
                operation,
                stage,
                StageFailure.EXIT,
                f"exit status {returncode}",
                completed,
                returncode=returncode,
            )
        logger.debug(f"'{stage}' succeeded")
