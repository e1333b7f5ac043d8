"""Custom exceptions for the configuration manager.

This module defines the failures the core surfaces to its callers:
- Configuration write failures
- Invalid rule indices
- Missing service executable
- Failed service lifecycle stages

Read-side configuration problems never appear here; the store absorbs them
and falls back to defaults.

Example:
    try:
        controller.restart()
    except ServiceStageError as e:
        console.print(f"[red]Restart failed at '{e.stage}': {e}")
"""

from enum import Enum
from pathlib import Path


class ManagerError(Exception):
    """Base exception for manager errors."""


class ConfigWriteError(ManagerError):
    """Raised when the configuration cannot be serialized or written."""


class RuleIndexError(ManagerError, IndexError):
    """Raised when a rule index is outside the proxy list.

    ``index`` is None when an operation needed a selected rule and none was.
    """

    def __init__(self, index: int | None, size: int) -> None:
        if index is None:
            super().__init__("No proxy rule selected")
        else:
            bounds = f"0..{size - 1}" if size else "no rules"
            super().__init__(f"Rule index {index} out of range ({bounds})")
        self.index = index
        self.size = size


class ServiceError(ManagerError):
    """Base exception for service lifecycle errors."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(message)
        self.operation = operation


class ServiceNotFoundError(ServiceError):
    """Raised when the service executable is missing; no stage was attempted."""

    def __init__(self, operation: str, executable: Path) -> None:
        super().__init__(operation, f"{executable.name} not found in {executable.parent}")
        self.executable = executable


class StageFailure(str, Enum):
    """How a single stage failed."""

    LAUNCH = "launch"
    EXIT = "exit"
    TIMEOUT = "timeout"


class ServiceStageError(ServiceError):
    """Raised when one stage of a lifecycle operation fails.

    Attributes:
        operation: Lifecycle operation name (e.g. 'restart')
        stage: Subcommand that failed (e.g. 'start')
        kind: How the stage failed
        completed: Stages of this operation that finished before the failure
        returncode: Exit status for ``StageFailure.EXIT``, otherwise None
    """

    def __init__(
        self,
        operation: str,
        stage: str,
        kind: StageFailure,
        detail: str,
        completed: tuple[str, ...] = (),
        returncode: int | None = None,
    ) -> None:
        super().__init__(operation, f"failed to {stage} service: {detail}")
        self.stage = stage
        self.kind = kind
        self.completed = completed
        self.returncode = returncode
