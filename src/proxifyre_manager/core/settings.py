"""Runtime settings shared by the config store and the service controller.

Settings are built once at startup (normally by the CLI from its options and
environment variables) and passed explicitly to the components that need
them.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

DEFAULT_CONFIG_FILE: Final = "app-config.json"
DEFAULT_STAGE_TIMEOUT: Final = 60.0  # seconds
MIN_STAGE_TIMEOUT: Final = 0.1


def default_executable_name() -> str:
    """Return the service executable name for this platform."""
    return "ProxiFyre.exe" if os.name == "nt" else "ProxiFyre"


@dataclass(frozen=True)
class ManagerSettings:
    """Manager settings.

    Attributes:
        config_path: Location of the service configuration file
        service_dir: Directory holding the service executable; None means
            the directory of the running executable
        executable_name: File name of the service executable
        stage_timeout: Seconds to wait for one service subcommand
    """

    config_path: Path = Path(DEFAULT_CONFIG_FILE)
    service_dir: Path | None = None
    executable_name: str = default_executable_name()
    stage_timeout: float = DEFAULT_STAGE_TIMEOUT
