"""Loading and saving the service configuration file.

This module provides the persistence layer for ``AppConfig``:
- Lenient loading that always returns a usable configuration
- Deterministic, human-readable serialization
- Atomic whole-file replacement on save
- Single-writer locking so concurrent saves cannot interleave

Read-side failures never reach the caller. A missing file is the normal first
run and is silent; unreadable or malformed files are logged as warnings and
replaced in memory by the default configuration. Write-side failures raise
``ConfigWriteError``.

Example:
    store = ConfigStore(Path("app-config.json"))
    config = store.load()
    config.excludes.append("svchost.exe")
    store.save(config)
"""

import contextlib
import json
import os
import tempfile
import threading
from pathlib import Path

from loguru import logger

from proxifyre_manager.core.exceptions import ConfigWriteError
from proxifyre_manager.core.models import AppConfig
from proxifyre_manager.core.settings import ManagerSettings

# Permissions of a freshly written config file
CONFIG_FILE_MODE = 0o644
JSON_INDENT = 2


class ConfigStore:
    """JSON file store for the service configuration."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._save_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: ManagerSettings) -> "ConfigStore":
        return cls(settings.config_path)

    def load(self) -> AppConfig:
        """Load the configuration, falling back to defaults on any read problem.

        Returns:
            AppConfig: Parsed configuration, or the default one if the file is
                missing, unreadable or malformed
        """
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug(f"No config file at {self.path}, using defaults")
            return AppConfig()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read config file {self.path}: {e}")
            return AppConfig()

        try:
            config = AppConfig.from_dict(json.loads(text))
        except (json.JSONDecodeError, TypeError, ValueError, RecursionError) as e:
            logger.warning(f"Could not parse config file {self.path}: {e}")
            return AppConfig()

        logger.debug(f"Loaded {len(config.proxies)} proxy rules from {self.path}")
        return config

    def save(self, config: AppConfig) -> None:
        """Serialize ``config`` and replace the config file in full.

        Raises:
            ConfigWriteError: If serialization or writing fails; the previous
                file is left untouched
        """
        try:
            data = json.dumps(config.to_dict(), indent=JSON_INDENT, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            msg = f"Failed to serialize configuration: {e}"
            raise ConfigWriteError(msg) from e

        with self._save_lock:
            self._atomic_write(data)
        logger.info(f"Saved configuration with {len(config.proxies)} proxy rules to {self.path}")

    def _atomic_write(self, data: str) -> None:
        tmp_name = None
        try:
            directory = self.path.parent
            directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                delete=False,
                dir=directory,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
            ) as fh:
                tmp_name = fh.name
                fh.write(data)
                fh.flush()
                os.fsync(fh.fileno())
            os.chmod(tmp_name, CONFIG_FILE_MODE)
            os.replace(tmp_name, self.path)
        except OSError as e:
            logger.error(f"Writing config file {self.path} failed: {e}")
            if tmp_name is not None:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
            msg = f"Failed to write configuration to {self.path}: {e}"
            raise ConfigWriteError(msg) from e
