"""Configuration and service manager for the ProxiFyre SOCKS5 redirector."""

import pathlib
import sys
from importlib import metadata

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib


def get_version() -> str:
    """Read version from the installed distribution or pyproject.toml."""
    try:
        return metadata.version("proxifyre-manager")
    except metadata.PackageNotFoundError:
        pass

    # Source checkout: look for pyproject.toml in parent directories
    current_dir = pathlib.Path(__file__).parent
    for parent in [current_dir, *current_dir.parents]:
        pyproject_path = parent / "pyproject.toml"
        if pyproject_path.exists():
            with pyproject_path.open("rb") as f:
                pyproject_data = tomllib.load(f)
            return pyproject_data["project"]["version"]

    return "0.0.0"


__version__ = get_version()
