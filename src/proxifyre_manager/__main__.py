"""Allow ``python -m proxifyre_manager``."""

from proxifyre_manager.cmd.cli import app

app(prog_name="proxifyre-manager")
