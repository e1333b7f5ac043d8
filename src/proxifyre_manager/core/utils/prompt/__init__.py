"""Prompt and UI utilities."""

from proxifyre_manager.core.utils.prompt.config_ui import ConfigUI
from proxifyre_manager.core.utils.prompt.prompt import PromptHandler, console

__all__ = ["ConfigUI", "console", "PromptHandler"]
