"""Utility functions and helpers."""

from proxifyre_manager.core.utils.prompt import ConfigUI, PromptHandler
from proxifyre_manager.core.utils.utils import format_names, mask_secret

__all__ = ["ConfigUI", "format_names", "mask_secret", "PromptHandler"]
