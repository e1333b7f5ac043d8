"""Base prompt handling and UI components."""

from prompt_toolkit import prompt
from prompt_toolkit.shortcuts import confirm
from rich.console import Console
from rich.status import Status

console = Console()


class PromptHandler:
    """Base class for handling terminal prompts and UI."""

    def __init__(self, assume_yes: bool = False) -> None:
        """Initialize the PromptHandler.

        Args:
            assume_yes: Answer every confirmation with yes without asking
        """
        self.assume_yes = assume_yes
        self._spinner = "dots"

    def confirm(self, title: str, message: str) -> bool:
        """Ask a yes/no question, the terminal version of a confirm dialog."""
        if self.assume_yes:
            return True
        console.print(f"[bold cyan]{title}")
        return confirm(message)

    def edit_lines(self, message: str, lines: list[str]) -> str:
        """Open a multi-line prompt pre-filled with one entry per line.

        Finish with Esc followed by Enter (or Meta+Enter).
        """
        console.print(f"[cyan]{message}[/cyan] [dim](one per line, Esc+Enter to finish)")
        return prompt("> ", default="\n".join(lines), multiline=True)

    def create_status(self, message: str) -> Status:
        """Create a spinner shown while a blocking operation runs."""
        return console.status(message, spinner=self._spinner)
