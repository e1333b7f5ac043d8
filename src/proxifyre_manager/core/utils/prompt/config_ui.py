"""Configuration display components."""

from rich.console import Group
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from proxifyre_manager.core.models import AppConfig
from proxifyre_manager.core.utils.utils import EMPTY_MARK, format_names, mask_secret

from .prompt import PromptHandler, console


class ConfigUI(PromptHandler):
    """UI handler for showing and editing the service configuration."""

    def __init__(self, config_path: str, assume_yes: bool = False) -> None:
        """Initialize the configuration UI.

        Args:
            config_path: Path shown in the panel title
            assume_yes: Skip confirmations
        """
        super().__init__(assume_yes=assume_yes)
        self.config_path = config_path

    def _generate_rules_table(self, config: AppConfig) -> Table:
        """Generate the proxy rule table."""
        table = Table(box=None, padding=(0, 1), header_style="bold")
        table.add_column("#", style="cyan", justify="right", no_wrap=True)
        table.add_column("SOCKS5 Endpoint", style="green", no_wrap=True)
        table.add_column("Applications")
        table.add_column("Protocols", no_wrap=True)
        table.add_column("Username", no_wrap=True)
        table.add_column("Password", no_wrap=True)

        for index, rule in enumerate(config.proxies):
            credentials = rule.credentials
            table.add_row(
                str(index),
                escape(rule.endpoint) or EMPTY_MARK,
                escape(format_names(rule.app_names)),
                "/".join(proto.value for proto in rule.supported_protocols) or EMPTY_MARK,
                escape(credentials.username) if credentials and credentials.username else EMPTY_MARK,
                mask_secret(credentials.password if credentials else ""),
            )
        return table

    def _generate_display(self, config: AppConfig) -> Panel:
        """Generate the main display panel."""
        title = Text(f"ProxiFyre Configuration: {self.config_path}", style="bold cyan")
        header = Text.assemble(("Log Level: ", "cyan"), (config.log_level.value, "green"))
        if config.proxies:
            rules = self._generate_rules_table(config)
        else:
            rules = Text("No proxy rules configured", style="yellow")
        excludes = Text.assemble(
            ("Global Excluded Applications: ", "cyan"),
            format_names(config.excludes, limit=len(config.excludes) or 1),
        )
        return Panel(
            Group(header, Text(""), rules, Text(""), excludes),
            title=title,
            border_style="blue",
            padding=(1, 2),
        )

    def show(self, config: AppConfig) -> None:
        console.print(self._generate_display(config))
