"""In-memory editing of proxy rules and the exclude list.

This module provides the mutation operations the presentation layer uses:
- Adding and removing proxy rules by index
- Committing an editor draft over an existing rule
- Replacing the global exclude list from multi-line text
- An editor session that tracks the selected rule and its pending draft

Rules are identified by their position in ``AppConfig.proxies``. Removing a
rule shifts every later rule down by one, so the session always commits the
pending draft before it adds, removes or changes selection.

Example:
    session = EditorSession(config)
    session.add()
    session.draft.app_names_text = "firefox\\nchrome"
    session.draft.endpoint = "127.0.0.1:1080"
    session.finalize()
    store.save(session.config)
"""

from dataclasses import dataclass

from loguru import logger

from proxifyre_manager.core.exceptions import RuleIndexError
from proxifyre_manager.core.models import AppConfig, Credentials, Protocol, ProxyRule


def split_lines(text: str) -> list[str]:
    """Split multi-line text into trimmed, non-empty entries, keeping order."""
    return [line.strip() for line in text.splitlines() if line.strip()]


@dataclass
class RuleDraft:
    """Raw editor field values for one proxy rule."""

    app_names_text: str = ""
    endpoint: str = ""
    username: str = ""
    password: str = ""
    tcp: bool = True
    udp: bool = False

    @classmethod
    def from_rule(cls, rule: ProxyRule) -> "RuleDraft":
        credentials = rule.credentials or Credentials()
        return cls(
            app_names_text="\n".join(rule.app_names),
            endpoint=rule.endpoint,
            username=credentials.username,
            password=credentials.password,
            tcp=Protocol.TCP in rule.supported_protocols,
            udp=Protocol.UDP in rule.supported_protocols,
        )

    def to_rule(self) -> ProxyRule:
        """Normalize the draft into a rule."""
        protocols = []
        if self.tcp:
            protocols.append(Protocol.TCP)
        if self.udp:
            protocols.append(Protocol.UDP)
        return ProxyRule(
            app_names=split_lines(self.app_names_text),
            endpoint=self.endpoint,
            credentials=Credentials(self.username, self.password),
            supported_protocols=tuple(protocols),
        )


def _valid_index(config: AppConfig, index: int | None) -> bool:
    return index is not None and 0 <= index < len(config.proxies)


def add_rule(config: AppConfig) -> int:
    """Append an empty TCP rule and return its index."""
    config.proxies.append(ProxyRule())
    index = len(config.proxies) - 1
    logger.debug(f"Added proxy rule {index}")
    return index


def remove_rule(config: AppConfig, index: int) -> None:
    """Remove the rule at ``index``.

    Raises:
        RuleIndexError: If ``index`` is out of range; the config is unchanged
    """
    if not _valid_index(config, index):
        raise RuleIndexError(index, len(config.proxies))
    del config.proxies[index]
    logger.debug(f"Removed proxy rule {index}, {len(config.proxies)} left")


def commit_rule_edit(config: AppConfig, index: int | None, draft: RuleDraft) -> bool:
    """Overwrite the rule at ``index`` with the normalized draft.

    An invalid or missing index means nothing is selected, so there is nothing
    to save.

    Returns:
        bool: True if a rule was overwritten
    """
    if not _valid_index(config, index):
        return False
    config.proxies[index] = draft.to_rule()
    return True


def set_excludes(config: AppConfig, raw_text: str) -> None:
    """Replace the global exclude list from one-per-line text."""
    config.excludes = split_lines(raw_text)


class EditorSession:
    """Selection and pending draft over one ``AppConfig``.

    The draft is only written back into the config by ``commit``, which every
    index-based operation calls first.
    """

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self.selected: int | None = None
        self.draft = RuleDraft()

    def commit(self) -> bool:
        """Write the pending draft over the selected rule, if any."""
        return commit_rule_edit(self.config, self.selected, self.draft)

    def select(self, index: int | None) -> None:
        """Commit the pending draft, then load rule ``index`` into the draft.

        Selecting an invalid index (or None) clears the selection and resets
        the draft to empty fields.
        """
        self.commit()
        if _valid_index(self.config, index):
            self.selected = index
            self.draft = RuleDraft.from_rule(self.config.proxies[index])
        else:
            self.selected = None
            self.draft = RuleDraft(tcp=False)

    def add(self) -> int:
        """Commit the pending draft, append a new rule and select it."""
        self.commit()
        index = add_rule(self.config)
        self.select(index)
        return index

    def remove(self) -> None:
        """Commit the pending draft, then remove the selected rule.

        Raises:
            RuleIndexError: If no rule is selected
        """
        self.commit()
        if self.selected is None:
            raise RuleIndexError(None, len(self.config.proxies))
        remove_rule(self.config, self.selected)
        self.selected = None
        self.draft = RuleDraft(tcp=False)

    def finalize(self, excludes_text: str | None = None) -> AppConfig:
        """Commit the pending draft and optional excludes text before saving."""
        self.commit()
        if excludes_text is not None:
            set_excludes(self.config, excludes_text)
        return self.config
