"""Data models for the alerter module."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class FormattedAlert:
    """An MEV alert rendered for each delivery channel.

    Attributes:
        title: Short headline.
        body: Main text at the configured verbosity.
        discord_embed: Discord embed payload.
        telegram_markdown: Telegram MarkdownV2 text.
        plain_text: Plain text for logs, terminals and generic webhooks.
        links: Named explorer links ("transaction", "attacker", ...).
    """

    title: str
    body: str
    discord_embed: dict[str, object]
    telegram_markdown: str
    plain_text: str
    links: dict[str, str] = field(default_factory=dict)
