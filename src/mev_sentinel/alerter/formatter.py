"""Alert message formatter for multi-channel delivery.

This module transforms MEVAlert objects into human-readable alert messages
for Discord, Telegram and plain text, with block explorer links for the
alert's network.
"""

from __future__ import annotations

from typing import Literal

from mev_sentinel.alerter.models import FormattedAlert
from mev_sentinel.chain.models import format_decimal
from mev_sentinel.chain.networks import NetworkInfo, UnknownNetworkError, get_network
from mev_sentinel.detector.models import MEVAlert, MEVAttackType, RiskLevel

# Discord embed colors (decimal values)
COLOR_CRITICAL_RISK = 10038562  # Dark red (#992D22)
COLOR_HIGH_RISK = 15158332  # Red (#E74C3C)
COLOR_MEDIUM_RISK = 15105570  # Orange (#E67E22)
COLOR_LOW_RISK = 16776960  # Yellow (#FFFF00)

RISK_COLORS = {
    RiskLevel.CRITICAL: COLOR_CRITICAL_RISK,
    RiskLevel.HIGH: COLOR_HIGH_RISK,
    RiskLevel.MEDIUM: COLOR_MEDIUM_RISK,
    RiskLevel.LOW: COLOR_LOW_RISK,
}

ATTACK_LABELS = {
    MEVAttackType.FRONTRUNNING: "Front-running",
    MEVAttackType.BACKRUNNING: "Back-running",
    MEVAttackType.SANDWICH: "Sandwich Attack",
    MEVAttackType.ARBITRAGE: "Arbitrage",
    MEVAttackType.LIQUIDATION: "Liquidation",
    MEVAttackType.ORACLE_MANIPULATION: "Oracle Manipulation",
    MEVAttackType.FLASH_LOAN_ATTACK: "Flash Loan Attack",
}

_TELEGRAM_SPECIAL_CHARS = "_*[]()~`>#+-=|{}.!"


def truncate_address(address: str, chars: int = 4) -> str:
    """Truncate an address or hash to 0x1234...5678 format."""
    if len(address) < chars * 2 + 4:
        return address
    return f"{address[: chars + 2]}...{address[-chars:]}"


def get_risk_color(level: RiskLevel) -> int:
    """Get Discord embed color for a risk level."""
    return RISK_COLORS[level]


def attack_label(attack_type: MEVAttackType) -> str:
    return ATTACK_LABELS.get(attack_type, attack_type.value)


class AlertFormatter:
    """Formats MEVAlerts into multi-channel alert messages.

    Supports two verbosity levels:
    - compact: Attack type, risk and transaction only
    - detailed: Full context (addresses, gas, profit, evidence)
    """

    def __init__(
        self,
        verbosity: Literal["compact", "detailed"] = "detailed",
    ) -> None:
        """Initialize the formatter.

        Args:
            verbosity: Level of detail in formatted messages.
        """
        self.verbosity = verbosity

    def format(self, alert: MEVAlert, *, chain: str = "ethereum") -> FormattedAlert:
        """Format an MEV alert into a multi-channel alert.

        Args:
            alert: The alert to format.
            chain: Network the alert was detected on (selects the explorer).

        Returns:
            FormattedAlert with all channel formats.
        """
        try:
            network: NetworkInfo | None = get_network(chain)
        except UnknownNetworkError:
            network = None

        label = attack_label(alert.attack_type)
        risk = alert.risk_level.value.upper()
        links = self._build_links(alert, network)

        title = f"🚨 MEV Alert: {label} - {risk} Risk"
        body = self._build_body(alert, label, risk, network)

        return FormattedAlert(
            title=title,
            body=body,
            discord_embed=self._build_discord_embed(alert, label, risk, links, network),
            telegram_markdown=self._build_telegram_markdown(alert, label, risk, links),
            plain_text=self._build_plain_text(alert, label, risk, links, network),
            links=links,
        )

    def _build_links(self, alert: MEVAlert, network: NetworkInfo | None) -> dict[str, str]:
        """Build dictionary of explorer links."""
        if network is None:
            return {}
        links = {
            "transaction": network.tx_url(alert.transaction_hash),
            "contract": network.address_url(alert.contract_id),
        }
        if alert.attacker_address:
            links["attacker"] = network.address_url(alert.attacker_address)
        if alert.victim_address:
            links["victim"] = network.address_url(alert.victim_address)
        return links

    def _build_body(
        self,
        alert: MEVAlert,
        label: str,
        risk: str,
        network: NetworkInfo | None,
    ) -> str:
        """Build the main body text."""
        if self.verbosity == "compact":
            return (
                f"{label} on {truncate_address(alert.contract_id)} in block {alert.block_number} "
                f"({risk}, confidence {alert.confidence:.0%})"
            )

        lines = [
            alert.description,
            f"Contract: {alert.contract_id}",
            f"Risk: {risk} | Confidence: {alert.confidence:.0%}",
            f"Block: {alert.block_number} | Gas: {alert.gas_price} gwei",
            f"Transaction: {alert.transaction_hash}",
        ]
        if alert.attacker_address:
            lines.append(f"Attacker: {alert.attacker_address}")
        if alert.victim_address:
            lines.append(f"Victim: {alert.victim_address}")
        if alert.mev_profit is not None:
            currency = network.currency if network else "ETH"
            lines.append(f"Estimated MEV: {format_decimal(alert.mev_profit)} {currency}")
        return "\n".join(lines)

    def _build_discord_embed(
        self,
        alert: MEVAlert,
        label: str,
        risk: str,
        links: dict[str, str],
        network: NetworkInfo | None,
    ) -> dict[str, object]:
        """Build Discord-optimized embed format."""
        tx_short = truncate_address(alert.transaction_hash, chars=6)
        tx_value = f"[`{tx_short}`]({links['transaction']})" if "transaction" in links else f"`{tx_short}`"

        fields: list[dict[str, object]] = [
            {"name": "Attack", "value": label, "inline": True},
            {"name": "Risk", "value": f"{risk} ({alert.confidence:.0%})", "inline": True},
            {"name": "Block", "value": str(alert.block_number), "inline": True},
            {"name": "Transaction", "value": tx_value, "inline": False},
        ]

        if self.verbosity == "detailed":
            fields.append({"name": "Gas Price", "value": f"{alert.gas_price} gwei", "inline": True})
            if alert.attacker_address:
                fields.append(
                    {"name": "Attacker", "value": f"`{truncate_address(alert.attacker_address)}`", "inline": True}
                )
            if alert.victim_address:
                fields.append(
                    {"name": "Victim", "value": f"`{truncate_address(alert.victim_address)}`", "inline": True}
                )
            if alert.mev_profit is not None:
                currency = network.currency if network else "ETH"
                fields.append(
                    {
                        "name": "Estimated MEV",
                        "value": f"{format_decimal(alert.mev_profit)} {currency}",
                        "inline": True,
                    }
                )

        embed: dict[str, object] = {
            "title": f"🚨 {label} Detected",
            "description": alert.description,
            "color": get_risk_color(alert.risk_level),
            "fields": fields,
            "timestamp": alert.timestamp.isoformat(),
            "footer": {"text": f"MEV Sentinel | {network.display_name if network else 'unknown network'}"},
        }
        if "transaction" in links:
            embed["url"] = links["transaction"]
        return embed

    def _build_telegram_markdown(
        self,
        alert: MEVAlert,
        label: str,
        risk: str,
        links: dict[str, str],
    ) -> str:
        """Build Telegram-optimized markdown format."""
        lines = [
            f"🚨 *{self._escape_telegram_markdown(label)} Detected*",
            "",
            f"*Risk:* {risk} \\({alert.confidence:.0%}\\)",
            f"*Block:* {alert.block_number}",
            f"*Contract:* `{truncate_address(alert.contract_id)}`",
        ]
        if self.verbosity == "detailed":
            lines.append(f"*Gas:* {self._escape_telegram_markdown(alert.gas_price)} gwei")
            if alert.attacker_address:
                lines.append(f"*Attacker:* `{truncate_address(alert.attacker_address)}`")
            lines.append(self._escape_telegram_markdown(alert.description))

        lines.append("")
        if "transaction" in links:
            lines.append(f"[View Transaction]({links['transaction']})")
        return "\n".join(lines)

    def _escape_telegram_markdown(self, text: str) -> str:
        """Escape special Telegram MarkdownV2 characters."""
        for char in _TELEGRAM_SPECIAL_CHARS:
            text = text.replace(char, f"\\{char}")
        return text

    def _build_plain_text(
        self,
        alert: MEVAlert,
        label: str,
        risk: str,
        links: dict[str, str],
        network: NetworkInfo | None,
    ) -> str:
        """Build plain text format for terminals and generic channels."""
        lines = [
            f"MEV ALERT: {label.upper()}",
            "=" * 30,
            "",
            self._build_body(alert, label, risk, network),
        ]
        if links:
            lines.append("")
            for name, url in links.items():
                lines.append(f"{name.capitalize()}: {url}")
        return "\n".join(lines)
