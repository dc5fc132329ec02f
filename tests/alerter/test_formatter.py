"""Tests for the alert formatter."""

from dataclasses import replace
from decimal import Decimal

import pytest
from conftest import CONTRACT, make_alert

from mev_sentinel.alerter.formatter import (
    COLOR_CRITICAL_RISK,
    AlertFormatter,
    attack_label,
    get_risk_color,
    truncate_address,
)
from mev_sentinel.detector.models import MEVAlert, MEVAttackType, RiskLevel

ATTACKER = "0x" + "a" * 40
VICTIM = "0x" + "b" * 40


@pytest.fixture
def sandwich_alert() -> MEVAlert:
    alert = make_alert("mev_1", MEVAttackType.SANDWICH, tx_hash="0x" + "1" * 64, mev_profit=Decimal("0.5"))
    return replace(alert, attacker_address=ATTACKER, victim_address=VICTIM)


class TestHelpers:
    def test_truncate_address(self) -> None:
        assert truncate_address(CONTRACT) == "0x7a25...488d"
        assert truncate_address("0x1234") == "0x1234"

    def test_risk_color(self) -> None:
        assert get_risk_color(RiskLevel.CRITICAL) == COLOR_CRITICAL_RISK

    def test_attack_label(self) -> None:
        assert attack_label(MEVAttackType.FLASH_LOAN_ATTACK) == "Flash Loan Attack"


class TestAlertFormatter:
    def test_title(self, sandwich_alert) -> None:
        formatted = AlertFormatter().format(sandwich_alert)
        assert formatted.title == "🚨 MEV Alert: Sandwich Attack - HIGH Risk"

    def test_explorer_links(self, sandwich_alert) -> None:
        links = AlertFormatter().format(sandwich_alert, chain="polygon").links

        assert links["transaction"] == f"https://polygonscan.com/tx/{sandwich_alert.transaction_hash}"
        assert links["contract"] == f"https://polygonscan.com/address/{CONTRACT}"
        assert links["attacker"].endswith(ATTACKER)
        assert links["victim"].endswith(VICTIM)

    def test_unknown_network_has_no_links(self, sandwich_alert) -> None:
        formatted = AlertFormatter().format(sandwich_alert, chain="solana")
        assert formatted.links == {}
        assert "url" not in formatted.discord_embed

    def test_detailed_body(self, sandwich_alert) -> None:
        body = AlertFormatter(verbosity="detailed").format(sandwich_alert, chain="bsc").body

        assert f"Attacker: {ATTACKER}" in body
        assert f"Victim: {VICTIM}" in body
        assert "Estimated MEV: 0.5 BNB" in body
        assert "Confidence: 50%" in body

    def test_compact_body(self, sandwich_alert) -> None:
        body = AlertFormatter(verbosity="compact").format(sandwich_alert).body

        assert body == "Sandwich Attack on 0x7a25...488d in block 19000000 (HIGH, confidence 50%)"

    def test_discord_embed(self, sandwich_alert) -> None:
        embed = AlertFormatter().format(sandwich_alert).discord_embed

        assert embed["color"] == get_risk_color(RiskLevel.HIGH)
        assert embed["url"] == f"https://etherscan.io/tx/{sandwich_alert.transaction_hash}"
        names = [f["name"] for f in embed["fields"]]
        assert names[:4] == ["Attack", "Risk", "Block", "Transaction"]
        assert "Estimated MEV" in names

    def test_telegram_escapes_markdown(self, sandwich_alert) -> None:
        text = AlertFormatter().format(sandwich_alert).telegram_markdown
        assert "\\(50%\\)" in text
        assert "[View Transaction](https://etherscan.io/tx/" in text

    def test_plain_text_lists_links(self, sandwich_alert) -> None:
        text = AlertFormatter().format(sandwich_alert).plain_text
        assert text.startswith("MEV ALERT: SANDWICH ATTACK")
        assert f"Contract: https://etherscan.io/address/{CONTRACT}" in text
