"""Data models for the chain module.

Transactions and blocks are read-only inputs to detection. Missing fields in
RPC payloads are treated as zero/empty so detectors stay conservative rather
than crash on odd node responses.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

WEI_PER_GWEI = Decimal(10) ** 9
WEI_PER_ETHER = Decimal(10) ** 18


def wei_to_gwei(wei: int) -> Decimal:
    """Convert a wei amount to gwei."""
    return Decimal(wei) / WEI_PER_GWEI


def wei_to_ether(wei: int) -> Decimal:
    """Convert a wei amount to native-currency units."""
    return Decimal(wei) / WEI_PER_ETHER


def format_decimal(value: Decimal) -> str:
    """Render a Decimal without exponent or trailing zeros ("12.5", "200")."""
    if value == 0:
        return "0"
    return format(value.normalize(), "f")


def format_gwei(wei: int) -> str:
    return format_decimal(wei_to_gwei(wei))


def _as_int(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value or "0")
    return int(value)


def _as_hex(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "0x" + bytes(value).hex()
    hex_method = getattr(value, "to_0x_hex", None)
    if callable(hex_method):
        return str(hex_method())
    text = str(value)
    if text and not text.startswith("0x"):
        return "0x" + text
    return text


def _input_length(value: Any) -> int:
    """Call-data length in bytes from raw bytes or a 0x-prefixed hex string."""
    if value is None:
        return 0
    if isinstance(value, (bytes, bytearray, memoryview)):
        return len(bytes(value))
    text = str(value)
    if text.startswith("0x"):
        text = text[2:]
    return len(text) // 2


@dataclass(frozen=True)
class Transaction:
    """A confirmed transaction as seen by the detectors.

    Attributes:
        hash: Transaction hash (0x-prefixed hex).
        sender: Sending address.
        recipient: Receiving address, None for contract creation.
        value_wei: Transferred native value in wei.
        gas_price_wei: Effective gas price bid in wei.
        nonce: Sender nonce.
        input_length: Call-data length in bytes.
    """

    hash: str
    sender: str
    recipient: str | None = None
    value_wei: int = 0
    gas_price_wei: int = 0
    nonce: int = 0
    input_length: int = 0

    @property
    def gas_price_gwei(self) -> Decimal:
        return wei_to_gwei(self.gas_price_wei)

    @property
    def value_ether(self) -> Decimal:
        return wei_to_ether(self.value_wei)

    def touches(self, address: str) -> bool:
        """Return True if the address is the sender or recipient (case-insensitive)."""
        target = address.lower()
        if self.sender.lower() == target:
            return True
        return self.recipient is not None and self.recipient.lower() == target

    @classmethod
    def from_web3(cls, data: Mapping[str, Any]) -> Transaction:
        """Create a Transaction from a web3 transaction mapping."""
        gas_price = data.get("gasPrice")
        if gas_price is None:
            gas_price = data.get("maxFeePerGas")
        recipient = data.get("to")
        return cls(
            hash=_as_hex(data.get("hash")),
            sender=str(data.get("from") or ""),
            recipient=str(recipient) if recipient else None,
            value_wei=_as_int(data.get("value")),
            gas_price_wei=_as_int(gas_price),
            nonce=_as_int(data.get("nonce")),
            input_length=_input_length(data.get("input", data.get("data"))),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "hash": self.hash,
            "sender": self.sender,
            "recipient": self.recipient,
            "value_wei": str(self.value_wei),
            "gas_price_wei": str(self.gas_price_wei),
            "nonce": self.nonce,
            "input_length": self.input_length,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Transaction:
        return cls(
            hash=str(data["hash"]),
            sender=str(data.get("sender") or ""),
            recipient=data.get("recipient"),
            value_wei=int(data.get("value_wei") or 0),
            gas_price_wei=int(data.get("gas_price_wei") or 0),
            nonce=int(data.get("nonce") or 0),
            input_length=int(data.get("input_length") or 0),
        )


@dataclass(frozen=True)
class Block:
    """A confirmed block; transaction order is the on-chain inclusion order."""

    number: int
    timestamp: datetime
    transactions: tuple[Transaction, ...] = ()

    @classmethod
    def from_web3(cls, data: Mapping[str, Any]) -> Block:
        """Create a Block from a web3 block fetched with full transactions.

        Transaction entries that are bare hashes (block fetched without
        full transactions) are ignored.
        """
        txs = tuple(
            Transaction.from_web3(tx)
            for tx in (data.get("transactions") or [])
            if isinstance(tx, Mapping)
        )
        return cls(
            number=_as_int(data.get("number")),
            timestamp=datetime.fromtimestamp(_as_int(data.get("timestamp")), tz=UTC),
            transactions=txs,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "number": self.number,
            "timestamp": int(self.timestamp.timestamp()),
            "transactions": [tx.to_dict() for tx in self.transactions],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Block:
        return cls(
            number=int(data["number"]),
            timestamp=datetime.fromtimestamp(int(data["timestamp"]), tz=UTC),
            transactions=tuple(Transaction.from_dict(tx) for tx in data.get("transactions", [])),
        )
