"""Typed models used by the swap subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class Token:
    """Catalog entry for a swappable token."""

    ticker: str
    address: str
    decimals: int
    name: str = ""
    image: Optional[str] = None

    def __post_init__(self) -> None:
        if self.decimals < 0:
            raise ValueError(f"decimals must be >= 0, got {self.decimals}")

    def same_as(self, other: Optional["Token"]) -> bool:
        return other is not None and self.address.lower() == other.address.lower()

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Token":
        return cls(
            ticker=str(payload["ticker"]),
            address=str(payload["address"]),
            decimals=int(payload["decimals"]),
            name=str(payload.get("name") or ""),
            image=payload.get("img") or payload.get("image"),
        )


@dataclass(frozen=True)
class Quote:
    """Conversion rate token_in -> token_out at fetch time."""

    ratio: Decimal


class AllowanceState(str, Enum):
    UNKNOWN = "unknown"
    ZERO = "zero"
    SUFFICIENT = "sufficient"

    @property
    def requires_approval(self) -> bool:
        # Missing allowance data is treated like a zero allowance
        return self is not AllowanceState.SUFFICIENT


class TransactionKind(str, Enum):
    APPROVAL = "approval"
    SWAP = "swap"


@dataclass(frozen=True)
class TransactionRequest:
    """Ready-to-sign payload returned by the aggregator."""

    to: str
    data: str
    value: str
    kind: TransactionKind = TransactionKind.SWAP


class TransactionOutcome(str, Enum):
    NONE = "none"
    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"

    @property
    def is_final(self) -> bool:
        return self in (TransactionOutcome.SUCCESS, TransactionOutcome.FAILURE)


class SwapPhase(str, Enum):
    """States of a single swap attempt."""

    IDLE = "idle"
    CHECKING_ALLOWANCE = "checking_allowance"
    AWAITING_APPROVAL = "awaiting_approval"
    CHECKING_QUOTE = "checking_quote"
    AWAITING_WALLET_SUBMISSION = "awaiting_wallet_submission"


class TokenSide(int, Enum):
    """Which side of the pair a selection applies to."""

    IN = 1
    OUT = 2


@dataclass(frozen=True)
class PhaseTransition:
    from_phase: SwapPhase
    to_phase: SwapPhase
    reason: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class SwapWidgetState:
    """Complete widget state. Replaced as a whole on every transition."""

    token_in: Token
    token_out: Token
    slippage: Decimal
    quote: Optional[Quote] = None
    amount_in: Optional[str] = None
    amount_out: Optional[str] = None
    pending_request: Optional[TransactionRequest] = None
    phase: SwapPhase = SwapPhase.IDLE

    @property
    def pair(self) -> Tuple[str, str]:
        return (self.token_in.address, self.token_out.address)

    def matches_pair(self, token_in_address: str, token_out_address: str) -> bool:
        return (
            self.token_in.address.lower() == token_in_address.lower()
            and self.token_out.address.lower() == token_out_address.lower()
        )


@dataclass
class SubmitTransaction:
    """Command emitted when a pending request should go to the wallet."""

    request: TransactionRequest
    from_address: Optional[str] = None
