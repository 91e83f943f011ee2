"""
Swap Module

Quote fetching, allowance checks and the swap attempt state machine.
"""

from .allowance import AllowanceChecker
from .amounts import derive_amount_out, from_smallest_unit, to_smallest_unit
from .models import (
    AllowanceState,
    Quote,
    SubmitTransaction,
    SwapPhase,
    SwapWidgetState,
    Token,
    TokenSide,
    TransactionKind,
    TransactionOutcome,
    TransactionRequest,
)
from .orchestrator import SwapOrchestrator
from .quote_fetcher import RateLimitedQuoteFetcher

__all__ = [
    # Components
    "RateLimitedQuoteFetcher",
    "AllowanceChecker",
    "SwapOrchestrator",
    # Models
    "AllowanceState",
    "Quote",
    "SubmitTransaction",
    "SwapPhase",
    "SwapWidgetState",
    "Token",
    "TokenSide",
    "TransactionKind",
    "TransactionOutcome",
    "TransactionRequest",
    # Amounts
    "derive_amount_out",
    "from_smallest_unit",
    "to_smallest_unit",
]
