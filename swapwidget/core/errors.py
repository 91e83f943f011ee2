"""
Error Classification

Every failure the swap widget can hit on its way to the aggregator or the
wallet is mapped onto one of these types. None of them are fatal: callers turn
them into a notification and a safe fallback state.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import httpx


class ErrorCategory(str, Enum):
    """Categories of errors surfaced to the widget."""

    TRANSPORT = "transport"       # Network failure, timeout, 5xx
    CLIENT = "client"             # 400-class response from the aggregator
    DATA = "data"                 # Response body had an unexpected shape
    WALLET = "wallet"             # Wallet declined or failed to submit
    VALIDATION = "validation"     # Bad user input


@dataclass
class ErrorContext:
    """Additional context about an error."""

    category: ErrorCategory = ErrorCategory.TRANSPORT
    endpoint: Optional[str] = None
    status_code: Optional[int] = None
    details: Dict[str, Any] = field(default_factory=dict)


class SwapError(Exception):
    """Base class for all swap widget errors."""

    category: ErrorCategory = ErrorCategory.TRANSPORT

    def __init__(self, message: str, context: Optional[ErrorContext] = None):
        super().__init__(message)
        self.message = message
        self.context = context or ErrorContext(category=self.category)


class TransportError(SwapError):
    """Network/timeout failure or a non-400-class error status."""

    category = ErrorCategory.TRANSPORT


class DataError(TransportError):
    """Malformed or unexpected response body.

    Handled exactly like a transport failure.
    """

    category = ErrorCategory.DATA


class ClientError(SwapError):
    """400-class response; carries the server's description when it sent one."""

    category = ErrorCategory.CLIENT

    def __init__(
        self,
        message: str,
        status_code: int,
        description: Optional[str] = None,
        endpoint: Optional[str] = None,
    ):
        super().__init__(
            message,
            context=ErrorContext(
                category=ErrorCategory.CLIENT,
                endpoint=endpoint,
                status_code=status_code,
                details={"description": description} if description else {},
            ),
        )
        self.status_code = status_code
        self.description = description


class WalletRejection(SwapError):
    """The wallet refused to sign or broadcast the transaction."""

    category = ErrorCategory.WALLET


class InvalidAmountError(SwapError, ValueError):
    """Input amount cannot be converted to token units."""

    category = ErrorCategory.VALIDATION


class InvalidTransitionError(Exception):
    """Raised when an invalid swap phase transition is attempted."""

    def __init__(self, from_phase: Enum, to_phase: Enum, message: Optional[str] = None):
        self.from_phase = from_phase
        self.to_phase = to_phase
        self.message = message or f"Cannot transition from {from_phase.value} to {to_phase.value}"
        super().__init__(self.message)


def _extract_description(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        description = body.get("description")
        if isinstance(description, str) and description:
            return description
    return None


def classify_http_error(exc: Exception, endpoint: Optional[str] = None) -> SwapError:
    """Map an httpx exception onto the widget's error taxonomy."""
    if isinstance(exc, SwapError):
        return exc

    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if 400 <= status < 500:
            return ClientError(
                f"Aggregator rejected request ({status})",
                status_code=status,
                description=_extract_description(exc.response),
                endpoint=endpoint,
            )
        return TransportError(
            f"Aggregator returned {status}",
            context=ErrorContext(endpoint=endpoint, status_code=status),
        )

    if isinstance(exc, httpx.TimeoutException):
        return TransportError(
            "Aggregator request timed out",
            context=ErrorContext(endpoint=endpoint, details={"error": str(exc)}),
        )

    if isinstance(exc, httpx.RequestError):
        return TransportError(
            f"Network error: {exc}",
            context=ErrorContext(endpoint=endpoint),
        )

    if isinstance(exc, (ValueError, KeyError, TypeError)):
        return DataError(
            f"Unexpected aggregator response: {exc}",
            context=ErrorContext(category=ErrorCategory.DATA, endpoint=endpoint),
        )

    return TransportError(str(exc) or exc.__class__.__name__, context=ErrorContext(endpoint=endpoint))
