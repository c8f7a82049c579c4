"""Exception hierarchy raised by token operations and the chain client."""

from __future__ import annotations

from typing import Optional


class TokenManagerError(Exception):
    """Base class for all token manager errors."""


class InvalidAddressError(TokenManagerError, ValueError):
    """An address could not be parsed into a 20-byte hex address."""


class InvalidAmountError(TokenManagerError, ValueError):
    """An amount string is not a usable decimal number."""


class NoTokenConnectedError(TokenManagerError):
    """A token operation was requested with no token connected."""

    def __init__(self, message: str = "No token connected. Please connect to a token first.") -> None:
        super().__init__(message)


class InsufficientAllowanceError(TokenManagerError):
    """The spender's allowance does not cover a transferFrom request."""

    def __init__(self, allowance: int, requested: int, message: Optional[str] = None) -> None:
        self.allowance = allowance
        self.requested = requested
        super().__init__(message or f"Insufficient allowance: have {allowance}, need {requested}")


class ChainError(TokenManagerError):
    """RPC, submission or confirmation failure reported by the chain."""


class TransactionRevertedError(ChainError):
    """A transaction was mined with a failed status."""

    def __init__(self, tx_hash: str) -> None:
        self.tx_hash = tx_hash
        super().__init__(f"Transaction {tx_hash} reverted (execution reverted)")


class BootstrapError(TokenManagerError):
    """The session could not be established at startup."""
