"""User-friendly error messages with actionable solutions."""

from __future__ import annotations

import logging
from enum import Enum
from typing import List, Optional, Sequence

from pydantic import ValidationError

from ..core.errors import (
    InsufficientAllowanceError,
    InvalidAddressError,
    InvalidAmountError,
    NoTokenConnectedError,
)
from .wallets import WalletError

logger = logging.getLogger(__name__)


class ErrorCategory(Enum):
    WALLET = "wallet"
    NETWORK = "network"
    TOKEN = "token"
    VALIDATION = "validation"
    SYSTEM = "system"


class UserFriendlyError:
    def __init__(
        self,
        category: ErrorCategory,
        title: str,
        message: str,
        solutions: Sequence[str],
        original_error: Optional[str] = None,
    ):
        self.category = category
        self.title = title
        self.message = message
        self.solutions: List[str] = list(solutions)
        self.original_error = original_error

    def format_for_user(self) -> str:
        """Format error for display on the console."""
        output = f"❌ {self.title}: {self.message}"
        if self.original_error:
            output += f"\n   Details: {self.original_error}"
        if self.solutions:
            output += "\n💡 How to fix:"
            for i, solution in enumerate(self.solutions, 1):
                output += f"\n   {i}. {solution}"
        return output


class ErrorMessageGenerator:
    """Generate user-friendly error messages from technical errors."""

    @staticmethod
    def from_chain_error(error_msg: str) -> UserFriendlyError:
        """Convert EVM RPC and transaction errors to user-friendly messages."""
        error_lower = error_msg.lower()

        if "insufficient funds" in error_lower:
            return UserFriendlyError(
                category=ErrorCategory.WALLET,
                title="Insufficient Funds",
                message="The current account cannot pay for this transaction's gas.",
                solutions=[
                    "Fund the current account with the chain's native currency",
                    "Switch to an account that holds funds (menu option 12)",
                ],
                original_error=error_msg,
            )

        if "timed out" in error_lower or "timeout" in error_lower:
            return UserFriendlyError(
                category=ErrorCategory.NETWORK,
                title="Confirmation Timed Out",
                message="The transaction was not confirmed in time. It may still be mined later.",
                solutions=[
                    "Check the transaction on the chain before retrying",
                    "Increase RWA_TX_TIMEOUT if the chain produces blocks slowly",
                ],
                original_error=error_msg,
            )

        if "revert" in error_lower:
            return UserFriendlyError(
                category=ErrorCategory.TOKEN,
                title="Transaction Reverted",
                message="The contract rejected this call.",
                solutions=[
                    "Mint and burn are restricted to the token owner",
                    "Check that the account holds enough tokens or allowance",
                ],
                original_error=error_msg,
            )

        if "nonce" in error_lower:
            return UserFriendlyError(
                category=ErrorCategory.NETWORK,
                title="Nonce Conflict",
                message="Another transaction from this account is pending or was replaced.",
                solutions=["Wait for pending transactions to be mined and try again"],
                original_error=error_msg,
            )

        if any(keyword in error_lower for keyword in ["connection", "connect", "network", "rpc", "refused"]):
            return UserFriendlyError(
                category=ErrorCategory.NETWORK,
                title="Network Connection Error",
                message="Unable to reach the chain's RPC endpoint.",
                solutions=[
                    "Check that the node is running and RPC_URL is correct",
                    "Try again in a few seconds",
                ],
                original_error=error_msg,
            )

        return UserFriendlyError(
            category=ErrorCategory.SYSTEM,
            title="Operation Failed",
            message="The chain call could not be completed.",
            solutions=[
                "Check the token address and your inputs",
                "Try the operation again",
            ],
            original_error=error_msg,
        )

    @staticmethod
    def from_validation_error(field: str, error_msg: str) -> UserFriendlyError:
        """Convert validation errors to user-friendly messages."""
        if "address" in field.lower() or field.lower().endswith("owner"):
            return UserFriendlyError(
                category=ErrorCategory.VALIDATION,
                title="Invalid Address",
                message=f"The {field} you provided is not a valid EVM address.",
                solutions=[
                    "Addresses are 40 hex characters, optionally prefixed with 0x",
                    "Make sure there are no typos",
                ],
                original_error=error_msg,
            )

        if "amount" in field.lower():
            return UserFriendlyError(
                category=ErrorCategory.VALIDATION,
                title="Invalid Amount",
                message="The amount you specified is not valid.",
                solutions=["Use a non-negative decimal number (e.g., 10, 0.5)"],
                original_error=error_msg,
            )

        if "key" in field.lower():
            return UserFriendlyError(
                category=ErrorCategory.WALLET,
                title="Invalid Private Key",
                message="The private key could not be used to derive an address.",
                solutions=["Private keys are 64 hex characters, optionally prefixed with 0x"],
                original_error=error_msg,
            )

        return UserFriendlyError(
            category=ErrorCategory.VALIDATION,
            title="Invalid Input",
            message=f"The {field} you provided is not valid.",
            solutions=["Check the format of your input"],
            original_error=error_msg,
        )

    @staticmethod
    def no_token_connected() -> UserFriendlyError:
        return UserFriendlyError(
            category=ErrorCategory.TOKEN,
            title="No Token Connected",
            message="No token connected. Please connect to a token first.",
            solutions=["Create a token (option 1) or connect to one (option 2)"],
        )


def describe_error(error: Exception) -> UserFriendlyError:
    """Classify any error raised inside an operation."""
    error_msg = str(error)
    if isinstance(error, NoTokenConnectedError):
        return ErrorMessageGenerator.no_token_connected()
    if isinstance(error, InsufficientAllowanceError):
        return UserFriendlyError(
            category=ErrorCategory.TOKEN,
            title="Insufficient Allowance",
            message="The sender has not approved enough tokens for the current account.",
            solutions=["Ask the sender to approve a larger amount (option 6)"],
            original_error=error_msg,
        )
    if isinstance(error, InvalidAmountError):
        return ErrorMessageGenerator.from_validation_error("amount", error_msg)
    if isinstance(error, InvalidAddressError):
        return ErrorMessageGenerator.from_validation_error("address", error_msg)
    if isinstance(error, WalletError):
        return ErrorMessageGenerator.from_validation_error("private key", error_msg)
    if isinstance(error, ValidationError):
        errors = error.errors()
        field = str(errors[0]["loc"][0]) if errors and errors[0].get("loc") else "input"
        message = errors[0].get("msg", error_msg) if errors else error_msg
        return ErrorMessageGenerator.from_validation_error(field.replace("_", " "), message)
    return ErrorMessageGenerator.from_chain_error(error_msg)


def format_error_for_cli(action: str, error: Exception) -> str:
    """Log ``error`` and return the console text for a failed ``action``."""
    logger.error(f"Error {action}: {error}", exc_info=logger.isEnabledFor(logging.DEBUG))
    friendly = describe_error(error)
    return f"Error {action}.\n{friendly.format_for_user()}"
