"""Wallet helpers for EVM private keys and addresses."""

from __future__ import annotations

import re

from eth_account import Account
from eth_utils import to_checksum_address

from ..core.errors import InvalidAddressError, TokenManagerError

_HEX_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")


class WalletError(TokenManagerError):
    """Generic wallet helper error."""


def with_hex_prefix(value: str) -> str:
    """Return ``value`` stripped and with a lowercase ``0x`` prefix."""

    value = value.strip()
    if value[:2].lower() == "0x":
        return "0x" + value[2:]
    return "0x" + value


def generate_private_key() -> str:
    """Generate a fresh 0x-prefixed private key."""

    account = Account.create()
    return with_hex_prefix(account.key.hex())


def normalize_evm_private_key(private_key: str) -> str:
    """Normalize an EVM private key to 0x-prefixed hex."""

    if not private_key or not private_key.strip():
        raise WalletError("EVM private key cannot be empty")

    key = with_hex_prefix(private_key)
    if len(key) != 66:
        raise WalletError("EVM private key must be 32 bytes (64 hex characters)")
    return key


def derive_evm_address(private_key: str) -> str:
    """Derive an EVM address from private key string."""

    normalized_key = normalize_evm_private_key(private_key)
    try:
        account = Account.from_key(normalized_key)
    except Exception as exc:
        raise WalletError(f"Invalid EVM private key: {exc}") from exc
    address: str = str(account.address)
    return address


def normalize_address(address: str) -> str:
    """Normalize user input into a checksummed 0x address."""

    if not address or not address.strip():
        raise InvalidAddressError("Address cannot be empty")
    candidate = with_hex_prefix(address)
    if not _HEX_ADDRESS.match(candidate):
        raise InvalidAddressError(f"Invalid address format: {address.strip()}")
    return str(to_checksum_address(candidate))
