"""Wallet address format checks."""

import re
import secrets

WALLET_ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")


def is_valid_wallet_address(address: str | None) -> bool:
    """True for a 0x-prefixed, 20-byte hex address (any case)."""
    return bool(address) and WALLET_ADDRESS_PATTERN.fullmatch(address) is not None


def generate_wallet_address() -> str:
    """Random well-formed address, for fixtures and local demos."""
    return "0x" + secrets.token_hex(20)
