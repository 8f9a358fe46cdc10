"""Helpers for validating wallet and token addresses."""

from __future__ import annotations

import re

from ..errors import InvalidInputError

_EVM_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def is_valid_wallet_address(address: object) -> bool:
    """Return True for a 0x-prefixed, 42 character hex address."""

    if not isinstance(address, str):
        return False
    return bool(_EVM_ADDRESS_RE.match(address))


def is_token_address(identifier: str | None) -> bool:
    return bool(identifier) and identifier.startswith("0x")


def require_wallet_address(address: object) -> str:
    """Validate a wallet address before any provider is contacted."""

    if not isinstance(address, str) or not address.startswith("0x"):
        raise InvalidInputError("Invalid wallet address format")
    if len(address) != 42:
        raise InvalidInputError("Invalid wallet address length")
    if not is_valid_wallet_address(address):
        raise InvalidInputError("Invalid wallet address format")
    return address
