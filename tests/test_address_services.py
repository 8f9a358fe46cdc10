import pytest

from defi_analyzer.errors import InvalidInputError
from defi_analyzer.services.address import (
    is_token_address,
    is_valid_wallet_address,
    require_wallet_address,
)


def test_valid_wallet_address_passes():
    address = "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"
    assert is_valid_wallet_address(address)
    assert require_wallet_address(address) == address


@pytest.mark.parametrize(
    "address,message",
    [
        ("d8dA6BF26964aF9D7eEd9e03E53415D37aA96045", "Invalid wallet address format"),
        ("0x1234", "Invalid wallet address length"),
        ("0x" + "1" * 41, "Invalid wallet address length"),
        ("0x" + "g" * 40, "Invalid wallet address format"),
        (None, "Invalid wallet address format"),
        (12345, "Invalid wallet address format"),
    ],
)
def test_invalid_wallet_addresses_rejected(address, message):
    assert not is_valid_wallet_address(address)
    with pytest.raises(InvalidInputError) as exc:
        require_wallet_address(address)
    assert str(exc.value) == message


def test_token_address_detection():
    assert is_token_address("0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48")
    assert not is_token_address("USDC")
    assert not is_token_address("")
    assert not is_token_address(None)
