from datetime import date
from decimal import Decimal

import pytest

from claimledger.core.errors import EmptyAddressError, InvalidAddressFormatError, ValidationFailedError

VALID_ADDRESS = "0x" + "ab12" * 10


def test_valid_address_saved(ledger, saved_state):
    receipt = ledger.set_wallet_address(VALID_ADDRESS)

    assert len(VALID_ADDRESS) == 42
    assert receipt.address == VALID_ADDRESS
    assert ledger.wallet_address == VALID_ADDRESS
    assert saved_state()["walletAddress"] == VALID_ADDRESS


def test_address_is_trimmed(ledger):
    ledger.set_wallet_address(f"  {VALID_ADDRESS}\n")
    assert ledger.wallet_address == VALID_ADDRESS


@pytest.mark.parametrize(
    "candidate,error",
    [
        ("", EmptyAddressError),
        ("   ", EmptyAddressError),
        (None, EmptyAddressError),
        ("0xabc", InvalidAddressFormatError),
        ("1x" + "a" * 40, InvalidAddressFormatError),
        ("a" * 42, InvalidAddressFormatError),
        (VALID_ADDRESS + "0", InvalidAddressFormatError),
    ],
)
def test_invalid_addresses_rejected(ledger, store, candidate, error):
    with pytest.raises(error) as excinfo:
        ledger.set_wallet_address(candidate)

    assert isinstance(excinfo.value, ValidationFailedError)
    assert ledger.wallet_address == ""
    assert store.read() is None


def test_rejected_address_keeps_previous(ledger):
    ledger.set_wallet_address(VALID_ADDRESS)
    with pytest.raises(ValidationFailedError):
        ledger.set_wallet_address("0xabc")
    assert ledger.wallet_address == VALID_ADDRESS


def test_address_shape_only_no_hex_check(ledger):
    # Any 42-char 0x-prefixed text passes; there is no checksum verification.
    ledger.set_wallet_address("0x" + "z" * 40)
    assert ledger.wallet_address.startswith("0xz")


def test_share_bonus_repeatable(ledger, saved_state):
    for expected in (5, 10, 15, 20):
        receipt = ledger.award_share_bonus()
        assert receipt.bonus == 5
        assert receipt.balance == Decimal(expected)

    assert ledger.total_bonus == Decimal("20")
    assert ledger.total_claimed == Decimal("0")
    assert Decimal(saved_state()["balance"]) == Decimal("20")


def test_share_bonus_does_not_touch_streak(ledger):
    ledger.claim(date(2026, 10, 19))
    ledger.award_share_bonus()
    ledger.award_share_bonus()

    assert ledger.current_streak == 1
    assert ledger.can_claim_today(date(2026, 10, 19)) is False
    assert ledger.balance == ledger.total_claimed + ledger.total_bonus == Decimal("20")


def test_share_bonus_amount_configurable(store):
    from claimledger.features.ledger.service import ClaimLedger

    ledger = ClaimLedger(store, share_bonus=25)
    assert ledger.award_share_bonus().balance == Decimal("25")
