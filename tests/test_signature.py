from eth_account import Account

from scablanders_auth.core.security import SigningContext, is_address, normalize_address
from tests.conftest import sign_text


def test_recover_signer_rejects_bad_inputs() -> None:
    """Ensure recover_signer returns None when given malformed signatures."""
    context = SigningContext()
    assert context.recover_signer("msg", "zz") is None
    assert context.recover_signer("msg", "0x1234") is None


def test_recover_signer_returns_lowercase_address() -> None:
    wallet = Account.create()
    signature = sign_text(wallet, "hello scablands")

    context = SigningContext()
    assert context.recover_signer("hello scablands", signature) == wallet.address.lower()
    assert context.recover_signer("hello scablands", signature[2:]) == wallet.address.lower()
    assert context.verify(wallet.address.upper().replace("0X", "0x"), "hello scablands", signature)
    assert not context.verify(wallet.address, "hello scablands!", signature)


def test_address_helpers() -> None:
    assert is_address("0x" + "aB" * 20)
    assert not is_address("0x" + "g" * 40)
    assert not is_address("ab" * 20)
    assert normalize_address(" 0xABC ") == "0xabc"
