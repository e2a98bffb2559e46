"""Signature utilities built on secp256k1 message recovery."""
from __future__ import annotations

import re
from dataclasses import dataclass, field

from eth_account import Account
from eth_account.messages import encode_defunct

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
_SIGNATURE_HEX_LENGTH = 130  # 65 bytes: r (32) || s (32) || v (1)


def is_address(value: str) -> bool:
    """Return True if `value` looks like a 20-byte hex address."""
    return bool(_ADDRESS_RE.match(value))


def normalize_address(value: str) -> str:
    """Return the canonical lowercase form of an address."""
    return value.strip().lower()


@dataclass(frozen=True)
class SigningContext:
    """Immutable recovery context for EIP-191 ``personal_sign`` messages.

    Built once at startup and shared read-only by every verifier; holds the
    account backend used to recover signers so no module-level curve state is
    needed.
    """

    scheme: str = "personal_sign"
    account: type[Account] = field(default=Account, repr=False)

    def recover_signer(self, message: str, signature_hex: str) -> str | None:
        """Recover the lowercase address that produced `signature_hex` over `message`.

        Args:
            message: Exact text that the wallet signed.
            signature_hex: Hex-encoded 65-byte signature, ``0x`` prefix optional.

        Returns:
            The recovered address, or None if the signature is malformed.
        """
        cleaned = signature_hex.strip()
        if cleaned.startswith(("0x", "0X")):
            cleaned = cleaned[2:]
        if len(cleaned) != _SIGNATURE_HEX_LENGTH:
            return None
        try:
            signature = bytes.fromhex(cleaned)
            signable = encode_defunct(text=message)
            recovered = self.account.recover_message(signable, signature=signature)
        except Exception:
            return None
        return normalize_address(recovered)

    def verify(self, address: str, message: str, signature_hex: str) -> bool:
        """Return True if `signature_hex` over `message` was produced by `address`."""
        recovered = self.recover_signer(message, signature_hex)
        if recovered is None:
            return False
        return recovered == normalize_address(address)
