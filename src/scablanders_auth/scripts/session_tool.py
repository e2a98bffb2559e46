"""Debug helper for session tokens and sign-in challenges.

Usage:
    python -m scablanders_auth.scripts.session_tool mint 0xAbC...
    python -m scablanders_auth.scripts.session_tool decode <token>
    python -m scablanders_auth.scripts.session_tool challenge 0xAbC... <nonce>
"""
from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

from scablanders_auth.core.security import is_address
from scablanders_auth.core.settings import settings
from scablanders_auth.services.nonce import NonceIssuer
from scablanders_auth.services.nonce_store import InMemoryNonceStore
from scablanders_auth.services.session import SessionCodec, SessionRejected


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Inspect Scablanders session tokens")
    sub = parser.add_subparsers(dest="command", required=True)

    mint = sub.add_parser("mint", help="Mint a session token for an address")
    mint.add_argument("address")

    decode = sub.add_parser("decode", help="Resolve a session token to its address")
    decode.add_argument("token")

    challenge = sub.add_parser("challenge", help="Render the challenge an address should sign")
    challenge.add_argument("address")
    challenge.add_argument("nonce")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    codec = SessionCodec.from_settings(settings)

    if args.command == "mint":
        if not is_address(args.address):
            print(f"Not an address: {args.address!r}", file=sys.stderr)
            return 2
        print(codec.create_session_token(args.address))
        return 0

    if args.command == "decode":
        try:
            print(codec.decode(args.token))
        except SessionRejected as rejection:
            print(f"Rejected: {rejection.reason.value}", file=sys.stderr)
            return 1
        return 0

    try:
        text = NonceIssuer(InMemoryNonceStore()).build_challenge(args.address, args.nonce)
    except ValueError as err:
        print(f"Invalid challenge parameters: {err}", file=sys.stderr)
        return 2
    print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
