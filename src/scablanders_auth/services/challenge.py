"""Sign-In-With-Ethereum (EIP-4361) challenge messages.

A challenge is the exact text a wallet signs. It is rendered as::

    scablanders.game wants you to sign in with your Ethereum account:
    0xAbC...

    Welcome to Scablanders! ...

    URI: https://scablanders.game
    Version: 1
    Chain ID: 1
    Nonce: 32891756aBcDeF12
    Issued At: 2024-01-01T00:00:00.000Z

`ChallengeMessage.parse` accepts the same layout back. ``Issued At`` is
optional when parsing; messages without it are accepted and carry
``issued_at=None``.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from scablanders_auth.core.security import is_address
from scablanders_auth.utils.time import isoformat_z

_HEADER_SUFFIX = " wants you to sign in with your Ethereum account:"
_HEADER_RE = re.compile(
    r"^(?:(?P<scheme>[a-zA-Z][a-zA-Z0-9+\-.]*)://)?(?P<domain>[^\s/?#]+)"
    + re.escape(_HEADER_SUFFIX)
    + r"$"
)
_NONCE_RE = re.compile(r"^[a-zA-Z0-9]{8,}$")

# Field label -> model attribute, in the order EIP-4361 renders them.
_FIELD_LABELS: dict[str, str] = {
    "URI": "uri",
    "Version": "version",
    "Chain ID": "chain_id",
    "Nonce": "nonce",
    "Issued At": "issued_at",
    "Expiration Time": "expiration_time",
    "Not Before": "not_before",
    "Request ID": "request_id",
}
_REQUIRED_LABELS = ("URI", "Version", "Chain ID", "Nonce")


class ChallengeMessage(BaseModel):
    """Structured form of a signed challenge."""

    model_config = ConfigDict(frozen=True)

    domain: str = Field(..., min_length=1, description="RFC 3986 authority requesting the sign-in")
    address: str = Field(..., description="Address performing the signing")
    statement: str | None = Field(None, description="Human-readable assertion shown to the user")
    uri: str = Field(..., min_length=1, description="Subject of the signing")
    version: str = Field("1", description="Message format version")
    chain_id: int = Field(1, ge=1, description="EIP-155 chain id")
    nonce: str = Field(..., description="Server-issued single-use nonce")
    issued_at: datetime | None = Field(None, description="When the message was generated")
    expiration_time: datetime | None = None
    not_before: datetime | None = None
    request_id: str | None = None
    resources: tuple[str, ...] = ()
    scheme: str | None = None

    @field_validator("address")
    @classmethod
    def _check_address(cls, value: str) -> str:
        if not is_address(value):
            raise ValueError("address must be 0x followed by 40 hex characters")
        return value

    @field_validator("nonce")
    @classmethod
    def _check_nonce(cls, value: str) -> str:
        if not _NONCE_RE.match(value):
            raise ValueError("nonce must be at least 8 alphanumeric characters")
        return value

    @field_validator("version")
    @classmethod
    def _check_version(cls, value: str) -> str:
        if value != "1":
            raise ValueError("unsupported message version")
        return value

    @field_validator("statement")
    @classmethod
    def _check_statement(cls, value: str | None) -> str | None:
        if value is not None and "\n" in value:
            raise ValueError("statement must be a single line")
        return value

    @field_validator("issued_at", "expiration_time", "not_before")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    def prepare_message(self) -> str:
        """Render the message text that the wallet is asked to sign."""
        authority = f"{self.scheme}://{self.domain}" if self.scheme else self.domain
        prefix = f"{authority}{_HEADER_SUFFIX}\n{self.address}\n\n"
        if self.statement is not None:
            prefix += f"{self.statement}\n"

        suffix = [
            f"URI: {self.uri}",
            f"Version: {self.version}",
            f"Chain ID: {self.chain_id}",
            f"Nonce: {self.nonce}",
        ]
        if self.issued_at is not None:
            suffix.append(f"Issued At: {isoformat_z(self.issued_at)}")
        if self.expiration_time is not None:
            suffix.append(f"Expiration Time: {isoformat_z(self.expiration_time)}")
        if self.not_before is not None:
            suffix.append(f"Not Before: {isoformat_z(self.not_before)}")
        if self.request_id is not None:
            suffix.append(f"Request ID: {self.request_id}")
        if self.resources:
            suffix.append("Resources:")
            suffix.extend(f"- {resource}" for resource in self.resources)
        return prefix + "\n" + "\n".join(suffix)

    @classmethod
    def parse(cls, text: str) -> ChallengeMessage:
        """Parse challenge text into a `ChallengeMessage`.

        Raises:
            ValueError: If the text does not follow the challenge layout or a
                field fails validation (pydantic's ValidationError is a
                ValueError).
        """
        lines = text.split("\n")
        if len(lines) < 5:
            raise ValueError("Challenge message is truncated")

        header = _HEADER_RE.match(lines[0])
        if header is None:
            raise ValueError("Challenge message header not recognised")
        if lines[2] != "":
            raise ValueError("Expected a blank line after the address")

        statement: str | None = None
        index = 4
        if lines[3] != "":
            statement = lines[3]
            if len(lines) < 6 or lines[4] != "":
                raise ValueError("Expected a blank line after the statement")
            index = 5

        fields: dict[str, object] = {}
        resources: list[str] = []
        remaining = lines[index:]
        position = 0
        while position < len(remaining):
            line = remaining[position]
            position += 1
            if line == "Resources:":
                while position < len(remaining) and remaining[position].startswith("- "):
                    resources.append(remaining[position][2:])
                    position += 1
                if position != len(remaining):
                    raise ValueError("Resources must be the last field")
                break
            label, sep, value = line.partition(": ")
            attribute = _FIELD_LABELS.get(label)
            if not sep or attribute is None:
                raise ValueError(f"Unexpected line in challenge message: {line!r}")
            if attribute in fields:
                raise ValueError(f"Duplicate field {label!r}")
            fields[attribute] = value

        missing = [label for label in _REQUIRED_LABELS if _FIELD_LABELS[label] not in fields]
        if missing:
            raise ValueError(f"Missing required fields: {', '.join(missing)}")

        return cls(
            scheme=header.group("scheme"),
            domain=header.group("domain"),
            address=lines[1],
            statement=statement,
            resources=tuple(resources),
            **fields,  # type: ignore[arg-type]
        )
