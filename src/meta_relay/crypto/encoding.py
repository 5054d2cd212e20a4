"""
Canonical packed encoding of a TransferIntent and its authorization hash.

Layout (124 bytes, big-endian, fields in declaration order):

    offset  width  field
    0       20     sender          (raw address bytes)
    20      32     amount          (uint256)
    52      20     recipient       (raw address bytes)
    72      20     token_address   (raw address bytes)
    92      32     nonce           (uint256)

This is byte-identical to Solidity's
``abi.encodePacked(address, uint256, address, address, uint256)``, so a hash
computed here matches the one an on-chain verifier derives from the same
arguments. Every field has a fixed width, so there is no ambiguity in field
boundaries even though nothing is length-prefixed.

The authorization hash is keccak256 over the encoding.
"""

from __future__ import annotations

from eth_utils import keccak

from meta_relay.core.address import ADDRESS_LENGTH, address_to_bytes, bytes_to_address
from meta_relay.core.models import TransferIntent

UINT256_LENGTH = 32

# (field name, width) in encoding order
INTENT_LAYOUT: tuple[tuple[str, int], ...] = (
    ("sender", ADDRESS_LENGTH),
    ("amount", UINT256_LENGTH),
    ("recipient", ADDRESS_LENGTH),
    ("token_address", ADDRESS_LENGTH),
    ("nonce", UINT256_LENGTH),
)

ENCODED_LENGTH = sum(width for _, width in INTENT_LAYOUT)

HASH_LENGTH = 32


class EncodingError(Exception):
    """Raised when bytes cannot be decoded as a packed TransferIntent."""

    pass


class MessageEncoder:
    """
    Deterministic TransferIntent -> bytes -> authorization hash.

    Stateless; a single instance may be shared across threads.

    Usage:
        encoder = MessageEncoder()
        digest = encoder.hash(intent)
    """

    def encode(self, intent: TransferIntent) -> bytes:
        """
        Serialize an intent to its fixed 124-byte packed layout.

        Args:
            intent: a constructed (hence well-typed) TransferIntent

        Returns:
            bytes: the packed encoding
        """
        parts: list[bytes] = []
        for name, width in INTENT_LAYOUT:
            value = getattr(intent, name)
            if width == ADDRESS_LENGTH:
                parts.append(address_to_bytes(value))
            else:
                parts.append(value.to_bytes(width, "big"))
        return b"".join(parts)

    def hash(self, intent: TransferIntent) -> bytes:
        """Return the 32-byte keccak256 authorization hash of an intent."""
        return keccak(self.encode(intent))

    def decode(self, data: bytes) -> TransferIntent:
        """
        Parse a packed encoding back into a TransferIntent.

        Args:
            data: exactly ENCODED_LENGTH bytes

        Returns:
            TransferIntent: equal to the intent that produced ``data``

        Raises:
            EncodingError: if ``data`` has the wrong length
        """
        if len(data) != ENCODED_LENGTH:
            raise EncodingError(f"Expected {ENCODED_LENGTH} bytes, got {len(data)}")

        fields: dict[str, object] = {}
        offset = 0
        for name, width in INTENT_LAYOUT:
            chunk = data[offset:offset + width]
            offset += width
            if width == ADDRESS_LENGTH:
                fields[name] = bytes_to_address(chunk)
            else:
                fields[name] = int.from_bytes(chunk, "big")
        return TransferIntent(**fields)


def hash_to_hex(digest: bytes) -> str:
    """Render a hash as 0x-prefixed lowercase hex."""
    return "0x" + digest.hex()


def hex_to_hash(value: str) -> bytes:
    """
    Parse a 0x-prefixed (or bare) hex hash.

    Raises:
        ValueError: if the value is not 32 bytes of hex
    """
    body = value[2:] if value.lower().startswith("0x") else value
    raw = bytes.fromhex(body)
    if len(raw) != HASH_LENGTH:
        raise ValueError(f"Expected {HASH_LENGTH}-byte hash, got {len(raw)} bytes")
    return raw
