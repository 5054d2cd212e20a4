"""
EVM account identifiers: validation, EIP-55 checksumming, byte conversion.

An account identifier is the last 20 bytes of keccak256 over the 64-byte
uncompressed secp256k1 public key (X || Y, no 0x04 prefix). It is rendered as
a 0x-prefixed hex string with EIP-55 mixed-case checksum.

Reference: https://eips.ethereum.org/EIPS/eip-55
"""

from __future__ import annotations

from eth_utils import (
    is_hex_address,
    keccak,
    to_canonical_address,
    to_checksum_address,
)

ADDRESS_LENGTH = 20

ZERO_ADDRESS = "0x" + "00" * ADDRESS_LENGTH


class AddressError(Exception):
    """Raised for invalid account identifiers."""

    pass


def validate_address(address: str) -> str:
    """
    Validate an account identifier and return its checksummed form.

    All-lowercase and all-uppercase hex is accepted without a checksum.
    Mixed-case input must carry a valid EIP-55 checksum.

    Args:
        address: 40 hex chars, optionally 0x-prefixed

    Returns:
        str: the EIP-55 checksummed address

    Raises:
        AddressError: if the address is malformed or has a bad checksum
    """
    if not isinstance(address, str):
        raise AddressError(f"Address must be a string, got {type(address).__name__}")
    if not is_hex_address(address):
        raise AddressError(f"Not a 20-byte hex address: {address!r}")

    body = address[2:] if address.lower().startswith("0x") else address
    is_mixed_case = body != body.lower() and body != body.upper()
    if is_mixed_case and to_checksum_address(address)[2:] != body:
        raise AddressError(f"EIP-55 checksum mismatch: {address}")

    return to_checksum_address(address)


def is_valid_address(address: str) -> bool:
    """
    Check if an address is valid without raising exceptions.

    Returns:
        bool: True if valid, False otherwise
    """
    try:
        validate_address(address)
    except AddressError:
        return False
    return True


def address_to_bytes(address: str) -> bytes:
    """Return the 20 raw bytes of a validated address."""
    return bytes(to_canonical_address(validate_address(address)))


def bytes_to_address(raw: bytes) -> str:
    """Return the checksummed address for 20 raw bytes."""
    if len(raw) != ADDRESS_LENGTH:
        raise AddressError(f"Expected {ADDRESS_LENGTH} bytes, got {len(raw)}")
    return to_checksum_address(raw)


def public_key_to_address(public_key: bytes) -> str:
    """
    Derive the account identifier for an uncompressed secp256k1 public key.

    Args:
        public_key: 64 bytes (X || Y), without the 0x04 SEC1 prefix

    Returns:
        str: checksummed address
    """
    if len(public_key) != 64:
        raise AddressError(f"Expected 64-byte public key, got {len(public_key)}")
    return bytes_to_address(keccak(public_key)[-ADDRESS_LENGTH:])


def same_address(a: str, b: str) -> bool:
    """Case-insensitive comparison of two addresses."""
    return a.lower() == b.lower()
