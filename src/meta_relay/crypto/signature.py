"""
Recoverable secp256k1 signatures: signer recovery and digest signing.

Provides:
- SignatureVerifier: abstract "who signed this digest?" interface
- EthSignedMessageVerifier: recovery over the EIP-191 personal-message wrapping
  of a 32-byte hash (what wallets produce for ``signMessage(hash)``)
- RawDigestVerifier: recovery over the bare 32-byte digest
- sign_digest: deterministic, low-s, recoverable signing of a raw digest

Signature wire format: 65 bytes ``r (32) || s (32) || v (1)`` with
``v`` in {27, 28} (the legacy {0, 1} form is accepted as well).

Range and malleability checks happen here; the curve arithmetic for
recovery and signing is done by eth_keys.

References:
    [SEC1]   SEC 1 v2, §4.1.6 (public key recovery).
    [EIP-2]  s-values above n/2 are rejected as non-canonical.
    [EIP-191] "\\x19Ethereum Signed Message:\\n32" prefix for signed hashes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import keccak

from meta_relay.core.address import public_key_to_address

# ==============================================================================
# secp256k1 curve constants
# ==============================================================================

# Group order
SECP256K1_N = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141

SECP256K1_HALF_N = SECP256K1_N // 2

SIGNATURE_LENGTH = 65

DIGEST_LENGTH = 32

ETH_SIGNED_MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n32"

_POINT_AT_INFINITY = bytes(64)


# ==============================================================================
# Signature parsing and recovery
# ==============================================================================


def coerce_signature(signature: bytes | bytearray | str) -> bytes | None:
    """
    Normalize a signature given as bytes or (0x-)hex to raw bytes.

    Returns:
        bytes, or None if a string is not valid hex
    """
    if isinstance(signature, (bytes, bytearray)):
        return bytes(signature)
    if isinstance(signature, str):
        body = signature[2:] if signature.lower().startswith("0x") else signature
        try:
            return bytes.fromhex(body)
        except ValueError:
            return None
    return None


def split_signature(signature: bytes) -> tuple[int, int, int] | None:
    """
    Split a 65-byte signature into (r, s, y_parity).

    Returns:
        (r, s, parity) with parity in {0, 1}, or None when the signature is
        malformed: wrong length, r or s outside [1, n), high s, or unknown v.
    """
    if len(signature) != SIGNATURE_LENGTH:
        return None

    r = int.from_bytes(signature[:32], "big")
    s = int.from_bytes(signature[32:64], "big")
    v = signature[64]

    if not 0 < r < SECP256K1_N:
        return None
    if not 0 < s <= SECP256K1_HALF_N:
        return None

    if v in (27, 28):
        parity = v - 27
    elif v in (0, 1):
        parity = v
    else:
        return None
    return r, s, parity


def recover_public_key(digest: bytes, r: int, s: int, parity: int) -> bytes | None:
    """
    Recover the 64-byte uncompressed public key (X || Y) for a signature.

    Args:
        digest: the 32-byte message digest that was signed
        r, s: signature components, already range-checked
        parity: y parity of the ephemeral point R

    Returns:
        64 bytes, or None if r is not an x-coordinate on the curve or the
        recovered point is the identity.
    """
    try:
        signature = keys.Signature(vrs=(parity, r, s))
        public_key = signature.recover_public_key_from_msg_hash(digest)
    except (BadSignature, ValidationError):
        return None

    raw = public_key.to_bytes()
    if raw == _POINT_AT_INFINITY:
        return None
    return raw


def sign_digest(private_key: bytes, digest: bytes) -> bytes:
    """
    Produce a recoverable signature over a raw 32-byte digest.

    The nonce is derived deterministically (RFC 6979) and s is normalized to
    the lower half of the group order, so the same key and digest always yield
    the same signature.

    Args:
        private_key: 32-byte secp256k1 secret scalar
        digest: 32-byte digest to sign

    Returns:
        65-byte ``r || s || v`` signature with v in {27, 28}

    Raises:
        ValueError: if the key or digest has the wrong length
    """
    if len(private_key) != 32:
        raise ValueError(f"Expected 32-byte private key, got {len(private_key)}")
    if len(digest) != DIGEST_LENGTH:
        raise ValueError(f"Expected {DIGEST_LENGTH}-byte digest, got {len(digest)}")

    signature = keys.PrivateKey(private_key).sign_msg_hash(digest)
    return signature.r.to_bytes(32, "big") + signature.s.to_bytes(32, "big") + bytes([27 + signature.v])


# ==============================================================================
# Verifiers
# ==============================================================================


class SignatureVerifier(ABC):
    """
    Recovers the account that signed a 32-byte authorization hash.

    Implementations never raise for malformed input; they return None.
    Comparing the recovered account to an expected sender is the caller's job.
    """

    scheme: str = ""

    def recover_signer(self, digest: bytes, signature: bytes | bytearray | str) -> str | None:
        """
        Recover the checksummed signer address.

        Args:
            digest: the 32-byte authorization hash
            signature: 65-byte signature as bytes or hex

        Returns:
            str: the signer's address, or None if the signature is invalid
        """
        if len(digest) != DIGEST_LENGTH:
            return None
        raw = coerce_signature(signature)
        if raw is None:
            return None
        parts = split_signature(raw)
        if parts is None:
            return None

        r, s, parity = parts
        public_key = recover_public_key(self.signed_digest(digest), r, s, parity)
        if public_key is None:
            return None
        return public_key_to_address(public_key)

    @abstractmethod
    def signed_digest(self, digest: bytes) -> bytes:
        """Map an authorization hash to the digest the signer actually signed."""


class EthSignedMessageVerifier(SignatureVerifier):
    """Recovery over keccak256("\\x19Ethereum Signed Message:\\n32" || hash)."""

    scheme = "eth_signed_message"

    def signed_digest(self, digest: bytes) -> bytes:
        return keccak(ETH_SIGNED_MESSAGE_PREFIX + digest)


class RawDigestVerifier(SignatureVerifier):
    """Recovery directly over the authorization hash."""

    scheme = "raw_digest"

    def signed_digest(self, digest: bytes) -> bytes:
        return digest


_VERIFIERS: dict[str, type[SignatureVerifier]] = {
    EthSignedMessageVerifier.scheme: EthSignedMessageVerifier,
    RawDigestVerifier.scheme: RawDigestVerifier,
}


def get_verifier(scheme: str) -> SignatureVerifier:
    """
    Build the verifier registered for a scheme name.

    Raises:
        ValueError: for an unknown scheme
    """
    try:
        return _VERIFIERS[scheme]()
    except KeyError:
        raise ValueError(
            f"Unknown signature scheme {scheme!r}; expected one of {sorted(_VERIFIERS)}"
        ) from None
