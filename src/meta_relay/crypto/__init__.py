"""
meta_relay.crypto: Message encoding and signature primitives.

Provides:
- MessageEncoder: packed fixed-width TransferIntent encoding + keccak256 hash
- SignatureVerifier implementations for secp256k1 public-key recovery
- sign_digest: deterministic low-s recoverable signing of a raw digest
"""

from meta_relay.crypto.encoding import (
    ENCODED_LENGTH,
    INTENT_LAYOUT,
    EncodingError,
    MessageEncoder,
    hash_to_hex,
    hex_to_hash,
)
from meta_relay.crypto.signature import (
    SECP256K1_N,
    SIGNATURE_LENGTH,
    EthSignedMessageVerifier,
    RawDigestVerifier,
    SignatureVerifier,
    get_verifier,
    sign_digest,
)

__all__ = [
    # Encoding
    "ENCODED_LENGTH",
    "INTENT_LAYOUT",
    "EncodingError",
    "MessageEncoder",
    "hash_to_hex",
    "hex_to_hash",
    # Signatures
    "SECP256K1_N",
    "SIGNATURE_LENGTH",
    "SignatureVerifier",
    "EthSignedMessageVerifier",
    "RawDigestVerifier",
    "get_verifier",
    "sign_digest",
]
