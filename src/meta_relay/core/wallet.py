"""
Wallet: off-chain private key holder that signs transfer intents.

The relay core never sees a private key. Signers use this module (or any
other tool able to sign a 32-byte digest) to produce the (intent, signature)
pair they hand to a relayer.
"""

from __future__ import annotations

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount

from meta_relay.core.models import TransferIntent
from meta_relay.crypto.encoding import MessageEncoder
from meta_relay.crypto.signature import SECP256K1_N, sign_digest


class WalletError(Exception):
    pass


class Wallet:
    """
    Signing wallet backed by an eth_account local account.

    Usage:
        wallet = Wallet.create()
        wallet = Wallet.from_key("0x4c0883a6...")
        signature = wallet.sign_intent(intent)
    """

    def __init__(self, account: LocalAccount) -> None:
        self._account = account

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def create(cls) -> Wallet:
        """Generate a fresh random key."""
        return cls(Account.create())

    @classmethod
    def from_key(cls, private_key: str | bytes) -> Wallet:
        """
        Load a wallet from a 32-byte secret key.

        Args:
            private_key: raw bytes or (0x-)hex

        Raises:
            WalletError: if the key is not a valid secp256k1 scalar
        """
        if isinstance(private_key, str):
            body = private_key[2:] if private_key.lower().startswith("0x") else private_key
            try:
                raw = bytes.fromhex(body)
            except ValueError:
                raise WalletError("Private key is not valid hex") from None
        else:
            raw = bytes(private_key)

        if len(raw) != 32:
            raise WalletError(f"Private key must be 32 bytes, got {len(raw)}")
        if not 0 < int.from_bytes(raw, "big") < SECP256K1_N:
            raise WalletError("Private key is outside the secp256k1 scalar range")
        return cls(Account.from_key(raw))

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def address(self) -> str:
        return self._account.address

    # ------------------------------------------------------------------
    # Signing
    # ------------------------------------------------------------------

    def sign_hash(self, digest: bytes) -> bytes:
        """
        Sign a 32-byte hash as an EIP-191 personal message.

        Equivalent to ``signer.signMessage(arrayify(hash))`` in a browser
        wallet. Verify with EthSignedMessageVerifier.
        """
        if len(digest) != 32:
            raise WalletError(f"Expected a 32-byte hash, got {len(digest)} bytes")
        signed = self._account.sign_message(encode_defunct(primitive=digest))
        return bytes(signed.signature)

    def sign_raw_digest(self, digest: bytes) -> bytes:
        """Sign a 32-byte digest without any prefix. Verify with RawDigestVerifier."""
        if len(digest) != 32:
            raise WalletError(f"Expected a 32-byte digest, got {len(digest)} bytes")
        return sign_digest(bytes(self._account.key), digest)

    def sign_intent(self, intent: TransferIntent, encoder: MessageEncoder | None = None) -> bytes:
        """Hash an intent and sign the hash as a personal message."""
        encoder = encoder or MessageEncoder()
        return self.sign_hash(encoder.hash(intent))

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------

    def __repr__(self) -> str:
        return f"Wallet(address={self.address!r})"
