"""
Core data models for meta-transaction relaying.
All token amounts are integers in the token's minor unit (10**18 per whole
token for an 18-decimal token).
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from meta_relay.core.address import AddressError, validate_address

UINT256_CEILING = 2**256
MAX_UINT256 = UINT256_CEILING - 1

DEFAULT_DECIMALS = 18


def parse_units(amount: int | str | Decimal, decimals: int = DEFAULT_DECIMALS) -> int:
    """Convert a whole-token amount to minor units, e.g. parse_units(10) == 10 * 10**18."""
    value = Decimal(str(amount)) * (Decimal(10) ** decimals)
    if value != value.to_integral_value():
        raise ValueError(f"{amount} has more than {decimals} decimal places")
    return int(value)


def format_units(amount: int, decimals: int = DEFAULT_DECIMALS) -> str:
    """Human-readable whole-token amount."""
    return str(Decimal(amount) / (Decimal(10) ** decimals))


class TransferIntent(BaseModel):
    """
    A signer's request to move `amount` of `token_address` from `sender` to
    `recipient`.

    The nonce is a uniqueness tag chosen by the signer. Any value is valid and
    no ordering between nonces is enforced; it only makes the signed message
    unique per authorization.

    Field order is significant: it is the order used by the packed encoding.
    """

    model_config = ConfigDict(frozen=True)

    sender: str
    amount: int = Field(..., ge=0, lt=UINT256_CEILING, strict=True)
    recipient: str
    token_address: str
    nonce: int = Field(..., ge=0, lt=UINT256_CEILING, strict=True)

    @field_validator("sender", "recipient", "token_address", mode="before")
    @classmethod
    def _checksum_address(cls, value: object) -> str:
        try:
            return validate_address(value)  # type: ignore[arg-type]
        except AddressError as e:
            raise ValueError(str(e)) from None

    def summary(self) -> str:
        """One-line description for logs."""
        return (
            f"{self.sender[:10]}... -> {self.recipient[:10]}... "
            f"amount={self.amount} token={self.token_address[:10]}... nonce={self.nonce}"
        )
