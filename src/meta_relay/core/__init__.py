"""core module init"""
from meta_relay.core.address import (
    ZERO_ADDRESS,
    AddressError,
    address_to_bytes,
    bytes_to_address,
    is_valid_address,
    public_key_to_address,
    same_address,
    validate_address,
)
from meta_relay.core.models import (
    MAX_UINT256,
    TransferIntent,
    format_units,
    parse_units,
)
from meta_relay.core.token_ledger import (
    DebitResult,
    InMemoryTokenLedger,
    TokenLedger,
    TokenLedgerError,
)

__all__ = [
    "AddressError",
    "DebitResult",
    "InMemoryTokenLedger",
    "MAX_UINT256",
    "TokenLedger",
    "TokenLedgerError",
    "TransferIntent",
    "ZERO_ADDRESS",
    "address_to_bytes",
    "bytes_to_address",
    "format_units",
    "is_valid_address",
    "parse_units",
    "public_key_to_address",
    "same_address",
    "validate_address",
]
