"""
meta-relay: gasless token transfers through signed meta-transactions.

A signer authorizes a transfer off-line by signing the hash of a
TransferIntent; any relayer can then submit it to a RelayExecutor, which
verifies the signature, refuses replays, and moves the tokens.

Usage:
    from meta_relay import RelayExecutor, TransferIntent, Wallet
    from meta_relay.relayer import InMemoryReplayLedger
"""

from meta_relay.core.models import TransferIntent
from meta_relay.core.token_ledger import InMemoryTokenLedger
from meta_relay.crypto.encoding import MessageEncoder
from meta_relay.core.wallet import Wallet
from meta_relay.relayer.executor import Executed, Rejected, RejectReason, RelayExecutor

__version__ = "0.1.0"
__all__ = [
    "Executed",
    "InMemoryTokenLedger",
    "MessageEncoder",
    "Rejected",
    "RejectReason",
    "RelayExecutor",
    "TransferIntent",
    "Wallet",
]
