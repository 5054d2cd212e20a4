"""
meta_relay.relayer: Execution of signed transfer intents.

Provides:
- RelayExecutor: verify signature, consume authorization hash, debit tokens
- ReplayLedger backends: InMemoryReplayLedger, SqliteReplayLedger
- RelayConfig: environment-driven wiring
"""

from meta_relay.relayer.config import RelayConfig
from meta_relay.relayer.executor import (
    ConsumePolicy,
    Executed,
    Rejected,
    RejectReason,
    RelayExecutor,
)
from meta_relay.relayer.replay import (
    ConsumeResult,
    InMemoryReplayLedger,
    ReplayLedger,
    SqliteReplayLedger,
)

__all__ = [
    "ConsumePolicy",
    "ConsumeResult",
    "Executed",
    "InMemoryReplayLedger",
    "Rejected",
    "RejectReason",
    "RelayConfig",
    "RelayExecutor",
    "ReplayLedger",
    "SqliteReplayLedger",
]
