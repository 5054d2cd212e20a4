"""
Relay configuration and executor wiring.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from meta_relay.core.address import validate_address
from meta_relay.core.token_ledger import TokenLedger
from meta_relay.crypto.signature import EthSignedMessageVerifier, get_verifier
from meta_relay.relayer.executor import ConsumePolicy, RelayExecutor
from meta_relay.relayer.replay import InMemoryReplayLedger, ReplayLedger, SqliteReplayLedger

# Well-known development identity for the executor contract
DEFAULT_EXECUTOR_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"


@dataclass
class RelayConfig:
    """
    Settings for a relay executor.

    Args:
        executor_address:  identity senders must approve as spender
        consume_policy:    consume the hash before (default) or after the debit
        replay_db_path:    SQLite file for a durable replay ledger; None = in-memory
        signature_scheme:  "eth_signed_message" (default) or "raw_digest"
        enable_faucet:     expose dev mint/approve routes on the HTTP API
    """
    executor_address: str = DEFAULT_EXECUTOR_ADDRESS
    consume_policy: ConsumePolicy = ConsumePolicy.BEFORE_TRANSFER
    replay_db_path: str | None = None
    signature_scheme: str = EthSignedMessageVerifier.scheme
    enable_faucet: bool = True

    def __post_init__(self) -> None:
        self.executor_address = validate_address(self.executor_address)
        self.consume_policy = ConsumePolicy(self.consume_policy)
        if self.consume_policy is ConsumePolicy.AFTER_TRANSFER and self.replay_db_path:
            raise ValueError(
                "consume_policy 'after_transfer' cannot be combined with replay_db_path; "
                "a durable replay ledger may be shared by executors in other processes"
            )
        get_verifier(self.signature_scheme)

    @classmethod
    def from_env(cls) -> RelayConfig:
        """
        Read settings from META_RELAY_* environment variables.

        Raises:
            ValueError: for an unknown consume policy or signature scheme,
                or for after_transfer together with a replay database
            AddressError: for a malformed executor address
        """
        return cls(
            executor_address=os.getenv("META_RELAY_EXECUTOR_ADDRESS", DEFAULT_EXECUTOR_ADDRESS),
            consume_policy=ConsumePolicy(
                os.getenv("META_RELAY_CONSUME_POLICY", ConsumePolicy.BEFORE_TRANSFER.value)
            ),
            replay_db_path=os.getenv("META_RELAY_REPLAY_DB") or None,
            signature_scheme=os.getenv("META_RELAY_SIGNATURE_SCHEME", EthSignedMessageVerifier.scheme),
            enable_faucet=os.getenv("META_RELAY_ENABLE_FAUCET", "1") not in ("0", "false", "no"),
        )

    def build_replay_ledger(self) -> ReplayLedger:
        """SQLite ledger when replay_db_path is set, otherwise in-memory."""
        if self.replay_db_path:
            return SqliteReplayLedger(self.replay_db_path)
        return InMemoryReplayLedger()

    def build_executor(
        self,
        token_ledger: TokenLedger,
        replay_ledger: ReplayLedger | None = None,
    ) -> RelayExecutor:
        """Wire a RelayExecutor from these settings."""
        if replay_ledger is None:
            replay_ledger = self.build_replay_ledger()
        return RelayExecutor(
            address=self.executor_address,
            replay_ledger=replay_ledger,
            token_ledger=token_ledger,
            verifier=get_verifier(self.signature_scheme),
            consume_policy=self.consume_policy,
        )
