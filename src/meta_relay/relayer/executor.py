"""
Relay Executor: executes signed transfer intents on behalf of their signers.

A relayer hands the executor an (intent, signature) pair. The executor
checks the signature, consumes the authorization hash in the replay ledger,
and asks the token ledger to move the funds using the allowance the sender
granted to the executor's address.

Pipeline (ConsumePolicy.BEFORE_TRANSFER, the default):
    1. h = encoder.hash(intent)
    2. signer = verifier.recover_signer(h, signature)   -> BAD_SIGNATURE
    3. signer == intent.sender                           -> SIGNER_MISMATCH
    4. replay_ledger.consume(h)                          -> REPLAY_DETECTED
    5. token_ledger.debit(...)                           -> TRANSFER_FAILED
    6. Executed(h, balances)

Under BEFORE_TRANSFER a failed debit still burns the authorization; a crash
between steps 4 and 5 loses the authorization rather than double-spending.
ConsumePolicy.AFTER_TRANSFER consumes only after a successful debit so the
signer may resubmit the same signature. Steps 4-5 then run under the replay
ledger's in-process sequencer lock, so the policy is refused for ledgers
without one (SqliteReplayLedger, which other processes may share).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from meta_relay.core.address import same_address, validate_address
from meta_relay.core.models import TransferIntent
from meta_relay.core.token_ledger import DebitResult, TokenLedger
from meta_relay.crypto.encoding import MessageEncoder, hash_to_hex
from meta_relay.crypto.signature import EthSignedMessageVerifier, SignatureVerifier
from meta_relay.relayer.replay import ConsumeResult, ReplayLedger

logger = logging.getLogger("meta_relay.relayer.executor")


class ConsumePolicy(str, Enum):
    BEFORE_TRANSFER = "before_transfer"
    AFTER_TRANSFER = "after_transfer"


class RejectReason(str, Enum):
    BAD_SIGNATURE = "bad_signature"
    SIGNER_MISMATCH = "signer_mismatch"
    REPLAY_DETECTED = "replay_detected"
    TRANSFER_FAILED = "transfer_failed"


_REJECT_MESSAGES = {
    RejectReason.BAD_SIGNATURE: "Signature is malformed or not recoverable",
    RejectReason.SIGNER_MISMATCH: "Invalid signature",
    RejectReason.REPLAY_DETECTED: "Already executed!",
    RejectReason.TRANSFER_FAILED: "Token transfer failed",
}


@dataclass(frozen=True)
class Executed:
    """
    A successfully executed authorization.

    Balances are those the token ledger reported for this debit; ledgers that
    cannot read them atomically with the transfer report a snapshot taken
    right after it.
    """

    hash: bytes
    sender_balance: int
    recipient_balance: int

    @property
    def hash_hex(self) -> str:
        return hash_to_hex(self.hash)


@dataclass(frozen=True)
class Rejected:
    """
    A terminal rejection. The same (intent, signature) pair will never
    execute; the signer must sign a new intent with a fresh nonce.

    Attributes:
        reason: why the submission was rejected
        hash: the authorization hash
        detail: human-readable explanation
        debit_result: the ledger's answer, for TRANSFER_FAILED only
    """

    reason: RejectReason
    hash: bytes
    detail: str
    debit_result: DebitResult | None = None

    @property
    def hash_hex(self) -> str:
        return hash_to_hex(self.hash)


SubmitOutcome = Executed | Rejected


class RelayExecutor:
    """
    The only component that consumes replay-ledger entries or moves tokens.

    Usage:
        executor = RelayExecutor(
            address=EXECUTOR_ADDRESS,
            replay_ledger=InMemoryReplayLedger(),
            token_ledger=ledger,
        )
        outcome = executor.submit(intent, signature)
    """

    def __init__(
        self,
        *,
        address: str,
        replay_ledger: ReplayLedger,
        token_ledger: TokenLedger,
        verifier: SignatureVerifier | None = None,
        encoder: MessageEncoder | None = None,
        consume_policy: ConsumePolicy = ConsumePolicy.BEFORE_TRANSFER,
    ) -> None:
        """
        Args:
            address: the executor's identity; senders approve this address
            replay_ledger: consumed-hash store
            token_ledger: external token bookkeeping
            verifier: signature scheme (default: EIP-191 personal message)
            encoder: intent encoder
            consume_policy: when the hash is consumed relative to the debit

        Raises:
            ValueError: for AFTER_TRANSFER with a replay ledger that has no
                in-process sequencer
        """
        self._address = validate_address(address)
        self.replay_ledger = replay_ledger
        self.token_ledger = token_ledger
        self.verifier = verifier or EthSignedMessageVerifier()
        self.encoder = encoder or MessageEncoder()
        self.consume_policy = ConsumePolicy(consume_policy)

        if self.consume_policy is ConsumePolicy.AFTER_TRANSFER and replay_ledger.sequencer is None:
            raise ValueError(
                "consume_policy 'after_transfer' needs a process-local replay ledger; "
                f"{type(replay_ledger).__name__} may be shared with other executors"
            )

    @property
    def address(self) -> str:
        return self._address

    def get_hash(self, intent: TransferIntent) -> bytes:
        """The authorization hash a signer must sign for this intent."""
        return self.encoder.hash(intent)

    def is_consumed(self, intent: TransferIntent) -> bool:
        return self.replay_ledger.is_consumed(self.encoder.hash(intent))

    def submit(self, intent: TransferIntent, signature: bytes | str) -> SubmitOutcome:
        """
        Verify and execute a signed intent.

        Never raises for a bad signature, replay or failed transfer; those
        come back as Rejected.

        Args:
            intent: the signer's transfer intent
            signature: 65-byte signature over the intent's hash

        Returns:
            Executed or Rejected
        """
        h = self.encoder.hash(intent)

        signer = self.verifier.recover_signer(h, signature)
        if signer is None:
            return self._reject(RejectReason.BAD_SIGNATURE, h, intent)
        if not same_address(signer, intent.sender):
            logger.warning(
                "Signer %s does not match claimed sender %s for %s",
                signer, intent.sender, hash_to_hex(h)[:18],
            )
            return self._reject(RejectReason.SIGNER_MISMATCH, h, intent)

        if self.consume_policy is ConsumePolicy.AFTER_TRANSFER:
            return self._execute_then_consume(intent, h)
        return self._consume_then_execute(intent, h)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _consume_then_execute(self, intent: TransferIntent, h: bytes) -> SubmitOutcome:
        if self.replay_ledger.consume(h) is ConsumeResult.ALREADY_CONSUMED:
            return self._reject(RejectReason.REPLAY_DETECTED, h, intent)
        return self._debit(intent, h)

    def _execute_then_consume(self, intent: TransferIntent, h: bytes) -> SubmitOutcome:
        with self.replay_ledger.sequencer:
            if self.replay_ledger.is_consumed(h):
                return self._reject(RejectReason.REPLAY_DETECTED, h, intent)
            outcome = self._debit(intent, h)
            if isinstance(outcome, Executed):
                if self.replay_ledger.consume(h) is ConsumeResult.ALREADY_CONSUMED:
                    logger.error(
                        "Hash %s was consumed by another writer during its transfer: %s",
                        outcome.hash_hex[:18], intent.summary(),
                    )
            return outcome

    def _debit(self, intent: TransferIntent, h: bytes) -> SubmitOutcome:
        result, sender_balance, recipient_balance = self.token_ledger.debit_with_balances(
            intent.sender,
            intent.recipient,
            intent.amount,
            intent.token_address,
            spender=self._address,
        )
        if result is not DebitResult.SUCCESS:
            return self._reject(RejectReason.TRANSFER_FAILED, h, intent, debit_result=result)

        executed = Executed(
            hash=h,
            sender_balance=sender_balance,
            recipient_balance=recipient_balance,
        )
        logger.info("Executed %s: %s", executed.hash_hex[:18], intent.summary())
        return executed

    def _reject(
        self,
        reason: RejectReason,
        h: bytes,
        intent: TransferIntent,
        debit_result: DebitResult | None = None,
    ) -> Rejected:
        detail = _REJECT_MESSAGES[reason]
        if debit_result is not None:
            detail = f"{detail}: {debit_result.value}"
        logger.warning("Rejected %s (%s): %s", hash_to_hex(h)[:18], reason.value, intent.summary())
        return Rejected(reason=reason, hash=h, detail=detail, debit_result=debit_result)
