"""
Unit tests for RelayExecutor: the verify / consume / debit pipeline.
"""

import logging

import pytest

from meta_relay.core.models import MAX_UINT256, parse_units
from meta_relay.core.token_ledger import DebitResult, InMemoryTokenLedger
from meta_relay.crypto.encoding import MessageEncoder
from meta_relay.crypto.signature import RawDigestVerifier
from meta_relay.relayer.executor import (
    ConsumePolicy,
    Executed,
    Rejected,
    RejectReason,
    RelayExecutor,
)
from meta_relay.relayer.replay import InMemoryReplayLedger, SqliteReplayLedger

from tests.conftest import EXECUTOR_ADDRESS, TOKEN_ADDRESS


class _StaleReadReplayLedger(InMemoryReplayLedger):
    """Reports every hash as unconsumed, like a read that lost a race."""

    def is_consumed(self, digest):
        return False


class TestSubmit:

    def test_executes_valid_intent(self, executor, make_intent, user, recipient):
        intent = make_intent()
        outcome = executor.submit(intent, user.sign_intent(intent))

        assert isinstance(outcome, Executed)
        assert outcome.hash == MessageEncoder().hash(intent)
        assert outcome.sender_balance == parse_units(9_990)
        assert outcome.recipient_balance == parse_units(10)

    def test_consumes_hash(self, executor, replay_ledger, make_intent, user):
        intent = make_intent()
        executor.submit(intent, user.sign_intent(intent))
        assert executor.is_consumed(intent)
        assert replay_ledger.is_consumed(executor.get_hash(intent))

    def test_hex_signature(self, executor, make_intent, user):
        intent = make_intent()
        sig = "0x" + user.sign_intent(intent).hex()
        assert isinstance(executor.submit(intent, sig), Executed)

    def test_bad_signature(self, executor, replay_ledger, make_intent):
        outcome = executor.submit(make_intent(), b"\x01" * 10)
        assert isinstance(outcome, Rejected)
        assert outcome.reason is RejectReason.BAD_SIGNATURE
        assert len(replay_ledger) == 0

    def test_signature_by_someone_else(self, executor, replay_ledger, make_intent, relayer):
        """A relayer cannot sign on the user's behalf."""
        intent = make_intent()
        outcome = executor.submit(intent, relayer.sign_intent(intent))
        assert isinstance(outcome, Rejected)
        assert outcome.reason is RejectReason.SIGNER_MISMATCH
        assert not replay_ledger.is_consumed(outcome.hash)

    def test_tampered_amount(self, executor, token_ledger, make_intent, user):
        signed = make_intent(amount=parse_units(10))
        tampered = make_intent(amount=parse_units(1_000))
        outcome = executor.submit(tampered, user.sign_intent(signed))
        assert isinstance(outcome, Rejected)
        assert outcome.reason in (RejectReason.SIGNER_MISMATCH, RejectReason.BAD_SIGNATURE)
        assert token_ledger.balance_of(TOKEN_ADDRESS, tampered.sender) == parse_units(10_000)

    def test_tampered_recipient(self, executor, make_intent, user, relayer):
        signed = make_intent()
        redirected = make_intent(recipient=relayer.address)
        outcome = executor.submit(redirected, user.sign_intent(signed))
        assert isinstance(outcome, Rejected)
        assert outcome.reason in (RejectReason.SIGNER_MISMATCH, RejectReason.BAD_SIGNATURE)

    def test_replay(self, executor, token_ledger, make_intent, user, recipient):
        intent = make_intent()
        sig = user.sign_intent(intent)
        executor.submit(intent, sig)

        outcome = executor.submit(intent, sig)
        assert isinstance(outcome, Rejected)
        assert outcome.reason is RejectReason.REPLAY_DETECTED
        assert outcome.detail == "Already executed!"
        assert token_ledger.balance_of(TOKEN_ADDRESS, recipient.address) == parse_units(10)

    def test_nonces_do_not_interfere(self, executor, make_intent, user):
        first, second = make_intent(nonce=1), make_intent(nonce=2)
        executor.submit(first, user.sign_intent(first))
        assert not executor.is_consumed(second)
        assert isinstance(executor.submit(second, user.sign_intent(second)), Executed)

    def test_nonces_need_not_be_ordered(self, executor, make_intent, user):
        for nonce in (42, 7, 2**128):
            intent = make_intent(nonce=nonce)
            assert isinstance(executor.submit(intent, user.sign_intent(intent)), Executed)


class TestTransferFailure:

    def test_insufficient_balance_burns_authorization(self, executor, replay_ledger, make_intent, user):
        intent = make_intent(amount=parse_units(10_001))
        sig = user.sign_intent(intent)

        outcome = executor.submit(intent, sig)
        assert outcome.reason is RejectReason.TRANSFER_FAILED
        assert outcome.debit_result is DebitResult.INSUFFICIENT_BALANCE
        assert replay_ledger.is_consumed(outcome.hash)

        # Same pair is now a replay
        assert executor.submit(intent, sig).reason is RejectReason.REPLAY_DETECTED

    def test_insufficient_allowance(self, make_intent, user):
        ledger = InMemoryTokenLedger()
        ledger.free_mint(TOKEN_ADDRESS, user.address, parse_units(100))
        executor = RelayExecutor(
            address=EXECUTOR_ADDRESS,
            replay_ledger=InMemoryReplayLedger(),
            token_ledger=ledger,
        )
        intent = make_intent()
        outcome = executor.submit(intent, user.sign_intent(intent))
        assert outcome.reason is RejectReason.TRANSFER_FAILED
        assert outcome.debit_result is DebitResult.INSUFFICIENT_ALLOWANCE
        assert "insufficient_allowance" in outcome.detail


class TestAfterTransferPolicy:

    @pytest.fixture
    def retry_executor(self, token_ledger, replay_ledger):
        return RelayExecutor(
            address=EXECUTOR_ADDRESS,
            replay_ledger=replay_ledger,
            token_ledger=token_ledger,
            consume_policy=ConsumePolicy.AFTER_TRANSFER,
        )

    def test_failed_transfer_leaves_hash_unconsumed(self, retry_executor, token_ledger, replay_ledger, make_intent, user):
        intent = make_intent(amount=parse_units(10_500))
        sig = user.sign_intent(intent)

        outcome = retry_executor.submit(intent, sig)
        assert outcome.reason is RejectReason.TRANSFER_FAILED
        assert not replay_ledger.is_consumed(outcome.hash)

        # Top up and resubmit the very same signature
        token_ledger.free_mint(TOKEN_ADDRESS, user.address, parse_units(500))
        assert isinstance(retry_executor.submit(intent, sig), Executed)
        assert retry_executor.submit(intent, sig).reason is RejectReason.REPLAY_DETECTED

    def test_success_consumes(self, retry_executor, make_intent, user):
        intent = make_intent()
        retry_executor.submit(intent, user.sign_intent(intent))
        assert retry_executor.is_consumed(intent)

    def test_rejects_ledger_without_sequencer(self, token_ledger, tmp_path):
        ledger = SqliteReplayLedger(str(tmp_path / "shared.db"))
        try:
            with pytest.raises(ValueError, match="after_transfer"):
                RelayExecutor(
                    address=EXECUTOR_ADDRESS,
                    replay_ledger=ledger,
                    token_ledger=token_ledger,
                    consume_policy=ConsumePolicy.AFTER_TRANSFER,
                )
        finally:
            ledger.close()

    def test_consume_collision_after_debit_is_logged(self, token_ledger, make_intent, user, caplog):
        """Another writer consuming the hash mid-transfer is reported, not ignored."""
        intent = make_intent()
        ledger = _StaleReadReplayLedger()
        ledger.consume(MessageEncoder().hash(intent))
        executor = RelayExecutor(
            address=EXECUTOR_ADDRESS,
            replay_ledger=ledger,
            token_ledger=token_ledger,
            consume_policy=ConsumePolicy.AFTER_TRANSFER,
        )

        with caplog.at_level(logging.ERROR, logger="meta_relay.relayer.executor"):
            outcome = executor.submit(intent, user.sign_intent(intent))

        assert isinstance(outcome, Executed)
        assert any("consumed by another writer" in r.getMessage() for r in caplog.records)


class TestConfiguration:

    def test_address_is_checksummed(self, token_ledger):
        executor = RelayExecutor(
            address=EXECUTOR_ADDRESS.lower(),
            replay_ledger=InMemoryReplayLedger(),
            token_ledger=token_ledger,
        )
        assert executor.address == EXECUTOR_ADDRESS

    def test_policy_from_string(self, token_ledger):
        executor = RelayExecutor(
            address=EXECUTOR_ADDRESS,
            replay_ledger=InMemoryReplayLedger(),
            token_ledger=token_ledger,
            consume_policy="after_transfer",
        )
        assert executor.consume_policy is ConsumePolicy.AFTER_TRANSFER

    def test_raw_digest_scheme(self, token_ledger, make_intent, user):
        executor = RelayExecutor(
            address=EXECUTOR_ADDRESS,
            replay_ledger=InMemoryReplayLedger(),
            token_ledger=token_ledger,
            verifier=RawDigestVerifier(),
        )
        intent = make_intent()
        digest = executor.get_hash(intent)

        assert isinstance(executor.submit(intent, user.sign_raw_digest(digest)), Executed)

    def test_raw_scheme_rejects_personal_signature(self, token_ledger, make_intent, user):
        executor = RelayExecutor(
            address=EXECUTOR_ADDRESS,
            replay_ledger=InMemoryReplayLedger(),
            token_ledger=token_ledger,
            verifier=RawDigestVerifier(),
        )
        intent = make_intent()
        outcome = executor.submit(intent, user.sign_intent(intent))
        assert outcome.reason in (RejectReason.SIGNER_MISMATCH, RejectReason.BAD_SIGNATURE)


def test_max_allowance_untouched_after_execution(executor, token_ledger, make_intent, user):
    intent = make_intent()
    executor.submit(intent, user.sign_intent(intent))
    assert token_ledger.allowance(TOKEN_ADDRESS, user.address, EXECUTOR_ADDRESS) == MAX_UINT256


class _DebitOnlyTokenLedger(InMemoryTokenLedger):
    def balance_of(self, token_address, account):
        raise AssertionError("balances must come from the debit itself")


def test_executed_balances_come_from_debit(make_intent, user):
    ledger = _DebitOnlyTokenLedger()
    ledger.free_mint(TOKEN_ADDRESS, user.address, parse_units(10_000))
    ledger.approve(TOKEN_ADDRESS, user.address, EXECUTOR_ADDRESS, MAX_UINT256)
    executor = RelayExecutor(
        address=EXECUTOR_ADDRESS,
        replay_ledger=InMemoryReplayLedger(),
        token_ledger=ledger,
    )

    intent = make_intent()
    outcome = executor.submit(intent, user.sign_intent(intent))
    assert isinstance(outcome, Executed)
    assert (outcome.sender_balance, outcome.recipient_balance) == (parse_units(9_990), parse_units(10))
