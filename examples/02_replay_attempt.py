#!/usr/bin/env python3
"""
Example 02: Replay and forgery attempts.

Shows that a signed intent executes exactly once, and that a signature
cannot be reused for a different amount or recipient.

Usage:
    python examples/02_replay_attempt.py
    META_RELAY_REPLAY_DB=relay.db python examples/02_replay_attempt.py
"""

import logging

from meta_relay import InMemoryTokenLedger, Rejected, TransferIntent, Wallet
from meta_relay.core.models import MAX_UINT256, parse_units
from meta_relay.relayer import RelayConfig

logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

TOKEN = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"

config = RelayConfig.from_env()
ledger = InMemoryTokenLedger()
executor = config.build_executor(ledger)

user = Wallet.create()
attacker = Wallet.create()
ledger.free_mint(TOKEN, user.address, parse_units(100))
ledger.approve(TOKEN, user.address, executor.address, MAX_UINT256)

intent = TransferIntent(
    sender=user.address,
    amount=parse_units(10),
    recipient=attacker.address,
    token_address=TOKEN,
    nonce=1,
)
signature = user.sign_intent(intent)

print("=== Replay Protection Demo ===")
print()

print("[Test 1] First submission")
print(f"  -> {executor.submit(intent, signature)}")

print()
print("[Test 2] Same intent and signature again")
outcome = executor.submit(intent, signature)
if isinstance(outcome, Rejected):
    print(f"  -> BLOCKED: {outcome.reason.value} ({outcome.detail})")

print()
print("[Test 3] Reuse the signature for 90 tokens")
forged = TransferIntent(**{**intent.model_dump(), "amount": parse_units(90), "nonce": 2})
outcome = executor.submit(forged, signature)
if isinstance(outcome, Rejected):
    print(f"  -> BLOCKED: {outcome.reason.value} ({outcome.detail})")

print()
print(f"Attacker balance: {ledger.balance_of(TOKEN, attacker.address)}")
