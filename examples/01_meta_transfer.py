#!/usr/bin/env python3
"""
Example 01: Gasless token transfer.

A user signs a transfer intent off-chain; a relayer submits it and the
executor moves the tokens using the allowance the user granted it.

Usage:
    python examples/01_meta_transfer.py
"""

import logging

from meta_relay import InMemoryTokenLedger, TransferIntent, Wallet
from meta_relay.core.models import MAX_UINT256, format_units, parse_units
from meta_relay.relayer import RelayConfig

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

TOKEN = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"

user = Wallet.create()
recipient = Wallet.create()

# Executor with default settings (in-memory replay ledger, EIP-191 signatures)
ledger = InMemoryTokenLedger()
executor = RelayConfig().build_executor(ledger)

# The user funds their account and approves the executor once
ledger.free_mint(TOKEN, user.address, parse_units(10_000))
ledger.approve(TOKEN, user.address, executor.address, MAX_UINT256)

print("=== Meta-Transfer Demo ===")
print(f"User:      {user.address}")
print(f"Recipient: {recipient.address}")
print(f"Executor:  {executor.address}")
print()

for nonce in (1, 2):
    intent = TransferIntent(
        sender=user.address,
        amount=parse_units(10),
        recipient=recipient.address,
        token_address=TOKEN,
        nonce=nonce,
    )
    signature = user.sign_hash(executor.get_hash(intent))

    # Anyone holding (intent, signature) can relay it
    outcome = executor.submit(intent, signature)
    print(f"[nonce={nonce}] {type(outcome).__name__} {outcome.hash_hex}")

print()
print(f"User balance:      {format_units(ledger.balance_of(TOKEN, user.address))}")
print(f"Recipient balance: {format_units(ledger.balance_of(TOKEN, recipient.address))}")
