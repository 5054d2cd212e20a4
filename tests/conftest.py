"""Shared fixtures: well-known development keys, a funded token ledger, an executor."""

import pytest

from meta_relay.core.models import MAX_UINT256, TransferIntent, parse_units
from meta_relay.core.token_ledger import InMemoryTokenLedger
from meta_relay.core.wallet import Wallet
from meta_relay.relayer.executor import RelayExecutor
from meta_relay.relayer.replay import InMemoryReplayLedger

# Hardhat's default development accounts #0..#3
DEPLOYER_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
DEPLOYER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
USER_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
RELAYER_KEY = "0x5de4111afa1a4b94908f83103eb1f1706367c2e68ca870fc3fb9a804cdab365a"
RECIPIENT_KEY = "0x7c852118294e51e653712a81e05800f419141751be58f605c371e15141b007a6"

TOKEN_ADDRESS = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"
EXECUTOR_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"


@pytest.fixture
def user():
    return Wallet.from_key(USER_KEY)


@pytest.fixture
def recipient():
    return Wallet.from_key(RECIPIENT_KEY)


@pytest.fixture
def relayer():
    return Wallet.from_key(RELAYER_KEY)


@pytest.fixture
def token_ledger(user):
    """10,000 tokens minted to the user, executor approved for max allowance."""
    ledger = InMemoryTokenLedger()
    ledger.free_mint(TOKEN_ADDRESS, user.address, parse_units(10_000))
    ledger.approve(TOKEN_ADDRESS, user.address, EXECUTOR_ADDRESS, MAX_UINT256)
    return ledger


@pytest.fixture
def replay_ledger():
    return InMemoryReplayLedger()


@pytest.fixture
def executor(token_ledger, replay_ledger):
    return RelayExecutor(
        address=EXECUTOR_ADDRESS,
        replay_ledger=replay_ledger,
        token_ledger=token_ledger,
    )


@pytest.fixture
def make_intent(user, recipient):
    def _make(amount: int = parse_units(10), nonce: int = 1, **overrides) -> TransferIntent:
        fields = {
            "sender": user.address,
            "amount": amount,
            "recipient": recipient.address,
            "token_address": TOKEN_ADDRESS,
            "nonce": nonce,
        }
        fields.update(overrides)
        return TransferIntent(**fields)

    return _make
