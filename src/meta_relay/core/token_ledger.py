"""
Token ledger boundary used by the relay executor, plus an in-memory reference.

The relay executor only ever calls ``debit_with_balances``: an ERC-20
``transferFrom`` performed by the executor on the sender's behalf, followed
by the two resulting balances. Implementations provide ``debit`` and
``balance_of``; the default ``debit_with_balances`` is built from them.
Allowance enforcement belongs to the ledger.

InMemoryTokenLedger keeps ERC-20 style books for any number of token
addresses. An allowance of MAX_UINT256 is treated as infinite and is not
decremented by transfers, matching OpenZeppelin's ERC-20.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from enum import Enum

from meta_relay.core.address import validate_address
from meta_relay.core.models import MAX_UINT256

logger = logging.getLogger("meta_relay.core.token_ledger")


class TokenLedgerError(Exception):
    """Raised for invalid ledger operations (negative amounts, overflow)."""

    pass


class DebitResult(str, Enum):
    SUCCESS = "success"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    INSUFFICIENT_ALLOWANCE = "insufficient_allowance"


class TokenLedger(ABC):
    """Boundary the relay executor uses to move funds."""

    @abstractmethod
    def debit(
        self,
        sender: str,
        recipient: str,
        amount: int,
        token_address: str,
        *,
        spender: str,
    ) -> DebitResult:
        """Move ``amount`` from sender to recipient using spender's allowance."""

    @abstractmethod
    def balance_of(self, token_address: str, account: str) -> int:
        """Return an account's balance of a token."""

    def debit_with_balances(
        self,
        sender: str,
        recipient: str,
        amount: int,
        token_address: str,
        *,
        spender: str,
    ) -> tuple[DebitResult, int, int]:
        """
        Debit, then report the sender's and recipient's balances.

        The default reads the balances after ``debit`` returns, so concurrent
        transfers touching the same accounts may show up in them. Ledgers that
        can read both balances inside the debit's critical section override this.

        Returns:
            (result, sender_balance, recipient_balance)
        """
        result = self.debit(sender, recipient, amount, token_address, spender=spender)
        return (
            result,
            self.balance_of(token_address, sender),
            self.balance_of(token_address, recipient),
        )


class InMemoryTokenLedger(TokenLedger):
    """
    Thread-safe multi-token ERC-20 style ledger.

    Usage:
        ledger = InMemoryTokenLedger()
        ledger.free_mint(token, user, parse_units(10_000))
        ledger.approve(token, owner=user, spender=executor.address, amount=MAX_UINT256)
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        # token -> account -> balance
        self._balances: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
        # token -> (owner, spender) -> allowance
        self._allowances: dict[str, dict[tuple[str, str], int]] = defaultdict(lambda: defaultdict(int))
        self._supply: dict[str, int] = defaultdict(int)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def balance_of(self, token_address: str, account: str) -> int:
        token, acct = validate_address(token_address), validate_address(account)
        with self._lock:
            return self._balances[token][acct]

    def allowance(self, token_address: str, owner: str, spender: str) -> int:
        token = validate_address(token_address)
        key = (validate_address(owner), validate_address(spender))
        with self._lock:
            return self._allowances[token][key]

    def total_supply(self, token_address: str) -> int:
        token = validate_address(token_address)
        with self._lock:
            return self._supply[token]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def free_mint(self, token_address: str, account: str, amount: int) -> int:
        """
        Credit freshly minted tokens to an account.

        Returns:
            int: the account's new balance

        Raises:
            TokenLedgerError: on a negative amount or uint256 supply overflow
        """
        if amount < 0:
            raise TokenLedgerError(f"Cannot mint a negative amount: {amount}")
        token, acct = validate_address(token_address), validate_address(account)
        with self._lock:
            if self._supply[token] + amount > MAX_UINT256:
                raise TokenLedgerError("Mint would overflow uint256 total supply")
            self._supply[token] += amount
            self._balances[token][acct] += amount
            balance = self._balances[token][acct]
        logger.debug("Minted %d of %s to %s", amount, token, acct)
        return balance

    def approve(self, token_address: str, owner: str, spender: str, amount: int) -> None:
        """Set (not add to) spender's allowance over owner's tokens."""
        if not 0 <= amount <= MAX_UINT256:
            raise TokenLedgerError(f"Allowance out of uint256 range: {amount}")
        token = validate_address(token_address)
        key = (validate_address(owner), validate_address(spender))
        with self._lock:
            self._allowances[token][key] = amount

    def debit(
        self,
        sender: str,
        recipient: str,
        amount: int,
        token_address: str,
        *,
        spender: str,
    ) -> DebitResult:
        result, _, _ = self.debit_with_balances(
            sender, recipient, amount, token_address, spender=spender
        )
        return result

    def debit_with_balances(
        self,
        sender: str,
        recipient: str,
        amount: int,
        token_address: str,
        *,
        spender: str,
    ) -> tuple[DebitResult, int, int]:
        """Debit and read both balances under one hold of the ledger lock."""
        token = validate_address(token_address)
        src, dst = validate_address(sender), validate_address(recipient)
        key = (src, validate_address(spender))

        with self._lock:
            balances = self._balances[token]
            allowance = self._allowances[token][key]
            if allowance < amount:
                result = DebitResult.INSUFFICIENT_ALLOWANCE
            elif balances[src] < amount:
                result = DebitResult.INSUFFICIENT_BALANCE
            else:
                if allowance != MAX_UINT256:
                    self._allowances[token][key] = allowance - amount
                balances[src] -= amount
                balances[dst] += amount
                result = DebitResult.SUCCESS
            return result, balances[src], balances[dst]
