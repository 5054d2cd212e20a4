from fastapi import APIRouter, HTTPException, Request

from meta_relay.api.models import (
    ApproveRequest,
    BalanceResponse,
    ConsumedResponse,
    HashRequest,
    HashResponse,
    MintRequest,
    SubmitRequest,
    SubmitResponse,
)
from meta_relay.core.address import validate_address
from meta_relay.crypto.encoding import hash_to_hex, hex_to_hash
from meta_relay.relayer.executor import Executed

router = APIRouter(tags=["Meta-Transaction Relay"])


def get_executor(request: Request):
    """Dependency to retrieve the initialized RelayExecutor from app state."""
    executor = getattr(request.app.state, "executor", None)
    if not executor:
        raise HTTPException(status_code=500, detail="relay executor not initialized")
    return executor


def get_faucet_ledger(request: Request):
    """Token ledger for the dev faucet routes; 404 when the faucet is disabled."""
    config = getattr(request.app.state, "config", None)
    if config is None or not config.enable_faucet:
        raise HTTPException(status_code=404, detail="faucet disabled")
    return request.app.state.token_ledger


@router.post("/relay/hash", response_model=HashResponse)
def get_hash(request: Request, req: HashRequest):
    """Compute the authorization hash a signer must sign for an intent."""
    executor = get_executor(request)
    return HashResponse(hash=hash_to_hex(executor.get_hash(req.intent)))


@router.post("/relay/submit", response_model=SubmitResponse)
def submit(request: Request, req: SubmitRequest):
    """
    Relay a signed intent.

    Bad signatures, signer mismatches, replays and failed transfers are
    returned with status "rejected"; none of them is retriable with the same
    signature.
    """
    executor = get_executor(request)
    outcome = executor.submit(req.intent, req.signature)

    if isinstance(outcome, Executed):
        return SubmitResponse(
            status="executed",
            hash=outcome.hash_hex,
            sender_balance=outcome.sender_balance,
            recipient_balance=outcome.recipient_balance,
        )
    return SubmitResponse(
        status="rejected",
        hash=outcome.hash_hex,
        reason=outcome.reason.value,
        detail=outcome.detail,
    )


@router.get("/relay/consumed/{digest}", response_model=ConsumedResponse)
def is_consumed(request: Request, digest: str):
    """Check whether an authorization hash has already been executed."""
    executor = get_executor(request)
    raw = hex_to_hash(digest)
    return ConsumedResponse(hash=hash_to_hex(raw), consumed=executor.replay_ledger.is_consumed(raw))


@router.get("/tokens/{token_address}/balances/{account}", response_model=BalanceResponse)
def balance_of(request: Request, token_address: str, account: str):
    executor = get_executor(request)
    token, acct = validate_address(token_address), validate_address(account)
    return BalanceResponse(
        token_address=token,
        account=acct,
        balance=executor.token_ledger.balance_of(token, acct),
    )


@router.post("/tokens/{token_address}/mint", response_model=BalanceResponse)
def mint(request: Request, token_address: str, req: MintRequest):
    ledger = get_faucet_ledger(request)
    token, acct = validate_address(token_address), validate_address(req.account)
    balance = ledger.free_mint(token, acct, req.amount)
    return BalanceResponse(token_address=token, account=acct, balance=balance)


@router.post("/tokens/{token_address}/approve")
def approve(request: Request, token_address: str, req: ApproveRequest):
    ledger = get_faucet_ledger(request)
    executor = get_executor(request)
    spender = req.spender or executor.address
    ledger.approve(token_address, req.owner, spender, req.amount)
    return {
        "token_address": validate_address(token_address),
        "owner": validate_address(req.owner),
        "spender": validate_address(spender),
        "allowance": ledger.allowance(token_address, req.owner, spender),
    }
