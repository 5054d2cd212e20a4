from pydantic import BaseModel, Field

from meta_relay.core.models import TransferIntent


class HashRequest(BaseModel):
    """Request model for computing an intent's authorization hash."""

    intent: TransferIntent = Field(..., description="Transfer intent to hash")


class HashResponse(BaseModel):
    """Authorization hash the signer must sign."""

    hash: str = Field(..., description="0x-prefixed keccak256 of the packed intent")


class SubmitRequest(BaseModel):
    """Request model for relaying a signed intent."""

    intent: TransferIntent = Field(..., description="The signer's transfer intent")
    signature: str = Field(..., description="65-byte r||s||v signature over the intent hash (hex)")


class SubmitResponse(BaseModel):
    """Outcome of a relay submission. Rejections are terminal for the pair."""

    status: str = Field(..., description="'executed' or 'rejected'")
    hash: str = Field(..., description="Authorization hash of the submitted intent")
    reason: str | None = Field(None, description="Rejection reason code, when rejected")
    detail: str | None = Field(None, description="Human-readable rejection message")
    sender_balance: int | None = Field(None, description="Sender balance after execution")
    recipient_balance: int | None = Field(None, description="Recipient balance after execution")


class ConsumedResponse(BaseModel):
    hash: str = Field(..., description="Queried authorization hash")
    consumed: bool = Field(..., description="Whether the hash has already been executed")


class BalanceResponse(BaseModel):
    token_address: str = Field(..., description="Token ledger identifier")
    account: str = Field(..., description="Account queried")
    balance: int = Field(..., description="Balance in the token's minor unit")


class MintRequest(BaseModel):
    """Development faucet: mint tokens to an account (the demo token's freeMint)."""

    account: str = Field(..., description="Account to credit")
    amount: int = Field(..., ge=0, description="Amount in minor units")


class ApproveRequest(BaseModel):
    """Development faucet: set an allowance. Defaults to the relay executor as spender."""

    owner: str = Field(..., description="Token owner granting the allowance")
    amount: int = Field(..., ge=0, description="Allowance in minor units")
    spender: str | None = Field(None, description="Spender; the executor address when omitted")
