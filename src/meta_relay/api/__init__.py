"""
API module for meta-relay.

Provides FastAPI routes and models for exposing the relay executor as a REST API.
"""

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

__all__ = [
    "ApproveRequest",
    "BalanceResponse",
    "ConsumedResponse",
    "HashRequest",
    "HashResponse",
    "MintRequest",
    "SubmitRequest",
    "SubmitResponse",
]
