import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from meta_relay.api.routes import router
from meta_relay.core.address import AddressError
from meta_relay.core.token_ledger import InMemoryTokenLedger, TokenLedgerError
from meta_relay.relayer.config import RelayConfig

logger = logging.getLogger("meta_relay.api.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Load configuration
    config = RelayConfig.from_env()

    # The in-memory ledger stands in for the external token ledger
    token_ledger = InMemoryTokenLedger()
    executor = config.build_executor(token_ledger)

    logger.info(
        "Relay executor %s ready (policy=%s, scheme=%s, replay_db=%s)",
        executor.address,
        config.consume_policy.value,
        config.signature_scheme,
        config.replay_db_path or "in-memory",
    )

    # Attach to app state
    app.state.config = config
    app.state.token_ledger = token_ledger
    app.state.executor = executor

    yield

    close = getattr(executor.replay_ledger, "close", None)
    if close is not None:
        close()


app = FastAPI(
    title="meta-relay - Meta-Transaction Relay API",
    description="Submit signed token transfer intents for gasless execution",
    version="0.1.0",
    lifespan=lifespan,
)

# Allow CORS for wallet front-ends
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routes
app.include_router(router)


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc)},
    )


@app.exception_handler(AddressError)
async def address_error_handler(request: Request, exc: AddressError):
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc)},
    )


@app.exception_handler(TokenLedgerError)
async def ledger_error_handler(request: Request, exc: TokenLedgerError):
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc)},
    )


@app.get("/health")
async def health_check():
    """Simple health check endpoint."""
    return {"status": "ok"}
