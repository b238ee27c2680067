"""
FastAPI endpoints for the auction registry.

Every route goes through the AuctionDispatcher; the caller is taken from the
X-Caller-Id header and bound for the duration of the request.
"""

import argparse
import logging
from contextlib import asynccontextmanager
from typing import Any, List, Optional

from fastapi import FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from auctions.config import AuctionConfig
from auctions.dispatch import AuctionDispatcher, OperationResult
from auctions.errors import (
    AuctionError,
    AuthorizationError,
    NotFoundError,
    StateError,
    StorageFault,
    ValidationError,
)
from auctions.identity import RequestIdentity
from auctions.records import INCOMPLETE_INPUT
from auctions.store import AuctionStore
from observability.metrics import setup_metrics_endpoint_fastapi
from observability.tracing import setup_tracing, shutdown_tracing

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: 400,
    AuthorizationError: 403,
    NotFoundError: 404,
    StateError: 409,
    StorageFault: 500,
}


# Request/Response models


class CreateAuctionRequest(BaseModel):
    """Request to create an auction"""

    assetType: Optional[str] = Field(None, description="Kind of asset, e.g. 'art'")
    assetDescription: Optional[str] = Field(None, description="Asset description")
    ownerName: Optional[str] = Field(None, description="Owner display name")
    status: Optional[str] = Field(None, description="active | inactive")


class UpdateAuctionRequest(BaseModel):
    """Fields to change; omitted fields are left unchanged"""

    assetType: Optional[str] = None
    assetDescription: Optional[str] = None
    ownerName: Optional[str] = None


class RpcRequest(BaseModel):
    """Positional arguments for a named operation"""

    args: List[Any] = Field(default_factory=list)


class AuctionRecord(BaseModel):
    """Auction as returned to clients"""

    id: str
    assetType: str
    assetDescription: str
    ownerName: str
    ownerId: str
    startDate: int
    endDate: int
    status: str


def respond(result: OperationResult) -> Any:
    """Wire value of a successful result; errors go to the exception handler"""
    if not result.is_ok:
        raise result.err
    return result.to_dict()["Ok"]


def _error_response(error: AuctionError) -> JSONResponse:
    status_code = ERROR_STATUS.get(type(error), 500)
    detail = error.message
    if isinstance(error, StorageFault):
        logger.error(f"Storage fault: {error.message}")
        detail = "Storage failure"
    return JSONResponse(
        status_code=status_code, content={"detail": detail, "kind": error.kind}
    )


def create_app(
    config: Optional[AuctionConfig] = None,
    store: Optional[AuctionStore] = None,
    identity: Optional[RequestIdentity] = None,
) -> FastAPI:
    """
    Build the HTTP application.

    Args:
        config: Settings (default AuctionConfig.from_env())
        store: Pre-built store; its identity source must be `identity`
        identity: Request-scoped identity source bound per request
    """
    config = config or AuctionConfig.from_env()
    owns_store = store is None
    if store is None:
        identity = identity or RequestIdentity()
        store = AuctionStore.open(config, identity)
    elif identity is None:
        identity = store.identity
    if not isinstance(identity, RequestIdentity):
        raise ValueError("HTTP surface requires a RequestIdentity source")

    dispatcher = AuctionDispatcher(store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if config.otlp_endpoint:
            setup_tracing(config.service_name, otlp_endpoint=config.otlp_endpoint)
        try:
            yield
        finally:
            # Flushes spans still buffered in the batch processor
            if config.otlp_endpoint:
                shutdown_tracing()
            if owns_store:
                store.close()

    app = FastAPI(title="Auction Registry API", version="1.0.0", lifespan=lifespan)
    app.state.dispatcher = dispatcher
    setup_metrics_endpoint_fastapi(app, dispatcher.metrics)

    @app.exception_handler(AuctionError)
    async def auction_error_handler(request: Request, exc: AuctionError):
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        logger.debug(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
        return _error_response(ValidationError(INCOMPLETE_INPUT))

    def call(caller: Optional[str], name: str, *args) -> OperationResult:
        with identity.bind(caller):
            return dispatcher.call(name, *args)

    # API Endpoints

    @app.get("/auctions", response_model=List[AuctionRecord])
    async def list_auctions(
        status: Optional[str] = Query(None, description="active | inactive"),
        x_caller_id: Optional[str] = Header(None),
    ):
        """List all auctions, optionally filtered by status"""
        if status is None:
            result = call(x_caller_id, "getAllAuctions")
        else:
            result = call(x_caller_id, "getAuctionsByStatus", status)
        return respond(result)

    @app.get("/auctions/active", response_model=List[AuctionRecord])
    async def list_active_auctions(x_caller_id: Optional[str] = Header(None)):
        return respond(call(x_caller_id, "getActiveAuctions"))

    @app.get("/auctions/expired", response_model=List[AuctionRecord])
    async def list_expired_auctions(x_caller_id: Optional[str] = Header(None)):
        return respond(call(x_caller_id, "getExpiredAuctions"))

    @app.get("/auctions/{auction_id}", response_model=AuctionRecord)
    async def get_auction(auction_id: str, x_caller_id: Optional[str] = Header(None)):
        return respond(call(x_caller_id, "getAuctionById", auction_id))

    @app.get("/owners/{owner_id}/auctions", response_model=List[AuctionRecord])
    async def list_owner_auctions(
        owner_id: str, x_caller_id: Optional[str] = Header(None)
    ):
        return respond(call(x_caller_id, "getOwnersAuctions", owner_id))

    @app.get("/me/auctions", response_model=List[AuctionRecord])
    async def list_my_auctions(x_caller_id: Optional[str] = Header(None)):
        """Auctions owned by the calling identity"""
        return respond(call(x_caller_id, "getOwnersAuctions"))

    @app.post("/auctions", response_model=AuctionRecord, status_code=201)
    async def create_auction(
        request: CreateAuctionRequest, x_caller_id: Optional[str] = Header(None)
    ):
        """
        Create an auction owned by the caller.

        The auction starts now and runs for the configured duration.
        """
        return respond(call(x_caller_id, "createAuction", request.model_dump()))

    @app.patch("/auctions/{auction_id}", response_model=AuctionRecord)
    async def update_auction(
        auction_id: str,
        request: UpdateAuctionRequest,
        x_caller_id: Optional[str] = Header(None),
    ):
        return respond(call(
            x_caller_id, "updateAuction", auction_id, request.model_dump()
        ))

    @app.post("/auctions/{auction_id}/end", response_model=AuctionRecord)
    async def end_auction(auction_id: str, x_caller_id: Optional[str] = Header(None)):
        """Finalize an auction whose window has elapsed"""
        return respond(call(x_caller_id, "endAuction", auction_id))

    @app.delete("/auctions/{auction_id}", response_model=AuctionRecord)
    async def delete_auction(
        auction_id: str, x_caller_id: Optional[str] = Header(None)
    ):
        return respond(call(x_caller_id, "deleteAuction", auction_id))

    @app.post("/rpc/{operation}")
    async def rpc(
        operation: str, request: RpcRequest, x_caller_id: Optional[str] = Header(None)
    ):
        """Invoke a named operation; returns an Ok/Err envelope"""
        return call(x_caller_id, operation, *request.args).to_dict()

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "service": config.service_name}

    return app


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run the auction registry API")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--log-level", default="INFO")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    import uvicorn

    uvicorn.run(create_app(AuctionConfig.from_env()), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
