"""
Mock Backend Application

In-memory store backend for developing and testing the storefront. Serves
the storefront's JSON-RPC surface at POST /rpc.
"""

import os
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional, Union

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from dotenv import load_dotenv

from .config import Settings, get_settings
from .database import OrderDatabase, ProductDatabase, ProfileDatabase, RoleDatabase
from .rpc import BackendState, CallContext, RpcError, dispatch
from .security import CallerVerifier

# Load environment variables
load_dotenv(os.path.join(os.path.dirname(__file__), "..", "config", ".env"))

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if get_settings().debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


class RpcRequest(BaseModel):
    """JSON-RPC 2.0 request"""
    jsonrpc: str = "2.0"
    method: str
    params: dict[str, Any] = {}
    id: Optional[Union[int, str]] = None


def create_state(settings: Settings) -> BackendState:
    products = ProductDatabase()
    if settings.seed_catalog:
        products.seed()

    return BackendState(
        products=products,
        orders=OrderDatabase(products),
        profiles=ProfileDatabase(
            code_length=settings.code_length,
            code_lifetime_seconds=settings.code_lifetime_seconds,
            max_attempts=settings.code_max_attempts,
        ),
        roles=RoleDatabase(settings.admin_principals),
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build a backend app with its own fresh databases"""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan events"""
        logger.info("Mock Backend starting up...")
        logger.info(f"Catalog: {len(app.state.backend.products.products)} products")
        logger.info(f"Configured admins: {len(settings.admin_principals)}")
        yield
        logger.info("Mock Backend shutting down...")

    app = FastAPI(
        title="Mock Backend",
        description="In-memory store backend for The Lens storefront",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.backend = create_state(settings)
    app.state.verifier = CallerVerifier(audience=settings.token_audience)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, restrict this
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.post("/rpc")
    async def rpc(call: RpcRequest, request: Request):
        """Dispatch one JSON-RPC call as the authenticated caller"""
        caller = request.app.state.verifier.verify(request.headers.get("Authorization"))
        if not caller.is_valid:
            logger.warning(f"Rejected call to {call.method}: {caller.error_message}")
            raise HTTPException(status_code=401, detail=caller.error_message)

        ctx = CallContext(caller=caller.principal, state=request.app.state.backend)
        try:
            result = dispatch(call.method, ctx, call.params)
        except RpcError as e:
            logger.info(f"{call.method} failed for {caller.principal}: {e.message}")
            return {
                "jsonrpc": "2.0",
                "error": {"code": e.code, "message": e.message},
                "id": call.id,
            }

        return {"jsonrpc": "2.0", "result": result, "id": call.id}

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "service": "mock-backend"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "mock_backend.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
