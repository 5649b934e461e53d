# peerfusion/main.py
from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, WebSocket, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from peerfusion.api.v1.router import api_router
from peerfusion.config import Settings, get_settings
from peerfusion.database import Database
from peerfusion.websockets.connection_manager import ConnectionManager, handle_chat_connection

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: make sure the schema exists
    app.state.database.create_all()
    logger.info("PeerFusion API started")
    yield
    # Shutdown: drop live sessions and release pooled connections
    await app.state.connection_manager.close_all()
    app.state.database.dispose()
    logger.info("PeerFusion API stopped")


def create_app(settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """
    Build the application with its own database and connection manager.
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="PeerFusion API",
        description="Profiles, projects and direct messaging for academic peers",
        version="0.1.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.database = database or Database.from_settings(settings)
    app.state.connection_manager = ConnectionManager(send_timeout=settings.WS_SEND_TIMEOUT)

    # CORS middleware for frontend access
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routes
    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/")
    async def root():
        """Health check and welcome message"""
        return {
            "message": "PeerFusion API running!",
            "status": "online",
            "version": "0.1.0"
        }

    # Malformed or missing input is a client error, reported as 400
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        detail = f"{location}: {first.get('msg')}" if location else first.get("msg", "Invalid request")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": detail, "errors": jsonable_encoder(errors)}
        )

    # Error handler for global exceptions
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"}
        )

    @app.websocket("/ws/chat")
    async def chat_websocket_endpoint(websocket: WebSocket, access_token: str):
        """
        WebSocket endpoint for real-time message and typing notifications

        Args:
            websocket: WebSocket connection
            access_token: JWT authentication token
        """
        await handle_chat_connection(
            websocket=websocket,
            access_token=access_token,
            manager=websocket.app.state.connection_manager,
            database=websocket.app.state.database
        )

    return app


def run():
    import uvicorn
    uvicorn.run("peerfusion.main:create_app", factory=True, host="0.0.0.0", port=5050)


if __name__ == "__main__":
    run()
