"""
FastAPI application for the price monitor operator surface.

This module creates and configures the FastAPI application with:
- CORS configuration for cross-origin requests
- Router registration for API endpoints
- Exception handlers mapping monitor errors to status codes
- WebSocket support for real-time updates

Endpoints:
- REST API: /api/watches, /api/history, /api/prices/{symbol}, /api/health
- WebSocket: /ws/updates for real-time push updates

The app never owns monitor state: every request goes through the
MonitorController it was created with.
"""

from typing import Optional

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pricewatch import __version__
from pricewatch.api.websocket import ConnectionManager
from pricewatch.exceptions import (
    DuplicateSymbolError,
    HistoryIndexError,
    InvalidRangeError,
    InvalidSymbolError,
    WatchNotFoundError,
    WatchValidationError,
)
from pricewatch.monitor.controller import MonitorController

logger = structlog.get_logger(__name__)

ERROR_STATUS_CODES = {
    InvalidSymbolError: status.HTTP_400_BAD_REQUEST,
    InvalidRangeError: status.HTTP_400_BAD_REQUEST,
    DuplicateSymbolError: status.HTTP_409_CONFLICT,
    WatchNotFoundError: status.HTTP_404_NOT_FOUND,
    HistoryIndexError: status.HTTP_404_NOT_FOUND,
}


async def handle_validation_error(request: Request, exc: Exception) -> JSONResponse:
    """Map a rejected operator command to an HTTP error response."""
    status_code = ERROR_STATUS_CODES.get(type(exc), status.HTTP_400_BAD_REQUEST)
    logger.info(
        "api_command_rejected",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
        status_code=status_code,
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


def create_app(
    controller: MonitorController,
    manager: Optional[ConnectionManager] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        controller: Controller serving all requests.
        manager: WebSocket connection manager, created if not given. It is
            subscribed to the controller's events.

    Returns:
        FastAPI: Configured FastAPI application instance.

    Example:
        >>> app = create_app(controller)
        >>> import uvicorn
        >>> uvicorn.run(app, host="127.0.0.1", port=8050)
    """
    app = FastAPI(
        title="Price Watch",
        description="Real-time price-threshold monitor",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    manager = manager or ConnectionManager()
    app.state.controller = controller
    app.state.ws_manager = manager
    app.state.unsubscribe_ws = controller.subscribe(manager.handle_event)

    app.add_exception_handler(WatchValidationError, handle_validation_error)

    # Register API routers
    from pricewatch.api.health import router as health_router
    from pricewatch.api.history import router as history_router
    from pricewatch.api.watches import router as watches_router

    app.include_router(watches_router, prefix="/api", tags=["Watches"])
    app.include_router(history_router, prefix="/api", tags=["History"])
    app.include_router(health_router, prefix="/api", tags=["Health"])

    # Register WebSocket router
    from pricewatch.api.websocket import router as ws_router

    app.include_router(ws_router, tags=["WebSocket"])

    logger.info("fastapi_app_created")

    return app
