"""
Wedding Invitation System - FastAPI Backend
Main application entry point
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from app.core.config import settings
from app.api import routes_admin, routes_guest, routes_public, ws
from app.services.backends import create_backend
from app.services.wedding_store import WeddingStore

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    store = WeddingStore(create_backend(settings), admin_passcode=settings.ADMIN_PASSCODE)
    ws.websocket_manager.attach_loop(asyncio.get_running_loop())
    unregister = store.add_listener(ws.dashboard_listener(store, ws.websocket_manager))
    store.start()
    app.state.store = store
    logger.info("Wedding store started")
    yield
    unregister()
    store.close()
    logger.info("Application shutdown")

# Create FastAPI application
app = FastAPI(
    title="Wedding Invitation System",
    description="Personalized wedding invitations with guest RSVP",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers; the guest catch-all /{slug} goes last
app.include_router(routes_public.router, tags=["public"])
app.include_router(routes_admin.router, prefix="/admin", tags=["admin"])
app.include_router(ws.router, prefix="/ws", tags=["websocket"])
app.include_router(routes_guest.router, tags=["guest"])

# Note: Run this ASGI app directly with Uvicorn or Hypercorn. For Gunicorn,
# use `uvicorn.workers.UvicornWorker` instead of wrapping the app.

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        reload=True
    )
