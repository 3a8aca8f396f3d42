"""
Vitrina - Jewelry Catalog & Back Office Engine
FastAPI Application Entry Point
"""
import logging

import uvicorn
from fastapi import FastAPI
from contextlib import asynccontextmanager

from vitrina.api import api_router, setup_exception_handlers
from vitrina.context import build_context
from vitrina.core import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("vitrina")


# Lifespan for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: wire services and pull every collection once
    context = build_context()
    app.state.context = context
    logger.info(f"{settings.APP_NAME} starting on port {settings.APP_PORT}")

    results = await context.coordinator.refresh_all(silent=False)
    logger.info(f"Initial load: {results}")

    yield

    # Shutdown
    await context.close()
    logger.info(f"{settings.APP_NAME} shutting down")


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Catalog filtering, inventory valuation and pricing decisions",
    version="1.0.0",
    lifespan=lifespan,
)

setup_exception_handlers(app)

# Include routers
app.include_router(api_router, prefix="/api")


# Health check
@app.get("/health")
async def health_check():
    return {"status": "healthy", "app": settings.APP_NAME}


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=settings.APP_PORT,
        reload=settings.DEBUG
    )
