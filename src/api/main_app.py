"""Main FastAPI application for the API layer."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from src.alerting.infrastructure.container import get_container, init_container
from src.alerting.infrastructure.logging import configure_structured_logging
from src.api.routers import alerts
from src.config import AppConfig


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    config = AppConfig()
    configure_structured_logging(level=config.logging.level, log_file=config.logging.file)

    logger.info("🚀 Starting Alert Rule Engine API...")
    init_container(config)
    engine = get_container().rule_engine()
    logger.info(
        f"✓ Engine ready (max {config.engine.max_concurrent_configurations} concurrent configurations)"
    )

    yield

    # Shutdown
    logger.info("🛑 Shutting down API...")
    await engine.drain_notifications()
    logger.info("✓ Pending notifications flushed")


# Create FastAPI app
app = FastAPI(
    title="Alert Rule Engine API",
    description="API for validating and evaluating building-sensor alert configurations",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure as needed
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(alerts.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Alert Rule Engine API",
        "version": "1.0.0",
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
