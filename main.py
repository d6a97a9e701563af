"""
FastAPI application backing the Kontent.ai content validation dashboard.
Starts async validation runs against the Management API and serves run
progress and filtered results.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
import logging

from src.api.routes import content, health, validation
from src.core.logging import setup_logging
from src.core.middleware import RequestIDMiddleware
from src.services.client_factory import get_service_container, set_service_container

# Configure logging
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    container = get_service_container()
    await container.close()
    set_service_container(None)
    logger.info("Services shut down")


app = FastAPI(
    title="Kontent.ai Content Validator",
    description="API for validating Kontent.ai content items and browsing the results",
    version="1.0.0",
    lifespan=lifespan
)

# Middleware
app.add_middleware(RequestIDMiddleware)

# Include routers
app.include_router(health.router)
app.include_router(validation.router)
app.include_router(content.router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000, workers=1)
