import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import InterfaceError, OperationalError
from stockroom.core.config import settings
from stockroom.core.database import engine
from stockroom.core.logging_config import setup_logging
from stockroom.middleware.logging import LoggingMiddleware
from stockroom.api.v1.api import api_router

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(f"Starting Stockroom API ({settings.ENVIRONMENT})")
    yield
    await engine.dispose()
    logger.info("Stockroom API stopped")

# Create FastAPI app
app_config = {
    "title": "Stockroom Inventory API",
    "description": "Role-based inventory: products, stock movements, weekly plans and low stock alerts",
    "version": "1.0.0",
    "lifespan": lifespan,
}

app = FastAPI(**app_config)

# Add middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=settings.ALLOWED_METHODS,
    allow_headers=settings.ALLOWED_HEADERS
)
app.add_middleware(LoggingMiddleware)

@app.exception_handler(OperationalError)
@app.exception_handler(InterfaceError)
async def storage_unavailable_handler(request: Request, exc: Exception):
    """Database driver failures surface as 503, never as substitute data"""
    logger.error(f"Storage unavailable on {request.method} {request.url.path}: {str(exc)}")
    return JSONResponse(status_code=503, content={"detail": "Storage is unavailable"})

# Include routers
app.include_router(api_router, prefix="/api/v1")

@app.get("/")
async def root():
    return {
        "message": "Stockroom Inventory API",
        "status": "active",
        "version": "1.0.0",
        "docs": "/docs"
    }

@app.get("/health")
async def health_check():
    database = "connected"
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (OperationalError, InterfaceError) as e:
        logger.error(f"Health check failed: {str(e)}")
        database = "unavailable"

    return JSONResponse(
        status_code=200 if database == "connected" else 503,
        content={
            "status": "healthy" if database == "connected" else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "components": {"database": database}
        }
    )

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=settings.DEBUG)
