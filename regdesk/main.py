import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from regdesk.api.deps import get_notifier, internal_error
from regdesk.api.routes import approval, auth, health, registration
from regdesk.core.config import settings
from regdesk.core.logging import setup_logging
from regdesk.db.base import Base
from regdesk.db.session import SessionLocal, engine

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for startup and shutdown"""
    logger.info("🚀 Starting registration service...")

    logger.info("📦 Creating database tables...")
    Base.metadata.create_all(bind=engine)

    try:
        db = SessionLocal()
        db.execute(text("SELECT 1"))
        db.close()
        logger.info("✅ Database connection successful")
    except Exception as e:
        logger.error(f"❌ Database connection failed: {e}")
        raise

    yield

    logger.info("👋 Shutting down...")
    if get_notifier.cache_info().currsize:
        get_notifier().close()
        get_notifier.cache_clear()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Event registration, LGA review queues, attendance codes and token sessions",
    version=settings.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Failures are reported as 200 with success=false, never as HTTP error statuses
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=200, content={"success": False, "message": "Invalid request"})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=200, content=internal_error())


app.include_router(health.router, prefix=settings.API_PREFIX, tags=["Health"])
app.include_router(registration.router, prefix=settings.API_PREFIX, tags=["Registration"])
app.include_router(approval.router, prefix=settings.API_PREFIX, tags=["Approval"])
app.include_router(auth.router, prefix=settings.API_PREFIX, tags=["Auth"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "status": "operational",
        "docs": "/docs",
        "endpoints": {
            "health": "/api/health",
            "submit": "/api/submit",
            "approve": "/api/approve",
            "records": "/api/records?type=pending|verified|group|stats",
            "auth": "/api/auth"
        }
    }


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000, reload=False)
