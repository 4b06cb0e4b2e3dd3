"""
DevDeakin Backend - Main FastAPI Application
"""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from devdeakin.config import settings
from devdeakin.api.routes import account, billing, newsletter, posts, questions, search

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler for startup and shutdown events"""
    logger.info("Starting %s v%s", settings.APP_NAME, settings.APP_VERSION)
    logger.info("Debug mode: %s, dev mode: %s", settings.DEBUG, settings.DEV_MODE)
    if not settings.STRIPE_SECRET_KEY or not settings.STRIPE_PRICE_ID:
        logger.warning("Stripe is not fully configured; billing endpoints will fail")
    yield
    logger.info("Shutting down %s", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="DevDeakin Backend API - articles, tutorials, questions and premium billing",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time to response headers"""
    start_time = time.time()
    response = await call_next(request)
    response.headers["X-Process-Time"] = str(time.time() - start_time)
    return response


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle all unhandled exceptions"""
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "message": str(exc) if settings.DEBUG else "An error occurred",
        },
    )


app.include_router(billing.router)
app.include_router(account.router)
app.include_router(newsletter.router)
app.include_router(questions.router)
app.include_router(posts.articles_router)
app.include_router(posts.tutorials_router)
app.include_router(search.router)


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint - API health check"""
    return {
        "status": "online",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check endpoint"""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "debug_mode": settings.DEBUG,
        "firebase_configured": bool(
            settings.FIREBASE_CREDENTIALS_JSON or settings.FIREBASE_EMULATOR_HOST
            or settings.FIREBASE_CREDENTIALS_PATH
        ),
        "stripe_configured": bool(settings.STRIPE_SECRET_KEY and settings.STRIPE_PRICE_ID),
        "email_enabled": not settings.DISABLE_EMAIL,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "devdeakin.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG
    )
