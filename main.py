"""
Main FastAPI Application
Entry point for the backend server
"""
import uvicorn
import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie

from app.config import settings
from app.logging_config import configure_logging
from app.models.conversation import Conversation, ConversationMessage
from app.services.container import build_services
from app.services.history import ConversationStore

# Import routers
from app.api.routes import ask

configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Starting Kids Learning Assistant...")

    client = None
    store = None
    if settings.MONGODB_URL:
        client = AsyncIOMotorClient(settings.MONGODB_URL)
        database = client[settings.MONGODB_DB_NAME]
        await init_beanie(
            database=database,
            document_models=[Conversation, ConversationMessage],
        )
        store = ConversationStore()
        logger.info("✅ Connected to MongoDB", database=settings.MONGODB_DB_NAME)
    else:
        logger.warning("MongoDB not configured; conversation history disabled")

    app.state.services = build_services(settings, store=store)
    if app.state.services.identity_verifier is None:
        logger.warning("Identity verifier not configured; all requests are anonymous")

    logger.info(
        "✅ Server running",
        host=settings.HOST,
        port=settings.PORT,
        stt_model=settings.STT_MODEL,
    )

    yield

    logger.info("👋 Shutting down...")
    if client is not None:
        client.close()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Voice and text tutor for kids learning in their own language",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc"
)

# Configure CORS: only the listed front-ends may call with credentials
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "X-Requested-With"],
)

# Include routers
app.include_router(ask.router, prefix="/api", tags=["Tutor"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Kids Learning Assistant API",
        "version": settings.APP_VERSION,
        "docs": "/api/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
