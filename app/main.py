"""
FastAPI Main Application
Portfolio advice, usage credits and market data in one service
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from app.config import settings
from app.core.logging import setup_logging
from app.infrastructure.db.database import init_db, close_db
from app.domain.services.config_engine import load_config_engine
from app.infrastructure.market_data.provider_factory import get_quote_provider

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Handles startup and shutdown of all services
    """
    # ===================
    # STARTUP
    # ===================
    logger.info("="*60)
    logger.info("🚀 Starting Portfolio Advisor")
    logger.info("="*60)

    # 1. Initialize database
    logger.info("📊 Step 1/3: Initializing database...")
    await init_db()
    logger.info("✅ Database initialized")

    # 2. Load configuration
    logger.info("⚙️  Step 2/3: Loading configuration...")
    config_engine = load_config_engine()
    app.state.config_engine = config_engine
    logger.info("✅ Configuration loaded successfully")
    logger.info(f"   📈 Indices: {len(config_engine.market_data.indices)}")
    logger.info(f"   💡 Max advice items: {config_engine.advice_rules.max_items}")

    # 3. Initialize market data
    logger.info("🏗️  Step 3/3: Initializing market data...")
    quote_provider = get_quote_provider(config_engine)
    app.state.quote_provider = quote_provider
    logger.info(f"✅ Quote providers: {', '.join(quote_provider.names)}")

    logger.info("="*60)
    logger.info(f"   ✅ API Server: http://{settings.API_HOST}:{settings.API_PORT}")
    logger.info(f"   ✅ API Docs: http://{settings.API_HOST}:{settings.API_PORT}/docs")
    logger.info(f"   ✅ Daily credits: {settings.DAILY_CREDIT_LIMIT}")
    logger.info("="*60)

    yield

    # ===================
    # SHUTDOWN
    # ===================
    logger.info("🛑 Shutting down Portfolio Advisor...")
    await close_db()
    logger.info("✅ Database connections closed")


# Create FastAPI app
app = FastAPI(
    title="Indian Stock Portfolio Advisor",
    description="Rule-based portfolio advice with daily usage credits",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "🇮🇳 Indian Stock Portfolio Advisor",
        "version": "1.0.0",
        "docs": "/docs"
    }


# Import and include routers
from app.api.routes import analysis, health, market_data, portfolio, usage

app.include_router(health.router, prefix="/api/v1", tags=["Health"])
app.include_router(analysis.router, prefix="/api/v1/analysis", tags=["Analysis"])
app.include_router(usage.router, prefix="/api/v1/usage", tags=["Usage"])
app.include_router(market_data.router, prefix="/api/v1/market", tags=["Market Data"])
app.include_router(portfolio.router, prefix="/api/v1/portfolios", tags=["Portfolio"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.DEBUG)
