"""
Workshop Analytics Backend - Main Application

Performance reporting for automotive workshops.
Aggregates jobs, invoices, inventory, vehicles and technicians into
dashboard metrics.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv
import os
import logging

load_dotenv()

from app.routers import analytics
from app.scheduler import start_scheduler, stop_scheduler

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    logger.info("Starting Workshop Analytics Backend...")
    start_scheduler()
    yield
    # Shutdown
    logger.info("Shutting down Workshop Analytics Backend...")
    stop_scheduler()


# Initialize FastAPI app
app = FastAPI(
    title="Workshop Analytics API",
    description="Workshop performance metrics: revenue, technician leaderboard, issue/brand/part rollups",
    version="1.0.0",
    lifespan=lifespan
)

# CORS middleware (configure for your domains)
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(analytics.router, prefix="/api/analytics", tags=["Analytics"])


@app.get("/")
def read_root():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "Workshop Analytics Backend",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    """Detailed health check"""
    return {
        "status": "healthy",
        "supabase_configured": bool(os.getenv("SUPABASE_URL")),
        "default_workshop_id": os.getenv("DEFAULT_WORKSHOP_ID", "not configured"),
        "snapshot_refresh_enabled": os.getenv("SNAPSHOT_REFRESH_ENABLED", "true").lower() == "true"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=int(os.getenv("PORT", 8000)), reload=True)
