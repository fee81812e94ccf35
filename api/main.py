from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn
import logging
from typing import Optional

from api.routes import router
from config.settings import config
from engine.analyzer import SepsisRiskEngine

logger = logging.getLogger(__name__)

def create_app(engine: Optional[SepsisRiskEngine] = None) -> FastAPI:
    """Create FastAPI application"""
    app = FastAPI(
        title="Sepsis Risk Assessment API",
        version="1.0.0",
        description="Explainable rule-based sepsis risk scoring with threshold monitoring",
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # Each app owns its engine state
    app.state.engine = engine or SepsisRiskEngine()

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routes
    app.include_router(router, prefix="/api/v1")

    @app.get("/")
    async def root():
        return {
            "message": "Sepsis Risk Assessment API v1.0",
            "status": "running",
            "docs_url": "/docs",
            "health_check": "/api/v1/health"
        }

    return app

def start_api():
    """Start the API server"""
    logger.info(f"Starting API server on {config.API_HOST}:{config.API_PORT}")
    app = create_app()
    uvicorn.run(
        app,
        host=config.API_HOST,
        port=config.API_PORT,
        log_level="info",
        reload=False
    )

# The FastAPI app instance for direct uvicorn use
app = create_app()

if __name__ == "__main__":
    start_api()
