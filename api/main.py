"""
Main FastAPI application for the n8n workflow builder.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routes import (
    generation_router,
    history_router,
    providers_router,
    system_router
)
from api.generation_service import global_generation_service
from core.logging_config import configure_logging_from_settings, get_logger
from api.middleware import add_logging_middleware

logger = get_logger(__name__)

app = FastAPI(
    title="n8n Workflow Builder AI",
    description="Background generation of n8n workflow JSON through interchangeable LLM providers. UI processes send commands and observe the shared generation state.",
    version="1.0.0",
    openapi_tags=[
        {
            "name": "Generation",
            "description": "Command channel and generation state"
        },
        {
            "name": "History",
            "description": "Past successful generations"
        },
        {
            "name": "Providers",
            "description": "Supported LLM providers and the Claude auth probe"
        },
        {
            "name": "System",
            "description": "Health and configuration"
        }
    ]
)


@app.on_event("startup")
async def startup_event():
    """Initialize services when the server starts"""
    configure_logging_from_settings()
    logger.info("🚀 Starting workflow builder API server...")
    await global_generation_service.initialize()

    health_status = global_generation_service.get_health_status()
    logger.info(f"🏥 Health Status: {'✅ Healthy' if health_status['healthy'] else '❌ Unhealthy'}")
    logger.info(f"📦 State backend: {health_status['state_backend']}")
    logger.info("🎉 Workflow builder API server startup complete!")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup services when the server shuts down"""
    logger.info("🛑 Shutting down workflow builder API server...")
    await global_generation_service.shutdown()
    logger.info("👋 Workflow builder API server shutdown complete!")


add_logging_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all origins for development
    allow_credentials=False,  # Must be False when allow_origins=["*"]
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(generation_router)
app.include_router(history_router)
app.include_router(providers_router)
app.include_router(system_router)


@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": "n8n Workflow Builder AI API",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc"
    }
