#!/usr/bin/env python3
"""
Startup script for the workflow builder API server
"""

import uvicorn

from core.config import settings

if __name__ == "__main__":
    print(f"Starting workflow builder API server on {settings.api_host}:{settings.api_port}")
    print(f"API documentation available at http://localhost:{settings.api_port}/docs")

    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )
