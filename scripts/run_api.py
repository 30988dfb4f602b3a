"""
Start the RSS service locally.

Responsibility: Local development server
"""

import sys
import os

# Add project root to Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import uvicorn
from rss_service.config import settings


if __name__ == "__main__":
    base = f"http://localhost:{settings.app.api_port}"
    print("Starting RSS service...")
    print(f"RSS feed at: {base}/rss.xml")
    print(f"Swagger docs at: {base}/docs")
    print(f"Store backend: {settings.store.resolve_backend().value}")
    print("\nPress CTRL+C to stop\n")

    uvicorn.run(
        "api.main:app",
        host=settings.app.api_host,
        port=settings.app.api_port,
        reload=settings.app.debug,
        log_level=settings.app.log_level.lower()
    )
