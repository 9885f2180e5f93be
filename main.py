"""
Clothy — upload a person photo and a clothing photo, get back a Gemini-composited
try-on image over a small HTTP API (/v1/tryon).

Run with: python main.py   (needs GEMINI_API_KEY; host/port from API_HOST/API_PORT)
"""

import uvicorn

from clothy.factory import create_app
from clothy.core.config import get_settings

app = create_app()

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.env == "development",
        log_level=settings.log_level.lower(),
    )
