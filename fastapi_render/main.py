"""Example application entry point."""

from pathlib import Path

from dotenv import load_dotenv

from fastapi_render.app_factory import create_app
from fastapi_render.config import get_settings
from fastapi_render.logging_config import setup_logging

# Load environment variables from .env file
load_dotenv(Path(__file__).parent.parent / ".env")

settings = get_settings()

# Configure structured logging (console, plus JSON file when RENDER_LOG_FILE is set)
setup_logging(settings.log_level, settings.log_file)

# Create application
app = create_app(settings)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("fastapi_render.main:app", host="127.0.0.1", port=8000, reload=True)
