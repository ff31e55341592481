"""Render middleware for FastAPI: JSON serialization and precompiled HTML templates."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("fastapi-render")
except PackageNotFoundError:
    __version__ = "dev"
