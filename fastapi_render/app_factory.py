"""Application factory for the example render application."""

from fastapi import Depends, FastAPI

from fastapi_render import __version__
from fastapi_render.config import RenderSettings, get_settings
from fastapi_render.dependencies import get_render, get_template_store
from fastapi_render.middleware import setup_render
from fastapi_render.protocols import Render
from fastapi_render.store import TemplateStore


def create_app(settings: RenderSettings | None = None) -> FastAPI:
    """Create a FastAPI application with the render middleware installed.

    Args:
        settings: Render settings (defaults to the environment-backed singleton)

    Returns:
        Configured FastAPI application instance

    Raises:
        TemplateCompileException: If a template fails to compile
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="fastapi-render example",
        description="JSON serialization and precompiled HTML templates for FastAPI handlers.",
        version=__version__,
    )

    setup_render(app, settings)

    @app.get("/json")
    async def hello_json(render: Render = Depends(get_render)):
        """Serialize a string as JSON."""
        return render.json(200, "hello world")

    @app.get("/html")
    async def hello_html(render: Render = Depends(get_render)):
        """Render the hello template."""
        return render.html(200, "hello", {"name": "world"})

    @app.get("/templates")
    async def list_templates(
        render: Render = Depends(get_render),
        store: TemplateStore = Depends(get_template_store),
    ):
        """List the logical names of the compiled templates."""
        return render.json(200, sorted(store.templates))

    return app
