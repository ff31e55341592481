"""FastAPI dependencies for dependency injection."""

from fastapi import Request

from fastapi_render.protocols import Render
from fastapi_render.store import TemplateStore


async def get_render(request: Request) -> Render:
    """
    Get the renderer attached to this request by the render middleware.

    Args:
        request: The FastAPI request object.

    Returns:
        The request's Render instance.

    Raises:
        RuntimeError: If the render middleware is not installed.
    """
    render: Render | None = getattr(request.state, "render", None)

    if render is None:
        raise RuntimeError("Renderer not available. Install it with setup_render(app).")

    return render


async def get_template_store(request: Request) -> TemplateStore:
    """
    Get the template store from app state.

    Args:
        request: The FastAPI request object.

    Returns:
        The shared TemplateStore instance.

    Raises:
        RuntimeError: If the render middleware is not installed.
    """
    store: TemplateStore | None = getattr(request.app.state, "template_store", None)

    if store is None:
        raise RuntimeError("Template store not initialized.")

    return store
