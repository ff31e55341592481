"""Render middleware installation."""

from collections.abc import Callable, Mapping
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool

from fastapi_render.config import CompilePolicy, RenderSettings, get_settings
from fastapi_render.exceptions import TemplateCompileException
from fastapi_render.logging_config import get_logger, log_with_context
from fastapi_render.renderer import Renderer
from fastapi_render.store import TemplateStore

logger = get_logger(__name__)


def setup_render(
    app: FastAPI,
    settings: RenderSettings | None = None,
    *,
    filters: Mapping[str, Callable[..., Any]] | None = None,
    globals_: Mapping[str, Any] | None = None,
) -> TemplateStore:
    """Compile templates and install the middleware that hands out renderers.

    Templates are compiled immediately. A broken template raises here, so
    the application never starts serving with an incomplete template set.

    Args:
        app: FastAPI application instance
        settings: Render settings (defaults to the environment-backed singleton)
        filters: Extra Jinja2 filters available in every template
        globals_: Extra Jinja2 globals available in every template

    Returns:
        The template store holding the compiled snapshot

    Raises:
        TemplateCompileException: If the first compilation pass fails
    """
    settings = settings or get_settings()
    store = TemplateStore(settings, filters, globals_)

    app.state.render_settings = settings
    app.state.template_store = store

    log_with_context(
        logger,
        "info",
        "Render middleware installed",
        directory=str(settings.directory),
        extension=settings.extension,
        layout=settings.layout,
        compile_policy=settings.compile_policy.value,
        template_count=len(store.templates),
        event_type="render_middleware_installed",
    )

    @app.middleware("http")
    async def inject_renderer(request: Request, call_next):
        """Attach a fresh renderer to every request."""
        if settings.compile_policy is CompilePolicy.RECOMPILE_PER_REQUEST:
            try:
                templates = await run_in_threadpool(store.snapshot)
            except TemplateCompileException as e:
                log_with_context(
                    logger,
                    "error",
                    "Template recompilation failed, rejecting request",
                    error=e.message,
                    method=request.method,
                    url=str(request.url),
                    event_type="template_recompile_failed",
                )
                return PlainTextResponse(
                    e.message,
                    status_code=e.status_code,
                    headers={"X-Content-Type-Options": "nosniff"},
                )
        else:
            templates = store.snapshot()

        request.state.render = Renderer(settings, templates)
        return await call_next(request)

    return store
