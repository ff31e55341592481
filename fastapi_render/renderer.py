"""Per-request response renderer for JSON and HTML templates."""

import dataclasses
import json
from collections.abc import Mapping
from typing import Any

from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel

from fastapi_render.compiler import CompiledTemplate
from fastapi_render.config import RenderSettings
from fastapi_render.exceptions import (
    JSONEncodeException,
    RenderException,
    TemplateNotFoundException,
    TemplateRenderException,
)
from fastapi_render.logging_config import get_logger, log_with_context

logger = get_logger(__name__)

CONTENT_TYPE = "Content-Type"
CONTENT_JSON = "application/json"
CONTENT_HTML = "text/html"


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_json(value: Any) -> bytes:
    """Serialize ``value`` as compact UTF-8 JSON.

    Raises:
        JSONEncodeException: If the value cannot be serialized
    """
    try:
        return json.dumps(
            value,
            ensure_ascii=False,
            allow_nan=False,
            indent=None,
            separators=(",", ":"),
            default=_json_default,
        ).encode("utf-8")
    except (TypeError, ValueError, RecursionError) as e:
        raise JSONEncodeException(str(e), details={"value_type": type(value).__name__}) from e


def binding_context(binding: Any) -> dict[str, Any]:
    """Turn a handler's binding value into a template context.

    Mappings, pydantic models and dataclasses contribute their fields as
    top-level variables. Any other value is available as ``data``.
    """
    if binding is None:
        return {}
    if isinstance(binding, Mapping):
        return dict(binding)
    if isinstance(binding, BaseModel):
        return dict(binding)
    if dataclasses.is_dataclass(binding) and not isinstance(binding, type):
        return {field.name: getattr(binding, field.name) for field in dataclasses.fields(binding)}
    return {"data": binding}


class Renderer:
    """Writes the response for one request.

    Bound to the settings and the template snapshot that was current when
    the request started. The first operation called produces the response;
    later calls are logged and ignored.
    """

    def __init__(self, settings: RenderSettings, templates: Mapping[str, CompiledTemplate]) -> None:
        self.settings = settings
        self.templates = templates
        self.response: Response | None = None

    def json(self, status: int, value: Any) -> Response:
        """Write ``value`` as JSON, or a 500 with the encoding error."""
        if self.response is not None:
            return self._already_written("json")

        try:
            body = encode_json(value)
        except JSONEncodeException as e:
            log_with_context(
                logger,
                "warning",
                "JSON serialization failed",
                error=e.message,
                value_type=e.details.get("value_type"),
                event_type="json_encode_failed",
            )
            return self._write_error(e)

        return self._write(Response(content=body, status_code=status, media_type=CONTENT_JSON))

    def html(self, status: int, name: str, binding: Any = None) -> Response:
        """Render template ``name`` and write it, or a 500 with the render error.

        With a layout configured, the layout is executed from within the
        requested template's container.
        """
        if self.response is not None:
            return self._already_written("html")

        target = self.settings.layout or name
        try:
            template = self.templates.get(name)
            if template is None:
                raise TemplateNotFoundException(name)
            body = template.render(target, binding_context(binding))
        except RenderException as e:
            return self._render_failed(name, e)
        except Exception as e:
            # Template execution can fail with any error raised by filters, globals or the binding
            return self._render_failed(
                name,
                TemplateRenderException(str(e) or type(e).__name__, details={"template": name}),
            )

        return self._write(Response(content=body, status_code=status, media_type=CONTENT_HTML))

    def error(self, status: int) -> Response:
        """Write only the status code."""
        if self.response is not None:
            return self._already_written("error")
        return self._write(Response(status_code=status))

    def _render_failed(self, name: str, exc: RenderException) -> Response:
        log_with_context(
            logger,
            "warning",
            "Template rendering failed",
            template=name,
            layout=self.settings.layout,
            error=exc.message,
            error_code=exc.code.value,
            event_type="template_render_failed",
        )
        return self._write_error(exc)

    def _write_error(self, exc: RenderException) -> Response:
        response = PlainTextResponse(
            exc.message,
            status_code=exc.status_code,
            headers={"X-Content-Type-Options": "nosniff"},
        )
        return self._write(response)

    def _write(self, response: Response) -> Response:
        self.response = response
        return response

    def _already_written(self, operation: str) -> Response:
        assert self.response is not None
        log_with_context(
            logger,
            "warning",
            "Response already written, ignoring second render call",
            operation=operation,
            status_code=self.response.status_code,
            event_type="response_already_written",
        )
        return self.response
