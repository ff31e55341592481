"""Holder for the current compiled template snapshot."""

import threading
from collections.abc import Callable, Mapping
from typing import Any

from fastapi_render.compiler import CompiledTemplate, compile_templates
from fastapi_render.config import CompilePolicy, RenderSettings
from fastapi_render.logging_config import get_logger, log_with_context

logger = get_logger(__name__)


class TemplateStore:
    """Owns the compiled template mapping and replaces it atomically.

    A snapshot is never mutated after it is published. Recompilation builds a
    complete new mapping and swaps the reference, so a request that already
    holds a snapshot keeps rendering against it undisturbed. Compilation
    passes are serialized by a lock.
    """

    def __init__(
        self,
        settings: RenderSettings,
        filters: Mapping[str, Callable[..., Any]] | None = None,
        globals_: Mapping[str, Any] | None = None,
    ) -> None:
        """Compile the template directory once.

        Raises:
            TemplateCompileException: If the first compilation pass fails
        """
        self.settings = settings
        self._filters = dict(filters or {})
        self._globals = dict(globals_ or {})
        self._lock = threading.Lock()
        self._templates = compile_templates(settings, self._filters, self._globals)
        self.compile_count = 1

    @property
    def templates(self) -> Mapping[str, CompiledTemplate]:
        """The currently published snapshot."""
        return self._templates

    def recompile(self) -> Mapping[str, CompiledTemplate]:
        """Run a full compilation pass and publish the result.

        On failure the previous snapshot stays published.

        Raises:
            TemplateCompileException: If the compilation pass fails
        """
        with self._lock:
            templates = compile_templates(self.settings, self._filters, self._globals)
            self._templates = templates
            self.compile_count += 1
        log_with_context(
            logger,
            "debug",
            "Template snapshot replaced",
            template_count=len(templates),
            compile_count=self.compile_count,
            event_type="templates_swapped",
        )
        return templates

    def snapshot(self) -> Mapping[str, CompiledTemplate]:
        """Return the snapshot a new request should render against.

        Under ``RECOMPILE_PER_REQUEST`` the directory is compiled first.
        """
        if self.settings.compile_policy is CompilePolicy.RECOMPILE_PER_REQUEST:
            return self.recompile()
        return self._templates
