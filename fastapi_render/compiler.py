"""Template discovery and compilation.

A compilation pass walks the configured directory, picks every file carrying
the configured extension and compiles it into its own Jinja2 environment.
When a layout is configured, the layout source is compiled into every one of
those environments so the layout can reach the page by name and the page can
reach the layout's macros and blocks.
"""

import os
from collections.abc import Callable, Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from jinja2 import DictLoader, Environment, StrictUndefined, TemplateSyntaxError, Undefined, pass_context
from jinja2.runtime import Context
from markupsafe import Markup

from fastapi_render.config import RenderSettings
from fastapi_render.exceptions import TemplateCompileException, TemplateNotFoundException
from fastapi_render.logging_config import get_logger, log_with_context

logger = get_logger(__name__)


class CompiledTemplate:
    """A template container rooted at one logical template name.

    Holds the page source and, optionally, the layout source in a private
    environment. Every source is parsed when the container is built, so a
    syntax error surfaces as ``TemplateSyntaxError`` from the constructor.

    Inside the layout, ``{{ yield_content() }}`` renders the page with the
    current context.
    """

    def __init__(
        self,
        name: str,
        sources: Mapping[str, str],
        *,
        autoescape: bool = True,
        strict_undefined: bool = False,
        filters: Mapping[str, Callable[..., Any]] | None = None,
        globals_: Mapping[str, Any] | None = None,
    ) -> None:
        self.name = name
        self.environment = Environment(
            loader=DictLoader(dict(sources)),
            autoescape=autoescape,
            undefined=StrictUndefined if strict_undefined else Undefined,
        )
        if filters:
            self.environment.filters.update(filters)
        if globals_:
            self.environment.globals.update(globals_)

        @pass_context
        def yield_content(context: Context) -> Markup:
            page = context.environment.get_template(name)
            return Markup(page.render(context.get_all()))

        self.environment.globals["yield_content"] = yield_content

        # Parse everything up front
        self._templates = {source_name: self.environment.get_template(source_name) for source_name in sources}

    @property
    def defined_names(self) -> tuple[str, ...]:
        """Names of the definitions bundled into this container."""
        return tuple(self._templates)

    def render(self, target: str, context: Mapping[str, Any]) -> str:
        """Execute the definition named ``target`` with the given context.

        Raises:
            TemplateNotFoundException: If ``target`` is not bundled in this container
        """
        template = self._templates.get(target)
        if template is None:
            raise TemplateNotFoundException(target, details={"container": self.name})
        return template.render(context)

    def __repr__(self) -> str:
        return f"CompiledTemplate(name={self.name!r}, defined={list(self._templates)!r})"


def logical_name(relative: Path) -> tuple[str, str]:
    """Split a directory-relative path into (logical name, extension).

    The extension is the last suffix. The logical name is the path without
    that suffix, always using forward slashes.
    """
    extension = relative.suffix
    path = relative.as_posix()
    return path[: len(path) - len(extension)], extension


def _raise_walk_error(error: OSError) -> None:
    raise error


def iter_template_files(directory: Path) -> Iterator[Path]:
    """Yield every file below ``directory`` in lexicographic order.

    Raises:
        OSError: If the directory or one of its subdirectories cannot be read
    """
    for dirpath, dirnames, filenames in os.walk(directory, onerror=_raise_walk_error):
        dirnames.sort()
        for filename in sorted(filenames):
            yield Path(dirpath) / filename


def _read_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TemplateCompileException(f"cannot read template {path}: {e}", path=str(path)) from e


def compile_templates(
    settings: RenderSettings,
    filters: Mapping[str, Callable[..., Any]] | None = None,
    globals_: Mapping[str, Any] | None = None,
) -> Mapping[str, CompiledTemplate]:
    """Run one compilation pass over ``settings.directory``.

    Args:
        settings: Render settings (directory, extension, layout, engine options)
        filters: Extra Jinja2 filters registered on every container
        globals_: Extra Jinja2 globals registered on every container

    Returns:
        Read-only mapping of logical template name to compiled container.
        The layout is never a key.

    Raises:
        TemplateCompileException: If the walk fails, a file cannot be read or
            parsed, or two files map to the same logical name
    """
    directory = settings.directory
    templates: dict[str, CompiledTemplate] = {}
    layout_source: str | None = None

    try:
        for path in iter_template_files(directory):
            name, extension = logical_name(path.relative_to(directory))
            if extension != settings.extension:
                continue
            if name == settings.layout:
                # The layout is bundled into every other template, never addressed on its own
                continue
            if name in templates:
                raise TemplateCompileException(f'duplicate template name "{name}" for {path}', path=str(path))

            sources = {name: _read_source(path)}
            source_paths = {name: path}
            if settings.layout is not None:
                if layout_source is None:
                    layout_source = _read_source(settings.layout_path)
                sources[settings.layout] = layout_source
                source_paths[settings.layout] = settings.layout_path

            try:
                templates[name] = CompiledTemplate(
                    name,
                    sources,
                    autoescape=settings.autoescape,
                    strict_undefined=settings.strict_undefined,
                    filters=filters,
                    globals_=globals_,
                )
            except TemplateSyntaxError as e:
                failed = source_paths.get(e.name or name, path)
                raise TemplateCompileException(
                    f"{failed}:{e.lineno}: {e.message or e}",
                    path=str(failed),
                    lineno=e.lineno,
                ) from e
    except OSError as e:
        log_with_context(
            logger,
            "error",
            "Template directory walk failed",
            directory=str(directory),
            error=str(e),
            event_type="template_compile_failed",
        )
        raise TemplateCompileException(f"cannot walk template directory {directory}: {e}", path=str(directory)) from e
    except TemplateCompileException as e:
        log_with_context(
            logger,
            "error",
            "Template compilation failed",
            directory=str(directory),
            error=e.message,
            event_type="template_compile_failed",
        )
        raise

    log_with_context(
        logger,
        "info",
        "Templates compiled",
        directory=str(directory),
        template_count=len(templates),
        layout=settings.layout,
        event_type="templates_compiled",
    )
    return MappingProxyType(templates)
