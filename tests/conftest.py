"""Pytest configuration and shared fixtures."""

from collections.abc import Callable
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from fastapi_render.app_factory import create_app
from fastapi_render.config import RenderSettings


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """Empty directory for template files."""
    directory = tmp_path / "templates"
    directory.mkdir()
    return directory


@pytest.fixture
def write_templates(template_dir: Path) -> Callable[[dict[str, str]], Path]:
    """Write template files (relative path -> source) into the template directory."""

    def _write(files: dict[str, str]) -> Path:
        for relative, source in files.items():
            path = template_dir / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(source, encoding="utf-8")
        return template_dir

    return _write


@pytest.fixture
def make_settings(template_dir: Path) -> Callable[..., RenderSettings]:
    """Build RenderSettings pointing at the template directory."""

    def _make(**overrides) -> RenderSettings:
        overrides.setdefault("directory", template_dir)
        return RenderSettings(**overrides)

    return _make


@pytest.fixture
def make_client(make_settings):
    """Build a TestClient for the example app with the given settings overrides."""
    clients: list[TestClient] = []

    def _make(**overrides) -> TestClient:
        client = TestClient(create_app(make_settings(**overrides)))
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()
