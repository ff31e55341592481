"""Unit tests for the per-request renderer."""

from dataclasses import dataclass

import pytest
from pydantic import BaseModel

from fastapi_render.compiler import compile_templates
from fastapi_render.renderer import CONTENT_HTML, CONTENT_JSON, CONTENT_TYPE, Renderer, binding_context, encode_json


class Person(BaseModel):
    Name: str


@dataclass
class Point:
    x: int
    y: int


@pytest.fixture
def make_renderer(write_templates, make_settings):
    """Compile the given templates and build a renderer over them."""

    def _make(files: dict[str, str], **overrides) -> Renderer:
        write_templates(files)
        settings = make_settings(**overrides)
        return Renderer(settings, compile_templates(settings))

    return _make


class TestEncodeJson:
    """Tests for encode_json."""

    def test_compact_output(self):
        """Test output uses compact separators."""
        assert encode_json({"a": 1, "b": [1, 2]}) == b'{"a":1,"b":[1,2]}'

    def test_unicode_kept(self):
        """Test non-ASCII characters are written as UTF-8."""
        assert encode_json("héllo") == '"héllo"'.encode()

    def test_pydantic_model(self):
        """Test pydantic models are dumped in JSON mode."""
        assert encode_json({"person": Person(Name="Ada")}) == b'{"person":{"Name":"Ada"}}'


class TestBindingContext:
    """Tests for binding_context."""

    def test_none(self):
        assert binding_context(None) == {}

    def test_mapping(self):
        assert binding_context({"Name": "World"}) == {"Name": "World"}

    def test_pydantic_model(self):
        assert binding_context(Person(Name="Ada")) == {"Name": "Ada"}

    def test_dataclass(self):
        assert binding_context(Point(1, 2)) == {"x": 1, "y": 2}

    def test_other_values_exposed_as_data(self):
        assert binding_context([1, 2]) == {"data": [1, 2]}


class TestRendererJson:
    """Tests for Renderer.json."""

    def test_json_success(self, make_renderer):
        """Test JSON status, header and body."""
        renderer = make_renderer({})

        response = renderer.json(200, {"a": 1})

        assert response.status_code == 200
        assert response.headers[CONTENT_TYPE] == CONTENT_JSON
        assert response.body == b'{"a":1}'
        assert renderer.response is response

    def test_json_custom_status(self, make_renderer):
        """Test the caller's status code is used."""
        response = make_renderer({}).json(201, "created")

        assert response.status_code == 201
        assert response.body == b'"created"'

    def test_json_cyclic_value(self, make_renderer):
        """Test a cyclic structure produces a plain-text 500."""
        cyclic: dict = {}
        cyclic["self"] = cyclic

        response = make_renderer({}).json(200, cyclic)

        assert response.status_code == 500
        assert not response.headers["content-type"].startswith(CONTENT_JSON)
        assert response.headers["content-type"].startswith("text/plain")
        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.body == b"Circular reference detected"

    def test_json_unserializable_value(self, make_renderer):
        """Test an unsupported type produces a 500 with the error description."""
        response = make_renderer({}).json(200, {"tags": {"a"}})

        assert response.status_code == 500
        assert response.body == b"Object of type set is not JSON serializable"

    def test_json_nan(self, make_renderer):
        """Test NaN is rejected rather than written as invalid JSON."""
        response = make_renderer({}).json(200, float("nan"))

        assert response.status_code == 500
        assert response.body


class TestRendererHtml:
    """Tests for Renderer.html."""

    def test_html_without_layout(self, make_renderer):
        """Test a template renders against its binding."""
        renderer = make_renderer({"greet.tmpl": "Hello, {{ Name }}"})

        response = renderer.html(200, "greet", {"Name": "World"})

        assert response.status_code == 200
        assert response.headers[CONTENT_TYPE].startswith(CONTENT_HTML)
        assert response.body == b"Hello, World"

    def test_html_with_model_binding(self, make_renderer):
        """Test a pydantic model binding exposes its fields."""
        renderer = make_renderer({"greet.tmpl": "Hello, {{ Name }}"})

        assert renderer.html(200, "greet", Person(Name="Ada")).body == b"Hello, Ada"

    def test_html_with_scalar_binding(self, make_renderer):
        """Test a non-mapping binding is available as data."""
        renderer = make_renderer({"list.tmpl": "{{ data | join('-') }}"})

        assert renderer.html(200, "list", ["a", "b"]).body == b"a-b"

    def test_html_executes_layout(self, make_renderer):
        """Test the layout is executed and pulls in the requested page."""
        renderer = make_renderer(
            {
                "base.tmpl": "<html><title>{{ title }}</title>{{ yield_content() }}</html>",
                "page.tmpl": "<p>{{ body }}</p>",
            },
            layout="base",
        )

        response = renderer.html(200, "page", {"title": "Home", "body": "Welcome"})

        assert response.status_code == 200
        assert response.body == b"<html><title>Home</title><p>Welcome</p></html>"

    def test_html_layout_includes_page_by_name(self, make_renderer):
        """Test a layout that invokes a sub-template by name."""
        renderer = make_renderer(
            {"base.tmpl": "[{% include 'page' %}]", "page.tmpl": "page content"},
            layout="base",
        )

        assert renderer.html(200, "page").body == b"[page content]"

    def test_html_missing_template(self, make_renderer):
        """Test a missing template yields a 500 with a non-empty body."""
        renderer = make_renderer({"greet.tmpl": "Hello"})

        response = renderer.html(200, "missing", None)

        assert response.status_code == 500
        assert response.headers["content-type"].startswith("text/plain")
        assert b"missing" in response.body

    def test_html_missing_template_with_layout(self, make_renderer):
        """Test the layout itself is not addressable by name."""
        renderer = make_renderer({"base.tmpl": "{{ yield_content() }}", "page.tmpl": "Page"}, layout="base")

        response = renderer.html(200, "base")

        assert response.status_code == 500

    def test_html_execution_error(self, make_renderer):
        """Test an error raised while rendering yields a 500."""
        renderer = make_renderer({"math.tmpl": "{{ 1 / zero }}"})

        response = renderer.html(200, "math", {"zero": 0})

        assert response.status_code == 500
        assert response.body == b"division by zero"

    def test_html_strict_undefined(self, make_renderer):
        """Test undefined variables fail rendering when strict_undefined is set."""
        renderer = make_renderer({"greet.tmpl": "Hello, {{ Name }}"}, strict_undefined=True)

        response = renderer.html(200, "greet", {})

        assert response.status_code == 500
        assert b"Name" in response.body

    def test_html_custom_status(self, make_renderer):
        """Test the caller's status code is used on success."""
        renderer = make_renderer({"gone.tmpl": "Gone"})

        assert renderer.html(410, "gone").status_code == 410


class TestRendererError:
    """Tests for Renderer.error."""

    def test_error_status_only(self, make_renderer):
        """Test only the status is written."""
        response = make_renderer({}).error(404)

        assert response.status_code == 404
        assert response.body == b""
        assert "content-type" not in response.headers


class TestWriteOnce:
    """Tests for the single-write rule."""

    def test_second_call_ignored(self, make_renderer):
        """Test the first response stands when a handler renders twice."""
        renderer = make_renderer({"greet.tmpl": "Hello"})

        first = renderer.json(200, {"a": 1})
        second = renderer.error(404)
        third = renderer.html(200, "greet")

        assert second is first
        assert third is first
        assert renderer.response.status_code == 200

    def test_failure_counts_as_write(self, make_renderer):
        """Test an error response also consumes the single write."""
        renderer = make_renderer({})

        failed = renderer.html(200, "missing")

        assert renderer.json(200, "ok") is failed
