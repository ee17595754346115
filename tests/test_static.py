"""Tests for static file serving middleware."""

import pytest

from trellis.app import App
from trellis.middleware import StaticFiles, default_not_found
from trellis.testing import TestClient


@pytest.fixture
def static_dir(tmp_path):
    """Create temporary static files for testing."""
    static = tmp_path / "static"
    static.mkdir()
    (static / "style.css").write_text("body { color: red; }")
    (static / "app.js").write_text("console.log('hi');")
    (static / "logo.bin").write_bytes(b"\x00\x01\x02")
    docs = static / "docs"
    docs.mkdir()
    (docs / "index.html").write_text("<html>docs</html>")
    (static / "empty").mkdir()
    (tmp_path / "secret.txt").write_text("top secret")
    return static


def _app(directory, prefix: str = "/static", **kwargs) -> App:
    return App().use(default_not_found, StaticFiles(directory, prefix, **kwargs))


class TestStaticFileServing:
    @pytest.mark.anyio
    async def test_serves_css_file(self, static_dir) -> None:
        async with TestClient(_app(static_dir)) as client:
            response = await client.get("/static/style.css")

        assert response.status == 200
        assert response.content_type == "text/css"
        assert response.text == "body { color: red; }"
        assert response.header("cache-control") == "public, max-age=3600"

    @pytest.mark.anyio
    async def test_serves_binary_file(self, static_dir) -> None:
        async with TestClient(_app(static_dir)) as client:
            response = await client.get("/static/logo.bin")

        assert response.status == 200
        assert response.body == b"\x00\x01\x02"
        assert response.content_type == "application/octet-stream"

    @pytest.mark.anyio
    async def test_directory_index(self, static_dir) -> None:
        async with TestClient(_app(static_dir)) as client:
            response = await client.get("/static/docs")

        assert response.status == 200
        assert response.text == "<html>docs</html>"

    @pytest.mark.anyio
    async def test_custom_cache_control(self, static_dir) -> None:
        app = _app(static_dir, cache_control="no-cache")
        async with TestClient(app) as client:
            response = await client.get("/static/app.js")

        assert response.header("cache-control") == "no-cache"

    @pytest.mark.anyio
    async def test_root_prefix(self, static_dir) -> None:
        async with TestClient(_app(static_dir, "/")) as client:
            response = await client.get("/style.css")

        assert response.status == 200


class TestStaticFallThrough:
    @pytest.mark.anyio
    async def test_missing_file(self, static_dir) -> None:
        async with TestClient(_app(static_dir)) as client:
            response = await client.get("/static/nope.css")

        assert response.status == 404

    @pytest.mark.anyio
    async def test_directory_without_index(self, static_dir) -> None:
        async with TestClient(_app(static_dir)) as client:
            response = await client.get("/static/empty")

        assert response.status == 404

    @pytest.mark.anyio
    async def test_outside_prefix(self, static_dir) -> None:
        async with TestClient(_app(static_dir)) as client:
            response = await client.get("/style.css")

        assert response.status == 404

    @pytest.mark.anyio
    async def test_prefix_lookalike(self, static_dir) -> None:
        async with TestClient(_app(static_dir)) as client:
            response = await client.get("/staticfoo/style.css")

        assert response.status == 404

    @pytest.mark.anyio
    async def test_post_ignored(self, static_dir) -> None:
        async with TestClient(_app(static_dir)) as client:
            response = await client.post("/static/style.css")

        assert response.status == 404


class TestStaticSecurity:
    @pytest.mark.anyio
    async def test_traversal_forbidden(self, static_dir) -> None:
        async with TestClient(_app(static_dir)) as client:
            response = await client.get("/static/../secret.txt")

        assert response.status == 403
        assert "top secret" not in response.text

    @pytest.mark.anyio
    async def test_nul_byte_falls_through(self, static_dir) -> None:
        async with TestClient(_app(static_dir)) as client:
            response = await client.get("/static/style%00.css")

        assert response.status == 404


class TestStaticHead:
    @pytest.mark.anyio
    async def test_head_has_length_but_no_body(self, static_dir) -> None:
        async with TestClient(_app(static_dir)) as client:
            response = await client.request("HEAD", "/static/style.css")

        assert response.status == 200
        assert response.body == b""
        assert response.header("content-length") == str(len("body { color: red; }"))
        assert response.content_type == "text/css"
