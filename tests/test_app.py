"""Tests for trellis.app — registration, freezing, lifespan."""

import pytest

from trellis.app import App
from trellis.config import AppConfig
from trellis.routing.router import Router
from trellis.testing import TestClient


async def _ok(request, response, context, next) -> None:
    response.respond(200, "ok")


class TestRegistration:
    def test_defaults(self) -> None:
        app = App()
        assert app.config == AppConfig()
        assert isinstance(app.router, Router)

    def test_uses_given_router(self) -> None:
        router = Router()
        assert App(router=router).router is router

    def test_use_and_mount_are_fluent(self) -> None:
        app = App()
        child = Router()
        assert app.use(_ok) is app
        assert app.mount("/c", child) is app
        assert app.router.middleware == (_ok, child)
        assert child.base_path == "/c"

    def test_route_decorator_defaults_to_get(self) -> None:
        app = App()

        @app.route("/hello")
        async def hello(request, response, context, next) -> None:
            response.respond(200, "hi")

        assert [(r.method, r.path) for r in app.router.routes] == [("GET", "/hello")]

    def test_route_decorator_methods(self) -> None:
        app = App()

        @app.route("/item", methods=["put", "DELETE"])
        async def item(request, response, context, next) -> None:
            response.respond(204)

        assert [r.method for r in app.router.routes] == ["PUT", "DELETE"]


class TestServing:
    @pytest.mark.anyio
    async def test_route_decorator_serves(self) -> None:
        app = App()
        app.router.enable_parametrized_matching()

        @app.route("/hello/:name")
        async def hello(request, response, context, next) -> None:
            response.respond(200, f"Hello, {context.params['name']}!")

        async with TestClient(app) as client:
            response = await client.get("/hello/ada")

        assert response.text == "Hello, ada!"

    @pytest.mark.anyio
    async def test_sync_handler(self) -> None:
        app = App()
        app.router.enable_simple_matching()

        @app.route("/sync")
        def sync(request, response, context, next) -> None:
            response.respond(200, "sync")

        async with TestClient(app) as client:
            response = await client.get("/sync")

        assert response.text == "sync"


class TestFreeze:
    @pytest.mark.anyio
    async def test_registration_after_first_request(self) -> None:
        app = App().use(_ok)

        async with TestClient(app) as client:
            await client.get("/")

        with pytest.raises(RuntimeError, match="after it has started"):
            app.use(_ok)
        with pytest.raises(RuntimeError):
            app.route("/late")(_ok)
        with pytest.raises(RuntimeError):
            app.on_startup(lambda: None)
        with pytest.raises(RuntimeError):
            app.router.get("/late", _ok)

    @pytest.mark.anyio
    async def test_static_dir_appended_at_freeze(self, tmp_path) -> None:
        (tmp_path / "site.css").write_text("body {}")
        app = App(AppConfig(static_dir=tmp_path, static_url="/assets"))

        async with TestClient(app) as client:
            response = await client.get("/assets/site.css")

        assert response.status == 200
        assert response.text == "body {}"
        assert response.content_type == "text/css"


class TestLifespan:
    @pytest.mark.anyio
    async def test_hooks_run_in_order(self) -> None:
        app = App()
        log: list[str] = []

        @app.on_startup
        def first() -> None:
            log.append("start:1")

        @app.on_startup
        async def second() -> None:
            log.append("start:2")

        @app.on_shutdown
        async def stop() -> None:
            log.append("stop")

        async with TestClient(app):
            assert log == ["start:1", "start:2"]

        assert log == ["start:1", "start:2", "stop"]

    @pytest.mark.anyio
    async def test_asgi_lifespan_protocol(self) -> None:
        app = App()
        started: list[bool] = []
        app.on_startup(lambda: started.append(True))

        incoming = iter([{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}])
        sent: list[dict] = []

        async def receive() -> dict:
            return next(incoming)

        async def send(message: dict) -> None:
            sent.append(message)

        await app({"type": "lifespan"}, receive, send)

        assert started == [True]
        assert [m["type"] for m in sent] == [
            "lifespan.startup.complete",
            "lifespan.shutdown.complete",
        ]
        assert app.router.frozen is True

    @pytest.mark.anyio
    async def test_failing_startup_reported(self) -> None:
        app = App()

        @app.on_startup
        def broken() -> None:
            raise RuntimeError("no database")

        sent: list[dict] = []

        async def receive() -> dict:
            return {"type": "lifespan.startup"}

        async def send(message: dict) -> None:
            sent.append(message)

        await app({"type": "lifespan"}, receive, send)

        assert sent == [{"type": "lifespan.startup.failed", "message": "no database"}]


class TestRun:
    def test_run_uses_config_and_freezes(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[tuple] = []

        def fake_run_server(app, host, port, *, reload=False) -> None:
            calls.append((app, host, port, reload))

        monkeypatch.setattr("trellis.server.dev.run_server", fake_run_server)
        app = App(AppConfig(host="0.0.0.0", port=9000, debug=True))

        app.run()

        assert calls == [(app, "0.0.0.0", 9000, True)]
        assert app.router.frozen is True

    def test_run_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        calls: list[tuple] = []
        monkeypatch.setattr(
            "trellis.server.dev.run_server",
            lambda app, host, port, *, reload=False: calls.append((host, port)),
        )

        App().run(host="localhost", port=8123)

        assert calls == [("localhost", 8123)]
