"""Tests for trellis.server.handler — per-request dispatch and finalization."""

import threading

import anyio
import pytest

from trellis.app import App
from trellis.context import Context, get_context
from trellis.routing.router import Router
from trellis.server.handler import RequestIdCounter, handle_request
from trellis.testing import TestClient


def _scope(path: str = "/", method: str = "GET") -> dict:
    return {
        "type": "http",
        "method": method,
        "path": path,
        "raw_path": path.encode("latin-1"),
        "query_string": b"",
        "headers": [],
    }


async def _receive() -> dict:
    return {"type": "http.request", "body": b"", "more_body": False}


class _Capture:
    """Collects ASGI messages sent by the app."""

    def __init__(self) -> None:
        self.messages: list[dict] = []

    async def __call__(self, message: dict) -> None:
        self.messages.append(message)

    @property
    def starts(self) -> list[dict]:
        return [m for m in self.messages if m["type"] == "http.response.start"]


class TestNoResponder:
    @pytest.mark.anyio
    async def test_empty_router_answers_501(self) -> None:
        async with TestClient(App()) as client:
            response = await client.get("/anything")

        assert response.status == 501
        assert response.body == b""

    @pytest.mark.anyio
    async def test_passthrough_middleware_answers_501(self) -> None:
        async def passthrough(request, response, context, next) -> None:
            await next()

        async with TestClient(App().use(passthrough)) as client:
            response = await client.get("/")

        assert response.status == 501

    @pytest.mark.anyio
    async def test_headers_set_by_middleware_survive_501(self) -> None:
        async def tag(request, response, context, next) -> None:
            response.set_header("X-Seen", "yes")
            await next()

        async with TestClient(App().use(tag)) as client:
            response = await client.get("/")

        assert response.status == 501
        assert response.header("x-seen") == "yes"


class TestExceptions:
    @pytest.mark.anyio
    async def test_exception_still_finalizes_then_propagates(self) -> None:
        async def boom(request, response, context, next) -> None:
            raise RuntimeError("boom")

        router = Router().use(boom)
        send = _Capture()

        with pytest.raises(RuntimeError, match="boom"):
            await handle_request(
                _scope(), _receive, send, router=router, request_ids=RequestIdCounter()
            )

        assert len(send.starts) == 1
        assert send.starts[0]["status"] == 501

    @pytest.mark.anyio
    async def test_answered_before_exception_keeps_status(self) -> None:
        async def answer_then_fail(request, response, context, next) -> None:
            response.respond(202, "accepted")
            raise RuntimeError("late failure")

        router = Router().use(answer_then_fail)
        send = _Capture()

        with pytest.raises(RuntimeError):
            await handle_request(
                _scope(), _receive, send, router=router, request_ids=RequestIdCounter()
            )

        assert send.starts[0]["status"] == 202


class TestFinalizeOnce:
    @pytest.mark.anyio
    async def test_closed_inside_chain_is_sent_once(self) -> None:
        async def early_close(request, response, context, next) -> None:
            response.respond(200, "streamed")
            await response.close()

        router = Router().use(early_close)
        send = _Capture()

        await handle_request(_scope(), _receive, send, router=router, request_ids=RequestIdCounter())

        assert len(send.starts) == 1
        assert len(send.messages) == 2


class TestRequestIds:
    @pytest.mark.anyio
    async def test_ids_start_at_one(self) -> None:
        seen: list[int] = []

        async def record(request, response, context, next) -> None:
            seen.append(context.request_id)
            response.respond(200)

        async with TestClient(App().use(record)) as client:
            await client.get("/")
            await client.get("/")
            await client.get("/")

        assert seen == [1, 2, 3]

    @pytest.mark.anyio
    async def test_concurrent_requests_get_distinct_ids(self) -> None:
        seen: list[int] = []

        async def record(request, response, context, next) -> None:
            await anyio.sleep(0)
            seen.append(context.request_id)
            response.respond(200)

        app = App().use(record)

        async with TestClient(app) as client:
            async with anyio.create_task_group() as tg:
                for _ in range(50):
                    tg.start_soon(client.get, "/")

        assert sorted(seen) == list(range(1, 51))

    @pytest.mark.anyio
    async def test_each_request_gets_fresh_context(self) -> None:
        contexts: list[Context] = []

        async def record(request, response, context, next) -> None:
            contexts.append(context)
            context["touched"] = True
            response.respond(200)

        async with TestClient(App().use(record)) as client:
            await client.get("/")
            await client.get("/")

        assert contexts[0] is not contexts[1]
        assert set(contexts[1]) == {"req.id", "touched"}


class TestRequestContextVar:
    @pytest.mark.anyio
    async def test_available_during_request(self) -> None:
        captured: list[Context] = []

        async def record(request, response, context, next) -> None:
            captured.append(get_context())
            captured.append(context)
            response.respond(200)

        async with TestClient(App().use(record)) as client:
            await client.get("/")

        assert captured[0] is captured[1]

    @pytest.mark.anyio
    async def test_reset_after_request(self) -> None:
        async def ok(request, response, context, next) -> None:
            response.respond(200)

        async with TestClient(App().use(ok)) as client:
            await client.get("/")

        with pytest.raises(LookupError):
            get_context()


class TestNonHttpScope:
    @pytest.mark.anyio
    async def test_websocket_scope_ignored(self) -> None:
        counter = RequestIdCounter()
        send = _Capture()

        await handle_request(
            {"type": "websocket", "path": "/"}, _receive, send, router=Router(), request_ids=counter
        )

        assert send.messages == []
        assert counter.last == 0


class TestRequestIdCounter:
    def test_sequence(self) -> None:
        counter = RequestIdCounter()
        assert [counter.next() for _ in range(3)] == [1, 2, 3]
        assert counter.last == 3

    def test_custom_start(self) -> None:
        counter = RequestIdCounter(start=100)
        assert counter.next() == 101

    def test_threads_never_share_an_id(self) -> None:
        counter = RequestIdCounter()
        results: list[int] = []
        lock = threading.Lock()

        def worker() -> None:
            local = [counter.next() for _ in range(1000)]
            with lock:
                results.extend(local)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(results) == 8000
        assert len(set(results)) == 8000
        assert counter.last == 8000
