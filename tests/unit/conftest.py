import asyncio
import pytest
from aiohttp import web
from typing import Any, Dict, List
from collections.abc import AsyncGenerator


async def _serve(app: web.Application, **runner_kwargs: Any) -> tuple[web.AppRunner, str]:
    runner = web.AppRunner(app, **runner_kwargs)
    await runner.setup()
    # Port 0 lets the OS pick a free port; read it back from the runner.
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    port: int = runner.addresses[0][1]
    return runner, f"http://127.0.0.1:{port}"


@pytest.fixture
async def api_server() -> AsyncGenerator[Dict[str, Any], None]:
    """JSON API with a handful of well-behaved and misbehaving routes."""
    hits: List[str] = []

    async def ok(request: web.Request) -> web.StreamResponse:
        hits.append(request.path_qs)
        return web.json_response({"ok": True, "path": request.path_qs})

    async def echo(request: web.Request) -> web.StreamResponse:
        hits.append(request.path_qs)
        return web.json_response(
            {
                "method": request.method,
                "headers": dict(request.headers),
                "body": await request.text(),
            }
        )

    async def missing(request: web.Request) -> web.StreamResponse:
        hits.append(request.path_qs)
        return web.json_response({"error": "not found"}, status=404)

    async def not_json(request: web.Request) -> web.StreamResponse:
        hits.append(request.path_qs)
        return web.Response(text="not-json")

    async def slow(request: web.Request) -> web.StreamResponse:
        await asyncio.sleep(10)
        return web.json_response({"status": "never"})

    async def upload(request: web.Request) -> web.StreamResponse:
        hits.append(request.path_qs)
        reader = await request.multipart()
        part = await reader.next()
        data = await part.read()
        return web.json_response(
            {
                "field": part.name,
                "filename": part.filename,
                "content_type": part.headers.get("Content-Type"),
                "size": len(data),
            }
        )

    app = web.Application()
    app.router.add_get("/x", ok)
    app.router.add_get("/todos/1", ok)
    app.router.add_get("/blogs", ok)
    app.router.add_route("*", "/echo", echo)
    app.router.add_get("/missing", missing)
    app.router.add_get("/not-json", not_json)
    app.router.add_get("/slow", slow)
    app.router.add_post("/upload", upload)
    runner, base_url = await _serve(app, shutdown_timeout=0.1)
    yield {"base_url": base_url, "hits": hits}
    await runner.cleanup()


@pytest.fixture
async def flaky_server() -> AsyncGenerator[Dict[str, Any], None]:
    """Answers 503 for the first two requests, then succeeds."""
    attempts: List[int] = []

    async def handle(request: web.Request) -> web.StreamResponse:
        attempts.append(len(attempts) + 1)
        if len(attempts) <= 2:
            return web.json_response({"error": "unavailable"}, status=503)
        return web.json_response({"status": "ok", "attempt": len(attempts)})

    app = web.Application()
    app.router.add_get("/health", handle)
    runner, base_url = await _serve(app)
    yield {"url": f"{base_url}/health", "attempts": attempts}
    await runner.cleanup()
