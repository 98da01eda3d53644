from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable

from fastapi import FastAPI
from fastapi import Request as HttpRequest
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from dispatch.engine import DispatchEngine
from transport.webhook_handler import FORM_VENDORS, JSON_VENDORS, UssdWebhookHandler

Endpoint = Callable[[HttpRequest], Awaitable[Response]]


def create_api(engine: DispatchEngine, config: dict[str, Any]) -> FastAPI:
    handler = UssdWebhookHandler(engine, config)
    transport_conf = config.get("transport", {})
    endpoints = transport_conf.get("endpoints", {})

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        engine.store.close()

    api = FastAPI(title="ussdflow gateway", version="0.1.0", lifespan=lifespan)

    @api.get("/healthz")
    async def healthz() -> dict[str, Any]:
        return {"ok": True}

    @api.get("/stats")
    async def stats() -> dict[str, int]:
        return engine.stats.snapshot()

    for vendor in FORM_VENDORS:
        path = str(endpoints.get(vendor) or "").strip()
        if path:
            api.add_api_route(path, _form_endpoint(handler, vendor), methods=["POST"], name=f"ussd-{vendor}")
    for vendor in JSON_VENDORS:
        path = str(endpoints.get(vendor) or "").strip()
        if path:
            api.add_api_route(path, _json_endpoint(handler, vendor), methods=["POST"], name=f"ussd-{vendor}")

    if transport_conf.get("emulator_enabled", False):

        @api.post("/emu/send")
        async def emulator_send(request: HttpRequest) -> Response:
            body = await request.body()
            status, payload = await run_in_threadpool(handler.handle_emulator, body, _client_ip(request))
            if status != 200:
                return PlainTextResponse(str(payload), status_code=status)
            return JSONResponse(payload)

    return api


def _form_endpoint(handler: UssdWebhookHandler, vendor: str) -> Endpoint:
    async def endpoint(request: HttpRequest) -> Response:
        try:
            form = await request.form()
        except Exception:  # noqa: BLE001
            return PlainTextResponse("bad form", status_code=400)
        status, text = await run_in_threadpool(handler.handle_form, vendor, form, _client_ip(request))
        return PlainTextResponse(text, status_code=status)

    return endpoint


def _json_endpoint(handler: UssdWebhookHandler, vendor: str) -> Endpoint:
    async def endpoint(request: HttpRequest) -> Response:
        body = await request.body()
        status, payload = await run_in_threadpool(handler.handle_json, vendor, body, _client_ip(request))
        if status != 200:
            return PlainTextResponse(str(payload), status_code=status)
        return JSONResponse(payload)

    return endpoint


def _client_ip(request: HttpRequest) -> str:
    return request.client.host if request.client else ""
