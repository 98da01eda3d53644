from __future__ import annotations

import base64
import json
import logging
import os
from copy import deepcopy
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qsl

import boto3

from app.config import load_config
from app.demo_menus import build_router
from dispatch.engine_factory import create_engine
from store.store_interface import SessionStoreProtocol
from transport.webhook_handler import FORM_VENDORS, JSON_VENDORS, UssdWebhookHandler

logger = logging.getLogger(__name__)

CONFIG_PATH = os.getenv("USSDFLOW_CONFIG_PATH", "config.yaml")
APP_SECRETS_ARN = os.getenv("APP_SECRETS_ARN", "")
APP_SECRETS_NAME = os.getenv("APP_SECRETS_NAME", "")
SESSION_TABLE = os.getenv("USSDFLOW_SESSION_TABLE", "")
EMULATOR_PATH = "/emu/send"

_secrets_client = None
_cached_secret_values: dict[str, Any] | None = None
_runtime: Runtime | None = None


@dataclass(slots=True)
class Runtime:
    handler: UssdWebhookHandler
    routes: dict[str, str]
    emulator_enabled: bool


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    _ = context
    method = str(event.get("requestContext", {}).get("http", {}).get("method", "")).upper()
    if method != "POST":
        return _text_response(405, "method not allowed")

    runtime = _get_runtime()
    path = str(event.get("rawPath", ""))
    client_ip = str(event.get("requestContext", {}).get("http", {}).get("sourceIp", "") or "")
    body = _decode_body(event)

    if path == EMULATOR_PATH and runtime.emulator_enabled:
        status, payload = runtime.handler.handle_emulator(body, client_ip)
        return _payload_response(status, payload)

    vendor = runtime.routes.get(path)
    if vendor is None:
        return _text_response(404, "not found")
    if vendor in FORM_VENDORS:
        try:
            form = dict(parse_qsl(body.decode("utf-8"), keep_blank_values=True))
        except UnicodeDecodeError:
            return _text_response(400, "bad form")
        status, text = runtime.handler.handle_form(vendor, form, client_ip)
        return _text_response(status, text)

    status, payload = runtime.handler.handle_json(vendor, body, client_ip)
    return _payload_response(status, payload)


def build_runtime(config: dict[str, Any], store: SessionStoreProtocol | None = None) -> Runtime:
    engine = create_engine(config, build_router(config), store=store)
    transport_conf = config.get("transport", {})
    routes: dict[str, str] = {}
    for vendor in (*FORM_VENDORS, *JSON_VENDORS):
        path = str(transport_conf.get("endpoints", {}).get(vendor) or "").strip()
        if path:
            routes[path] = vendor
    return Runtime(
        handler=UssdWebhookHandler(engine, config),
        routes=routes,
        emulator_enabled=bool(transport_conf.get("emulator_enabled", False)),
    )


def apply_environment(config: dict[str, Any], session_table: str, region: str | None) -> dict[str, Any]:
    if not session_table:
        return config
    store_conf = config.setdefault("session_store", {})
    store_conf["backend"] = "dynamodb"
    dynamodb_conf = store_conf.setdefault("dynamodb", {})
    dynamodb_conf["table_name"] = session_table
    if region and not dynamodb_conf.get("region"):
        dynamodb_conf["region"] = region
    return config


def _get_runtime() -> Runtime:
    # one engine per warm container
    global _runtime
    if _runtime is None:
        config = apply_environment(deepcopy(load_config(CONFIG_PATH)), SESSION_TABLE, os.getenv("AWS_REGION"))
        middleware = config.setdefault("middleware", {})
        if not middleware.get("hmac_secret"):
            middleware["hmac_secret"] = _load_app_secret_values().get("ussd_hmac_secret") or None
        _runtime = build_runtime(config)
        logger.info("runtime-ready routes=%s", sorted(_runtime.routes))
    return _runtime


def _load_app_secret_values() -> dict[str, Any]:
    global _cached_secret_values, _secrets_client
    if _cached_secret_values is not None:
        return _cached_secret_values
    secret_id = APP_SECRETS_ARN or APP_SECRETS_NAME
    if not secret_id:
        _cached_secret_values = {}
        return _cached_secret_values
    if _secrets_client is None:
        _secrets_client = boto3.client("secretsmanager")
    response = _secrets_client.get_secret_value(SecretId=secret_id)
    raw = response.get("SecretString")
    try:
        parsed = json.loads(raw) if isinstance(raw, str) and raw.strip() else {}
    except json.JSONDecodeError:
        logger.warning("app-secret-not-json secret_id=%s", secret_id)
        parsed = {}
    _cached_secret_values = parsed if isinstance(parsed, dict) else {}
    return _cached_secret_values


def _decode_body(event: dict[str, Any]) -> bytes:
    body = event.get("body", "")
    if body is None:
        return b""
    if bool(event.get("isBase64Encoded", False)):
        return base64.b64decode(str(body))
    return str(body).encode("utf-8")


def _payload_response(status_code: int, payload: Any) -> dict[str, Any]:
    if status_code != 200 or not isinstance(payload, dict):
        return _text_response(status_code, str(payload))
    return {
        "statusCode": status_code,
        "headers": {"content-type": "application/json; charset=utf-8"},
        "body": json.dumps(payload, ensure_ascii=False),
    }


def _text_response(status_code: int, text: str) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"content-type": "text/plain; charset=utf-8"},
        "body": text,
    }
