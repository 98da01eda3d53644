from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "engine": {
        "start_path": "/home",
        "session_ttl_seconds": 60,
        "serialize_sessions": False,
    },
    "session_store": {
        "backend": "memory",
        "default_ttl_seconds": 60,
        "sweep_interval_seconds": 60,
        "dynamodb": {
            "region": None,
            "table_name": "ussdflow-sessions",
        },
    },
    "transport": {
        "endpoints": {
            "generic": "/ussd",
            "africastalking": "/ussd/at",
            "infobip": "/ussd/infobip",
            "vodacom": "/ussd/voda",
            "generic-json": "/ussd/json",
        },
        "fields": {
            "africastalking": {
                "session_id": "sessionId",
                "msisdn": "phoneNumber",
                "text": "text",
                "service_code": "serviceCode",
            },
            "infobip": {
                "session_id": "SESSION_ID",
                "msisdn": "MSISDN",
                "text": "INPUT",
            },
            "vodacom": {
                "session_id": "sessionId",
                "msisdn": "msisdn",
                "text": "userInput",
            },
            "generic-json": {
                "session_id": "sid",
                "msisdn": "from",
                "text": "input",
            },
        },
        "responses": {
            "vodacom": {"text_key": "text", "wrapper_key": "type", "wrapper_value": "Response"},
            "generic-json": {"text_key": "message", "wrapper_key": "type", "wrapper_value": "Response"},
        },
        "emulator_enabled": True,
    },
    "middleware": {
        "recover": True,
        "access_log": True,
        "hmac_secret": None,
        "rate_limit": {
            "enabled": False,
            "limit": 10,
            "window_seconds": 60,
        },
    },
    "logging": {
        "level": "INFO",
    },
}


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def load_config(config_path: str | None = None) -> dict[str, Any]:
    if not config_path:
        return DEFAULT_CONFIG

    path = Path(config_path)
    if not path.exists():
        return DEFAULT_CONFIG

    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return DEFAULT_CONFIG

    if path.suffix.lower() == ".json":
        data = json.loads(text)
    else:
        data = yaml.safe_load(text)
    if not isinstance(data, dict):
        data = {}
    return deep_merge(DEFAULT_CONFIG, data)
