from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from core.enums import Vendor
from core.models import Request
from dispatch.engine import DispatchEngine, DispatchResult
from transport.adapters import (
    FieldMap,
    JsonReplyMap,
    decode_form,
    decode_json,
    encode_json,
    encode_text,
    field_map_from_config,
    json_reply_map_from_config,
)

logger = logging.getLogger(__name__)

FORM_VENDORS = (Vendor.GENERIC.value, Vendor.AFRICASTALKING.value, Vendor.INFOBIP.value)
JSON_VENDORS = (Vendor.VODACOM.value, Vendor.GENERIC_JSON.value)


class UssdWebhookHandler:
    """Translates gateway payloads to engine calls and back.

    Every method returns ``(status_code, payload)``; the payload is the text
    body for plain-text gateways and a dict for JSON gateways.
    """

    def __init__(self, engine: DispatchEngine, config: dict[str, Any]) -> None:
        self.engine = engine
        self.transport_conf = config.get("transport", {})
        fields_conf = self.transport_conf.get("fields", {})
        replies_conf = self.transport_conf.get("responses", {})
        self.fields: dict[str, FieldMap] = {
            vendor.value: field_map_from_config(vendor.value, fields_conf.get(vendor.value))
            for vendor in Vendor
        }
        self.json_replies: dict[str, JsonReplyMap] = {
            vendor: json_reply_map_from_config(vendor, replies_conf.get(vendor))
            for vendor in JSON_VENDORS
        }

    def handle_form(self, vendor: str, form: Mapping[str, Any], client_ip: str = "") -> tuple[int, str]:
        if vendor not in FORM_VENDORS:
            raise ValueError(f"not a form vendor: {vendor}")
        request = decode_form(
            form,
            self.fields[vendor],
            vendor=vendor,
            client_ip=client_ip,
            use_aliases=vendor == Vendor.GENERIC.value,
        )
        result = self._dispatch(request)
        return 200, encode_text(result.reply)

    def handle_json(self, vendor: str, body: bytes, client_ip: str = "") -> tuple[int, Any]:
        if vendor not in JSON_VENDORS:
            raise ValueError(f"not a json vendor: {vendor}")
        try:
            request = decode_json(_parse_json(body), self.fields[vendor], vendor=vendor, client_ip=client_ip)
        except ValueError:
            return 400, "bad json"
        result = self._dispatch(request)
        return 200, encode_json(result.reply, self.json_replies[vendor])

    def handle_emulator(self, body: bytes, client_ip: str = "") -> tuple[int, Any]:
        vendor = Vendor.EMULATOR.value
        try:
            request = decode_json(_parse_json(body), self.fields[vendor], vendor=vendor, client_ip=client_ip)
        except ValueError:
            return 400, "bad json"
        request = Request(
            session_id=request.session_id,
            msisdn=request.msisdn,
            text=request.text,
            service_code=request.service_code,
            meta={**request.meta, "emu": "true"},
        )
        result = self._dispatch(request)
        return 200, result.reply.to_dict()

    def _dispatch(self, request: Request) -> DispatchResult:
        result = self.engine.handle(request)
        if not result.ok:
            logger.warning(
                "request-rejected vendor=%s msisdn=%s error=%s",
                request.meta.get("vendor", ""),
                request.msisdn,
                result.error,
            )
        return result


def _parse_json(body: bytes) -> Any:
    try:
        return json.loads((body or b"").decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValueError("invalid json payload") from exc
