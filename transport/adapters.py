from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from core.enums import Vendor
from core.models import Reply, Request


@dataclass(frozen=True, slots=True)
class FieldMap:
    session_id: str
    msisdn: str
    text: str
    service_code: str = ""


@dataclass(frozen=True, slots=True)
class JsonReplyMap:
    text_key: str = "text"
    wrapper_key: str = ""
    wrapper_value: str = ""


DEFAULT_FIELDS: dict[str, FieldMap] = {
    Vendor.GENERIC.value: FieldMap("sessionId", "phoneNumber", "text", "serviceCode"),
    Vendor.AFRICASTALKING.value: FieldMap("sessionId", "phoneNumber", "text", "serviceCode"),
    Vendor.INFOBIP.value: FieldMap("SESSION_ID", "MSISDN", "INPUT"),
    Vendor.VODACOM.value: FieldMap("sessionId", "msisdn", "userInput"),
    Vendor.GENERIC_JSON.value: FieldMap("sid", "from", "input"),
    Vendor.EMULATOR.value: FieldMap("sessionId", "msisdn", "text"),
}

DEFAULT_JSON_REPLIES: dict[str, JsonReplyMap] = {
    Vendor.VODACOM.value: JsonReplyMap(text_key="text", wrapper_key="type", wrapper_value="Response"),
    Vendor.GENERIC_JSON.value: JsonReplyMap(text_key="message", wrapper_key="type", wrapper_value="Response"),
}

# Gateways disagree on key spelling; the generic form endpoint accepts these too.
FORM_ALIASES: dict[str, tuple[str, ...]] = {
    "sessionId": ("sessionid", "session_id", "sid"),
    "phoneNumber": ("msisdn", "phone", "from"),
    "serviceCode": ("code", "service", "shortcode"),
    "text": ("message", "input"),
}


def field_map_from_config(vendor: str, override: Mapping[str, Any] | None) -> FieldMap:
    base = DEFAULT_FIELDS.get(vendor, DEFAULT_FIELDS[Vendor.GENERIC.value])
    if not override:
        return base
    return FieldMap(
        session_id=_non_empty(override.get("session_id"), base.session_id),
        msisdn=_non_empty(override.get("msisdn"), base.msisdn),
        text=_non_empty(override.get("text"), base.text),
        service_code=_non_empty(override.get("service_code"), base.service_code),
    )


def json_reply_map_from_config(vendor: str, override: Mapping[str, Any] | None) -> JsonReplyMap:
    base = DEFAULT_JSON_REPLIES.get(vendor, JsonReplyMap())
    if not override:
        return base
    return JsonReplyMap(
        text_key=_non_empty(override.get("text_key"), base.text_key),
        wrapper_key=str(override.get("wrapper_key", base.wrapper_key) or ""),
        wrapper_value=str(override.get("wrapper_value", base.wrapper_value) or ""),
    )


def decode_form(
    form: Mapping[str, Any],
    fields: FieldMap,
    vendor: str,
    client_ip: str = "",
    use_aliases: bool = False,
) -> Request:
    def pick(key: str) -> str:
        if not key:
            return ""
        value = _as_str(form.get(key))
        if value or not use_aliases:
            return value
        for alias in FORM_ALIASES.get(key, ()):
            value = _as_str(form.get(alias))
            if value:
                return value
        return ""

    return Request(
        session_id=pick(fields.session_id),
        msisdn=pick(fields.msisdn).strip(),
        text=pick(fields.text).strip(),
        service_code=pick(fields.service_code).strip(),
        meta=_meta(vendor, client_ip),
    )


def decode_json(body: Any, fields: FieldMap, vendor: str, client_ip: str = "") -> Request:
    if not isinstance(body, dict):
        raise ValueError("json body must be an object")
    return Request(
        session_id=_as_str(body.get(fields.session_id)),
        msisdn=_as_str(body.get(fields.msisdn)).strip(),
        text=_as_str(body.get(fields.text)).strip(),
        service_code=_as_str(body.get(fields.service_code)).strip() if fields.service_code else "",
        meta=_meta(vendor, client_ip),
    )


def encode_text(reply: Reply) -> str:
    return reply.wire_text()


def encode_json(reply: Reply, mapping: JsonReplyMap) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    if mapping.wrapper_key:
        payload[mapping.wrapper_key] = mapping.wrapper_value
    payload[mapping.text_key] = reply.wire_text()
    return payload


def _meta(vendor: str, client_ip: str) -> dict[str, str]:
    meta = {"vendor": vendor}
    if client_ip:
        meta["ip"] = client_ip
    return meta


def _as_str(value: Any) -> str:
    # non-string JSON values (numbers, objects) are treated as absent
    return value if isinstance(value, str) else ""


def _non_empty(value: Any, default: str) -> str:
    text = str(value or "").strip()
    return text or default
