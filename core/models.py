from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping

from core.enums import CONTINUE_PREFIX, END_PREFIX, INPUT_DELIMITER


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True, slots=True)
class Request:
    """Normalized inbound step of a USSD conversation, independent of the gateway vendor."""

    session_id: str
    msisdn: str = ""
    text: str = ""
    service_code: str = ""
    meta: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "meta", MappingProxyType({str(k): str(v) for k, v in dict(self.meta).items()}))

    def input_token(self) -> str:
        return last_token(self.text)


@dataclass(frozen=True, slots=True)
class Reply:
    continue_session: bool
    message: str

    @property
    def terminating(self) -> bool:
        return not self.continue_session

    def wire_text(self) -> str:
        prefix = CONTINUE_PREFIX if self.continue_session else END_PREFIX
        return prefix + self.message

    def to_dict(self) -> dict[str, Any]:
        return {
            "raw": self.wire_text(),
            "continue": self.continue_session,
            "message": self.message,
        }


def con(message: str) -> Reply:
    return Reply(continue_session=True, message=message)


def end(message: str) -> Reply:
    return Reply(continue_session=False, message=message)


def last_token(text: str) -> str:
    # "1*200*3" -> "3"; trailing delimiters and blank text yield ""
    raw = (text or "").strip()
    if not raw:
        return ""
    return raw.split(INPUT_DELIMITER)[-1].strip()
