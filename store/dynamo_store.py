from __future__ import annotations

import json
import math
import time
from typing import Any, Callable

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from core.errors import StoreError
from core.models import utc_now_iso
from store.store_interface import SessionStoreProtocol


class DynamoSessionStore(SessionStoreProtocol):
    """Session records in one DynamoDB table.

    Table key: ``session_id`` (S). ``expires_at_epoch`` should be configured as the
    table's TTL attribute; DynamoDB deletes expired items lazily, so reads also
    compare against the clock.
    """

    def __init__(
        self,
        *,
        region_name: str | None = None,
        table_name: str = "ussdflow-sessions",
        default_ttl_seconds: float = 60.0,
        dynamodb_resource: Any | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        if default_ttl_seconds <= 0:
            raise ValueError("default_ttl_seconds must be positive")
        self.default_ttl_seconds = float(default_ttl_seconds)
        self._clock = clock or time.time
        self._ddb = dynamodb_resource or boto3.resource("dynamodb", region_name=region_name)
        self._table = self._ddb.Table((table_name or "ussdflow-sessions").strip())

    def get(self, session_id: str) -> dict[str, Any]:
        try:
            item = self._table.get_item(Key={"session_id": session_id}, ConsistentRead=True).get("Item")
        except (ClientError, BotoCoreError) as exc:
            raise StoreError(f"dynamodb get failed session_id={session_id}: {exc}") from exc
        if not item:
            return {}
        if _to_int(item.get("expires_at_epoch")) <= self._clock():
            return {}
        payload = _load_json(item.get("payload_json"))
        return payload if isinstance(payload, dict) else {}

    def put(self, session_id: str, data: dict[str, Any], ttl_seconds: float = 0) -> None:
        ttl = float(ttl_seconds) if ttl_seconds and ttl_seconds > 0 else self.default_ttl_seconds
        expires_at_epoch = int(math.ceil(self._clock() + ttl))
        try:
            self._table.put_item(
                Item={
                    "session_id": session_id,
                    "payload_json": json.dumps(data or {}, ensure_ascii=False),
                    "expires_at_epoch": expires_at_epoch,
                    "updated_at": utc_now_iso(),
                }
            )
        except (ClientError, BotoCoreError) as exc:
            raise StoreError(f"dynamodb put failed session_id={session_id}: {exc}") from exc

    def delete(self, session_id: str) -> None:
        try:
            self._table.delete_item(Key={"session_id": session_id})
        except (ClientError, BotoCoreError) as exc:
            raise StoreError(f"dynamodb delete failed session_id={session_id}: {exc}") from exc

    def close(self) -> None:
        return None


def _load_json(text: Any) -> Any:
    if not text:
        return None
    try:
        return json.loads(str(text))
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> int:
    # boto3 returns numbers as Decimal
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0
