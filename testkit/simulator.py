from __future__ import annotations

import itertools
import time

from core.enums import INPUT_DELIMITER
from core.models import Reply, Request
from dispatch.engine import DispatchEngine

_counter = itertools.count(1)


class Simulator:
    """Drives a DispatchEngine with scripted requests for tests and local runs.

    ``send`` forwards only the new token (gateways that send the last input),
    ``send_accumulated`` appends it to the running ``1*2*3`` text the way most
    gateways do. Expectation helpers raise AssertionError so they work under
    unittest and pytest alike.
    """

    def __init__(self, engine: DispatchEngine) -> None:
        self.engine = engine
        self.session_id = ""
        self.msisdn = ""
        self.service_code = ""
        self.text = ""
        self.last: Reply | None = None
        self.history: list[Reply] = []

    def start(self, msisdn: str, service_code: str = "", session_id: str | None = None) -> Simulator:
        self.session_id = session_id or f"sess-{time.time_ns()}-{next(_counter)}"
        self.msisdn = msisdn
        self.service_code = service_code
        self.text = ""
        self.history = []
        return self._call("")

    def send(self, token: str) -> Simulator:
        self.text = token
        return self._call(token)

    def send_accumulated(self, token: str) -> Simulator:
        self.text = f"{self.text}{INPUT_DELIMITER}{token}" if self.text else token
        return self._call(self.text)

    def expect(self, substring: str) -> Simulator:
        reply = self._require_last()
        if not reply.continue_session:
            raise AssertionError(f"expected CON containing {substring!r}, got END: {reply.message!r}")
        if substring not in reply.message:
            raise AssertionError(f"expected {substring!r} in {reply.message!r}")
        return self

    def expect_end(self, substring: str = "") -> Simulator:
        reply = self._require_last()
        if reply.continue_session:
            raise AssertionError(f"expected END, got CON: {reply.message!r}")
        if substring not in reply.message:
            raise AssertionError(f"expected end message to contain {substring!r}, got {reply.message!r}")
        return self

    def _call(self, text: str) -> Simulator:
        if not self.session_id:
            raise AssertionError("simulator not started")
        result = self.engine.handle(
            Request(
                session_id=self.session_id,
                msisdn=self.msisdn,
                text=text,
                service_code=self.service_code,
            )
        )
        if result.error is not None:
            raise AssertionError(f"engine rejected request: {result.error}")
        self.last = result.reply
        self.history.append(result.reply)
        return self

    def _require_last(self) -> Reply:
        if self.last is None:
            raise AssertionError("no reply yet; call start() first")
        return self.last
