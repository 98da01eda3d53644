from __future__ import annotations

import unittest

from core.models import Reply, Request, con, end, last_token
from core.session import Session, is_session_value


class SessionTest(unittest.TestCase):
    def test_typed_accessors_fail_closed(self) -> None:
        session = Session("s1", {"name": "Ana", "count": 3, "ratio": 1.5, "flag": True, "cart": {"a": 1}})

        self.assertEqual(session.get_str("name"), "Ana")
        self.assertEqual(session.get_str("count"), "")
        self.assertEqual(session.get_int("count"), 3)
        self.assertEqual(session.get_int("flag"), 0)
        self.assertEqual(session.get_int("name"), 0)
        self.assertEqual(session.get_float("ratio"), 1.5)
        self.assertEqual(session.get_float("count"), 3.0)
        self.assertEqual(session.get_float("flag"), 0.0)
        self.assertTrue(session.get_bool("flag"))
        self.assertFalse(session.get_bool("count"))
        self.assertEqual(session.get_map("cart"), {"a": 1})
        self.assertEqual(session.get_map("missing"), {})

    def test_set_get_delete(self) -> None:
        session = Session("s1")
        session.set("amount", 50)
        session.set("items", [{"sku": "A"}, None])

        self.assertIn("amount", session)
        self.assertEqual(session.get("amount"), 50)
        self.assertEqual(session.data(), {"amount": 50, "items": [{"sku": "A"}, None]})

        session.delete("amount")
        session.delete("amount")
        self.assertNotIn("amount", session)
        self.assertEqual(session.get("amount", "none"), "none")

    def test_set_rejects_unsupported_values(self) -> None:
        session = Session("s1")
        with self.assertRaises(TypeError):
            session.set("obj", object())
        with self.assertRaises(TypeError):
            session.set("nested", {"ok": 1, "bad": {1, 2}})
        with self.assertRaises(TypeError):
            session.set("keys", {1: "int key"})
        self.assertNotIn("obj", session)

    def test_is_session_value(self) -> None:
        self.assertTrue(is_session_value(None))
        self.assertTrue(is_session_value({"a": [1, 2.5, "x", False]}))
        self.assertFalse(is_session_value(b"bytes"))


class RequestReplyTest(unittest.TestCase):
    def test_last_token(self) -> None:
        self.assertEqual(last_token("1*200*3"), "3")
        self.assertEqual(last_token("7"), "7")
        self.assertEqual(last_token(""), "")
        self.assertEqual(last_token("   "), "")
        self.assertEqual(last_token("1*"), "")
        self.assertEqual(last_token(" 1* 2 "), "2")

    def test_request_meta_is_read_only(self) -> None:
        meta = {"vendor": "infobip"}
        request = Request(session_id="s1", text="1*2", meta=meta)
        meta["vendor"] = "changed"

        self.assertEqual(request.meta["vendor"], "infobip")
        self.assertEqual(request.input_token(), "2")
        with self.assertRaises(TypeError):
            request.meta["ip"] = "10.0.0.1"  # type: ignore[index]

    def test_request_is_hashable(self) -> None:
        first = Request(session_id="s1", msisdn="258", text="1", meta={"vendor": "infobip"})
        second = Request(session_id="s1", msisdn="258", text="1", meta={"vendor": "infobip"})

        self.assertEqual(hash(first), hash(second))
        self.assertEqual(len({first, second}), 1)

    def test_reply_wire_text(self) -> None:
        self.assertEqual(con("Menu").wire_text(), "CON Menu")
        self.assertEqual(end("Bye").wire_text(), "END Bye")
        self.assertTrue(end("Bye").terminating)
        self.assertFalse(con("Menu").terminating)
        self.assertEqual(
            Reply(continue_session=True, message="Hi").to_dict(),
            {"raw": "CON Hi", "continue": True, "message": "Hi"},
        )


if __name__ == "__main__":
    unittest.main()
