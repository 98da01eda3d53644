from __future__ import annotations

import unittest
from copy import deepcopy

from app.config import DEFAULT_CONFIG
from app.demo_menus import BUNDLES, build_router
from dispatch.engine import DispatchEngine
from store.memory_store import InMemorySessionStore
from testkit.simulator import Simulator


class DemoMenuFlowTest(unittest.TestCase):
    def setUp(self) -> None:
        self.store = InMemorySessionStore(default_ttl_seconds=60, start_sweeper=False)
        self.engine = DispatchEngine(build_router(DEFAULT_CONFIG), self.store)
        self.sim = Simulator(self.engine)

    def test_dial_shows_home_menu(self) -> None:
        self.sim.start("+258840000001", service_code="*123#")

        self.sim.expect("Welcome").expect("1) Check balance").expect("00) Exit")
        self.assertEqual(self.store.get(self.sim.session_id)["_p"], "/home")

    def test_airtime_purchase_completes_and_clears_session(self) -> None:
        self.sim.start("+258840000001")
        self.sim.send_accumulated("2").expect("Enter amount (MZN):")
        self.sim.send_accumulated("50").expect("Confirm 50 MZN?")
        self.sim.send_accumulated("1").expect_end("Purchase complete. Thank you.")

        self.assertEqual(self.store.get(self.sim.session_id), {})
        self.assertEqual(len(self.sim.history), 4)

    def test_invalid_amount_reprompts_once(self) -> None:
        self.sim.start("+258840000001")
        self.sim.send_accumulated("2")
        self.sim.send_accumulated("abc").expect("Invalid amount. Try again:")
        self.sim.send_accumulated("0").expect("Invalid amount. Try again:")
        self.sim.send_accumulated("75").expect("Confirm 75 MZN?")

        self.assertNotIn("amount_error", self.store.get(self.sim.session_id))

    def test_back_from_confirm_returns_home(self) -> None:
        self.sim.start("+258840000001")
        self.sim.send_accumulated("2")
        self.sim.send_accumulated("50")
        self.sim.send_accumulated("0").expect("Welcome")

        self.assertEqual(self.store.get(self.sim.session_id)["_p"], "/home")

    def test_balance_and_exit(self) -> None:
        self.sim.start("+258840000001")
        self.sim.send("1").expect("Balance: 123.45 MZN").expect("0) Back")
        self.sim.send("0").expect("Welcome")
        self.sim.send("00").expect_end("Goodbye.")

    def test_bundle_paging_and_purchase(self) -> None:
        self.sim.start("+258840000001")
        self.sim.send_accumulated("3").expect("Data bundles").expect(f"1) {BUNDLES[0]}").expect("6) Next")
        self.sim.send_accumulated("6").expect(f"1) {BUNDLES[5]}").expect("6) Previous").expect("7) Next")
        self.sim.send_accumulated("1").expect(f"Confirm\n{BUNDLES[5]}?")
        self.sim.send_accumulated("1").expect_end("Bundle purchased.")

    def test_bundle_item_back_returns_to_its_page(self) -> None:
        self.sim.start("+258840000001")
        self.sim.send("3")
        self.sim.send("6")
        self.sim.send("2").expect(BUNDLES[6])
        self.sim.send("0").expect(f"1) {BUNDLES[5]}")

    def test_invalid_menu_choice_shows_notice(self) -> None:
        self.sim.start("+258840000001")
        self.sim.send("9").expect("Invalid option.").expect("Welcome")
        self.assertNotIn("_notice", self.store.get(self.sim.session_id))
        self.sim.send("").expect("Welcome")
        self.assertNotIn("Invalid option.", self.sim.last.message)

    def test_confirm_input_is_rate_limited_per_msisdn(self) -> None:
        for _ in range(2):
            sim = Simulator(self.engine).start("+258840000009")
            sim.send("2")
            sim.send("50")
            sim.send("1").expect_end("Purchase complete.")

        third = Simulator(self.engine).start("+258840000009")
        third.send("2")
        third.send("50")
        third.send("1").expect_end("Busy. Please try again.")

    def test_hmac_secret_rejects_unsigned_requests(self) -> None:
        config = deepcopy(DEFAULT_CONFIG)
        config["middleware"]["hmac_secret"] = "s3cret"
        engine = DispatchEngine(build_router(config), InMemorySessionStore(start_sweeper=False))

        Simulator(engine).start("+258840000001").expect_end("Unauthorized.")


if __name__ == "__main__":
    unittest.main()
