from __future__ import annotations

import unittest

from core.enums import ReplyText, SessionKey
from core.models import Request, con, end
from core.session import Session
from menu.builder import MenuBuilder
from menu.paginator import Paginator
from routing.context import Ctx


def _ctx(choice: str = "") -> Ctx:
    return Ctx(session=Session("s1"), request=Request(session_id="s1", text=choice), path="/home", input=choice)


def _home_menu() -> MenuBuilder:
    return (
        MenuBuilder("/home")
        .title("Welcome")
        .option("Balance", "/balance")
        .end_option("Help", "Dial *123# for help.")
        .back("/start")
        .exit("Goodbye.")
    )


class MenuBuilderTest(unittest.TestCase):
    def test_render_lists_numbered_options_and_navigation(self) -> None:
        self.assertEqual(
            _home_menu().prompt().message,
            "Welcome\n1) Balance\n2) Help\n0) Back\n00) Exit",
        )

    def test_option_redirects(self) -> None:
        ctx = _ctx("1")
        reply = _home_menu().handle(ctx)

        self.assertEqual(reply, con(""))
        self.assertEqual(ctx.redirect_to, "/balance")

    def test_end_option_back_and_exit(self) -> None:
        menu = _home_menu()

        self.assertEqual(menu.handle(_ctx("2")), end("Dial *123# for help."))
        self.assertEqual(menu.handle(_ctx("00")), end("Goodbye."))
        back = _ctx("0")
        self.assertEqual(menu.handle(back), con(""))
        self.assertEqual(back.redirect_to, "/start")

    def test_empty_input_reprompts(self) -> None:
        self.assertEqual(_home_menu().handle(_ctx("")), _home_menu().prompt())

    def test_invalid_choice_shows_notice(self) -> None:
        for choice in ("9", "abc", "-1", "٣"):
            with self.subTest(choice=choice):
                ctx = _ctx(choice)
                reply = _home_menu().handle(ctx)
                self.assertTrue(reply.continue_session)
                self.assertTrue(reply.message.startswith(f"Welcome\n⚠️ {ReplyText.INVALID_OPTION}\n1) Balance"))
                self.assertEqual(ctx.redirect_to, "")

    def test_invalid_choice_notice_survives_redisplay_once(self) -> None:
        menu = _home_menu()
        ctx = _ctx("7")
        menu.handle(ctx)

        self.assertTrue(ctx.session.get_bool(SessionKey.MENU_NOTICE))
        shown = menu.prompt(ctx)
        self.assertTrue(shown.message.startswith(f"Welcome\n⚠️ {ReplyText.INVALID_OPTION}\n1) Balance"))
        self.assertNotIn(SessionKey.MENU_NOTICE, ctx.session)
        self.assertEqual(menu.prompt(ctx), menu.prompt())

    def test_back_without_target_is_invalid(self) -> None:
        menu = MenuBuilder("/x").title("T").option("One", "/one")

        self.assertIn(ReplyText.INVALID_OPTION, menu.handle(_ctx("0")).message)

    def test_before_hook_runs_and_failure_terminates(self) -> None:
        seen: list[str] = []

        def remember(ctx: Ctx) -> None:
            seen.append(ctx.input)
            ctx.set("picked", ctx.input)

        def broken(ctx: Ctx) -> None:
            raise RuntimeError("backend down")

        menu = MenuBuilder("/m").title("T").option("Ok", "/ok", before=remember).option("Bad", "/bad", before=broken)

        ctx = _ctx("1")
        self.assertEqual(menu.handle(ctx), con(""))
        self.assertEqual(seen, ["1"])
        self.assertEqual(ctx.get("picked"), "1")

        failing = _ctx("2")
        with self.assertLogs("menu.builder", level="ERROR"):
            self.assertEqual(menu.handle(failing), end(ReplyText.TRY_LATER))
        self.assertEqual(failing.redirect_to, "")


class PaginatorTest(unittest.TestCase):
    def setUp(self) -> None:
        self.items = [f"Item {i}" for i in range(7)]
        self.paginator = (
            Paginator("/list/", self.items, size=3).with_title("Items").with_nav_labels("Previous", "More").with_back("/home")
        )

    def test_first_page_has_next_only(self) -> None:
        builder = self.paginator.render(1)

        self.assertEqual(
            builder.render(),
            "Items\n1) Item 0\n2) Item 1\n3) Item 2\n4) More\n0) Back",
        )
        self.assertEqual([item.target for item in builder.items][-1], "/list/2")

    def test_middle_page_has_prev_and_next(self) -> None:
        builder = self.paginator.render(2)
        targets = [item.target for item in builder.items]

        self.assertEqual(targets, ["/list/item/3", "/list/item/4", "/list/item/5", "/list/1", "/list/3"])

    def test_last_page_has_prev_only(self) -> None:
        builder = self.paginator.render(3)

        self.assertEqual([item.label for item in builder.items], ["Item 6", "Previous"])

    def test_out_of_range_pages_clamp_to_first(self) -> None:
        self.assertEqual(self.paginator.render(0).render(), self.paginator.render(1).render())
        self.assertEqual(self.paginator.render(99).render(), self.paginator.render(1).render())

    def test_defaults(self) -> None:
        paginator = Paginator("/p", ["a"], size=0)

        self.assertEqual(paginator.size, 5)
        self.assertEqual(paginator.render(1).render(), "Menu\n1) a")
        self.assertEqual(paginator.item_path(0), "/p/item/0")


if __name__ == "__main__":
    unittest.main()
