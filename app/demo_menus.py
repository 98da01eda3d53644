from __future__ import annotations

from typing import Any

from core.models import Reply, con, end
from menu.builder import MenuBuilder
from menu.paginator import Paginator
from middleware.interceptors import HmacSignature, Logging, RateLimitPerMsisdn, Recover, tight_route_limit
from routing.context import Ctx
from routing.router import Router

BUNDLES = [
    "Daily 100MB / 10 MZN",
    "Daily 500MB / 20 MZN",
    "Daily 1GB / 30 MZN",
    "Weekly 1GB / 50 MZN",
    "Weekly 2GB / 90 MZN",
    "Weekly 5GB / 200 MZN",
    "Monthly 1GB / 100 MZN",
    "Monthly 5GB / 400 MZN",
    "Monthly 10GB / 700 MZN",
    "Night 1GB / 15 MZN",
    "Night 3GB / 40 MZN",
    "Night 10GB / 100 MZN",
]

DEMO_BALANCE = "123.45 MZN"
AMOUNT_KEY = "amount"
AMOUNT_ERROR_KEY = "amount_error"
MAX_AIRTIME_AMOUNT = 10_000


def build_router(config: dict[str, Any]) -> Router:
    engine_conf = config.get("engine", {})
    mw_conf = config.get("middleware", {})
    router = Router(str(engine_conf.get("start_path", "/home") or "/home"))

    if mw_conf.get("recover", True):
        router.use(Recover())
    if mw_conf.get("access_log", True):
        router.use(Logging())
    secret = str(mw_conf.get("hmac_secret") or "").strip()
    if secret:
        router.use(HmacSignature(secret))

    home = _home_menu()
    router.display("/home", home.prompt)
    router.on_input("/home", home.handle)

    balance = MenuBuilder("/balance").title(f"Balance: {DEMO_BALANCE}").back("/home")
    router.display("/balance", balance.prompt)
    router.on_input("/balance", balance.handle)

    _register_airtime(router, mw_conf.get("rate_limit", {}))
    _register_bundles(router)
    return router


def _home_menu() -> MenuBuilder:
    return (
        MenuBuilder("/home")
        .title("Welcome")
        .option("Check balance", "/balance")
        .option("Buy airtime", "/airtime/amount")
        .option("Data bundles", "/bundles/1")
        .exit("Goodbye.")
    )


def _register_airtime(router: Router, rate_conf: dict[str, Any]) -> None:
    interceptors = []
    if rate_conf.get("enabled", False):
        interceptors.append(
            RateLimitPerMsisdn(
                limit=int(rate_conf.get("limit", 10)),
                window_seconds=float(rate_conf.get("window_seconds", 60)),
            )
        )
    airtime = router.group("/airtime", *interceptors)

    def show_amount(ctx: Ctx) -> Reply:
        if ctx.session.get_bool(AMOUNT_ERROR_KEY):
            ctx.session.delete(AMOUNT_ERROR_KEY)
            return con("Invalid amount. Try again:")
        return con("Enter amount (MZN):")

    def read_amount(ctx: Ctx) -> Reply:
        amount = ctx.input.strip()
        if not (amount.isascii() and amount.isdigit()) or not 0 < int(amount) <= MAX_AIRTIME_AMOUNT:
            ctx.set(AMOUNT_ERROR_KEY, True)
            return con("")
        ctx.set(AMOUNT_KEY, int(amount))
        ctx.redirect("/airtime/confirm")
        return con("")

    def confirm_menu(ctx: Ctx) -> MenuBuilder:
        return (
            MenuBuilder("/airtime/confirm")
            .title(f"Confirm {ctx.session.get_int(AMOUNT_KEY)} MZN?")
            .end_option("Yes", "Purchase complete. Thank you.")
            .back("/home")
        )

    airtime.display("/amount", show_amount)
    airtime.on_input("/amount", read_amount)
    airtime.display("/confirm", lambda ctx: confirm_menu(ctx).prompt(ctx))
    airtime.on_input("/confirm", lambda ctx: confirm_menu(ctx).handle(ctx), tight_route_limit())


def _register_bundles(router: Router) -> None:
    pager = (
        Paginator("/bundles", BUNDLES, size=5)
        .with_title("Data bundles")
        .with_nav_labels("Previous", "Next")
        .with_back("/home")
    )

    def page_of(ctx: Ctx) -> int:
        raw = ctx.param("page")
        return int(raw) if raw.isascii() and raw.isdigit() else 1

    def item_menu(ctx: Ctx) -> MenuBuilder | None:
        raw = ctx.param("idx")
        index = int(raw) if raw.isascii() and raw.isdigit() else -1
        if not 0 <= index < len(BUNDLES):
            return None
        return (
            MenuBuilder("/bundles/item/:idx")
            .title(f"Confirm\n{BUNDLES[index]}?")
            .end_option("Yes", "Bundle purchased.")
            .back(pager.page_path(index // pager.size + 1))
        )

    def show_item(ctx: Ctx) -> Reply:
        menu = item_menu(ctx)
        if menu is None:
            return end("Invalid item.")
        return menu.prompt(ctx)

    def read_item(ctx: Ctx) -> Reply:
        menu = item_menu(ctx)
        if menu is None:
            return end("Invalid item.")
        return menu.handle(ctx)

    router.display("/bundles/:page", lambda ctx: pager.render(page_of(ctx)).prompt(ctx))
    router.on_input("/bundles/:page", lambda ctx: pager.render(page_of(ctx)).handle(ctx))
    router.display("/bundles/item/:idx", show_item)
    router.on_input("/bundles/item/:idx", read_item)
