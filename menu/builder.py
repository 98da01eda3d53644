from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from core.enums import ReplyText, SessionKey
from core.models import Reply, con, end
from routing.context import Ctx

logger = logging.getLogger(__name__)

BACK_KEY = "0"
EXIT_KEY = "00"
_INVALID_NOTICE = f"⚠️ {ReplyText.INVALID_OPTION}"


@dataclass(slots=True)
class MenuItem:
    label: str
    target: str = ""
    before: Callable[[Ctx], None] | None = None
    end_text: str = ""


class MenuBuilder:
    """Numbered option screen with optional Back (0) and Exit (00) entries.

    The same builder renders the screen (``prompt``) and interprets the
    caller's choice (``handle``), so a route usually builds it once and uses
    it for both its display and input handlers.
    """

    def __init__(self, path: str, back_label: str = "Back", exit_label: str = "Exit") -> None:
        self.path = path
        self.back_label = back_label
        self.exit_label = exit_label
        self._title = ""
        self._items: list[MenuItem] = []
        self._back_to = ""
        self._exit_text = ""

    def title(self, text: str) -> MenuBuilder:
        self._title = text
        return self

    def option(self, label: str, target: str, before: Callable[[Ctx], None] | None = None) -> MenuBuilder:
        self._items.append(MenuItem(label=label, target=target, before=before))
        return self

    def end_option(self, label: str, end_text: str) -> MenuBuilder:
        self._items.append(MenuItem(label=label, end_text=end_text))
        return self

    def back(self, target: str) -> MenuBuilder:
        self._back_to = target
        return self

    def exit(self, text: str) -> MenuBuilder:
        self._exit_text = text
        return self

    @property
    def items(self) -> list[MenuItem]:
        return list(self._items)

    def render(self, notice: str = "") -> str:
        lines: list[str] = []
        if self._title:
            lines.append(self._title)
        if notice:
            lines.append(notice)
        for index, item in enumerate(self._items, start=1):
            lines.append(f"{index}) {item.label}")
        if self._back_to:
            lines.append(f"{BACK_KEY}) {self.back_label}")
        if self._exit_text:
            lines.append(f"{EXIT_KEY}) {self.exit_label}")
        return "\n".join(lines)

    def prompt(self, ctx: Ctx | None = None) -> Reply:
        # the engine re-displays the screen after a rejected choice
        if ctx is not None and ctx.session.get_bool(SessionKey.MENU_NOTICE):
            ctx.session.delete(SessionKey.MENU_NOTICE)
            return con(self.render(notice=_INVALID_NOTICE))
        return con(self.render())

    def handle(self, ctx: Ctx) -> Reply:
        choice = (ctx.input or "").strip()
        if not choice:
            return self.prompt(ctx)

        if choice == BACK_KEY and self._back_to:
            ctx.redirect(self._back_to)
            return con("")
        if choice == EXIT_KEY and self._exit_text:
            return end(self._exit_text)

        index = int(choice) if choice.isascii() and choice.isdigit() else 0
        if 1 <= index <= len(self._items):
            item = self._items[index - 1]
            if item.before is not None:
                try:
                    item.before(ctx)
                except Exception:  # noqa: BLE001
                    logger.exception("menu-hook-failed path=%s option=%d", self.path, index)
                    return end(ReplyText.TRY_LATER)
            if item.end_text:
                return end(item.end_text)
            if item.target:
                ctx.redirect(item.target)
                return con("")

        if not self._title:
            return con(self.render())
        ctx.set(SessionKey.MENU_NOTICE, True)
        return con(self.render(notice=_INVALID_NOTICE))
