from __future__ import annotations

from menu.builder import MenuBuilder

DEFAULT_PAGE_SIZE = 5


class Paginator:
    """Splits a long list into numbered pages built from MenuBuilder options.

    Item targets are ``<base>/item/<absolute index>``; Prev/Next are appended as
    the next numbered options and page targets are ``<base>/<page>``.
    """

    def __init__(self, base_path: str, items: list[str], size: int = DEFAULT_PAGE_SIZE) -> None:
        self.base_path = base_path.rstrip("/")
        self.items = list(items)
        self.size = size if size > 0 else DEFAULT_PAGE_SIZE
        self.title = "Menu"
        self.prev_label = "Prev"
        self.next_label = "Next"
        self.back_to = ""

    def with_title(self, title: str) -> Paginator:
        if title:
            self.title = title
        return self

    def with_nav_labels(self, prev_label: str, next_label: str) -> Paginator:
        if prev_label:
            self.prev_label = prev_label
        if next_label:
            self.next_label = next_label
        return self

    def with_back(self, target: str) -> Paginator:
        self.back_to = target
        return self

    def item_path(self, index: int) -> str:
        return f"{self.base_path}/item/{index}"

    def page_path(self, page: int) -> str:
        return f"{self.base_path}/{page}"

    def render(self, page: int) -> MenuBuilder:
        if page <= 0:
            page = 1
        start = (page - 1) * self.size
        if start >= len(self.items):
            start = 0
            page = 1
        stop = min(start + self.size, len(self.items))

        builder = MenuBuilder(self.page_path(page)).title(self.title)
        for offset, label in enumerate(self.items[start:stop]):
            builder.option(label, self.item_path(start + offset))

        if start > 0:
            builder.option(self.prev_label, self.page_path(page - 1))
        if stop < len(self.items):
            builder.option(self.next_label, self.page_path(page + 1))
        if self.back_to:
            builder.back(self.back_to)
        return builder
