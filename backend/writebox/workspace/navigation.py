"""Page and side-menu state."""

from __future__ import annotations

from collections import defaultdict
from typing import Callable

PAGES = ("editor", "documents", "chat", "files", "transcription")

PageHook = Callable[[str], None]


class NavigationController:
    """Track the visible page and whether the side menu is open.

    Components register ``on_enter`` hooks to refresh themselves when their
    page becomes visible.
    """

    def __init__(self, pages: tuple[str, ...] = PAGES, initial: str = "editor") -> None:
        if initial not in pages:
            raise ValueError(f"Unknown page: {initial}")
        self.pages = pages
        self.active_page = initial
        self.menu_open = False
        self._hooks: dict[str, list[PageHook]] = defaultdict(list)

    def toggle_menu(self) -> bool:
        self.menu_open = not self.menu_open
        return self.menu_open

    def close_menu(self) -> None:
        self.menu_open = False

    def on_enter(self, page: str, hook: PageHook) -> None:
        if page not in self.pages:
            raise ValueError(f"Unknown page: {page}")
        self._hooks[page].append(hook)

    def navigate_to(self, page: str) -> None:
        if page not in self.pages:
            raise ValueError(f"Unknown page: {page}")
        self.active_page = page
        self.close_menu()
        for hook in self._hooks[page]:
            hook(page)

    def snapshot(self) -> dict[str, object]:
        return {"page": self.active_page, "menuOpen": self.menu_open, "pages": list(self.pages)}


__all__ = ["NavigationController", "PAGES"]
