"""Network-free title resolver."""

from app.adapters.titles.base import PLACEHOLDER_TITLE, TitleResolver


class StaticTitleResolver(TitleResolver):
    def __init__(self, title: str = PLACEHOLDER_TITLE) -> None:
        self._title = title

    def resolve(self, source_url: str) -> str:
        return self._title


__all__ = ["StaticTitleResolver"]
