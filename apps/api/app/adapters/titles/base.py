"""Title resolver interface."""

from abc import ABC, abstractmethod

PLACEHOLDER_TITLE = "Unknown Video"


class TitleResolver(ABC):
    """Best-effort human-readable label for a source video."""

    @abstractmethod
    def resolve(self, source_url: str) -> str:
        """Return a title, or ``PLACEHOLDER_TITLE`` when none can be found. Never raises."""


__all__ = ["PLACEHOLDER_TITLE", "TitleResolver"]
