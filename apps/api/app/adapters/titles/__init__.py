"""Video title resolver adapters."""

from .base import PLACEHOLDER_TITLE, TitleResolver
from .http_resolver import HttpTitleResolver
from .static_resolver import StaticTitleResolver

__all__ = [
    "PLACEHOLDER_TITLE",
    "HttpTitleResolver",
    "StaticTitleResolver",
    "TitleResolver",
]
