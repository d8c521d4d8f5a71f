"""HTTP title resolver: oEmbed for known hosts, page metadata otherwise."""

from __future__ import annotations

import html
import logging
import re
import time
from urllib.parse import unquote, urlsplit

import httpx

from app.adapters.titles.base import PLACEHOLDER_TITLE, TitleResolver
from app.core.logging_safety import safe_log_url

logger = logging.getLogger(__name__)

_USER_AGENT = "Mozilla/5.0 (compatible; VideoScript/1.0)"
_MAX_HTML_BYTES = 512_000
_MAX_TITLE_CHARS = 500
_HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")

_YOUTUBE_ID = re.compile(r"(?:youtube\.com/watch\?(?:.*&)?v=|youtu\.be/)([^&\n?#/]+)")
_VIMEO_ID = re.compile(r"vimeo\.com/(\d+)")
_HEAD_END = re.compile(rb"</head\s*>", re.IGNORECASE)
_PAGE_TITLE_PATTERNS = (
    re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE),
    re.compile(r"<meta[^>]*property=[\"']og:title[\"'][^>]*content=[\"']([^\"']+)[\"'][^>]*>", re.IGNORECASE),
    re.compile(r"<meta[^>]*name=[\"']twitter:title[\"'][^>]*content=[\"']([^\"']+)[\"'][^>]*>", re.IGNORECASE),
    re.compile(r"<meta[^>]*name=[\"']title[\"'][^>]*content=[\"']([^\"']+)[\"'][^>]*>", re.IGNORECASE),
)


class _DeadlineExceeded(Exception):
    pass


class HttpTitleResolver(TitleResolver):
    """Resolves titles within ``timeout_seconds`` in total, across every request it makes.

    Only HTML responses are read, and at most ``_MAX_HTML_BYTES`` of them. Media files and
    other bodies are never downloaded.
    """

    def __init__(self, timeout_seconds: float = 5.0, client: httpx.Client | None = None) -> None:
        self._timeout_seconds = timeout_seconds
        self._client = client or httpx.Client(
            timeout=timeout_seconds,
            follow_redirects=True,
            headers={"User-Agent": _USER_AGENT},
        )

    def resolve(self, source_url: str) -> str:
        host = safe_log_url(source_url)
        deadline = time.monotonic() + self._timeout_seconds
        try:
            title = self._resolve_known_host(source_url, deadline) or self._resolve_from_page(source_url, deadline)
        except Exception as exc:
            logger.info("title.fallback host=%s reason=%s", host, type(exc).__name__)
            return PLACEHOLDER_TITLE

        logger.info("title.resolved host=%s", host)
        return title

    def _resolve_known_host(self, source_url: str, deadline: float) -> str | None:
        youtube = _YOUTUBE_ID.search(source_url)
        if youtube:
            return self._oembed_title(
                "https://www.youtube.com/oembed",
                params={"url": f"https://www.youtube.com/watch?v={youtube.group(1)}", "format": "json"},
                deadline=deadline,
            )

        vimeo = _VIMEO_ID.search(source_url)
        if vimeo:
            return self._oembed_title(
                "https://vimeo.com/api/oembed.json",
                params={"url": f"https://vimeo.com/{vimeo.group(1)}"},
                deadline=deadline,
            )
        return None

    def _oembed_title(self, endpoint: str, *, params: dict[str, str], deadline: float) -> str | None:
        try:
            response = self._client.get(endpoint, params=params, timeout=_remaining(deadline))
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            # Fall through to page scraping.
            logger.info("title.oembed_failed endpoint=%s reason=%s", safe_log_url(endpoint), type(exc).__name__)
            return None
        if not isinstance(payload, dict):
            return None
        return _clean(payload.get("title"))

    def _resolve_from_page(self, source_url: str, deadline: float) -> str:
        with self._client.stream("GET", source_url, timeout=_remaining(deadline)) as response:
            response.raise_for_status()
            content_type = response.headers.get("content-type", "").lower()
            if not any(kind in content_type for kind in _HTML_CONTENT_TYPES):
                logger.info("title.skipped_body host=%s content_type=%s", safe_log_url(source_url), content_type or "none")
                return _title_from_path(source_url) or PLACEHOLDER_TITLE

            document = _read_head(response, deadline).decode(response.charset_encoding or "utf-8", errors="replace")

        for pattern in _PAGE_TITLE_PATTERNS:
            match = pattern.search(document)
            if match:
                title = _clean(match.group(1))
                if title:
                    return title

        return _title_from_path(source_url) or PLACEHOLDER_TITLE


def _remaining(deadline: float) -> float:
    remaining = deadline - time.monotonic()
    if remaining <= 0:
        raise _DeadlineExceeded()
    return remaining


def _read_head(response: httpx.Response, deadline: float) -> bytes:
    """Read until ``</head>``, the byte cap or the deadline, whichever comes first."""
    buffer = bytearray()
    for chunk in response.iter_bytes():
        buffer.extend(chunk)
        if len(buffer) >= _MAX_HTML_BYTES or _HEAD_END.search(buffer) or time.monotonic() >= deadline:
            break
    return bytes(buffer[:_MAX_HTML_BYTES])


def _clean(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    text = " ".join(html.unescape(value).split())
    return text[:_MAX_TITLE_CHARS] or None


def _title_from_path(source_url: str) -> str | None:
    segment = unquote(urlsplit(source_url).path.rstrip("/").rsplit("/", 1)[-1])
    stem = re.sub(r"\.[^/.]+$", "", segment)
    name = " ".join(re.sub(r"[_-]", " ", stem).split())
    return name or None


__all__ = ["HttpTitleResolver"]
