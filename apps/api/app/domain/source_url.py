"""Source video URL validation."""

from pydantic import HttpUrl, TypeAdapter, ValidationError

from app.errors import InvalidInput

_MAX_URL_LENGTH = 2048
_http_url = TypeAdapter(HttpUrl)


def validate_source_url(value: str) -> str:
    """Return the trimmed URL if it is an absolute http(s) URL on a dotted host."""
    candidate = (value or "").strip()
    if not candidate:
        raise InvalidInput("source_url is required")
    if len(candidate) > _MAX_URL_LENGTH:
        raise InvalidInput("source_url is too long", details={"max_length": _MAX_URL_LENGTH})

    try:
        parsed = _http_url.validate_python(candidate)
    except ValidationError as exc:
        raise InvalidInput("source_url must be an absolute http(s) URL") from exc

    host = parsed.host or ""
    if "." not in host.strip("."):
        raise InvalidInput("source_url host does not look reachable", details={"host": host})

    return candidate
