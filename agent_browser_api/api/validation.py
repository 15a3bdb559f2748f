"""Input validation for API requests. Every failure raises ValidationError (HTTP 400)."""

from urllib.parse import urlsplit

from ..errors import ValidationError

ALLOWED_SCHEMES = ("http", "https")
EXTRACT_KINDS = ("text", "html")


def validate_url(url: str) -> str:
    """
    Check that ``url`` is an absolute http(s) URL.

    Raises:
        ValidationError: "Invalid URL: ..." describing the problem
    """
    try:
        parts = urlsplit(url)
    except ValueError as e:
        raise ValidationError(f"Invalid URL: {e}") from e
    if not parts.scheme or not parts.netloc:
        raise ValidationError(f"Invalid URL: {url!r} is not an absolute URL")
    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise ValidationError("Invalid URL: Only HTTP/HTTPS protocols are allowed")
    return url


def validate_url_parameter(url: object) -> str:
    if not url or not isinstance(url, str):
        raise ValidationError("URL parameter is required and must be a string")
    return validate_url(url)


def validate_search_query(query: object) -> str:
    if not query or not isinstance(query, str):
        raise ValidationError("Query parameter is required and must be a string")
    if not query.strip():
        raise ValidationError("Query cannot be empty")
    return query


def validate_max_results(max_results: int | None, default: int, limit: int) -> int:
    if max_results is None:
        return default
    if not 1 <= max_results <= limit:
        raise ValidationError(f"maxResults must be between 1 and {limit}")
    return max_results


def validate_extract(extract: str) -> str:
    if extract not in EXTRACT_KINDS:
        raise ValidationError(f"extract must be one of {', '.join(EXTRACT_KINDS)}")
    return extract


def validate_selector(selector: str) -> str:
    if not selector.strip():
        raise ValidationError("selector cannot be empty")
    return selector
