from urllib.parse import urlsplit, urlunsplit


class InvalidBaseURL(ValueError):
    """Raised when the proxy base URL cannot serve as a routing prefix."""


def _has_control_characters(value: str) -> bool:
    return any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in value)


def normalize_url(base_url: str) -> str:
    """
    Canonicalize the proxy's externally visible base URL.

    The result is used verbatim as a string prefix for every rewritten local
    URL, so it never carries a query or fragment and always ends in ``/``.

    Args:
        base_url: A path (``/inject``) or absolute URL (``http://host/inject``)

    Returns:
        The normalized base URL

    Raises:
        InvalidBaseURL: If the input is not a parseable URL or has no path
    """
    if not isinstance(base_url, str):
        raise InvalidBaseURL(f"Base URL must be a string, got {type(base_url).__name__}")
    if _has_control_characters(base_url):
        raise InvalidBaseURL(f"Base URL contains control characters: {base_url!r}")

    try:
        parts = urlsplit(base_url)
        # Accessing the port validates the authority section
        parts.port
    except ValueError as e:
        raise InvalidBaseURL(f"Cannot parse base URL {base_url!r}: {e}") from e

    scheme = parts.scheme
    if scheme not in ("http", "https") and parts.netloc:
        scheme = "http"

    path = parts.path
    if not path:
        raise InvalidBaseURL(f"Base URL {base_url!r} has an empty path")
    if not path.endswith("/"):
        path += "/"

    return urlunsplit((scheme, parts.netloc, path, "", ""))
