"""Parse and render boundary between raw upstream bytes and the document tree."""

from typing import Optional

from bs4 import BeautifulSoup, ParserRejectedMarkup

HTML_MEDIA_TYPES = {"text/html", "application/xhtml+xml"}

# Leading bytes of an untyped body that plausibly starts with markup
_MARKUP_START = (b"<", b"\xef\xbb\xbf<")


class MalformedHTML(Exception):
    """Raised when an upstream body cannot be treated as an HTML document."""


def media_type(content_type: Optional[str]) -> str:
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


def charset(content_type: Optional[str]) -> Optional[str]:
    """Return the charset parameter of a Content-Type header, if any."""
    if not content_type:
        return None
    for param in content_type.split(";")[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset" and value.strip():
            return value.strip().strip("\"'").lower()
    return None


def looks_like_html(body: bytes, content_type: Optional[str]) -> bool:
    mtype = media_type(content_type)
    if mtype:
        return mtype in HTML_MEDIA_TYPES
    return body.lstrip().startswith(_MARKUP_START)


def parse_document(
    body: bytes, content_type: Optional[str] = None, parser: str = "lxml"
) -> BeautifulSoup:
    """
    Parse an upstream body into a document tree.

    Args:
        body: The raw response body
        content_type: The upstream Content-Type header, if any
        parser: The BeautifulSoup tree builder to use

    Returns:
        The parsed document

    Raises:
        MalformedHTML: If the body is not HTML or the parser rejects it
    """
    if not looks_like_html(body, content_type):
        raise MalformedHTML(
            f"Refusing to parse {media_type(content_type) or 'untyped'} body as HTML"
        )
    try:
        return BeautifulSoup(body, parser, from_encoding=charset(content_type))
    except ParserRejectedMarkup as e:
        raise MalformedHTML(f"Parser rejected markup: {e}") from e


def render_document(document: BeautifulSoup) -> bytes:
    """Serialize a document back to UTF-8 bytes."""
    return document.encode("utf-8")
