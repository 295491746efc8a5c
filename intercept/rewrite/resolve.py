"""
URL resolution for rewritten documents.

``to_local`` routes a URL back through the proxy's base prefix and is used for
navigation (links, form actions). ``to_remote`` restores a URL to its absolute
origin and is used for resources the browser should load directly.

Both classify the URL in a fixed order, first match wins:

1. ``//host/path``        protocol-relative, inherits the page scheme
2. ``/path``              absolute path on the page's host
3. ``http(s)://...``      already absolute
4. ``mailto:...``         never rewritten
5. anything else          relative to the directory of the page path
"""

import posixpath
from urllib.parse import urlsplit, SplitResult


def _split(page_url: str) -> SplitResult:
    try:
        return urlsplit(page_url)
    except ValueError:
        return SplitResult("", "", "", "", "")


def host_url(page_url: str) -> str:
    """Return ``scheme://[userinfo@]host`` for a URL, defaulting to http."""
    parts = _split(page_url)
    scheme = parts.scheme or "http"
    userinfo, _, host = parts.netloc.rpartition("@")
    if userinfo:
        return f"{scheme}://{userinfo}@{host}"
    return f"{scheme}://{host}"


def _page_scheme(page_url: str) -> str:
    return _split(page_url).scheme or "http"


def join_relative(url: str, page_url: str) -> str:
    """Resolve a relative reference against the directory of the page's raw path."""
    cut = len(url)
    for marker in ("?", "#"):
        index = url.find(marker)
        if index != -1:
            cut = min(cut, index)
    path, suffix = url[:cut], url[cut:]

    directory = posixpath.dirname(_split(page_url).path) or "/"
    if not directory.startswith("/"):
        directory = "/" + directory

    if not path:
        # A bare "?query" or "#fragment" resolves against the directory itself
        joined = directory if directory.endswith("/") else directory + "/"
    else:
        joined = posixpath.normpath(posixpath.join(directory, path))
        if path.endswith("/") or path.endswith("/.") or path in (".", ".."):
            if not joined.endswith("/"):
                joined += "/"
    # normpath keeps a leading "//", which would read as an authority
    if joined.startswith("//"):
        joined = "/" + joined.lstrip("/")
    return joined + suffix


def to_local(url: str, page_url: str, base_url: str) -> str:
    """Rewrite ``url`` so the next hop is routed through the proxy."""
    if url.startswith("//"):
        return f"{base_url}{_page_scheme(page_url)}:{url}"
    if url.startswith("/"):
        return f"{base_url}{host_url(page_url)}{url}"
    if url.startswith("http://") or url.startswith("https://"):
        return f"{base_url}{url}"
    if url.startswith("mailto:"):
        return url
    return f"{base_url}{host_url(page_url)}{join_relative(url, page_url)}"


def to_remote(url: str, page_url: str) -> str:
    """Rewrite ``url`` so it resolves directly against its true origin."""
    if url.startswith("//"):
        return f"{_page_scheme(page_url)}:{url}"
    if url.startswith("/"):
        return f"{host_url(page_url)}{url}"
    if url.startswith("http://") or url.startswith("https://"):
        return url
    if url.startswith("mailto:"):
        return url
    return f"{host_url(page_url)}{join_relative(url, page_url)}"
