from typing import Optional
from urllib.parse import urlsplit, urlunsplit


def mask_credentials(url: Optional[str]) -> str:
    """Hide the password in a URL's userinfo before it reaches logs or spans."""
    if not url:
        return ""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if parts.password is None:
        return url
    userinfo, _, host = parts.netloc.rpartition("@")
    user = userinfo.split(":", 1)[0]
    return urlunsplit(parts._replace(netloc=f"{user}:****@{host}"))
