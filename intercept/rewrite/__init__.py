from .normalize import InvalidBaseURL, normalize_url
from .resolve import host_url, to_local, to_remote
from .dom import Modifier, default_modifier, modify_dom

__all__ = [
    "InvalidBaseURL",
    "normalize_url",
    "host_url",
    "to_local",
    "to_remote",
    "Modifier",
    "default_modifier",
    "modify_dom",
]
