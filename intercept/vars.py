import os
from urllib.parse import urlsplit

SERVICE_NAME = os.getenv("SERVICE_NAME", "intercept")

# Externally visible prefix under which intercepted navigation is routed
INTERCEPT_BASE_URL = os.environ.get("INTERCEPT_BASE_URL", "/inject/")


def _default_route_prefix(base_url: str) -> str:
    try:
        path = urlsplit(base_url).path
    except ValueError:
        return ""
    return path.rstrip("/")


INTERCEPT_ROUTE_PREFIX = os.environ.get(
    "INTERCEPT_ROUTE_PREFIX", _default_route_prefix(INTERCEPT_BASE_URL)
).rstrip("/")

PROXY_TIMEOUT = float(os.environ.get("PROXY_TIMEOUT", "30"))
HTML_PARSER = os.environ.get("HTML_PARSER", "lxml")

# Script appended to every rewritten page, empty disables injection
INJECT_SCRIPT_SRC = os.environ.get("INJECT_SCRIPT_SRC", "/public/inject.js")
INJECT_SELECTOR = os.environ.get("INJECT_SELECTOR", "html body")

STATIC_DIR = os.environ.get("STATIC_DIR", "public")
STATIC_PATH = os.environ.get("STATIC_PATH", "/public")

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")
