import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from intercept.proxy.injection import body_script_injector
from intercept.proxy.interceptor import Interceptor
from intercept.vars import (
    HTML_PARSER,
    INJECT_SCRIPT_SRC,
    INJECT_SELECTOR,
    INTERCEPT_BASE_URL,
    INTERCEPT_ROUTE_PREFIX,
    PROXY_TIMEOUT,
)

logger = logging.getLogger("uvicorn.error")

router = APIRouter(prefix=INTERCEPT_ROUTE_PREFIX)


def build_interceptor() -> Interceptor:
    """
    Create the process-wide interceptor from the environment: the default link
    rewriter, followed by the body script injector when one is configured.
    """
    interceptor = Interceptor.default(
        INTERCEPT_BASE_URL,
        timeout=PROXY_TIMEOUT,
        route_prefix=INTERCEPT_ROUTE_PREFIX,
        parser=HTML_PARSER,
    )
    if INJECT_SCRIPT_SRC:
        interceptor.add_modifier(body_script_injector(INJECT_SCRIPT_SRC, INJECT_SELECTOR))
        logger.info(f"[Intercept] Injecting {INJECT_SCRIPT_SRC} into '{INJECT_SELECTOR}'")
    logger.info(
        f"[Intercept] Routing {INTERCEPT_ROUTE_PREFIX or '/'} with base URL {interceptor.base_url}"
    )
    return interceptor


def get_interceptor(request: Request) -> Interceptor:
    return request.app.state.interceptor


# Register catch-all route for intercepting
@router.api_route(
    "/{path:path}", methods=["GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS"]
)
async def intercept_all(
    request: Request, path: str, interceptor: Interceptor = Depends(get_interceptor)
) -> Response:
    """Catch-all route that fetches and rewrites the page encoded in the path."""
    return await interceptor.handle(request)
