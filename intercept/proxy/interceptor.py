import asyncio
import base64
import binascii
import logging
from typing import List, Optional, Tuple

import httpx
from fastapi import Request
from fastapi.responses import HTMLResponse, Response
from opentelemetry import trace
from pydantic import BaseModel, ConfigDict

from intercept.proxy.html_document import (
    MalformedHTML,
    parse_document,
    render_document,
)
from intercept.rewrite.dom import Modifier, default_modifier
from intercept.rewrite.normalize import normalize_url
from intercept.utils import mask_credentials
from intercept.utils.exception_logging import log_exception_with_details
from intercept.utils.traced_requests import traced_request
from intercept.vars import HTML_PARSER, PROXY_TIMEOUT

tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

NOT_FOUND_PAGE = (
    "<!DOCTYPE html><html><head><title>Not found</title></head><body>"
    "<h1>404 not found</h1>Sorry, we could not find the requested page!"
    "</body></html>"
)

# Upstream headers kept on passthrough responses
PASSTHROUGH_HEADERS = ("content-type", "content-disposition")


class UpstreamTransportFailure(Exception):
    """The origin could not be reached or did not answer in time."""


class UpstreamReadFailure(Exception):
    """The origin answered but its body could not be read."""


class ProxyConfig(BaseModel):
    """Immutable per-process proxy settings."""

    model_config = ConfigDict(frozen=True)

    base_url: str
    timeout: float = PROXY_TIMEOUT
    route_prefix: str = ""


def not_found_response() -> Response:
    return HTMLResponse(content=NOT_FOUND_PAGE, status_code=404)


def reconstruct_target_url(raw: str) -> str:
    """
    Recover the absolute URL a client asked for from the path it requested.

    Path normalization in front of the proxy collapses ``http://`` in the path
    to ``http:/``; the scheme separator is restored here.
    """
    url = raw.lstrip("/")
    for scheme in ("https", "http"):
        if url.startswith(f"{scheme}:"):
            rest = url[len(scheme) + 1:].lstrip("/")
            return f"{scheme}://{rest}"
    return url


def get_target_url(request: Request, route_prefix: str = "") -> str:
    """
    Construct the upstream URL from the request path and query.

    The undecoded path is used so escapes such as ``%3F`` or ``%2F`` in the
    target reach the origin unchanged.
    """
    raw_path = request.scope.get("raw_path")
    path = raw_path.decode("latin-1") if raw_path else request.url.path
    if route_prefix and path.startswith(route_prefix):
        path = path[len(route_prefix):]

    query_string = str(request.url.query)
    if query_string:
        path = f"{path}?{query_string}"

    return reconstruct_target_url(path)


def basic_auth_credentials(request: Request) -> Optional[Tuple[bytes, bytes]]:
    """
    Return the (user, password) pair of a Basic Authorization header, if any.

    Credentials stay bytes so non-UTF-8 user names are forwarded unchanged.
    """
    header = request.headers.get("authorization")
    if not header:
        return None
    scheme, _, value = header.partition(" ")
    if scheme.lower() != "basic":
        return None
    try:
        decoded = base64.b64decode(value.strip(), validate=True)
    except binascii.Error:
        logger.debug("[Intercept] Ignoring malformed Basic Authorization header")
        return None
    user, sep, password = decoded.partition(b":")
    if not sep:
        return None
    return user, password


def resolve_page_url(response: httpx.Response, fallback: str) -> str:
    """
    Determine the URL the document was served from: the Location header when
    the origin sent one, else the effective URL after redirects.
    """
    try:
        effective = response.url
    except RuntimeError:
        effective = None

    location = response.headers.get("location")
    if location:
        try:
            return str(effective.join(location) if effective else httpx.URL(location))
        except httpx.InvalidURL:
            logger.debug(f"[Intercept] Ignoring unparseable Location header: {location}")

    if effective is not None:
        return str(effective)
    return fallback


class Interceptor:
    """
    Fetches pages on behalf of clients and rewrites them so navigation keeps
    flowing through the proxy while resources load from their origin.

    The configuration and modifier list are shared by all requests and must
    not change once the application is serving.
    """

    def __init__(
        self,
        config: ProxyConfig,
        modifiers: Optional[List[Modifier]] = None,
        parser: str = HTML_PARSER,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.modifiers: List[Modifier] = list(modifiers or [])
        self.parser = parser
        self.transport = transport

    @classmethod
    def default(
        cls,
        base_url: str,
        timeout: float = PROXY_TIMEOUT,
        route_prefix: str = "",
        **kwargs,
    ) -> "Interceptor":
        """
        Create an interceptor whose only modifier rewrites links against the
        normalized ``base_url``.

        Raises:
            InvalidBaseURL: If ``base_url`` cannot be normalized
        """
        normalized = normalize_url(base_url)
        config = ProxyConfig(
            base_url=normalized, timeout=timeout, route_prefix=route_prefix
        )
        return cls(config, modifiers=[default_modifier(normalized)], **kwargs)

    @property
    def base_url(self) -> str:
        return self.config.base_url

    def add_modifier(self, modifier: Modifier) -> None:
        self.modifiers.append(modifier)

    def apply_modifiers(self, document, page_url: str) -> None:
        for modify in self.modifiers:
            modify(document, page_url)

    async def handle(self, request: Request) -> Response:
        target_url = get_target_url(request, self.config.route_prefix)
        method = request.method or "GET"

        with traced_request(
            tracer,
            operation="intercept_request",
            method=method,
            target_url=mask_credentials(target_url),
            start_message=f"[Intercept] {method} {request.url.path} -> {mask_credentials(target_url)}",
        ) as span:
            response = await self._handle(request, method, target_url, span)
            span.set_attribute("proxy.status_code", response.status_code)
            return response

    async def _fetch(
        self,
        client: httpx.AsyncClient,
        method: str,
        target_url: str,
        body: bytes,
        auth: Optional[httpx.Auth],
    ) -> Tuple[httpx.Response, bytes]:
        """
        Send the upstream request and read the whole body.

        Raises:
            UpstreamTransportFailure: If the origin cannot be reached
            UpstreamReadFailure: If the body cannot be read
        """
        try:
            upstream_request = client.build_request(
                method, target_url, content=body or None
            )
            response = await client.send(upstream_request, auth=auth, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise UpstreamTransportFailure(
                f"Upstream request to {mask_credentials(target_url)} failed"
            ) from e

        try:
            content = await response.aread()
        except httpx.HTTPError as e:
            raise UpstreamReadFailure(
                f"Reading upstream body from {mask_credentials(target_url)} failed"
            ) from e
        finally:
            await response.aclose()
        return response, content

    def _failed(self, span, failure: Exception) -> Response:
        log_exception_with_details(logger, "[Intercept]", failure)
        span.set_attribute("proxy.error", type(failure.__cause__ or failure).__name__)
        span.set_attribute("proxy.outcome", "served-404")
        return not_found_response()

    async def _handle(self, request: Request, method: str, target_url: str, span) -> Response:
        if not target_url.startswith(("http://", "https://")):
            logger.warning(f"[Intercept] Not an absolute http(s) URL: {target_url!r}")
            span.set_attribute("proxy.outcome", "served-404")
            return not_found_response()

        body = await request.body()
        credentials = basic_auth_credentials(request)
        auth = httpx.BasicAuth(*credentials) if credentials else None

        async with httpx.AsyncClient(
            timeout=httpx.Timeout(self.config.timeout),
            follow_redirects=True,
            transport=self.transport,
        ) as client:
            try:
                # httpx.Timeout bounds each network step; this bounds the whole fetch
                response, content = await asyncio.wait_for(
                    self._fetch(client, method, target_url, body, auth),
                    timeout=self.config.timeout,
                )
            except asyncio.TimeoutError as e:
                failure = UpstreamTransportFailure(
                    f"Upstream request to {mask_credentials(target_url)} "
                    f"exceeded {self.config.timeout}s"
                )
                failure.__cause__ = e
                return self._failed(span, failure)
            except (UpstreamTransportFailure, UpstreamReadFailure) as e:
                return self._failed(span, e)

        content_type = response.headers.get("content-type")
        try:
            document = parse_document(content, content_type, self.parser)
        except MalformedHTML as e:
            logger.debug(f"[Intercept] Passing through {target_url}: {e}")
            span.set_attribute("proxy.outcome", "served-passthrough")
            headers = {
                name: response.headers[name]
                for name in PASSTHROUGH_HEADERS
                if name in response.headers
            }
            return Response(
                content=content, status_code=response.status_code, headers=headers
            )

        page_url = resolve_page_url(response, target_url)
        span.set_attribute("proxy.page_url", mask_credentials(page_url))
        self.apply_modifiers(document, page_url)

        try:
            rendered = render_document(document)
        except Exception as e:
            log_exception_with_details(
                logger, f"[Intercept] Rendering {mask_credentials(page_url)} failed:", e
            )
            span.set_attribute("proxy.error", "render_failed")
            rendered = b""

        span.set_attribute("proxy.outcome", "served")
        return HTMLResponse(content=rendered, status_code=response.status_code)
