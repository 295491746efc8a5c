from typing import Dict, List, Optional

import httpx


class FakeOrigin:
    """
    In-memory origin server for interceptor tests, mounted through
    ``httpx.MockTransport``. Records every request it receives.
    """

    def __init__(self):
        self.pages: Dict[str, httpx.Response] = {}
        self.errors: Dict[str, Exception] = {}
        self.requests: List[httpx.Request] = []

    def add(
        self,
        url: str,
        content: bytes = b"",
        status_code: int = 200,
        content_type: Optional[str] = "text/html; charset=utf-8",
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        all_headers = dict(headers or {})
        if content_type:
            all_headers["content-type"] = content_type
        self.pages[url] = httpx.Response(
            status_code, content=content, headers=all_headers
        )

    def fail(self, url: str, error: Exception) -> None:
        self.errors[url] = error

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        url = str(request.url)
        if url in self.errors:
            raise self.errors[url]
        if url in self.pages:
            page = self.pages[url]
            return httpx.Response(
                page.status_code, content=page.content, headers=page.headers
            )
        return httpx.Response(404, content=b"missing", headers={"content-type": "text/plain"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)
