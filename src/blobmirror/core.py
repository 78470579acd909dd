import urllib.parse as urllib
from typing import Dict

from httpx import AsyncClient, Response, Timeout
from structlog import get_logger

from .exceptions import HttpError

logger = get_logger()


def build_querystring(params: Dict | None) -> str:
    querystring_parts = []
    if params:
        for k, v in params.items():
            if v is None:
                continue
            if isinstance(v, str):
                value_querystring = urllib.quote(v, safe="")
            else:
                value_querystring = v
            querystring_parts.append(f"{k}={value_querystring}")

    return "&".join(sorted(querystring_parts))


def raise_for_status(res: Response, context: str):
    if res.is_success:
        return
    raise HttpError(status=res.status_code, reason=res.reason_phrase, context=context)


class StorageClient:
    def __init__(self, *, base_url: str):
        self.base_url = base_url.rstrip("/")

        self._httpx = None

    async def connect(self):
        assert self._httpx is None, "StorageClient already connected"
        self._httpx = AsyncClient(timeout=None)

    async def disconnect(self):
        assert self._httpx is not None, "StorageClient is not connected"
        await self._httpx.aclose()
        self._httpx = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, *exc_info):
        await self.disconnect()

    def _build_url(self, *, url: str | None = None, params: Dict | None = None) -> str:
        url = url or self.base_url
        querystring = build_querystring(params)
        if not querystring:
            return url
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}{querystring}"

    async def _make_request(
        self,
        *,
        method: str,
        url: str | None = None,
        params: Dict | None = None,
        extra_headers: Dict | None = None,
        timeout: float | None = None,
    ) -> Response:
        assert isinstance(self._httpx, AsyncClient)

        request_url = self._build_url(url=url, params=params)
        logger.debug("HttpRequest", method=method, url=request_url)

        res = await self._httpx.request(
            method=method,
            url=request_url,
            headers=extra_headers,
            timeout=Timeout(timeout),
        )

        return res

    def _stream(self, *, url: str, timeout: float | None = None):
        """
        Open a streaming GET on an absolute url. Use as an async context manager.
        """
        assert isinstance(self._httpx, AsyncClient)

        logger.debug("HttpStream", method="GET", url=url)

        return self._httpx.stream("GET", url, timeout=Timeout(timeout))
