from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

import httpx
from bs4 import BeautifulSoup, Tag
from structlog import get_logger

from blobmirror.core import StorageClient, raise_for_status
from blobmirror.enums import ErrorCause
from blobmirror.exceptions import HttpError, ListingError

from .models import Blob, BlobProperties, ListingPage
from .utils import get_blob_url

logger = get_logger()

DEFAULT_ENDPOINT_TEMPLATE = "https://{account}.blob.core.windows.net/{container}"
LAST_MODIFIED_FORMAT = "%a, %d %b %Y %H:%M:%S %Z"


def _child_text(el: Tag, name: str) -> str | None:
    child_el = el.find(name, recursive=False)
    if not isinstance(child_el, Tag):
        return None
    return child_el.text.strip()


def _parse_last_modified(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.strptime(value, LAST_MODIFIED_FORMAT)
    except ValueError:
        logger.warning("Unparseable Last-Modified", value=value)
        return None


def parse_listing(content: bytes | str, *, container_url: str) -> ListingPage:
    """
    Decode one `EnumerationResults` document.

    Raises ValueError when the document is not a blob listing.
    """
    soup = BeautifulSoup(content, "xml")
    results_el = soup.find("EnumerationResults")
    if not isinstance(results_el, Tag):
        raise ValueError("response has no EnumerationResults element")

    max_results = _child_text(results_el, "MaxResults")

    blobs = []
    blobs_el = results_el.find("Blobs", recursive=False)
    if isinstance(blobs_el, Tag):
        for blob_el in blobs_el.find_all("Blob", recursive=False):
            name = _child_text(blob_el, "Name")
            if not name:
                raise ValueError("blob entry has no Name")
            url = _child_text(blob_el, "Url") or get_blob_url(container_url, name)

            properties = BlobProperties()
            properties_el = blob_el.find("Properties", recursive=False)
            if isinstance(properties_el, Tag):
                last_modified = _child_text(properties_el, "Last-Modified")
                content_length = _child_text(properties_el, "Content-Length")
                properties = BlobProperties(
                    last_modified=_parse_last_modified(last_modified),
                    etag=(_child_text(properties_el, "Etag") or "").strip('"') or None,
                    content_length=int(content_length) if content_length else None,
                    content_type=_child_text(properties_el, "Content-Type") or None,
                    content_md5=_child_text(properties_el, "Content-MD5") or None,
                    blob_type=_child_text(properties_el, "BlobType") or None,
                )

            blobs.append(Blob(name=name, url=url, properties=properties))

    listing_page = ListingPage(
        container_name=results_el.get("ContainerName"),
        blobs=blobs,
        max_results=int(max_results) if max_results else None,
        next_marker=_child_text(results_el, "NextMarker") or None,
    )

    return listing_page


class ContainerClient(StorageClient):
    def __init__(
        self,
        *,
        account: str,
        container: str,
        endpoint_template: str = DEFAULT_ENDPOINT_TEMPLATE,
        max_results: int | None = None,
        listing_timeout: float | None = None,
        fetch_timeout: float | None = None,
    ):
        super().__init__(
            base_url=endpoint_template.format(account=account, container=container)
        )
        self.account = account
        self.container = container
        self.max_results = max_results or None
        self.listing_timeout = listing_timeout
        self.fetch_timeout = fetch_timeout

    async def list_blobs_page(self, marker: str | None = None) -> ListingPage:
        """
        Fetch and decode a single listing page.

        https://learn.microsoft.com/en-us/rest/api/storageservices/list-blobs
        """
        try:
            res = await self._make_request(
                method="GET",
                params={
                    "restype": "container",
                    "comp": "list",
                    "maxresults": self.max_results,
                    "marker": marker,
                },
                timeout=self.listing_timeout,
            )
            raise_for_status(res, context=f"ListBlobs {self.container}")
        except (httpx.HTTPError, httpx.InvalidURL, HttpError) as e:
            logger.error(
                "Listing request failed",
                container=self.container,
                marker=marker,
                error=str(e),
            )
            raise ListingError(cause=ErrorCause.TRANSPORT, detail=str(e)) from e

        try:
            listing_page = parse_listing(res.content, container_url=self.base_url)
        except ValueError as e:
            logger.error(
                "Listing response is malformed",
                container=self.container,
                marker=marker,
                error=str(e),
            )
            raise ListingError(cause=ErrorCause.DECODE, detail=str(e)) from e

        logger.info(
            "Listing page loaded",
            container=self.container,
            blobs=len(listing_page.blobs),
            has_more=listing_page.next_marker is not None,
        )

        return listing_page

    async def list_pages(self) -> AsyncIterator[ListingPage]:
        marker = None
        while True:
            listing_page = await self.list_blobs_page(marker)
            yield listing_page
            if listing_page.next_marker is None:
                return
            marker = listing_page.next_marker

    async def list_blobs(self) -> AsyncIterator[Blob]:
        """
        Every blob in the container, in service order, across all pages.

        Pagination stops only on an empty or absent NextMarker.
        """
        async for listing_page in self.list_pages():
            for blob in listing_page.blobs:
                yield blob

    @asynccontextmanager
    async def open_blob(self, blob: Blob):
        """
        Stream a blob's bytes. Raises HttpError on a non-2xx status before any
        bytes are read.
        """
        async with self._stream(url=blob.url, timeout=self.fetch_timeout) as res:
            raise_for_status(res, context=f"GetBlob {blob.name}")
            yield res
