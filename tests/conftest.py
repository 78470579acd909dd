from typing import Iterable, List, Tuple

import pytest
import pytest_asyncio
import structlog

from blobmirror.config import SyncConfiguration
from blobmirror.container.client import ContainerClient

ACCOUNT = "acct"
CONTAINER = "cont"
ENDPOINT_TEMPLATE = "https://{account}.blob.test/{container}"
CONTAINER_URL = f"https://{ACCOUNT}.blob.test/{CONTAINER}"


def listing_url(*, max_results: int | None = None, marker: str | None = None) -> str:
    url = f"{CONTAINER_URL}?restype=container&comp=list"
    if max_results:
        url += f"&maxresults={max_results}"
    if marker:
        url += f"&marker={marker}"
    return url


def blob_url(name: str) -> str:
    return f"{CONTAINER_URL}/{name}"


def listing_xml(
    names: Iterable[str] | Iterable[Tuple[str, str]],
    *,
    next_marker: str | None = None,
    max_results: int | None = None,
) -> bytes:
    blob_xml: List[str] = []
    for item in names:
        name, url = item if isinstance(item, tuple) else (item, blob_url(item))
        blob_xml.append(
            "<Blob>"
            f"<Name>{name}</Name>"
            f"<Url>{url}</Url>"
            "<Properties>"
            "<Last-Modified>Mon, 27 Jul 2009 12:28:53 GMT</Last-Modified>"
            "<Etag>0x8CBFF45D8A29A19</Etag>"
            "<Content-Length>5</Content-Length>"
            "<Content-Type>text/plain</Content-Type>"
            "<Content-MD5 />"
            "<BlobType>BlockBlob</BlobType>"
            "</Properties>"
            "</Blob>"
        )
    max_results_xml = f"<MaxResults>{max_results}</MaxResults>" if max_results else ""
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f'<EnumerationResults ContainerName="{CONTAINER_URL}">'
        f"{max_results_xml}"
        f"<Blobs>{''.join(blob_xml)}</Blobs>"
        f"<NextMarker>{next_marker or ''}</NextMarker>"
        "</EnumerationResults>"
    ).encode()


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def destination(tmp_path):
    return tmp_path / "mirror"


@pytest.fixture
def config_values(destination):
    return dict(
        destination_root=destination,
        account=ACCOUNT,
        container=CONTAINER,
        endpoint_template=ENDPOINT_TEMPLATE,
        concurrency=4,
    )


@pytest.fixture
def config(config_values):
    return SyncConfiguration(**config_values)


@pytest_asyncio.fixture
async def client():
    container_client = ContainerClient(
        account=ACCOUNT,
        container=CONTAINER,
        endpoint_template=ENDPOINT_TEMPLATE,
        max_results=2,
        listing_timeout=5,
        fetch_timeout=5,
    )
    async with container_client:
        yield container_client
