from dataclasses import dataclass, field
from datetime import datetime
from typing import List


@dataclass(frozen=True)
class BlobProperties:
    last_modified: datetime | None = None
    etag: str | None = None
    content_length: int | None = None
    content_type: str | None = None
    content_md5: str | None = None
    blob_type: str | None = None


@dataclass(frozen=True)
class Blob:
    name: str
    url: str
    properties: BlobProperties = field(default_factory=BlobProperties)


@dataclass
class ListingPage:
    container_name: str | None
    blobs: List[Blob]
    max_results: int | None = None
    next_marker: str | None = None
