from .config import SyncConfiguration, load_configuration
from .container.client import ContainerClient
from .container.models import Blob, BlobProperties, ListingPage
from .exceptions import (BlobMirrorError, ConfigurationError, HttpError,
                         ListingError, MaterializeError)
from .materializer import materialize
from .sync import SyncReport, sync_container

__all__ = [
    "Blob",
    "BlobMirrorError",
    "BlobProperties",
    "ConfigurationError",
    "ContainerClient",
    "HttpError",
    "ListingError",
    "ListingPage",
    "MaterializeError",
    "SyncConfiguration",
    "SyncReport",
    "load_configuration",
    "materialize",
    "sync_container",
]
