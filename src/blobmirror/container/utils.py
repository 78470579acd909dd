import urllib.parse as urllib
from pathlib import PurePosixPath


def get_blob_url(container_url: str, name: str) -> str:
    return f"{container_url.rstrip('/')}/{urllib.quote(name, safe='/')}"


def _path_segments(url: str) -> list[str]:
    raw_path = urllib.unquote(urllib.urlparse(url).path)
    return [segment for segment in raw_path.split("/") if segment]


def get_relative_path_from_url(blob_url: str, container_url: str) -> PurePosixPath:
    """
    Relative local path for a blob url: the percent-decoded url path, without
    the container url's path (or, for blobs served from another host, without a
    leading container name segment). Raises ValueError for paths that would
    escape the destination root or name no file at all.
    """
    raw_path = urllib.unquote(urllib.urlparse(blob_url).path)
    segments = _path_segments(blob_url)
    prefix = _path_segments(container_url)
    if prefix and segments[: len(prefix)] == prefix:
        segments = segments[len(prefix) :]
    elif prefix and segments[:1] == prefix[-1:]:
        segments = segments[1:]

    if not segments:
        raise ValueError(f"url path '{raw_path}' does not name a blob")
    for segment in segments:
        if segment in (".", ".."):
            raise ValueError(f"url path '{raw_path}' has a relative segment")
        if "\\" in segment or "\x00" in segment:
            raise ValueError(f"url path '{raw_path}' has an invalid segment")

    return PurePosixPath(*segments)
