import asyncio
import uuid
from pathlib import Path

import aiofiles
import aiofiles.os
import httpx
from structlog import get_logger

from .container.client import ContainerClient
from .container.models import Blob
from .container.utils import get_relative_path_from_url
from .enums import ErrorCause, SyncOutcome
from .exceptions import HttpError, MaterializeError

logger = get_logger()

RETRY_BASE_DELAY = 0.5
RETRY_MAX_DELAY = 10.0


def derive_local_path(
    blob: Blob, destination_root: str | Path, container_url: str
) -> Path:
    try:
        relative_path = get_relative_path_from_url(blob.url, container_url)
    except ValueError as e:
        raise MaterializeError(cause=ErrorCause.PATH, blob=blob, detail=str(e)) from e

    return Path(destination_root).joinpath(*relative_path.parts)


async def _entry_exists(path: Path) -> bool:
    return await aiofiles.os.path.exists(path) or await aiofiles.os.path.islink(path)


def _is_retryable(error: Exception) -> bool:
    if isinstance(error, HttpError):
        return error.status >= 500
    return isinstance(error, httpx.TransportError)


async def _download(client: ContainerClient, blob: Blob, local_path: Path) -> int | None:
    """
    Stream the blob into a hidden sibling of `local_path` and hard-link it into
    place. Returns None, without touching it, when `local_path` appeared in the
    meantime. The temporary file never outlives this call.
    """
    tmp_path = local_path.with_name(f".{local_path.name}.{uuid.uuid4().hex}.part")
    size = 0
    try:
        async with client.open_blob(blob) as res:
            async with aiofiles.open(tmp_path, "xb") as f:
                async for chunk in res.aiter_bytes():
                    await f.write(chunk)
                    size += len(chunk)
        try:
            await aiofiles.os.link(tmp_path, local_path)
        except FileExistsError:
            return None
    finally:
        try:
            await aiofiles.os.remove(tmp_path)
        except FileNotFoundError:
            pass

    return size


async def materialize(
    client: ContainerClient,
    blob: Blob,
    destination_root: str | Path,
    *,
    attempts: int = 1,
) -> SyncOutcome:
    """
    Make sure `blob` exists under `destination_root`.

    Existence of any entry at the derived path counts as already present: the
    file is neither compared nor overwritten. Timeouts, transport errors and 5xx
    responses are retried up to `attempts` times in total.
    """
    local_path = derive_local_path(blob, destination_root, client.base_url)

    if await _entry_exists(local_path):
        logger.info("Blob already downloaded", blob=blob.name, path=str(local_path))
        return SyncOutcome.SKIPPED

    try:
        await aiofiles.os.makedirs(local_path.parent, exist_ok=True)
    except OSError as e:
        raise MaterializeError(
            cause=ErrorCause.FILESYSTEM,
            blob=blob,
            detail=f"error creating directory({local_path.parent}): {e}",
        ) from e

    attempt = 1
    while True:
        try:
            size = await _download(client, blob, local_path)
            break
        except (httpx.HTTPError, httpx.InvalidURL, HttpError) as e:
            if attempt >= attempts or not _is_retryable(e):
                raise MaterializeError(
                    cause=ErrorCause.TRANSPORT,
                    blob=blob,
                    detail=f"error download file({blob.url}): {e}",
                ) from e
            delay = min(RETRY_MAX_DELAY, RETRY_BASE_DELAY * 2 ** (attempt - 1))
            logger.warning(
                "Blob download failed, retrying",
                blob=blob.name,
                attempt=attempt,
                delay=delay,
                error=str(e),
            )
            attempt += 1
            await asyncio.sleep(delay)
        except OSError as e:
            raise MaterializeError(
                cause=ErrorCause.FILESYSTEM,
                blob=blob,
                detail=f"error save file({local_path}): {e}",
            ) from e

    if size is None:
        logger.info("Blob already downloaded", blob=blob.name, path=str(local_path))
        return SyncOutcome.SKIPPED

    logger.info("Blob downloaded", blob=blob.name, path=str(local_path), size=size)

    return SyncOutcome.FETCHED
