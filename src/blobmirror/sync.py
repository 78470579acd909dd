import asyncio
from dataclasses import dataclass, field
from typing import List, Tuple

from structlog import get_logger

from .config import SyncConfiguration
from .container.client import ContainerClient
from .container.models import Blob
from .enums import SyncOutcome
from .exceptions import MaterializeError
from .materializer import materialize

logger = get_logger()


@dataclass
class SyncReport:
    seen: int = 0
    skipped: int = 0
    fetched: int = 0
    failures: List[Tuple[Blob, MaterializeError]] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures

    def record(self, outcome: SyncOutcome):
        match outcome:
            case SyncOutcome.FETCHED:
                self.fetched += 1
            case SyncOutcome.SKIPPED:
                self.skipped += 1


def create_client(config: SyncConfiguration) -> ContainerClient:
    return ContainerClient(
        account=config.account,
        container=config.container,
        endpoint_template=config.endpoint_template,
        max_results=config.max_results,
        listing_timeout=config.listing_timeout,
        fetch_timeout=config.fetch_timeout,
    )


async def _worker(
    client: ContainerClient,
    config: SyncConfiguration,
    queue: "asyncio.Queue[Blob | None]",
    report: SyncReport,
):
    while True:
        blob = await queue.get()
        try:
            if blob is None:
                return
            try:
                outcome = await materialize(
                    client,
                    blob,
                    config.destination_root,
                    attempts=config.fetch_attempts,
                )
            except MaterializeError as e:
                logger.error("Blob failed", blob=blob.name, cause=e.cause.value, error=str(e))
                report.failures.append((blob, e))
            else:
                report.record(outcome)
        finally:
            queue.task_done()


async def _run(client: ContainerClient, config: SyncConfiguration) -> SyncReport:
    report = SyncReport()
    queue: "asyncio.Queue[Blob | None]" = asyncio.Queue(maxsize=config.concurrency * 2)

    if not config.interleave:
        # the whole listing must succeed before anything is written
        blobs = [blob async for blob in client.list_blobs()]
        logger.info("Listing complete", container=config.container, blobs=len(blobs))

    async def produce():
        if config.interleave:
            async for blob in client.list_blobs():
                report.seen += 1
                await queue.put(blob)
        else:
            for blob in blobs:
                report.seen += 1
                await queue.put(blob)
        for _ in range(config.concurrency):
            await queue.put(None)

    tasks = [asyncio.create_task(produce())]
    tasks.extend(
        asyncio.create_task(_worker(client, config, queue, report))
        for _ in range(config.concurrency)
    )
    try:
        await asyncio.gather(*tasks)
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    return report


async def sync_container(
    config: SyncConfiguration, *, client: ContainerClient | None = None
) -> SyncReport:
    """
    Mirror every blob of the configured container under `destination_root`.

    Raises ListingError when the container cannot be enumerated. Failures of
    individual blobs are collected in the returned report.
    """
    logger.info(
        "Sync started",
        account=config.account,
        container=config.container,
        destination=str(config.destination_root),
        concurrency=config.concurrency,
    )

    client = client or create_client(config)
    async with client:
        report = await _run(client, config)

    logger.info(
        "Sync finished",
        seen=report.seen,
        skipped=report.skipped,
        fetched=report.fetched,
        failed=report.failed,
    )

    return report
