import asyncio
import sys

import click
from structlog import get_logger

from .config import load_configuration
from .exceptions import ConfigurationError, ListingError
from .log import configure_logging
from .sync import SyncReport, sync_container

logger = get_logger()

EXIT_FAILURES = 1
EXIT_CONFIGURATION = 2
EXIT_LISTING = 3
EXIT_INTERRUPTED = 130


def format_report(report: SyncReport) -> str:
    lines = [
        f"Seen: {report.seen}",
        f"Skipped (already present): {report.skipped}",
        f"Fetched: {report.fetched}",
        f"Failed: {report.failed}",
    ]
    for blob, error in report.failures:
        lines.append(f"  {blob.name}: {error}")
    return "\n".join(lines)


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option("--path", "destination_root", help="Path to save the files.")
@click.option("--account", help="Storage account name.")
@click.option("--container", help="Storage container name.")
@click.option(
    "--maxresults", "max_results", type=int, help="Page size (0 for service default)."
)
@click.option("--concurrency", type=int, help="Number of parallel downloads.")
@click.option("--listing-timeout", type=float, help="Seconds per listing request.")
@click.option("--fetch-timeout", type=float, help="Seconds per blob download.")
@click.option(
    "--retries",
    type=click.IntRange(min=0),
    help="Extra attempts for a blob after a timeout or server error.",
)
@click.option(
    "--interleave/--no-interleave",
    default=None,
    help="Start downloads before the listing is complete.",
)
@click.option("--endpoint-template", help="Listing url with {account} and {container}.")
@click.option("--log-level", default="INFO", show_default=True)
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines.")
def main(
    destination_root,
    account,
    container,
    max_results,
    concurrency,
    listing_timeout,
    fetch_timeout,
    retries,
    interleave,
    endpoint_template,
    log_level,
    json_logs,
):
    """Mirror an Azure blob storage container into a local directory."""
    try:
        configure_logging(log_level, json=json_logs)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--log-level")

    try:
        config = load_configuration(
            destination_root=destination_root,
            account=account,
            container=container,
            max_results=max_results,
            concurrency=concurrency,
            listing_timeout=listing_timeout,
            fetch_timeout=fetch_timeout,
            fetch_attempts=None if retries is None else retries + 1,
            interleave=interleave,
            endpoint_template=endpoint_template,
        )
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIGURATION)

    try:
        report = asyncio.run(sync_container(config))
    except ListingError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_LISTING)
    except KeyboardInterrupt:
        logger.warning("Sync interrupted")
        sys.exit(EXIT_INTERRUPTED)

    click.echo(format_report(report))
    if not report.ok:
        sys.exit(EXIT_FAILURES)


if __name__ == "__main__":
    main()
