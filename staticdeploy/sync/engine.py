"""Deploy engine: runs one upload of the source tree to the bucket."""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from rich.progress import Progress, SpinnerColumn, TextColumn

from ..api import CloudFrontClient, S3Client
from ..config import DeployConfig
from ..invalidate import Invalidator
from ..models import TransferResult, WorkBatch
from ..output import OutputFormatter, ProgressSink
from .comparator import DeltaEngine
from .inventory import RemoteInventory
from .operations import DeployOperations
from .scanner import PathFilter
from .scheduler import TransferScheduler

logger = logging.getLogger(__name__)


@dataclass
class DeployStats:
    """Statistics of a deploy run."""

    scanned: int = 0
    uploads: int = 0
    skips: int = 0
    invalidated: int = 0
    results: list[TransferResult] = field(default_factory=list)


class DeployEngine:
    """Core engine that orchestrates a deploy.

    Control flow: scan the source tree, optionally drop unchanged files by
    comparing against the remote inventory, transfer the rest under bounded
    concurrency, then invalidate the CloudFront paths.
    """

    def __init__(
        self,
        config: DeployConfig,
        sink: ProgressSink,
        output: Optional[OutputFormatter] = None,
        s3_client: Optional[S3Client] = None,
        cloudfront_client: Optional[CloudFrontClient] = None,
    ):
        """Initialize deploy engine.

        Args:
            config: Deploy configuration
            sink: Progress output shared by all transfers
            output: Output formatter for status messages
            s3_client: S3 client (created from config if not provided)
            cloudfront_client: CloudFront client (created from config if not provided)
        """
        self.config = config
        self.sink = sink
        self.output = output or OutputFormatter()
        self.s3_client = s3_client or S3Client(
            config.bucket, config.credentials, timeout=config.timeout
        )
        self.cloudfront_client = cloudfront_client or CloudFrontClient(
            config.credentials, timeout=config.timeout
        )

    def close(self) -> None:
        """Release the HTTP clients."""
        self.s3_client.close()
        self.cloudfront_client.close()

    def plan(self, delta: bool = False) -> tuple[WorkBatch, int]:
        """Build the batch of files to upload.

        Args:
            delta: If True, drop files unchanged since the remote snapshot

        Returns:
            Tuple of (batch to transfer, number of files found in the source)

        Raises:
            ConfigurationError: If a pattern or the source is invalid
            SourceUnavailableError: If the source tree cannot be read
            RemoteError: If the bucket listing fails
            MalformedInventoryError: If the bucket listing cannot be parsed
        """
        # Compile patterns before touching the tree
        path_filter = PathFilter(self.config.ignore, self.config.metadata)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            disable=self.output.quiet,
        ) as progress:
            task = progress.add_task("Scanning source directory...", total=None)
            scan_start = time.time()
            batch = path_filter.classify(self.config.source)
            progress.update(task, description=f"Found {len(batch)} local file(s)")
            logger.debug(
                "Source scan took %.2fs for %d files",
                time.time() - scan_start,
                len(batch),
            )
            scanned = len(batch)

            if delta:
                task = progress.add_task("Fetching remote inventory...", total=None)
                inventory = RemoteInventory(self.s3_client).fetch()
                progress.update(
                    task, description=f"Found {len(inventory)} remote file(s)"
                )
                batch = DeltaEngine().filter_batch(batch, inventory)

        return batch, scanned

    def deploy(self, dry_run: bool = False, delta: bool = False) -> DeployStats:
        """Upload the source tree and invalidate the CDN paths.

        Args:
            dry_run: If True, decide everything but send no writes
            delta: If True, only upload files changed since the last deploy

        Returns:
            DeployStats for the run

        Raises:
            DeployError: On the first error; completed uploads are kept
        """
        if not self.output.quiet:
            self.output.info(
                f"Deploying: {self.config.source} -> s3://{self.config.bucket.name}"
            )
            if dry_run:
                self.output.info("Dry run: No changes will be made")
            if delta:
                self.output.info("Delta mode: Unchanged files are skipped")

        batch, scanned = self.plan(delta=delta)
        stats = DeployStats(scanned=scanned, skips=scanned - len(batch))

        operations = DeployOperations(self.s3_client, self.config.source, self.sink)
        scheduler = TransferScheduler(
            self.config.parallel, self.sink, dry_run=dry_run, delta=delta
        )
        stats.results = scheduler.run(batch, operations.upload)
        stats.uploads = len(stats.results)

        invalidator = Invalidator(
            self.cloudfront_client,
            self.config.distribution_id,
            self.config.invalidation,
            self.sink,
        )
        if invalidator.run(dry_run=dry_run):
            stats.invalidated = len(self.config.invalidation)

        if not self.output.quiet:
            self._display_summary(stats, dry_run)
        return stats

    def _display_summary(self, stats: DeployStats, dry_run: bool) -> None:
        """Display deploy summary."""
        self.output.print("")
        if dry_run:
            self.output.success("Dry run complete!")
        else:
            self.output.success("Deploy complete!")

        verb = "Would upload" if dry_run else "Uploaded"
        self.output.info(f"  {verb}: {stats.uploads}")
        if stats.skips > 0:
            self.output.info(f"  Unchanged: {stats.skips}")
        if stats.invalidated > 0:
            self.output.info(f"  Invalidated paths: {stats.invalidated}")
