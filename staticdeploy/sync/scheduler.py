"""Bounded-concurrency transfer scheduling."""

import logging
import threading
import time
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Optional

from ..models import Header, TransferOutcome, TransferResult, WorkBatch
from ..output import ProgressSink

logger = logging.getLogger(__name__)

TransferFn = Callable[[str, list[Header]], None]
"""Transfers one file: (local_path, headers); raises on failure"""


class _FirstError:
    """Keeps the first error reported by any worker."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._error: Optional[BaseException] = None

    def offer(self, error: BaseException) -> bool:
        """Record an error unless one is already held.

        Returns:
            True if this error became the first error
        """
        with self._lock:
            if self._error is None:
                self._error = error
                return True
            return False

    @property
    def error(self) -> Optional[BaseException]:
        with self._lock:
            return self._error


class TransferScheduler:
    """Runs one transfer task per file with at most ``concurrency`` active.

    All tasks are submitted when the run starts; the executor's worker count
    is the counting bound, so tasks beyond it wait in the queue until a slot
    frees. Every task writes a "done" line when its transfer ends, failed or
    not. The run waits for all tasks and then raises the first error any of
    them reported; later errors are discarded.

    Examples:
        >>> sink = ProgressSink(sys.stdout)  # doctest: +SKIP
        >>> scheduler = TransferScheduler(concurrency=4, sink=sink)  # doctest: +SKIP
        >>> scheduler.run(batch, operations.upload)  # doctest: +SKIP
    """

    def __init__(
        self,
        concurrency: int,
        sink: ProgressSink,
        dry_run: bool = False,
        delta: bool = False,
    ):
        """Initialize transfer scheduler.

        Args:
            concurrency: Maximum number of simultaneous transfers (<= 0 means 1)
            sink: Progress output shared by all workers
            dry_run: If True, never call the transfer function
            delta: Whether the batch was filtered by delta detection
        """
        self.concurrency = concurrency if concurrency > 0 else 1
        self.sink = sink
        self.dry_run = dry_run
        self.delta = delta
        self.results: list[TransferResult] = []

    def run(self, batch: WorkBatch, transfer_fn: TransferFn) -> list[TransferResult]:
        """Transfer every file of a batch.

        Args:
            batch: Files to transfer
            transfer_fn: Function performing one transfer

        Returns:
            One TransferResult per file (all succeeded)

        Raises:
            Exception: The first error raised by ``transfer_fn``, once every
                task has finished
        """
        first_error = _FirstError()
        results_lock = threading.Lock()
        results: list[TransferResult] = []

        self.sink.write_line(
            f"{len(batch)} Files to upload ({self.concurrency} concurrently)..."
        )
        logger.debug(
            "Transferring %d file(s) with %d worker(s)", len(batch), self.concurrency
        )

        def execute(local_path: str, headers: list[Header]) -> None:
            result = TransferResult(local_path=local_path)
            start = time.time()
            try:
                if not self.dry_run:
                    transfer_fn(local_path, headers)
            except Exception as e:
                result.outcome = TransferOutcome.FAILED
                result.error = e
                if first_error.offer(e):
                    logger.debug("Transfer of %s failed: %s", local_path, e)
                else:
                    logger.debug("Discarding later error for %s: %s", local_path, e)
            result.elapsed = time.time() - start
            with results_lock:
                results.append(result)
            self.sink.write_line(f"{local_path}...Done.")

        with ThreadPoolExecutor(max_workers=self.concurrency) as executor:
            futures = [
                executor.submit(execute, local_path, batch.headers_for(local_path))
                for local_path in batch
            ]
            wait(futures)

        # execute() handles transfer errors itself; anything left is a bug
        for future in futures:
            future.result()

        self.results = results
        if first_error.error is not None:
            raise first_error.error

        self.sink.write_line(self._finish_message())
        return results

    def _finish_message(self) -> str:
        message = "Dry Run finished." if self.dry_run else "Upload finished."
        if self.delta:
            message = f"Delta {message}"
        return message
