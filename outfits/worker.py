"""
Worker loop that deletes storage objects whose metadata is gone.

Post deletions and profile image changes enqueue the old object key; this
worker removes the object and re-enqueues failed deletions until
``cleanup_max_attempts`` is reached.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from outfits.config import get_settings
from outfits.dependencies import build_cleanup_queue, build_storage_client
from outfits.queue import CleanupQueue, CleanupTask
from outfits.storage import StorageClient

logger = logging.getLogger(__name__)


def process_task(
    task: CleanupTask,
    storage: StorageClient,
    queue: CleanupQueue,
    max_attempts: int,
) -> bool:
    """Delete one object. Returns True if the object was deleted."""
    try:
        storage.delete_object(task.key)
    except Exception:
        attempts = task.attempts + 1
        if attempts >= max_attempts:
            logger.exception(
                "Giving up on deleting %s after %d attempts", task.key, attempts
            )
        else:
            logger.warning(
                "Failed to delete %s (attempt %d/%d), requeueing",
                task.key,
                attempts,
                max_attempts,
                exc_info=True,
            )
            queue.enqueue(CleanupTask(key=task.key, attempts=attempts))
        return False

    logger.info("Deleted storage object %s", task.key)
    return True


def process_next(
    *,
    storage: StorageClient,
    queue: CleanupQueue,
    max_attempts: Optional[int] = None,
    block: bool = True,
    timeout: Optional[int] = None,
) -> bool:
    """
    Take one task off the queue and process it. Returns True if a task was taken.
    """
    task = queue.dequeue(block=block, timeout=timeout)
    if task is None:
        return False
    if max_attempts is None:
        max_attempts = get_settings().cleanup_max_attempts
    process_task(task, storage, queue, max_attempts)
    return True


def drain(
    *, storage: StorageClient, queue: CleanupQueue, max_attempts: Optional[int] = None
) -> int:
    """Process tasks without blocking until the queue is empty."""
    processed = 0
    while process_next(
        storage=storage, queue=queue, max_attempts=max_attempts, block=False
    ):
        processed += 1
    return processed


def run_loop(poll_interval_seconds: float = 2.0) -> None:
    """
    Blocking loop over the cleanup queue. Intended to be run under systemd/supervisor.
    """
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    storage = build_storage_client(settings)
    queue = build_cleanup_queue(settings)
    while True:
        processed = process_next(
            storage=storage,
            queue=queue,
            max_attempts=settings.cleanup_max_attempts,
            block=True,
            timeout=int(poll_interval_seconds),
        )
        if not processed:
            time.sleep(poll_interval_seconds)


if __name__ == "__main__":
    run_loop()
