"""
Thread-parallel execution of independent work items.

Items are split into contiguous blocks and handed to a thread pool. Work
items must not share mutable state; the scheduler does no locking around
them.
"""

import math
import os
import threading
import traceback
from collections import deque
from multiprocessing.pool import ThreadPool
from typing import Callable, List, Optional, Tuple

from tqdm import tqdm


class ProgressToken:
    """Progress reporting and cooperative cancellation shared with workers."""

    def __init__(self):
        self.messages = deque()
        self.steps = 0
        self._completed = 0
        self._lock = threading.Lock()
        self._cancel_event = threading.Event()

    def announce_stage(self, message: str):
        self.messages.append(message)

    def increment_progress(self, amount: int = 1):
        with self._lock:
            self._completed += amount

    @property
    def completed(self) -> int:
        with self._lock:
            return self._completed

    @property
    def progress(self) -> float:
        """Fraction of steps completed, in [0, 1]."""
        if self.steps <= 0:
            return 0.0
        return min(1.0, self.completed / self.steps)

    def cancel(self):
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()


def block_size(item_count: int, min_block_size: int = 8, workers: Optional[int] = None) -> int:
    """Size of the contiguous blocks handed to each worker.

    One block per worker when there is enough work, but never smaller than
    ``min_block_size`` so tiny jobs do not pay thread overhead per item.
    """
    if item_count <= 0:
        return 1
    workers = workers or os.cpu_count() or 1
    size = math.ceil(item_count / workers)
    return max(1, min(item_count, max(min_block_size, size)))


def split_blocks(item_count: int, size: int) -> List[range]:
    return [range(start, min(start + size, item_count)) for start in range(0, item_count, size)]


def run_parallel(item_count: int, block_size: int, work: Callable[[int], Optional[bool]],
                 token: Optional[ProgressToken] = None, workers: Optional[int] = None,
                 show_progress: bool = False, desc: str = "Working") -> List[Tuple[int, BaseException]]:
    """Runs ``work(i)`` for every item index, block by block.

    An exception raised by one item is recorded and does not stop the other
    items. Once the token is cancelled no further items are started. An item
    whose ``work`` returns False was interrupted and does not count towards
    the token's progress.

    Args:
        item_count: Number of work items.
        block_size: Number of consecutive items per block.
        work: Callable receiving the item index. Returns False when the item
              stopped before finishing.
        token: Optional progress / cancellation token.
        workers: Thread count. None uses the CPU count; 1 runs inline.
        show_progress: Display a tqdm progress bar.
        desc: Progress bar label.

    Returns:
        List of (item index, exception) for the items that failed.
    """
    blocks = split_blocks(item_count, max(1, block_size))

    def run_block(block: range) -> List[Tuple[int, BaseException]]:
        failures = []
        for i in block:
            if token is not None and token.cancelled:
                break
            finished = True
            try:
                finished = work(i) is not False
            except Exception as e:
                print(f"Warning: work item {i} failed: {e}")
                traceback.print_exc()
                failures.append((i, e))
            if token is not None and finished:
                token.increment_progress()
        return failures

    failures: List[Tuple[int, BaseException]] = []
    with tqdm(total=item_count, desc=desc, unit="tile", disable=not show_progress) as pbar:
        if workers == 1 or len(blocks) <= 1:
            for block in blocks:
                failures.extend(run_block(block))
                pbar.update(len(block))
        else:
            with ThreadPool(processes=workers) as pool:
                for block, block_failures in zip(blocks, pool.imap(run_block, blocks)):
                    failures.extend(block_failures)
                    pbar.update(len(block))

    return failures
