"""
Parallel scheduler for applying a pipeline stage across a set of images.

Stages never share buffers between images, so the images of one stage can be
processed independently by a thread or process pool. Results always come back
in input order.
"""

import multiprocessing
from concurrent.futures import ThreadPoolExecutor, ProcessPoolExecutor
from typing import Any, Callable, List, TypeVar

from .chainable.basex import ProgressReporter, RGBImage


T = TypeVar('T')


class ImageTaskScheduler:
    """
    Maps a single-image callable over a list of images.

    With ``max_workers == 1`` the work runs inline in the calling thread.
    """

    EXECUTION_MODES = ('threading', 'multiprocessing')

    def __init__(self, max_workers: int = 1, execution_mode: str = 'threading'):
        """
        Initialize the image scheduler.

        Args:
            max_workers: Maximum number of worker threads/processes
            execution_mode: 'threading' or 'multiprocessing'
        """
        if execution_mode not in self.EXECUTION_MODES:
            raise ValueError("execution_mode must be 'threading' or 'multiprocessing'")

        if max_workers <= 0:
            raise ValueError("max_workers must be positive")

        self.max_workers = max_workers
        self.execution_mode = execution_mode

    def _executor(self, task_count: int):
        workers = min(self.max_workers, task_count)
        if self.execution_mode == 'multiprocessing':
            # spawned workers start clean instead of inheriting the parent's threads
            return ProcessPoolExecutor(max_workers=workers, mp_context=multiprocessing.get_context('spawn'))
        return ThreadPoolExecutor(max_workers=workers)

    def map(self, func: Callable[[RGBImage], T], images: List[RGBImage], description: str = "Processing") -> List[T]:
        """
        Apply ``func`` to every image.

        Args:
            func: Callable taking one image
            images: Images to process
            description: Label used in progress logs

        Returns:
            Results in the same order as ``images``
        """
        progress = ProgressReporter(len(images), description)

        if self.max_workers == 1 or len(images) <= 1:
            results: List[Any] = []
            for image in images:
                results.append(func(image))
                progress.update()
            progress.finish()
            return results

        with self._executor(len(images)) as executor:
            futures = [executor.submit(func, image) for image in images]
            results = []
            # collecting in submission order keeps the output aligned with the input
            for future in futures:
                results.append(future.result())
                progress.update()

        progress.finish()
        return results

    def __repr__(self) -> str:
        return f"ImageTaskScheduler(max_workers={self.max_workers}, execution_mode='{self.execution_mode}')"
