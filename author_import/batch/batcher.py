"""
Fixed-capacity batching of normalized authors.
"""

from typing import Callable

from author_import.core.models import AuthorCreate, Batch


class Batcher:
    """
    Accumulates authors into one open batch and hands it off when full.

    The open batch is replaced before the flush callback runs, so no author
    is ever part of two flushes. Authors keep their arrival order.
    """

    def __init__(self, capacity: int, flush: Callable[[Batch], None]):
        """
        Initialize batcher.

        Args:
            capacity: Authors per batch
            flush: Called with each full batch, and with the final partial one
        """
        if capacity <= 0:
            raise ValueError(f"capacity must be a positive integer, got {capacity}")
        self.capacity = capacity
        self._flush = flush
        self._batches_started = 1
        self._open = Batch(batch_number=1)

    @property
    def pending(self) -> int:
        """Authors waiting in the open batch."""
        return self._open.size

    def add(self, author: AuthorCreate) -> bool:
        """
        Append an author, flushing if the batch reaches capacity.

        Returns:
            True if this call flushed a batch
        """
        self._open.authors.append(author)
        if self._open.size >= self.capacity:
            self._hand_off()
            return True
        return False

    def drain(self) -> bool:
        """
        Flush the open batch if it holds any authors.

        Returns:
            True if a final batch was flushed
        """
        if self._open.size == 0:
            return False
        self._hand_off()
        return True

    def _hand_off(self) -> None:
        full = self._open
        self._batches_started += 1
        self._open = Batch(batch_number=self._batches_started)
        self._flush(full)
