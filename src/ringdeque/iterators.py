from collections.abc import Iterator
from typing import TYPE_CHECKING, Any, Generic, Self, TypeVar

from loguru import logger

from ringdeque.errors import BorrowError

if TYPE_CHECKING:
    from ringdeque.deque import ArrayDeque

T = TypeVar("T")


class Iter(Generic[T]):
    """A double-ended iterator over a deque's elements.

    The iterator keeps two logical cursors into the deque's window. Calling
    `next()` consumes from one end and `next_back()` from the other; both
    shrink the same window, so no element is yielded twice and iteration ends
    when the cursors meet.

    Like `collections.deque`, the deque must not be structurally mutated
    while the iterator is in use. Doing so makes the next step raise
    `BorrowError`. Replacing values in place is allowed.
    """

    __slots__ = ("_deque", "_front", "_back", "_stamp", "_reverse")

    def __init__(self, deque: "ArrayDeque[T]", *, reverse: bool = False) -> None:
        self._deque = deque
        self._front = 0
        self._back = len(deque)
        self._stamp = deque._stamp
        self._reverse = reverse

    def __iter__(self) -> Self:
        return self

    def __len__(self) -> int:
        """Returns how many elements are left between the two cursors."""
        return self._back - self._front

    def _check(self) -> None:
        if self._deque._stamp != self._stamp:
            err_msg = "deque mutated during iteration"
            raise BorrowError(err_msg)

    def _take_front(self) -> T:
        self._check()
        if self._front >= self._back:
            raise StopIteration
        value = self._deque._read(self._front)
        self._front += 1
        return value

    def _take_back(self) -> T:
        self._check()
        if self._front >= self._back:
            raise StopIteration
        self._back -= 1
        return self._deque._read(self._back)

    def __next__(self) -> T:
        return self._take_back() if self._reverse else self._take_front()

    def next_back(self) -> T:
        """Consumes one element from the far end of the iteration.

        Raises:
            StopIteration: If the two cursors have met.
        """
        return self._take_front() if self._reverse else self._take_back()

    def __reversed__(self) -> "Iter[T]":
        """Returns an iterator over the remaining window in the other direction."""
        flipped: Iter[T] = Iter(self._deque, reverse=not self._reverse)
        flipped._front = self._front
        flipped._back = self._back
        flipped._stamp = self._stamp
        return flipped


class Drain(Generic[T]):
    """A lazy, draining iterator over a range of a deque.

    Creating a drain hides the range ``[start, stop)`` and everything after it
    from the deque, which stays borrowed until the drain is closed. Each
    yielded element is moved out of its slot. Closing the drain, which happens
    on exhaustion, on `close()`, at the end of a ``with`` block or when the
    drain is garbage collected, drops every element that was not yielded and
    joins the elements after the range back onto the ones before it.

    Usage:
        with deque.drain(1, 3) as drained:
            first = next(drained)
        # The rest of [1, 3) is dropped here; the deque is usable again.
    """

    __slots__ = ("_deque", "_start", "_stop", "_front", "_back", "_tail_len", "_closed")

    def __init__(self, deque: "ArrayDeque[T]", start: int, stop: int) -> None:
        self._deque = deque
        self._start = start
        self._stop = stop
        self._front = start
        self._back = stop
        self._tail_len = len(deque) - stop
        self._closed = False
        deque._borrowed = True
        deque._length = start
        deque._stamp += 1

    def __iter__(self) -> Self:
        return self

    def __len__(self) -> int:
        """Returns how many elements are still to be yielded."""
        return self._back - self._front

    def __next__(self) -> T:
        if self._front >= self._back:
            self.close()
            raise StopIteration
        value = self._deque._slots.take(self._deque._phys(self._front))
        self._front += 1
        return value

    def next_back(self) -> T:
        """Moves out the last element still in the drained range.

        Raises:
            StopIteration: If the range is exhausted.
        """
        if self._front >= self._back:
            self.close()
            raise StopIteration
        self._back -= 1
        return self._deque._slots.take(self._deque._phys(self._back))

    def __reversed__(self) -> Iterator[T]:
        while self._front < self._back:
            yield self.next_back()

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Drops the un-yielded elements and releases the deque. Idempotent."""
        if self._closed:
            return
        self._closed = True
        deque = self._deque
        remaining = self._back - self._front
        for offset in range(self._front, self._back):
            deque._slots.release(deque._phys(offset))
        self._front = self._back
        if remaining:
            logger.debug(
                f"Drain closed early; dropped {remaining} undrained element(s)."
            )
        deque._close_gap(self._start, self._stop, self._tail_len)

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __del__(self) -> None:
        if not getattr(self, "_closed", True):
            self.close()
