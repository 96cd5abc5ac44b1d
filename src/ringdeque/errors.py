from typing import Any

CAPACITY_ERROR_MSG = "insufficient capacity"


class RingDequeError(Exception):
    """Base class for every error raised by the ringdeque package."""


class CapacityError(RingDequeError):
    """A saturating deque had no room for an element.

    The rejected element is handed back on the exception, so nothing is lost.
    """

    def __init__(self, element: Any) -> None:
        super().__init__(CAPACITY_ERROR_MSG)
        self.element = element


class EmptyDequeError(RingDequeError, IndexError):
    """An element was requested from an empty deque."""


class NotFullError(RingDequeError, ValueError):
    """A fixed-size extraction was attempted on a deque that is not full."""


class BorrowError(RingDequeError, RuntimeError):
    """The deque was mutated while a drain or an iterator was borrowing it."""


class SlotStateError(RingDequeError):
    """A slot was accessed in a state that breaks the storage invariants.

    This always indicates a bug in the deque bookkeeping, never a caller error.
    """
