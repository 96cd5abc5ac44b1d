from collections.abc import Iterator
from typing import Any, Final, Generic, TypeVar, cast

from loguru import logger

from ringdeque.errors import SlotStateError

T = TypeVar("T")


class _Vacant:
    """Marker stored in a slot that holds no value."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "<vacant>"


VACANT: Final = _Vacant()


class SlotArray(Generic[T]):
    """A fixed block of element slots, each either vacant or occupied.

    The block is allocated once and never resized. Every transition is checked:
    a vacant slot can only be written, an occupied slot can only be read,
    replaced or taken. Taking a value empties its slot and drops the array's
    reference to it, which is how the deque releases elements.
    """

    __slots__ = ("_cells",)

    def __init__(self, capacity: int) -> None:
        self._cells: list[Any] = [VACANT] * capacity

    def __len__(self) -> int:
        """Returns the number of slots, occupied or not."""
        return len(self._cells)

    def _fail(self, index: int, action: str) -> SlotStateError:
        err_msg = f"Cannot {action} slot {index}: {self._describe(index)}."
        logger.error(err_msg)
        return SlotStateError(err_msg)

    def _describe(self, index: int) -> str:
        return "slot is vacant" if self._cells[index] is VACANT else "slot is occupied"

    def is_occupied(self, index: int) -> bool:
        return self._cells[index] is not VACANT

    def read(self, index: int) -> T:
        """Returns the value held in an occupied slot without removing it.

        Raises:
            SlotStateError: If the slot is vacant.
        """
        value = self._cells[index]
        if value is VACANT:
            raise self._fail(index, "read")
        return cast(T, value)

    def write(self, index: int, value: T) -> None:
        """Stores a value into a vacant slot.

        Raises:
            SlotStateError: If the slot already holds a value.
        """
        if self._cells[index] is not VACANT:
            raise self._fail(index, "write")
        self._cells[index] = value

    def replace(self, index: int, value: T) -> T:
        """Swaps the value of an occupied slot, returning the previous value."""
        old = self._cells[index]
        if old is VACANT:
            raise self._fail(index, "replace")
        self._cells[index] = value
        return cast(T, old)

    def take(self, index: int) -> T:
        """Moves the value out of an occupied slot, leaving it vacant."""
        value = self._cells[index]
        if value is VACANT:
            raise self._fail(index, "take")
        self._cells[index] = VACANT
        return cast(T, value)

    def release(self, index: int) -> None:
        """Drops the value of an occupied slot."""
        self.take(index)

    def move(self, dst: int, src: int) -> None:
        """Moves the value of slot ``src`` into the vacant slot ``dst``."""
        self.write(dst, self.take(src))

    def occupied(self) -> Iterator[int]:
        """Yields the physical indices of every occupied slot."""
        return (i for i, cell in enumerate(self._cells) if cell is not VACANT)
