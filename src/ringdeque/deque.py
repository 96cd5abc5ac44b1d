import abc
import itertools
from collections.abc import Callable, Iterable, Iterator, Sequence, Sized
from typing import Any, ClassVar, Final, Generic, Self, TypeVar

from loguru import logger

from ringdeque.behavior import Behavior
from ringdeque.config import Settings
from ringdeque.errors import (
    BorrowError,
    CapacityError,
    EmptyDequeError,
    NotFullError,
    SlotStateError,
)
from ringdeque.iterators import Drain, Iter
from ringdeque.storage import SlotArray
from ringdeque.utils.indexing import wrap_add, wrap_sub

T = TypeVar("T")


class ArrayDeque(Sized, Generic[T]):
    """A fixed-capacity, double-ended ring buffer.

    Elements live in a `SlotArray` allocated once at construction. The
    logical window is described by ``origin`` (the physical slot of the front
    element) and ``length``. Every operation maps logical positions onto
    physical slots with wrap-around arithmetic, so pushes and pops at either
    end never shift other elements.

    What happens when a full deque receives another element is decided by the
    concrete subclass: `SaturatingDeque` rejects it, `WrappingDeque` evicts
    the element at the opposite end.

    The deque is single-owner and not internally synchronized.
    """

    behavior: ClassVar[Behavior]

    def __init__(
        self,
        capacity: int,
        items: Iterable[T] = (),
        *,
        check_invariants: bool = False,
    ) -> None:
        """Initializes an empty deque and optionally fills it.

        Args:
            capacity: The fixed number of slots. Zero is allowed and gives a
                deque that rejects every push.
            items: Elements to push to the back, following the overflow
                behavior of the class.
            check_invariants: Verify the slot bookkeeping after every
                structural mutation. Slow; meant for debugging and tests.

        Raises:
            ValueError: If the capacity is not a non-negative integer.
        """
        if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity < 0:
            err_msg = "Capacity must be a non-negative integer."
            raise ValueError(err_msg)
        self._capacity = capacity
        self._slots: SlotArray[T] = SlotArray(capacity)
        self._origin = 0
        self._length = 0
        # Bumped on every structural mutation so live iterators can notice.
        self._stamp = 0
        # Set while a Drain holds the deque.
        self._borrowed = False
        self._check = check_invariants
        logger.debug(
            f"{type(self).__name__} created with capacity {capacity} "
            f"(invariant checks {'on' if check_invariants else 'off'})."
        )
        self.extend_back(items)

    # --- Index engine ---

    def _phys(self, offset: int) -> int:
        return wrap_add(self._origin, offset, self._capacity)

    def _read(self, offset: int) -> T:
        return self._slots.read(self._phys(offset))

    def _offset(self, index: int) -> int | None:
        """Maps a possibly negative logical index to an offset, or None."""
        if not isinstance(index, int):
            err_msg = f"deque indices must be integers, not {type(index).__name__}"
            raise TypeError(err_msg)
        if index < 0:
            index += self._length
        if 0 <= index < self._length:
            return index
        return None

    def _ensure_unborrowed(self) -> None:
        if self._borrowed:
            err_msg = "Cannot mutate the deque while a drain is open."
            raise BorrowError(err_msg)

    def _mutated(self) -> None:
        self._stamp += 1
        if self._check and not self._borrowed:
            self.check_invariants()

    def _spawn(self) -> Self:
        return type(self)(self._capacity, check_invariants=self._check)

    @property
    def capacity(self) -> int:
        """The fixed number of elements the deque can hold."""
        return self._capacity

    @property
    def is_full(self) -> bool:
        """Returns True if every slot is occupied."""
        return self._length == self._capacity

    @property
    def is_empty(self) -> bool:
        """Returns True if no slot is occupied."""
        return self._length == 0

    @property
    def is_contiguous(self) -> bool:
        """Returns True if the window does not wrap past the last slot."""
        return self._origin + self._length <= self._capacity

    def __len__(self) -> int:
        """Returns the current number of elements in the deque."""
        return self._length

    def check_invariants(self) -> None:
        """Verifies that the occupied slots are exactly the logical window.

        Raises:
            BorrowError: If a drain is open; the drained range is in flux.
            SlotStateError: If the bookkeeping disagrees with the slots.
        """
        if self._borrowed:
            err_msg = "Cannot verify the deque while a drain is open."
            raise BorrowError(err_msg)
        if not 0 <= self._length <= self._capacity:
            err_msg = f"Length {self._length} is outside [0, {self._capacity}]."
            logger.error(err_msg)
            raise SlotStateError(err_msg)
        expected = {self._phys(i) for i in range(self._length)}
        actual = set(self._slots.occupied())
        if expected != actual:
            err_msg = (
                f"Occupied slots {sorted(actual)} do not match the window "
                f"origin={self._origin}, length={self._length}."
            )
            logger.error(err_msg)
            raise SlotStateError(err_msg)

    # --- Unchecked primitives; callers guarantee capacity and emptiness ---

    def _push_back_unchecked(self, element: T) -> None:
        self._slots.write(self._phys(self._length), element)
        self._length += 1

    def _push_front_unchecked(self, element: T) -> None:
        new_origin = wrap_sub(self._origin, 1, self._capacity)
        self._slots.write(new_origin, element)
        self._origin = new_origin
        self._length += 1

    def _pop_front_unchecked(self) -> T:
        value = self._slots.take(self._origin)
        self._origin = wrap_add(self._origin, 1, self._capacity)
        self._length -= 1
        return value

    def _pop_back_unchecked(self) -> T:
        value = self._slots.take(self._phys(self._length - 1))
        self._length -= 1
        return value

    def _insert_unchecked(self, offset: int, element: T) -> None:
        # Shift whichever side of the insertion point is shorter.
        if offset < self._length - offset:
            new_origin = wrap_sub(self._origin, 1, self._capacity)
            for i in range(offset):
                self._slots.move(wrap_add(new_origin, i, self._capacity), self._phys(i))
            self._origin = new_origin
        else:
            for i in range(self._length - 1, offset - 1, -1):
                self._slots.move(self._phys(i + 1), self._phys(i))
        self._slots.write(self._phys(offset), element)
        self._length += 1

    def _close_gap(self, start: int, stop: int, tail_len: int) -> None:
        """Rejoins the elements around a drained ``[start, stop)`` range.

        The shorter of the two surviving segments is moved across the gap.
        """
        gap = stop - start
        if start == 0 and tail_len == 0:
            self._origin = 0
        elif gap and start <= tail_len:
            for i in range(start - 1, -1, -1):
                self._slots.move(self._phys(i + gap), self._phys(i))
            self._origin = wrap_add(self._origin, gap, self._capacity)
        elif gap:
            for i in range(tail_len):
                self._slots.move(self._phys(start + i), self._phys(stop + i))
        self._length = start + tail_len
        self._borrowed = False
        self._mutated()

    # --- Overflow behavior, supplied by the concrete classes ---

    @abc.abstractmethod
    def _on_full_back(self, element: T) -> T | None:
        """Handles push_back on a full deque; returns what the caller gets back."""

    @abc.abstractmethod
    def _on_full_front(self, element: T) -> T | None:
        """Handles push_front on a full deque; returns what the caller gets back."""

    @abc.abstractmethod
    def _on_full_insert(self, offset: int, element: T) -> T | None:
        """Handles insert on a full deque; returns what the caller gets back."""

    @abc.abstractmethod
    def _admit(self, items: Iterable[T]) -> Iterator[T]:
        """Returns the part of ``items`` that bulk insertion will consume."""

    @abc.abstractmethod
    def append(self, element: T) -> None:
        """Pushes to the back, raising instead of returning on rejection."""

    @abc.abstractmethod
    def appendleft(self, element: T) -> None:
        """Pushes to the front, raising instead of returning on rejection."""

    # --- Insertion ---

    def push_back(self, element: T) -> T | None:
        """Adds an element as the new back of the deque.

        Args:
            element: The element to add.

        Returns:
            None if the element was stored without displacing anything.
            Otherwise the element handed back by the overflow behavior: the
            rejected element for a saturating deque, the evicted front for a
            wrapping one.
        """
        self._ensure_unborrowed()
        if self._length == self._capacity:
            return self._on_full_back(element)
        self._push_back_unchecked(element)
        self._mutated()
        return None

    def push_front(self, element: T) -> T | None:
        """Adds an element as the new front of the deque.

        Returns:
            None on plain success, otherwise the rejected element (saturating)
            or the evicted back element (wrapping).
        """
        self._ensure_unborrowed()
        if self._length == self._capacity:
            return self._on_full_front(element)
        self._push_front_unchecked(element)
        self._mutated()
        return None

    def insert(self, index: int, element: T) -> T | None:
        """Inserts an element so that it ends up at position ``index``.

        Whichever end is closer to the insertion point is shifted to make room.

        Args:
            index: Logical position, ``0 <= index <= len(self)``.
            element: The element to insert.

        Returns:
            None on plain success, otherwise what the overflow behavior hands
            back (see `push_back`).

        Raises:
            IndexError: If ``index`` is out of range.
        """
        self._ensure_unborrowed()
        if not isinstance(index, int):
            err_msg = f"deque indices must be integers, not {type(index).__name__}"
            raise TypeError(err_msg)
        if not 0 <= index <= self._length:
            err_msg = "deque insertion index out of range"
            raise IndexError(err_msg)
        if self._length == self._capacity:
            return self._on_full_insert(index, element)
        self._insert_unchecked(index, element)
        self._mutated()
        return None

    def extend_back(self, items: Iterable[T]) -> None:
        """Pushes the elements of ``items`` to the back, one by one.

        A saturating deque pulls no more elements from ``items`` than it has
        free slots; the rest of the source is left unconsumed. A wrapping
        deque consumes the whole source, evicting from the front as needed.
        """
        self._ensure_unborrowed()
        if items is self:
            items = list(self)
        for element in self._admit(items):
            self.push_back(element)

    extend = extend_back

    def extend_front(self, items: Iterable[T]) -> None:
        """Pushes the elements of ``items`` to the front, one by one.

        The last element pushed becomes the front, so the source ends up
        reversed at the head of the deque.
        """
        self._ensure_unborrowed()
        if items is self:
            items = list(self)
        for element in self._admit(items):
            self.push_front(element)

    def append_deque(self, other: "ArrayDeque[T]") -> None:
        """Moves every element of ``other`` onto the back, preserving order.

        ``other`` is left empty. Elements that do not fit a saturating deque
        are dropped along with ``other``'s drain.
        """
        self._ensure_unborrowed()
        if other is self:
            err_msg = "Cannot append a deque to itself."
            raise ValueError(err_msg)
        with other.drain() as drained:
            self.extend_back(drained)

    def prepend_deque(self, other: "ArrayDeque[T]") -> None:
        """Moves every element of ``other`` onto the front, preserving order."""
        self._ensure_unborrowed()
        if other is self:
            err_msg = "Cannot prepend a deque to itself."
            raise ValueError(err_msg)
        with other.drain() as drained:
            self.extend_front(reversed(drained))

    # --- Removal ---

    def pop_front(self) -> T | None:
        """Removes and returns the front element, or None if the deque is empty."""
        self._ensure_unborrowed()
        if self._length == 0:
            return None
        value = self._pop_front_unchecked()
        self._mutated()
        return value

    def pop_back(self) -> T | None:
        """Removes and returns the back element, or None if the deque is empty."""
        self._ensure_unborrowed()
        if self._length == 0:
            return None
        value = self._pop_back_unchecked()
        self._mutated()
        return value

    def popleft(self) -> T:
        """Removes and returns the front element.

        Raises:
            EmptyDequeError: If the deque is empty.
        """
        self._ensure_unborrowed()
        if self._length == 0:
            err_msg = "pop from an empty deque"
            raise EmptyDequeError(err_msg)
        value = self._pop_front_unchecked()
        self._mutated()
        return value

    def pop(self) -> T:
        """Removes and returns the back element.

        Raises:
            EmptyDequeError: If the deque is empty.
        """
        self._ensure_unborrowed()
        if self._length == 0:
            err_msg = "pop from an empty deque"
            raise EmptyDequeError(err_msg)
        value = self._pop_back_unchecked()
        self._mutated()
        return value

    def remove_at(self, index: int) -> T | None:
        """Removes and returns the element at ``index``, or None if out of range.

        Whichever end is closer to the removal point is shifted to close the
        hole.
        """
        self._ensure_unborrowed()
        offset = self._offset(index)
        if offset is None:
            return None
        value = self._slots.take(self._phys(offset))
        if offset < self._length - 1 - offset:
            for i in range(offset - 1, -1, -1):
                self._slots.move(self._phys(i + 1), self._phys(i))
            self._origin = wrap_add(self._origin, 1, self._capacity)
        else:
            for i in range(offset + 1, self._length):
                self._slots.move(self._phys(i - 1), self._phys(i))
        self._length -= 1
        self._mutated()
        return value

    def swap_remove_back(self, index: int) -> T | None:
        """Removes the element at ``index`` in O(1), filling it with the back element.

        Order is not preserved. Returns None if ``index`` is out of range.
        """
        self._ensure_unborrowed()
        offset = self._offset(index)
        if offset is None:
            return None
        last = self._length - 1
        if offset != last:
            self.swap(offset, last)
        return self.pop_back()

    def swap_remove_front(self, index: int) -> T | None:
        """Removes the element at ``index`` in O(1), filling it with the front one."""
        self._ensure_unborrowed()
        offset = self._offset(index)
        if offset is None:
            return None
        if offset != 0:
            self.swap(offset, 0)
        return self.pop_front()

    def retain(self, predicate: Callable[[T], bool]) -> None:
        """Keeps only the elements for which ``predicate`` returns True.

        The predicate is evaluated for every element before anything moves,
        so an exception from it leaves the deque untouched.
        """
        self._ensure_unborrowed()
        keep = [bool(predicate(value)) for value in self]
        kept = 0
        for i, wanted in enumerate(keep):
            if not wanted:
                self._slots.release(self._phys(i))
                continue
            if kept != i:
                self._slots.move(self._phys(kept), self._phys(i))
            kept += 1
        if kept != self._length:
            self._length = kept
            self._mutated()

    def split_off(self, at: int) -> Self:
        """Splits the deque in two at ``at``.

        ``self`` keeps the elements ``[0, at)`` and the returned deque, of the
        same class and capacity, receives ``[at, len)``.

        Raises:
            IndexError: If ``at`` is greater than the length.
        """
        self._ensure_unborrowed()
        if not 0 <= at <= self._length:
            err_msg = "split index out of range"
            raise IndexError(err_msg)
        other = self._spawn()
        for i in range(at, self._length):
            other._push_back_unchecked(self._slots.take(self._phys(i)))
        if at != self._length:
            self._length = at
            self._mutated()
            other._mutated()
        return other

    def clear(self) -> None:
        """Drops every element. Does nothing on an empty deque."""
        self._ensure_unborrowed()
        if self._length == 0:
            return
        for i in range(self._length):
            self._slots.release(self._phys(i))
        self._origin = 0
        self._length = 0
        self._mutated()

    # --- Peeking ---

    def front(self) -> T | None:
        """Returns the front element without removing it, or None if empty."""
        if self._length == 0:
            return None
        return self._slots.read(self._origin)

    def back(self) -> T | None:
        """Returns the back element without removing it, or None if empty."""
        if self._length == 0:
            return None
        return self._read(self._length - 1)

    def get(self, index: int) -> T | None:
        """Returns the element at ``index``, or None if out of range.

        Negative indices count from the back.
        """
        offset = self._offset(index)
        if offset is None:
            return None
        return self._read(offset)

    def __getitem__(self, index: int) -> T:
        """Returns the element at the specified index.

        Supports standard list-like indexing, including negative indices.

        Raises:
            IndexError: If the index is out of range.
        """
        offset = self._offset(index)
        if offset is None:
            err_msg = "deque index out of range"
            raise IndexError(err_msg)
        return self._read(offset)

    def __setitem__(self, index: int, value: T) -> None:
        """Replaces the element at ``index`` in place."""
        self._ensure_unborrowed()
        offset = self._offset(index)
        if offset is None:
            err_msg = "deque assignment index out of range"
            raise IndexError(err_msg)
        self._slots.replace(self._phys(offset), value)

    def swap(self, i: int, j: int) -> None:
        """Exchanges the elements at positions ``i`` and ``j``.

        Raises:
            IndexError: If either index is out of range.
        """
        self._ensure_unborrowed()
        first, second = self._offset(i), self._offset(j)
        if first is None or second is None:
            err_msg = "deque index out of range"
            raise IndexError(err_msg)
        if first == second:
            return
        a, b = self._phys(first), self._phys(second)
        held = self._slots.replace(a, self._slots.read(b))
        self._slots.replace(b, held)

    def __contains__(self, value: object) -> bool:
        return any(item is value or item == value for item in self)

    def as_slices(self) -> tuple[tuple[T, ...], tuple[T, ...]]:
        """Returns the window as two runs of the underlying slots.

        The first run starts at the front and stops at the last physical slot
        or the back, whichever comes first. The second run is the part that
        wrapped around to the start of the slot array, possibly empty.
        """
        if self._length == 0:
            return (), ()
        head_len = min(self._length, self._capacity - self._origin)
        head = tuple(self._slots.read(self._origin + i) for i in range(head_len))
        tail = tuple(self._slots.read(i) for i in range(self._length - head_len))
        return head, tail

    # --- Iteration ---

    def __iter__(self) -> Iter[T]:
        """Returns a double-ended iterator from front to back."""
        return Iter(self)

    def __reversed__(self) -> Iter[T]:
        """Returns a double-ended iterator from back to front."""
        return Iter(self, reverse=True)

    def drain(self, start: int = 0, stop: int | None = None) -> Drain[T]:
        """Removes the elements in ``[start, stop)`` lazily, yielding them.

        The deque stays borrowed until the drain is exhausted, closed, left as
        a context manager or garbage collected. At that point any un-yielded
        element in the range is dropped, and the remaining elements are joined
        back together. Mutating the deque while the drain is open raises
        `BorrowError`. Reads while it is open see only the elements before
        ``start``.

        Args:
            start: First logical position to remove.
            stop: One past the last position to remove; defaults to the length.

        Raises:
            IndexError: If the range is not within ``[0, len(self)]``.
        """
        self._ensure_unborrowed()
        if stop is None:
            stop = self._length
        if not 0 <= start <= stop <= self._length:
            err_msg = (
                f"drain range [{start}, {stop}) is out of bounds "
                f"for length {self._length}"
            )
            raise IndexError(err_msg)
        return Drain(self, start, stop)

    # --- Whole-deque conversions ---

    def into_array(self) -> tuple[T, ...]:
        """Moves every element out into a tuple of exactly ``capacity`` items.

        Raises:
            NotFullError: If the deque is not full. The deque is left as is.
        """
        self._ensure_unborrowed()
        if self._length != self._capacity:
            err_msg = (
                f"Deque holds {self._length} of {self._capacity} elements; "
                "only a full deque can become an array."
            )
            raise NotFullError(err_msg)
        with self.drain() as drained:
            return tuple(drained)

    def into_wrapping(self) -> "WrappingDeque[T]":
        """Moves every element into a new wrapping deque of the same capacity."""
        target: WrappingDeque[T] = WrappingDeque(
            self._capacity, check_invariants=self._check
        )
        target.append_deque(self)
        return target

    def into_saturating(self) -> "SaturatingDeque[T]":
        """Moves every element into a new saturating deque of the same capacity."""
        target: SaturatingDeque[T] = SaturatingDeque(
            self._capacity, check_invariants=self._check
        )
        target.append_deque(self)
        return target

    def copy(self) -> Self:
        """Returns a shallow copy with the same class and capacity."""
        return type(self)(self._capacity, self, check_invariants=self._check)

    __copy__ = copy

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ArrayDeque) and (
            not isinstance(other, Sequence) or isinstance(other, str | bytes)
        ):
            return NotImplemented
        if len(self) != len(other):
            return False
        return all(a == b for a, b in zip(self, other, strict=True))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """Returns a developer-friendly representation of the deque."""
        return (
            f"{type(self).__name__}(capacity={self.capacity}, size={len(self)}, "
            f"data={list(self)})"
        )


class SaturatingDeque(ArrayDeque[T]):
    """A ring deque that rejects new elements once it is full.

    A push on a full deque changes nothing and hands the element back.
    """

    behavior: ClassVar[Behavior] = Behavior.SATURATING

    def _on_full_back(self, element: T) -> T | None:
        logger.trace(f"Deque full ({self._capacity}); rejected push to the back.")
        return element

    def _on_full_front(self, element: T) -> T | None:
        logger.trace(f"Deque full ({self._capacity}); rejected push to the front.")
        return element

    def _on_full_insert(self, offset: int, element: T) -> T | None:
        logger.trace(f"Deque full ({self._capacity}); rejected insert at {offset}.")
        return element

    def _admit(self, items: Iterable[T]) -> Iterator[T]:
        return itertools.islice(items, self._capacity - self._length)

    def append(self, element: T) -> None:
        """Adds an element to the back of the deque.

        Raises:
            CapacityError: If the deque is full. The element is available as
                ``err.element``.
        """
        self._ensure_unborrowed()
        if self._length == self._capacity:
            raise CapacityError(element)
        self.push_back(element)

    def appendleft(self, element: T) -> None:
        """Adds an element to the front of the deque.

        Raises:
            CapacityError: If the deque is full.
        """
        self._ensure_unborrowed()
        if self._length == self._capacity:
            raise CapacityError(element)
        self.push_front(element)


class WrappingDeque(ArrayDeque[T]):
    """A ring deque that evicts from the opposite end once it is full.

    Pushing to the back of a full deque evicts the front and vice versa; the
    evicted element is returned to the caller. A zero-capacity deque has
    nothing to evict and hands the pushed element straight back.
    """

    behavior: ClassVar[Behavior] = Behavior.WRAPPING

    def _on_full_back(self, element: T) -> T | None:
        if self._capacity == 0:
            return element
        evicted = self._pop_front_unchecked()
        self._push_back_unchecked(element)
        self._mutated()
        logger.trace("Deque full; evicted the front to push to the back.")
        return evicted

    def _on_full_front(self, element: T) -> T | None:
        if self._capacity == 0:
            return element
        evicted = self._pop_back_unchecked()
        self._push_front_unchecked(element)
        self._mutated()
        logger.trace("Deque full; evicted the back to push to the front.")
        return evicted

    def _on_full_insert(self, offset: int, element: T) -> T | None:
        if self._capacity == 0:
            return element
        evicted = self._pop_front_unchecked()
        # An offset equal to the old length now lies one past the new end.
        self._insert_unchecked(min(offset, self._length), element)
        self._mutated()
        logger.trace(f"Deque full; evicted the front to insert at {offset}.")
        return evicted

    def _admit(self, items: Iterable[T]) -> Iterator[T]:
        return iter(items)

    def append(self, element: T) -> None:
        """Adds an element to the back, silently evicting the front if full."""
        self.push_back(element)

    def appendleft(self, element: T) -> None:
        """Adds an element to the front, silently evicting the back if full."""
        self.push_front(element)


_DEQUE_CLASSES: Final[dict[Behavior, type[ArrayDeque[Any]]]] = {
    Behavior.SATURATING: SaturatingDeque,
    Behavior.WRAPPING: WrappingDeque,
}


def make_deque(
    capacity: int | None = None,
    behavior: Behavior | str | None = None,
    items: Iterable[Any] = (),
    *,
    settings: Settings | None = None,
) -> ArrayDeque[Any]:
    """Builds a deque whose policy is chosen by argument or configuration.

    Args:
        capacity: Number of slots. Defaults to ``[deque] default_capacity``.
        behavior: A `Behavior` or its name. Defaults to
            ``[deque] default_behavior``.
        items: Initial elements, pushed to the back.
        settings: Settings to read defaults from. Defaults to the global
            instance.

    Raises:
        ValueError: If the behavior name or the capacity is invalid.
    """
    settings = settings or Settings.get_instance()
    if capacity is None:
        capacity = settings.deque.default_capacity
    if behavior is None:
        behavior = settings.deque.default_behavior
    policy = Behavior.parse(behavior)
    deque_cls = _DEQUE_CLASSES[policy]
    return deque_cls(capacity, items, check_invariants=settings.deque.check_invariants)
