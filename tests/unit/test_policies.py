from collections.abc import Callable
from typing import Any

import pytest

from ringdeque import (
    ArrayDeque,
    Behavior,
    CapacityError,
    SaturatingDeque,
    WrappingDeque,
    make_deque,
)
from ringdeque.config import DequeSettings, Settings

Rotated = Callable[..., ArrayDeque[Any]]


def test_wrapping_push_back_evicts_the_front() -> None:
    """Tests a full wrapping deque makes room by dropping its oldest element."""
    buf = WrappingDeque[int](2)
    assert buf.push_back(1) is None
    assert buf.push_back(2) is None
    assert buf.push_back(3) == 1
    assert list(buf) == [2, 3]
    assert buf.front() == 2


def test_wrapping_push_front_evicts_the_back() -> None:
    """Tests the mirror image of back eviction."""
    buf = WrappingDeque(3, [1, 2, 3])
    assert buf.push_front(0) == 3
    assert list(buf) == [0, 1, 2]
    assert buf.is_full


def test_overflow_behavior_on_append() -> None:
    """Tests that append keeps discarding the oldest element when full."""
    buf = WrappingDeque[int](3)
    buf.append(1)
    buf.append(2)
    buf.append(3)
    assert list(buf) == [1, 2, 3]

    # This append should push '1' out
    buf.append(4)
    assert len(buf) == 3
    assert list(buf) == [2, 3, 4]

    # This append should push '2' out
    buf.append(5)
    assert list(buf) == [3, 4, 5]

    buf.appendleft(2)
    assert list(buf) == [2, 3, 4]


def test_saturating_push_back_rejects() -> None:
    """Tests a full saturating deque hands the new element back unchanged."""
    buf = SaturatingDeque[int](2)
    buf.push_back(1)
    buf.push_back(2)
    assert buf.push_back(3) == 3
    assert list(buf) == [1, 2]
    assert buf.push_front(0) == 0
    assert list(buf) == [1, 2]


def test_saturating_append_raises() -> None:
    """Tests the raising variants carry the rejected element."""
    buf = SaturatingDeque(1, ["kept"])
    with pytest.raises(CapacityError, match="insufficient capacity") as excinfo:
        buf.append("rejected")
    assert excinfo.value.element == "rejected"

    with pytest.raises(CapacityError):
        buf.appendleft("rejected")
    assert list(buf) == ["kept"]


def test_rejection_is_logged(log_messages: list[str]) -> None:
    """Tests rejected pushes leave a TRACE record."""
    buf = SaturatingDeque(1, [1])
    buf.push_back(2)
    assert "Deque full (1); rejected push to the back." in log_messages


@pytest.mark.parametrize("cls", [SaturatingDeque, WrappingDeque])
def test_zero_capacity(cls: type[ArrayDeque[Any]]) -> None:
    """Tests a zero-capacity deque hands every pushed element straight back."""
    buf = cls(0)
    assert buf.is_empty
    assert buf.is_full
    assert buf.push_back("a") == "a"
    assert buf.push_front("b") == "b"
    assert buf.insert(0, "c") == "c"
    assert buf.pop_front() is None
    assert buf.pop_back() is None
    assert list(buf) == []


def test_wrapping_zero_capacity_append_is_a_no_op() -> None:
    """Tests append on a zero-capacity wrapping deque discards the element."""
    buf = WrappingDeque[int](0)
    buf.append(1)
    buf.appendleft(2)
    assert len(buf) == 0


def test_saturating_insert_on_full_rejects() -> None:
    """Tests insertion follows the saturating behavior."""
    buf = SaturatingDeque(3, [1, 2, 3])
    assert buf.insert(1, 9) == 9
    assert list(buf) == [1, 2, 3]


@pytest.mark.parametrize(
    ("index", "expected"),
    [
        (0, ["x", 2, 3]),
        (1, [2, "x", 3]),
        (2, [2, 3, "x"]),
        (3, [2, 3, "x"]),
    ],
)
def test_wrapping_insert_on_full_evicts_the_front(
    rotated: Rotated, index: int, expected: list[Any]
) -> None:
    """Tests the front is evicted before the element goes in at its index."""
    buf = rotated([1, 2, 3], capacity=3, origin=2, cls=WrappingDeque)
    assert buf.insert(index, "x") == 1
    assert list(buf) == expected


def test_saturating_extend_stops_at_capacity() -> None:
    """Tests extend fills the free slots and leaves the source unconsumed."""
    buf = SaturatingDeque(5, [1])
    source = iter(range(2, 10))
    buf.extend_back(source)
    assert list(buf) == [1, 2, 3, 4, 5]
    # Only as many elements as there were free slots were pulled.
    assert next(source) == 6


def test_overflow_behavior_on_extend() -> None:
    """Tests wrapping extend consumes everything and keeps the newest."""
    buf = WrappingDeque[int](3)
    buf.extend([1, 2, 3, 4, 5])
    assert len(buf) == 3
    assert list(buf) == [3, 4, 5]
    assert buf.is_full

    buf.clear()
    buf.append(1)
    buf.extend([2, 3, 4, 5])
    assert list(buf) == [3, 4, 5]


def test_extend_front() -> None:
    """Tests the source ends up reversed at the head."""
    buf = SaturatingDeque(5, [9])
    buf.extend_front([1, 2, 3])
    assert list(buf) == [3, 2, 1, 9]

    wrapping = WrappingDeque(3, [9])
    wrapping.extend_front([1, 2, 3])
    assert list(wrapping) == [3, 2, 1]


@pytest.mark.parametrize(
    ("cls", "capacity", "back", "front"),
    [
        (SaturatingDeque, 4, [1, 2, 1, 2], [2, 1, 1, 2]),
        (SaturatingDeque, 3, [1, 2, 1], [1, 1, 2]),
        (WrappingDeque, 3, [2, 1, 2], [2, 1, 1]),
    ],
)
def test_extend_with_itself(
    cls: type[ArrayDeque[int]], capacity: int, back: list[int], front: list[int]
) -> None:
    """Tests a deque can be extended with its own elements."""
    buf = cls(capacity, [1, 2], check_invariants=True)
    buf.extend_back(buf)
    assert list(buf) == back

    buf = cls(capacity, [1, 2], check_invariants=True)
    buf.extend_front(buf)
    assert list(buf) == front


def test_append_deque_moves_everything() -> None:
    """Tests appending another deque empties it and keeps its order."""
    buf = SaturatingDeque(6, [1, 2])
    other = WrappingDeque(3, [3, 4, 5])
    buf.append_deque(other)
    assert list(buf) == [1, 2, 3, 4, 5]
    assert other.is_empty


def test_append_deque_overflow() -> None:
    """Tests what each behavior does with elements that do not fit."""
    saturating = SaturatingDeque(3, [1, 2])
    saturating.append_deque(SaturatingDeque(3, [3, 4, 5]))
    assert list(saturating) == [1, 2, 3]

    wrapping = WrappingDeque(3, [1, 2])
    wrapping.append_deque(SaturatingDeque(3, [3, 4, 5]))
    assert list(wrapping) == [3, 4, 5]


def test_prepend_deque() -> None:
    """Tests prepending keeps the other deque's order in front."""
    buf = SaturatingDeque(5, [4, 5])
    other = SaturatingDeque(3, [1, 2, 3])
    buf.prepend_deque(other)
    assert list(buf) == [1, 2, 3, 4, 5]
    assert other.is_empty

    wrapping = WrappingDeque(3, [4, 5])
    wrapping.prepend_deque(SaturatingDeque(3, [1, 2, 3]))
    assert list(wrapping) == [1, 2, 3]


def test_deque_cannot_absorb_itself() -> None:
    """Tests self-append is rejected before anything is drained."""
    buf = SaturatingDeque(4, [1, 2])
    with pytest.raises(ValueError, match="to itself"):
        buf.append_deque(buf)
    with pytest.raises(ValueError, match="to itself"):
        buf.prepend_deque(buf)
    assert list(buf) == [1, 2]


def test_policy_conversion(rotated: Rotated) -> None:
    """Tests moving elements between behaviors keeps order and capacity."""
    saturating = rotated([1, 2, 3], capacity=3, origin=1)
    wrapping = saturating.into_wrapping()
    assert isinstance(wrapping, WrappingDeque)
    assert wrapping.capacity == 3
    assert list(wrapping) == [1, 2, 3]
    assert saturating.is_empty

    assert wrapping.push_back(4) == 1
    back = wrapping.into_saturating()
    assert isinstance(back, SaturatingDeque)
    assert list(back) == [2, 3, 4]
    assert back.push_back(5) == 5


def test_behavior_class_attribute() -> None:
    """Tests each class reports its overflow behavior."""
    assert SaturatingDeque.behavior is Behavior.SATURATING
    assert WrappingDeque.behavior is Behavior.WRAPPING


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("saturating", Behavior.SATURATING),
        ("Wrapping", Behavior.WRAPPING),
        (" WRAPPING ", Behavior.WRAPPING),
        (Behavior.SATURATING, Behavior.SATURATING),
    ],
)
def test_behavior_parse(value: str, expected: Behavior) -> None:
    """Tests behavior names are matched case-insensitively."""
    assert Behavior.parse(value) is expected


def test_behavior_parse_rejects_unknown_names() -> None:
    """Tests the error lists the accepted names."""
    with pytest.raises(ValueError, match="Expected one of: saturating, wrapping"):
        Behavior.parse("dropping")


def test_make_deque_uses_settings() -> None:
    """Tests the factory falls back to the configured defaults."""
    settings = Settings(
        deque=DequeSettings(default_capacity=4, default_behavior="wrapping")
    )
    buf = make_deque(items=[1, 2, 3, 4, 5], settings=settings)
    assert isinstance(buf, WrappingDeque)
    assert buf.capacity == 4
    assert list(buf) == [2, 3, 4, 5]


def test_make_deque_arguments_override_settings() -> None:
    """Tests explicit arguments win over the configuration."""
    settings = Settings(
        deque=DequeSettings(default_capacity=4, default_behavior="wrapping")
    )
    buf = make_deque(2, "saturating", [1, 2, 3], settings=settings)
    assert isinstance(buf, SaturatingDeque)
    assert list(buf) == [1, 2]

    with pytest.raises(ValueError, match="Unknown overflow behavior"):
        make_deque(2, "dropping", settings=settings)


def test_make_deque_global_defaults() -> None:
    """Tests the global settings are used when none are passed."""
    buf = make_deque()
    assert isinstance(buf, SaturatingDeque)
    assert buf.capacity == DequeSettings().default_capacity
