"""Wrap-around index arithmetic for the ring deque.

Physical slot indices always live in ``[0, capacity)``. Logical positions are
offsets from the deque's origin, and these helpers map one onto the other.
"""


def _check_capacity(capacity: int) -> None:
    if capacity <= 0:
        err_msg = f"Cannot wrap an index onto a buffer of capacity {capacity}."
        raise ValueError(err_msg)


def wrap_add(index: int, addend: int, capacity: int) -> int:
    """Returns the physical index ``addend`` slots after ``index``.

    Args:
        index: A physical index in ``[0, capacity)``.
        addend: How many slots to move forward, at most ``capacity``.
        capacity: The number of slots in the buffer.

    Raises:
        ValueError: If the capacity is not positive.
    """
    _check_capacity(capacity)
    return (index + addend) % capacity


def wrap_sub(index: int, subtrahend: int, capacity: int) -> int:
    """Returns the physical index ``subtrahend`` slots before ``index``.

    The capacity is added before the modulo, so the intermediate value stays
    non-negative for any ``subtrahend`` up to ``capacity``.

    Raises:
        ValueError: If the capacity is not positive.
    """
    _check_capacity(capacity)
    return (index + capacity - subtrahend) % capacity
