# src/ringdeque/__init__.py
"""ringdeque: fixed-capacity, double-ended ring buffers.

A deque here owns a block of slots allocated once at construction. Elements
are pushed and popped at both ends in O(1) by moving a logical window around
the block, and the block never grows. What happens on overflow is a property
of the deque's class:

- `SaturatingDeque` rejects the new element and hands it back.
- `WrappingDeque` evicts the element at the opposite end.

Key modules:
- `deque`: the deque classes and the `make_deque` factory.
- `iterators`: the double-ended `Iter` and the draining `Drain`.
- `storage`: the checked slot array the deques are built on.
- `utils.indexing`: the wrap-around index arithmetic.
- `config` / `logging_config`: TOML settings and Loguru setup.
"""

import importlib.metadata

from loguru import logger

from ringdeque.behavior import Behavior
from ringdeque.deque import ArrayDeque, SaturatingDeque, WrappingDeque, make_deque
from ringdeque.errors import (
    BorrowError,
    CapacityError,
    EmptyDequeError,
    NotFullError,
    RingDequeError,
    SlotStateError,
)
from ringdeque.iterators import Drain, Iter

try:
    __version__: str = importlib.metadata.version("ringdeque")
except importlib.metadata.PackageNotFoundError:
    # Not installed, e.g. running from a source checkout.
    __version__ = "0.0.0-dev"

# Libraries stay silent until the application calls `setup_logging`.
logger.disable("ringdeque")

__all__ = [
    "ArrayDeque",
    "Behavior",
    "BorrowError",
    "CapacityError",
    "Drain",
    "EmptyDequeError",
    "Iter",
    "NotFullError",
    "RingDequeError",
    "SaturatingDeque",
    "SlotStateError",
    "WrappingDeque",
    "make_deque",
]
