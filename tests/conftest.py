from collections import Counter
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

import pytest
from loguru import logger

from ringdeque import ArrayDeque, SaturatingDeque
from ringdeque.config import CONFIG_ENV_VAR, Settings


@pytest.fixture(autouse=True)
def isolated_settings(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    """Keeps the user's real config file out of every test."""
    missing = tmp_path_factory.mktemp("config") / "config.toml"
    monkeypatch.setenv(CONFIG_ENV_VAR, str(missing))
    Settings.reset_instance()
    yield
    Settings.reset_instance()


@dataclass
class DropLedger:
    """Records every tracked element that gets garbage collected."""

    created: int = 0
    dropped: list[Any] = field(default_factory=list)

    def make(self, value: Any) -> "Tracked":
        return Tracked(value, self)

    def counts(self) -> Counter[Any]:
        return Counter(self.dropped)


class Tracked:
    """An element that reports its own destruction to a ledger."""

    def __init__(self, value: Any, ledger: DropLedger) -> None:
        self.value = value
        self._ledger = ledger
        ledger.created += 1

    def __del__(self) -> None:
        self._ledger.dropped.append(self.value)

    def __repr__(self) -> str:
        return f"Tracked({self.value!r})"


@pytest.fixture()
def rotated() -> Callable[..., ArrayDeque[Any]]:
    """Builds deques whose window starts at a chosen physical slot.

    Moving the origin before filling makes the window wrap past the end of
    the slot array, which is where index bugs hide.
    """

    def build(
        items: Iterable[Any],
        *,
        capacity: int,
        origin: int,
        cls: type[ArrayDeque[Any]] = SaturatingDeque,
    ) -> ArrayDeque[Any]:
        buf = cls(capacity, check_invariants=True)
        for _ in range(origin):
            buf.push_back(None)
            buf.pop_front()
        buf.extend_back(items)
        return buf

    return build


@pytest.fixture()
def drop_ledger() -> DropLedger:
    """Provides a fresh ledger for drop-counting elements."""
    return DropLedger()


@pytest.fixture()
def log_messages() -> Iterator[list[str]]:
    """Captures the package's Loguru output, down to TRACE level."""
    messages: list[str] = []
    logger.enable("ringdeque")
    handler_id = logger.add(
        lambda message: messages.append(message.record["message"]),
        level="TRACE",
    )
    yield messages
    logger.remove(handler_id)
    logger.disable("ringdeque")
