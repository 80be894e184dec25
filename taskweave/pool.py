"""Pools of reusable items that are lent out as reference-counted loans."""

from __future__ import annotations

import enum
import threading
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class PoolPolicy(enum.Enum):
    """Controls whether pool items are rebuilt for every loan or kept alive."""

    #: Build a fresh item on every borrow and discard it when it is returned.
    RECONSTRUCT = "reconstruct"
    #: Build every item once; items keep their state between loans.
    PRESERVE = "preserve"


class _Item(Generic[T]):
    """Backing slot for a single pooled value."""

    __slots__ = ("value", "refcount")

    def __init__(self) -> None:
        self.value: Optional[T] = None
        self.refcount = 0


class _Storage(Generic[T]):
    """State shared between a pool and every loan taken from it."""

    def __init__(self, factory: Callable[[], T], policy: PoolPolicy) -> None:
        self.factory = factory
        self.policy = policy
        self.lock = threading.RLock()
        self.returned = threading.Condition(self.lock)
        self.items: list[_Item[T]] = []
        self.free: list[_Item[T]] = []

    def new_item(self) -> _Item[T]:
        item: _Item[T] = _Item()
        if self.policy is PoolPolicy.PRESERVE:
            item.value = self.factory()
        self.items.append(item)
        self.free.append(item)
        return item

    def lend(self, item: _Item[T]) -> "Loan[T]":
        """Hand out a popped free item as a new loan. Caller holds the lock."""
        if self.policy is PoolPolicy.RECONSTRUCT:
            item.value = self.factory()
        item.refcount += 1
        return Loan(item, self)

    def retain(self, item: _Item[T]) -> None:
        with self.lock:
            item.refcount += 1

    def release(self, item: _Item[T]) -> None:
        with self.lock:
            item.refcount -= 1
            if item.refcount > 0:
                return
            if self.policy is PoolPolicy.RECONSTRUCT:
                item.value = None
            self.free.append(item)
            self.returned.notify()


class Loan(Generic[T]):
    """A reference to a borrowed pool item.

    The item goes back to its pool once every loan sharing it has been reset.
    A loan can be used as a context manager, which yields the item and resets
    the loan on exit.
    """

    def __init__(
        self,
        item: Optional[_Item[T]] = None,
        storage: Optional[_Storage[T]] = None,
    ) -> None:
        self._item = item
        self._storage = storage

    def get(self) -> Optional[T]:
        """Return the borrowed value, or None if this loan is empty."""
        return self._item.value if self._item is not None else None

    def share(self) -> "Loan[T]":
        """Return another loan for the same item, keeping it borrowed."""
        if self._item is None or self._storage is None:
            return Loan()
        self._storage.retain(self._item)
        return Loan(self._item, self._storage)

    def reset(self) -> None:
        """Drop this reference; the last reference returns the item."""
        item, storage = self._item, self._storage
        self._item = None
        self._storage = None
        if item is not None and storage is not None:
            storage.release(item)

    def __bool__(self) -> bool:
        return self._item is not None

    def __enter__(self) -> Optional[T]:
        return self.get()

    def __exit__(self, *exc: Any) -> None:
        self.reset()

    def __del__(self) -> None:
        if getattr(self, "_item", None) is not None:
            self.reset()

    def __repr__(self) -> str:
        if self._item is None:
            return "Loan(<empty>)"
        return f"Loan({self._item.value!r})"


def _check_count(count: int) -> None:
    if count < 0:
        raise ValueError(f"count must not be negative, got {count}")


class BoundedPool(Generic[T]):
    """A pool holding at most ``size`` items; borrowing blocks when empty."""

    def __init__(
        self,
        factory: Callable[[], T],
        size: int,
        policy: PoolPolicy = PoolPolicy.RECONSTRUCT,
    ) -> None:
        if size < 1:
            raise ValueError(f"pool size must be at least 1, got {size}")
        self._storage: _Storage[T] = _Storage(factory, policy)
        for _ in range(size):
            self._storage.new_item()

    def borrow(self) -> Loan[T]:
        """Borrow one item, blocking until one is returned if none are free."""
        loans: list[Loan[T]] = []
        self.borrow_each(1, loans.append)
        return loans[0]

    def borrow_each(self, count: int, func: Callable[[Loan[T]], Any]) -> None:
        """Borrow ``count`` items one after another, calling ``func`` with each."""
        _check_count(count)
        storage = self._storage
        with storage.lock:
            for _ in range(count):
                storage.returned.wait_for(lambda: bool(storage.free))
                func(storage.lend(storage.free.pop()))

    def try_borrow(self) -> Optional[Loan[T]]:
        """Borrow one item without blocking; return None if the pool is empty."""
        storage = self._storage
        with storage.lock:
            if not storage.free:
                return None
            return storage.lend(storage.free.pop())


class UnboundedPool(Generic[T]):
    """A pool that allocates more items whenever it runs empty."""

    _MIN_GROWTH = 32

    def __init__(
        self,
        factory: Callable[[], T],
        policy: PoolPolicy = PoolPolicy.RECONSTRUCT,
    ) -> None:
        self._storage: _Storage[T] = _Storage(factory, policy)

    def borrow(self) -> Loan[T]:
        """Borrow one item, growing the pool if needed. Never blocks."""
        loans: list[Loan[T]] = []
        self.borrow_each(1, loans.append)
        return loans[0]

    def borrow_each(self, count: int, func: Callable[[Loan[T]], Any]) -> None:
        """Borrow ``count`` items, calling ``func`` with each. Never blocks."""
        _check_count(count)
        storage = self._storage
        with storage.lock:
            for _ in range(count):
                if not storage.free:
                    for _ in range(max(len(storage.items), self._MIN_GROWTH)):
                        storage.new_item()
                func(storage.lend(storage.free.pop()))