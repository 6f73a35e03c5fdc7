# Overview: In-process change-notification channel keyed by item id.

"""
Item change notifications (authoritative)

- Observers subscribe to one item id; the brand they are viewing from is
  informational only and never filters delivery.
- publish() builds the payload and assigns the next per-item sequence number
  while holding that item's lock, then delivers under the same lock. A later
  sequence number therefore never carries older state than an earlier one.
- Delivery is at-least-once: a failing observer is logged and skipped, the
  remaining observers still receive the change.
- Different items never share a lock, so ordering across items is not defined.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ItemChange:
    item_id: int
    sequence: int
    payload: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"item_id": self.item_id, "sequence": self.sequence, **self.payload}


class Subscription:
    def __init__(self, notifier: "ChangeNotifier", item_id: int, token: int, brand_id: int | None):
        self._notifier = notifier
        self.item_id = item_id
        self.token = token
        self.brand_id = brand_id

    def unsubscribe(self) -> None:
        self._notifier._remove(self.item_id, self.token)


class ChangeNotifier:
    def __init__(self):
        self._registry_lock = threading.Lock()
        self._observers: dict[int, dict[int, Callable[[ItemChange], Any]]] = {}
        self._item_locks: dict[int, threading.Lock] = {}
        self._sequences: dict[int, int] = {}
        self._tokens = itertools.count(1)

    def subscribe(self, item_id: int, callback: Callable[[ItemChange], Any], brand_id: int | None = None) -> Subscription:
        token = next(self._tokens)
        with self._registry_lock:
            self._observers.setdefault(item_id, {})[token] = callback
        return Subscription(self, item_id, token, brand_id)

    def _remove(self, item_id: int, token: int) -> None:
        with self._registry_lock:
            observers = self._observers.get(item_id)
            if observers is None:
                return
            observers.pop(token, None)
            if not observers:
                del self._observers[item_id]

    def _lock_for(self, item_id: int) -> threading.Lock:
        with self._registry_lock:
            lock = self._item_locks.get(item_id)
            if lock is None:
                lock = self._item_locks[item_id] = threading.Lock()
            return lock

    def observer_count(self, item_id: int) -> int:
        with self._registry_lock:
            return len(self._observers.get(item_id, {}))

    def publish(self, item_id: int, build_payload: Callable[[], dict]) -> ItemChange | None:
        """
        Build and deliver one change for item_id.

        Returns None without calling build_payload when nobody is subscribed.
        Items nobody has subscribed to never get a lock.
        """
        with self._registry_lock:
            if not self._observers.get(item_id):
                return None

        with self._lock_for(item_id):
            with self._registry_lock:
                observers = list(self._observers.get(item_id, {}).values())
            if not observers:
                return None

            payload = build_payload()
            sequence = self._sequences.get(item_id, 0) + 1
            self._sequences[item_id] = sequence
            change = ItemChange(item_id=item_id, sequence=sequence, payload=payload)

            for callback in observers:
                try:
                    callback(change)
                except Exception:
                    logger.exception("Item change observer failed for item %s", item_id)
            return change

    def clear(self) -> None:
        with self._registry_lock:
            self._observers.clear()
            self._item_locks.clear()
            self._sequences.clear()
