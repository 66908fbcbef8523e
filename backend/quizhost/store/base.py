"""Path-addressable pub/sub key-value store contract.

Paths are ``/``-separated strings whose first segment names a root
partition (``game-state``, ``teams`` ...). Writing ``None`` removes a key,
so an absent path and a null value read back identically.

Subscriptions deliver the full value at the subscribed path, first on
attach and then after every write that touches an overlapping path. Values
handed to callbacks are deep copies; callers may mutate them freely.
"""

import copy
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from quizhost.errors import StaleWrite

logger = logging.getLogger(__name__)

ValueCallback = Callable[[Any], None]
ErrorCallback = Callable[[Exception], None]


def split_path(path: str) -> List[str]:
    parts = [p for p in (path or '').split('/') if p]
    if not parts:
        raise ValueError('Store path must name at least one partition')
    return parts


def paths_overlap(a: str, b: str) -> bool:
    pa, pb = split_path(a), split_path(b)
    n = min(len(pa), len(pb))
    return pa[:n] == pb[:n]


def get_in(tree: Any, parts: List[str]) -> Any:
    node = tree
    for part in parts:
        if isinstance(node, dict):
            node = node.get(part)
        elif isinstance(node, list) and part.isdigit() and int(part) < len(node):
            node = node[int(part)]
        else:
            return None
    return node


def set_in(tree: Any, parts: List[str], value: Any) -> Any:
    """Return ``tree`` with ``value`` stored at ``parts``; ``None`` deletes."""
    if not parts:
        return _prune(value)
    if isinstance(tree, list):
        tree = {str(i): v for i, v in enumerate(tree)}
    node = dict(tree) if isinstance(tree, dict) else {}
    head, rest = parts[0], parts[1:]
    child = set_in(node.get(head), rest, value)
    if child is None:
        node.pop(head, None)
    else:
        node[head] = child
    return node or None


def _prune(value: Any) -> Any:
    if isinstance(value, dict):
        pruned = {k: _prune(v) for k, v in value.items()}
        pruned = {k: v for k, v in pruned.items() if v is not None}
        return pruned or None
    return value


class Subscription:
    """Cancellation handle returned by ``RemoteStore.subscribe``."""

    def __init__(self, store: 'RemoteStore', path: str, on_value: ValueCallback,
                 on_error: Optional[ErrorCallback] = None):
        self.store = store
        self.path = path
        self.on_value = on_value
        self.on_error = on_error
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self.store._detach(self)

    def deliver(self, value: Any) -> None:
        if not self.active:
            return
        try:
            self.on_value(value)
        except Exception:
            logger.exception(f"[listener-error] path={self.path}")

    def fail(self, exc: Exception) -> None:
        if not self.active:
            return
        if self.on_error is None:
            logger.warning(f"[listener-unhandled-error] path={self.path} error={exc}")
            return
        try:
            self.on_error(exc)
        except Exception:
            logger.exception(f"[listener-error] path={self.path}")


class RemoteStore(ABC):
    """Abstract store consumed by the game engine and the sync layer."""

    @abstractmethod
    def read(self, path: str) -> Any:
        """Return the value at ``path`` or ``None``."""

    @abstractmethod
    def write(self, path: str, value: Any) -> None:
        """Replace the value at ``path``."""

    @abstractmethod
    def update(self, values: Dict[str, Any], condition: Optional[Tuple[str, Any]] = None) -> None:
        """Apply every ``path -> value`` pair atomically.

        When ``condition`` is ``(path, expected)`` the update only applies if
        the stored value at ``path`` equals ``expected``; otherwise
        ``StaleWrite`` is raised and nothing is written.
        """

    @abstractmethod
    def subscribe(self, path: str, on_value: ValueCallback,
                  on_error: Optional[ErrorCallback] = None) -> Subscription:
        """Attach a value listener and return its cancellation handle."""

    def _detach(self, subscription: Subscription) -> None:  # pragma: no cover - overridden
        pass


class PartitionedStore(RemoteStore):
    """Shared read/update/subscribe logic over whole-partition persistence.

    Subclasses load and save entire root partitions; this class handles path
    navigation, the compare-and-set condition and ordered fan-out.
    """

    def __init__(self, authorizer: Optional[Callable[[List[str]], None]] = None) -> None:
        self.authorizer = authorizer
        self._write_lock = threading.RLock()
        self._notify_lock = threading.RLock()
        self._subscriptions: List[Subscription] = []
        self._subs_lock = threading.Lock()

    @abstractmethod
    def _load(self, partitions: Iterable[str]) -> Dict[str, Any]:
        """Return the current value of each named partition."""

    @abstractmethod
    def _save(self, changes: Dict[str, Any]) -> None:
        """Persist the new value of every changed partition in one unit."""

    def _authorize_write(self, paths: List[str]) -> None:
        if self.authorizer is not None:
            self.authorizer(paths)

    def read(self, path: str) -> Any:
        parts = split_path(path)
        tree = self._load([parts[0]]).get(parts[0])
        return copy.deepcopy(get_in(tree, parts[1:]))

    def write(self, path: str, value: Any) -> None:
        self.update({path: value})

    def update(self, values: Dict[str, Any], condition: Optional[Tuple[str, Any]] = None) -> None:
        if not values:
            return
        paths = list(values.keys())
        self._authorize_write(paths)
        touched = {split_path(p)[0] for p in paths}
        if condition is not None:
            touched.add(split_path(condition[0])[0])

        self._write_lock.acquire()
        try:
            current = self._load(sorted(touched))
            if condition is not None:
                cond_parts = split_path(condition[0])
                actual = get_in(current.get(cond_parts[0]), cond_parts[1:])
                if actual != condition[1]:
                    raise StaleWrite(
                        f'Conditional write on {condition[0]} rejected',
                        expected=condition[1], actual=actual,
                    )
            changed = {}
            for path in paths:
                parts = split_path(path)
                base = changed.get(parts[0], current.get(parts[0]))
                changed[parts[0]] = set_in(base, parts[1:], copy.deepcopy(values[path]))
            self._save(changed)
            self._notify_lock.acquire()
        finally:
            self._write_lock.release()
        try:
            self._fan_out(paths)
        finally:
            self._notify_lock.release()

    def subscribe(self, path: str, on_value: ValueCallback,
                  on_error: Optional[ErrorCallback] = None) -> Subscription:
        split_path(path)
        subscription = Subscription(self, path, on_value, on_error)
        with self._subs_lock:
            self._subscriptions.append(subscription)
        with self._notify_lock:
            self._deliver_current(subscription)
        return subscription

    def _detach(self, subscription: Subscription) -> None:
        with self._subs_lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def subscriber_count(self) -> int:
        with self._subs_lock:
            return len(self._subscriptions)

    def _fan_out(self, written_paths: List[str]) -> None:
        with self._subs_lock:
            targets = [s for s in self._subscriptions
                       if any(paths_overlap(s.path, p) for p in written_paths)]
        for subscription in targets:
            self._deliver_current(subscription)

    def _deliver_current(self, subscription: Subscription) -> None:
        try:
            value = self.read(subscription.path)
        except Exception as exc:
            subscription.fail(exc)
            return
        subscription.deliver(value)
