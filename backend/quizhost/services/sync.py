"""Local, always-fresh mirror of every store partition.

The layer owns one subscription per root partition. Each delivery replaces
that partition's value wholesale and is fanned out to registered listeners
as ``listener(partition, snapshot)``. Teardown bumps a generation counter so
callbacks already in flight from an old subscription are dropped.
"""

import copy
import logging
import threading
import time
from functools import partial

from quizhost.constants import GAME_STATE, GameStatus, PARTITIONS
from quizhost.errors import PermissionDenied
from quizhost.services.game.state import normalize_game_state
from quizhost.services.setup import validate_required_question_sets

logger = logging.getLogger(__name__)


class SynchronizationLayer:

    def __init__(self, store, partitions=PARTITIONS, clock=None):
        self.store = store
        self.partitions = tuple(partitions)
        self.clock = clock or time.time
        self._lock = threading.RLock()
        self._generation = 0
        self._subscriptions = {}
        self._values = {}
        self._delivered = set()
        self._errors = {}
        self._listeners = []
        self.last_updated = None

    # lifecycle

    @property
    def attached(self):
        with self._lock:
            return bool(self._subscriptions)

    def attach(self):
        with self._lock:
            if self._subscriptions:
                return
            self._generation += 1
            generation = self._generation
        for partition in self.partitions:
            try:
                subscription = self.store.subscribe(
                    partition,
                    partial(self._on_value, generation, partition),
                    partial(self._on_error, generation, partition),
                )
            except Exception as exc:
                self._on_error(generation, partition, exc)
                continue
            with self._lock:
                if generation != self._generation:
                    # detached while subscribing
                    subscription.unsubscribe()
                    return
                self._subscriptions[partition] = subscription
        logger.info(f"[sync] event=attach generation={generation} partitions={len(self._subscriptions)}")

    def detach(self):
        with self._lock:
            self._generation += 1
            subscriptions = list(self._subscriptions.values())
            self._subscriptions.clear()
        for subscription in subscriptions:
            subscription.unsubscribe()
        if subscriptions:
            logger.info(f"[sync] event=detach released={len(subscriptions)}")

    def reconnect(self):
        self.detach()
        with self._lock:
            self._delivered.clear()
            self._errors.clear()
        self.attach()

    # delivery

    def _on_value(self, generation, partition, value):
        with self._lock:
            if generation != self._generation:
                return
            self._values[partition] = value
            self._delivered.add(partition)
            self._errors.pop(partition, None)
            self.last_updated = self.clock()
            listeners = list(self._listeners)
        self._notify(listeners, partition)

    def _on_error(self, generation, partition, exc):
        with self._lock:
            if generation != self._generation:
                return
            if isinstance(exc, PermissionDenied):
                # not signed in: the partition is simply not visible
                self._values[partition] = None
                self._delivered.add(partition)
                logger.info(f"[sync] event=permission-denied partition={partition}")
            else:
                self._errors[partition] = str(exc)
                logger.warning(f"[sync] event=error partition={partition} error={exc}")
            listeners = list(self._listeners)
        self._notify(listeners, partition)

    def _notify(self, listeners, partition):
        snapshot = self.snapshot()
        for listener in listeners:
            try:
                listener(partition, snapshot)
            except Exception:
                logger.exception(f"[sync] event=listener-error partition={partition}")

    # observation

    def add_listener(self, listener):
        with self._lock:
            self._listeners.append(listener)

        def remove():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return remove

    @property
    def is_loading(self):
        with self._lock:
            return len(self._delivered) < len(self.partitions)

    @property
    def errors(self):
        with self._lock:
            return dict(self._errors)

    def value(self, partition):
        with self._lock:
            return copy.deepcopy(self._values.get(partition))

    def snapshot(self):
        with self._lock:
            return {p: copy.deepcopy(self._values.get(p)) for p in self.partitions}

    @property
    def game_state(self):
        return normalize_game_state(self.value(GAME_STATE))

    def required_question_sets_report(self, local_set_ids):
        """Missing-content check for a match opened on a host without its sets.

        Returns None while the match has not started.
        """
        state = self.game_state
        if state['gameStatus'] == GameStatus.NOT_STARTED:
            return None
        return validate_required_question_sets(state.get('questionSetAssignments'), local_set_ids)

    def status(self):
        with self._lock:
            return {
                'isLoading': len(self._delivered) < len(self.partitions),
                'loaded': sorted(self._delivered),
                'errors': dict(self._errors),
                'lastUpdated': self.last_updated,
                'attached': bool(self._subscriptions),
            }
