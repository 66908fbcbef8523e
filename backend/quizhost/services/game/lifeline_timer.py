"""Phone-a-Friend countdown.

States: idle -> running -> expired, or running -> cancelled when the host
resumes early. The remaining time is always derived from the wall clock and
the recorded start time, so a process that was suspended catches up on its
next tick. Whichever of expiry or cancel wins the race resolves the timer;
the resolve callback fires exactly once per run.
"""

import logging
import math
import threading
import time

from quizhost.errors import InvalidTransition

logger = logging.getLogger(__name__)

IDLE = 'idle'
RUNNING = 'running'
EXPIRED = 'expired'
CANCELLED = 'cancelled'


def format_timer_display(seconds):
    seconds = max(0, int(seconds))
    return f'{seconds // 60:02d}:{seconds % 60:02d}'


class PhoneTimer:

    def __init__(self, duration_sec=180, on_resolve=None, clock=None):
        self.duration = float(duration_sec)
        self.on_resolve = on_resolve
        self.clock = clock or time.time
        self.state = IDLE
        self.started_at = None
        self._ended_at = None
        self.run_id = 0
        self._lock = threading.Lock()

    def start(self):
        with self._lock:
            if self.state != IDLE:
                raise InvalidTransition(f'Phone timer cannot start while {self.state}', timerState=self.state)
            self.state = RUNNING
            self.started_at = self.clock()
            self.run_id += 1
            run_id = self.run_id
        logger.info(f"[phone-timer] event=start run={run_id} duration={self.duration:g}s")
        return run_id

    def remaining(self, now=None):
        if self.state == IDLE or self.started_at is None:
            return self.duration
        if self.state != RUNNING:
            return 0.0 if self.state == EXPIRED else max(0.0, self.duration - (self._ended_at - self.started_at))
        now = self.clock() if now is None else now
        return max(0.0, self.duration - (now - self.started_at))

    def view(self, now=None):
        remaining = self.remaining(now)
        seconds = int(math.ceil(remaining))
        elapsed = self.duration - remaining
        return {
            'state': self.state,
            'remainingSeconds': seconds,
            'display': format_timer_display(seconds),
            'percentElapsed': min(100, int(round(elapsed / self.duration * 100))) if self.duration else 100,
            'totalSeconds': int(self.duration),
            'runId': self.run_id,
        }

    def tick(self, now=None):
        """Advance the timer; expires it once no time remains."""
        if self.state == RUNNING and self.remaining(now) <= 0:
            self._resolve(EXPIRED, now)
        return self.view(now)

    def cancel(self):
        """Host resumed before expiry. Returns False if already resolved."""
        return self._resolve(CANCELLED, None, allow_idle=True)

    def reset(self):
        with self._lock:
            self.state = IDLE
            self.started_at = None
            self._ended_at = None
        logger.info('[phone-timer] event=reset')

    def _resolve(self, outcome, now, allow_idle=False):
        with self._lock:
            if self.state != RUNNING and not (allow_idle and self.state == IDLE):
                return False
            if self.state == RUNNING and self.remaining(now) <= 0:
                # deadline already passed; a late cancel still counts as expiry
                outcome = EXPIRED
            self.state = outcome
            self._ended_at = self.clock() if now is None else now
            if self.started_at is None:
                self.started_at = self._ended_at
            run_id = self.run_id
        logger.info(f"[phone-timer] event={outcome} run={run_id}")
        if self.on_resolve is not None:
            self.on_resolve()
        return True
