"""The authoritative game state machine.

Every action re-reads the shared store, evaluates a pure transition against
that snapshot and commits the result with a compare-and-set on
``game-state/lastUpdated``. A lost race is retried once against a fresh
snapshot before ``StaleWrite`` reaches the caller.
"""

import logging
import random
import time

from quizhost.constants import (
    DEFAULT_MILESTONES,
    GAME_STATE,
    PRIZE_STRUCTURE,
    QUESTION_SETS,
    TEAMS,
    LifelineKind,
)
from quizhost.errors import StaleWrite
from . import transitions
from .state import normalize_game_state

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2


def match_settings(app_config):
    return {
        'questionsPerTeam': int(app_config.get('QUESTIONS_PER_SET', 20)),
        'minTeams': int(app_config.get('MIN_TEAMS', 1)),
        'idealMinTeams': int(app_config.get('IDEAL_MIN_TEAMS', 7)),
        'maxTeams': int(app_config.get('MAX_TEAMS', 10)),
        'milestones': tuple(app_config.get('MILESTONE_QUESTIONS') or DEFAULT_MILESTONES),
        'lifelinesEnabled': {
            LifelineKind.PHONE_A_FRIEND: bool(app_config.get('LIFELINE_PHONE_A_FRIEND_ENABLED', True)),
            LifelineKind.FIFTY_FIFTY: bool(app_config.get('LIFELINE_FIFTY_FIFTY_ENABLED', True)),
        },
        'fiftyFiftyClearSec': int(app_config.get('FIFTY_FIFTY_CLEAR_SEC', 1)),
    }


def _wall_clock_ms():
    return int(time.time() * 1000)


class GameStateMachine:

    def __init__(self, store, bank, settings, clock=None, rng=None, defer=None):
        self.store = store
        self.bank = bank
        self.settings = settings
        self.clock = clock or _wall_clock_ms
        self.rng = rng or random.Random()
        # defer(delay_sec, fn, *args) runs fn later; None disables delayed work
        self.defer = defer

    def snapshot(self):
        raw_state = self.store.read(GAME_STATE)
        return transitions.MatchSnapshot(
            game_state=raw_state,
            teams=self.store.read(TEAMS),
            question_sets=self.store.read(QUESTION_SETS),
            prize_structure=self.store.read(PRIZE_STRUCTURE),
            settings=self.settings,
            # condition value must come from the same read as the state
            raw_last_updated=raw_state.get('lastUpdated') if isinstance(raw_state, dict) else None,
        )

    def state(self):
        return normalize_game_state(self.store.read(GAME_STATE))

    def _next_timestamp(self, snap):
        return max(int(self.clock()), snap.last_updated + 1)

    def dispatch(self, action, observed_last_updated=None, **params):
        """Apply ``action`` and return the game state as committed."""
        transition = transitions.TRANSITIONS.get(action)
        if transition is None:
            raise ValueError(f'Unknown action {action!r}')

        for attempt in range(1, MAX_ATTEMPTS + 1):
            snap = self.snapshot()
            if observed_last_updated is not None and snap.last_updated > observed_last_updated:
                logger.info(
                    f"[stale-observer] action={action} observed={observed_last_updated} latest={snap.last_updated}"
                )
            now = self._next_timestamp(snap)
            updates = transition(snap, now, **params)
            if not updates:
                return snap.game_state

            if GAME_STATE in updates:
                updates[GAME_STATE]['lastUpdated'] = now
            else:
                updates[f'{GAME_STATE}/lastUpdated'] = now
            try:
                self.store.update(updates, condition=(f'{GAME_STATE}/lastUpdated', snap.raw_last_updated))
            except StaleWrite:
                if attempt == MAX_ATTEMPTS:
                    logger.warning(f"[stale-write] action={action} attempts={attempt} giving up")
                    raise
                logger.info(f"[stale-write] action={action} attempt={attempt} retrying")
                continue
            return self.state()

    def start(self, observed_last_updated=None):
        return self.dispatch('start', observed_last_updated, rng=self.rng)

    def show_question(self, observed_last_updated=None):
        return self.dispatch('show_question', observed_last_updated, bank=self.bank)

    def show_options(self, observed_last_updated=None):
        return self.dispatch('show_options', observed_last_updated)

    def select_option(self, option, observed_last_updated=None):
        return self.dispatch('select_option', observed_last_updated, option=option)

    def lock_answer(self, observed_last_updated=None):
        return self.dispatch('lock_answer', observed_last_updated)

    def advance_question(self, observed_last_updated=None):
        return self.dispatch('advance_question', observed_last_updated)

    def activate_lifeline(self, kind, observed_last_updated=None):
        state = self.dispatch('activate_lifeline', observed_last_updated, kind=kind, rng=self.rng)
        if state.get('activeLifeline') == LifelineKind.FIFTY_FIFTY and self.defer is not None:
            self.defer(
                self.settings['fiftyFiftyClearSec'],
                self.clear_lifeline_if_current,
                LifelineKind.FIFTY_FIFTY,
                state.get('currentTeamId'),
                state.get('currentQuestionNumber'),
            )
        return state

    def resume_from_lifeline(self, observed_last_updated=None):
        return self.dispatch('resume_from_lifeline', observed_last_updated)

    def clear_lifeline_if_current(self, kind, team_id, question_number):
        """Resume only if ``kind`` is still active for the same team and question."""
        state = self.state()
        if (state.get('activeLifeline') != kind
                or state.get('currentTeamId') != team_id
                or state.get('currentQuestionNumber') != question_number):
            logger.info(f"[lifeline-clear-skip] lifeline={kind} team={team_id}")
            return state
        return self.resume_from_lifeline()

    def complete_match(self, observed_last_updated=None):
        return self.dispatch('complete_match', observed_last_updated)

    def abandon_match(self, observed_last_updated=None):
        return self.dispatch('abandon_match', observed_last_updated)

    def uninitialize(self, observed_last_updated=None):
        return self.dispatch('uninitialize', observed_last_updated)
