"""Pure match transitions.

Each transition takes a ``MatchSnapshot`` plus its parameters and returns the
``path -> value`` updates to apply as one atomic write, or raises
``InvalidTransition``. Nothing here touches the store; the caller stamps
``lastUpdated`` and commits.
"""

import logging
import random

from quizhost.constants import (
    ANSWER_OPTIONS,
    FIFTY_FIFTY_REMOVE_COUNT,
    GAME_STATE,
    TEAMS,
    GameStatus,
    LifelineKind,
    TeamStatus,
    parse_lifeline,
)
from quizhost.errors import InvalidAnswerOption, InvalidTransition, QuestionUnavailable, SetupNotReady
from quizhost.services.setup import question_count, question_set_list, validate_complete_setup
from .initialization import generate_play_queue, validate_play_queue_data
from .scoring import guaranteed_prize, prize_for_question
from .state import default_game_state, normalize_game_state, question_reset_fields, reset_team_progress
from .validation import normalize_option, validate_answer

logger = logging.getLogger(__name__)


class MatchSnapshot:
    """Everything a transition may look at, read in one pass."""

    def __init__(self, game_state, teams, question_sets, prize_structure, settings, raw_last_updated=None):
        self.game_state = normalize_game_state(game_state)
        self.teams = teams if isinstance(teams, dict) else {}
        self.question_sets = question_set_list(question_sets)
        self.prize_structure = _ladder(prize_structure)
        self.settings = settings
        self.raw_last_updated = raw_last_updated

    @property
    def last_updated(self):
        return self.game_state.get('lastUpdated') or 0

    @property
    def status(self):
        return self.game_state['gameStatus']

    @property
    def current_team_id(self):
        return self.game_state.get('currentTeamId')

    def team(self, team_id):
        return self.teams.get(team_id) or {}


def _ladder(prize_structure):
    if isinstance(prize_structure, dict):
        return [prize_structure[k] for k in sorted(prize_structure, key=lambda k: int(k))]
    return list(prize_structure or [])


def _gs(field):
    return f'{GAME_STATE}/{field}'


def _team_path(team_id, field=None):
    return f'{TEAMS}/{team_id}' if field is None else f'{TEAMS}/{team_id}/{field}'


def _fields(values):
    return {_gs(k): v for k, v in values.items()}


def _require_in_progress(snap, action):
    if snap.status != GameStatus.IN_PROGRESS:
        raise InvalidTransition(f'Cannot {action}: match is {snap.status}', gameStatus=snap.status)
    if not snap.current_team_id:
        raise InvalidTransition(f'Cannot {action}: no team is playing')


def _require_no_lifeline(snap, action):
    if snap.game_state.get('activeLifeline'):
        raise InvalidTransition(
            f'Cannot {action} while a lifeline is active',
            activeLifeline=snap.game_state['activeLifeline'],
        )


def start(snap, now, rng=None):
    if snap.status != GameStatus.NOT_STARTED:
        raise InvalidTransition(f'Cannot start: match is {snap.status}', gameStatus=snap.status)

    settings = snap.settings
    readiness = validate_complete_setup(
        snap.teams,
        snap.question_sets,
        snap.prize_structure,
        questions_per_team=settings['questionsPerTeam'],
        min_teams=settings['minTeams'],
        ideal_min_teams=settings['idealMinTeams'],
        max_teams=settings['maxTeams'],
        milestones=settings['milestones'],
    )
    if not readiness['isReady']:
        failed = [c for c in readiness['checks'] if c['status'] == 'fail']
        raise SetupNotReady('Setup is not ready to start the match', checks=failed)

    usable = sorted(
        m['setId'] for m in snap.question_sets
        if m.get('setId') and question_count(m) >= settings['questionsPerTeam']
    )
    play_queue, assignments = generate_play_queue(sorted(snap.teams), usable, rng)
    queue_check = validate_play_queue_data(play_queue, assignments)
    if not queue_check['isValid']:
        raise SetupNotReady('Play queue could not be built', errors=queue_check['errors'])

    state = default_game_state()
    state.update({
        'gameStatus': GameStatus.IN_PROGRESS,
        'currentTeamId': play_queue[0],
        'currentQuestionNumber': 1,
        'playQueue': play_queue,
        'questionSetAssignments': assignments,
        'initializedAt': now,
        'startedAt': now,
    })
    updates = {GAME_STATE: state}
    for team_id, team in snap.teams.items():
        record = reset_team_progress(team)
        record['id'] = team_id
        record['status'] = TeamStatus.ACTIVE if team_id == play_queue[0] else TeamStatus.WAITING
        updates[_team_path(team_id)] = record
    logger.info(f"[transition] action=start teams={len(play_queue)} first={play_queue[0]}")
    return updates


def show_question(snap, now, bank=None):
    _require_in_progress(snap, 'show question')
    state = snap.game_state
    if state['questionVisible']:
        raise InvalidTransition('Question is already visible')

    team_id = snap.current_team_id
    number = state['currentQuestionNumber']
    set_id = (state.get('questionSetAssignments') or {}).get(team_id)
    question = bank.get_question(set_id, number) if (bank is not None and set_id) else None
    if question is None:
        raise QuestionUnavailable(
            f'Question {number} of set {set_id} is not available on this host',
            setId=set_id, questionNumber=number,
        )
    logger.info(f"[transition] action=show_question team={team_id} set={set_id} q={number}")
    return _fields({'currentQuestion': question, 'questionVisible': True})


def show_options(snap, now):
    _require_in_progress(snap, 'show options')
    state = snap.game_state
    if not state['questionVisible']:
        raise InvalidTransition('Show the question before its options')
    if state['optionsVisible']:
        raise InvalidTransition('Options are already visible')
    logger.info(f"[transition] action=show_options team={snap.current_team_id} q={state['currentQuestionNumber']}")
    return _fields({'optionsVisible': True})


def select_option(snap, now, option=None):
    _require_in_progress(snap, 'select an option')
    state = snap.game_state
    if not state['optionsVisible']:
        raise InvalidTransition('Options are not visible yet')
    if state['answerRevealed']:
        raise InvalidTransition('Answer is already locked')
    _require_no_lifeline(snap, 'select an option')

    normalized = normalize_option(option)
    if normalized is None:
        raise InvalidAnswerOption(f'Option {option!r} is not one of {", ".join(ANSWER_OPTIONS)}', field='selected')
    if normalized in (state.get('removedOptions') or []):
        raise InvalidTransition(f'Option {normalized} was removed by fifty-fifty', option=normalized)
    logger.info(f"[transition] action=select_option team={snap.current_team_id} option={normalized}")
    return _fields({'selectedOption': normalized})


def lock_answer(snap, now):
    _require_in_progress(snap, 'lock the answer')
    state = snap.game_state
    if not state['optionsVisible']:
        raise InvalidTransition('Options are not visible yet')
    if state['answerRevealed']:
        raise InvalidTransition('Answer is already locked')
    _require_no_lifeline(snap, 'lock the answer')
    if not state.get('selectedOption'):
        raise InvalidTransition('Select an option before locking')

    question = state.get('currentQuestion') or {}
    verdict = validate_answer(state['selectedOption'], question.get('correctAnswer'))
    logger.info(
        f"[transition] action=lock_answer team={snap.current_team_id} q={state['currentQuestionNumber']} "
        f"selected={verdict['normalizedSelected']} correct={verdict['isCorrect']}"
    )
    return _fields({
        'answerRevealed': True,
        'optionWasCorrect': verdict['isCorrect'],
        'correctOption': verdict['normalizedCorrect'],
        'selectedOption': verdict['normalizedSelected'],
    })


def _set_length(snap, team_id):
    set_id = (snap.game_state.get('questionSetAssignments') or {}).get(team_id)
    for meta in snap.question_sets:
        if meta.get('setId') == set_id and question_count(meta) > 0:
            # the ladder ends at questionsPerTeam even if the set is longer
            return min(question_count(meta), snap.settings['questionsPerTeam'])
    return snap.settings['questionsPerTeam']


def _next_turn(snap, now, queue, updates):
    if not queue:
        updates.update(_fields(question_reset_fields()))
        updates.update(_fields({
            'gameStatus': GameStatus.COMPLETED,
            'currentTeamId': None,
            'currentQuestionNumber': 0,
            'playQueue': [],
            'completedAt': now,
        }))
        logger.info('[transition] action=complete reason=queue-empty')
        return updates
    next_team = queue[0]
    updates.update(_fields(question_reset_fields()))
    updates.update(_fields({
        'currentTeamId': next_team,
        'currentQuestionNumber': 1,
        'playQueue': queue,
    }))
    updates[_team_path(next_team, 'status')] = TeamStatus.ACTIVE
    logger.info(f"[transition] action=next_team team={next_team} remaining={len(queue)}")
    return updates


def advance_question(snap, now):
    _require_in_progress(snap, 'advance')
    state = snap.game_state
    if not state['answerRevealed']:
        raise InvalidTransition('Reveal the answer before advancing')

    team_id = snap.current_team_id
    team = snap.team(team_id)
    number = state['currentQuestionNumber']
    ladder = snap.prize_structure
    queue = [t for t in state['playQueue'] if t != team_id]
    updates = {}

    if not state['optionWasCorrect']:
        answered = int(team.get('questionsAnswered') or 0)
        updates[_team_path(team_id, 'status')] = TeamStatus.ELIMINATED
        updates[_team_path(team_id, 'currentPrize')] = guaranteed_prize(ladder, answered, snap.settings['milestones'])
        updates[_team_path(team_id, 'eliminatedAt')] = now
        logger.info(f"[transition] action=eliminate team={team_id} q={number} answered={answered}")
        return _next_turn(snap, now, queue, updates)

    updates[_team_path(team_id, 'currentPrize')] = prize_for_question(ladder, number)
    updates[_team_path(team_id, 'questionsAnswered')] = number
    if number >= _set_length(snap, team_id):
        updates[_team_path(team_id, 'status')] = TeamStatus.COMPLETED
        updates[_team_path(team_id, 'completedAt')] = now
        logger.info(f"[transition] action=team_completed team={team_id} q={number}")
        return _next_turn(snap, now, queue, updates)

    updates.update(_fields(question_reset_fields()))
    updates[_gs('currentQuestionNumber')] = number + 1
    logger.info(f"[transition] action=advance team={team_id} q={number + 1}")
    return updates


def activate_lifeline(snap, now, kind=None, rng=None):
    lifeline = parse_lifeline(kind)
    if lifeline is None:
        raise InvalidTransition(f'Unknown lifeline {kind!r}', lifeline=kind)
    _require_in_progress(snap, 'use a lifeline')
    state = snap.game_state
    if not state['optionsVisible']:
        raise InvalidTransition('Lifelines are available once options are visible')
    if state['answerRevealed']:
        raise InvalidTransition('Answer is already locked')
    _require_no_lifeline(snap, 'use another lifeline')
    if not snap.settings['lifelinesEnabled'].get(lifeline, False):
        raise InvalidTransition(f'Lifeline {lifeline} is disabled', lifeline=lifeline)

    team_id = snap.current_team_id
    used = snap.team(team_id).get('lifelinesUsed') or {}
    if used.get(lifeline):
        raise InvalidTransition(f'Team {team_id} has already used {lifeline}', lifeline=lifeline)

    updates = _fields({'activeLifeline': lifeline})
    updates[_team_path(team_id, f'lifelinesUsed/{lifeline}')] = True

    if lifeline == LifelineKind.FIFTY_FIFTY:
        question = state.get('currentQuestion') or {}
        correct = normalize_option(question.get('correctAnswer'))
        if correct is None:
            raise InvalidAnswerOption('Current question has no valid correct answer', field='correct')
        already = state.get('removedOptions') or []
        candidates = [opt for opt in ANSWER_OPTIONS if opt != correct and opt not in already]
        removed = sorted((rng or random).sample(candidates, min(FIFTY_FIFTY_REMOVE_COUNT, len(candidates))))
        updates[_gs('removedOptions')] = removed
        if state.get('selectedOption') in removed:
            updates[_gs('selectedOption')] = None

    logger.info(f"[transition] action=activate_lifeline team={team_id} lifeline={lifeline}")
    return updates


def resume_from_lifeline(snap, now):
    if not snap.game_state.get('activeLifeline'):
        return {}
    logger.info(f"[transition] action=resume_from_lifeline lifeline={snap.game_state['activeLifeline']}")
    return _fields({'activeLifeline': None})


def complete_match(snap, now):
    if snap.status != GameStatus.IN_PROGRESS:
        raise InvalidTransition(f'Cannot complete: match is {snap.status}', gameStatus=snap.status)
    logger.info(f"[transition] action=complete reason=host team={snap.current_team_id}")
    return _fields({
        'gameStatus': GameStatus.COMPLETED,
        'activeLifeline': None,
        'completedAt': now,
    })


def uninitialize(snap, now):
    updates = {GAME_STATE: default_game_state()}
    for team_id, team in snap.teams.items():
        record = reset_team_progress(team)
        record['id'] = team_id
        updates[_team_path(team_id)] = record
    logger.info(f"[transition] action=uninitialize from={snap.status}")
    return updates


TRANSITIONS = {
    'start': start,
    'show_question': show_question,
    'show_options': show_options,
    'select_option': select_option,
    'lock_answer': lock_answer,
    'advance_question': advance_question,
    'activate_lifeline': activate_lifeline,
    'resume_from_lifeline': resume_from_lifeline,
    'complete_match': complete_match,
    'abandon_match': complete_match,
    'uninitialize': uninitialize,
}
