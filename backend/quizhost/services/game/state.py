"""Game state document shape and helpers.

The game state partition is a flat JSON document with camelCase keys, read
by displays and the host panel alike. Only the state machine writes it.
"""

import copy

from quizhost.constants import GameStatus, LifelineKind, TeamStatus


def default_game_state():
    return {
        'currentTeamId': None,
        'currentQuestionNumber': 0,
        'currentQuestion': None,
        'questionVisible': False,
        'optionsVisible': False,
        'answerRevealed': False,
        'correctOption': None,
        'selectedOption': None,
        'optionWasCorrect': None,
        'activeLifeline': None,
        'removedOptions': [],
        'gameStatus': GameStatus.NOT_STARTED,
        'playQueue': [],
        'questionSetAssignments': {},
        'initializedAt': None,
        'startedAt': None,
        'completedAt': None,
        'lastUpdated': 0,
    }


def question_reset_fields():
    """Fields cleared at the start of every question cycle."""
    return {
        'currentQuestion': None,
        'questionVisible': False,
        'optionsVisible': False,
        'answerRevealed': False,
        'correctOption': None,
        'selectedOption': None,
        'optionWasCorrect': None,
        'activeLifeline': None,
        'removedOptions': [],
    }


def normalize_game_state(raw):
    """Fill in defaults for keys the store dropped (empty lists and nulls)."""
    state = default_game_state()
    if isinstance(raw, dict):
        state.update({k: v for k, v in raw.items() if v is not None})
    if not isinstance(state['playQueue'], list):
        state['playQueue'] = _as_list(state['playQueue'])
    if not isinstance(state['removedOptions'], list):
        state['removedOptions'] = _as_list(state['removedOptions'])
    return state


def _as_list(value):
    # Stores may hand back a list saved through index paths as a dict
    if isinstance(value, dict):
        return [value[k] for k in sorted(value, key=lambda k: int(k) if str(k).isdigit() else 0)]
    return list(value or [])


def public_game_state(state):
    """Game state as shown to displays: the correct answer stays hidden until revealed."""
    view = copy.deepcopy(normalize_game_state(state))
    question = view.get('currentQuestion')
    if isinstance(question, dict) and not view.get('answerRevealed'):
        question.pop('correctAnswer', None)
    return view


def check_invariants(state):
    """Return a list of broken invariants for ``state`` (empty when consistent)."""
    problems = []
    if state.get('answerRevealed') and not state.get('optionsVisible'):
        problems.append('answerRevealed without optionsVisible')
    if state.get('optionsVisible') and not state.get('questionVisible'):
        problems.append('optionsVisible without questionVisible')
    if (state.get('optionWasCorrect') is not None) != bool(state.get('answerRevealed')):
        problems.append('optionWasCorrect set iff answerRevealed')
    if state.get('activeLifeline') and state.get('gameStatus') != GameStatus.IN_PROGRESS:
        problems.append('activeLifeline outside in-progress')
    return problems


def default_lifelines_used():
    return {kind: False for kind in LifelineKind.ALL}


def new_team_record(team_id, name, participants, contact):
    return {
        'id': team_id,
        'name': name,
        'participants': participants,
        'contact': contact,
        'status': TeamStatus.WAITING,
        'currentPrize': 0,
        'questionsAnswered': 0,
        'lifelinesUsed': default_lifelines_used(),
        'eliminatedAt': None,
        'completedAt': None,
    }


def reset_team_progress(team):
    team = dict(team or {})
    team.update({
        'status': TeamStatus.WAITING,
        'currentPrize': 0,
        'questionsAnswered': 0,
        'lifelinesUsed': default_lifelines_used(),
        'eliminatedAt': None,
        'completedAt': None,
    })
    return team
