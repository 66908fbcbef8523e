from flask import Blueprint, current_app, jsonify, request
import time

from quizhost import get_domain
from quizhost.auth import host_required
from quizhost.constants import PRIZE_STRUCTURE, QUESTION_SETS, TEAMS, LifelineKind, parse_lifeline
from quizhost.services.game.initialization import play_queue_preview
from quizhost.services.game.lifeline_timer import RUNNING
from quizhost.services.game.scheduler import schedule_phone_timer
from quizhost.services.game.scoring import guaranteed_prize, next_prize
from quizhost.services.game.state import public_game_state
from quizhost.services.setup import question_set_list

game = Blueprint('game', __name__)

_last_controller_action: dict[str, float] = {}


def _observed():
    data = request.get_json(silent=True) or {}
    value = data.get('lastUpdated')
    return value if isinstance(value, int) and not isinstance(value, bool) else None


def _debounced(action):
    try:
        debounce_ms = int(current_app.config.get('CONTROLLER_DEBOUNCE_MS', 0))
    except (TypeError, ValueError):
        debounce_ms = 0
    if debounce_ms <= 0:
        return False
    now = time.time() * 1000.0
    last = _last_controller_action.get(action, 0)
    if now - last < debounce_ms:
        return True
    _last_controller_action[action] = now
    return False


def _prize_summary(state, teams, ladder, milestones):
    team = teams.get(state.get('currentTeamId')) if state.get('currentTeamId') else None
    if not team:
        return None
    answered = int(team.get('questionsAnswered') or 0)
    return {
        'teamId': state['currentTeamId'],
        'currentPrize': team.get('currentPrize') or 0,
        'nextPrize': next_prize(ladder, answered),
        'guaranteedPrize': guaranteed_prize(ladder, answered, milestones),
    }


def _run(action, *args):
    if _debounced(action):
        return jsonify({'message': 'debounced'}), 202
    machine = get_domain().machine
    state = getattr(machine, action)(*args, observed_last_updated=_observed())
    return jsonify(state)


@game.route('/state', methods=['GET'])
def get_state():
    """Display view of the match; the correct answer is hidden until revealed."""
    return jsonify(public_game_state(get_domain().machine.state()))


@game.route('/host-state', methods=['GET'])
@host_required
def get_host_state():
    domain = get_domain()
    state = domain.machine.state()
    store = domain.store
    question_sets = question_set_list(store.read(QUESTION_SETS))
    teams = store.read(TEAMS) or {}
    ladder = store.read(PRIZE_STRUCTURE) or []
    return jsonify({
        'gameState': state,
        'playQueuePreview': play_queue_preview(
            state['playQueue'], state['questionSetAssignments'], teams, question_sets,
        ),
        'currentTeamPrizes': _prize_summary(state, teams, ladder, domain.machine.settings['milestones']),
        'requiredQuestionSets': domain.sync.required_question_sets_report(domain.bank.local_set_ids()),
        'prizeStructure': ladder,
        'sync': domain.sync.status(),
    })


@game.route('/start', methods=['POST'])
@host_required
def start():
    return _run('start')


@game.route('/show-question', methods=['POST'])
@host_required
def show_question():
    return _run('show_question')


@game.route('/show-options', methods=['POST'])
@host_required
def show_options():
    return _run('show_options')


@game.route('/select', methods=['POST'])
@host_required
def select_option():
    data = request.get_json(silent=True) or {}
    return _run('select_option', data.get('option'))


@game.route('/lock', methods=['POST'])
@host_required
def lock_answer():
    return _run('lock_answer')


@game.route('/advance', methods=['POST'])
@host_required
def advance_question():
    return _run('advance_question')


@game.route('/lifeline', methods=['POST'])
@host_required
def activate_lifeline():
    data = request.get_json(silent=True) or {}
    kind = data.get('kind')
    response = _run('activate_lifeline', kind)
    if parse_lifeline(kind) == LifelineKind.PHONE_A_FRIEND and not isinstance(response, tuple):
        # fresh countdown for this call; the host starts it once connected
        get_domain().phone_timer.reset()
    return response


@game.route('/resume', methods=['POST'])
@host_required
def resume_from_lifeline():
    domain = get_domain()
    if domain.phone_timer.state == RUNNING:
        # cancel resolves the timer, which resumes the match exactly once
        domain.phone_timer.cancel()
        return jsonify(domain.machine.state())
    return _run('resume_from_lifeline')


@game.route('/complete', methods=['POST'])
@host_required
def complete_match():
    get_domain().phone_timer.reset()
    return _run('complete_match')


@game.route('/abandon', methods=['POST'])
@host_required
def abandon_match():
    get_domain().phone_timer.reset()
    return _run('abandon_match')


@game.route('/uninitialize', methods=['POST'])
@host_required
def uninitialize():
    get_domain().phone_timer.reset()
    return _run('uninitialize')


@game.route('/timer', methods=['GET'])
def get_timer():
    return jsonify(get_domain().phone_timer.view())


@game.route('/timer/start', methods=['POST'])
@host_required
def start_timer():
    domain = get_domain()
    if domain.machine.state().get('activeLifeline') != LifelineKind.PHONE_A_FRIEND:
        return jsonify({'error': 'Phone-a-Friend is not active'}), 400
    run_id = domain.phone_timer.start()
    schedule_phone_timer(current_app._get_current_object(), domain.phone_timer, run_id)
    return jsonify(domain.phone_timer.view())


@game.route('/timer/tick', methods=['POST'])
@host_required
def tick_timer():
    return jsonify(get_domain().phone_timer.tick())


@game.route('/timer/cancel', methods=['POST'])
@host_required
def cancel_timer():
    domain = get_domain()
    resolved = domain.phone_timer.cancel()
    return jsonify({'resolved': resolved, 'timer': domain.phone_timer.view(), 'gameState': domain.machine.state()})
