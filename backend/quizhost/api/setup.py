from flask import Blueprint, current_app, jsonify, request
import uuid

from quizhost import get_domain
from quizhost.auth import current_identity, host_required
from quizhost.constants import CONFIG, PRIZE_STRUCTURE, QUESTION_SETS, TEAMS, GameStatus
from quizhost.errors import InvalidTransition
from quizhost.services.config_sync import compare_configs, get_current_app_config, sync_config_with_store
from quizhost.services.game.scoring import format_prize, is_milestone
from quizhost.services.game.state import new_team_record
from quizhost.services.setup import (
    question_set_list,
    setup_limits,
    validate_complete_setup,
    validate_prize_structure,
    validate_team,
)

setup = Blueprint('setup', __name__)

EDITABLE_TEAM_FIELDS = ('name', 'participants', 'contact')


def _teams():
    return get_domain().store.read(TEAMS) or {}


def _require_not_started(action):
    state = get_domain().machine.state()
    if state['gameStatus'] != GameStatus.NOT_STARTED:
        raise InvalidTransition(f'Cannot {action} once the match has started', gameStatus=state['gameStatus'])


@setup.route('/setup/verify', methods=['GET'])
@host_required
def verify_setup():
    store = get_domain().store
    result = validate_complete_setup(
        store.read(TEAMS) or {},
        store.read(QUESTION_SETS),
        store.read(PRIZE_STRUCTURE),
        **setup_limits(current_app.config),
    )
    return jsonify(result)


@setup.route('/setup/required-sets', methods=['GET'])
@host_required
def required_question_sets():
    domain = get_domain()
    report = domain.sync.required_question_sets_report(domain.bank.local_set_ids())
    return jsonify({'gameStatus': domain.sync.game_state['gameStatus'], 'report': report})


@setup.route('/teams', methods=['GET'])
@host_required
def list_teams():
    return jsonify(_teams())


@setup.route('/teams', methods=['POST'])
@host_required
def create_team():
    data = request.get_json(silent=True) or {}
    fields = {k: (data.get(k) or '').strip() if isinstance(data.get(k), str) else data.get(k)
              for k in EDITABLE_TEAM_FIELDS}
    result = validate_team(fields)
    if not result['isValid']:
        return jsonify({'error': 'Invalid team', 'errors': result['errors']}), 400

    max_teams = int(current_app.config.get('MAX_TEAMS', 10))
    if len(_teams()) >= max_teams:
        return jsonify({'error': f'Maximum {max_teams} teams allowed'}), 400

    team_id = f"team-{uuid.uuid4().hex[:8]}"
    record = new_team_record(team_id, fields['name'], fields['participants'], fields['contact'])
    get_domain().store.write(f'{TEAMS}/{team_id}', record)
    current_app.logger.info(f"[team-created] team={team_id} name={fields['name']!r}")
    return jsonify(record), 201


@setup.route('/teams/<string:team_id>', methods=['PUT'])
@host_required
def update_team(team_id):
    teams = _teams()
    if team_id not in teams:
        return jsonify({'error': 'Team not found'}), 404
    data = request.get_json(silent=True) or {}
    merged = dict(teams[team_id])
    for key in EDITABLE_TEAM_FIELDS:
        if key in data:
            value = data[key]
            merged[key] = value.strip() if isinstance(value, str) else value
    result = validate_team(merged)
    if not result['isValid']:
        return jsonify({'error': 'Invalid team', 'errors': result['errors']}), 400
    get_domain().store.update({f'{TEAMS}/{team_id}/{k}': merged[k] for k in EDITABLE_TEAM_FIELDS})
    return jsonify(get_domain().store.read(f'{TEAMS}/{team_id}'))


@setup.route('/teams/<string:team_id>', methods=['DELETE'])
@host_required
def delete_team(team_id):
    if team_id not in _teams():
        return jsonify({'error': 'Team not found'}), 404
    state = get_domain().machine.state()
    if team_id in state['playQueue'] or team_id == state.get('currentTeamId'):
        return jsonify({'error': 'Team is in the play queue and cannot be deleted'}), 409
    get_domain().store.write(f'{TEAMS}/{team_id}', None)
    current_app.logger.info(f"[team-deleted] team={team_id}")
    return jsonify({'message': 'Team deleted'})


@setup.route('/prize-structure', methods=['GET'])
def get_prize_structure():
    ladder = get_domain().store.read(PRIZE_STRUCTURE) or []
    currency = current_app.config.get('CURRENCY_SYMBOL', 'Rs.')
    milestones = current_app.config.get('MILESTONE_QUESTIONS') or []
    return jsonify({
        'prizes': ladder,
        'levels': [
            {'question': n, 'prize': p, 'display': format_prize(p, currency), 'milestone': is_milestone(n, milestones)}
            for n, p in enumerate(ladder, start=1)
        ],
    })


@setup.route('/prize-structure', methods=['PUT'])
@host_required
def put_prize_structure():
    _require_not_started('edit the prize structure')
    data = request.get_json(silent=True) or {}
    prizes = data.get('prizes')
    result = validate_prize_structure(prizes, int(current_app.config.get('QUESTIONS_PER_SET', 20)))
    if not result['isValid']:
        return jsonify({'error': 'Invalid prize structure', 'errors': result['errors'],
                        'invalidPrizes': result['invalidPrizes']}), 400
    get_domain().store.write(PRIZE_STRUCTURE, prizes)
    return jsonify({'prizes': prizes})


@setup.route('/questions/sets', methods=['GET'])
@host_required
def list_question_sets():
    domain = get_domain()
    local = set(domain.bank.local_set_ids())
    sets = question_set_list(domain.store.read(QUESTION_SETS))
    return jsonify({'sets': [dict(meta, availableLocally=meta.get('setId') in local) for meta in sets]})


@setup.route('/questions/sets', methods=['POST'])
@host_required
def upload_question_set():
    data = request.get_json(silent=True) or {}
    set_id = data.get('setId')
    set_name = data.get('setName') or set_id
    if not isinstance(set_id, str) or not set_id.strip():
        return jsonify({'error': 'setId is required'}), 400
    try:
        meta = get_domain().bank.add_set(set_id.strip(), set_name, data.get('questions'))
    except ValueError as exc:
        return jsonify({'error': str(exc)}), 400
    return jsonify(meta), 201


@setup.route('/questions/sets/<string:set_id>', methods=['DELETE'])
@host_required
def delete_question_set(set_id):
    _require_not_started('delete question sets')
    if not get_domain().bank.remove_set(set_id):
        get_domain().store.write(f'{QUESTION_SETS}/{set_id}', None)
    return jsonify({'message': 'Question set deleted'})


@setup.route('/config', methods=['GET'])
def get_config():
    remote = get_domain().store.read(CONFIG)
    app_config = get_current_app_config(current_app.config)
    return jsonify({'remote': remote, 'app': app_config, 'comparison': compare_configs(remote, app_config)})


@setup.route('/config/sync', methods=['POST'])
def sync_config():
    result = sync_config_with_store(get_domain().store, current_app.config, current_identity())
    return jsonify(result), 200 if result['success'] else 503
