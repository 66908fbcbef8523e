from conftest import make_questions
from quizhost import get_domain


def _create_team(client, name='Quiz Masters'):
    res = client.post('/api/teams', json={'name': name, 'participants': 'Ann & Bo', 'contact': '+94 77 123 4567'})
    assert res.status_code == 201
    return res.get_json()


def _upload_set(client, set_id='set-1', count=20):
    res = client.post('/api/questions/sets', json={'setId': set_id, 'setName': set_id.title(), 'questions': make_questions(count)})
    assert res.status_code == 201
    return res.get_json()


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200


def test_login_reports_host_status(client):
    res = client.post('/login', json={'username': 'host', 'password': 'password'})
    assert res.status_code == 200
    assert res.get_json()['isHost'] is True
    res = client.post('/login', json={'username': 'host', 'password': 'wrong'})
    assert res.status_code == 401


def test_host_routes_require_allowed_host(client):
    assert client.post('/api/game/start').status_code == 401
    client.post('/login', json={'username': 'guest', 'password': 'password'})
    assert client.post('/api/game/start').status_code == 403


def test_verify_setup_lists_all_failures(host_client):
    res = host_client.get('/api/setup/verify')
    assert res.status_code == 200
    data = res.get_json()
    assert data['isReady'] is False
    failed = {c['id'] for c in data['checks'] if c['status'] == 'fail'}
    assert {'teams-configured', 'question-sets-uploaded'} <= failed


def test_start_without_setup_returns_checks(host_client):
    res = host_client.post('/api/game/start')
    assert res.status_code == 400
    data = res.get_json()
    assert data['type'] == 'SetupNotReady'
    assert data['checks']


def test_full_question_cycle(host_client, client):
    team = _create_team(host_client)
    meta = _upload_set(host_client)
    assert meta['totalQuestions'] == 20

    started = host_client.post('/api/game/start').get_json()
    assert started['currentTeamId'] == team['id']
    assert started['currentQuestionNumber'] == 1

    assert host_client.post('/api/game/lock').status_code == 400
    shown = host_client.post('/api/game/show-question').get_json()
    assert shown['questionVisible'] is True

    # displays do not see the answer before it is revealed
    public = client.get('/api/game/state').get_json()
    assert 'correctAnswer' not in public['currentQuestion']
    assert public['currentQuestion']['text'] == 'Question 1?'

    host_client.post('/api/game/show-options')
    res = host_client.post('/api/game/select', json={'option': 'x'})
    assert res.status_code == 400
    assert res.get_json()['type'] == 'InvalidAnswerOption'
    host_client.post('/api/game/select', json={'option': 'b'})
    locked = host_client.post('/api/game/lock').get_json()
    assert locked['optionWasCorrect'] is True

    public = client.get('/api/game/state').get_json()
    assert public['currentQuestion']['correctAnswer'] == 'B'

    advanced = host_client.post('/api/game/advance').get_json()
    assert advanced['currentQuestionNumber'] == 2


def test_stale_observer_still_gets_fresh_transition(host_client):
    _create_team(host_client)
    _upload_set(host_client)
    host_client.post('/api/game/start')
    res = host_client.post('/api/game/show-question', json={'lastUpdated': 1})
    assert res.status_code == 200
    assert res.get_json()['lastUpdated'] > 1


def test_phone_lifeline_timer_flow(host_client, flask_app):
    _create_team(host_client)
    _upload_set(host_client)
    host_client.post('/api/game/start')
    host_client.post('/api/game/show-question')
    host_client.post('/api/game/show-options')

    assert host_client.post('/api/game/timer/start').status_code == 400
    state = host_client.post('/api/game/lifeline', json={'kind': 'phone'}).get_json()
    assert state['activeLifeline'] == 'phoneAFriend'

    view = host_client.post('/api/game/timer/start').get_json()
    assert view['state'] == 'running'
    assert view['display'] == '03:00'

    res = host_client.post('/api/game/timer/cancel').get_json()
    assert res['resolved'] is True
    assert res['gameState']['activeLifeline'] is None
    assert host_client.post('/api/game/timer/cancel').get_json()['resolved'] is False

    again = host_client.post('/api/game/lifeline', json={'kind': 'phone'})
    assert again.status_code == 400


def test_resume_endpoint_cancels_running_timer(host_client, flask_app):
    _create_team(host_client)
    _upload_set(host_client)
    host_client.post('/api/game/start')
    host_client.post('/api/game/show-question')
    host_client.post('/api/game/show-options')
    host_client.post('/api/game/lifeline', json={'kind': 'phone'})
    host_client.post('/api/game/timer/start')
    state = host_client.post('/api/game/resume').get_json()
    assert state['activeLifeline'] is None
    assert get_domain(flask_app).phone_timer.state == 'cancelled'


def test_team_crud_and_queue_protection(host_client):
    team = _create_team(host_client)
    res = host_client.put(f"/api/teams/{team['id']}", json={'name': 'Renamed Team'})
    assert res.get_json()['name'] == 'Renamed Team'
    assert host_client.put(f"/api/teams/{team['id']}", json={'contact': 'abc'}).status_code == 400

    _upload_set(host_client)
    host_client.post('/api/game/start')
    assert host_client.delete(f"/api/teams/{team['id']}").status_code == 409

    host_client.post('/api/game/uninitialize')
    assert host_client.delete(f"/api/teams/{team['id']}").status_code == 200
    assert host_client.get('/api/teams').get_json() == {}


def test_invalid_team_rejected(host_client):
    res = host_client.post('/api/teams', json={'name': 'X', 'participants': '', 'contact': ''})
    assert res.status_code == 400
    assert 'Participants is required' in res.get_json()['errors']


def test_prize_structure_locked_during_play(host_client):
    ladder = host_client.get('/api/prize-structure').get_json()
    assert len(ladder['prizes']) == 20
    assert ladder['levels'][4]['milestone'] is True
    assert ladder['levels'][0]['display'] == 'Rs. 500'

    res = host_client.put('/api/prize-structure', json={'prizes': list(range(20, 0, -1))})
    assert res.status_code == 400

    _create_team(host_client)
    _upload_set(host_client)
    host_client.post('/api/game/start')
    res = host_client.put('/api/prize-structure', json={'prizes': [100 * n for n in range(1, 21)]})
    assert res.status_code == 400


def test_question_set_upload_validation(host_client):
    bad = make_questions(2)
    bad[1]['correctAnswer'] = 'E'
    res = host_client.post('/api/questions/sets', json={'setId': 'bad', 'questions': bad})
    assert res.status_code == 400
    _upload_set(host_client, 'set-1')
    sets = host_client.get('/api/questions/sets').get_json()['sets']
    assert sets[0]['setId'] == 'set-1'
    assert sets[0]['availableLocally'] is True
    assert 'questions' not in sets[0]


def test_required_sets_report_after_restart(host_client, flask_app):
    _create_team(host_client)
    _upload_set(host_client)
    host_client.post('/api/game/start')
    get_domain(flask_app).bank.clear()
    data = host_client.get('/api/setup/required-sets').get_json()
    assert data['report']['missingSetIds'] == ['set-1']


def test_config_sync(client, host_client):
    assert client.post('/api/config/sync').get_json()['action'] == 'skipped'
    assert host_client.post('/api/config/sync').get_json()['action'] == 'no-change'


def test_config_sync_without_host_rights_is_skipped(client, flask_app):
    # outside a request the store accepts writes from anyone
    get_domain(flask_app).store.write('config/maxTeams', 3)
    client.post('/login', json={'username': 'guest', 'password': 'password'})
    data = client.post('/api/config/sync').get_json()
    assert data == {'success': True, 'action': 'skipped', 'reason': 'permission-denied'}


def test_config_sync_updates_drifted_config(host_client, flask_app):
    get_domain(flask_app).store.write('config/maxTeams', 3)
    data = host_client.post('/api/config/sync').get_json()
    assert data['action'] == 'updated'
    assert data['differences']['maxTeams'] == {'remote': 3, 'app': 10}


def test_host_state_includes_preview(host_client):
    team = _create_team(host_client)
    _upload_set(host_client)
    host_client.post('/api/game/start')
    data = host_client.get('/api/game/host-state').get_json()
    assert data['gameState']['currentQuestion'] is None
    assert data['currentTeamPrizes'] == {
        'teamId': team['id'], 'currentPrize': 0, 'nextPrize': 500, 'guaranteedPrize': 0,
    }
    assert data['requiredQuestionSets']['allFound'] is True
    assert data['sync']['isLoading'] is False
    assert data['playQueuePreview']
    assert team['id'] in data['gameState']['playQueue']


def test_complete_match(host_client):
    assert host_client.post('/api/game/complete').status_code == 400
    _create_team(host_client)
    _upload_set(host_client)
    host_client.post('/api/game/start')
    assert host_client.post('/api/game/complete').get_json()['gameStatus'] == 'completed'


def test_uploaded_set_is_trimmed_to_questions_per_set(host_client):
    meta = _upload_set(host_client, 'long', count=25)
    assert meta['totalQuestions'] == 20


def test_host_state_prizes_after_milestone(host_client):
    team = _create_team(host_client)
    _upload_set(host_client)
    host_client.post('/api/game/start')
    for _ in range(5):
        host_client.post('/api/game/show-question')
        host_client.post('/api/game/show-options')
        host_client.post('/api/game/select', json={'option': 'B'})
        host_client.post('/api/game/lock')
        host_client.post('/api/game/advance')
    prizes = host_client.get('/api/game/host-state').get_json()['currentTeamPrizes']
    assert prizes == {'teamId': team['id'], 'currentPrize': 2500, 'nextPrize': 3000, 'guaranteedPrize': 2500}
