import pytest

from quizhost import get_domain
from quizhost.errors import PermissionDenied, StaleWrite
from quizhost.store import InMemoryStore
from quizhost.store.sql import SqlStore


def test_read_write_nested_paths():
    store = InMemoryStore()
    assert store.read('teams') is None
    store.write('teams/t1', {'name': 'One', 'lifelinesUsed': {'phoneAFriend': False}})
    assert store.read('teams/t1/name') == 'One'
    assert store.read('teams/t1/lifelinesUsed/phoneAFriend') is False
    assert store.read('teams/t2/name') is None


def test_writing_none_deletes():
    store = InMemoryStore()
    store.write('teams/t1', {'name': 'One'})
    store.write('teams/t1/name', None)
    assert store.read('teams/t1') is None
    assert store.read('teams') is None


def test_multi_path_update_is_delivered_once_per_subscriber():
    store = InMemoryStore()
    seen = []
    store.subscribe('game-state', seen.append)
    store.update({'game-state/questionVisible': True, 'game-state/currentQuestionNumber': 2})
    assert seen == [None, {'questionVisible': True, 'currentQuestionNumber': 2}]


def test_conditional_update_rejects_mismatch():
    store = InMemoryStore({'game-state': {'lastUpdated': 5}})
    with pytest.raises(StaleWrite) as excinfo:
        store.update({'game-state/lastUpdated': 7}, condition=('game-state/lastUpdated', 4))
    assert excinfo.value.details == {'expected': 4, 'actual': 5}
    store.update({'game-state/lastUpdated': 7}, condition=('game-state/lastUpdated', 5))
    assert store.read('game-state/lastUpdated') == 7


def test_subscription_scope_and_unsubscribe():
    store = InMemoryStore()
    team_values, config_values = [], []
    team_sub = store.subscribe('teams/t1', team_values.append)
    store.subscribe('config', config_values.append)
    store.write('teams', {'t1': {'name': 'One'}, 't2': {'name': 'Two'}})
    store.write('teams/t2/name', 'Deux')
    # sibling team writes do not reach a subscriber scoped to t1
    assert team_values == [None, {'name': 'One'}]
    assert config_values == [None]

    team_sub.unsubscribe()
    team_sub.unsubscribe()
    store.write('teams/t1/name', 'Uno')
    assert len(team_values) == 2
    assert store.subscriber_count() == 1


def test_failing_listener_does_not_affect_siblings():
    store = InMemoryStore()
    seen = []

    def broken(value):
        raise RuntimeError('listener bug')

    store.subscribe('config', broken)
    store.subscribe('config', seen.append)
    store.write('config/maxTeams', 8)
    assert seen == [None, {'maxTeams': 8}]


def test_delivered_values_are_copies():
    store = InMemoryStore({'teams': {'t1': {'name': 'One'}}})
    seen = []
    store.subscribe('teams', seen.append)
    seen[0]['t1']['name'] = 'mutated'
    assert store.read('teams/t1/name') == 'One'


def test_authorizer_blocks_writes():
    def deny(paths):
        raise PermissionDenied('read only', paths=paths)

    store = InMemoryStore({'config': {'maxTeams': 10}}, authorizer=deny)
    with pytest.raises(PermissionDenied):
        store.write('config/maxTeams', 3)
    assert store.read('config/maxTeams') == 10


def test_sql_store_round_trip(flask_app):
    store = SqlStore(flask_app)
    seen = []
    store.subscribe('game-state', seen.append)
    store.update({'game-state/gameStatus': 'not-started', 'game-state/lastUpdated': 1, 'teams/t1/name': 'One'})
    assert store.read('game-state') == {'gameStatus': 'not-started', 'lastUpdated': 1}
    assert store.read('teams/t1/name') == 'One'
    with pytest.raises(StaleWrite):
        store.update({'game-state/lastUpdated': 3}, condition=('game-state/lastUpdated', 2))
    assert seen[-1] == {'gameStatus': 'not-started', 'lastUpdated': 1}
    assert store.versions() == {'game-state': 1, 'teams': 1}


def test_app_uses_memory_store_in_tests(flask_app):
    assert isinstance(get_domain(flask_app).store, InMemoryStore)
