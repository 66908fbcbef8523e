import copy

from conftest import APP_CONFIG
from quizhost.constants import CONFIG
from quizhost.errors import PermissionDenied, StoreUnavailable
from quizhost.services.config_sync import compare_configs, get_current_app_config, sync_config_with_store
from quizhost.store import InMemoryStore


class Identity:
    username = 'host'


def test_compare_is_reflexive():
    config = get_current_app_config(APP_CONFIG)
    assert compare_configs(config, copy.deepcopy(config)) == {'isDifferent': False, 'differences': {}}


def test_compare_detects_scalar_and_nested_changes():
    app = get_current_app_config(APP_CONFIG)
    remote = copy.deepcopy(app)
    remote['questionsPerTeam'] = 15
    remote['lifelinesEnabled']['fiftyFifty'] = False
    result = compare_configs(remote, app)
    assert result['isDifferent'] is True
    assert set(result['differences']) == {'questionsPerTeam', 'lifelinesEnabled'}
    assert result['differences']['questionsPerTeam'] == {'remote': 15, 'app': 20}


def test_sync_skips_without_identity():
    store = InMemoryStore()
    result = sync_config_with_store(store, APP_CONFIG, None)
    assert result == {'success': True, 'action': 'skipped', 'reason': 'not-authenticated'}
    assert store.read(CONFIG) is None


def test_sync_initializes_then_reports_no_change():
    store = InMemoryStore()
    first = sync_config_with_store(store, APP_CONFIG, Identity())
    assert first['action'] == 'initialized'
    assert store.read(CONFIG) == get_current_app_config(APP_CONFIG)
    assert sync_config_with_store(store, APP_CONFIG, Identity())['action'] == 'no-change'


def test_sync_overwrites_remote_with_app_config():
    store = InMemoryStore()
    stale = get_current_app_config(APP_CONFIG)
    stale['maxTeams'] = 3
    store.write(CONFIG, stale)
    result = sync_config_with_store(store, APP_CONFIG, Identity())
    assert result['action'] == 'updated'
    assert result['differences']['maxTeams'] == {'remote': 3, 'app': 10}
    assert store.read(f'{CONFIG}/maxTeams') == 10


def test_permission_denied_is_a_skip():
    def deny(paths):
        raise PermissionDenied('nope')

    store = InMemoryStore(authorizer=deny)
    result = sync_config_with_store(store, APP_CONFIG, Identity())
    assert result == {'success': True, 'action': 'skipped', 'reason': 'permission-denied'}


def test_store_failure_is_reported():
    class BrokenStore(InMemoryStore):
        def _load(self, partitions):
            raise StoreUnavailable('offline')

    result = sync_config_with_store(BrokenStore(), APP_CONFIG, Identity())
    assert result['success'] is False
    assert result['action'] == 'error'
