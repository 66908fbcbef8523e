from quizhost.constants import GAME_STATE, PARTITIONS, GameStatus
from quizhost.errors import PermissionDenied, StoreUnavailable
from quizhost.services.sync import SynchronizationLayer
from quizhost.store import InMemoryStore


def test_loading_until_every_partition_delivers():
    store = InMemoryStore()
    sync = SynchronizationLayer(store)
    assert sync.is_loading is True
    sync.attach()
    # absent partitions still count as delivered
    assert sync.is_loading is False
    assert sync.snapshot() == {p: None for p in PARTITIONS}


def test_changes_reach_listeners_with_full_snapshot(store):
    sync = SynchronizationLayer(store)
    sync.attach()
    seen = []
    remove = sync.add_listener(lambda partition, snapshot: seen.append((partition, snapshot[partition])))
    store.write('config/maxTeams', 4)
    assert seen[-1][0] == 'config'
    assert seen[-1][1]['maxTeams'] == 4

    remove()
    store.write('config/maxTeams', 5)
    assert len(seen) == 1
    assert sync.value('config')['maxTeams'] == 5


def test_reconnect_does_not_duplicate_delivery(store):
    sync = SynchronizationLayer(store)
    sync.attach()
    sync.attach()
    sync.reconnect()
    assert store.subscriber_count() == len(PARTITIONS)
    seen = []
    sync.add_listener(lambda partition, snapshot: seen.append(partition))
    store.write('teams/t1/name', 'One')
    assert seen == ['teams']


def test_detach_is_idempotent_and_total(store):
    sync = SynchronizationLayer(store)
    sync.attach()
    sync.detach()
    sync.detach()
    assert store.subscriber_count() == 0
    seen = []
    sync.add_listener(lambda partition, snapshot: seen.append(partition))
    store.write('teams/t1/name', 'One')
    assert seen == []
    assert sync.attached is False


def test_in_flight_callback_after_teardown_is_ignored(store):
    sync = SynchronizationLayer(store)
    sync.attach()
    stale_generation = sync._generation
    sync.detach()
    sync._on_value(stale_generation, GAME_STATE, {'gameStatus': 'completed'})
    assert sync.game_state['gameStatus'] == GameStatus.NOT_STARTED


class FlakyStore(InMemoryStore):
    """Fails reads of one partition."""

    def __init__(self, failing, exc):
        super().__init__()
        self.failing = failing
        self.exc = exc

    def read(self, path):
        if path.split('/')[0] == self.failing:
            raise self.exc
        return super().read(path)


def test_transport_error_is_per_partition():
    store = FlakyStore('teams', StoreUnavailable('teams offline'))
    sync = SynchronizationLayer(store)
    sync.attach()
    assert sync.errors == {'teams': 'teams offline'}
    assert sync.is_loading is True

    store.write('config/maxTeams', 6)
    assert sync.value('config') == {'maxTeams': 6}
    assert 'teams' in sync.errors


def test_permission_denied_counts_as_absent():
    store = FlakyStore('allowed-hosts', PermissionDenied('hidden'))
    sync = SynchronizationLayer(store)
    sync.attach()
    assert sync.errors == {}
    assert sync.is_loading is False
    assert sync.value('allowed-hosts') is None


def test_required_question_sets_only_after_start(store):
    sync = SynchronizationLayer(store)
    sync.attach()
    assert sync.required_question_sets_report(['set-1']) is None
    store.update({
        'game-state/gameStatus': GameStatus.IN_PROGRESS,
        'game-state/questionSetAssignments': {'t1': 'set-1', 't2': 'set-9'},
    })
    report = sync.required_question_sets_report(['set-1'])
    assert report['missingSetIds'] == ['set-9']
    assert report['allFound'] is False
