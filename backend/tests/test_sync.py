import pytest

from hundred.services.rooms import RoomError


def _started_room(registry, membership, sync):
    room = registry.create_room('sid-alice', 'Alice')
    membership.add_player(room.code, 'sid-bob', 'Bob')
    assert sync.start_game(room.code, 'sid-alice', {'version': 0, 'deck': [5, 6]}).ok
    return room


def test_host_starts_game(registry, membership, sync):
    room = registry.create_room('sid-alice', 'Alice')
    membership.add_player(room.code, 'sid-bob', 'Bob')
    result = sync.start_game(room.code, 'sid-alice', {'version': 0, 'currentPlayer': 0})
    assert result.ok
    assert room.started is True
    assert room.num_players == 2
    assert room.game_state == {'version': 0, 'currentPlayer': 0}
    assert result.version == 0


def test_non_host_cannot_start(registry, membership, sync):
    room = registry.create_room('sid-alice', 'Alice')
    membership.add_player(room.code, 'sid-bob', 'Bob')
    result = sync.start_game(room.code, 'sid-bob', {'version': 0})
    assert result.error is RoomError.NOT_HOST
    assert room.started is False
    assert room.game_state is None
    assert room.num_players is None


def test_start_unknown_room(sync):
    assert sync.start_game('QQQQQQ', 'sid', {}).error is RoomError.NOT_FOUND


def test_start_without_host_seat_is_rejected(registry, membership, sync):
    room = registry.create_room('sid-alice', 'Alice')
    membership.add_player(room.code, 'sid-bob', 'Bob')
    membership.remove_player(room.code, 'sid-alice')
    assert sync.start_game(room.code, 'sid-bob', {}).error is RoomError.NOT_HOST


def test_first_action_without_base_version_gets_version_one(registry, membership, sync):
    room = registry.create_room('sid-alice', 'Alice')
    sync.start_game(room.code, 'sid-alice', None)
    result = sync.apply_action(room.code, {'currentPlayer': 1})
    assert result.version == 1
    assert room.game_state == {'currentPlayer': 1, 'version': 1}


def test_versions_increase_by_one_regardless_of_payload(registry, membership, sync):
    room = _started_room(registry, membership, sync)
    versions = [sync.apply_action(room.code, {'version': claimed}).version for claimed in (0, 99, 1, None)]
    assert versions == [1, 2, 3, 4]
    assert room.game_state['version'] == 4


def test_stale_concurrent_actions_last_write_wins(registry, membership, sync):
    room = _started_room(registry, membership, sync)
    base = dict(room.game_state)
    first = sync.apply_action(room.code, dict(base, played='alice'))
    second = sync.apply_action(room.code, dict(base, played='bob'))
    assert (first.version, second.version) == (1, 2)
    assert room.game_state['played'] == 'bob'
    assert room.game_state['version'] == 2


def test_submitted_state_is_not_mutated(registry, membership, sync):
    room = _started_room(registry, membership, sync)
    proposed = {'version': 0, 'piles': [1]}
    sync.apply_action(room.code, proposed)
    assert proposed['version'] == 0
    assert room.game_state is not proposed


def test_action_errors(registry, sync):
    assert sync.apply_action('QQQQQQ', {}).error is RoomError.NOT_FOUND
    room = registry.create_room('sid', 'A')
    assert sync.apply_action(room.code, None).error is RoomError.INVALID_STATE
    assert sync.apply_action(room.code, [1, 2]).error is RoomError.INVALID_STATE
    assert room.game_state is None


@pytest.mark.parametrize('version', ['0', 0.5, -1, True, [0]])
def test_start_rejects_malformed_version(registry, membership, sync, version):
    room = registry.create_room('sid-alice', 'Alice')
    result = sync.start_game(room.code, 'sid-alice', {'version': version})
    assert result.error is RoomError.INVALID_STATE
    assert room.started is False
    assert room.game_state is None
    assert room.num_players is None


def test_start_without_version_field_is_accepted(registry, sync):
    room = registry.create_room('sid-alice', 'Alice')
    result = sync.start_game(room.code, 'sid-alice', {'deck': [2, 3]})
    assert result.ok
    assert result.version is None
    assert sync.apply_action(room.code, {'deck': [3]}).version == 1


@pytest.mark.parametrize('stored', ['3', 0.5, None, False, -4, {'n': 1}])
def test_malformed_stored_version_counts_as_zero(registry, sync, stored):
    room = registry.create_room('sid-alice', 'Alice')
    room.started = True
    room.game_state = {'version': stored, 'pile': 7}
    result = sync.apply_action(room.code, {'pile': 8})
    assert result.ok
    assert result.version == 1
    assert sync.apply_action(room.code, {'pile': 9}).version == 2


def test_non_object_stored_state_counts_as_zero(registry, sync):
    room = registry.create_room('sid-alice', 'Alice')
    room.started = True
    room.game_state = ['restored', 'oddly']
    assert sync.apply_action(room.code, {'pile': 8}).version == 1
