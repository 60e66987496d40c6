import json

from sqlalchemy.exc import SQLAlchemyError

from conftest import NoPersistenceConfig, TestConfig
from hundred import create_app, db
from hundred.models import RoomSnapshot


def test_save_upserts_snapshot(flask_app, services):
    room = services.registry.create_room('sid-alice', 'Alice', hand_size=5)
    services.store.save(room)
    room.started = True
    room.game_state = {'version': 1}
    services.store.save(room)

    rows = RoomSnapshot.query.filter_by(code=room.code).all()
    assert len(rows) == 1
    data = rows[0].to_dict()
    assert 'id' not in data
    assert data['code'] == room.code
    assert data['handSize'] == 5
    assert data['started'] is True
    assert data['gameState'] == {'version': 1}
    assert data['players'][0]['name'] == 'Alice'


def test_snapshot_is_taken_at_save_time(flask_app, services, monkeypatch):
    pending = []
    monkeypatch.setattr(services.store, '_dispatch', lambda fn, *args: pending.append((fn, args)))
    room = services.registry.create_room('sid-alice', 'Alice')
    services.store.save(room)
    room.started = True
    for fn, args in pending:
        fn(*args)
    assert json.loads(RoomSnapshot.query.filter_by(code=room.code).first().payload)['started'] is False


def test_delete_and_load_all(flask_app, services):
    keep = services.registry.create_room('s1', 'A')
    drop = services.registry.create_room('s2', 'B')
    services.store.save(keep)
    services.store.save(drop)
    services.store.delete(drop.code)
    loaded = services.store.load_all()
    assert [r.code for r in loaded] == [keep.code]
    assert loaded[0].players[0].name == 'A'


def test_undecodable_snapshot_is_skipped(flask_app, services):
    db.session.add(RoomSnapshot(code='BROKEN', payload='{not json'))
    db.session.commit()
    good = services.registry.create_room('s1', 'A')
    services.store.save(good)
    assert [r.code for r in services.store.load_all()] == [good.code]


def test_write_failure_is_logged_and_swallowed(flask_app, services, monkeypatch, caplog):
    def boom():
        raise SQLAlchemyError('database is down')

    monkeypatch.setattr(db.session, 'commit', boom)
    room = services.registry.create_room('s1', 'A')
    services.store.save(room)
    assert services.store._write_snapshot(room.code, '{}') is False
    assert '[persist-retry]' in caplog.text
    assert '[persist-error]' in caplog.text


def test_flush_saves_every_room(flask_app, services):
    for i in range(3):
        services.registry.create_room(f's{i}', f'P{i}')
    assert services.flush() == 3
    assert RoomSnapshot.query.count() == 3


def test_rooms_restored_on_startup(tmp_path):
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'rooms.db'}"

    first = create_app(FileConfig)
    with first.app_context():
        db.create_all()
    services = first.extensions['rooms']
    room = services.registry.create_room('sid-alice', 'Alice', max_card=50)
    services.sync.start_game(room.code, 'sid-alice', {'version': 0})
    services.sync.apply_action(room.code, {'pile': 7})
    services.store.save(room)

    second = create_app(FileConfig)
    restored = second.extensions['rooms'].registry.get_room(room.code)
    assert restored is not None
    assert restored.max_card == 50
    assert restored.started is True
    assert restored.num_players == 1
    assert restored.game_state == {'pile': 7, 'version': 1}
    assert abs(restored.created_at - room.created_at) < 0.001


def test_missing_table_starts_empty(tmp_path):
    class EmptyConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'empty.db'}"

    application = create_app(EmptyConfig)
    assert len(application.extensions['rooms'].registry) == 0


def test_without_database_persistence_is_a_no_op():
    application = create_app(NoPersistenceConfig)
    services = application.extensions['rooms']
    assert services.store.enabled is False
    room = services.registry.create_room('s1', 'A')
    services.store.save(room)
    services.store.delete(room.code)
    assert services.store.load_all() == []
    assert services.flush() == 0
