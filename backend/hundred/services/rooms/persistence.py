"""Best-effort room snapshots in the configured database.

Writes never block gameplay: the snapshot is taken immediately and written
from a background task. Failures are retried, logged and dropped. With no
database configured every call is a no-op.
"""

import json
from typing import Iterable, List

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from hundred import db, socketio
from hundred.models import RoomSnapshot
from .state import Room


class RoomStore:

    def __init__(self, app):
        self.app = app
        self.enabled = bool(app.config.get('SQLALCHEMY_DATABASE_URI'))
        self.retries = int(app.config.get('PERSISTENCE_RETRIES', 2))
        self.retry_delay = float(app.config.get('PERSISTENCE_RETRY_DELAY_SEC', 0.5))

    # ---- fire-and-forget API used on the gameplay path ----

    def save(self, room: Room) -> None:
        if not self.enabled:
            return
        # encoded now so later mutations of the room cannot leak into this write
        self._dispatch(self._write_snapshot, room.code, json.dumps(room.to_dict()))

    def delete(self, code: str) -> None:
        if not self.enabled:
            return
        self._dispatch(self._delete_snapshot, code)

    # ---- synchronous API used at start-up and shutdown ----

    def load_all(self) -> List[Room]:
        if not self.enabled:
            return []
        rooms = []
        with self.app.app_context():
            try:
                if not inspect(db.engine).has_table(RoomSnapshot.__tablename__):
                    self.app.logger.warning("[persist-load] room_snapshot table missing; run `flask db upgrade`")
                    return []
                snapshots = RoomSnapshot.query.all()
            except SQLAlchemyError as exc:
                db.session.rollback()
                self.app.logger.error(f"[persist-error] op=load_all error={exc}")
                return []
            for snapshot in snapshots:
                try:
                    rooms.append(Room.from_dict(snapshot.to_dict()))
                except (ValueError, KeyError, TypeError) as exc:
                    self.app.logger.warning(f"[persist-skip] code={snapshot.code} undecodable snapshot: {exc}")
        self.app.logger.info(f"[persist-load] rooms={len(rooms)}")
        return rooms

    def save_all(self, rooms: Iterable[Room]) -> int:
        if not self.enabled:
            return 0
        saved = 0
        for room in rooms:
            if self._write_snapshot(room.code, json.dumps(room.to_dict())):
                saved += 1
        self.app.logger.info(f"[persist-flush] rooms={saved}")
        return saved

    # ---- internals ----

    def _dispatch(self, fn, *args) -> None:
        if self.app.config.get('TESTING'):
            fn(*args)
            return
        try:
            socketio.start_background_task(fn, *args)
        except RuntimeError:
            fn(*args)

    def _with_retries(self, op: str, code: str, work) -> bool:
        attempts = 1 + max(0, self.retries)
        with self.app.app_context():
            for attempt in range(1, attempts + 1):
                try:
                    work()
                    db.session.commit()
                    return True
                except Exception as exc:
                    db.session.rollback()
                    if attempt < attempts:
                        self.app.logger.warning(
                            f"[persist-retry] op={op} code={code} attempt={attempt}/{attempts} error={exc}"
                        )
                        socketio.sleep(self.retry_delay)
                    else:
                        self.app.logger.error(f"[persist-error] op={op} code={code} error={exc}")
        return False

    def _write_snapshot(self, code: str, payload: str) -> bool:
        def upsert():
            snapshot = RoomSnapshot.query.filter_by(code=code).first()
            if snapshot is None:
                snapshot = RoomSnapshot(code=code)
            snapshot.set_payload(payload)
            db.session.add(snapshot)

        return self._with_retries('save', code, upsert)

    def _delete_snapshot(self, code: str) -> bool:
        def remove():
            RoomSnapshot.query.filter_by(code=code).delete()

        ok = self._with_retries('delete', code, remove)
        if ok:
            self.app.logger.info(f"[persist-delete] code={code}")
        return ok
