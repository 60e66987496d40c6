import time
from typing import List, Optional

from hundred import socketio


def sweep_expired_rooms(app, now: Optional[float] = None) -> List[str]:
    """Delete every room past its lifetime, in memory and in the store."""
    services = app.extensions['rooms']
    removed = []
    for code in services.registry.expired_room_codes(now):
        with services.registry.locked(code):
            if services.registry.delete_room(code):
                services.store.delete(code)
                removed.append(code)
    if removed:
        app.logger.info(f"[sweep] removed={len(removed)} codes={','.join(removed)}")
    return removed


def start_expiry_sweeper(app) -> bool:
    """Run ``sweep_expired_rooms`` on a fixed interval in a background task.

    - No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set
    - Returns True when the task was started
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return False

    interval = int(app.config.get('ROOM_SWEEP_INTERVAL_SEC', 600))

    def _worker():
        while True:
            socketio.sleep(interval)
            try:
                sweep_expired_rooms(app, time.time())
            except Exception as exc:
                app.logger.error(f"[sweep-error] {exc}")

    app.logger.info(f"[sweep-start] interval={interval}s")
    socketio.start_background_task(_worker)
    return True
