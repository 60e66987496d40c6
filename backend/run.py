import signal
import sys

from hundred import create_app, socketio
from hundred.services.rooms.scheduler import start_expiry_sweeper

app = create_app()
_flushed = False


def _shutdown(signum=None, frame=None):
    global _flushed
    if _flushed:
        return
    _flushed = True
    app.logger.info('[shutdown] saving rooms before exit')
    app.extensions['rooms'].flush()
    if signum is not None:
        sys.exit(0)


if __name__ == '__main__':
    signal.signal(signal.SIGTERM, _shutdown)
    start_expiry_sweeper(app)
    try:
        # Use SocketIO server to enable websockets in dev
        socketio.run(app, host='0.0.0.0', port=app.config['PORT'], allow_unsafe_werkzeug=True)
    except KeyboardInterrupt:
        pass
    finally:
        _shutdown()
