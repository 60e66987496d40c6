import os


def _allowed_origins():
    origins = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:5174",
        "http://127.0.0.1:5174",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    client_url = os.environ.get('CLIENT_URL')
    if client_url and client_url not in origins:
        origins.append(client_url)
    return origins


def _engine_options():
    sslmode = os.environ.get('DATABASE_SSLMODE')
    if sslmode:
        return {'connect_args': {'sslmode': sslmode}}
    return {}


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    PORT = int(os.environ.get('PORT', '3001'))
    CLIENT_URL = os.environ.get('CLIENT_URL')
    ALLOWED_ORIGINS = _allowed_origins()
    # Persistence is disabled when no database is configured
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL')
    SQLALCHEMY_ENGINE_OPTIONS = _engine_options()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Room expiry (seconds since creation) and sweep cadence
    ROOM_LIFETIME_SEC = int(os.environ.get('ROOM_LIFETIME_SEC', str(3 * 60 * 60)))
    ROOM_SWEEP_INTERVAL_SEC = int(os.environ.get('ROOM_SWEEP_INTERVAL_SEC', '600'))
    # Honour numPlayers from create-room as a hard seat limit
    ENFORCE_DECLARED_CAPACITY = os.environ.get('ENFORCE_DECLARED_CAPACITY', '0') == '1'
    # Snapshot writes: extra attempts after the first failure
    PERSISTENCE_RETRIES = int(os.environ.get('PERSISTENCE_RETRIES', '2'))
    PERSISTENCE_RETRY_DELAY_SEC = float(os.environ.get('PERSISTENCE_RETRY_DELAY_SEC', '0.5'))
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
