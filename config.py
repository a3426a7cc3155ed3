import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Persistence is optional; without DATABASE_URL every query reports "not configured"
    DATABASE_URL = os.environ.get('DATABASE_URL')
    SQLALCHEMY_DATABASE_URI = DATABASE_URL or 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    QUIZ_DB_CONFIGURED = bool(DATABASE_URL)
    # Round dwell times (seconds). Active is nominally a fixed 15; it still
    # reads the environment like every other *_DURATION_SEC setting.
    ACTIVE_DURATION_SEC = int(os.environ.get('ACTIVE_DURATION_SEC', '15'))
    CLOSED_DURATION_SEC = int(os.environ.get('CLOSED_DURATION_SEC', '5'))
    RESULT_DURATION_SEC = int(os.environ.get('RESULT_DURATION_SEC', '5'))
    # Keep-alive interval for push transports (sec)
    STREAM_HEARTBEAT_SEC = int(os.environ.get('STREAM_HEARTBEAT_SEC', '30'))
    # Number of cells on a bingo card
    CARD_SIZE = int(os.environ.get('CARD_SIZE', '25'))
    # Admin HTTP Basic credentials
    ADMIN_USER = os.environ.get('ADMIN_USER') or 'admin'
    ADMIN_PASS = os.environ.get('ADMIN_PASS') or 'password'
    CORS_ORIGINS = [
        o.strip() for o in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173',
        ).split(',') if o.strip()
    ]
