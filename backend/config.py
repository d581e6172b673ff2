import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///oche.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # How long clients keep a finished turn on screen before showing the next player (seconds).
    # Presentation only: the engine hands the turn over immediately.
    TURN_COMPLETE_DISPLAY_SEC = int(os.environ.get('TURN_COMPLETE_DISPLAY_SEC', '2'))
    # Maximum number of matches returned by /api/matches/active
    ACTIVE_MATCHES_LIMIT = int(os.environ.get('ACTIVE_MATCHES_LIMIT', '10'))
    # Maximum number of sessions returned by /api/practice/history
    PRACTICE_HISTORY_LIMIT = int(os.environ.get('PRACTICE_HISTORY_LIMIT', '50'))
