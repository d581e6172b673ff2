from oche import db
from datetime import datetime, timezone
import json
import string
import random

MATCH_STATUSES = ('active', 'completed', 'abandoned')


def utcnow():
    return datetime.now(timezone.utc)


def generate_match_code(length=6):
    """Generate a unique, short match code."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if not Match.query.filter_by(match_code=code).first():
            return code


class Match(db.Model):
    __tablename__ = 'dart_match'
    id = db.Column(db.Integer, primary_key=True)
    match_code = db.Column(db.String(6), unique=True, index=True)
    mode = db.Column(db.String(32), nullable=False)
    status = db.Column(db.String(32), default='active', nullable=False) # active, completed, abandoned
    players = db.Column(db.Text, nullable=False)  # JSON-encoded list of {id, name}
    current_state = db.Column(db.Text, nullable=False)  # JSON-encoded MatchState snapshot
    winner_name = db.Column(db.String(64), nullable=True)
    started_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    finished_at = db.Column(db.DateTime(timezone=True), nullable=True)

    def __init__(self, **kwargs):
        super(Match, self).__init__(**kwargs)
        if not self.match_code:
            self.match_code = generate_match_code()

    @property
    def is_closed(self):
        """Ended by hand rather than by a win: no further darts or undos."""
        return self.status == 'abandoned' or (self.status == 'completed' and not self.winner_name)

    def to_dict(self):
        return {
            'id': self.id,
            'match_code': self.match_code,
            'mode': self.mode,
            'status': self.status,
            'players': json.loads(self.players) if self.players else [],
            'winner': self.winner_name,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'finished_at': self.finished_at.isoformat() if self.finished_at else None,
        }


class Practice(db.Model):
    __tablename__ = 'practice_session'
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.String(32), unique=True, index=True, nullable=False)
    player_name = db.Column(db.String(64), nullable=True)
    mode = db.Column(db.String(32), nullable=False)
    current_state = db.Column(db.Text, nullable=False)  # JSON-encoded PracticeSession
    completed = db.Column(db.Boolean, default=False, nullable=False)
    started_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    ended_at = db.Column(db.DateTime(timezone=True), nullable=True)

    @property
    def is_ended(self):
        return self.ended_at is not None

    def to_dict(self):
        return {
            'id': self.id,
            'session_id': self.session_id,
            'player_name': self.player_name,
            'mode': self.mode,
            'completed': self.completed,
            'started_at': self.started_at.isoformat() if self.started_at else None,
            'ended_at': self.ended_at.isoformat() if self.ended_at else None,
        }
