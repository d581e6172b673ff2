"""Persistence: match and practice snapshots stored as JSON blobs.

The engine never touches the database. Routes load a snapshot, run one
engine transition and save the result while holding the match lock.
"""

import json
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from flask import current_app

from oche import db
from oche.models import Match, Practice, utcnow
from .engine import start_match
from .practice import PracticeSession, start_practice
from .state import MatchState

ENDED_STATUSES = ('abandoned', 'completed')

_match_locks: Dict[str, threading.Lock] = {}
_locks_guard = threading.Lock()


@contextmanager
def match_lock(match_code: str):
    """Serialize read-apply-write cycles for a single match."""
    with _locks_guard:
        lock = _match_locks.setdefault(match_code, threading.Lock())
    with lock:
        yield


def practice_lock(session_id: str):
    return match_lock(f"practice:{session_id}")


def _commit() -> None:
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def create_match(mode: str, players: Iterable[Mapping[str, Any]]) -> Tuple[Match, MatchState]:
    state = start_match(mode, players)
    match = Match(
        mode=mode,
        status='active',
        players=json.dumps([{'id': p.id, 'name': p.name} for p in state.players]),
        current_state=json.dumps(state.to_dict()),
    )
    db.session.add(match)
    _commit()
    current_app.logger.info(
        f"[match-create] match={match.match_code} mode={mode} players={len(state.players)}"
    )
    return match, state


def load_state(match: Match) -> MatchState:
    return MatchState.from_dict(json.loads(match.current_state))


def save_state(match: Match, state: MatchState) -> None:
    match.current_state = json.dumps(state.to_dict())
    winner = state.winner
    if winner is not None:
        match.status = 'completed'
        match.winner_name = winner.name
        match.finished_at = match.finished_at or utcnow()
    else:
        # Undo may revive a completed match
        match.status = 'active'
        match.winner_name = None
        match.finished_at = None
    db.session.add(match)
    _commit()


def list_active(limit: int) -> List[Match]:
    return (
        Match.query.filter_by(status='active')
        .order_by(Match.started_at.desc(), Match.id.desc())
        .limit(limit)
        .all()
    )


def _forget_lock(match_code: str) -> None:
    # Late callers get a fresh lock; closed matches reject every write
    with _locks_guard:
        _match_locks.pop(match_code, None)


def end_match(match: Match, status: str = 'abandoned') -> None:
    if status not in ENDED_STATUSES:
        raise ValueError(f"Cannot end a match with status {status!r}")
    match.status = status
    match.finished_at = utcnow()
    db.session.add(match)
    _commit()
    if match.is_closed:
        _forget_lock(match.match_code)
    current_app.logger.info(f"[match-end] match={match.match_code} status={status}")


def delete_match(match: Match) -> None:
    code = match.match_code
    db.session.delete(match)
    _commit()
    _forget_lock(code)
    current_app.logger.info(f"[match-delete] match={code}")


def create_practice(
    mode: str, settings: Optional[Dict[str, Any]], player_name: Optional[str] = None
) -> Tuple[Practice, PracticeSession]:
    session = start_practice(mode, settings)
    practice = Practice(
        session_id=session.id,
        player_name=player_name,
        mode=mode,
        current_state=json.dumps(session.to_dict()),
    )
    db.session.add(practice)
    _commit()
    current_app.logger.info(f"[practice-start] session={session.id} mode={mode}")
    return practice, session


def load_practice(practice: Practice) -> PracticeSession:
    return PracticeSession.from_dict(json.loads(practice.current_state))


def save_practice(practice: Practice, session: PracticeSession) -> None:
    practice.current_state = json.dumps(session.to_dict())
    practice.completed = session.completed
    if session.ended_at and practice.ended_at is None:
        practice.ended_at = utcnow()
    db.session.add(practice)
    _commit()
    if session.is_ended:
        _forget_lock(f"practice:{practice.session_id}")


def recent_practice(limit: int, player_name: Optional[str] = None) -> List[Practice]:
    query = Practice.query
    if player_name:
        query = query.filter_by(player_name=player_name)
    return query.order_by(Practice.started_at.desc(), Practice.id.desc()).limit(limit).all()
