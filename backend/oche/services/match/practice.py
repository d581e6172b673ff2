"""Solo practice drills.

A drill is a single player throwing at the board with hit/miss bookkeeping
instead of a match score. Sessions are plain data like ``MatchState`` and
every operation returns a new session.
"""

import copy
import random
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .checkout import MAX_CHECKOUT, suggest_checkout
from .engine import validate_throw
from .errors import InvalidConfigurationError, InvalidThrowError, TerminalMatchError
from .modes import GAME_MODES, CRICKET
from .state import BULL, DARTS_PER_TURN, Dart, dart_score

TARGET = 'target'
CHECKOUT = 'checkout'
FREE_PLAY = 'freePlay'
AROUND_THE_CLOCK = 'aroundTheClock'
CRICKET_PRACTICE = 'cricket'

PRACTICE_MODES: Dict[str, Dict[str, str]] = {
    TARGET: {
        'name': 'Target Practice',
        'description': 'Practice hitting specific numbers or segments',
    },
    CHECKOUT: {
        'name': 'Checkout Practice',
        'description': 'Practice finishing from specific scores',
    },
    FREE_PLAY: {
        'name': 'Free Play',
        'description': 'Throw freely without constraints',
    },
    AROUND_THE_CLOCK: {
        'name': 'Around the Clock',
        'description': 'Hit numbers in sequence from 1-20, then the bull',
    },
    CRICKET_PRACTICE: {
        'name': 'Cricket Practice',
        'description': 'Practice cricket targets (20-15, Bull)',
    },
}

# Drawn from when a checkout drill has no fixed starting score
CHECKOUT_DRILL_SCORES = (170, 167, 164, 161, 160, 158, 157, 156, 155, 154, 153, 152, 151, 150)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='seconds')


@dataclass
class PracticeStats:
    total_throws: int = 0
    hits: int = 0
    misses: int = 0
    accuracy: float = 0
    average_score: float = 0
    highest_score: int = 0
    total_score: int = 0
    target_hits: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_throws': self.total_throws,
            'hits': self.hits,
            'misses': self.misses,
            'accuracy': self.accuracy,
            'average_score': self.average_score,
            'highest_score': self.highest_score,
            'total_score': self.total_score,
            'target_hits': dict(self.target_hits),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'PracticeStats':
        data = data or {}
        return cls(
            total_throws=int(data.get('total_throws') or 0),
            hits=int(data.get('hits') or 0),
            misses=int(data.get('misses') or 0),
            accuracy=data.get('accuracy') or 0,
            average_score=data.get('average_score') or 0,
            highest_score=int(data.get('highest_score') or 0),
            total_score=int(data.get('total_score') or 0),
            target_hits=dict(data.get('target_hits') or {}),
        )


@dataclass
class CheckoutAttempt:
    starting_score: int
    remaining_score: int
    darts: List[Dart] = field(default_factory=list)
    completed: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'starting_score': self.starting_score,
            'remaining_score': self.remaining_score,
            'darts': [d.to_dict() for d in self.darts],
            'completed': self.completed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CheckoutAttempt':
        return cls(
            starting_score=int(data['starting_score']),
            remaining_score=int(data['remaining_score']),
            darts=[Dart.from_dict(d) for d in data.get('darts') or []],
            completed=bool(data.get('completed')),
        )


@dataclass
class PracticeSession:
    id: str
    mode: str
    settings: Dict[str, Any]
    started_at: str
    throws: List[Dart] = field(default_factory=list)
    stats: PracticeStats = field(default_factory=PracticeStats)
    current_target: Optional[int] = None
    targets_hit: List[int] = field(default_factory=list)
    current_checkout: Optional[CheckoutAttempt] = None
    checkout_attempts: List[CheckoutAttempt] = field(default_factory=list)
    completed: bool = False
    completed_at: Optional[str] = None
    ended_at: Optional[str] = None

    @property
    def is_ended(self) -> bool:
        return self.ended_at is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'mode': self.mode,
            'settings': copy.deepcopy(self.settings),
            'started_at': self.started_at,
            'throws': [d.to_dict() for d in self.throws],
            'stats': self.stats.to_dict(),
            'current_target': self.current_target,
            'targets_hit': list(self.targets_hit),
            'current_checkout': self.current_checkout.to_dict() if self.current_checkout else None,
            'checkout_attempts': [a.to_dict() for a in self.checkout_attempts],
            'completed': self.completed,
            'completed_at': self.completed_at,
            'ended_at': self.ended_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PracticeSession':
        current = data.get('current_checkout')
        return cls(
            id=str(data['id']),
            mode=data['mode'],
            settings=dict(data.get('settings') or {}),
            started_at=data.get('started_at') or _now_iso(),
            throws=[Dart.from_dict(d) for d in data.get('throws') or []],
            stats=PracticeStats.from_dict(data.get('stats')),
            current_target=data.get('current_target'),
            targets_hit=list(data.get('targets_hit') or []),
            current_checkout=CheckoutAttempt.from_dict(current) if current else None,
            checkout_attempts=[CheckoutAttempt.from_dict(a) for a in data.get('checkout_attempts') or []],
            completed=bool(data.get('completed')),
            completed_at=data.get('completed_at'),
            ended_at=data.get('ended_at'),
        )


def _valid_segment(segment: Any) -> bool:
    if isinstance(segment, bool) or not isinstance(segment, int):
        return False
    return 1 <= segment <= 20 or segment == BULL


def _normalize_targets(raw: Any) -> List[Dict[str, Any]]:
    if not isinstance(raw, list) or not raw:
        raise InvalidConfigurationError('Target practice needs a non-empty list of targets')
    targets = []
    for entry in raw:
        if not isinstance(entry, dict) or not _valid_segment(entry.get('segment')):
            raise InvalidConfigurationError(f'Invalid practice target: {entry!r}')
        multiplier = entry.get('multiplier')
        if multiplier is not None:
            try:
                validate_throw(entry['segment'], multiplier)
            except InvalidThrowError as exc:
                raise InvalidConfigurationError(f'Invalid practice target: {entry!r}') from exc
        targets.append({'segment': entry['segment'], 'multiplier': multiplier})
    return targets


def start_practice(mode: str, settings: Optional[Dict[str, Any]] = None) -> PracticeSession:
    """Open a drill.

    Settings by mode:

    - ``target``: ``targets``, a list of ``{'segment': ..., 'multiplier': ...}``
      where a missing multiplier accepts any ring of that segment.
    - ``checkout``: optional ``checkout_score`` (2-170) used for every attempt;
      without it each attempt draws one of ``CHECKOUT_DRILL_SCORES``.
    - ``aroundTheClock``: optional ``starting_target`` (1-20 or 25).
    """
    if not isinstance(mode, str) or mode not in PRACTICE_MODES:
        raise InvalidConfigurationError(f'Unsupported practice mode: {mode!r}')
    if settings is not None and not isinstance(settings, dict):
        raise InvalidConfigurationError('Practice settings must be an object')
    settings = copy.deepcopy(settings or {})

    current_target = None
    if mode == TARGET:
        settings['targets'] = _normalize_targets(settings.get('targets'))
    elif mode == CHECKOUT and settings.get('checkout_score') is not None:
        score = settings['checkout_score']
        if isinstance(score, bool) or not isinstance(score, int) or not 2 <= score <= MAX_CHECKOUT:
            raise InvalidConfigurationError(f'Checkout score must be between 2 and {MAX_CHECKOUT}')
    elif mode == AROUND_THE_CLOCK:
        current_target = settings.get('starting_target') or 1
        if not _valid_segment(current_target):
            raise InvalidConfigurationError(f'Invalid starting target: {current_target!r}')

    return PracticeSession(
        id=uuid.uuid4().hex,
        mode=mode,
        settings=settings,
        started_at=_now_iso(),
        current_target=current_target,
    )


def _count_target_hit(stats: PracticeStats, dart: Dart) -> None:
    stats.target_hits[dart.label] = stats.target_hits.get(dart.label, 0) + 1


def _score_target(session: PracticeSession, dart: Dart) -> None:
    hit = any(
        t['segment'] == dart.segment and (t['multiplier'] is None or t['multiplier'] == dart.multiplier)
        for t in session.settings['targets']
    )
    if hit:
        session.stats.hits += 1
        _count_target_hit(session.stats, dart)
    else:
        session.stats.misses += 1


def _score_checkout(session: PracticeSession, dart: Dart) -> None:
    attempt = session.current_checkout
    if attempt is None:
        start = session.settings.get('checkout_score') or random.choice(CHECKOUT_DRILL_SCORES)
        attempt = CheckoutAttempt(starting_score=start, remaining_score=start)
        session.current_checkout = attempt

    attempt.darts.append(dart)
    attempt.remaining_score -= dart.score

    if attempt.remaining_score == 0 and dart.is_double:
        attempt.completed = True
        session.stats.hits += 1
    elif attempt.remaining_score <= 1 or len(attempt.darts) >= DARTS_PER_TURN:
        # Bust, a finish without a double, or out of darts
        session.stats.misses += 1
    else:
        return
    session.checkout_attempts.append(attempt)
    session.current_checkout = None


def _score_around_the_clock(session: PracticeSession, dart: Dart) -> None:
    target = session.current_target or 1
    if dart.segment != target:
        session.stats.misses += 1
        return

    session.stats.hits += 1
    session.targets_hit.append(target)
    if target == 20:
        session.current_target = BULL
    elif target == BULL:
        session.completed = True
        session.completed_at = _now_iso()
    else:
        session.current_target = target + 1


def _score_free_play(session: PracticeSession, dart: Dart) -> None:
    # Only the general stats apply
    return None


def _score_cricket(session: PracticeSession, dart: Dart) -> None:
    if dart.segment in GAME_MODES[CRICKET]['targets']:
        session.stats.hits += 1
        _count_target_hit(session.stats, dart)
    else:
        session.stats.misses += 1


_SCORERS = {
    TARGET: _score_target,
    CHECKOUT: _score_checkout,
    FREE_PLAY: _score_free_play,
    AROUND_THE_CLOCK: _score_around_the_clock,
    CRICKET_PRACTICE: _score_cricket,
}


def record_throw(session: PracticeSession, segment: int, multiplier: int = 1) -> PracticeSession:
    """Return the session after one more dart.

    Raises ``InvalidThrowError`` for a dart that cannot exist and
    ``TerminalMatchError`` once the session has ended or the clock is complete.
    """
    validate_throw(segment, multiplier)
    if session.is_ended:
        raise TerminalMatchError('The practice session has ended')
    if session.completed:
        raise TerminalMatchError('Around the Clock is already complete')

    nxt = copy.deepcopy(session)
    dart = Dart(segment=segment, multiplier=multiplier, score=dart_score(segment, multiplier))
    nxt.throws.append(dart)

    stats = nxt.stats
    stats.total_throws += 1
    _SCORERS[nxt.mode](nxt, dart)

    stats.total_score += dart.score
    stats.average_score = stats.total_score / stats.total_throws
    stats.highest_score = max(stats.highest_score, dart.score)
    graded = stats.hits + stats.misses
    stats.accuracy = stats.hits / graded * 100 if graded else 0
    return nxt


def checkout_hint(session: PracticeSession) -> Optional[List[str]]:
    """Suggested route for the attempt in progress in a checkout drill."""
    if session.mode != CHECKOUT or session.current_checkout is None:
        return None
    return suggest_checkout(session.current_checkout.remaining_score)


def session_summary(session: PracticeSession) -> Dict[str, Any]:
    duration = None
    if session.ended_at:
        started = datetime.fromisoformat(session.started_at)
        ended = datetime.fromisoformat(session.ended_at)
        duration = int((ended - started).total_seconds())
    return {
        'id': session.id,
        'mode': session.mode,
        'started_at': session.started_at,
        'ended_at': session.ended_at,
        'duration_sec': duration,
        'stats': session.stats.to_dict(),
        'targets_hit': list(session.targets_hit),
        'checkout_attempts': len(session.checkout_attempts),
        'checkouts_completed': sum(1 for a in session.checkout_attempts if a.completed),
        'completed': session.completed,
        'heatmap': dict(Counter(d.label for d in session.throws)),
    }


def end_practice(session: PracticeSession) -> Tuple[PracticeSession, Dict[str, Any]]:
    """Close the session and return it with its final summary.

    A checkout attempt still in progress is dropped; ending twice keeps the
    first end time.
    """
    nxt = copy.deepcopy(session)
    if nxt.ended_at is None:
        nxt.ended_at = _now_iso()
    nxt.current_checkout = None
    return nxt, session_summary(nxt)


def practice_history_stats(sessions: Iterable[PracticeSession]) -> Dict[str, Any]:
    """Totals across many sessions."""
    sessions = list(sessions)
    accuracies = [s.stats.accuracy for s in sessions if s.stats.accuracy]
    mode_counts = Counter(s.mode for s in sessions)
    practice_time = sum(
        session_summary(s)['duration_sec'] or 0 for s in sessions if s.ended_at
    )
    attempts = [a for s in sessions for a in s.checkout_attempts]
    return {
        'total_sessions': len(sessions),
        'total_throws': sum(s.stats.total_throws for s in sessions),
        'average_accuracy': sum(accuracies) / len(accuracies) if accuracies else 0,
        'favorite_mode': mode_counts.most_common(1)[0][0] if mode_counts else None,
        'checkout_success': (
            sum(1 for a in attempts if a.completed) / len(attempts) * 100 if attempts else 0
        ),
        'total_practice_time_sec': practice_time,
    }
