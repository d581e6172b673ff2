"""Plain-data match snapshot.

Every type here round-trips through ``to_dict``/``from_dict`` so a caller can
store the whole match as a JSON blob and rebuild it verbatim later.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

BULL = 25
DARTS_PER_TURN = 3


def dart_score(segment: int, multiplier: int) -> int:
    if segment == BULL:
        return 50 if multiplier == 2 else 25
    return segment * multiplier


def dart_label(segment: int, multiplier: int) -> str:
    """Board notation: ``T20``, ``D16``, ``7``, ``25`` (outer bull) or ``Bull``."""
    if segment == BULL:
        return 'Bull' if multiplier == 2 else '25'
    if multiplier == 3:
        return f'T{segment}'
    if multiplier == 2:
        return f'D{segment}'
    return str(segment)


@dataclass
class Dart:
    segment: int
    multiplier: int
    score: int

    @property
    def label(self) -> str:
        return dart_label(self.segment, self.multiplier)

    @property
    def is_double(self) -> bool:
        return self.multiplier == 2

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Dart':
        segment = int(data.get('segment') or 0)
        multiplier = int(data.get('multiplier') or 1)
        score = data.get('score')
        if score is None:
            score = dart_score(segment, multiplier)
        return cls(segment=segment, multiplier=multiplier, score=int(score))


@dataclass
class PlayerStats:
    darts_thrown: int = 0
    total_score: int = 0
    doubles: int = 0
    triples: int = 0
    bullseyes: int = 0
    highest_checkout: int = 0
    average_per_dart: float = 0
    average_per_round: float = 0
    highest_score: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'PlayerStats':
        # Older snapshots may lack counters entirely; missing ones start at zero
        data = data or {}
        return cls(**{name: data.get(name) or 0 for name in cls.__dataclass_fields__})


@dataclass
class Player:
    id: str
    name: str
    score: int = 0
    darts: List[Dart] = field(default_factory=list)
    stats: PlayerStats = field(default_factory=PlayerStats)
    cricket_marks: Optional[Dict[int, int]] = None
    current_target: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'darts': [d.to_dict() for d in self.darts],
            'stats': self.stats.to_dict(),
            # JSON object keys are strings
            'cricket_marks': (
                {str(target): marks for target, marks in self.cricket_marks.items()}
                if self.cricket_marks is not None else None
            ),
            'current_target': self.current_target,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Player':
        marks = data.get('cricket_marks')
        return cls(
            id=str(data['id']),
            name=data.get('name') or '',
            score=data.get('score') or 0,
            darts=[Dart.from_dict(d) for d in data.get('darts') or []],
            stats=PlayerStats.from_dict(data.get('stats')),
            cricket_marks={int(k): int(v) for k, v in marks.items()} if marks else None,
            current_target=data.get('current_target') or None,
        )


@dataclass
class Turn:
    round: int
    player: str
    player_id: str
    darts: List[Dart]
    total_score: int
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'round': self.round,
            'player': self.player,
            'player_id': self.player_id,
            'darts': [d.to_dict() for d in self.darts],
            'total_score': self.total_score,
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Turn':
        darts = [Dart.from_dict(d) for d in data.get('darts') or []]
        total = data.get('total_score')
        return cls(
            round=int(data.get('round') or 1),
            player=data.get('player') or '',
            player_id=str(data.get('player_id')),
            darts=darts,
            total_score=int(total) if total is not None else sum(d.score for d in darts),
            timestamp=data.get('timestamp') or '',
        )


@dataclass
class MatchState:
    mode: str
    config: Dict[str, Any]
    players: List[Player]
    current_player_index: int = 0
    current_round: int = 1
    current_dart_in_turn: int = 0
    current_darts: List[Dart] = field(default_factory=list)
    turns: List[Turn] = field(default_factory=list)
    winner_id: Optional[str] = None

    @property
    def current_player(self) -> Player:
        return self.players[self.current_player_index]

    @property
    def winner(self) -> Optional[Player]:
        if self.winner_id is None:
            return None
        return self.player_by_id(self.winner_id)

    @property
    def is_finished(self) -> bool:
        return self.winner_id is not None

    def player_by_id(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def opponents_of(self, player: Player) -> List[Player]:
        return [p for p in self.players if p.id != player.id]

    def to_dict(self) -> Dict[str, Any]:
        winner = self.winner
        return {
            'mode': self.mode,
            'config': dict(self.config),
            'players': [p.to_dict() for p in self.players],
            'current_player_index': self.current_player_index,
            'current_round': self.current_round,
            'current_dart_in_turn': self.current_dart_in_turn,
            'current_darts': [d.to_dict() for d in self.current_darts],
            'turns': [t.to_dict() for t in self.turns],
            'winner': winner.to_dict() if winner else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MatchState':
        winner = data.get('winner')
        if isinstance(winner, dict):
            winner_id = str(winner.get('id'))
        else:
            winner_id = data.get('winner_id')
        players = [Player.from_dict(p) for p in data.get('players') or []]
        index = int(data.get('current_player_index') or 0)
        raw_current = data.get('current_darts')
        if raw_current is None:
            # Older snapshots only kept the counter; the turn's darts are the
            # tail of the active player's history
            history = players[index].darts if index < len(players) else []
            count = min(int(data.get('current_dart_in_turn') or 0), len(history))
            current_darts = [Dart.from_dict(d.to_dict()) for d in history[len(history) - count:]]
        else:
            current_darts = [Dart.from_dict(d) for d in raw_current]
        return cls(
            mode=data['mode'],
            config=dict(data.get('config') or {}),
            players=players,
            current_player_index=index,
            current_round=int(data.get('current_round') or 1),
            current_dart_in_turn=len(current_darts),
            current_darts=current_darts,
            turns=[Turn.from_dict(t) for t in data.get('turns') or []],
            winner_id=winner_id,
        )
