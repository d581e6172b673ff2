import math
from collections import Counter
from typing import Any, Dict, List, Optional

from .modes import AROUND_THE_CLOCK, CRICKET
from .state import DARTS_PER_TURN, Dart, MatchState

FIRST_NINE = 9


def _band(turn_score: int) -> Optional[str]:
    if turn_score == 180:
        return '180'
    if turn_score >= 140:
        return '140+'
    if turn_score >= 100:
        return '100+'
    if turn_score >= 60:
        return '60+'
    if turn_score <= 26:
        return '26'
    return None


def _scoring_bands(darts: List[Dart]) -> Dict[str, int]:
    bands = {'180': 0, '140+': 0, '100+': 0, '60+': 0, '26': 0}
    for start in range(0, len(darts), DARTS_PER_TURN):
        chunk = darts[start:start + DARTS_PER_TURN]
        if len(chunk) < DARTS_PER_TURN:
            continue
        band = _band(sum(d.score for d in chunk))
        if band:
            bands[band] += 1
    return bands


def summarize_player(state: MatchState, player_id: str) -> Optional[Dict[str, Any]]:
    """Per-player metrics derived from a snapshot.

    Averages are raw dart averages: busted and non-counting darts are
    included at face value, the same way the running stats count them.
    """
    player = state.player_by_id(player_id)
    if player is None:
        return None

    darts = player.darts
    total = sum(d.score for d in darts)
    one_dart_avg = total / len(darts) if darts else 0
    first_nine = darts[:FIRST_NINE]
    first_nine_avg = (
        sum(d.score for d in first_nine) / len(first_nine) * DARTS_PER_TURN if first_nine else 0
    )
    bands = _scoring_bands(darts)

    summary: Dict[str, Any] = {
        'player_id': player.id,
        'name': player.name,
        'mode': state.mode,
        'darts': len(darts),
        'one_dart_avg': one_dart_avg,
        'three_dart_avg': one_dart_avg * DARTS_PER_TURN,
        'first_nine_avg': first_nine_avg,
        'bands': bands,
        'total_180s': bands['180'],
        'highest_score': player.stats.highest_score,
        'highest_checkout': player.stats.highest_checkout,
        'won': state.winner_id == player.id,
        'heatmap': dict(Counter(d.label for d in darts)),
    }

    if state.mode == CRICKET:
        marks = sum((player.cricket_marks or {}).values())
        rounds = max(1, math.ceil(len(darts) / DARTS_PER_TURN))
        summary['cricket'] = {
            'marks_per_round': marks / rounds,
            'points': player.score,
        }
    elif state.mode == AROUND_THE_CLOCK:
        summary['around'] = {
            'current_target': player.current_target,
            'completed': state.winner_id == player.id,
        }
    return summary
