from typing import List, Optional, Tuple

from .modes import X01_MODES
from .state import BULL, MatchState, dart_label, dart_score

MAX_CHECKOUT = 170

# (segment, multiplier) in the order they are tried
_FINISHES: List[Tuple[int, int]] = (
    [(s, 2) for s in (20, 16, 18, 12, 10, 8, 14, 6, 4, 2)]
    + [(s, 2) for s in (19, 17, 15, 13, 11, 9, 7, 5, 3, 1)]
    + [(BULL, 2)]
)
_SETUPS: List[Tuple[int, int]] = (
    [(s, 3) for s in range(20, 0, -1)]
    + [(s, 1) for s in range(20, 0, -1)]
    + [(BULL, 1), (BULL, 2)]
    + [(s, 2) for s in range(20, 0, -1)]
)


def _setup_route(remaining: int, darts: int) -> Optional[List[Tuple[int, int]]]:
    if darts == 0:
        return [] if remaining == 0 else None
    for segment, multiplier in _SETUPS:
        value = dart_score(segment, multiplier)
        if value > remaining:
            continue
        rest = _setup_route(remaining - value, darts - 1)
        if rest is not None:
            return [(segment, multiplier)] + rest
    return None


def suggest_checkout(remaining: int) -> Optional[List[str]]:
    """Shortest finish for ``remaining`` ending on a double or the bull.

    Returns dart labels such as ``['T20', 'T20', 'Bull']`` or None when no
    three-dart finish exists.
    """
    if remaining < 2 or remaining > MAX_CHECKOUT:
        return None
    for darts in (1, 2, 3):
        for segment, multiplier in _FINISHES:
            route = _setup_route(remaining - dart_score(segment, multiplier), darts - 1)
            if route is not None:
                return [dart_label(s, m) for s, m in route + [(segment, multiplier)]]
    return None


def checkout_for(state: MatchState) -> Optional[List[str]]:
    """Suggestion for the active player of an x01 match, if any."""
    if state.mode not in X01_MODES or state.is_finished:
        return None
    player = state.current_player
    config = state.config
    if config.get('require_double_in') and player.score == config['starting_score']:
        return None
    return suggest_checkout(player.score)
