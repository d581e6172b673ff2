"""Mode-specific rule handlers.

Each mode contributes an ``apply`` handler, run after a dart has been
recorded, and a ``revert`` handler, run after a dart has been popped by undo.
Handlers mutate the scratch copy of the state they are given.
"""

from typing import Callable, Dict, Tuple

from .modes import AROUND_THE_CLOCK, CRICKET, X01_301, X01_501
from .state import DARTS_PER_TURN, Dart, MatchState, Player

CLOSED = 3

Handler = Callable[[MatchState, Player, Dart], None]


# ---- 501 / 301 ----

def _x01_waiting_for_double_in(state: MatchState, player: Player) -> bool:
    config = state.config
    return bool(config.get('require_double_in')) and player.score == config['starting_score']


def apply_x01(state: MatchState, player: Player, dart: Dart) -> None:
    config = state.config
    if _x01_waiting_for_double_in(state, player) and not dart.is_double:
        return

    new_score = player.score - dart.score
    busted = new_score < 0 or (
        new_score == 0 and config.get('require_double_out') and not dart.is_double
    )
    if busted:
        # Darts thrown before an opening double never scored, so the turn-start
        # score can not exceed the starting score.
        earlier = sum(d.score for d in state.current_darts[:-1])
        player.score = min(config['starting_score'], player.score + earlier)
        state.current_dart_in_turn = DARTS_PER_TURN
        return

    if new_score == 0:
        player.score = 0
        checkout = sum(d.score for d in state.current_darts)
        player.stats.highest_checkout = max(player.stats.highest_checkout, checkout)
        state.winner_id = player.id
        return

    player.score = new_score


def revert_x01(state: MatchState, player: Player, dart: Dart) -> None:
    # A dart thrown before double-in left the score untouched
    if _x01_waiting_for_double_in(state, player):
        return
    player.score += dart.score
    if state.winner_id == player.id:
        # One leg per match: the checkout being undone was the only one
        player.stats.highest_checkout = 0


# ---- Cricket ----

def _all_closed(state: MatchState, player: Player) -> bool:
    marks = player.cricket_marks or {}
    return all(marks.get(target, 0) >= CLOSED for target in state.config['targets'])


def apply_cricket(state: MatchState, player: Player, dart: Dart) -> None:
    if dart.segment not in state.config['targets']:
        return

    marks = player.cricket_marks
    current = marks.get(dart.segment, 0)
    total = current + dart.multiplier
    marks[dart.segment] = min(total, CLOSED)

    overflow = total - CLOSED
    if overflow > 0:
        still_open = any(
            (opp.cricket_marks or {}).get(dart.segment, 0) < CLOSED
            for opp in state.opponents_of(player)
        )
        if still_open:
            player.score += dart.segment * overflow

    if _all_closed(state, player):
        # Ties favour the player who has just closed everything
        if all(player.score >= opp.score for opp in state.opponents_of(player)):
            state.winner_id = player.id


def revert_cricket(state: MatchState, player: Player, dart: Dart) -> None:
    # Points scored on the overflow stay on the board.
    if dart.segment not in state.config['targets']:
        return
    marks = player.cricket_marks
    marks[dart.segment] = max(0, marks.get(dart.segment, 0) - dart.multiplier)


# ---- Around the Clock ----

def apply_around_the_clock(state: MatchState, player: Player, dart: Dart) -> None:
    if dart.segment != player.current_target:
        return
    targets = state.config['targets']
    position = targets.index(player.current_target)
    if position == len(targets) - 1:
        state.winner_id = player.id
    else:
        player.current_target = targets[position + 1]


def revert_around_the_clock(state: MatchState, player: Player, dart: Dart) -> None:
    # Steps back only when the popped dart hit the target preceding the
    # current one, even if that dart was not the hit that advanced it.
    targets = state.config['targets']
    position = targets.index(player.current_target)
    if position > 0 and targets[position - 1] == dart.segment:
        player.current_target = dart.segment


RULES: Dict[str, Tuple[Handler, Handler]] = {
    X01_501: (apply_x01, revert_x01),
    X01_301: (apply_x01, revert_x01),
    CRICKET: (apply_cricket, revert_cricket),
    AROUND_THE_CLOCK: (apply_around_the_clock, revert_around_the_clock),
}
