import copy
import math
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from .errors import InvalidConfigurationError, InvalidThrowError, TerminalMatchError
from .modes import AROUND_THE_CLOCK, CRICKET, mode_config
from .rules import RULES
from .state import (
    BULL,
    DARTS_PER_TURN,
    Dart,
    MatchState,
    Player,
    PlayerStats,
    Turn,
    dart_score,
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='seconds')


def start_match(mode: str, players: Iterable[Mapping[str, Any]]) -> MatchState:
    """Build the opening snapshot of a match.

    ``players`` is an ordered list of ``{'name': ..., 'id': ...}`` mappings; the
    order is the turn order and a missing id is generated.
    """
    config = mode_config(mode)
    entries = list(players or [])
    if not entries:
        raise InvalidConfigurationError('A match needs at least one player')

    built = []
    seen_ids = set()
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise InvalidConfigurationError(f"Player entries must be mappings, got {entry!r}")
        name = str(entry.get('name') or '').strip()
        if not name:
            raise InvalidConfigurationError('Every player needs a name')
        player_id = str(entry.get('id') or uuid.uuid4().hex)
        if player_id in seen_ids:
            raise InvalidConfigurationError(f'Duplicate player id: {player_id}')
        seen_ids.add(player_id)

        player = Player(id=player_id, name=name, stats=PlayerStats())
        if mode == CRICKET:
            player.cricket_marks = {target: 0 for target in config['targets']}
        elif mode == AROUND_THE_CLOCK:
            player.current_target = config['targets'][0]
        else:
            player.score = config['starting_score']
        built.append(player)

    return MatchState(mode=mode, config=config, players=built)


def validate_throw(segment: Any, multiplier: Any) -> None:
    for value in (segment, multiplier):
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidThrowError(f'Segment and multiplier must be integers, got {value!r}')
    if not (1 <= segment <= 20 or segment == BULL):
        raise InvalidThrowError(f'Segment must be 1-20 or 25, got {segment}')
    if multiplier not in (1, 2, 3):
        raise InvalidThrowError(f'Multiplier must be 1, 2 or 3, got {multiplier}')
    if segment == BULL and multiplier == 3:
        raise InvalidThrowError('There is no triple bull')


def _record_stats(stats: PlayerStats, dart: Dart) -> None:
    stats.darts_thrown += 1
    stats.total_score += dart.score
    stats.average_per_dart = stats.total_score / stats.darts_thrown
    stats.highest_score = max(stats.highest_score, dart.score)
    if dart.multiplier == 2:
        stats.doubles += 1
    if dart.multiplier == 3:
        stats.triples += 1
    if dart.segment == BULL:
        stats.bullseyes += 1


def _revert_stats(player: Player, dart: Dart) -> None:
    stats = player.stats
    stats.darts_thrown = max(0, stats.darts_thrown - 1)
    stats.total_score -= dart.score
    stats.average_per_dart = stats.total_score / stats.darts_thrown if stats.darts_thrown else 0
    stats.highest_score = max((d.score for d in player.darts), default=0)
    if dart.multiplier == 2:
        stats.doubles -= 1
    if dart.multiplier == 3:
        stats.triples -= 1
    if dart.segment == BULL:
        stats.bullseyes -= 1


def _update_round_average(stats: PlayerStats) -> None:
    rounds = math.ceil(stats.darts_thrown / DARTS_PER_TURN)
    stats.average_per_round = stats.total_score / rounds if rounds else 0


def _is_open_turn_record(state: MatchState, turn: Turn, player: Player) -> bool:
    return turn.round == state.current_round and turn.player_id == player.id


def _finish_turn(state: MatchState, player: Player) -> None:
    """Record the active turn and hand over to the next player.

    A winning turn is recorded but not handed over. If undo then takes the
    win back, ``turns[-1]`` keeps the remaining darts of that still-open
    turn and is replaced when the turn is sealed again.
    """
    darts = list(state.current_darts)
    turn = Turn(
        round=state.current_round,
        player=player.name,
        player_id=player.id,
        darts=darts,
        total_score=sum(d.score for d in darts),
        timestamp=_now_iso(),
    )
    if state.turns and _is_open_turn_record(state, state.turns[-1], player):
        # The winning turn was reopened by undo and is being sealed again
        state.turns[-1] = turn
    else:
        state.turns.append(turn)
    _update_round_average(player.stats)

    if state.winner_id is not None:
        # Terminal: the winning turn stays on the board so undo can reach it
        return

    state.current_dart_in_turn = 0
    state.current_darts = []
    state.current_player_index = (state.current_player_index + 1) % len(state.players)
    if state.current_player_index == 0:
        state.current_round += 1


def apply_throw(state: MatchState, segment: int, multiplier: int = 1) -> MatchState:
    """Return the state after the active player throws one dart.

    The input state is never modified. Raises ``InvalidThrowError`` for a dart
    that cannot exist and ``TerminalMatchError`` once the match has a winner.
    """
    validate_throw(segment, multiplier)
    if state.winner_id is not None:
        raise TerminalMatchError('The match already has a winner')

    nxt = copy.deepcopy(state)
    player = nxt.current_player
    dart = Dart(segment=segment, multiplier=multiplier, score=dart_score(segment, multiplier))
    player.darts.append(dart)
    nxt.current_darts.append(dart)
    nxt.current_dart_in_turn += 1

    _record_stats(player.stats, dart)

    apply_rule, _ = RULES[nxt.mode]
    apply_rule(nxt, player, dart)

    if nxt.current_dart_in_turn >= DARTS_PER_TURN or nxt.winner_id is not None:
        _finish_turn(nxt, player)
    return nxt


def undo_last_throw(state: MatchState) -> MatchState:
    """Take back the last dart of the active turn.

    Darts of turns that have already been handed over cannot be undone; with
    nothing to undo the same state object is returned.
    """
    if not state.current_darts:
        return state

    nxt = copy.deepcopy(state)
    player = nxt.current_player
    dart = nxt.current_darts.pop()
    if player.darts:
        player.darts.pop()
    nxt.current_dart_in_turn = max(0, nxt.current_dart_in_turn - 1)

    _revert_stats(player, dart)

    _, revert_rule = RULES[nxt.mode]
    revert_rule(nxt, player, dart)

    if nxt.turns and _is_open_turn_record(nxt, nxt.turns[-1], player):
        last = nxt.turns[-1]
        if last.darts:
            last.darts.pop()
            last.total_score -= dart.score
        if not last.darts:
            nxt.turns.pop()
        _update_round_average(player.stats)

    if nxt.winner_id == player.id:
        nxt.winner_id = None
    return nxt
