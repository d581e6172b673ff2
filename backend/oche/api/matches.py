from flask import Blueprint, jsonify, request, current_app
from oche import socketio
from oche.models import Match
from oche.services.match import (
    InvalidConfigurationError,
    InvalidThrowError,
    TerminalMatchError,
    apply_throw,
    undo_last_throw,
)
from oche.services.match.checkout import checkout_for
from oche.services.match.store import (
    create_match as svc_create_match,
    delete_match as svc_delete_match,
    end_match as svc_end_match,
    list_active,
    load_state,
    match_lock,
    save_state,
)
from oche.services.match.summary import summarize_player
from oche.socketio_events import spectator_count


matches = Blueprint('matches', __name__)


def _get_match(match_code: str) -> Match:
    return Match.query.filter_by(match_code=match_code.upper()).first_or_404()


def _emit_update(match: Match) -> None:
    socketio.emit(
        'state_update',
        {'match_code': match.match_code, 'status': match.status},
        to=f"match:{match.match_code}",
        namespace='/ws',
    )


def _payload(match: Match, state) -> dict:
    payload = match.to_dict()
    payload['state'] = state.to_dict()
    payload['checkout_suggestion'] = checkout_for(state)
    payload['spectators'] = spectator_count(match.match_code)
    # Clients hold a finished turn on screen this long before switching player
    payload['display'] = {
        'turn_complete_sec': int(current_app.config.get('TURN_COMPLETE_DISPLAY_SEC', 2)),
    }
    return payload


def _normalize_players(raw):
    if not isinstance(raw, list):
        return None
    players = []
    for entry in raw:
        if isinstance(entry, str):
            players.append({'name': entry})
        elif isinstance(entry, dict):
            players.append(entry)
        else:
            return None
    return players


@matches.route('/create', methods=['POST'])
def create_match():
    data = request.get_json(silent=True) or {}
    mode = data.get('mode') or '501'
    players = _normalize_players(data.get('players'))
    if players is None:
        return jsonify({'error': 'players must be a list of names or {id, name} objects'}), 400

    try:
        match, state = svc_create_match(mode, players)
    except InvalidConfigurationError as exc:
        return jsonify({'error': str(exc)}), 400

    _emit_update(match)
    return jsonify(_payload(match, state)), 201


@matches.route('/active', methods=['GET'])
def get_active_matches():
    cap = int(current_app.config.get('ACTIVE_MATCHES_LIMIT', 10))
    limit = request.args.get('limit', type=int) or cap
    limit = max(1, min(limit, cap))
    return jsonify([m.to_dict() for m in list_active(limit)])


@matches.route('/<string:match_code>/state', methods=['GET'])
def get_match_state(match_code):
    match = _get_match(match_code)
    return jsonify(_payload(match, load_state(match)))


@matches.route('/<string:match_code>/throw', methods=['POST'])
def throw_dart(match_code):
    data = request.get_json(silent=True) or {}
    segment = data.get('segment')
    multiplier = data.get('multiplier', 1)
    if segment is None:
        return jsonify({'error': 'segment is required'}), 400

    with match_lock(match_code.upper()):
        match = _get_match(match_code)
        if match.is_closed:
            return jsonify({'error': f'This match has been {match.status}'}), 409

        state = load_state(match)
        player = state.current_player
        try:
            new_state = apply_throw(state, segment, multiplier)
        except InvalidThrowError as exc:
            return jsonify({'error': str(exc)}), 400
        except TerminalMatchError as exc:
            return jsonify({'error': str(exc)}), 409

        save_state(match, new_state)

    thrown = new_state.player_by_id(player.id)
    current_app.logger.info(
        f"[throw] match={match.match_code} player={player.id} dart={thrown.darts[-1].label} "
        f"score={thrown.score} round={state.current_round}"
    )
    if len(new_state.turns) > len(state.turns) and not new_state.is_finished:
        current_app.logger.info(
            f"[turn-end] match={match.match_code} player={player.id} total={new_state.turns[-1].total_score}"
        )
    if new_state.is_finished:
        current_app.logger.info(f"[winner] match={match.match_code} player={new_state.winner_id}")

    _emit_update(match)
    return jsonify(_payload(match, new_state))


@matches.route('/<string:match_code>/undo', methods=['POST'])
def undo_throw(match_code):
    with match_lock(match_code.upper()):
        match = _get_match(match_code)
        if match.is_closed:
            return jsonify({'error': f'This match has been {match.status}'}), 409

        state = load_state(match)
        new_state = undo_last_throw(state)
        if new_state is state:
            current_app.logger.info(f"[undo-noop] match={match.match_code} no darts in current turn")
            return jsonify(_payload(match, state))

        save_state(match, new_state)

    current_app.logger.info(
        f"[undo] match={match.match_code} player={new_state.current_player.id} "
        f"darts_in_turn={new_state.current_dart_in_turn}"
    )
    _emit_update(match)
    return jsonify(_payload(match, new_state))


@matches.route('/<string:match_code>/end', methods=['POST'])
def end_match(match_code):
    data = request.get_json(silent=True) or {}
    status = data.get('status') or 'abandoned'

    with match_lock(match_code.upper()):
        match = _get_match(match_code)
        try:
            svc_end_match(match, status)
        except ValueError as exc:
            return jsonify({'error': str(exc)}), 400

    _emit_update(match)
    return jsonify(_payload(match, load_state(match)))


@matches.route('/<string:match_code>', methods=['DELETE'])
def delete_match(match_code):
    with match_lock(match_code.upper()):
        match = _get_match(match_code)
        code = match.match_code
        svc_delete_match(match)

    socketio.emit('match_deleted', {'match_code': code}, to=f"match:{code}", namespace='/ws')
    return jsonify({'message': f'Match {code} deleted'}), 200


@matches.route('/<string:match_code>/players/<string:player_id>/summary', methods=['GET'])
def get_player_summary(match_code, player_id):
    match = _get_match(match_code)
    summary = summarize_player(load_state(match), player_id)
    if summary is None:
        return jsonify({'error': 'Player not found in this match'}), 404
    return jsonify(summary)
