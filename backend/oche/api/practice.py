from flask import Blueprint, jsonify, request, current_app
from oche.models import Practice
from oche.services.match import InvalidConfigurationError, InvalidThrowError, TerminalMatchError
from oche.services.match.practice import (
    PRACTICE_MODES,
    checkout_hint,
    end_practice,
    practice_history_stats,
    record_throw,
    session_summary,
)
from oche.services.match.store import (
    create_practice,
    load_practice,
    practice_lock,
    recent_practice,
    save_practice,
)


practice = Blueprint('practice', __name__)


def _get_practice(session_id: str) -> Practice:
    return Practice.query.filter_by(session_id=session_id).first_or_404()


def _payload(record: Practice, session) -> dict:
    payload = record.to_dict()
    payload['session'] = session.to_dict()
    payload['checkout_suggestion'] = checkout_hint(session)
    return payload


@practice.route('/modes', methods=['GET'])
def list_practice_modes():
    return jsonify([{'mode': key, **info} for key, info in PRACTICE_MODES.items()])


@practice.route('/start', methods=['POST'])
def start_session():
    data = request.get_json(silent=True) or {}
    player_name = data.get('player_name')
    if player_name is not None and not isinstance(player_name, str):
        return jsonify({'error': 'player_name must be a string'}), 400

    try:
        record, session = create_practice(data.get('mode'), data.get('settings'), player_name)
    except InvalidConfigurationError as exc:
        return jsonify({'error': str(exc)}), 400
    return jsonify(_payload(record, session)), 201


@practice.route('/<string:session_id>', methods=['GET'])
def get_session(session_id):
    record = _get_practice(session_id)
    return jsonify(_payload(record, load_practice(record)))


@practice.route('/<string:session_id>/throw', methods=['POST'])
def throw_practice_dart(session_id):
    data = request.get_json(silent=True) or {}
    segment = data.get('segment')
    multiplier = data.get('multiplier', 1)
    if segment is None:
        return jsonify({'error': 'segment is required'}), 400

    with practice_lock(session_id):
        record = _get_practice(session_id)
        try:
            session = record_throw(load_practice(record), segment, multiplier)
        except InvalidThrowError as exc:
            return jsonify({'error': str(exc)}), 400
        except TerminalMatchError as exc:
            return jsonify({'error': str(exc)}), 409
        save_practice(record, session)

    current_app.logger.debug(
        f"[practice-throw] session={session_id} dart={session.throws[-1].label} "
        f"hits={session.stats.hits} misses={session.stats.misses}"
    )
    return jsonify(_payload(record, session))


@practice.route('/<string:session_id>/end', methods=['POST'])
def end_session(session_id):
    with practice_lock(session_id):
        record = _get_practice(session_id)
        session, summary = end_practice(load_practice(record))
        save_practice(record, session)

    current_app.logger.info(
        f"[practice-end] session={session_id} throws={summary['stats']['total_throws']} "
        f"accuracy={summary['stats']['accuracy']:.1f}"
    )
    return jsonify(summary)


@practice.route('/history', methods=['GET'])
def get_history():
    cap = int(current_app.config.get('PRACTICE_HISTORY_LIMIT', 50))
    limit = request.args.get('limit', type=int) or cap
    limit = max(1, min(limit, cap))
    records = recent_practice(limit, request.args.get('player'))
    sessions = [load_practice(r) for r in records]
    return jsonify({
        'sessions': [session_summary(s) for s in sessions],
        'stats': practice_history_stats(sessions),
    })
