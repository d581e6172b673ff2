import json

import pytest

from oche.services.match import InvalidConfigurationError, InvalidThrowError, TerminalMatchError
from oche.services.match.practice import (
    CHECKOUT_DRILL_SCORES,
    PracticeSession,
    checkout_hint,
    end_practice,
    practice_history_stats,
    record_throw,
    start_practice,
)


def throw_all(session, darts):
    for segment, multiplier in darts:
        session = record_throw(session, segment, multiplier)
    return session


def test_target_practice_counts_hits_and_misses():
    session = start_practice('target', {'targets': [{'segment': 20, 'multiplier': 3}, {'segment': 19}]})
    session = throw_all(session, [(20, 3), (20, 1), (19, 2), (5, 1)])

    assert session.stats.total_throws == 4
    assert session.stats.hits == 2
    assert session.stats.misses == 2
    assert session.stats.accuracy == 50
    assert session.stats.target_hits == {'T20': 1, 'D19': 1}


def test_checkout_drill_attempts():
    session = start_practice('checkout', {'checkout_score': 40})
    session = record_throw(session, 20, 1)
    assert checkout_hint(session) == ['D10']

    session = record_throw(session, 10, 2)
    assert session.current_checkout is None
    assert session.checkout_attempts[-1].completed

    # Out of darts
    session = throw_all(session, [(20, 1), (10, 1), (5, 1)])
    assert not session.checkout_attempts[-1].completed
    assert session.checkout_attempts[-1].remaining_score == 5

    # Bust on the first dart
    session = record_throw(session, 20, 3)
    assert session.checkout_attempts[-1].remaining_score == -20

    assert len(session.checkout_attempts) == 3
    assert session.stats.hits == 1
    assert session.stats.misses == 2
    assert session.stats.accuracy == pytest.approx(100 / 3)


def test_checkout_reaching_zero_on_a_single_fails():
    session = start_practice('checkout', {'checkout_score': 40})
    session = throw_all(session, [(20, 1), (20, 1)])
    attempt = session.checkout_attempts[-1]
    assert attempt.remaining_score == 0
    assert not attempt.completed


def test_checkout_without_fixed_score_draws_a_drill_score():
    session = record_throw(start_practice('checkout'), 1, 1)
    assert session.current_checkout.starting_score in CHECKOUT_DRILL_SCORES


def test_free_play_tracks_scores_only():
    session = throw_all(start_practice('freePlay'), [(20, 3), (1, 1), (25, 2)])
    assert session.stats.total_throws == 3
    assert session.stats.average_score == 37
    assert session.stats.highest_score == 60
    assert session.stats.accuracy == 0


def test_around_the_clock_drill_runs_to_the_bull():
    session = start_practice('aroundTheClock', {'starting_target': 19})
    session = throw_all(session, [(19, 1), (5, 1), (20, 3)])
    assert session.current_target == 25
    assert session.targets_hit == [19, 20]

    session = record_throw(session, 25, 2)
    assert session.completed
    assert session.completed_at is not None
    assert session.stats.hits == 3
    assert session.stats.misses == 1

    with pytest.raises(TerminalMatchError):
        record_throw(session, 1, 1)


def test_cricket_drill_accepts_only_cricket_numbers():
    session = throw_all(start_practice('cricket'), [(20, 1), (14, 3), (25, 1)])
    assert session.stats.hits == 2
    assert session.stats.misses == 1
    assert session.stats.target_hits == {'20': 1, '25': 1}


def test_record_throw_leaves_input_untouched():
    session = start_practice('freePlay')
    before = session.to_dict()
    after = record_throw(session, 20, 1)
    assert session.to_dict() == before
    assert after is not session


@pytest.mark.parametrize('mode, settings', [
    ('bogus', {}),
    (None, {}),
    ('target', {}),
    ('target', {'targets': [{'segment': 21}]}),
    ('target', {'targets': [{'segment': 25, 'multiplier': 3}]}),
    ('checkout', {'checkout_score': 171}),
    ('checkout', {'checkout_score': 1}),
    ('aroundTheClock', {'starting_target': 21}),
    ('freePlay', ['not', 'a', 'dict']),
])
def test_start_practice_rejects_bad_settings(mode, settings):
    with pytest.raises(InvalidConfigurationError):
        start_practice(mode, settings)


def test_invalid_dart_is_rejected():
    with pytest.raises(InvalidThrowError):
        record_throw(start_practice('freePlay'), 25, 3)


def test_end_practice_summary():
    session = start_practice('checkout', {'checkout_score': 40})
    session = throw_all(session, [(20, 1), (10, 2), (20, 1)])
    assert session.current_checkout is not None

    ended, summary = end_practice(session)
    assert ended.is_ended
    assert ended.current_checkout is None
    assert summary['checkout_attempts'] == 1
    assert summary['checkouts_completed'] == 1
    assert summary['stats']['total_throws'] == 3
    assert summary['duration_sec'] >= 0
    assert summary['heatmap'] == {'20': 2, 'D10': 1}

    with pytest.raises(TerminalMatchError):
        record_throw(ended, 20, 1)

    again, _ = end_practice(ended)
    assert again.ended_at == ended.ended_at


def test_session_json_round_trip():
    session = start_practice('checkout', {'checkout_score': 100})
    session = throw_all(session, [(20, 3), (20, 1)])
    restored = PracticeSession.from_dict(json.loads(json.dumps(session.to_dict())))
    assert restored.to_dict() == session.to_dict()
    assert checkout_hint(restored) == ['D10']


def test_history_stats():
    first, _ = end_practice(throw_all(start_practice('cricket'), [(20, 1), (1, 1)]))
    second, _ = end_practice(throw_all(start_practice('cricket'), [(20, 1)]))
    third = throw_all(start_practice('freePlay'), [(5, 1)])

    stats = practice_history_stats([first, second, third])
    assert stats['total_sessions'] == 3
    assert stats['total_throws'] == 4
    assert stats['average_accuracy'] == 75
    assert stats['favorite_mode'] == 'cricket'
    assert stats['checkout_success'] == 0
    assert stats['total_practice_time_sec'] >= 0


def test_practice_http_flow(client):
    modes = client.get('/api/practice/modes').get_json()
    assert {m['mode'] for m in modes} == {'target', 'checkout', 'freePlay', 'aroundTheClock', 'cricket'}

    res = client.post('/api/practice/start', json={
        'mode': 'checkout', 'settings': {'checkout_score': 40}, 'player_name': 'Alice',
    })
    assert res.status_code == 201
    session_id = res.get_json()['session_id']

    res = client.post(f'/api/practice/{session_id}/throw', json={'segment': 20, 'multiplier': 1})
    assert res.status_code == 200
    assert res.get_json()['checkout_suggestion'] == ['D10']

    assert client.post(f'/api/practice/{session_id}/throw', json={'segment': 25, 'multiplier': 3}).status_code == 400
    assert client.post(f'/api/practice/{session_id}/throw', json={}).status_code == 400

    client.post(f'/api/practice/{session_id}/throw', json={'segment': 10, 'multiplier': 2})
    summary = client.post(f'/api/practice/{session_id}/end').get_json()
    assert summary['checkouts_completed'] == 1

    state = client.get(f'/api/practice/{session_id}').get_json()
    assert state['ended_at'] is not None
    assert client.post(f'/api/practice/{session_id}/throw', json={'segment': 20}).status_code == 409

    history = client.get('/api/practice/history?player=Alice').get_json()
    assert [s['id'] for s in history['sessions']] == [session_id]
    assert history['stats']['checkout_success'] == 100


def test_practice_http_errors(client):
    assert client.post('/api/practice/start', json={'mode': 'bogus'}).status_code == 400
    assert client.post('/api/practice/start', json={'mode': 'target', 'settings': {}}).status_code == 400
    assert client.get('/api/practice/nope').status_code == 404
