import threading

from oche.services.match import store


def create_match(client, mode='501', players=None):
    players = players or [{'id': 'alice', 'name': 'Alice'}]
    res = client.post('/api/matches/create', json={'mode': mode, 'players': players})
    assert res.status_code == 201
    return res.get_json()


def throw(client, code, segment, multiplier=1):
    return client.post(f'/api/matches/{code}/throw', json={'segment': segment, 'multiplier': multiplier})


def test_index_and_modes(client):
    assert client.get('/').status_code == 200
    modes = client.get('/modes').get_json()
    assert {m['mode'] for m in modes} == {'501', '301', 'cricket', 'aroundTheClock'}


def test_create_match(client):
    match = create_match(client, players=['Alice', 'Bob'])
    assert len(match['match_code']) == 6
    assert match['status'] == 'active'
    assert [p['name'] for p in match['players']] == ['Alice', 'Bob']
    assert match['state']['players'][0]['score'] == 501
    assert match['checkout_suggestion'] is None
    assert match['display']['turn_complete_sec'] == 2


def test_create_rejects_bad_input(client):
    assert client.post('/api/matches/create', json={'mode': '501', 'players': []}).status_code == 400
    assert client.post('/api/matches/create', json={'mode': '701', 'players': ['Alice']}).status_code == 400
    assert client.post('/api/matches/create', json={'mode': '501', 'players': 'Alice'}).status_code == 400


def test_throw_updates_state(client):
    code = create_match(client)['match_code']
    for expected in (441, 381, 321):
        res = throw(client, code, 20, 3)
        assert res.status_code == 200
        assert res.get_json()['state']['players'][0]['score'] == expected

    state = client.get(f'/api/matches/{code}/state').get_json()['state']
    assert len(state['turns']) == 1
    assert state['turns'][0]['total_score'] == 180
    assert state['current_round'] == 2


def test_invalid_throw_is_rejected(client):
    code = create_match(client)['match_code']
    res = throw(client, code, 25, 3)
    assert res.status_code == 400
    assert 'error' in res.get_json()
    assert client.post(f'/api/matches/{code}/throw', json={}).status_code == 400

    state = client.get(f'/api/matches/{code}/state').get_json()['state']
    assert state['players'][0]['darts'] == []


def test_unknown_match_is_404(client):
    assert client.get('/api/matches/NOPE00/state').status_code == 404
    assert throw(client, 'NOPE00', 20).status_code == 404


def test_full_leg_win_and_undo(client):
    code = create_match(client)['match_code']
    for segment, multiplier in [(20, 3)] * 6:
        throw(client, code, segment, multiplier)

    payload = client.get(f'/api/matches/{code}/state').get_json()
    assert payload['state']['players'][0]['score'] == 141
    assert payload['checkout_suggestion'] is not None

    throw(client, code, 20, 3)
    throw(client, code, 19, 3)
    won = throw(client, code, 12, 2).get_json()
    assert won['status'] == 'completed'
    assert won['winner'] == 'Alice'
    assert won['finished_at'] is not None
    assert won['state']['winner']['id'] == 'alice'

    assert throw(client, code, 20, 1).status_code == 409

    undone = client.post(f'/api/matches/{code}/undo').get_json()
    assert undone['status'] == 'active'
    assert undone['winner'] is None
    assert undone['state']['winner'] is None
    assert undone['state']['players'][0]['score'] == 24


def test_undo_without_darts_is_a_no_op(client):
    code = create_match(client)['match_code']
    res = client.post(f'/api/matches/{code}/undo')
    assert res.status_code == 200
    assert res.get_json()['state']['current_dart_in_turn'] == 0


def test_end_and_list_active(client):
    first = create_match(client)['match_code']
    second = create_match(client, mode='cricket')['match_code']

    active = {m['match_code'] for m in client.get('/api/matches/active').get_json()}
    assert {first, second} <= active

    res = client.post(f'/api/matches/{first}/end', json={})
    assert res.status_code == 200
    assert res.get_json()['status'] == 'abandoned'

    active = {m['match_code'] for m in client.get('/api/matches/active').get_json()}
    assert first not in active
    assert second in active

    # No more darts on an abandoned match
    assert throw(client, first, 20).status_code == 409
    assert client.post(f'/api/matches/{first}/undo').status_code == 409


def test_end_rejects_unknown_status(client):
    code = create_match(client)['match_code']
    res = client.post(f'/api/matches/{code}/end', json={'status': 'paused'})
    assert res.status_code == 400


def test_delete_match(client):
    code = create_match(client)['match_code']
    assert client.delete(f'/api/matches/{code}').status_code == 200
    assert client.get(f'/api/matches/{code}/state').status_code == 404


def test_player_summary(client):
    code = create_match(client)['match_code']
    throw(client, code, 20, 3)
    res = client.get(f'/api/matches/{code}/players/alice/summary')
    assert res.status_code == 200
    assert res.get_json()['darts'] == 1

    assert client.get(f'/api/matches/{code}/players/nobody/summary').status_code == 404


def test_concurrent_throws_are_all_applied(file_app):
    client = file_app.test_client()
    code = create_match(client)['match_code']
    statuses = []

    def post_single():
        res = file_app.test_client().post(f'/api/matches/{code}/throw', json={'segment': 1, 'multiplier': 1})
        statuses.append(res.status_code)

    workers = [threading.Thread(target=post_single) for _ in range(12)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()

    assert statuses == [200] * 12
    player = client.get(f'/api/matches/{code}/state').get_json()['state']['players'][0]
    assert player['stats']['darts_thrown'] == 12
    assert len(player['darts']) == 12
    assert player['score'] == 489


def test_ending_a_match_releases_its_lock(client):
    code = create_match(client)['match_code']
    throw(client, code, 20)
    assert code in store._match_locks

    client.post(f'/api/matches/{code}/end', json={})
    assert code not in store._match_locks


def test_create_rejects_non_string_mode(client):
    res = client.post('/api/matches/create', json={'mode': ['501'], 'players': ['Alice']})
    assert res.status_code == 400
