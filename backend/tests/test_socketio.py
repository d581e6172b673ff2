def _create_match(client):
    res = client.post('/api/matches/create', json={'mode': '501', 'players': [{'id': 'alice', 'name': 'Alice'}]})
    return res.get_json()['match_code']


def test_socket_connect_and_join(sio_client):
    # Ensure we are connected to /ws
    if not sio_client.is_connected('/ws'):
        sio_client.connect(namespace='/ws')
    assert sio_client.is_connected('/ws')

    sio_client.emit('join_match', {'match_code': 'abc123'}, namespace='/ws')
    received = sio_client.get_received('/ws')
    joined = [pkt for pkt in received if pkt['name'] == 'joined']
    assert joined and joined[0]['args'][0]['room'] == 'match:ABC123'
    counts = [pkt['args'][0] for pkt in received if pkt['name'] == 'spectators']
    assert counts[-1] == {'match_code': 'ABC123', 'count': 1}


def test_join_requires_match_code(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('join_match', {}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'error' for pkt in received)


def test_throw_broadcasts_state_update(sio_client, client):
    code = _create_match(client)
    sio_client.emit('join_match', {'match_code': code}, namespace='/ws')
    sio_client.get_received('/ws')  # flush

    client.post(f'/api/matches/{code}/throw', json={'segment': 20, 'multiplier': 3})
    events = sio_client.get_received('/ws')
    updates = [e['args'][0] for e in events if e['name'] == 'state_update']
    assert updates == [{'match_code': code, 'status': 'active'}]


def test_spectator_count_in_payload(sio_client, client):
    code = _create_match(client)
    sio_client.emit('join_match', {'match_code': code}, namespace='/ws')
    payload = client.get(f'/api/matches/{code}/state').get_json()
    assert payload['spectators'] == 1

    sio_client.emit('leave_match', {'match_code': code}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'left' for pkt in received)
    assert client.get(f'/api/matches/{code}/state').get_json()['spectators'] == 0


def test_ping_pong(sio_client):
    sio_client.get_received('/ws')
    sio_client.emit('ping', {'n': 1}, namespace='/ws')
    received = sio_client.get_received('/ws')
    assert any(pkt['name'] == 'pong' and pkt['args'][0] == {'n': 1} for pkt in received)
