from buzzboard import db
from buzzboard.game_config import Role, ScoreReason
from buzzboard.models import Lobby, Participant
from buzzboard.services.game.scoring import record_score_event


def _create_lobby(admin_client, name='Friday Quiz'):
    res = admin_client.post('/api/lobbies', json={'name': name})
    assert res.status_code == 201
    return res.get_json()['lobby']


def _first_state(admin_client, code, value=300):
    board = admin_client.get(f'/api/lobbies/{code}/board').get_json()['board']
    return next(q for q in board[0]['categories'][0]['questions'] if q['value'] == value)


def test_register_login_and_check(client):
    res = client.post('/register', json={
        'email': 'Alice@Example.com',
        'username': 'Alice',
        'display_name': 'Alice',
        'password': 'password123',
    })
    assert res.status_code == 201
    assert res.get_json()['user']['username'] == 'alice'

    client.post('/logout')
    assert client.get('/check_login').status_code == 401

    res = client.post('/login', json={'identifier': 'alice@example.com', 'password': 'password123'})
    assert res.status_code == 200
    assert client.get('/check_login').get_json()['user']['display_name'] == 'Alice'

    res = client.post('/login', json={'identifier': 'alice', 'password': 'wrong-password'})
    assert res.status_code == 401
    assert res.get_json()['code'] == 'InvalidCredentials'


def test_register_rejects_duplicates_and_bad_input(client, make_client):
    make_client('alice')
    res = client.post('/register', json={
        'email': 'alice@example.com',
        'username': 'someoneelse',
        'display_name': 'Someone',
        'password': 'password123',
    })
    assert res.status_code == 409
    assert res.get_json()['code'] == 'UserExists'

    res = client.post('/register', json={'email': 'nope', 'username': 'x', 'password': 'short'})
    assert res.status_code == 400
    assert res.get_json()['code'] == 'ValidationError'


def test_lobby_routes_require_login(client):
    res = client.get('/api/lobbies')
    assert res.status_code == 401
    assert res.get_json()['code'] == 'NotAuthenticated'


def test_create_and_list_lobbies(make_client):
    admin = make_client('host')
    lobby = _create_lobby(admin)
    assert lobby['status'] == 'lobby'
    assert [p['role'] for p in lobby['participants']] == ['ADMIN']

    listed = admin.get('/api/lobbies').get_json()['lobbies']
    assert [l['code'] for l in listed] == [lobby['code']]

    res = admin.post('/api/lobbies', json={'name': 'no'})
    assert res.status_code == 400
    assert res.get_json()['code'] == 'ValidationError'


def test_join_until_full(make_client):
    admin = make_client('host')
    code = _create_lobby(admin)['code']

    seats = []
    for i in range(4):
        res = make_client(f'player{i}').post('/api/lobbies/join', json={'code': code.lower()})
        assert res.status_code == 200
        seats.append(res.get_json()['participant']['seat_index'])
    assert seats == [0, 1, 2, 3]

    res = make_client('latecomer').post('/api/lobbies/join', json={'code': code})
    assert res.status_code == 409
    assert res.get_json()['code'] == 'LobbyFull'

    res = make_client('lost').post('/api/lobbies/join', json={'code': 'ZZZZZZ'})
    assert res.status_code == 404
    assert res.get_json()['code'] == 'LobbyNotFound'


def test_board_is_members_only_and_hides_answers_from_players(make_client):
    admin = make_client('host')
    player = make_client('player')
    outsider = make_client('outsider')
    code = _create_lobby(admin)['code']
    player.post('/api/lobbies/join', json={'code': code})

    res = outsider.get(f'/api/lobbies/{code}/board')
    assert res.status_code == 403
    assert res.get_json()['code'] == 'NotAMember'

    player_view = player.get(f'/api/lobbies/{code}/board').get_json()
    admin_view = admin.get(f'/api/lobbies/{code}/board').get_json()
    assert 'answer' not in player_view['board'][0]['categories'][0]['questions'][0]['question']
    assert 'answer' in admin_view['board'][0]['categories'][0]['questions'][0]['question']
    assert player_view['timer_seconds'] == 30
    assert {p['role'] for p in player_view['participants']} == {'ADMIN', 'PLAYER'}


def test_full_buzz_round(make_client):
    admin = make_client('host')
    alice = make_client('alice')
    bob = make_client('bob')
    code = _create_lobby(admin)['code']
    alice.post('/api/lobbies/join', json={'code': code})
    bob.post('/api/lobbies/join', json={'code': code})

    state = _first_state(admin, code, 300)

    res = alice.post(f'/api/lobbies/{code}/board/select', json={'question_state_id': state['id']})
    assert res.status_code == 403
    assert res.get_json()['code'] == 'AdminRequired'

    res = admin.post(f'/api/lobbies/{code}/board/select', json={'question_state_id': state['id']})
    assert res.status_code == 200
    assert res.get_json()['question']['status'] == 'ACTIVE'

    other = _first_state(admin, code, 100)
    res = admin.post(f'/api/lobbies/{code}/board/select', json={'question_state_id': other['id']})
    assert res.status_code == 409
    assert res.get_json()['code'] == 'QuestionAlreadyActive'

    bob_buzz = bob.post(f'/api/lobbies/{code}/board/buzz')
    alice_buzz = alice.post(f'/api/lobbies/{code}/board/buzz')
    assert bob_buzz.status_code == 201 and alice_buzz.status_code == 201
    assert bob_buzz.get_json()['attempt']['order_index'] == 0
    assert alice_buzz.get_json()['attempt']['order_index'] == 1

    res = bob.post(f'/api/lobbies/{code}/board/buzz')
    assert res.status_code == 409
    assert res.get_json()['code'] == 'AlreadyBuzzed'

    bob_attempt = bob_buzz.get_json()['attempt']['id']
    alice_attempt = alice_buzz.get_json()['attempt']['id']
    res = admin.post(f'/api/lobbies/{code}/board/buzz/{bob_attempt}/result', json={'result': 'INCORRECT'})
    assert res.status_code == 200
    assert res.get_json()['attempt']['result'] == 'INCORRECT'

    res = admin.post(f'/api/lobbies/{code}/board/buzz/{alice_attempt}/result', json={'result': 'correct'})
    assert res.status_code == 200

    board = admin.get(f'/api/lobbies/{code}/board').get_json()
    scores = {p['user']['username']: p['score'] for p in board['participants'] if p['role'] == 'PLAYER'}
    assert scores == {'alice': 300, 'bob': -150}
    played = next(q for q in board['board'][0]['categories'][0]['questions'] if q['id'] == state['id'])
    assert played['status'] == 'RESOLVED'
    assert [a['result'] for a in played['buzz_attempts']] == ['INCORRECT', 'CORRECT']

    events = alice.get(f'/api/lobbies/{code}/score-events').get_json()['events']
    assert [(e['delta'], e['reason']) for e in events] == [(300, 'QUESTION_CORRECT'), (-150, 'QUESTION_INCORRECT')]
    assert events[0]['participant']['display_name'] == 'Alice'
    assert events[0]['question'] == {'id': state['id'], 'category': played['question']['category'], 'value': 300}

    limited = alice.get(f'/api/lobbies/{code}/score-events?limit=1').get_json()['events']
    assert len(limited) == 1 and limited[0]['delta'] == 300
    assert alice.get(f'/api/lobbies/{code}/score-events?limit=0').status_code == 400
    assert alice.get(f'/api/lobbies/{code}/score-events?limit=abc').status_code == 400


def test_skip_via_resolve_endpoint(make_client):
    admin = make_client('host')
    code = _create_lobby(admin)['code']
    state = _first_state(admin, code, 200)
    admin.post(f'/api/lobbies/{code}/board/select', json={'question_state_id': state['id']})

    res = admin.post(f'/api/lobbies/{code}/board/resolve', json={'question_state_id': state['id'], 'verdict': 'SKIPPED'})
    assert res.status_code == 200
    assert res.get_json()['question']['status'] == 'DISCARDED'

    res = admin.post(f'/api/lobbies/{code}/board/resolve', json={'question_state_id': state['id'], 'verdict': 'SKIPPED'})
    assert res.status_code == 409
    assert res.get_json()['code'] == 'InvalidTransition'

    res = admin.post(f'/api/lobbies/{code}/board/resolve', json={'question_state_id': 'abc', 'verdict': 'SKIPPED'})
    assert res.status_code == 400


def test_buzz_after_expiry_is_rejected(make_client, expire_timer):
    admin = make_client('host')
    player = make_client('player')
    code = _create_lobby(admin)['code']
    player.post('/api/lobbies/join', json={'code': code})
    state = _first_state(admin, code, 100)
    admin.post(f'/api/lobbies/{code}/board/select', json={'question_state_id': state['id']})

    expire_timer(state['id'])
    res = player.post(f'/api/lobbies/{code}/board/buzz')
    assert res.status_code == 409
    assert res.get_json()['code'] == 'TimerExpired'

    board = player.get(f'/api/lobbies/{code}/board').get_json()['board']
    expired = next(q for q in board[0]['categories'][0]['questions'] if q['id'] == state['id'])
    assert expired['status'] == 'DISCARDED'

    res = player.post(f'/api/lobbies/{code}/board/buzz')
    assert res.get_json()['code'] == 'NoActiveQuestion'


def test_leave_and_rejoin(make_client):
    admin = make_client('host')
    player = make_client('player')
    code = _create_lobby(admin)['code']
    player.post('/api/lobbies/join', json={'code': code})

    res = player.post(f'/api/lobbies/{code}/leave')
    assert res.get_json()['participant']['state'] == 'LEFT'

    res = player.post('/api/lobbies/join', json={'code': code})
    assert res.get_json()['participant']['state'] == 'ACTIVE'
    assert res.get_json()['participant']['seat_index'] == 0

    detail = admin.get(f'/api/lobbies/{code}').get_json()['lobby']
    assert len(detail['participants']) == 2


def test_login_with_non_string_password_is_rejected(client, make_client):
    make_client('alice')
    for password in (12345678, ['password123'], {'p': 1}, 'x' * 100):
        res = client.post('/login', json={'identifier': 'alice', 'password': password})
        assert res.status_code == 401
        assert res.get_json()['code'] == 'InvalidCredentials'


def test_join_with_non_string_code_is_rejected(make_client):
    admin = make_client('host')
    _create_lobby(admin)
    player = make_client('player')
    for code in (123456, ['ABCDEF'], {'code': 'ABCDEF'}, 1.5):
        res = player.post('/api/lobbies/join', json={'code': code})
        assert res.status_code == 400
        assert res.get_json()['code'] == 'ValidationError'


def test_question_ids_must_be_integral_and_in_range(make_client):
    admin = make_client('host')
    code = _create_lobby(admin)['code']
    state = _first_state(admin, code, 100)

    for bad_id in (10 ** 30, 2 ** 63, -2 ** 63 - 1, 1.9, 'abc', [state['id']], True):
        res = admin.post(f'/api/lobbies/{code}/board/select', json={'question_state_id': bad_id})
        assert res.status_code == 400, bad_id
        assert res.get_json()['code'] == 'ValidationError'

    res = admin.post(f'/api/lobbies/{code}/board/resolve', json={
        'question_state_id': state['id'],
        'verdict': 'CORRECT',
        'participant_id': 10 ** 30,
    })
    assert res.status_code == 400
    assert res.get_json()['code'] == 'ValidationError'

    # Whole-number floats are still accepted
    res = admin.post(f'/api/lobbies/{code}/board/select', json={'question_state_id': float(state['id'])})
    assert res.status_code == 200
    assert res.get_json()['question']['status'] == 'ACTIVE'


def test_score_events_default_to_newest_25(flask_app, make_client):
    admin = make_client('host')
    player = make_client('player')
    code = _create_lobby(admin)['code']
    player.post('/api/lobbies/join', json={'code': code})

    with flask_app.app_context():
        lobby = Lobby.query.filter_by(code=code).first()
        participant = Participant.query.filter_by(lobby_id=lobby.id, role=Role.PLAYER).first()
        for delta in range(1, 31):
            record_score_event(participant, delta, ScoreReason.QUESTION_CORRECT, lobby.owner_id)
            db.session.commit()

    events = player.get(f'/api/lobbies/{code}/score-events').get_json()['events']
    assert [e['delta'] for e in events] == list(range(30, 5, -1))
    assert all(e['question'] is None for e in events)

    everything = player.get(f'/api/lobbies/{code}/score-events?limit=100').get_json()['events']
    assert [e['delta'] for e in everything] == list(range(30, 0, -1))
