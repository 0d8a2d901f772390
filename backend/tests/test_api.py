from conftest import make_user
from quizduel.services.games import bank, turns


def _create(client, mode='COMPETITIVE', **extra):
    res = client.post('/api/games/create', json={'mode': mode, **extra})
    assert res.status_code == 201
    return res.get_json()['data']


def _right_and_wrong(question_id):
    answers = bank.get_question(question_id).answers
    right = next(a.id for a in answers if a.is_correct)
    wrong = next(a.id for a in answers if not a.is_correct)
    return right, wrong


def test_index(client):
    res = client.get('/')
    assert res.status_code == 200


def test_create_requires_login(client):
    res = client.post('/api/games/create', json={'mode': 'COMPETITIVE'})
    assert res.status_code == 401
    body = res.get_json()
    assert body['success'] is False
    assert body['error']['kind'] == 'Forbidden'


def test_create_and_read_state(client, login):
    login('alice')
    game = _create(client)
    assert game['status'] == 'WAITING'
    assert [p['name'] for p in game['players']] == ['alice']

    res = client.get(f"/api/games/{game['game_code'].lower()}/state")
    assert res.status_code == 200
    state = res.get_json()['data']
    assert state['game_code'] == game['game_code']
    assert state['rules']['turn_order'] == 'STEAL'
    assert state['active_question'] is None


def test_unknown_game_is_not_found(client):
    res = client.get('/api/games/NOPE42/state')
    assert res.status_code == 404
    assert res.get_json() == {
        'success': False,
        'message': 'Game not found',
        'error': {'kind': 'NotFound', 'code': 'NotFound'},
        'data': {'game_code': 'NOPE42'},
    }


def test_guest_names_are_validated(client, login):
    login('alice')
    code = _create(client)['game_code']

    res = client.post(f'/api/games/{code}/guests', json={'name': '  Team Blue '})
    assert res.status_code == 201
    assert res.get_json()['data']['name'] == 'Team Blue'

    res = client.post(f'/api/games/{code}/guests', json={'name': 'admin99'})
    assert res.status_code == 400
    assert res.get_json()['error'] == {'kind': 'InvalidInput', 'code': 'InvalidName'}

    res = client.post(f'/api/games/{code}/guests', json={})
    assert res.status_code == 400
    assert res.get_json()['data'] == {'missing': ['name']}

    guests = client.get(f'/api/games/{code}/guests').get_json()['data']
    assert [g['name'] for g in guests] == ['Team Blue']


def test_full_game_rejects_another_guest(client, login):
    login('alice')
    code = _create(client, mode='TURN_BASED')['game_code']
    for name in ('Team Blue', 'Team Red', 'Team Green'):
        assert client.post(f'/api/games/{code}/guests', json={'name': name}).status_code == 201

    res = client.post(f'/api/games/{code}/guests', json={'name': 'Team Gold'})
    assert res.status_code == 409
    assert res.get_json()['error'] == {'kind': 'Conflict', 'code': 'CapacityExceeded'}
    assert len(client.get(f'/api/games/{code}/players').get_json()['data']) == 4


def test_each_client_keeps_its_own_login(flask_app, client, login):
    login('alice')
    make_user('bob')
    bob_client = flask_app.test_client()
    bob_client.post('/login', json={'username': 'bob', 'password': 'password'})

    assert client.get('/check_login').get_json()['data']['username'] == 'alice'
    assert bob_client.get('/check_login').get_json()['data']['username'] == 'bob'
    assert flask_app.test_client().get('/check_login').status_code == 401


def test_next_turn_on_an_unstarted_game_is_refused(client, login):
    login('alice')
    code = _create(client)['game_code']
    client.post(f'/api/games/{code}/guests', json={'name': 'Team Blue'})

    res = client.post(f'/api/games/{code}/next-turn')
    assert res.status_code == 409
    assert res.get_json()['error']['code'] == 'InvalidTransition'
    state = client.get(f'/api/games/{code}/state').get_json()['data']
    assert (state['status'], state['phase']) == ('WAITING', 'WAITING')


def test_room_code_join_and_host_only_actions(flask_app, client, login):
    login('alice')
    code = _create(client)['game_code']

    make_user('bob')
    bob_client = flask_app.test_client()
    bob_client.post('/login', json={'username': 'bob', 'password': 'password'})

    res = bob_client.post('/api/games/join', json={'game_code': code.lower()})
    assert res.status_code == 201
    assert res.get_json()['data']['player']['player_order'] == 2

    res = bob_client.post('/api/games/join', json={'game_code': code})
    assert res.status_code == 200
    assert res.get_json()['data']['rejoined'] is True

    res = bob_client.post(f'/api/games/{code}/start')
    assert res.status_code == 403
    assert res.get_json()['error']['code'] == 'HostOnly'

    res = client.post(f'/api/games/{code}/start')
    assert res.status_code == 200
    assert res.get_json()['data']['phase'] == 'CATEGORY_SELECTION'

    res = client.post(f'/api/games/{code}/start')
    assert res.get_json()['message'] == 'Game already started'


def test_steal_round_over_http(client, login, catalog):
    login('alice')
    code = _create(client)['game_code']
    blue = client.post(f'/api/games/{code}/guests', json={'name': 'Team Blue'}).get_json()['data']
    state = client.post(f'/api/games/{code}/start').get_json()['data']
    alice_id = state['current_player_id']

    categories = client.get(f'/api/games/{code}/categories').get_json()['data']
    assert [(d['name'], d['remaining']) for d in categories[0]['difficulties']] == [('Easy', 3), ('Medium', 6)]

    res = client.post(f'/api/games/{code}/select-category', json={
        'category_id': catalog['category'].id,
        'difficulty_id': catalog['medium'].id,
    })
    assert res.status_code == 200
    drawn = client.post(f'/api/games/{code}/question').get_json()['data']
    question_id = drawn['question']['id']
    right, wrong = _right_and_wrong(question_id)

    # Blue cannot jump in before the owner has answered
    res = client.post(f'/api/games/{code}/answer', json={
        'player_id': blue['id'], 'question_id': question_id, 'answer_id': right,
    })
    assert res.status_code == 403
    assert res.get_json()['error']['code'] == 'NotYourTurn'

    missed = client.post(f'/api/games/{code}/answer', json={'question_id': question_id, 'answer_id': wrong})
    assert missed.get_json()['data']['steal_open'] is True

    stolen = client.post(f'/api/games/{code}/answer', json={
        'player_id': blue['id'], 'question_id': question_id, 'answer_id': right,
    }).get_json()['data']
    assert stolen['points_earned'] == 5
    assert stolen['is_round_over'] is True
    assert stolen['current_player_id'] == alice_id

    again = client.post(f'/api/games/{code}/answer', json={
        'player_id': blue['id'], 'question_id': question_id, 'answer_id': right,
    })
    assert again.status_code == 409
    assert again.get_json()['error']['code'] == 'InvalidTransition'

    turn = client.post(f'/api/games/{code}/next-turn').get_json()['data']
    assert turn['current_player_id'] == blue['id']

    categories = client.get(f'/api/games/{code}/categories').get_json()['data']
    assert categories[0]['difficulties'][1]['remaining'] == 5

    final = client.post(f'/api/games/{code}/end').get_json()['data']
    assert final['winner']['name'] == 'Team Blue'
    assert final['already_finalized'] is False

    assert client.post(f'/api/games/{code}/end').get_json()['data']['already_finalized'] is True
    leaderboard = client.get(f'/api/games/{code}/leaderboard').get_json()['data']
    assert [row['final_rank'] for row in leaderboard] == [1, 2]

    stats = client.get('/api/games/stats').get_json()['data']
    assert (stats['games_played'], stats['wins'], stats['wrong']) == (1, 0, 1)
    mine = client.get('/api/games/mine').get_json()['data']
    assert mine[0]['game_code'] == code


def test_leave_passes_the_turn(client, login):
    login('alice')
    code = _create(client, mode='TURN_BASED')['game_code']
    client.post(f'/api/games/{code}/guests', json={'name': 'Team Blue'})
    client.post(f'/api/games/{code}/guests', json={'name': 'Team Red'})
    client.post(f'/api/games/{code}/start')

    res = client.post(f'/api/games/{code}/leave')
    assert res.status_code == 200
    players = client.get(f'/api/games/{code}/players').get_json()['data']
    assert [p['status'] for p in players] == ['LEFT', 'ACTIVE', 'ACTIVE']
    assert res.get_json()['data']['current_player_id'] == players[1]['id']


def test_unexpected_errors_are_hidden(client, login, monkeypatch):
    login('alice')
    code = _create(client)['game_code']
    client.post(f'/api/games/{code}/guests', json={'name': 'Team Blue'})
    client.post(f'/api/games/{code}/start')

    def boom(game):
        raise RuntimeError('database on fire')

    monkeypatch.setattr(turns, 'next_turn', boom)
    res = client.post(f'/api/games/{code}/next-turn')
    assert res.status_code == 500
    body = res.get_json()
    assert body['error'] == {'kind': 'Unexpected', 'code': 'Unexpected'}
    assert 'fire' not in body['message']
