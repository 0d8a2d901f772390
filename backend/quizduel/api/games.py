from flask import Blueprint, jsonify, request, current_app
from flask_login import current_user, login_required
from werkzeug.exceptions import HTTPException

from quizduel import db
from quizduel.models import Game, Player
from quizduel.services.games import bank, lobby, registry, results, selection, turns
from quizduel.services.games.errors import GameError, InvalidInput
from quizduel.services.games.locking import game_transaction, resolve_game_id, unit_of_work
from quizduel.services.games.modes import policy_for
from quizduel.services.games.notifier import notify
from quizduel.services.games.phases import Phase


games = Blueprint('games', __name__)


def _ok(data=None, message='', status=200):
    return jsonify({'success': True, 'message': message, 'data': data}), status


def _body() -> dict:
    return request.get_json(silent=True) or {}


def _require(data: dict, *fields):
    missing = [f for f in fields if data.get(f) is None]
    if missing:
        raise InvalidInput(f"Missing required fields: {', '.join(missing)}", data={'missing': missing})


def _load_game(game_code: str) -> Game:
    return db.session.get(Game, resolve_game_id(game_code))


def _user_id():
    return current_user.id if current_user.is_authenticated else None


def _acting_player_id(game: Game, data: dict):
    """player_id from the body, or the signed-in user's seat in this game."""
    if data.get('player_id') is not None:
        return data['player_id']
    if current_user.is_authenticated:
        player = Player.query.filter_by(game_id=game.id, user_id=current_user.id).first()
        if player:
            return player.id
    return None


def _public(outcome: dict) -> dict:
    """Room copy of an answer/timeout outcome; the solution stays private while the question is open."""
    if not outcome.get('question_open'):
        return outcome
    return {k: v for k, v in outcome.items() if k != 'correct_answer'}


def _state(game: Game) -> dict:
    policy = policy_for(game.mode)
    state = game.to_dict()
    current = game.current_player
    state['current_player'] = current.to_dict() if current else None
    state['steal_open'] = game.phase == Phase.STEAL_OPEN.value
    state['active_question'] = bank.question_payload(game.active_question) if game.active_question else None
    state['rules'] = {
        'max_players': policy.max_players,
        'turn_order': policy.turn_order.value,
        'host_selects': policy.host_selects,
        'auto_complete': policy.auto_complete,
    }
    return state


@games.errorhandler(GameError)
def handle_game_error(error: GameError):
    current_app.logger.info(f"[rejected] {error.code}: {error.message}")
    return jsonify(error.to_dict()), error.status_code


@games.errorhandler(Exception)
def handle_unexpected_error(error):
    if isinstance(error, HTTPException):
        return error
    current_app.logger.exception(f"[error] {request.method} {request.path}")
    db.session.rollback()
    return jsonify({
        'success': False,
        'message': 'An unexpected error occurred',
        'error': {'kind': 'Unexpected', 'code': 'Unexpected'},
    }), 500


# ---- Lobby ----

@games.route('/create', methods=['POST'])
@login_required
def create_game():
    data = _body()
    with unit_of_work():
        game = lobby.create_game(current_user, mode=data.get('mode'), total_questions=data.get('total_questions'))
    return _ok(game.to_dict(), 'New game created!', 201)


@games.route('/join', methods=['POST'])
@login_required
def join_game():
    data = _body()
    _require(data, 'game_code')
    with game_transaction(resolve_game_id(data['game_code'])) as game:
        player, rejoined = registry.join_game(game, current_user)
        payload = {'game': game.to_dict(), 'player': player.to_dict(), 'rejoined': rejoined}
    if not rejoined:
        notify(game.game_code, 'player_joined', {'player': payload['player']})
    return _ok(payload, 'Rejoined game' if rejoined else 'Joined game', 200 if rejoined else 201)


@games.route('/<string:game_code>/guests', methods=['POST'])
@login_required
def add_guest(game_code):
    data = _body()
    _require(data, 'name')
    with game_transaction(resolve_game_id(game_code)) as game:
        registry.ensure_host(game, _user_id())
        player = registry.add_player(game, guest_name=data['name']).to_dict()
    notify(game_code, 'player_joined', {'player': player})
    return _ok(player, 'Guest player added', 201)


@games.route('/<string:game_code>/guests', methods=['GET'])
def list_guests(game_code):
    game = _load_game(game_code)
    guests = [p.to_dict() for p in registry.list_players(game) if p.is_guest]
    return _ok(guests)


@games.route('/<string:game_code>/players', methods=['GET'])
def list_players(game_code):
    game = _load_game(game_code)
    return _ok([p.to_dict() for p in registry.list_players(game)])


@games.route('/<string:game_code>/leave', methods=['POST'])
def leave_game(game_code):
    data = _body()
    with game_transaction(resolve_game_id(game_code)) as game:
        player_id = _acting_player_id(game, data)
        if player_id is None:
            raise InvalidInput('player_id is required')
        player = registry.remove_player(game, player_id)
        payload = {
            'player_id': player_id,
            'name': player.name,
            'current_player_id': game.current_player_id,
            'phase': game.phase,
        }
    notify(game_code, 'player_left', payload)
    return _ok(payload, 'Left game')


@games.route('/<string:game_code>/start', methods=['POST'])
@login_required
def start_game(game_code):
    data = _body()
    with game_transaction(resolve_game_id(game_code)) as game:
        registry.ensure_host(game, _user_id())
        started = turns.start_game(game, data.get('total_questions'))
        state = _state(game)
    if started:
        notify(game_code, 'game_started', {'current_player_id': state['current_player_id']})
    return _ok(state, 'Game started' if started else 'Game already started')


# ---- Turns ----

def _check_host_selects(game: Game):
    if policy_for(game.mode).host_selects:
        registry.ensure_host(game, _user_id())


@games.route('/<string:game_code>/select-category', methods=['POST'])
def select_category(game_code):
    data = _body()
    _require(data, 'category_id', 'difficulty_id')
    with game_transaction(resolve_game_id(game_code)) as game:
        _check_host_selects(game)
        picked = selection.select_category(
            game, data['category_id'], data['difficulty_id'], _acting_player_id(game, data)
        ).to_dict()
    notify(game_code, 'category_selected', {'selection': picked})
    return _ok(picked, 'Category selected')


@games.route('/<string:game_code>/question', methods=['POST'])
def draw_question(game_code):
    data = _body()
    with game_transaction(resolve_game_id(game_code)) as game:
        _check_host_selects(game)
        drawn = selection.draw_question(game, _acting_player_id(game, data))
    notify(game_code, 'question_drawn', drawn)
    return _ok(drawn)


@games.route('/<string:game_code>/answer', methods=['POST'])
def submit_answer(game_code):
    data = _body()
    _require(data, 'question_id')
    with game_transaction(resolve_game_id(game_code)) as game:
        outcome = turns.submit_answer(
            game,
            _acting_player_id(game, data),
            data['question_id'],
            answer_id=data.get('answer_id'),
            answer_text=data.get('answer_text'),
        )
    notify(game_code, 'answer_submitted', _public(outcome))
    if outcome['game_completed']:
        notify(game_code, 'game_completed', {})
    return _ok(outcome, 'Correct!' if outcome['is_correct'] else 'Incorrect')


@games.route('/<string:game_code>/timeout', methods=['POST'])
def question_timeout(game_code):
    data = _body()
    _require(data, 'question_id')
    with game_transaction(resolve_game_id(game_code)) as game:
        outcome = turns.handle_timeout(game, _acting_player_id(game, data), data['question_id'])
    notify(game_code, 'question_timeout', _public(outcome))
    if outcome['game_completed']:
        notify(game_code, 'game_completed', {})
    return _ok(outcome, 'Time is up')


@games.route('/<string:game_code>/next-turn', methods=['POST'])
def next_turn(game_code):
    with game_transaction(resolve_game_id(game_code)) as game:
        outcome = turns.next_turn(game)
    notify(game_code, 'game_completed' if outcome['game_completed'] else 'turn_changed', outcome)
    return _ok(outcome)


@games.route('/<string:game_code>/check-completion', methods=['POST'])
def check_completion(game_code):
    with game_transaction(resolve_game_id(game_code)) as game:
        outcome = turns.check_completion(game)
    if outcome['reason'] and outcome['reason'] != 'already_completed':
        notify(game_code, 'game_completed', outcome)
    return _ok(outcome)


@games.route('/<string:game_code>/end', methods=['POST'])
@login_required
def end_game(game_code):
    with game_transaction(resolve_game_id(game_code)) as game:
        registry.ensure_host(game, _user_id())
        final = results.finalize_game(game)
    if not final['already_finalized']:
        notify(game_code, 'game_completed', {'winner': final['winner']})
    return _ok(final, 'Game finished')


# ---- Reads ----

@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    return _ok(_state(_load_game(game_code)))


@games.route('/<string:game_code>/categories', methods=['GET'])
def list_categories(game_code):
    game = _load_game(game_code)
    return _ok(bank.available_pairs(bank.used_question_ids(game.id)))


@games.route('/<string:game_code>/results', methods=['GET'])
def get_results(game_code):
    return _ok(results.build_results(_load_game(game_code)))


@games.route('/<string:game_code>/leaderboard', methods=['GET'])
def get_leaderboard(game_code):
    return _ok(results.build_results(_load_game(game_code))['leaderboard'])


@games.route('/stats', methods=['GET'])
@login_required
def my_stats():
    return _ok(results.player_stats(current_user.id))


@games.route('/mine', methods=['GET'])
@login_required
def my_games():
    try:
        limit = int(request.args.get('limit', 20))
    except ValueError:
        raise InvalidInput('limit must be a number')
    return _ok(results.game_history(current_user.id, limit=max(1, min(limit, 100))))
