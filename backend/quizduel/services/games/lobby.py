"""Game creation and the hosting quota."""

from flask import current_app

from quizduel import db
from quizduel.models import Game, GameMode, GameStatus, User
from .errors import InvalidInput, QuotaExhausted
from .modes import parse_mode
from .phases import Phase
from .registry import add_player


def has_remaining_quota(user_id, mode: GameMode) -> bool:
    """Default quota: GAME_QUOTA_PER_MODE hosted games per mode, 0 = unlimited."""
    quota = int(current_app.config.get('GAME_QUOTA_PER_MODE', 0))
    if quota <= 0:
        return True
    hosted = Game.query.filter_by(host_id=user_id, mode=mode.value).count()
    return hosted < quota


def quota_checker():
    return current_app.extensions.get('quota_checker', has_remaining_quota)


def create_game(host: User, mode=None, total_questions=None) -> Game:
    mode = parse_mode(mode)
    if not quota_checker()(host.id, mode):
        raise QuotaExhausted(
            f'No {mode.value.replace("_", " ").lower()} games remaining. Please upgrade your subscription.',
            data={'mode': mode.value, 'requires_subscription': True},
        )

    game = Game(
        mode=mode.value,
        host_id=host.id,
        status=GameStatus.WAITING.value,
        phase=Phase.WAITING.value,
    )
    if total_questions is not None:
        try:
            game.total_questions = int(total_questions)
        except (TypeError, ValueError):
            raise InvalidInput('total_questions must be a number')
        if game.total_questions < 0:
            raise InvalidInput('total_questions cannot be negative')
    db.session.add(game)
    db.session.flush()

    # The host runs the board in remote play; everywhere else they also play
    if mode != GameMode.HOST_CONTROLLED:
        add_player(game, user=host)

    current_app.logger.info(f"[create] game={game.id} code={game.game_code} mode={mode.value} host={host.id}")
    return game
