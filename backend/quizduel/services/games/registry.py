"""Player registry: who is in a game, in which order."""

import re
from typing import List, Optional, Tuple

from flask import current_app

from quizduel import db
from quizduel.models import Game, GameStatus, Player, PlayerAnswer, PlayerStatus, User
from .errors import (
    CapacityExceeded,
    DuplicateParticipant,
    GameNotJoinable,
    HostOnly,
    InvalidInput,
    InvalidName,
    NotFound,
    RejoinForbidden,
)
from .modes import policy_for
from .phases import Phase, advance, current_phase


GUEST_NAME_PATTERN = re.compile(r'^[\w \-]{2,20}$')
RESERVED_NAME_WORDS = ('admin', 'moderator', 'system', 'bot', 'guest')


def sanitize_guest_name(raw) -> str:
    """Trim and validate a guest display name, raising InvalidName."""
    name = (raw or '').strip() if isinstance(raw, str) else ''
    if not GUEST_NAME_PATTERN.match(name):
        raise InvalidName(
            'Guest names must be 2-20 characters of letters, digits, spaces, hyphens or underscores',
            data={'name': raw},
        )
    lowered = name.lower()
    for word in RESERVED_NAME_WORDS:
        if word in lowered:
            raise InvalidName(f'Guest names cannot contain "{word}"', data={'name': raw})
    return name


def ensure_host(game: Game, user_id) -> None:
    if user_id is None or game.host_id != user_id:
        raise HostOnly()


def get_player(game: Game, player_id) -> Player:
    player = Player.query.filter_by(id=player_id, game_id=game.id).first() if player_id is not None else None
    if not player:
        raise NotFound('Player not found in this game', data={'player_id': player_id})
    return player


def list_players(game: Game, ranking: bool = False) -> List[Player]:
    query = Player.query.filter_by(game_id=game.id)
    if ranking:
        return query.order_by(
            Player.final_rank.is_(None),
            Player.final_rank.asc(),
            Player.score.desc(),
            Player.player_order.asc(),
        ).all()
    return query.order_by(Player.player_order.asc()).all()


def active_players(game: Game) -> List[Player]:
    return [p for p in list_players(game) if p.is_active]


def next_active_player(game: Game, after_order: Optional[int]) -> Optional[Player]:
    """Next active player after ``after_order``, wrapping to the first."""
    players = active_players(game)
    if not players:
        return None
    if after_order is not None:
        for p in players:
            if p.player_order > after_order:
                return p
    return players[0]


def add_player(game: Game, user: Optional[User] = None, guest_name=None, via_lobby: bool = False) -> Player:
    if (user is None) == (guest_name is None):
        raise InvalidInput('Provide either a user or a guest name')
    if game.status != GameStatus.WAITING.value:
        raise GameNotJoinable()

    name = user.username if user is not None else sanitize_guest_name(guest_name)

    policy = policy_for(game.mode)
    capacity = int(current_app.config.get('LOBBY_MAX_PLAYERS', 8)) if via_lobby else policy.max_players
    players = list_players(game)
    if len([p for p in players if p.is_active]) >= capacity:
        raise CapacityExceeded(data={'max_players': capacity})

    if user is not None:
        if any(p.user_id == user.id for p in players):
            raise DuplicateParticipant('User already in this game')
    elif any(p.is_guest and p.name.lower() == name.lower() for p in players):
        raise DuplicateParticipant(f'A player named "{name}" is already in this game')

    player = Player(
        game_id=game.id,
        user_id=user.id if user is not None else None,
        name=name,
        is_guest=user is None,
        status=PlayerStatus.ACTIVE.value,
        player_order=len(players) + 1,
    )
    db.session.add(player)
    db.session.flush()
    current_app.logger.info(
        f"[join] game={game.id} player={player.id} order={player.player_order} guest={player.is_guest}"
    )
    return player


def join_game(game: Game, user: User) -> Tuple[Player, bool]:
    """Room-code join for an authenticated user; returns (player, rejoined)."""
    existing = Player.query.filter_by(game_id=game.id, user_id=user.id).first()
    if existing:
        if PlayerAnswer.query.filter_by(player_id=existing.id).first():
            raise RejoinForbidden()
        if not existing.is_active and game.status != GameStatus.COMPLETED.value:
            existing.status = PlayerStatus.ACTIVE.value
            db.session.add(existing)
            db.session.flush()
            current_app.logger.info(f"[rejoin] game={game.id} player={existing.id} reactivated")
        return existing, True
    return add_player(game, user=user, via_lobby=True), False


def remove_player(game: Game, player_id) -> Player:
    """Leave a game.

    While the game is WAITING the row is deleted and later seats move up so
    orders stay dense. Afterwards the row is kept as LEFT for the results.
    """
    player = get_player(game, player_id)

    if game.status == GameStatus.WAITING.value:
        if game.current_player_id == player.id:
            game.current_player_id = None
        removed_order = player.player_order
        db.session.delete(player)
        db.session.flush()
        # Renumber one by one in ascending order so the unique (game, order) index never collides
        for p in Player.query.filter(Player.game_id == game.id, Player.player_order > removed_order).order_by(Player.player_order.asc()).all():
            p.player_order -= 1
            db.session.flush()
        current_app.logger.info(f"[leave] game={game.id} player={player_id} deleted")
        return player

    if not player.is_active:
        return player
    player.status = PlayerStatus.LEFT.value
    db.session.add(player)
    db.session.flush()
    if game.current_player_id == player.id and current_phase(game) != Phase.COMPLETED:
        # With nobody left to pass to the seat stays with the leaver
        successor = next_active_player(game, player.player_order) or player
        game.current_player_id = successor.id
        game.current_turn = (game.current_turn or 0) + 1
        game.active_question_id = None
        advance(game, Phase.CATEGORY_SELECTION)
    current_app.logger.info(f"[leave] game={game.id} player={player_id} marked left")
    return player
