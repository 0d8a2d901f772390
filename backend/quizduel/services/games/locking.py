"""Per-game serialization of state-changing actions.

``game_transaction`` is the only way services get a Game they may mutate:
actions on the same game run one at a time behind an in-process lock keyed
by game id, the Game row is re-read under ``SELECT ... FOR UPDATE`` so the
decision is taken on the state that gets committed, and the whole block is
committed once or rolled back.
"""

from contextlib import contextmanager
import threading
import weakref
from typing import MutableMapping

from flask import current_app

from quizduel import db
from quizduel.models import Game
from .errors import NotFound


# Entries live only while some caller holds a reference to the lock
_game_locks: MutableMapping[int, threading.RLock] = weakref.WeakValueDictionary()
_game_locks_guard = threading.Lock()


def lock_for(game_id: int) -> threading.RLock:
    with _game_locks_guard:
        lock = _game_locks.get(game_id)
        if lock is None:
            lock = threading.RLock()
            _game_locks[game_id] = lock
        return lock


def resolve_game_id(game_code: str) -> int:
    game = Game.query.filter_by(game_code=(game_code or '').upper()).first()
    if not game:
        raise NotFound('Game not found', data={'game_code': game_code})
    return game.id


@contextmanager
def game_transaction(game_id: int):
    """Yield the locked Game; commit on success, roll back on any error."""
    with lock_for(game_id):
        game = Game.query.filter_by(id=game_id).populate_existing().with_for_update().first()
        if not game:
            raise NotFound('Game not found', data={'game_id': game_id})
        try:
            yield game
            db.session.commit()
        except Exception:
            db.session.rollback()
            current_app.logger.debug(f"[rollback] game={game_id}")
            raise


@contextmanager
def unit_of_work():
    """Commit/rollback wrapper for actions that do not touch an existing game."""
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
