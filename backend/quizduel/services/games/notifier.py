from flask import current_app

from quizduel import socketio


def room_for(game_code: str) -> str:
    return f"game:{game_code.upper()}"


def notify(game_code: str, event: str, payload: dict) -> None:
    """Broadcast a state change to every client in the game room.

    Fire and forget: the transition has already been committed, so a failed
    emit is logged and never surfaces to the caller.
    """
    data = dict(payload or {})
    data.setdefault('game_code', game_code.upper())
    try:
        socketio.emit(event, data, to=room_for(game_code), namespace='/ws')
    except Exception as exc:
        current_app.logger.warning(f"[emit-failed] game={game_code} event={event} error={exc}")
