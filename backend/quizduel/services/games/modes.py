"""Per-mode rules for the shared turn/round state machine."""

from dataclasses import dataclass
import enum

from flask import current_app

from quizduel.models import GameMode
from .errors import InvalidInput


class TurnOrder(str, enum.Enum):
    ROUND_ROBIN = 'ROUND_ROBIN'    # one player per question, turn passes after every answer
    STEAL = 'STEAL'                # wrong answers open the question to everybody else
    SIMULTANEOUS = 'SIMULTANEOUS'  # every player answers every question


@dataclass(frozen=True)
class ModePolicy:
    mode: GameMode
    max_players: int
    turn_order: TurnOrder
    host_selects: bool
    auto_complete: bool
    steal_divisor: int = 2

    @property
    def steal_enabled(self) -> bool:
        return self.turn_order == TurnOrder.STEAL


def parse_mode(value) -> GameMode:
    try:
        return GameMode(str(value or GameMode.TURN_BASED.value).upper())
    except ValueError:
        raise InvalidInput(
            f'Unknown game mode: {value}',
            data={'modes': [m.value for m in GameMode]},
        )


def policy_for(mode) -> ModePolicy:
    mode = parse_mode(mode)
    cfg = current_app.config
    seats = int(cfg.get('TURN_MAX_PLAYERS', 4))
    lobby_seats = int(cfg.get('LOBBY_MAX_PLAYERS', 8))
    if mode == GameMode.TURN_BASED:
        return ModePolicy(mode, seats, TurnOrder.ROUND_ROBIN, host_selects=False, auto_complete=False)
    if mode == GameMode.GRID_STYLE:
        return ModePolicy(mode, lobby_seats, TurnOrder.SIMULTANEOUS, host_selects=False, auto_complete=True)
    if mode == GameMode.COMPETITIVE:
        return ModePolicy(mode, seats, TurnOrder.STEAL, host_selects=False, auto_complete=True)
    return ModePolicy(mode, seats, TurnOrder.STEAL, host_selects=True, auto_complete=True)
