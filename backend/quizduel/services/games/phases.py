"""Game phase state machine.

Phases form a closed set; every phase change goes through ``advance`` which
checks it against ``TRANSITIONS`` and refuses anything not listed there.
"""

import enum

from .errors import InvalidTransition


class Phase(str, enum.Enum):
    WAITING = 'WAITING'
    CATEGORY_SELECTION = 'CATEGORY_SELECTION'
    QUESTION_READY = 'QUESTION_READY'
    QUESTION_ACTIVE = 'QUESTION_ACTIVE'
    STEAL_OPEN = 'STEAL_OPEN'
    ROUND_COMPLETE = 'ROUND_COMPLETE'
    COMPLETED = 'COMPLETED'


# Valid phase transitions: {current_phase: {allowed next phases}}
TRANSITIONS = {
    Phase.WAITING: {
        Phase.CATEGORY_SELECTION,
        Phase.COMPLETED,
    },
    Phase.CATEGORY_SELECTION: {
        Phase.CATEGORY_SELECTION,
        Phase.QUESTION_READY,
        Phase.COMPLETED,
    },
    Phase.QUESTION_READY: {
        Phase.CATEGORY_SELECTION,
        Phase.QUESTION_READY,
        Phase.QUESTION_ACTIVE,
        Phase.COMPLETED,
    },
    Phase.QUESTION_ACTIVE: {
        Phase.CATEGORY_SELECTION,
        Phase.STEAL_OPEN,
        Phase.ROUND_COMPLETE,
        Phase.COMPLETED,
    },
    Phase.STEAL_OPEN: {
        Phase.CATEGORY_SELECTION,
        Phase.ROUND_COMPLETE,
        Phase.COMPLETED,
    },
    Phase.ROUND_COMPLETE: {
        Phase.CATEGORY_SELECTION,
        Phase.COMPLETED,
    },
    Phase.COMPLETED: set(),
}


def current_phase(game) -> Phase:
    return Phase(game.phase)


def can_transition(source: Phase, target: Phase) -> bool:
    return target in TRANSITIONS.get(source, set())


def advance(game, target: Phase) -> Phase:
    """Move ``game`` to ``target`` or raise InvalidTransition."""
    source = current_phase(game)
    if not can_transition(source, target):
        raise InvalidTransition(
            f'Cannot move from {source.value} to {target.value}',
            data={'phase': source.value, 'requested': target.value},
        )
    game.phase = target.value
    return target


def require_phase(game, *allowed: Phase) -> Phase:
    """Raise InvalidTransition unless the game is in one of ``allowed``."""
    phase = current_phase(game)
    if phase not in allowed:
        raise InvalidTransition(
            f'Not possible while the game is in {phase.value}',
            data={'phase': phase.value, 'expected': [p.value for p in allowed]},
        )
    return phase
