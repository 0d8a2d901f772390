from types import SimpleNamespace

import pytest

from quizduel.services.games.errors import InvalidTransition
from quizduel.services.games.phases import TRANSITIONS, Phase, advance, can_transition, require_phase


def test_every_phase_has_a_transition_entry():
    assert set(TRANSITIONS) == set(Phase)


def test_completed_is_terminal():
    for target in Phase:
        assert not can_transition(Phase.COMPLETED, target)


def test_any_live_phase_can_complete():
    for source in Phase:
        if source != Phase.COMPLETED:
            assert can_transition(source, Phase.COMPLETED)


def test_advance_updates_phase():
    game = SimpleNamespace(phase='QUESTION_ACTIVE')
    assert advance(game, Phase.STEAL_OPEN) == Phase.STEAL_OPEN
    assert game.phase == 'STEAL_OPEN'


def test_advance_refuses_unlisted_transition():
    game = SimpleNamespace(phase='WAITING')
    with pytest.raises(InvalidTransition) as exc:
        advance(game, Phase.QUESTION_ACTIVE)
    assert exc.value.data == {'phase': 'WAITING', 'requested': 'QUESTION_ACTIVE'}
    assert exc.value.status_code == 409
    assert game.phase == 'WAITING'


def test_steal_window_cannot_reopen_a_question():
    assert not can_transition(Phase.STEAL_OPEN, Phase.QUESTION_ACTIVE)
    assert not can_transition(Phase.ROUND_COMPLETE, Phase.STEAL_OPEN)


def test_require_phase():
    game = SimpleNamespace(phase='QUESTION_READY')
    assert require_phase(game, Phase.CATEGORY_SELECTION, Phase.QUESTION_READY) == Phase.QUESTION_READY
    with pytest.raises(InvalidTransition) as exc:
        require_phase(game, Phase.QUESTION_ACTIVE)
    assert exc.value.data['expected'] == ['QUESTION_ACTIVE']
