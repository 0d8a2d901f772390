import pytest

from quizduel.models import Player
from quizduel.services.games.scoring import apply_answer, apply_skip, points_for, round_half_up


@pytest.mark.parametrize('points,is_correct,is_steal,expected', [
    (10, True, False, 10),
    (10, True, True, 5),
    (5, True, True, 3),
    (7, True, True, 4),
    (20, False, False, 0),
    (20, False, True, 0),
    (None, True, False, 0),
])
def test_points_for(points, is_correct, is_steal, expected):
    assert points_for(points, is_correct, is_steal) == expected


def test_round_half_up():
    assert [round_half_up(v) for v in (0, 0.4, 0.5, 2.5, 3.49)] == [0, 0, 1, 3, 3]


def test_custom_steal_divisor():
    assert points_for(30, True, True, steal_divisor=3) == 10


def test_each_answer_moves_exactly_one_counter(flask_app):
    player = Player(name='Team Blue', player_order=1, score=0, correct_answers=0, wrong_answers=0, skipped_answers=0)

    apply_answer(player, 10, True)
    assert (player.score, player.correct_answers, player.wrong_answers, player.skipped_answers) == (10, 1, 0, 0)

    apply_answer(player, 0, False)
    assert (player.score, player.correct_answers, player.wrong_answers, player.skipped_answers) == (10, 1, 1, 0)

    apply_skip(player)
    assert (player.score, player.correct_answers, player.wrong_answers, player.skipped_answers) == (10, 1, 1, 1)
