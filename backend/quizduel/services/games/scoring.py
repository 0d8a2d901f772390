from quizduel import db
from quizduel.models import Player


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (2.5 -> 3)."""
    return int(value + 0.5)


def points_for(points: int, is_correct: bool, is_steal: bool = False, steal_divisor: int = 2) -> int:
    """Points earned by one answer.

    Full question points on a direct correct answer, the question points
    divided by ``steal_divisor`` (rounded half up) on a correct steal, and
    nothing for a wrong answer.
    """
    if not is_correct:
        return 0
    points = int(points or 0)
    if is_steal:
        return round_half_up(points / steal_divisor)
    return points


def apply_answer(player: Player, points_earned: int, is_correct: bool) -> Player:
    """Credit a real answer: score plus exactly one of correct/wrong."""
    player.score = (player.score or 0) + points_earned
    if is_correct:
        player.correct_answers = (player.correct_answers or 0) + 1
    else:
        player.wrong_answers = (player.wrong_answers or 0) + 1
    db.session.add(player)
    return player


def apply_skip(player: Player) -> Player:
    """A timeout only counts as a skip; the score is untouched."""
    player.skipped_answers = (player.skipped_answers or 0) + 1
    db.session.add(player)
    return player
