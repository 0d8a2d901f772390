from conftest import setup_game
from quizduel import db
from quizduel.models import GameStatus, Leaderboard, Player
from quizduel.services.games import registry, results


def _player(order, score, correct, wrong=0):
    return Player(name=f'P{order}', player_order=order, score=score, correct_answers=correct, wrong_answers=wrong)


def _set_scores(game, *rows):
    for player, (score, correct, wrong) in zip(registry.list_players(game), rows):
        player.score, player.correct_answers, player.wrong_answers = score, correct, wrong
    db.session.commit()


def test_ranking_uses_correct_answers_to_break_score_ties():
    ranked = results.rank_players([_player(1, 50, 5), _player(2, 50, 3), _player(3, 30, 2)])
    assert [(p.player_order, rank) for p, rank in ranked] == [(1, 1), (2, 2), (3, 3)]


def test_full_ties_share_a_rank_and_skip_the_next():
    ranked = results.rank_players([_player(1, 10, 1), _player(2, 40, 4), _player(3, 40, 4)])
    assert [(p.player_order, rank) for p, rank in ranked] == [(2, 1), (3, 1), (1, 3)]


def test_accuracy():
    assert results.accuracy(_player(1, 0, 0, 0)) == 0.0
    assert results.accuracy(_player(1, 20, 2, 1)) == 66.67


def test_finalize_is_idempotent(users):
    game = setup_game(users[0], users=[users[1], users[2]], start=True)
    _set_scores(game, (50, 5, 0), (50, 3, 2), (30, 2, 3))

    first = results.finalize_game(game)
    db.session.commit()
    assert first['already_finalized'] is False
    assert [(p['name'], p['final_rank']) for p in first['players']] == [('alice', 1), ('bob', 2), ('cara', 3)]
    assert first['winner']['name'] == 'alice'
    assert first['is_tie'] is False
    assert first['average_score'] == 43.33
    assert len(first['podium']) == 3
    assert game.status == GameStatus.COMPLETED.value

    second = results.finalize_game(game)
    db.session.commit()
    assert second['already_finalized'] is True
    assert second['players'] == first['players']
    assert Leaderboard.query.filter_by(game_id=game.id).count() == 3


def test_leaderboard_rows_mirror_final_standings(users):
    game = setup_game(users[0], users=[users[1]], guests=['Team Blue'], start=True)
    _set_scores(game, (10, 1, 1), (40, 4, 0), (40, 4, 0))
    final = results.finalize_game(game)
    db.session.commit()

    assert final['is_tie'] is True
    assert [(row['score'], row['final_rank']) for row in final['leaderboard']] == [(40, 1), (40, 1), (10, 3)]
    guest_row = next(row for row in final['leaderboard'] if row['user_id'] is None)
    assert guest_row['mode'] == 'TURN_BASED'


def test_player_stats_and_history(users):
    game = setup_game(users[0], users=[users[1]], start=True)
    _set_scores(game, (30, 3, 1), (10, 1, 3))
    results.finalize_game(game)
    db.session.commit()
    setup_game(users[1])

    stats = results.player_stats(users[0].id)
    assert stats['games_played'] == 1
    assert stats['wins'] == 1
    assert stats['accuracy'] == 75.0
    assert stats['by_mode'] == {'TURN_BASED': {'games_played': 1, 'wins': 1, 'total_score': 30}}

    history = results.game_history(users[1].id)
    assert len(history) == 2
    assert {(h['is_host'], h['status']) for h in history} == {(True, 'WAITING'), (False, 'COMPLETED')}
