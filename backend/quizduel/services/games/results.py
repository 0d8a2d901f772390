"""Final ranking, leaderboard records and end-of-game statistics."""

from datetime import datetime
from typing import Iterable, List, Tuple

from flask import current_app

from quizduel import db
from quizduel.models import Game, GameQuestion, GameStatus, Leaderboard, Player
from .phases import Phase, advance
from .registry import list_players


def ranking_key(player: Player):
    return (-(player.score or 0), -(player.correct_answers or 0), player.player_order)


def rank_players(players: Iterable[Player]) -> List[Tuple[Player, int]]:
    """Competition ranking: equal score and correct answers share a rank,
    the next distinct player takes their 1-based position (1, 1, 3)."""
    ranked = []
    previous = None
    rank = 0
    for position, player in enumerate(sorted(players, key=ranking_key), start=1):
        key = (player.score or 0, player.correct_answers or 0)
        if key != previous:
            rank = position
            previous = key
        ranked.append((player, rank))
    return ranked


def accuracy(player: Player) -> float:
    attempts = (player.correct_answers or 0) + (player.wrong_answers or 0)
    if attempts == 0:
        return 0.0
    return round(player.correct_answers * 100.0 / attempts, 2)


def complete_game(game: Game) -> None:
    """Assign final ranks, write leaderboard rows and close the game.

    Must run inside the game's transaction; leaderboard rows that already
    exist are left alone.
    """
    players = list_players(game)
    for player, rank in rank_players(players):
        player.final_rank = rank
        db.session.add(player)
        if not Leaderboard.query.filter_by(game_id=game.id, player_id=player.id).first():
            db.session.add(Leaderboard(
                game_id=game.id,
                player_id=player.id,
                user_id=player.user_id,
                mode=game.mode,
                score=player.score,
                correct=player.correct_answers,
                wrong=player.wrong_answers,
                skipped=player.skipped_answers,
                final_rank=rank,
            ))
    if game.current_player_id is None and game.active_question_id:
        # Closing an open steal window hands the seat back to whoever faced the question
        faced = GameQuestion.query.filter_by(game_id=game.id, question_id=game.active_question_id).first()
        if faced is not None and faced.player_id is not None:
            game.current_player_id = faced.player_id
    advance(game, Phase.COMPLETED)
    game.status = GameStatus.COMPLETED.value
    game.completed_at = datetime.utcnow()
    db.session.flush()
    current_app.logger.info(f"[finish] game={game.id} players={len(players)} questions={game.current_question}")


def finalize_game(game: Game) -> dict:
    """End the game and return its results; repeat calls return the stored results."""
    already_finalized = game.status == GameStatus.COMPLETED.value
    if not already_finalized:
        complete_game(game)
    results = build_results(game)
    results['already_finalized'] = already_finalized
    return results


def build_results(game: Game) -> dict:
    players = list_players(game, ranking=True)
    rows = []
    for p in players:
        row = p.to_dict()
        row['accuracy'] = accuracy(p)
        rows.append(row)

    podium = [row for row in rows if row['final_rank'] is not None and row['final_rank'] <= 3]
    winner = rows[0] if rows and rows[0]['final_rank'] == 1 else None
    top_scorer = max(rows, key=lambda r: r['score']) if rows else None
    average_score = round(sum(r['score'] for r in rows) / len(rows), 2) if rows else 0
    leaderboard = Leaderboard.query.filter_by(game_id=game.id).order_by(Leaderboard.final_rank.asc(), Leaderboard.id.asc()).all()

    return {
        'game': {
            'id': game.id,
            'game_code': game.game_code,
            'mode': game.mode,
            'status': game.status,
            'total_questions': game.total_questions,
            'questions_played': game.current_question,
            'completed_at': game.completed_at.isoformat() if game.completed_at else None,
        },
        'players': rows,
        'podium': podium,
        'winner': winner,
        'is_tie': len([r for r in rows if r['final_rank'] == 1]) > 1,
        'top_scorer': top_scorer,
        'average_score': average_score,
        'leaderboard': [entry.to_dict() for entry in leaderboard],
    }


def player_stats(user_id) -> dict:
    """Lifetime totals for a user, from the leaderboard rows of finished games."""
    rows = Leaderboard.query.filter_by(user_id=user_id).all()
    correct = sum(r.correct for r in rows)
    wrong = sum(r.wrong for r in rows)
    by_mode = {}
    for r in rows:
        mode = by_mode.setdefault(r.mode, {'games_played': 0, 'wins': 0, 'total_score': 0})
        mode['games_played'] += 1
        mode['wins'] += 1 if r.final_rank == 1 else 0
        mode['total_score'] += r.score
    return {
        'user_id': user_id,
        'games_played': len(rows),
        'wins': len([r for r in rows if r.final_rank == 1]),
        'total_score': sum(r.score for r in rows),
        'best_score': max((r.score for r in rows), default=0),
        'correct': correct,
        'wrong': wrong,
        'skipped': sum(r.skipped for r in rows),
        'accuracy': round(correct * 100.0 / (correct + wrong), 2) if correct + wrong else 0.0,
        'by_mode': by_mode,
    }


def game_history(user_id, limit: int = 20) -> List[dict]:
    """Games the user hosted or played in, newest first."""
    played = {p.game_id: p for p in Player.query.filter_by(user_id=user_id).all()}
    games = (
        Game.query.filter(db.or_(Game.host_id == user_id, Game.id.in_(list(played) or [-1])))
        .order_by(Game.created_at.desc(), Game.id.desc())
        .limit(limit)
        .all()
    )
    history = []
    for game in games:
        player = played.get(game.id)
        history.append({
            'game_id': game.id,
            'game_code': game.game_code,
            'mode': game.mode,
            'status': game.status,
            'is_host': game.host_id == user_id,
            'player_id': player.id if player else None,
            'score': player.score if player else None,
            'final_rank': player.final_rank if player else None,
            'created_at': game.created_at.isoformat() if game.created_at else None,
            'completed_at': game.completed_at.isoformat() if game.completed_at else None,
        })
    return history
