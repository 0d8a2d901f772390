"""Selection tracker: category/difficulty picks and question draws."""

from datetime import datetime
import random
from typing import Optional

from flask import current_app

from quizduel import db
from quizduel.models import Game, GameQuestion, GameStatus, Selection
from . import bank
from .errors import InvalidInput, NoQuestionsAvailable, NoSelection, NotYourTurn, QuestionsExhausted
from .modes import policy_for
from .phases import Phase, advance, require_phase
from .registry import get_player


def _check_selector(game: Game, player_id):
    """Resolve who is picking: None for the host in host-run modes, else the current player."""
    policy = policy_for(game.mode)
    if policy.host_selects:
        return None
    if player_id is None:
        raise InvalidInput('player_id is required')
    player = get_player(game, player_id)
    if game.current_player_id != player.id:
        raise NotYourTurn()
    return player


def latest_selection(game: Game, player_id=None, unused_only: bool = True) -> Optional[Selection]:
    query = Selection.query.filter_by(game_id=game.id, player_id=player_id)
    if unused_only:
        query = query.filter_by(is_used=False)
    return query.order_by(Selection.created_at.desc(), Selection.id.desc()).first()


def last_consumed_selection(game: Game) -> Optional[Selection]:
    return (
        Selection.query.filter_by(game_id=game.id, is_used=True)
        .order_by(Selection.created_at.desc(), Selection.id.desc())
        .first()
    )


def select_category(game: Game, category_id, difficulty_id, player_id=None) -> Selection:
    require_phase(game, Phase.CATEGORY_SELECTION, Phase.QUESTION_READY)
    player = _check_selector(game, player_id)

    category = bank.get_category(category_id)
    difficulty = bank.get_difficulty(difficulty_id)
    if bank.count_questions(category.id, difficulty.id) == 0:
        raise NoQuestionsAvailable(data={'category_id': category.id, 'difficulty_id': difficulty.id})

    points = difficulty.points if difficulty.points is not None else int(current_app.config.get('DEFAULT_DIFFICULTY_POINTS', 10))
    selection = Selection(
        game_id=game.id,
        player_id=player.id if player else None,
        category_id=category.id,
        difficulty_id=difficulty.id,
        points=points,
    )
    db.session.add(selection)
    advance(game, Phase.QUESTION_READY)
    db.session.flush()
    current_app.logger.info(
        f"[select] game={game.id} player={selection.player_id} category={category.id} difficulty={difficulty.id} points={points}"
    )
    return selection


def draw_question(game: Game, player_id=None) -> dict:
    require_phase(game, Phase.QUESTION_READY)
    player = _check_selector(game, player_id)

    selection = latest_selection(game, player.id if player else None)
    if not selection:
        raise NoSelection()

    remaining = bank.find_questions(selection.category_id, selection.difficulty_id, bank.used_question_ids(game.id))
    if not remaining:
        raise QuestionsExhausted(data={
            'category_id': selection.category_id,
            'difficulty_id': selection.difficulty_id,
        })
    question = random.choice(remaining)

    selection.is_used = True
    db.session.add(selection)
    db.session.add(GameQuestion(
        game_id=game.id,
        question_id=question.id,
        player_id=game.current_player_id,
        selection_id=selection.id,
    ))
    game.current_question = (game.current_question or 0) + 1
    game.active_question_id = question.id
    game.question_asked_at = datetime.utcnow()
    game.status = GameStatus.IN_PROGRESS.value
    advance(game, Phase.QUESTION_ACTIVE)
    db.session.flush()
    current_app.logger.info(
        f"[draw] game={game.id} question={question.id} number={game.current_question} remaining={len(remaining) - 1}"
    )
    return {
        'question': bank.question_payload(question),
        'question_number': game.current_question,
        'total_questions': game.total_questions,
        'selection': selection.to_dict(),
        'current_player_id': game.current_player_id,
    }
