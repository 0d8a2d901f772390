"""Turn and round state machine.

All functions here expect a Game obtained from ``game_transaction`` and only
flush; the surrounding transaction commits or rolls back the whole action.
"""

from typing import Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from quizduel import db
from quizduel.models import Game, GameQuestion, GameStatus, Player, PlayerAnswer, Question
from . import bank
from .errors import (
    AlreadyAttempted,
    DuplicateAnswer,
    Forbidden,
    InvalidAnswer,
    InvalidInput,
    InvalidTransition,
    NotEnoughPlayers,
    NotYourTurn,
)
from .modes import TurnOrder, policy_for
from .phases import Phase, advance, current_phase, require_phase
from .registry import active_players, get_player, next_active_player
from .results import complete_game
from .scoring import apply_answer, apply_skip, points_for
from .selection import last_consumed_selection


def start_game(game: Game, total_questions=None) -> bool:
    """Seat the first player and open category selection.

    Returns False when the game had already been started.
    """
    if game.status != GameStatus.WAITING.value:
        return False

    players = active_players(game)
    min_players = int(current_app.config.get('MIN_PLAYERS', 2))
    if len(players) < min_players:
        raise NotEnoughPlayers(
            f'At least {min_players} players are required to start',
            data={'min_players': min_players, 'players': len(players)},
        )

    if total_questions is not None:
        try:
            total_questions = int(total_questions)
        except (TypeError, ValueError):
            raise InvalidInput('total_questions must be a number')
        if total_questions < 0:
            raise InvalidInput('total_questions cannot be negative')
        game.total_questions = total_questions
    elif not game.total_questions:
        game.total_questions = int(current_app.config.get('QUESTIONS_PER_GAME', 10))

    game.status = GameStatus.ACTIVE.value
    game.current_player_id = players[0].id
    game.current_turn = 1
    game.current_question = 0
    advance(game, Phase.CATEGORY_SELECTION)
    db.session.flush()
    current_app.logger.info(
        f"[start] game={game.id} mode={game.mode} players={len(players)} total_questions={game.total_questions}"
    )
    return True


def _last_order(game: Game) -> Optional[int]:
    players = active_players(game)
    return players[-1].player_order if players else None


def _faced_by(game: Game, question_id) -> Optional[GameQuestion]:
    return GameQuestion.query.filter_by(game_id=game.id, question_id=question_id).first()


def _round_owner(game: Game, question: Question, faced: Optional[GameQuestion]) -> Player:
    """The player the round belongs to: the first to answer this question.

    When the first answer was already a steal (the player who faced the
    question timed out), the round still belongs to that player.
    """
    first = (
        PlayerAnswer.query.filter_by(game_id=game.id, question_id=question.id)
        .order_by(PlayerAnswer.id.asc())
        .first()
    )
    if first.is_steal and faced is not None and faced.player_id is not None:
        return db.session.get(Player, faced.player_id)
    return db.session.get(Player, first.player_id)


def _active_question(game: Game, question_id) -> Question:
    question = bank.get_question(question_id)
    if game.active_question_id != question.id:
        raise InvalidInput(
            'This question is not the active question',
            data={'question_id': question.id, 'active_question_id': game.active_question_id},
        )
    return question


def resolve_correctness(question: Question, answer_id=None, answer_text=None):
    """Return (is_correct, selected Answer or None)."""
    if question.is_text_input:
        if not isinstance(answer_text, str):
            raise InvalidInput('answer_text is required for this question')
        correct = question.correct_answer
        if correct is None or correct.text is None:
            return False, None
        return answer_text.strip().casefold() == correct.text.strip().casefold(), None

    try:
        wanted = int(answer_id)
    except (TypeError, ValueError):
        raise InvalidAnswer(data={'answer_id': answer_id})
    selected = next((a for a in question.answers if a.id == wanted), None)
    if selected is None:
        raise InvalidAnswer(data={'answer_id': answer_id, 'question_id': question.id})
    return bool(selected.is_correct), selected


def _reveal(question: Question) -> Optional[dict]:
    correct = question.correct_answer
    return correct.to_dict(reveal=True) if correct else None


def _close_question(game: Game, policy) -> bool:
    """Move to ROUND_COMPLETE; returns True when that also ended the game."""
    advance(game, Phase.ROUND_COMPLETE)
    if policy.auto_complete:
        return _complete_if_done(game) is not None
    return False


def submit_answer(game: Game, player_id, question_id, answer_id=None, answer_text=None) -> dict:
    phase = require_phase(game, Phase.QUESTION_ACTIVE, Phase.STEAL_OPEN)
    policy = policy_for(game.mode)
    player = get_player(game, player_id)
    if not player.is_active:
        raise Forbidden('Player has left this game')
    question = _active_question(game, question_id)
    faced = _faced_by(game, question.id)

    is_steal = phase == Phase.STEAL_OPEN
    existing = PlayerAnswer.query.filter_by(player_id=player.id, question_id=question.id).first()
    if is_steal:
        if existing or (faced is not None and faced.player_id == player.id):
            raise AlreadyAttempted()
    elif policy.turn_order != TurnOrder.SIMULTANEOUS and game.current_player_id != player.id:
        raise NotYourTurn()

    is_correct, selected = resolve_correctness(question, answer_id, answer_text)
    if existing:
        raise DuplicateAnswer()

    earned = points_for(question.points, is_correct, is_steal, policy.steal_divisor)
    db.session.add(PlayerAnswer(
        game_id=game.id,
        player_id=player.id,
        question_id=question.id,
        answer_id=selected.id if selected else None,
        answer_text=answer_text if question.is_text_input else None,
        is_correct=is_correct,
        is_steal=is_steal,
        points_earned=earned,
    ))
    try:
        db.session.flush()
    except IntegrityError:
        raise DuplicateAnswer()
    apply_answer(player, earned, is_correct)

    is_round_over = False
    completed = False
    if policy.turn_order == TurnOrder.SIMULTANEOUS:
        answered = {row.player_id for row in PlayerAnswer.query.filter_by(game_id=game.id, question_id=question.id).all()}
        if {p.id for p in active_players(game)} <= answered:
            is_round_over = True
            completed = _close_question(game, policy)
    elif policy.turn_order == TurnOrder.ROUND_ROBIN:
        is_round_over = player.player_order == _last_order(game)
        completed = _close_question(game, policy)
    elif is_correct or is_steal:
        owner = _round_owner(game, question, faced)
        game.current_player_id = owner.id
        # A steal by the last seat also ends the pass through the table
        last_order = _last_order(game)
        is_round_over = owner.player_order == last_order or (is_steal and player.player_order == last_order)
        completed = _close_question(game, policy)
    else:
        game.current_player_id = None
        advance(game, Phase.STEAL_OPEN)

    db.session.flush()
    current_app.logger.info(
        f"[answer] game={game.id} player={player.id} question={question.id} correct={is_correct} "
        f"steal={is_steal} points={earned} phase={game.phase}"
    )
    steal_open = game.phase == Phase.STEAL_OPEN.value
    return {
        'is_correct': is_correct,
        'is_steal': is_steal,
        'points_earned': earned,
        'current_score': player.score,
        'player': player.to_dict(),
        'correct_answer': None if is_correct else _reveal(question),
        'phase': game.phase,
        'steal_open': steal_open,
        'question_open': steal_open or game.phase == Phase.QUESTION_ACTIVE.value,
        'current_player_id': game.current_player_id,
        'is_round_over': is_round_over,
        'game_completed': completed,
    }


def handle_timeout(game: Game, player_id, question_id) -> dict:
    require_phase(game, Phase.QUESTION_ACTIVE)
    policy = policy_for(game.mode)
    player = get_player(game, player_id)
    question = _active_question(game, question_id)
    if game.current_player_id != player.id:
        raise NotYourTurn()

    skipped = []
    completed = False
    is_round_over = False
    if policy.turn_order == TurnOrder.SIMULTANEOUS:
        answered = {row.player_id for row in PlayerAnswer.query.filter_by(game_id=game.id, question_id=question.id).all()}
        for p in active_players(game):
            if p.id not in answered:
                apply_skip(p)
                skipped.append(p.id)
        is_round_over = True
        completed = _close_question(game, policy)
    else:
        apply_skip(player)
        skipped.append(player.id)
        if policy.steal_enabled:
            game.current_player_id = None
            advance(game, Phase.STEAL_OPEN)
        else:
            is_round_over = player.player_order == _last_order(game)
            completed = _close_question(game, policy)

    db.session.flush()
    current_app.logger.info(
        f"[timeout] game={game.id} player={player.id} question={question.id} skipped={skipped} phase={game.phase}"
    )
    steal_open = game.phase == Phase.STEAL_OPEN.value
    return {
        'skipped_player_ids': skipped,
        'phase': game.phase,
        'steal_open': steal_open,
        'current_player_id': game.current_player_id,
        'is_round_over': is_round_over,
        'correct_answer': _reveal(question),
        'question_open': steal_open,
        'game_completed': completed,
    }


def next_turn(game: Game) -> dict:
    """Pass the turn to the next active player by order, wrapping around.

    Only between questions or from an open steal window; a question the
    current player still holds has to be answered or timed out first.
    """
    if game.status == GameStatus.WAITING.value:
        raise InvalidTransition(
            'The game has not started',
            data={'phase': game.phase, 'status': game.status},
        )
    phase = require_phase(game, Phase.CATEGORY_SELECTION, Phase.ROUND_COMPLETE, Phase.STEAL_OPEN)
    policy = policy_for(game.mode)

    if phase == Phase.STEAL_OPEN and policy.auto_complete:
        reason = _complete_if_done(game)
        if reason:
            return {'game_completed': True, 'reason': reason, 'phase': game.phase, 'current_player_id': game.current_player_id}

    anchor = game.current_player
    if anchor is None and phase == Phase.STEAL_OPEN and game.active_question_id:
        faced = _faced_by(game, game.active_question_id)
        anchor = db.session.get(Player, faced.player_id) if faced and faced.player_id else None

    successor = next_active_player(game, anchor.player_order if anchor else None)
    if successor is None:
        raise NotEnoughPlayers('No active players left in this game')

    advance(game, Phase.CATEGORY_SELECTION)
    game.current_player_id = successor.id
    game.current_turn = (game.current_turn or 0) + 1
    game.active_question_id = None
    db.session.flush()
    current_app.logger.info(f"[turn] game={game.id} turn={game.current_turn} player={successor.id}")
    return {
        'game_completed': False,
        'phase': game.phase,
        'current_player_id': successor.id,
        'current_turn': game.current_turn,
        'player': successor.to_dict(),
    }


def _complete_if_done(game: Game) -> Optional[str]:
    """Complete an auto-completing game whose question supply is used up.

    Returns the reason when the game is (now) completed, else None.
    """
    if game.status == GameStatus.COMPLETED.value:
        return 'already_completed'
    if game.status == GameStatus.WAITING.value or not policy_for(game.mode).auto_complete:
        return None

    reason = None
    if game.total_questions and game.current_question >= game.total_questions:
        reason = 'question_limit_reached'
    else:
        selection = last_consumed_selection(game)
        if selection is not None and bank.count_questions(
            selection.category_id, selection.difficulty_id, bank.used_question_ids(game.id)
        ) == 0:
            reason = 'questions_exhausted'

    if reason:
        complete_game(game)
        current_app.logger.info(f"[auto-complete] game={game.id} reason={reason}")
    return reason


def check_completion(game: Game) -> dict:
    """Completion check for clients; a question still in play is never cut short."""
    phase = current_phase(game)
    reason = None
    if phase not in (Phase.QUESTION_ACTIVE, Phase.STEAL_OPEN):
        reason = _complete_if_done(game)
    return {
        'completed': game.status == GameStatus.COMPLETED.value,
        'reason': reason,
        'current_question': game.current_question,
        'total_questions': game.total_questions,
        'phase': game.phase,
    }
