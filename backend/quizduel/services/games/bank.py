"""Read-only access to the question catalog and media URLs.

The catalog itself (categories, difficulties, questions, answers) is managed
elsewhere; the game engine only looks things up through these helpers.
"""

from typing import Iterable, List, Optional

from flask import current_app

from quizduel import db
from quizduel.models import Category, Difficulty, Question, GameQuestion, PlayerAnswer
from .errors import NotFound


def get_category(category_id) -> Category:
    category = db.session.get(Category, category_id) if category_id is not None else None
    if not category:
        raise NotFound('Category not found', data={'category_id': category_id})
    return category


def get_difficulty(difficulty_id) -> Difficulty:
    difficulty = db.session.get(Difficulty, difficulty_id) if difficulty_id is not None else None
    if not difficulty:
        raise NotFound('Difficulty not found', data={'difficulty_id': difficulty_id})
    return difficulty


def get_question(question_id) -> Question:
    question = db.session.get(Question, question_id) if question_id is not None else None
    if not question:
        raise NotFound('Question not found', data={'question_id': question_id})
    return question


def _pair_query(category_id, difficulty_id, exclude_ids: Optional[Iterable[int]] = None):
    query = Question.query.filter_by(category_id=category_id, difficulty_id=difficulty_id)
    exclude_ids = list(exclude_ids or [])
    if exclude_ids:
        query = query.filter(~Question.id.in_(exclude_ids))
    return query


def find_questions(category_id, difficulty_id, exclude_ids: Optional[Iterable[int]] = None) -> List[Question]:
    return _pair_query(category_id, difficulty_id, exclude_ids).order_by(Question.id).all()


def count_questions(category_id, difficulty_id, exclude_ids: Optional[Iterable[int]] = None) -> int:
    return _pair_query(category_id, difficulty_id, exclude_ids).count()


def used_question_ids(game_id: int) -> set:
    """Questions already served or answered in this game."""
    served = {row.question_id for row in GameQuestion.query.filter_by(game_id=game_id).all()}
    answered = {row.question_id for row in PlayerAnswer.query.filter_by(game_id=game_id).all()}
    return served | answered


def file_url(kind: str, path: Optional[str]) -> Optional[str]:
    """Resolve a stored media path to a public URL (kind: 'question' or 'answer')."""
    if not path:
        return None
    if path.startswith('http://') or path.startswith('https://'):
        return path
    cfg = current_app.config
    prefix = cfg.get('QUESTION_FILE_PREFIX', 'question/') if kind == 'question' else cfg.get('ANSWER_FILE_PREFIX', 'answer/')
    base = (cfg.get('STORAGE_URL') or '').rstrip('/')
    return f"{base}/{prefix}{path.lstrip('/')}"


def question_payload(question: Question, reveal: bool = False) -> dict:
    """Client view of a question; correctness flags only when ``reveal``."""
    answers = []
    if not question.is_text_input or reveal:
        for answer in question.answers:
            item = answer.to_dict(reveal=reveal)
            item['file_url'] = file_url('answer', answer.file_url)
            answers.append(item)
    return {
        'id': question.id,
        'text': question.text,
        'points': question.points,
        'time_limit': question.time,
        'question_type': question.question_type,
        'file_url': file_url('question', question.file_url),
        'category': question.category.to_dict() if question.category else None,
        'difficulty': question.difficulty.to_dict() if question.difficulty else None,
        'answers': answers,
    }


def available_pairs(exclude_ids: Optional[Iterable[int]] = None) -> List[dict]:
    """Every category/difficulty pair with questions, and how many are still unused."""
    exclude_ids = list(exclude_ids or [])
    pairs = []
    for category in Category.query.order_by(Category.name.asc()).all():
        difficulties = []
        for difficulty in Difficulty.query.order_by(Difficulty.points.asc(), Difficulty.id.asc()).all():
            total = count_questions(category.id, difficulty.id)
            if not total:
                continue
            entry = difficulty.to_dict()
            entry['total'] = total
            entry['remaining'] = count_questions(category.id, difficulty.id, exclude_ids)
            difficulties.append(entry)
        if difficulties:
            item = category.to_dict()
            item['image'] = file_url('question', category.image)
            item['difficulties'] = difficulties
            pairs.append(item)
    return pairs
