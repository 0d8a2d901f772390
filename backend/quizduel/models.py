from datetime import datetime
import enum
import random
import string

from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

from quizduel import db


class GameMode(str, enum.Enum):
    TURN_BASED = 'TURN_BASED'
    GRID_STYLE = 'GRID_STYLE'
    COMPETITIVE = 'COMPETITIVE'
    HOST_CONTROLLED = 'HOST_CONTROLLED'


class GameStatus(str, enum.Enum):
    WAITING = 'WAITING'
    ACTIVE = 'ACTIVE'
    IN_PROGRESS = 'IN_PROGRESS'
    COMPLETED = 'COMPLETED'


class PlayerStatus(str, enum.Enum):
    ACTIVE = 'ACTIVE'
    LEFT = 'LEFT'


TEXT_INPUT = 'text_input'


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
        }


class Category(db.Model):
    __tablename__ = 'category'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    image = db.Column(db.String(256), nullable=True)

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'image': self.image}


class Difficulty(db.Model):
    __tablename__ = 'difficulty'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    points = db.Column(db.Integer, nullable=True)

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'points': self.points}


class Question(db.Model):
    __tablename__ = 'question'
    id = db.Column(db.Integer, primary_key=True)
    text = db.Column(db.Text, nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey('category.id'), nullable=False, index=True)
    difficulty_id = db.Column(db.Integer, db.ForeignKey('difficulty.id'), nullable=False, index=True)
    question_type = db.Column(db.String(32), nullable=False, default='multiple_choice')
    points = db.Column(db.Integer, nullable=False, default=10)
    time = db.Column(db.Integer, nullable=False, default=30)  # seconds
    file_url = db.Column(db.String(256), nullable=True)
    category = db.relationship('Category')
    difficulty = db.relationship('Difficulty')
    answers = db.relationship('Answer', back_populates='question', order_by='Answer.id')

    @property
    def is_text_input(self):
        return (self.question_type or '').lower() == TEXT_INPUT

    @property
    def correct_answer(self):
        return next((a for a in self.answers if a.is_correct), None)


class Answer(db.Model):
    __tablename__ = 'answer'
    id = db.Column(db.Integer, primary_key=True)
    question_id = db.Column(db.Integer, db.ForeignKey('question.id'), nullable=False, index=True)
    text = db.Column(db.Text, nullable=True)
    file_url = db.Column(db.String(256), nullable=True)
    is_correct = db.Column(db.Boolean, default=False, nullable=False)
    question = db.relationship('Question', back_populates='answers')

    def to_dict(self, reveal=False):
        data = {'id': self.id, 'text': self.text, 'file_url': self.file_url}
        if reveal:
            data['is_correct'] = self.is_correct
        return data


class Player(db.Model):
    __tablename__ = 'player'
    __table_args__ = (
        db.UniqueConstraint('game_id', 'player_order', name='uq_player_game_order'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    name = db.Column(db.String(64), nullable=False)
    is_guest = db.Column(db.Boolean, default=False, nullable=False)
    status = db.Column(db.String(16), default=PlayerStatus.ACTIVE.value, nullable=False)
    player_order = db.Column(db.Integer, nullable=False)
    score = db.Column(db.Integer, default=0, nullable=False)
    correct_answers = db.Column(db.Integer, default=0, nullable=False)
    wrong_answers = db.Column(db.Integer, default=0, nullable=False)
    skipped_answers = db.Column(db.Integer, default=0, nullable=False)
    final_rank = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    game = db.relationship('Game', back_populates='players', foreign_keys=[game_id])
    user = db.relationship('User')

    @property
    def is_active(self):
        return self.status == PlayerStatus.ACTIVE.value

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'user_id': self.user_id,
            'name': self.name,
            'is_guest': self.is_guest,
            'status': self.status,
            'player_order': self.player_order,
            'score': self.score,
            'correct_answers': self.correct_answers,
            'wrong_answers': self.wrong_answers,
            'skipped_answers': self.skipped_answers,
            'final_rank': self.final_rank,
        }


def generate_game_code(length=6):
    """Generate a unique, short game code."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if not Game.query.filter_by(game_code=code).first():
            return code


class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    game_code = db.Column(db.String(8), unique=True, index=True)
    mode = db.Column(db.String(32), nullable=False, default=GameMode.TURN_BASED.value)
    status = db.Column(db.String(32), nullable=False, default=GameStatus.WAITING.value)
    phase = db.Column(db.String(32), nullable=False, default='WAITING')
    host_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    current_player_id = db.Column(
        db.Integer,
        db.ForeignKey('player.id', name='fk_game_current_player_id', use_alter=True),
        nullable=True,
    )
    current_turn = db.Column(db.Integer, nullable=False, default=1)
    current_question = db.Column(db.Integer, nullable=False, default=0)
    total_questions = db.Column(db.Integer, nullable=False, default=0)
    active_question_id = db.Column(db.Integer, db.ForeignKey('question.id'), nullable=True)
    question_asked_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    completed_at = db.Column(db.DateTime, nullable=True)
    players = db.relationship(
        'Player',
        back_populates='game',
        foreign_keys='Player.game_id',
        order_by='Player.player_order',
    )
    host = db.relationship('User')
    active_question = db.relationship('Question')

    def __init__(self, **kwargs):
        super(Game, self).__init__(**kwargs)
        if not self.game_code:
            self.game_code = generate_game_code()

    @property
    def current_player(self):
        if self.current_player_id:
            return db.session.get(Player, self.current_player_id)
        return None

    def to_dict(self):
        return {
            'id': self.id,
            'game_code': self.game_code,
            'mode': self.mode,
            'status': self.status,
            'phase': self.phase,
            'host_id': self.host_id,
            'current_player_id': self.current_player_id,
            'current_turn': self.current_turn,
            'current_question': self.current_question,
            'total_questions': self.total_questions,
            'active_question_id': self.active_question_id,
            'question_asked_at': self.question_asked_at.isoformat() if self.question_asked_at else None,
            'players': [p.to_dict() for p in self.players],
        }


class Selection(db.Model):
    __tablename__ = 'selection'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=True)  # null: host pick
    category_id = db.Column(db.Integer, db.ForeignKey('category.id'), nullable=False)
    difficulty_id = db.Column(db.Integer, db.ForeignKey('difficulty.id'), nullable=False)
    points = db.Column(db.Integer, nullable=False)
    is_used = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'player_id': self.player_id,
            'category_id': self.category_id,
            'difficulty_id': self.difficulty_id,
            'points': self.points,
            'is_used': self.is_used,
        }


class GameQuestion(db.Model):
    __tablename__ = 'game_question'
    __table_args__ = (
        db.UniqueConstraint('game_id', 'question_id', name='uq_game_question'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey('question.id'), nullable=False)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=True)
    selection_id = db.Column(db.Integer, db.ForeignKey('selection.id'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)


class PlayerAnswer(db.Model):
    __tablename__ = 'player_answer'
    __table_args__ = (
        db.UniqueConstraint('player_id', 'question_id', name='uq_player_answer'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    question_id = db.Column(db.Integer, db.ForeignKey('question.id'), nullable=False)
    answer_id = db.Column(db.Integer, db.ForeignKey('answer.id'), nullable=True)
    answer_text = db.Column(db.Text, nullable=True)
    is_correct = db.Column(db.Boolean, nullable=False)
    is_steal = db.Column(db.Boolean, default=False, nullable=False)
    points_earned = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'player_id': self.player_id,
            'question_id': self.question_id,
            'answer_id': self.answer_id,
            'answer_text': self.answer_text,
            'is_correct': self.is_correct,
            'is_steal': self.is_steal,
            'points_earned': self.points_earned,
        }


class Leaderboard(db.Model):
    __tablename__ = 'leaderboard'
    __table_args__ = (
        db.UniqueConstraint('game_id', 'player_id', name='uq_leaderboard_game_player'),
    )
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=True)
    mode = db.Column(db.String(32), nullable=False)
    score = db.Column(db.Integer, default=0, nullable=False)
    correct = db.Column(db.Integer, default=0, nullable=False)
    wrong = db.Column(db.Integer, default=0, nullable=False)
    skipped = db.Column(db.Integer, default=0, nullable=False)
    final_rank = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'game_id': self.game_id,
            'player_id': self.player_id,
            'user_id': self.user_id,
            'mode': self.mode,
            'score': self.score,
            'correct': self.correct,
            'wrong': self.wrong,
            'skipped': self.skipped,
            'final_rank': self.final_rank,
        }
