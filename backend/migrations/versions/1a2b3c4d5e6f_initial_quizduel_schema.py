"""initial quizduel schema: catalog, games, players, selections, answers, leaderboard

Revision ID: 1a2b3c4d5e6f
Revises:
Create Date: 2026-10-18 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '1a2b3c4d5e6f'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('username', sa.String(length=64), nullable=False),
        sa.Column('password_hash', sa.String(length=256), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_username', 'user', ['username'], unique=True)

    op.create_table(
        'category',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('image', sa.String(length=256), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'difficulty',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('points', sa.Integer(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_table(
        'question',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('text', sa.Text(), nullable=False),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('difficulty_id', sa.Integer(), nullable=False),
        sa.Column('question_type', sa.String(length=32), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('time', sa.Integer(), nullable=False),
        sa.Column('file_url', sa.String(length=256), nullable=True),
        sa.ForeignKeyConstraint(['category_id'], ['category.id']),
        sa.ForeignKeyConstraint(['difficulty_id'], ['difficulty.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_question_category_id', 'question', ['category_id'])
    op.create_index('ix_question_difficulty_id', 'question', ['difficulty_id'])
    op.create_table(
        'answer',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('question_id', sa.Integer(), nullable=False),
        sa.Column('text', sa.Text(), nullable=True),
        sa.Column('file_url', sa.String(length=256), nullable=True),
        sa.Column('is_correct', sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(['question_id'], ['question.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_answer_question_id', 'answer', ['question_id'])

    # game.current_player_id <-> player.game_id is circular; the FK is added after player exists
    op.create_table(
        'game',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_code', sa.String(length=8), nullable=True),
        sa.Column('mode', sa.String(length=32), nullable=False),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('phase', sa.String(length=32), nullable=False),
        sa.Column('host_id', sa.Integer(), nullable=True),
        sa.Column('current_player_id', sa.Integer(), nullable=True),
        sa.Column('current_turn', sa.Integer(), nullable=False),
        sa.Column('current_question', sa.Integer(), nullable=False),
        sa.Column('total_questions', sa.Integer(), nullable=False),
        sa.Column('active_question_id', sa.Integer(), nullable=True),
        sa.Column('question_asked_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['host_id'], ['user.id']),
        sa.ForeignKeyConstraint(['active_question_id'], ['question.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_game_game_code', 'game', ['game_code'], unique=True)

    op.create_table(
        'player',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('name', sa.String(length=64), nullable=False),
        sa.Column('is_guest', sa.Boolean(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False),
        sa.Column('player_order', sa.Integer(), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('correct_answers', sa.Integer(), nullable=False),
        sa.Column('wrong_answers', sa.Integer(), nullable=False),
        sa.Column('skipped_answers', sa.Integer(), nullable=False),
        sa.Column('final_rank', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('game_id', 'player_order', name='uq_player_game_order'),
    )
    op.create_index('ix_player_game_id', 'player', ['game_id'])

    bind = op.get_bind()
    if bind.dialect.name != 'sqlite':
        op.create_foreign_key('fk_game_current_player_id', 'game', 'player', ['current_player_id'], ['id'])

    op.create_table(
        'selection',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.Integer(), nullable=True),
        sa.Column('category_id', sa.Integer(), nullable=False),
        sa.Column('difficulty_id', sa.Integer(), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('is_used', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.ForeignKeyConstraint(['player_id'], ['player.id']),
        sa.ForeignKeyConstraint(['category_id'], ['category.id']),
        sa.ForeignKeyConstraint(['difficulty_id'], ['difficulty.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_selection_game_id', 'selection', ['game_id'])

    op.create_table(
        'game_question',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('question_id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.Integer(), nullable=True),
        sa.Column('selection_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.ForeignKeyConstraint(['question_id'], ['question.id']),
        sa.ForeignKeyConstraint(['player_id'], ['player.id']),
        sa.ForeignKeyConstraint(['selection_id'], ['selection.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('game_id', 'question_id', name='uq_game_question'),
    )
    op.create_index('ix_game_question_game_id', 'game_question', ['game_id'])

    op.create_table(
        'player_answer',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.Integer(), nullable=False),
        sa.Column('question_id', sa.Integer(), nullable=False),
        sa.Column('answer_id', sa.Integer(), nullable=True),
        sa.Column('answer_text', sa.Text(), nullable=True),
        sa.Column('is_correct', sa.Boolean(), nullable=False),
        sa.Column('is_steal', sa.Boolean(), nullable=False),
        sa.Column('points_earned', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.ForeignKeyConstraint(['player_id'], ['player.id']),
        sa.ForeignKeyConstraint(['question_id'], ['question.id']),
        sa.ForeignKeyConstraint(['answer_id'], ['answer.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('player_id', 'question_id', name='uq_player_answer'),
    )
    op.create_index('ix_player_answer_game_id', 'player_answer', ['game_id'])

    op.create_table(
        'leaderboard',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('game_id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('mode', sa.String(length=32), nullable=False),
        sa.Column('score', sa.Integer(), nullable=False),
        sa.Column('correct', sa.Integer(), nullable=False),
        sa.Column('wrong', sa.Integer(), nullable=False),
        sa.Column('skipped', sa.Integer(), nullable=False),
        sa.Column('final_rank', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['game_id'], ['game.id']),
        sa.ForeignKeyConstraint(['player_id'], ['player.id']),
        sa.ForeignKeyConstraint(['user_id'], ['user.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('game_id', 'player_id', name='uq_leaderboard_game_player'),
    )
    op.create_index('ix_leaderboard_game_id', 'leaderboard', ['game_id'])


def downgrade():
    op.drop_index('ix_leaderboard_game_id', table_name='leaderboard')
    op.drop_table('leaderboard')
    op.drop_index('ix_player_answer_game_id', table_name='player_answer')
    op.drop_table('player_answer')
    op.drop_index('ix_game_question_game_id', table_name='game_question')
    op.drop_table('game_question')
    op.drop_index('ix_selection_game_id', table_name='selection')
    op.drop_table('selection')

    bind = op.get_bind()
    if bind.dialect.name != 'sqlite':
        op.drop_constraint('fk_game_current_player_id', 'game', type_='foreignkey')

    op.drop_index('ix_player_game_id', table_name='player')
    op.drop_table('player')
    op.drop_index('ix_game_game_code', table_name='game')
    op.drop_table('game')
    op.drop_index('ix_answer_question_id', table_name='answer')
    op.drop_table('answer')
    op.drop_index('ix_question_difficulty_id', table_name='question')
    op.drop_index('ix_question_category_id', table_name='question')
    op.drop_table('question')
    op.drop_table('difficulty')
    op.drop_table('category')
    op.drop_index('ix_user_username', table_name='user')
    op.drop_table('user')
