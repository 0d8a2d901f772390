from quizduel.models import Category, Question, TEXT_INPUT, User


def test_db_reset_seeds_demo_data(flask_app):
    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['db-reset'])
    assert result.exit_code == 0
    assert 'reset and seeded' in result.output

    assert sorted(u.username for u in User.query.all()) == ['testuser1', 'testuser2', 'testuser3']
    assert User.query.filter_by(username='testuser1').first().check_password('password')
    assert Category.query.count() == 3
    text_questions = Question.query.filter_by(question_type=TEXT_INPUT).all()
    assert text_questions and all(len(q.answers) == 1 and q.answers[0].is_correct for q in text_questions)
