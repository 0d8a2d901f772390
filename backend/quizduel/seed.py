"""Demo users and question catalog for local development."""

from quizduel import db
from quizduel.models import Answer, Category, Difficulty, Question, TEXT_INPUT, User


DEMO_USERS = ('testuser1', 'testuser2', 'testuser3')
DEMO_PASSWORD = 'password'

DIFFICULTIES = (('Easy', 5), ('Medium', 10), ('Hard', 20))

# category -> difficulty -> [(question text, [answers], index of the correct one)]
CATALOG = {
    'Geography': {
        'Easy': [
            ('What is the capital of France?', ['Paris', 'Lyon', 'Marseille', 'Nice'], 0),
            ('Which continent is Kenya in?', ['Asia', 'Africa', 'Europe', 'South America'], 1),
            ('Which ocean lies between Europe and North America?', ['Pacific', 'Indian', 'Atlantic', 'Arctic'], 2),
        ],
        'Medium': [
            ('What is the longest river in South America?', ['Amazon', 'Parana', 'Orinoco', 'Madeira'], 0),
            ('Which country has the most islands?', ['Indonesia', 'Philippines', 'Sweden', 'Canada'], 2),
        ],
        'Hard': [
            ('What is the capital of Bhutan?', ['Paro', 'Thimphu', 'Punakha', 'Haa'], 1),
        ],
    },
    'Science': {
        'Easy': [
            ('What planet is known as the Red Planet?', ['Venus', 'Jupiter', 'Mars', 'Mercury'], 2),
            ('What gas do plants absorb from the air?', ['Oxygen', 'Carbon dioxide', 'Nitrogen', 'Helium'], 1),
        ],
        'Medium': [
            ('What is the chemical symbol for sodium?', ['So', 'Sd', 'Na', 'Nm'], 2),
        ],
        'Hard': [
            ('How many bones are in the adult human body?', ['206', '198', '212', '226'], 0),
        ],
    },
    'History': {
        'Easy': [
            ('Who was the first President of the United States?', ['Lincoln', 'Washington', 'Jefferson', 'Adams'], 1),
        ],
        'Medium': [
            ('In which year did the Berlin Wall fall?', ['1987', '1989', '1991', '1993'], 1),
        ],
        'Hard': [
            ('Which empire built Machu Picchu?', ['Aztec', 'Maya', 'Inca', 'Olmec'], 2),
        ],
    },
}

# Free-text questions: (category, difficulty, text, accepted answer)
TEXT_QUESTIONS = (
    ('Geography', 'Medium', 'Name the largest desert in the world by area.', 'Antarctica'),
    ('Science', 'Medium', 'What is the hardest natural substance?', 'Diamond'),
)


def seed_demo_data():
    for username in DEMO_USERS:
        user = User(username=username)
        user.set_password(DEMO_PASSWORD)
        db.session.add(user)

    difficulties = {}
    for name, points in DIFFICULTIES:
        difficulties[name] = Difficulty(name=name, points=points)
        db.session.add(difficulties[name])

    categories = {}
    for name in CATALOG:
        categories[name] = Category(name=name)
        db.session.add(categories[name])
    db.session.flush()

    for category_name, by_difficulty in CATALOG.items():
        for difficulty_name, questions in by_difficulty.items():
            difficulty = difficulties[difficulty_name]
            for text, answers, correct_index in questions:
                question = Question(
                    text=text,
                    category_id=categories[category_name].id,
                    difficulty_id=difficulty.id,
                    points=difficulty.points,
                )
                db.session.add(question)
                db.session.flush()
                for index, answer_text in enumerate(answers):
                    db.session.add(Answer(question_id=question.id, text=answer_text, is_correct=index == correct_index))

    for category_name, difficulty_name, text, accepted in TEXT_QUESTIONS:
        difficulty = difficulties[difficulty_name]
        question = Question(
            text=text,
            category_id=categories[category_name].id,
            difficulty_id=difficulty.id,
            question_type=TEXT_INPUT,
            points=difficulty.points,
        )
        db.session.add(question)
        db.session.flush()
        db.session.add(Answer(question_id=question.id, text=accepted, is_correct=True))

    db.session.commit()
