import os

import pytest

from conftest import upload
from quizzarium import db
from quizzarium.errors import ApiError
from quizzarium.models.quiz import Quiz, Question
from quizzarium.models.user import User
from quizzarium.services.composer import create_quiz
from quizzarium.services.diff import update_quiz
from quizzarium.services.storage import resolve_path


@pytest.fixture
def author(ctx, client_id):
    return db.session.get(User, client_id)


@pytest.fixture
def quiz(author):
    questions = [
        {'text': 'Первый', 'answers': [
            {'text': 'да', 'is_correct': True},
            {'text': 'нет', 'is_correct': False},
        ]},
        {'text': 'Второй', 'answers': [{'text': 'ответ', 'is_correct': True}]},
    ]
    files = {
        'image': upload('cover.png'),
        'question_media_0': upload('first.png'),
        'answer_media_0_0': upload('yes.png'),
    }
    return create_quiz(author, 'Исходная', 'описание', None, questions, files)


def desired_state(quiz):
    """Текущее состояние викторины в том виде, в каком его присылает клиент"""
    return [
        {
            'question_id': q.id,
            'text': q.text,
            'answers': [
                {'answer_id': a.id, 'text': a.text, 'is_correct': a.is_correct}
                for a in q.answers
            ],
        }
        for q in quiz.questions
    ]


def content(quiz):
    return [
        (q.id, q.text, q.media_url, [(a.text, a.is_correct, a.media_url) for a in q.answers])
        for q in db.session.get(Quiz, quiz.id).questions
    ]


def exists(url):
    return os.path.exists(resolve_path(url))


def test_resubmitting_state_is_idempotent(author, quiz):
    before = content(quiz)
    state = desired_state(quiz)

    update_quiz(author, quiz.id, None, None, None, state, [], {})
    assert content(quiz) == before

    update_quiz(author, quiz.id, None, None, None, desired_state(quiz), [], {})
    assert content(quiz) == before
    for url in db.session.get(Quiz, quiz.id).media_urls():
        assert exists(url)


def test_empty_scalars_keep_previous_values(author, quiz):
    updated = update_quiz(author, quiz.id, '', '', '', desired_state(quiz), [], {})
    assert updated.title == 'Исходная'
    assert updated.description == 'описание'

    updated = update_quiz(author, quiz.id, 'Новая', 'другое', None, desired_state(quiz), [], {})
    assert updated.title == 'Новая'
    assert updated.description == 'другое'


def test_new_and_deleted_questions(author, quiz):
    first, second = quiz.questions
    first_id, second_id = first.id, second.id
    first_media = first.media_urls()

    state = desired_state(quiz)[1:] + [
        {'question_id': -1, 'text': 'Новый', 'answers': [{'text': 'a', 'is_correct': True}]},
        {'text': 'Ещё один'},
    ]
    update_quiz(author, quiz.id, None, None, None, state, [first_id], {})

    questions = db.session.get(Quiz, quiz.id).questions
    assert [q.text for q in questions] == ['Второй', 'Новый', 'Ещё один']
    assert questions[0].id == second_id
    assert db.session.get(Question, first_id) is None
    for url in first_media:
        assert not exists(url)


def test_deleted_question_is_not_recreated(author, quiz):
    first_id = quiz.questions[0].id
    update_quiz(author, quiz.id, None, None, None, desired_state(quiz), [first_id], {})

    questions = db.session.get(Quiz, quiz.id).questions
    assert [q.text for q in questions] == ['Второй']


def test_new_question_keeps_submitted_place(author, quiz):
    first, second = desired_state(quiz)
    inserted = {'question_id': -1, 'text': 'Посередине', 'answers': [{'text': 'a', 'is_correct': True}]}
    update_quiz(author, quiz.id, None, None, None, [first, inserted, second], [], {})

    questions = db.session.get(Quiz, quiz.id).questions
    assert [q.text for q in questions] == ['Первый', 'Посередине', 'Второй']
    assert [q['text'] for q in quiz.to_dict(include_questions=True)['questions']] == ['Первый', 'Посередине', 'Второй']

    # Перестановка существующих вопросов тоже сохраняется
    update_quiz(author, quiz.id, None, None, None, list(reversed(desired_state(quiz))), [], {})
    assert [q.text for q in db.session.get(Quiz, quiz.id).questions] == ['Второй', 'Посередине', 'Первый']


@pytest.mark.parametrize('question', [
    {'question_id': -1, 'text': {'x': 1}},
    {'question_id': -1, 'text': 'q', 'answers': [{'text': ['a'], 'is_correct': True}]},
])
def test_update_rejects_non_string_text(author, quiz, question):
    before = content(quiz)
    with pytest.raises(ApiError) as exc:
        update_quiz(author, quiz.id, None, None, None, desired_state(quiz) + [question], [], {})
    assert exc.value.status == 400
    assert content(quiz) == before


def test_question_media_replaced_and_removed(author, quiz):
    old_url = quiz.questions[0].media_url
    files = {'questionMedia[1]': upload('second.png')}

    update_quiz(author, quiz.id, None, None, None, desired_state(quiz), [], files)
    first, second = db.session.get(Quiz, quiz.id).questions
    assert first.media_url == old_url
    assert second.media_url.startswith('/uploads/second_')

    state = desired_state(quiz)
    state[0]['delete_media'] = True
    update_quiz(author, quiz.id, None, None, None, state, [], {})
    assert db.session.get(Quiz, quiz.id).questions[0].media_url is None
    assert not exists(old_url)


def test_answers_fully_replaced_and_orphans_removed(author, quiz):
    old_answer_media = quiz.questions[0].answers[0].media_url
    state = desired_state(quiz)
    state[0]['answers'] = [{'text': 'единственный', 'is_correct': False}]

    update_quiz(author, quiz.id, None, None, None, state, [], {})

    answers = db.session.get(Quiz, quiz.id).questions[0].answers
    assert [(a.text, a.is_correct, a.media_url) for a in answers] == [('единственный', False, None)]
    assert not exists(old_answer_media)


def test_answer_media_replaced_by_new_file(author, quiz):
    old_answer_media = quiz.questions[0].answers[0].media_url
    files = {'answerMedia[0][0]': upload('new-yes.png')}

    update_quiz(author, quiz.id, None, None, None, desired_state(quiz), [], files)

    answer = db.session.get(Quiz, quiz.id).questions[0].answers[0]
    assert answer.media_url.startswith('/uploads/new-yes_')
    assert exists(answer.media_url)
    assert not exists(old_answer_media)


def test_cover_replaced_and_deleted(author, quiz):
    old_cover = quiz.image_url
    updated = update_quiz(author, quiz.id, None, None, None, desired_state(quiz), [], {'image': upload('c2.png')})
    new_cover = updated.image_url
    assert new_cover != old_cover
    assert not exists(old_cover)

    updated = update_quiz(author, quiz.id, None, None, None, desired_state(quiz), [], {}, delete_image=True)
    assert updated.image_url is None
    assert not exists(new_cover)


def test_unknown_question_id_rolls_back_everything(author, quiz):
    before = content(quiz)
    state = desired_state(quiz)
    state[0]['text'] = 'изменено'
    state.append({'question_id': 9999, 'text': 'чужой'})

    with pytest.raises(ApiError) as exc:
        update_quiz(author, quiz.id, 'Другое имя', None, None, state, [], {'questionMedia[0]': upload('x.png')})
    assert exc.value.status == 400

    assert db.session.get(Quiz, quiz.id).title == 'Исходная'
    assert content(quiz) == before
    for url in db.session.get(Quiz, quiz.id).media_urls():
        assert exists(url)


def test_update_rejects_strangers(app, quiz, other_id):
    stranger = db.session.get(User, other_id)
    with pytest.raises(ApiError) as exc:
        update_quiz(stranger, quiz.id, 'x', None, None, [], [], {})
    assert exc.value.status == 403


def test_admin_may_update_any_quiz(quiz, admin_id):
    admin = db.session.get(User, admin_id)
    assert update_quiz(admin, quiz.id, 'Админ', None, None, desired_state(quiz), [], {}).title == 'Админ'


def test_update_unknown_quiz(author):
    with pytest.raises(ApiError) as exc:
        update_quiz(author, 404, 'x', None, None, [], [], {})
    assert exc.value.status == 404
