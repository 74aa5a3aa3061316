# quizzarium/routes/quiz.py
"""
Маршруты викторин: создание, редактирование, прохождение и результаты,
а также отдельные операции над вопросами и ответами
"""
from flask import Blueprint, request, jsonify, current_app
from flask_babel import _
from flask_login import current_user

from quizzarium import db
from quizzarium.errors import ApiError
from quizzarium.models.quiz import Quiz, Question, Answer
from quizzarium.models.user import User
from quizzarium.services import catalog, composer, diff, results
from quizzarium.services.storage import MediaBatch, pick_file
from quizzarium.utils.auth import roles_required, ensure_owner_or_admin
from quizzarium.utils.forms import request_data, form_json, form_flag

# Создание Blueprint для маршрутов викторин
bp = Blueprint('quiz', __name__)

AUTHORS = (User.ROLE_ADMIN, User.ROLE_CLIENT)


def _get_quiz(quiz_id):
    quiz = db.session.get(Quiz, quiz_id)
    if quiz is None:
        raise ApiError.not_found(_('Викторина не найдена'))
    return quiz


def _get_question(quiz_id, question_id):
    question = db.session.get(Question, question_id)
    if question is None or question.quiz_id != quiz_id:
        raise ApiError.not_found(_('Вопрос не найден или не принадлежит викторине'))
    return question


def _get_answer(question, answer_id):
    answer = db.session.get(Answer, answer_id)
    if answer is None or answer.question_id != question.id:
        raise ApiError.not_found(_('Ответ не найден'))
    return answer


def _editable_quiz(quiz_id):
    """Викторина, которую текущий пользователь вправе менять"""
    quiz = _get_quiz(quiz_id)
    ensure_owner_or_admin(current_user, quiz.user_id, _('Нет прав на изменение этой викторины'))
    return quiz


def _commit_media(media):
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        media.rollback()
        raise
    media.commit()


# ---------------------------------------------------------------------------
# Викторины
# ---------------------------------------------------------------------------

@bp.route('/', methods=['POST'])
@roles_required(*AUTHORS)
def create_quiz():
    """
    Создание викторины одним multipart-запросом

    Поля: title, description, category_id, owner_id, questions (JSON-строка);
    файлы: image, question_media_<i>, answer_media_<i>_<j>
    """
    data = request_data()
    quiz = composer.create_quiz(
        current_user,
        title=data.get('title'),
        description=data.get('description'),
        category_id=data.get('category_id'),
        questions=form_json(data, 'questions', []),
        files=request.files,
        owner_id=data.get('owner_id') or data.get('user_id'),
    )
    return jsonify(quiz.to_dict(include_questions=True)), 201


@bp.route('/', methods=['GET'])
def list_quizzes():
    quizzes = Quiz.query.order_by(Quiz.id).all()
    return jsonify([q.to_dict() for q in quizzes])


@bp.route('/<int:quiz_id>', methods=['GET'])
def get_quiz(quiz_id):
    return jsonify(_get_quiz(quiz_id).to_dict(include_questions=True))


@bp.route('/<int:quiz_id>', methods=['PUT'])
@roles_required(*AUTHORS)
def update_quiz(quiz_id):
    """
    Обновление викторины до присланного состояния

    Поля: title, description, category_id, questions и deleted_questions
    (JSON-строки), delete_image; файлы: image, questionMedia[i], answerMedia[i][j]
    """
    data = request_data()
    quiz = diff.update_quiz(
        current_user,
        quiz_id,
        title=data.get('title'),
        description=data.get('description'),
        category_id=data.get('category_id'),
        questions=form_json(data, 'questions', []),
        deleted_questions=form_json(data, 'deleted_questions', []),
        files=request.files,
        delete_image=form_flag(data, 'delete_image'),
    )
    return jsonify(quiz.to_dict(include_questions=True))


@bp.route('/<int:quiz_id>', methods=['DELETE'])
@roles_required(*AUTHORS)
def delete_quiz(quiz_id):
    moves = catalog.delete_quiz(current_user, quiz_id)
    return jsonify({
        'message': _('Викторина успешно удалена и ID обновлены'),
        'renumbered': [{'old_id': old, 'new_id': new} for old, new in moves],
    })


@bp.route('/user/<int:user_id>', methods=['GET'])
@roles_required(*AUTHORS)
def user_quizzes(user_id):
    ensure_owner_or_admin(current_user, user_id, _('Нет доступа к викторинам этого пользователя'))
    quizzes = Quiz.query.filter_by(user_id=user_id).order_by(Quiz.id).all()
    return jsonify([q.to_dict() for q in quizzes])


# ---------------------------------------------------------------------------
# Результаты
# ---------------------------------------------------------------------------

@bp.route('/<int:quiz_id>/submit', methods=['POST'])
@roles_required(*AUTHORS)
def submit(quiz_id):
    data = request.get_json(silent=True) or {}
    result = results.submit_result(
        quiz_id,
        current_user.id,
        data.get('correct_answers'),
        data.get('total_questions'),
    )
    current_app.logger.info(f"Результат {result.score} по викторине {quiz_id} от пользователя {current_user.id}")
    return jsonify({'message': _('Результат сохранён'), 'result': result.to_dict()})


@bp.route('/result/<int:quiz_id>', methods=['GET'])
@roles_required(*AUTHORS)
def quiz_leaderboard(quiz_id):
    return jsonify(results.leaderboard(quiz_id))


@bp.route('/<int:quiz_id>/result/me', methods=['GET'])
@roles_required(*AUTHORS)
def my_result(quiz_id):
    _get_quiz(quiz_id)
    result = results.latest_result(quiz_id, current_user.id)
    return jsonify({'result': result.to_dict() if result else None})


# ---------------------------------------------------------------------------
# Вопросы
# ---------------------------------------------------------------------------

@bp.route('/<int:quiz_id>/questions', methods=['GET'])
@roles_required(*AUTHORS)
def list_questions(quiz_id):
    quiz = _get_quiz(quiz_id)
    return jsonify([q.to_dict() for q in quiz.questions])


@bp.route('/<int:quiz_id>/question', methods=['POST'])
@roles_required(*AUTHORS)
def create_question(quiz_id):
    quiz = _editable_quiz(quiz_id)
    text = (request_data().get('text') or '').strip()
    if not text:
        raise ApiError.bad_request(_('Текст вопроса обязателен'))

    media = MediaBatch()
    try:
        position = max((q.position for q in quiz.questions), default=-1) + 1
        question = Question(text=text, position=position)
        media_file = pick_file(request.files, 'media')
        if media_file:
            question.media_url = media.save(media_file)
        quiz.questions.append(question)
    except Exception:
        media.rollback()
        raise
    _commit_media(media)
    return jsonify(question.to_dict()), 201


@bp.route('/<int:quiz_id>/question/<int:question_id>', methods=['GET'])
@roles_required(*AUTHORS)
def get_question(quiz_id, question_id):
    return jsonify(_get_question(quiz_id, question_id).to_dict())


@bp.route('/<int:quiz_id>/question/<int:question_id>', methods=['PUT'])
@roles_required(*AUTHORS)
def update_question(quiz_id, question_id):
    _editable_quiz(quiz_id)
    question = _get_question(quiz_id, question_id)
    data = request_data()

    media = MediaBatch()
    try:
        question.text = (data.get('text') or '').strip() or question.text
        media_file = pick_file(request.files, 'media')
        if media_file:
            media.release(question.media_url)
            question.media_url = media.save(media_file)
        elif form_flag(data, 'delete_media'):
            media.release(question.media_url)
            question.media_url = None
    except Exception:
        db.session.rollback()
        media.rollback()
        raise
    _commit_media(media)
    return jsonify(question.to_dict())


@bp.route('/<int:quiz_id>/question/<int:question_id>', methods=['DELETE'])
@roles_required(*AUTHORS)
def delete_question(quiz_id, question_id):
    _editable_quiz(quiz_id)
    question = _get_question(quiz_id, question_id)

    media = MediaBatch()
    for url in question.media_urls():
        media.release(url)
    db.session.delete(question)
    _commit_media(media)
    return jsonify({'message': _('Вопрос успешно удалён')})


# ---------------------------------------------------------------------------
# Ответы
# ---------------------------------------------------------------------------

@bp.route('/<int:quiz_id>/question/<int:question_id>/answers', methods=['GET'])
@roles_required(*AUTHORS)
def list_answers(quiz_id, question_id):
    question = _get_question(quiz_id, question_id)
    return jsonify([a.to_dict() for a in question.answers])


@bp.route('/<int:quiz_id>/question/<int:question_id>/answer', methods=['POST'])
@roles_required(*AUTHORS)
def create_answer(quiz_id, question_id):
    _editable_quiz(quiz_id)
    question = _get_question(quiz_id, question_id)
    data = request_data()

    media = MediaBatch()
    try:
        answer = Answer(
            text=(data.get('text') or '').strip() or _('Новый ответ'),
            is_correct=form_flag(data, 'is_correct'),
        )
        media_file = pick_file(request.files, 'media')
        if media_file:
            answer.media_url = media.save(media_file)
        question.answers.append(answer)
    except Exception:
        media.rollback()
        raise
    _commit_media(media)
    return jsonify(answer.to_dict()), 201


@bp.route('/<int:quiz_id>/question/<int:question_id>/answer/<int:answer_id>', methods=['PUT'])
@roles_required(*AUTHORS)
def update_answer(quiz_id, question_id, answer_id):
    _editable_quiz(quiz_id)
    answer = _get_answer(_get_question(quiz_id, question_id), answer_id)
    data = request_data()

    media = MediaBatch()
    try:
        answer.text = (data.get('text') or '').strip() or answer.text
        if data.get('is_correct') is not None:
            answer.is_correct = form_flag(data, 'is_correct')
        media_file = pick_file(request.files, 'media')
        if media_file:
            media.release(answer.media_url)
            answer.media_url = media.save(media_file)
        elif form_flag(data, 'delete_media'):
            media.release(answer.media_url)
            answer.media_url = None
    except Exception:
        db.session.rollback()
        media.rollback()
        raise
    _commit_media(media)
    return jsonify(answer.to_dict())


@bp.route('/<int:quiz_id>/question/<int:question_id>/answer/<int:answer_id>', methods=['DELETE'])
@roles_required(*AUTHORS)
def delete_answer(quiz_id, question_id, answer_id):
    _editable_quiz(quiz_id)
    answer = _get_answer(_get_question(quiz_id, question_id), answer_id)

    media = MediaBatch()
    media.release(answer.media_url)
    db.session.delete(answer)
    _commit_media(media)
    return jsonify({'message': _('Ответ успешно удалён')})
