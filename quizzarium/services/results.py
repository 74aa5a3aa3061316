# quizzarium/services/results.py
"""
Результаты прохождения викторин и таблица лидеров
"""
import logging

from flask_babel import _

from quizzarium import db
from quizzarium.errors import ApiError
from quizzarium.models.quiz import Quiz
from quizzarium.models.result import Result

logger = logging.getLogger(__name__)


def compute_score(correct_answers, total_questions):
    """
    Оценка 0..100: correct / total * 100 с округлением половины вверх

    Args:
        correct_answers (int): Количество верных ответов
        total_questions (int): Количество вопросов (> 0)

    Returns:
        int: Оценка
    """
    # Целочисленная арифметика: round() в Python округляет 12.5 до 12
    return (200 * correct_answers + total_questions) // (2 * total_questions)


def _validate_counts(correct_answers, total_questions):
    for value in (correct_answers, total_questions):
        if isinstance(value, bool) or not isinstance(value, int):
            raise ApiError.bad_request(_('Недостающие данные'))
    if correct_answers < 0 or total_questions < 0:
        raise ApiError.bad_request(_('Количество ответов не может быть отрицательным'))
    if total_questions == 0:
        raise ApiError.bad_request(_('В викторине нет вопросов'))
    if correct_answers > total_questions:
        raise ApiError.bad_request(_('Верных ответов больше, чем вопросов'))


def submit_result(quiz_id, user_id, correct_answers, total_questions):
    """
    Сохраняет результат одной попытки

    Предыдущие попытки того же пользователя не изменяются.

    Returns:
        Result: Созданный результат
    """
    _validate_counts(correct_answers, total_questions)
    if db.session.get(Quiz, quiz_id) is None:
        raise ApiError.not_found(_('Викторина не найдена'))

    result = Result(
        quiz_id=quiz_id,
        user_id=user_id,
        correct_answers=correct_answers,
        total_questions=total_questions,
        score=compute_score(correct_answers, total_questions),
    )
    db.session.add(result)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        logger.exception(f"Не удалось сохранить результат викторины {quiz_id}")
        raise
    return result


def latest_result(quiz_id, user_id):
    """Последняя попытка пользователя или None"""
    return (
        Result.query
        .filter_by(quiz_id=quiz_id, user_id=user_id)
        .order_by(Result.completed_at.desc(), Result.id.desc())
        .first()
    )


def leaderboard(quiz_id):
    """
    Таблица лидеров: последняя попытка каждого пользователя

    Returns:
        dict: {'title': ..., 'leaderboard': [{email, user_id, correct_answers,
        total_questions, score, completed_at}, ...]} по убыванию оценки
    """
    quiz = db.session.get(Quiz, quiz_id)
    if quiz is None:
        raise ApiError.not_found(_('Викторина не найдена'))

    results = (
        Result.query
        .filter_by(quiz_id=quiz_id)
        .order_by(Result.completed_at.desc(), Result.id.desc())
        .all()
    )

    latest = {}
    for result in results:
        latest.setdefault(result.user_id, result)

    entries = sorted(latest.values(), key=lambda r: (-r.score, r.completed_at, r.id))
    return {
        'title': quiz.title,
        'leaderboard': [
            {
                'email': r.user.email if r.user else _('Аноним'),
                'user_id': r.user_id,
                'correct_answers': r.correct_answers,
                'total_questions': r.total_questions,
                'score': r.score,
                'completed_at': r.completed_at.isoformat(),
            }
            for r in entries
        ],
    }
