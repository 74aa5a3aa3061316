# quizzarium/services/composer.py
"""
Создание викторины целиком: викторина → вопросы → ответы → медиафайлы

Весь граф записывается в одной транзакции: при любой ошибке не остаётся
ни викторины, ни вопросов, ни ответов, а записанные файлы удаляются.
"""
import logging

from flask import current_app
from flask_babel import _

from quizzarium import db
from quizzarium.errors import ApiError
from quizzarium.models.category import Category
from quizzarium.models.quiz import Quiz, Question, Answer
from quizzarium.models.user import User
from quizzarium.services.identity import next_id
from quizzarium.services.storage import MediaBatch, pick_file

logger = logging.getLogger(__name__)


def question_media_field(i):
    return f'question_media_{i}'


def answer_media_field(i, j):
    return f'answer_media_{i}_{j}'


def validate_questions(questions):
    """
    Проверяет структуру списка вопросов из запроса

    Args:
        questions: Разобранный JSON: [{"text": ..., "answers": [{"text": ..., "is_correct": ...}]}]

    Returns:
        list[dict]: Тот же список (None превращается в пустой список)
    """
    if questions is None:
        return []
    if not isinstance(questions, list):
        raise ApiError.bad_request(_("Поле 'questions' должно быть списком"))

    for q in questions:
        if not isinstance(q, dict) or not _is_text(q.get('text')):
            raise ApiError.bad_request(_('Некорректная структура вопроса'))
        answers = q.get('answers') or []
        if not isinstance(answers, list):
            raise ApiError.bad_request(_('Некорректная структура ответов'))
        for ans in answers:
            if not isinstance(ans, dict) or not _is_text(ans.get('text')):
                raise ApiError.bad_request(_('Некорректная структура ответов'))
    return questions


def _is_text(value):
    return value is None or isinstance(value, str)


def resolve_category(category_id):
    """ID существующей категории или None; неизвестный ID — ошибка запроса"""
    if category_id in (None, ''):
        return None
    try:
        category_id = int(category_id)
    except (TypeError, ValueError):
        raise ApiError.bad_request(_('Некорректный ID категории'))
    if db.session.get(Category, category_id) is None:
        raise ApiError.bad_request(_('Категория %(id)s не существует', id=category_id))
    return category_id


def resolve_owner(author, owner_id):
    """
    Определяет владельца новой викторины

    Создавать викторину от имени другого пользователя может только администратор.
    """
    if owner_id in (None, ''):
        return author.id
    try:
        owner_id = int(owner_id)
    except (TypeError, ValueError):
        raise ApiError.bad_request(_('Некорректный ID пользователя'))

    if owner_id == author.id:
        return owner_id
    if not author.is_admin:
        raise ApiError.forbidden(
            _('Недостаточно прав для создания викторины от имени другого пользователя')
        )
    if db.session.get(User, owner_id) is None:
        raise ApiError.not_found(_('Пользователь не найден'))
    return owner_id


def create_quiz(author, title, description, category_id, questions, files, owner_id=None):
    """
    Создаёт викторину со всеми вопросами и ответами

    Args:
        author (User): Текущий пользователь
        title (str): Название (обязательное)
        description (str): Описание
        category_id: ID категории или None
        questions (list[dict]): Вопросы в порядке авторинга
        files: Файлы запроса: 'image', 'question_media_<i>', 'answer_media_<i>_<j>'
        owner_id: ID владельца (по умолчанию — автор)

    Returns:
        Quiz: Созданная викторина
    """
    title = (title or '').strip()
    if not title:
        raise ApiError.bad_request(_('Название викторины не может быть пустым'))

    questions = validate_questions(questions)
    owner_id = resolve_owner(author, owner_id)
    category_id = resolve_category(category_id)

    media = MediaBatch()
    try:
        quiz = Quiz(
            id=next_id(Quiz),
            title=title,
            description=description,
            category_id=category_id,
            user_id=owner_id,
        )
        image = pick_file(files, 'image')
        if image:
            quiz.image_url = media.save(image, extensions=current_app.config.get('ALLOWED_IMAGE_EXTENSIONS'))
        db.session.add(quiz)
        db.session.flush()

        for i, q in enumerate(questions):
            question = Question(quiz_id=quiz.id, position=i, text=q.get('text'))
            question_file = pick_file(files, question_media_field(i))
            if question_file:
                question.media_url = media.save(question_file)
            db.session.add(question)
            db.session.flush()

            for j, ans in enumerate(q.get('answers') or []):
                answer = Answer(
                    question_id=question.id,
                    text=ans.get('text'),
                    is_correct=bool(ans.get('is_correct')),
                )
                answer_file = pick_file(files, answer_media_field(i, j))
                if answer_file:
                    answer.media_url = media.save(answer_file)
                db.session.add(answer)
            db.session.flush()

        db.session.commit()
    except Exception as e:
        db.session.rollback()
        media.rollback()
        if not isinstance(e, ApiError):
            logger.exception("Ошибка при создании викторины")
        raise

    media.commit()
    logger.info(f"Создана викторина {quiz.id} пользователем {author.id}")
    return quiz
