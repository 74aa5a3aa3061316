# quizzarium/services/diff.py
"""
Обновление викторины по желаемому состоянию от клиента

Клиент присылает полный список вопросов (существующие — со своим ID,
новые — без ID или с отрицательным ID), список ID вопросов на удаление и
файлы. Вопросы обновляются на месте, ответы каждого вопроса полностью
заменяются присланными. Всё выполняется в одной транзакции; старые файлы
удаляются только после коммита, новые — при откате.
"""
import logging

from flask import current_app
from flask_babel import _

from quizzarium import db
from quizzarium.errors import ApiError
from quizzarium.models.quiz import Quiz, Question, Answer
from quizzarium.services.composer import validate_questions, resolve_category
from quizzarium.services.storage import MediaBatch, pick_file
from quizzarium.utils.auth import ensure_owner_or_admin

logger = logging.getLogger(__name__)


def question_media_field(i):
    return f'questionMedia[{i}]'


def answer_media_field(i, j):
    return f'answerMedia[{i}][{j}]'


def _as_int(value, message):
    if isinstance(value, bool):
        raise ApiError.bad_request(message)
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ApiError.bad_request(message)


def parse_id_list(ids):
    """Список ID вопросов на удаление (None — пустой список)"""
    if ids in (None, ''):
        return []
    if not isinstance(ids, list):
        raise ApiError.bad_request(_("Поле 'deleted_questions' должно быть списком"))
    return [_as_int(i, _('Некорректный ID вопроса')) for i in ids]


def wants_media_removed(spec):
    """Клиент просит убрать файл: delete_media=true или явный media_url=null"""
    return spec.get('delete_media') is True or ('media_url' in spec and spec['media_url'] is None)


def reconcile_media(entity, spec, new_file, media):
    """
    Сводит медиафайл вопроса к желаемому состоянию

    Новый файл заменяет старый; флаг удаления убирает ссылку;
    иначе ссылка остаётся прежней.
    """
    if new_file:
        media.release(entity.media_url)
        entity.media_url = media.save(new_file)
    elif wants_media_removed(spec):
        media.release(entity.media_url)
        entity.media_url = None


def replace_answers(question, answers, i, files, media):
    """
    Полностью заменяет ответы вопроса присланными

    Ответ сохраняет прежний файл, если ссылается на свой старый answer_id или
    повторяет media_url одного из старых ответов этого вопроса. Файлы старых
    ответов, на которые никто не сослался, освобождаются.
    """
    old_answers = list(question.answers)
    old_by_id = {a.id: a for a in old_answers}
    old_urls = {a.media_url for a in old_answers if a.media_url}
    question.answers.clear()

    kept = set()
    for j, ans in enumerate(answers):
        answer = Answer(
            text=ans.get('text') or _('Новый ответ'),
            is_correct=bool(ans.get('is_correct')),
        )
        new_file = pick_file(files, answer_media_field(i, j))
        if new_file:
            answer.media_url = media.save(new_file)
        elif not wants_media_removed(ans):
            answer.media_url = _previous_media(ans, old_by_id, old_urls)
            if answer.media_url:
                kept.add(answer.media_url)
        question.answers.append(answer)

    for url in old_urls - kept:
        media.release(url)


def _previous_media(ans, old_by_id, old_urls):
    url = ans.get('media_url')
    if url and url in old_urls:
        return url
    try:
        old = old_by_id.get(int(ans.get('answer_id')))
    except (TypeError, ValueError):
        old = None
    return old.media_url if old else None


def update_quiz(author, quiz_id, title, description, category_id, questions,
                deleted_questions, files, delete_image=False):
    """
    Применяет к викторине желаемое состояние

    Args:
        author (User): Текущий пользователь
        quiz_id (int): ID викторины
        title, description: Новые значения (пустые — оставить прежние)
        category_id: Новая категория (пустая — оставить прежнюю)
        questions (list[dict]): Желаемый список вопросов с ответами
        deleted_questions (list[int]): ID вопросов на удаление
        files: 'image', 'questionMedia[i]', 'answerMedia[i][j]'
        delete_image (bool): Удалить обложку, если новая не прислана

    Returns:
        Quiz: Обновлённая викторина
    """
    quiz = db.session.get(Quiz, quiz_id)
    if quiz is None:
        raise ApiError.not_found(_('Викторина не найдена'))
    ensure_owner_or_admin(author, quiz.user_id, _('Нет прав на изменение этой викторины'))

    questions = validate_questions(questions)
    deleted_ids = set(parse_id_list(deleted_questions))
    if category_id not in (None, ''):
        category_id = resolve_category(category_id)
    else:
        category_id = quiz.category_id

    media = MediaBatch()
    try:
        current = {q.id: q for q in quiz.questions}

        for question_id in deleted_ids:
            question = current.pop(question_id, None)
            if question is None:
                continue
            for url in question.media_urls():
                media.release(url)
            quiz.questions.remove(question)
        db.session.flush()

        image = pick_file(files, 'image')
        if image:
            media.release(quiz.image_url)
            quiz.image_url = media.save(image, extensions=current_app.config.get('ALLOWED_IMAGE_EXTENSIONS'))
        elif delete_image:
            media.release(quiz.image_url)
            quiz.image_url = None

        quiz.title = (title or '').strip() or quiz.title
        quiz.description = description or quiz.description
        quiz.category_id = category_id

        for i, q in enumerate(questions):
            question_id = q.get('question_id')
            if question_id is not None:
                question_id = _as_int(question_id, _('Некорректный ID вопроса'))

            if question_id is None or question_id < 0:
                question = Question(text=q.get('text'))
                quiz.questions.append(question)
            elif question_id in deleted_ids:
                continue
            elif question_id in current:
                question = current[question_id]
                question.text = q.get('text') or question.text
            else:
                raise ApiError.bad_request(
                    _('Вопрос %(id)s не принадлежит викторине', id=question_id)
                )

            question.position = i
            reconcile_media(question, q, pick_file(files, question_media_field(i)), media)
            replace_answers(question, q.get('answers') or [], i, files, media)
            db.session.flush()

        db.session.commit()
    except Exception as e:
        db.session.rollback()
        media.rollback()
        if not isinstance(e, ApiError):
            logger.exception(f"Ошибка при обновлении викторины {quiz_id}")
        raise

    media.commit()
    logger.info(f"Викторина {quiz_id} обновлена пользователем {author.id}")
    return quiz
