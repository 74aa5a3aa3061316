# quizzarium/services/catalog.py
"""
Категории, удаление викторин и пользователей

Удаление категории или викторины перенумеровывает плотные ID
оставшихся записей в той же транзакции, что и само удаление.
"""
import logging

from flask import current_app
from flask_babel import _

from quizzarium import db
from quizzarium.errors import ApiError
from quizzarium.models.category import Category
from quizzarium.models.quiz import Quiz
from quizzarium.models.result import Result
from quizzarium.models.support import SupportTicket
from quizzarium.models.user import User
from quizzarium.services.identity import next_id, repack_table
from quizzarium.services.storage import MediaBatch, pick_file
from quizzarium.utils.auth import ensure_owner_or_admin

logger = logging.getLogger(__name__)


def _image_extensions():
    return current_app.config.get('ALLOWED_IMAGE_EXTENSIONS')


def _validate_category_fields(name, description):
    if not isinstance(name, str) or not name.strip():
        raise ApiError.bad_request(_('Название категории не может быть пустым'))
    if not isinstance(description, str) or not description.strip():
        raise ApiError.bad_request(_('Описание категории не может быть пустым'))
    return name.strip(), description.strip()


def get_category(category_id):
    category = db.session.get(Category, category_id)
    if category is None:
        raise ApiError.not_found(_('Категория не найдена'))
    return category


def create_category(name, description, files=None):
    """
    Создаёт категорию с наименьшим свободным ID

    Args:
        name (str): Название
        description (str): Описание
        files: Файлы запроса с необязательным полем 'image'

    Returns:
        Category: Созданная категория
    """
    name, description = _validate_category_fields(name, description)

    media = MediaBatch()
    try:
        category = Category(id=next_id(Category), name=name, description=description)
        image = pick_file(files, 'image')
        if image:
            category.image_url = media.save(image, extensions=_image_extensions())
        db.session.add(category)
        db.session.commit()
    except Exception:
        db.session.rollback()
        media.rollback()
        raise

    media.commit()
    logger.info(f"Создана категория {category.id}")
    return category


def update_category(category_id, name, description, files=None):
    """Обновляет название, описание и изображение категории"""
    name, description = _validate_category_fields(name, description)
    category = get_category(category_id)

    media = MediaBatch()
    try:
        image = pick_file(files, 'image')
        if image:
            media.release(category.image_url)
            category.image_url = media.save(image, extensions=_image_extensions())
        category.name = name
        category.description = description
        db.session.commit()
    except Exception:
        db.session.rollback()
        media.rollback()
        raise

    media.commit()
    return category


def delete_category(category_id):
    """
    Удаляет категорию; викторины теряют ссылку на неё (SET NULL),
    ID оставшихся категорий перенумеровываются

    Returns:
        list[tuple[int, int]]: Применённые пары (старый ID, новый ID)
    """
    category = get_category(category_id)

    media = MediaBatch()
    try:
        media.release(category.image_url)
        db.session.delete(category)
        db.session.flush()
        moves = repack_table(Category)
        db.session.commit()
    except Exception:
        db.session.rollback()
        media.rollback()
        logger.exception(f"Ошибка при удалении категории {category_id}")
        raise

    media.commit()
    return moves


def delete_quiz(author, quiz_id):
    """
    Удаляет викторину вместе с вопросами, ответами и результатами,
    затем перенумеровывает ID викторин

    Returns:
        list[tuple[int, int]]: Применённые пары (старый ID, новый ID)
    """
    quiz = db.session.get(Quiz, quiz_id)
    if quiz is None:
        raise ApiError.not_found(_('Викторина не найдена'))
    ensure_owner_or_admin(author, quiz.user_id, _('Нет прав на удаление этой викторины'))

    media = MediaBatch()
    try:
        for url in quiz.media_urls():
            media.release(url)
        db.session.delete(quiz)
        db.session.flush()
        moves = repack_table(Quiz)
        db.session.commit()
    except Exception:
        db.session.rollback()
        media.rollback()
        logger.exception(f"Ошибка при удалении викторины {quiz_id}")
        raise

    media.commit()
    logger.info(f"Викторина {quiz_id} удалена, ID обновлены")
    return moves


def delete_user(actor, user_id):
    """
    Удаляет пользователя: сначала обращения в поддержку, результаты и
    викторины (с вопросами и ответами), затем саму запись

    Args:
        actor (User): Администратор, выполняющий удаление
        user_id (int): ID удаляемого пользователя
    """
    if actor.id == user_id:
        raise ApiError.bad_request(_('Нельзя удалить самого себя'))

    user = db.session.get(User, user_id)
    if user is None:
        raise ApiError.not_found(_('Пользователь не найден'))

    media = MediaBatch()
    try:
        SupportTicket.query.filter_by(user_id=user_id).delete(synchronize_session=False)
        Result.query.filter_by(user_id=user_id).delete(synchronize_session=False)

        quizzes = Quiz.query.filter_by(user_id=user_id).all()
        for quiz in quizzes:
            for url in quiz.media_urls():
                media.release(url)
            db.session.delete(quiz)
        db.session.flush()

        media.release(user.avatar)
        db.session.delete(user)
        db.session.flush()

        if quizzes:
            repack_table(Quiz)
        db.session.commit()
    except Exception:
        db.session.rollback()
        media.rollback()
        logger.exception(f"Ошибка при удалении пользователя {user_id}")
        raise

    media.commit()
    logger.info(f"Пользователь {user_id} и его данные удалены")
