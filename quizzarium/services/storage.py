# quizzarium/services/storage.py
"""
Файловое хранилище загруженных медиафайлов

Файлы лежат в UPLOAD_FOLDER и адресуются ссылками вида /uploads/<имя>.
Запись файлов не входит в транзакцию БД, поэтому операции, меняющие
несколько файлов, работают через MediaBatch: новые файлы удаляются при
откате, освобождённые старые файлы удаляются только после коммита.
"""
import logging
import os
import uuid

from flask import current_app
from flask_babel import _
from werkzeug.utils import secure_filename

from quizzarium.errors import ApiError

logger = logging.getLogger(__name__)


def allowed_file(filename, extensions_set):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in extensions_set


def pick_file(files, key):
    """
    Файл из multipart-запроса по имени поля

    Args:
        files: request.files или любой словарь FileStorage
        key (str): Имя поля

    Returns:
        FileStorage | None: Файл или None, если поле пустое
    """
    if not files:
        return None
    file = files.get(key)
    if file is None or not file.filename:
        return None
    return file


def save_upload(file, subfolder=None, extensions=None):
    """
    Сохраняет загруженный файл под уникальным именем

    Args:
        file (FileStorage): Загруженный файл
        subfolder (str): Подпапка внутри UPLOAD_FOLDER (например, 'avatars')
        extensions (set): Разрешённые расширения (по умолчанию ALLOWED_MEDIA_EXTENSIONS)

    Returns:
        str: Ссылка на файл вида /uploads/[subfolder/]<имя>
    """
    if extensions is None:
        extensions = current_app.config.get('ALLOWED_MEDIA_EXTENSIONS', set())

    filename = secure_filename(file.filename or '')
    if not filename or not allowed_file(filename, extensions):
        raise ApiError.bad_request(_('Недопустимый тип файла'))

    upload_folder = current_app.config.get('UPLOAD_FOLDER')
    if not upload_folder:
        raise RuntimeError("UPLOAD_FOLDER not configured")

    unique_id = str(uuid.uuid4())[:8]
    name_part, ext_part = os.path.splitext(filename)
    stored_name = f"{name_part}_{unique_id}{ext_part.lower()}"

    parts = [subfolder, stored_name] if subfolder else [stored_name]
    path = os.path.join(upload_folder, *parts)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    file.save(path)

    prefix = current_app.config.get('UPLOAD_URL_PREFIX', '/uploads')
    return '/'.join([prefix] + parts)


def resolve_path(url):
    """
    Путь на диске для ссылки /uploads/...

    Returns:
        str | None: Абсолютный путь или None для чужих ссылок и попыток выйти за UPLOAD_FOLDER
    """
    prefix = current_app.config.get('UPLOAD_URL_PREFIX', '/uploads') + '/'
    if not url or not url.startswith(prefix):
        return None

    upload_folder = os.path.abspath(current_app.config['UPLOAD_FOLDER'])
    path = os.path.abspath(os.path.join(upload_folder, *url[len(prefix):].split('/')))
    if not path.startswith(upload_folder + os.sep):
        logger.warning(f"Path traversal attempt: {url}")
        return None
    return path


def delete_upload(url):
    """Удаляет файл по ссылке; ошибки только логируются"""
    path = resolve_path(url)
    if not path or not os.path.exists(path):
        return False
    try:
        os.remove(path)
        return True
    except OSError as e:
        logger.warning(f"Failed to remove {path}: {e}")
        return False


class MediaBatch:
    """
    Изменения файлов в рамках одной транзакции БД

    Attributes:
        saved (list[str]): Ссылки на файлы, записанные в этой транзакции
        released (list[str]): Ссылки на файлы, которые больше не нужны
    """

    def __init__(self):
        self.saved = []
        self.released = []

    def save(self, file, subfolder=None, extensions=None):
        url = save_upload(file, subfolder=subfolder, extensions=extensions)
        self.saved.append(url)
        return url

    def release(self, url):
        if url and url not in self.released:
            self.released.append(url)

    def commit(self):
        """Вызывается после успешного коммита БД"""
        for url in self.released:
            delete_upload(url)
        self.saved, self.released = [], []

    def rollback(self):
        """Вызывается после отката БД: старые файлы остаются, новые удаляются"""
        for url in self.saved:
            delete_upload(url)
        self.saved, self.released = [], []
