# quizzarium/routes/main.py
"""
Основные маршруты приложения: загруженные файлы и проверка состояния
"""
import os

from flask import Blueprint, current_app, jsonify, send_from_directory, abort

# Создание Blueprint для основных маршрутов
bp = Blueprint('main', __name__)


@bp.route('/health')
def health():
    return jsonify({'status': 'ok'})


@bp.route('/uploads/<path:filename>')
def uploaded_file(filename):
    """
    Отдаёт загруженные медиафайлы (обложки, медиа вопросов и ответов, аватары)
    """
    upload_folder = current_app.config.get('UPLOAD_FOLDER')
    if not upload_folder:
        current_app.logger.error("UPLOAD_FOLDER not set in config")
        abort(500)

    # Приводим к абсолютному пути относительно корня приложения, если нужно
    if not os.path.isabs(upload_folder):
        upload_folder = os.path.join(current_app.root_path, upload_folder)

    # send_from_directory сам отклоняет пути за пределами папки
    return send_from_directory(upload_folder, filename)
