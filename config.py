# config.py
import os
from datetime import timedelta

class Config:
    """Базовый класс конфигурации приложения"""

    # Название приложения
    APP_NAME = 'Quizzarium'

    # Настройки безопасности
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'your-secret-key-here'
    JWT_SECRET_KEY = os.environ.get('JWT_SECRET') or 'default_secret'
    JWT_ALGORITHM = 'HS256'
    JWT_EXPIRES = timedelta(hours=int(os.environ.get('JWT_EXPIRES_HOURS', 24)))

    # Настройки базы данных
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///quizzarium.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    # Перенумерация ID и выдача новых ID должны идти в одной изолированной транзакции
    # (для SQLite уровень изоляции заменяется на BEGIN IMMEDIATE, см. create_app)
    SQLALCHEMY_ENGINE_OPTIONS = {
        'isolation_level': os.environ.get('DB_ISOLATION_LEVEL') or 'SERIALIZABLE'
    }

    # Настройки загрузки файлов
    UPLOAD_FOLDER = os.path.join(os.path.dirname(__file__), 'uploads')
    UPLOAD_URL_PREFIX = '/uploads'
    MAX_CONTENT_LENGTH = 50 * 1024 * 1024  # 50MB max request size

    # Указываем путь к каталогу с переводами
    BABEL_TRANSLATION_DIRECTORIES = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'translations')
    BABEL_DEFAULT_LOCALE = 'ru'  # Язык по умолчанию
    BABEL_DEFAULT_TIMEZONE = 'UTC'
    # Поддерживаемые языки
    LANGUAGES = {
        'ru': 'Русский',
        'en': 'English'
    }

    # CORS для SPA-клиента
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')

    # Администратор, создаваемый при первом запуске
    ADMIN_EMAIL = os.environ.get('ADMIN_EMAIL') or 'admin@quizzarium.local'
    ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD') or 'admin'

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Константы приложения
    ALLOWED_IMAGE_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif'}
    ALLOWED_MEDIA_EXTENSIONS = {
        'png', 'jpg', 'jpeg', 'gif',
        'mp4', 'webm', 'ogg',
        'mp3', 'wav'
    }
