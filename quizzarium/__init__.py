# quizzarium/__init__.py
"""
Инициализация Flask-приложения викторин
Создание экземпляра приложения, инициализация расширений
"""
from flask import Flask, request, has_request_context
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_babel import Babel
from flask_cors import CORS
from config import Config
import os


# Инициализация расширений Flask (до create_app)
db = SQLAlchemy()
login_manager = LoginManager()


def create_app(config_class=Config):
    """
    Создание и настройка экземпляра Flask-приложения

    Args:
        config_class: Класс конфигурации приложения

    Returns:
        app: Настроенный экземпляр Flask-приложения
    """
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))
    app.json.ensure_ascii = False

    # Инициализация расширений
    is_sqlite = app.config['SQLALCHEMY_DATABASE_URI'].startswith('sqlite')
    if is_sqlite:
        # Транзакциями SQLite управляет _configure_sqlite, а не pysqlite
        options = dict(app.config.get('SQLALCHEMY_ENGINE_OPTIONS') or {})
        options.pop('isolation_level', None)
        app.config['SQLALCHEMY_ENGINE_OPTIONS'] = options

    db.init_app(app)
    if is_sqlite:
        with app.app_context():
            _configure_sqlite(db.engine)

    login_manager.init_app(app)
    # Токен разбирается в utils.auth при каждом запросе
    from quizzarium.utils import auth  # noqa: F401

    # === Babel: язык берём из Accept-Language ===
    def get_locale():
        supported = list(app.config.get('LANGUAGES', {}).keys())
        if has_request_context():
            lang = request.accept_languages.best_match(supported)
            if lang:
                return lang
        return app.config.get('BABEL_DEFAULT_LOCALE', 'ru')

    Babel(app, locale_selector=get_locale)

    origins = app.config.get('CORS_ORIGINS', '*')
    CORS(app, resources={
        r"/api/*": {"origins": origins},
        r"/uploads/*": {"origins": origins},
    })

    # === Обработчики ошибок ===
    from quizzarium.errors import register_error_handlers
    register_error_handlers(app)

    # === Регистрация Blueprints ===
    from quizzarium.routes.main import bp as main_bp
    app.register_blueprint(main_bp)

    from quizzarium.routes.user import bp as user_bp
    app.register_blueprint(user_bp, url_prefix='/api/user')

    from quizzarium.routes.category import bp as category_bp
    app.register_blueprint(category_bp, url_prefix='/api/category')

    from quizzarium.routes.quiz import bp as quiz_bp
    app.register_blueprint(quiz_bp, url_prefix='/api/quiz')

    # === Создание папок загрузки ===
    upload_folder = app.config['UPLOAD_FOLDER']
    os.makedirs(upload_folder, exist_ok=True)
    os.makedirs(os.path.join(upload_folder, 'avatars'), exist_ok=True)

    # === Инициализация БД ===
    with app.app_context():
        # Импорт моделей (чтобы SQLAlchemy их увидел)
        from quizzarium.models.user import User
        from quizzarium.models.category import Category  # noqa: F401
        from quizzarium.models.quiz import Quiz, Question, Answer  # noqa: F401
        from quizzarium.models.result import Result  # noqa: F401
        from quizzarium.models.support import SupportTicket  # noqa: F401

        db.create_all()

        # === Создание администратора по умолчанию ===
        admin_email = app.config.get('ADMIN_EMAIL')
        admin_password = app.config.get('ADMIN_PASSWORD')

        if admin_email and not User.query.filter_by(email=admin_email).first():
            admin_user = User(email=admin_email, role=User.ROLE_ADMIN)
            admin_user.set_password(admin_password)
            db.session.add(admin_user)
            try:
                db.session.commit()
                app.logger.info(f"Создан администратор: {admin_email}")
            except Exception as e:
                db.session.rollback()
                app.logger.error(f"Ошибка создания администратора: {e}")

    return app


def _configure_sqlite(engine):
    """
    Внешние ключи и блокировка записи для SQLite

    Каждая транзакция открывается через BEGIN IMMEDIATE: выдача свободного ID
    и перенумерация читают таблицу уже под блокировкой записи, поэтому
    параллельные удаление и создание не оставляют дыр в нумерации.
    """
    from sqlalchemy import event

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        # Отключаем собственное управление транзакциями pysqlite
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")
