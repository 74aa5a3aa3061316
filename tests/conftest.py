import io

import pytest
from werkzeug.datastructures import FileStorage

from config import Config
from quizzarium import create_app, db
from quizzarium.models.user import User
from quizzarium.utils.auth import create_token


@pytest.fixture
def app(tmp_path):
    class TestingConfig(Config):
        TESTING = True
        SECRET_KEY = 'test-secret'
        JWT_SECRET_KEY = 'test-jwt-secret'
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'test.db'}"
        # Ожидание чужой блокировки записи не должно подвешивать тесты
        SQLALCHEMY_ENGINE_OPTIONS = {'connect_args': {'timeout': 0.5}}
        UPLOAD_FOLDER = str(tmp_path / 'uploads')
        ADMIN_EMAIL = 'admin@test.local'
        ADMIN_PASSWORD = 'adminpass'

    app = create_app(TestingConfig)
    yield app

    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def ctx(app, admin_id, client_id, other_id):
    """
    Контекст приложения для тестов сервисов

    Пользователи создаются заранее: пока сессия контекста держит транзакцию,
    вложенный контекст не получит блокировку записи SQLite.
    """
    with app.app_context():
        yield
        db.session.remove()


def make_user(app, email, role=User.ROLE_CLIENT, password='secret', blocked=False):
    with app.app_context():
        user = User(email=email, role=role, blocked=blocked)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user.id


def token_for(app, user_id):
    with app.app_context():
        return create_token(db.session.get(User, user_id))


def auth(token):
    return {'Authorization': f'Bearer {token}'}


def upload(name='pic.png', data=b'fake-image-bytes', content_type='image/png'):
    """Файл в памяти, как его видит сервис в request.files"""
    return FileStorage(stream=io.BytesIO(data), filename=name, content_type=content_type)


@pytest.fixture
def admin_id(app):
    with app.app_context():
        return User.query.filter_by(email=app.config['ADMIN_EMAIL']).one().id


@pytest.fixture
def client_id(app):
    return make_user(app, 'client@test.local')


@pytest.fixture
def other_id(app):
    return make_user(app, 'other@test.local')


@pytest.fixture
def admin_headers(app, admin_id):
    return auth(token_for(app, admin_id))


@pytest.fixture
def client_headers(app, client_id):
    return auth(token_for(app, client_id))


@pytest.fixture
def other_headers(app, other_id):
    return auth(token_for(app, other_id))
