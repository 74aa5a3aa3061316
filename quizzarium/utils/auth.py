# quizzarium/utils/auth.py
"""
Аутентификация по JWT и проверка ролей

Токен передаётся в заголовке Authorization: Bearer <token> и
разбирается через request_loader Flask-Login, поэтому в маршрутах
доступен обычный current_user.
"""
from datetime import datetime, timezone
from functools import wraps

import jwt
from flask import current_app, request
from flask_babel import _
from flask_login import current_user

from quizzarium import db, login_manager
from quizzarium.errors import ApiError


def create_token(user):
    """
    Выпускает JWT для пользователя

    Args:
        user (User): Пользователь

    Returns:
        str: Подписанный токен с user_id, email, role, avatar, blocked
    """
    now = datetime.now(timezone.utc)
    payload = {
        'user_id': user.id,
        'email': user.email,
        'role': user.role,
        'avatar': user.avatar,
        'blocked': bool(user.blocked),
        'iat': now,
        'exp': now + current_app.config['JWT_EXPIRES'],
    }
    return jwt.encode(
        payload,
        current_app.config['JWT_SECRET_KEY'],
        algorithm=current_app.config.get('JWT_ALGORITHM', 'HS256'),
    )


def decode_token(token):
    """Содержимое токена или None, если токен неверен или истёк"""
    try:
        return jwt.decode(
            token,
            current_app.config['JWT_SECRET_KEY'],
            algorithms=[current_app.config.get('JWT_ALGORITHM', 'HS256')],
        )
    except jwt.PyJWTError as e:
        current_app.logger.debug(f"Отклонён токен: {e}")
        return None


def bearer_token():
    header = request.headers.get('Authorization', '')
    scheme, _sep, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


@login_manager.user_loader
def load_user(user_id):
    from quizzarium.models.user import User
    try:
        return db.session.get(User, int(user_id))
    except (ValueError, TypeError):
        return None


@login_manager.request_loader
def load_user_from_request(req):
    token = bearer_token()
    if not token:
        return None
    payload = decode_token(token)
    if not payload or 'user_id' not in payload:
        return None
    return load_user(payload['user_id'])


@login_manager.unauthorized_handler
def unauthorized():
    raise ApiError.unauthorized(_('Не авторизован'))


def roles_required(*roles):
    """
    Декоратор маршрута: нужен действующий токен, незаблокированный аккаунт
    и одна из ролей (без ролей — любой авторизованный пользователь)
    """
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            if not current_user.is_authenticated:
                if bearer_token():
                    raise ApiError.unauthorized(_('Неверный токен'))
                raise ApiError.unauthorized(_('Необходим токен'))
            if current_user.blocked:
                raise ApiError.forbidden(_('Пользователь заблокирован'))
            if roles and current_user.role not in roles:
                raise ApiError.forbidden(_('Нет доступа'))
            return view(*args, **kwargs)
        return wrapped
    return decorator


def ensure_owner_or_admin(user, owner_id, message):
    """Изменять чужие данные может только администратор"""
    if user.id != owner_id and not user.is_admin:
        raise ApiError.forbidden(message)
