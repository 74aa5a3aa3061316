# quizzarium/routes/user.py
"""
Маршруты пользователей: регистрация, вход, профиль и администрирование
"""
from flask import Blueprint, request, jsonify, current_app
from flask_babel import _
from flask_login import current_user

from quizzarium import db
from quizzarium.errors import ApiError
from quizzarium.models.user import User
from quizzarium.services import catalog
from quizzarium.services.storage import MediaBatch, pick_file
from quizzarium.utils.auth import create_token, roles_required, ensure_owner_or_admin
from quizzarium.utils.forms import request_data, form_flag

# Создание Blueprint для маршрутов пользователей
bp = Blueprint('user', __name__)

AVATAR_FOLDER = 'avatars'


def _get_user(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise ApiError.not_found(_('Пользователь не найден'))
    return user


def _save_avatar(media):
    avatar = pick_file(request.files, 'avatar')
    if avatar is None:
        return None
    return media.save(
        avatar,
        subfolder=AVATAR_FOLDER,
        extensions=current_app.config.get('ALLOWED_IMAGE_EXTENSIONS'),
    )


@bp.route('/register', methods=['POST'])
def register():
    """Регистрация нового пользователя (всегда с ролью CLIENT)"""
    data = request_data()
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''

    if not email or not password:
        raise ApiError.bad_request(_('Требуются email и пароль'))
    if not User.is_valid_email(email):
        raise ApiError.bad_request(_('Некорректный формат email'))
    if User.is_guest_email(email):
        raise ApiError.bad_request(_('Этот почтовый домен зарезервирован'))
    if User.query.filter_by(email=email).first():
        raise ApiError.bad_request(_('Пользователь с таким email уже существует'))

    media = MediaBatch()
    try:
        user = User(email=email, role=User.ROLE_CLIENT)
        user.set_password(password)
        user.avatar = _save_avatar(media)
        db.session.add(user)
        db.session.commit()
    except Exception:
        db.session.rollback()
        media.rollback()
        raise

    current_app.logger.info(f"Зарегистрирован пользователь {user.email}")
    return jsonify({'user': user.to_dict(), 'token': create_token(user)})


@bp.route('/login', methods=['POST'])
def login():
    data = request_data()
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''

    if not email or not password:
        raise ApiError.bad_request(_('Требуются email и пароль'))

    user = User.query.filter_by(email=email).first()
    if user is None:
        raise ApiError.bad_request(_('Пользователь не найден'))
    if not user.check_password(password):
        raise ApiError.bad_request(_('Неверный пароль'))
    if user.blocked:
        raise ApiError.forbidden(_('Ваш аккаунт заблокирован'))

    return jsonify({'token': create_token(user)})


@bp.route('/auth', methods=['GET'])
@roles_required()
def check():
    """Выдаёт свежий токен с актуальными данными пользователя"""
    return jsonify({'token': create_token(current_user)})


@bp.route('/change-password', methods=['POST'])
@roles_required()
def change_password():
    """
    Смена пароля: своего или, для администратора, любого пользователя (?id=)
    """
    data = request_data()
    new_password = data.get('newPassword') or ''
    if not new_password:
        raise ApiError.bad_request(_('Новый пароль обязателен'))

    target_id = request.args.get('id', type=int) or current_user.id
    ensure_owner_or_admin(current_user, target_id, _('Недостаточно прав для изменения пароля'))

    user = _get_user(target_id)
    user.set_password(new_password)
    db.session.commit()
    return jsonify({'message': _('Пароль успешно изменён')})


@bp.route('/<int:user_id>/avatar', methods=['PUT'])
@roles_required()
def update_avatar(user_id):
    ensure_owner_or_admin(current_user, user_id, _('Нет прав на изменение аватара'))
    user = _get_user(user_id)

    media = MediaBatch()
    try:
        avatar_url = _save_avatar(media)
        if avatar_url is None:
            raise ApiError.bad_request(_('Файл аватара обязателен'))
        media.release(user.avatar)
        user.avatar = avatar_url
        db.session.commit()
    except Exception:
        db.session.rollback()
        media.rollback()
        raise

    media.commit()
    return jsonify({'message': _('Аватар успешно обновлён'), 'user': user.to_dict()})


@bp.route('/<int:user_id>/role', methods=['PUT'])
@roles_required(User.ROLE_ADMIN)
def change_role(user_id):
    role = request_data().get('role')
    if not role:
        raise ApiError.bad_request(_('Роль обязательна'))
    if role not in User.ROLES:
        raise ApiError.bad_request(_('Неизвестная роль'))

    user = _get_user(user_id)
    user.role = role
    db.session.commit()
    current_app.logger.info(f"Роль пользователя {user_id} изменена на {role}")
    return jsonify({'message': _('Роль успешно обновлена'), 'user': user.to_dict()})


@bp.route('/<int:user_id>/block', methods=['PUT'])
@roles_required(User.ROLE_ADMIN)
def block_user(user_id):
    data = request_data()
    if data.get('blocked') is None:
        raise ApiError.bad_request(_('Статус блокировки обязателен'))
    if user_id == current_user.id:
        raise ApiError.bad_request(_('Нельзя заблокировать самого себя'))

    user = _get_user(user_id)
    user.blocked = form_flag(data, 'blocked')
    db.session.commit()
    return jsonify({
        'message': _('Пользователь успешно заблокирован/разблокирован'),
        'user': user.to_dict(),
    })


@bp.route('/users', methods=['GET'])
@roles_required(User.ROLE_ADMIN)
def list_users():
    users = User.query.order_by(User.id).all()
    return jsonify([u.to_dict(include_avatar=False) for u in users])


@bp.route('/<int:user_id>', methods=['GET'])
@roles_required(User.ROLE_ADMIN, User.ROLE_CLIENT)
def get_user(user_id):
    return jsonify({'user': _get_user(user_id).to_dict()})


@bp.route('/delete/<int:user_id>', methods=['DELETE'])
@roles_required(User.ROLE_ADMIN)
def delete_user(user_id):
    catalog.delete_user(current_user, user_id)
    return jsonify({'message': _('Пользователь и его данные успешно удалены')})
