# quizzarium/models/user.py
"""
Модель пользователя приложения викторин
Содержит информацию о пользователях системы (администраторы, клиенты, гости поддержки)
"""
from flask_login import UserMixin
from quizzarium import db
from datetime import datetime
from sqlalchemy import String, Integer, BigInteger, Boolean, DateTime
import re
from werkzeug.security import generate_password_hash, check_password_hash

class User(UserMixin, db.Model):
    """
    Модель пользователя системы

    Attributes:
        id (int): Уникальный идентификатор пользователя (не переназначается)
        email (str): Email пользователя (уникальный, используется как логин)
        password_hash (str): Хеш пароля пользователя
        role (str): Роль пользователя ('CLIENT', 'ADMIN', 'GUEST')
        blocked (bool): Заблокирован ли аккаунт
        avatar (str): Ссылка на аватар вида /uploads/avatars/<имя>
        chat_id (int): ID переписки в чате поддержки (только для гостей)
        created_at (datetime): Дата создания пользователя
    """

    __tablename__ = 'users'

    ROLE_CLIENT = 'CLIENT'
    ROLE_ADMIN = 'ADMIN'
    ROLE_GUEST = 'GUEST'
    ROLES = (ROLE_CLIENT, ROLE_ADMIN, ROLE_GUEST)

    GUEST_EMAIL_DOMAIN = 'guest.local'

    # Основные поля
    id = db.Column(Integer, primary_key=True)
    email = db.Column(String(120), unique=True, nullable=False)
    password_hash = db.Column(String(256), nullable=False)
    role = db.Column(String(20), default=ROLE_CLIENT, nullable=False)
    blocked = db.Column(Boolean, default=False, nullable=False)
    avatar = db.Column(String(255))
    chat_id = db.Column(BigInteger, unique=True)
    created_at = db.Column(DateTime, default=datetime.utcnow)

    # Связи с другими моделями
    quizzes = db.relationship('Quiz', back_populates='owner', lazy=True, passive_deletes=True)
    results = db.relationship('Result', back_populates='user', lazy=True, passive_deletes=True)
    tickets = db.relationship('SupportTicket', back_populates='user', lazy=True, passive_deletes=True)

    def __repr__(self):
        return f'<User {self.email} ({self.role})>'

    @property
    def is_admin(self):
        return self.role == self.ROLE_ADMIN

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def to_dict(self, include_avatar=True):
        """
        Представление пользователя для JSON-ответа

        Args:
            include_avatar (bool): Включать ли ссылку на аватар

        Returns:
            dict: Публичные поля пользователя (без хеша пароля)
        """
        data = {
            'user_id': self.id,
            'email': self.email,
            'role': self.role,
            'blocked': bool(self.blocked),
        }
        if include_avatar:
            data['avatar'] = self.avatar
        return data

    @staticmethod
    def is_valid_email(email):
        """
        Проверяет корректность формата email

        Args:
            email (str): Email для проверки

        Returns:
            bool: True если формат корректен, иначе False
        """
        pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        return re.match(pattern, email) is not None

    @classmethod
    def guest_email(cls, chat_id):
        return f'{chat_id}@{cls.GUEST_EMAIL_DOMAIN}'

    @classmethod
    def is_guest_email(cls, email):
        """Адреса гостевого домена выдаются только гостям поддержки"""
        return email.lower().endswith('@' + cls.GUEST_EMAIL_DOMAIN)
