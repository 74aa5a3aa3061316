# quizzarium/services/support.py
"""
Обращения в техподдержку и состояние переписки в чате

Транспорт (сам чат-бот) сюда не входит: адаптер чата вызывает эти
функции и ConversationStates.handle_message для каждого сообщения.
"""
import logging
import secrets

from flask_babel import _

from quizzarium import db
from quizzarium.errors import ApiError
from quizzarium.models.support import SupportTicket
from quizzarium.models.user import User

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    SupportTicket.STATUS_NEW: 'На рассмотрении',
    SupportTicket.STATUS_ANSWERED: 'Отвечено',
}


def status_label(status):
    label = STATUS_LABELS.get(status)
    return _(label) if label else status


def ensure_guest(chat_id):
    """
    Гостевой пользователь, привязанный к переписке

    Args:
        chat_id (int): ID переписки в чате

    Returns:
        User: Найденный или созданный пользователь с ролью GUEST
    """
    user = User.query.filter_by(chat_id=chat_id).first()
    if user:
        return user

    email = User.guest_email(chat_id)
    if User.query.filter_by(email=email).first():
        logger.warning(f"Гостевой адрес {email} уже занят другим пользователем")
        raise ApiError.bad_request(_('Адрес %(email)s уже занят', email=email))

    user = User(email=email, role=User.ROLE_GUEST, chat_id=chat_id)
    # Вход по паролю для гостя не предусмотрен
    user.set_password(secrets.token_urlsafe(32))
    db.session.add(user)
    db.session.flush()
    return user


def open_ticket(chat_id, username, message):
    """Создаёт новое обращение от имени переписки"""
    if not message or not message.strip():
        raise ApiError.bad_request(_('Текст обращения не может быть пустым'))
    try:
        user = ensure_guest(chat_id)
        ticket = SupportTicket(user_id=user.id, username=username, message=message.strip())
        db.session.add(ticket)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(f"Новое обращение {ticket.id} от переписки {chat_id}")
    return ticket


def pending_tickets():
    """Нерассмотренные обращения, новые сверху"""
    return (
        SupportTicket.query
        .filter_by(status=SupportTicket.STATUS_NEW)
        .order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc())
        .all()
    )


def tickets_for(chat_id):
    user = User.query.filter_by(chat_id=chat_id).first()
    if user is None:
        return []
    return (
        SupportTicket.query
        .filter_by(user_id=user.id)
        .order_by(SupportTicket.created_at.desc(), SupportTicket.id.desc())
        .all()
    )


def answer_ticket(ticket_id, response):
    """Сохраняет ответ администратора и помечает обращение отвеченным"""
    ticket = db.session.get(SupportTicket, ticket_id)
    if ticket is None:
        raise ApiError.not_found(_('Обращение не найдено'))
    ticket.response = response
    ticket.status = SupportTicket.STATUS_ANSWERED
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return ticket


class ConversationStates:
    """
    Конечный автомат переписок, ключ — ID переписки

    Переходы:
        idle → awaiting_issue → idle (пользователь описывает проблему)
        idle → awaiting_reply(ticket_id) → idle (администратор отвечает)
    """

    IDLE = 'idle'
    AWAITING_ISSUE = 'awaiting_issue'
    AWAITING_REPLY = 'awaiting_reply'

    def __init__(self):
        self._states = {}

    def state(self, chat_id):
        return self._states.get(chat_id, (self.IDLE, None))[0]

    def pending_ticket(self, chat_id):
        return self._states.get(chat_id, (self.IDLE, None))[1]

    def await_issue(self, chat_id):
        self._require_idle(chat_id)
        self._states[chat_id] = (self.AWAITING_ISSUE, None)

    def await_reply(self, chat_id, ticket_id):
        self._require_idle(chat_id)
        self._states[chat_id] = (self.AWAITING_REPLY, ticket_id)

    def reset(self, chat_id):
        self._states.pop(chat_id, None)

    def _require_idle(self, chat_id):
        if self.state(chat_id) != self.IDLE:
            raise ValueError(f"Conversation {chat_id} is in state {self.state(chat_id)}")

    def handle_message(self, chat_id, text, username=None):
        """
        Обрабатывает сообщение в текущем состоянии и возвращает переписку в idle

        Returns:
            SupportTicket | None: Созданное или отвеченное обращение,
            None если переписка была в idle
        """
        state, ticket_id = self._states.pop(chat_id, (self.IDLE, None))
        if state == self.AWAITING_ISSUE:
            return open_ticket(chat_id, username, text)
        if state == self.AWAITING_REPLY:
            return answer_ticket(ticket_id, text)
        return None
