import pytest

from quizzarium import db
from quizzarium.errors import ApiError
from quizzarium.models.support import SupportTicket
from quizzarium.models.user import User
from quizzarium.services import support
from quizzarium.services.support import ConversationStates


def test_ensure_guest_is_stable(ctx):
    guest = support.ensure_guest(555)
    assert guest.role == User.ROLE_GUEST
    assert guest.email == '555@guest.local'
    assert support.ensure_guest(555).id == guest.id


def test_open_and_answer_ticket(ctx):
    ticket = support.open_ticket(101, 'ivan', '  Не открывается викторина  ')
    assert ticket.message == 'Не открывается викторина'
    assert ticket.status == SupportTicket.STATUS_NEW
    assert [t.id for t in support.pending_tickets()] == [ticket.id]

    support.answer_ticket(ticket.id, 'Обновите страницу')
    assert support.pending_tickets() == []
    (answered,) = support.tickets_for(101)
    assert answered.status == SupportTicket.STATUS_ANSWERED
    assert answered.response == 'Обновите страницу'


def test_empty_ticket_rejected(ctx):
    with pytest.raises(ApiError) as exc:
        support.open_ticket(101, 'ivan', '   ')
    assert exc.value.status == 400
    assert support.tickets_for(101) == []


def test_answer_unknown_ticket(ctx):
    with pytest.raises(ApiError) as exc:
        support.answer_ticket(404, 'нет такого')
    assert exc.value.status == 404


def test_conversation_user_flow(ctx):
    states = ConversationStates()
    assert states.state(7) == ConversationStates.IDLE
    assert states.handle_message(7, 'привет') is None

    states.await_issue(7)
    assert states.state(7) == ConversationStates.AWAITING_ISSUE
    with pytest.raises(ValueError):
        states.await_issue(7)

    ticket = states.handle_message(7, 'Ошибка при входе', username='petr')
    assert ticket.username == 'petr'
    assert states.state(7) == ConversationStates.IDLE


def test_conversation_admin_reply_flow(ctx):
    ticket = support.open_ticket(8, 'anna', 'Вопрос')
    states = ConversationStates()

    states.await_reply(1, ticket.id)
    assert states.state(1) == ConversationStates.AWAITING_REPLY
    assert states.pending_ticket(1) == ticket.id

    answered = states.handle_message(1, 'Ответ')
    assert answered.status == SupportTicket.STATUS_ANSWERED
    assert states.state(1) == ConversationStates.IDLE

    states.await_issue(1)
    states.reset(1)
    assert states.state(1) == ConversationStates.IDLE


def test_status_label(app):
    with app.test_request_context(headers={'Accept-Language': 'ru'}):
        assert support.status_label(SupportTicket.STATUS_NEW) == 'На рассмотрении'
        assert support.status_label('unknown') == 'unknown'


def test_ensure_guest_reports_taken_address(ctx):
    taken = User(email='777@guest.local', role=User.ROLE_CLIENT)
    taken.set_password('secret')
    db.session.add(taken)
    db.session.commit()

    with pytest.raises(ApiError) as exc:
        support.ensure_guest(777)
    assert exc.value.status == 400

    with pytest.raises(ApiError):
        support.open_ticket(777, 'ivan', 'Помогите')
    assert support.tickets_for(777) == []
