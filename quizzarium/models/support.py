# quizzarium/models/support.py
"""
Модель обращения в техподдержку
"""
from quizzarium import db
from datetime import datetime
from sqlalchemy import String, Integer, Text, DateTime, ForeignKey


class SupportTicket(db.Model):
    """
    Модель обращения

    Attributes:
        id (int): Номер обращения
        user_id (int): ID автора обращения (ON DELETE CASCADE)
        username (str): Имя автора в чате
        message (str): Текст обращения
        status (str): 'new' или 'answered'
        response (str): Ответ администратора
    """

    __tablename__ = 'support_tickets'

    STATUS_NEW = 'new'
    STATUS_ANSWERED = 'answered'

    id = db.Column(Integer, primary_key=True)
    user_id = db.Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    username = db.Column(String(120))
    message = db.Column(Text, nullable=False)
    status = db.Column(String(20), default=STATUS_NEW, nullable=False)
    response = db.Column(Text)
    created_at = db.Column(DateTime, default=datetime.utcnow)
    updated_at = db.Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = db.relationship('User', back_populates='tickets')

    def __repr__(self):
        return f'<SupportTicket {self.id} ({self.status})>'

    def to_dict(self):
        return {
            'ticket_id': self.id,
            'user_id': self.user_id,
            'username': self.username,
            'message': self.message,
            'status': self.status,
            'response': self.response,
        }
