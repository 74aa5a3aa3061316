# quizzarium/models/result.py
"""
Модель результата прохождения викторины
"""
from quizzarium import db
from datetime import datetime
from sqlalchemy import Integer, DateTime, ForeignKey


class Result(db.Model):
    """
    Модель результата (неизменяемая запись об одной попытке)

    Attributes:
        id (int): Уникальный идентификатор результата
        user_id (int): ID пользователя
        quiz_id (int): ID викторины
        correct_answers (int): Количество верных ответов
        total_questions (int): Количество вопросов
        score (int): Оценка 0..100
        completed_at (datetime): Время завершения попытки (UTC)
    """

    __tablename__ = 'results'

    id = db.Column(Integer, primary_key=True)
    user_id = db.Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    quiz_id = db.Column(
        Integer,
        ForeignKey('quizzes.id', ondelete='CASCADE', onupdate='CASCADE'),
        nullable=False
    )
    correct_answers = db.Column(Integer, nullable=False)
    total_questions = db.Column(Integer, nullable=False)
    score = db.Column(Integer, nullable=False)
    completed_at = db.Column(DateTime, default=datetime.utcnow, nullable=False)

    user = db.relationship('User', back_populates='results')
    quiz = db.relationship('Quiz', back_populates='results')

    def __repr__(self):
        return f'<Result user_id={self.user_id}, quiz_id={self.quiz_id}, score={self.score}>'

    def to_dict(self):
        return {
            'result_id': self.id,
            'user_id': self.user_id,
            'quiz_id': self.quiz_id,
            'correct_answers': self.correct_answers,
            'total_questions': self.total_questions,
            'score': self.score,
            'completed_at': self.completed_at.isoformat() if self.completed_at else None,
        }
