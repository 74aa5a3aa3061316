# quizzarium/models/__init__.py
"""
Инициализация моделей данных приложения
Объединение всех моделей в одном месте
"""
from .user import User
from .category import Category
from .quiz import Quiz, Question, Answer
from .result import Result
from .support import SupportTicket

__all__ = ['User', 'Category', 'Quiz', 'Question', 'Answer', 'Result', 'SupportTicket']
