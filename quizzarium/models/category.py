# quizzarium/models/category.py
"""
Модель категории викторин
"""
from quizzarium import db
from datetime import datetime
from sqlalchemy import String, Integer, Text, DateTime

class Category(db.Model):
    """
    Модель категории

    ID категорий плотные (1..N) и назначаются приложением,
    после удаления категории оставшиеся ID перенумеровываются.

    Attributes:
        id (int): Плотный идентификатор категории
        name (str): Название категории
        description (str): Описание категории
        image_url (str): Ссылка на изображение вида /uploads/<имя>
        created_at (datetime): Дата создания
        updated_at (datetime): Дата последнего изменения
        quizzes (relationship): Викторины категории
    """

    __tablename__ = 'categories'

    id = db.Column(Integer, primary_key=True, autoincrement=False)
    name = db.Column(String(200), nullable=False)
    description = db.Column(Text)
    image_url = db.Column(String(255))
    created_at = db.Column(DateTime, default=datetime.utcnow)
    updated_at = db.Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    quizzes = db.relationship('Quiz', back_populates='category', lazy=True, passive_deletes=True)

    def __repr__(self):
        return f'<Category {self.id}: {self.name}>'

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'imageUrl': self.image_url,
        }
