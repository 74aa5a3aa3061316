# quizzarium/models/quiz.py
"""
Модели викторины, вопроса и ответа
Содержит граф викторины: викторина → вопросы → варианты ответов
"""
from quizzarium import db
from datetime import datetime
from sqlalchemy import String, Integer, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship


class Quiz(db.Model):
    """
    Модель викторины

    ID викторин плотные (1..N): назначаются приложением и
    перенумеровываются после каждого удаления.

    Attributes:
        id (int): Плотный идентификатор викторины
        title (str): Название (обязательное)
        description (str): Описание
        image_url (str): Обложка вида /uploads/<имя>
        user_id (int): ID владельца (ON DELETE CASCADE)
        category_id (int): ID категории (ON DELETE SET NULL)
        created_at (datetime): Дата создания
        questions (relationship): Вопросы в порядке, заданном автором
        results (relationship): Результаты прохождения
    """
    __tablename__ = 'quizzes'

    id = db.Column(Integer, primary_key=True, autoincrement=False)
    title = db.Column(String(255), nullable=False)
    description = db.Column(Text)
    image_url = db.Column(String(255))
    user_id = db.Column(Integer, ForeignKey('users.id', ondelete='CASCADE'))
    category_id = db.Column(
        Integer,
        ForeignKey('categories.id', ondelete='SET NULL', onupdate='CASCADE'),
        nullable=True
    )
    created_at = db.Column(DateTime, default=datetime.utcnow)

    # Связи
    owner = relationship('User', back_populates='quizzes')
    category = relationship('Category', back_populates='quizzes')
    questions = relationship(
        'Question', back_populates='quiz', order_by='[Question.position, Question.id]',
        cascade='all, delete-orphan', passive_deletes=True
    )
    results = relationship('Result', back_populates='quiz', cascade='all, delete-orphan', passive_deletes=True)

    def __repr__(self):
        return f'<Quiz {self.id}: {self.title}>'

    def media_urls(self):
        """Все ссылки на файлы графа викторины (обложка, вопросы, ответы)"""
        urls = [self.image_url]
        for question in self.questions:
            urls.extend(question.media_urls())
        return [url for url in urls if url]

    def to_dict(self, include_questions=False):
        data = {
            'quiz_id': self.id,
            'title': self.title,
            'description': self.description,
            'image_url': self.image_url,
            'user_id': self.user_id,
            'category_id': self.category_id,
        }
        if include_questions:
            data['questions'] = [q.to_dict() for q in self.questions]
        return data


class Question(db.Model):
    """
    Модель вопроса

    ID вопросов постоянные: выдаются базой и никогда не переиспользуются.

    Attributes:
        id (int): Постоянный идентификатор вопроса
        text (str): Текст вопроса
        media_url (str): Медиафайл вопроса
        position (int): Место вопроса в викторине
        quiz_id (int): ID викторины (ON DELETE / ON UPDATE CASCADE)
        answers (relationship): Варианты ответов в порядке создания
    """
    __tablename__ = 'questions'
    __table_args__ = {'sqlite_autoincrement': True}

    id = db.Column(Integer, primary_key=True)
    text = db.Column(Text)
    media_url = db.Column(String(255))
    position = db.Column(Integer, default=0, nullable=False)
    quiz_id = db.Column(
        Integer,
        ForeignKey('quizzes.id', ondelete='CASCADE', onupdate='CASCADE'),
        nullable=False
    )

    quiz = relationship('Quiz', back_populates='questions')
    answers = relationship(
        'Answer', back_populates='question', order_by='Answer.id',
        cascade='all, delete-orphan', passive_deletes=True
    )

    def __repr__(self):
        return f'<Question {self.id} quiz={self.quiz_id}>'

    def media_urls(self):
        urls = [self.media_url] + [answer.media_url for answer in self.answers]
        return [url for url in urls if url]

    def to_dict(self):
        return {
            'question_id': self.id,
            'quiz_id': self.quiz_id,
            'text': self.text,
            'media_url': self.media_url,
            'answers': [a.to_dict() for a in self.answers],
        }


class Answer(db.Model):
    """
    Модель варианта ответа

    Attributes:
        id (int): Постоянный идентификатор ответа
        text (str): Текст ответа
        media_url (str): Медиафайл ответа
        is_correct (bool): Является ли ответ правильным
        question_id (int): ID вопроса (ON DELETE CASCADE)
    """
    __tablename__ = 'answers'
    __table_args__ = {'sqlite_autoincrement': True}

    id = db.Column(Integer, primary_key=True)
    text = db.Column(Text)
    media_url = db.Column(String(255))
    is_correct = db.Column(Boolean, default=False, nullable=False)
    question_id = db.Column(
        Integer,
        ForeignKey('questions.id', ondelete='CASCADE'),
        nullable=False
    )

    question = relationship('Question', back_populates='answers')

    def __repr__(self):
        return f'<Answer {self.id} question={self.question_id}>'

    def to_dict(self):
        return {
            'answer_id': self.id,
            'question_id': self.question_id,
            'text': self.text,
            'media_url': self.media_url,
            'is_correct': bool(self.is_correct),
        }
