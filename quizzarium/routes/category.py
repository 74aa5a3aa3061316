# quizzarium/routes/category.py
"""
Маршруты категорий викторин
Создание, изменение и удаление — только для администратора
"""
from flask import Blueprint, request, jsonify
from flask_babel import _

from quizzarium.models.quiz import Quiz
from quizzarium.models.category import Category
from quizzarium.models.user import User
from quizzarium.services import catalog
from quizzarium.utils.auth import roles_required
from quizzarium.utils.forms import request_data

bp = Blueprint('category', __name__)


@bp.route('/', methods=['POST'])
@roles_required(User.ROLE_ADMIN)
def create_category():
    data = request_data()
    category = catalog.create_category(data.get('name'), data.get('description'), request.files)
    return jsonify(category.to_dict())


@bp.route('/', methods=['GET'])
def list_categories():
    categories = Category.query.order_by(Category.id).all()
    return jsonify({'categories': [c.to_dict() for c in categories]})


@bp.route('/<int:category_id>', methods=['GET'])
def quizzes_in_category(category_id):
    """Викторины категории (без вопросов)"""
    quizzes = Quiz.query.filter_by(category_id=category_id).order_by(Quiz.id).all()
    return jsonify({'quizzes': [q.to_dict() for q in quizzes]})


@bp.route('/<int:category_id>', methods=['PUT'])
@roles_required(User.ROLE_ADMIN)
def update_category(category_id):
    data = request_data()
    category = catalog.update_category(category_id, data.get('name'), data.get('description'), request.files)
    return jsonify(category.to_dict())


@bp.route('/<int:category_id>', methods=['DELETE'])
@roles_required(User.ROLE_ADMIN)
def delete_category(category_id):
    moves = catalog.delete_category(category_id)
    return jsonify({
        'message': _('Категория успешно удалена и ID переупорядочены.'),
        'renumbered': [{'old_id': old, 'new_id': new} for old, new in moves],
    })
