# quizzarium/errors.py
"""
Ошибки API и их преобразование в HTTP-ответы
"""
from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from flask_babel import _


class ApiError(Exception):
    """
    Ошибка с HTTP-статусом, возвращаемая клиенту как {"message": ...}

    Attributes:
        status (int): HTTP-статус ответа
        message (str): Текст ошибки для клиента
    """

    def __init__(self, status, message):
        super().__init__(message)
        self.status = status
        self.message = message

    @classmethod
    def bad_request(cls, message):
        return cls(400, message)

    @classmethod
    def unauthorized(cls, message):
        return cls(401, message)

    @classmethod
    def forbidden(cls, message):
        return cls(403, message)

    @classmethod
    def not_found(cls, message):
        return cls(404, message)

    @classmethod
    def internal(cls, message):
        return cls(500, message)

    def __repr__(self):
        return f'<ApiError {self.status}: {self.message}>'


def register_error_handlers(app):
    """Регистрирует JSON-обработчики ошибок для всего приложения"""

    @app.errorhandler(ApiError)
    def handle_api_error(error):
        if error.status >= 500:
            current_app.logger.error(f"Внутренняя ошибка: {error.message}")
        return jsonify({'message': error.message}), error.status

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'message': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        current_app.logger.exception("Необработанная ошибка")
        return jsonify({'message': _('Внутренняя ошибка сервера')}), 500
