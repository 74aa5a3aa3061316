# quizzarium/utils/forms.py
"""
Разбор полей multipart/JSON-запросов
"""
import json

from flask import request
from flask_babel import _

from quizzarium.errors import ApiError


def request_data():
    """Поля запроса: JSON-тело или поля формы"""
    if request.is_json:
        return request.get_json(silent=True) or {}
    return request.form


def form_json(data, field, default=None):
    """
    Значение поля, переданного JSON-строкой внутри формы

    Args:
        data: request.form или разобранный JSON
        field (str): Имя поля
        default: Значение при отсутствии поля

    Returns:
        Разобранное значение
    """
    raw = data.get(field)
    if raw in (None, ''):
        return default
    if not isinstance(raw, str):
        return raw
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        raise ApiError.bad_request(_("Поле '%(field)s' должно быть JSON-строкой", field=field))


def form_flag(data, field):
    """Булев флаг формы: 'true'/'1'/'on' или JSON true"""
    value = data.get(field)
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('true', '1', 'on', 'yes')
