# quizzarium/utils/__init__.py
"""
Инициализация вспомогательных утилит
"""
from .auth import create_token, decode_token, roles_required, ensure_owner_or_admin
from .forms import request_data, form_json, form_flag

__all__ = [
    'create_token', 'decode_token', 'roles_required', 'ensure_owner_or_admin',
    'request_data', 'form_json', 'form_flag'
]
