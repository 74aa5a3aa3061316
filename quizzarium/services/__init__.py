# quizzarium/services/__init__.py
"""
Логика работы с викторинами поверх моделей
"""
