# quizzarium/routes/__init__.py
"""
Инициализация маршрутов приложения
Каждый модуль объявляет свой Blueprint `bp`, регистрация — в create_app
"""
