# src/locale_migrate/presentation/__init__.py
