# src/locale_migrate/infrastructure/__init__.py
