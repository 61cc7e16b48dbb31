# src/locale_migrate/presentation/cli/__init__.py
