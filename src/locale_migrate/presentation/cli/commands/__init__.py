# src/locale_migrate/presentation/cli/commands/__init__.py
