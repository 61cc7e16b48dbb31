# tests/integration/test_cli.py
"""
命令行入口的集成测试（typer CliRunner）
"""

import json

import pytest
from typer.testing import CliRunner

from locale_migrate.presentation.cli.main import app

from tests.helpers.legacy_db import HOUSE, count_rows, localised_record

runner = CliRunner()


@pytest.fixture
def cli_args(db_url, catalog_file):
    return [
        "--database-url", db_url,
        "--catalog", str(catalog_file),
        "--locales", "en_US,de_AT",
        "--default-locale", "en_US",
        "--log-level", "warning",
    ]


class TestMigrateCommand:
    def test_dry_run_by_default(self, cli_args, engine):
        result = runner.invoke(app, [*cli_args, "migrate", "--root", "TranslatedDataObject", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["dry_run"] is True
        assert data["rows_written"] == 0
        assert data["rows_would_write"] > 0
        assert count_rows(engine, "FluentTestDataObject_Localised") == 0

    def test_write(self, cli_args, engine):
        result = runner.invoke(
            app, [*cli_args, "migrate", "--write", "--root", "SiteTree", "--json"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["dry_run"] is False
        assert data["failure_count"] == 0
        assert {t["table"] for t in data["tables"]} >= {
            "SiteTree_Localised_Live",
            "FluentTestPage_Localised_Versions",
        }
        assert count_rows(engine, "SiteTree_Localised_Versions") == 5

    def test_rich_report(self, cli_args, engine):
        result = runner.invoke(app, [*cli_args, "migrate", "--write"])
        assert result.exit_code == 0, result.output
        assert "本地化迁移报告" in result.stdout
        assert localised_record(engine, "FluentTestDataObject", HOUSE, "de_AT")["Title"] == "Ein Haus"

    def test_missing_derived_tables_exit_1(self, cli_args, bare_engine):
        result = runner.invoke(app, [*cli_args, "migrate", "--write"])
        assert result.exit_code == 1

    def test_create_tables_flag(self, cli_args, bare_engine):
        result = runner.invoke(
            app, [*cli_args, "migrate", "--write", "--create-tables", "--json"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert "FluentTestDataObject_Localised" in data["created_tables"]

    def test_missing_default_locale_exit_1(self, db_url, catalog_file, engine):
        result = runner.invoke(
            app,
            ["--database-url", db_url, "--catalog", str(catalog_file),
             "--locales", "en_US", "migrate"],
        )
        assert result.exit_code == 1

    def test_invalid_database_url_exit_1(self, catalog_file):
        result = runner.invoke(
            app, ["--database-url", "sqlite+aiosqlite:///x.db", "--catalog", str(catalog_file), "locales"]
        )
        assert result.exit_code == 1


class TestPlanCommand:
    def test_plan_json(self, cli_args, engine):
        result = runner.invoke(app, [*cli_args, "plan", "--root", "TranslatedPage", "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert set(data) == {"en_US", "de_AT"}
        assert "SiteTree_Localised_Versions" in data["de_AT"]
        assert data["de_AT"]["FluentTestPage_Localised_Versions"]["key"] == [
            "RecordID", "Version", "Locale",
        ]

    def test_plan_single_locale_with_sql(self, cli_args, engine):
        result = runner.invoke(
            app, [*cli_args, "plan", "--locale", "de_AT", "--sql", "--json"]
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert list(data) == ["de_AT"]
        sql = data["de_AT"]["FluentTestDataObject_Localised"]["sql"]
        assert "Title_de_AT" in sql
        assert "SELECT" in sql

    def test_plan_unknown_locale(self, cli_args, engine):
        result = runner.invoke(app, [*cli_args, "plan", "--locale", "fr_FR"])
        assert result.exit_code == 1

    def test_plan_unknown_root(self, cli_args, engine):
        result = runner.invoke(app, [*cli_args, "plan", "--root", "Nope"])
        assert result.exit_code == 1


class TestLocalesCommand:
    def test_show(self, cli_args):
        result = runner.invoke(app, [*cli_args, "locales"])
        assert result.exit_code == 0, result.output
        assert "en_US" in result.stdout
        assert "de_AT" in result.stdout

    def test_missing_locales(self, db_url):
        result = runner.invoke(app, ["--database-url", db_url, "locales"])
        assert result.exit_code == 1
