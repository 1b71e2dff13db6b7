"""Tests for CLI module."""

import json
from pathlib import Path

import pytest

from rental_ledger.cli import cmd_init, cmd_version, get_default_db_path, main


def last_value(output: str, prefix: str) -> str:
    for line in output.splitlines():
        if line.startswith(prefix):
            return line[len(prefix) :].strip()
    raise AssertionError(f"{prefix!r} not in output:\n{output}")


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    path = tmp_path / "ledger.db"
    assert main(["-d", str(path), "init"]) == 0
    return path


@pytest.fixture
def unit_id(db_path: Path, capsys) -> str:
    main(["-d", str(db_path), "property", "add", "Lakeview"])
    property_id = last_value(capsys.readouterr().out, "Property created:")
    main(
        [
            "-d",
            str(db_path),
            "unit",
            "add",
            "--property-id",
            property_id,
            "--number",
            "101",
            "--tenant",
            "Asha Rao",
            "--rent",
            "1000",
            "--move-in",
            "2024-01-15",
            "--as-of",
            "2024-04-10",
        ]
    )
    out = capsys.readouterr().out
    assert "Rent records created: 4" in out
    return last_value(out, "Unit created:")


class TestGetDefaultDbPath:
    def test_uses_configured_sqlite_path(self, monkeypatch, tmp_path):
        from rental_ledger.config import get_settings

        monkeypatch.setenv("RL_SQLITE_PATH", str(tmp_path / "custom.db"))
        get_settings.cache_clear()
        try:
            assert get_default_db_path() == tmp_path / "custom.db"
        finally:
            get_settings.cache_clear()


class TestCmdInit:
    def test_creates_new_database(self, tmp_path, capsys):
        db_path = tmp_path / "nested" / "test.db"

        class Args:
            database = str(db_path)
            force = False

        result = cmd_init(Args())

        assert result == 0
        assert db_path.exists()
        assert "Initialized database at" in capsys.readouterr().out

    def test_refuses_existing_database_without_force(self, db_path, capsys):
        result = main(["-d", str(db_path), "init"])

        assert result == 1
        assert "Database already exists at" in capsys.readouterr().out

    def test_force_reinitializes(self, db_path, capsys):
        main(["-d", str(db_path), "property", "add", "Lakeview"])

        assert main(["-d", str(db_path), "init", "--force"]) == 0
        main(["-d", str(db_path), "property", "list"])

        assert "No properties found" in capsys.readouterr().out


class TestGeneralCommands:
    def test_version(self, capsys):
        class Args:
            pass

        assert cmd_version(Args()) == 0
        assert "Rental Ledger v0.1.0" in capsys.readouterr().out

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage:" in capsys.readouterr().out

    def test_missing_database(self, tmp_path, capsys):
        result = main(["-d", str(tmp_path / "absent.db"), "property", "list"])

        assert result == 1
        assert "Error: Database not found at" in capsys.readouterr().out

    def test_status(self, db_path, unit_id, capsys):
        assert main(["-d", str(db_path), "status"]) == 0

        out = capsys.readouterr().out
        assert "Properties: 1" in out
        assert "Rent records: 4 (4 unpaid)" in out


class TestRentCommands:
    def test_full_payment(self, db_path, unit_id, capsys):
        result = main(
            [
                "-d",
                str(db_path),
                "rent",
                "pay",
                f"{unit_id}_2024-01",
                "--amount",
                "1000",
                "--date",
                "2024-01-15",
            ]
        )

        out = capsys.readouterr().out
        assert result == 0
        assert f"Payment recorded for {unit_id}_2024-01" in out
        assert "Status: paid" in out

    def test_short_payment_without_reason_fails(self, db_path, unit_id, capsys):
        result = main(
            ["-d", str(db_path), "rent", "pay", f"{unit_id}_2024-01", "--amount", "500"]
        )

        assert result == 1
        assert capsys.readouterr().out.startswith("Error:")

    def test_maintenance_payment(self, db_path, unit_id, capsys):
        main(
            [
                "-d",
                str(db_path),
                "rent",
                "pay",
                f"{unit_id}_2024-02",
                "--amount",
                "700",
                "--reason",
                "maintenance",
            ]
        )

        assert "Maintenance expense:" in capsys.readouterr().out

    def test_arrears_and_mark_paid(self, db_path, unit_id, capsys):
        main(["-d", str(db_path), "rent", "arrears", "--as-of", "2024-04-10"])
        assert "Total outstanding:" in capsys.readouterr().out

        ids = [f"{unit_id}_{month}" for month in ("2024-01", "2024-02", "2024-03")]
        assert main(["-d", str(db_path), "rent", "mark-paid", *ids]) == 0
        assert "Marked 3 record(s) as paid" in capsys.readouterr().out

        main(["-d", str(db_path), "rent", "arrears", "--as-of", "2024-04-10"])
        assert "No arrears" in capsys.readouterr().out

    def test_mark_unpaid_unknown_record(self, db_path, unit_id, capsys):
        result = main(["-d", str(db_path), "rent", "mark-unpaid", "missing_2024-01"])

        assert result == 1
        assert "Rent record not found" in capsys.readouterr().out

    def test_generate_is_idempotent(self, db_path, unit_id, capsys):
        main(["-d", str(db_path), "rent", "generate", "--as-of", "2024-04-10"])

        out = capsys.readouterr().out
        assert "Created: 0" in out
        assert "Updated: 0" in out

    def test_list_unpaid(self, db_path, unit_id, capsys):
        main(["-d", str(db_path), "rent", "list", "--unpaid", "--month", "2024-02"])

        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 3
        assert lines[2].startswith("2024-02")


class TestExportCommand:
    def test_export_to_file(self, db_path, unit_id, tmp_path, capsys):
        output = tmp_path / "rent.csv"

        main(["-d", str(db_path), "export", "rent", "-o", str(output)])

        assert "Exported 4 row(s)" in capsys.readouterr().out
        assert output.read_text(encoding="utf-8").startswith("id,propertyId,")

    def test_export_json_to_stdout(self, db_path, unit_id, capsys):
        main(["-d", str(db_path), "export", "properties", "--format", "json"])

        rows = json.loads(capsys.readouterr().out)
        assert rows[0]["number"] == "101"
        assert rows[0]["tenantName"] == "Asha Rao"
