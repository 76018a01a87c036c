"""Tests for datatable, entry and audit commands."""

import json

import pytest
from extdata.cli.main import cli
from extdata.cli.commands.entry import parse_payload
from extdata.domain.errors import ValidationError


def invoke(cli_runner, temp_db, *args, **kwargs):
    return cli_runner.invoke(cli, ["--db-path", temp_db.database_path, *args], **kwargs)


def test_datatable_register(cli_runner, temp_db, client_extra_table):
    """Test registering a one-to-one datatable."""
    result = invoke(cli_runner, temp_db, "datatable", "register", "client_extra", "CLIENT")

    assert result.exit_code == 0
    assert "Registered datatable 'client_extra' for m_client (one-to-one)" in result.output


def test_datatable_register_one_to_many(cli_runner, temp_db, loan_notes_table):
    """Test registering by application table name."""
    result = invoke(cli_runner, temp_db, "datatable", "register", "loan_notes", "m_loan")

    assert result.exit_code == 0
    assert "(one-to-many)" in result.output


def test_datatable_register_unknown_parent(cli_runner, temp_db, client_extra_table):
    """Test registering against an unknown parent type fails."""
    result = invoke(cli_runner, temp_db, "datatable", "register", "client_extra", "SPACESHIP")

    assert result.exit_code == 1
    assert "Unknown parent entity type 'SPACESHIP'" in result.output


def test_datatable_register_duplicate(cli_runner, temp_db, client_extra):
    """Test registering the same datatable twice fails."""
    result = invoke(cli_runner, temp_db, "datatable", "register", "client_extra", "CLIENT")

    assert result.exit_code == 1
    assert "already registered" in result.output


def test_datatable_list_empty(cli_runner, temp_db):
    """Test listing when nothing is registered."""
    result = invoke(cli_runner, temp_db, "datatable", "list")

    assert result.exit_code == 0
    assert "No datatables registered." in result.output


def test_datatable_list(cli_runner, temp_db, client_extra, loan_notes):
    """Test listing with and without a parent filter."""
    result = invoke(cli_runner, temp_db, "datatable", "list")
    assert result.exit_code == 0
    assert "client_extra" in result.output
    assert "loan_notes" in result.output
    assert "one-to-many" in result.output

    result = invoke(cli_runner, temp_db, "datatable", "list", "--parent", "loan")
    assert result.exit_code == 0
    assert "loan_notes" in result.output
    assert "client_extra" not in result.output


def test_datatable_show(cli_runner, temp_db, loan_notes):
    """Test showing datatable columns."""
    result = invoke(cli_runner, temp_db, "datatable", "show", "loan_notes")

    assert result.exit_code == 0
    assert "Datatable 'loan_notes' (LOAN, one-to-many)" in result.output
    assert "VARCHAR(100)" in result.output
    assert "required" in result.output


def test_datatable_show_unregistered(cli_runner, temp_db):
    result = invoke(cli_runner, temp_db, "datatable", "show", "nope")

    assert result.exit_code == 1
    assert "not registered" in result.output


def test_datatable_deregister(cli_runner, temp_db, client_extra):
    """Test deregistering an empty datatable."""
    result = invoke(cli_runner, temp_db, "datatable", "deregister", "client_extra")

    assert result.exit_code == 0
    assert "Deregistered datatable 'client_extra'" in result.output

    result = invoke(cli_runner, temp_db, "datatable", "list")
    assert "No datatables registered." in result.output


def test_datatable_deregister_with_entries(cli_runner, temp_db, client_extra):
    """Test deregistering a datatable holding entries fails."""
    invoke(cli_runner, temp_db, "entry", "create", "client_extra", "5", "favoriteColor=blue")

    result = invoke(cli_runner, temp_db, "datatable", "deregister", "client_extra")

    assert result.exit_code == 1
    assert "delete them first" in result.output


def test_entry_create_and_show(cli_runner, temp_db, client_extra):
    """Test creating an entry from FIELD=VALUE arguments."""
    result = invoke(
        cli_runner, temp_db, "entry", "create", "client_extra", "5", "favoriteColor=blue", "shoeSize=42", "vip=yes"
    )
    assert result.exit_code == 0
    assert "Created entry in 'client_extra' for parent 5" in result.output
    assert "row ID" not in result.output

    result = invoke(cli_runner, temp_db, "entry", "show", "client_extra", "5")
    assert result.exit_code == 0
    assert "client_id | favoriteColor | shoeSize | vip | birthday" in result.output
    assert "5 | blue | 42 | true | NULL" in result.output


def test_entry_create_json(cli_runner, temp_db, loan_notes):
    """Test creating one-to-many entries from JSON."""
    result = invoke(
        cli_runner, temp_db, "entry", "create", "loan_notes", "12", "--json", json.dumps({"note": "Called", "amount": 12.5})
    )

    assert result.exit_code == 0
    assert "(row ID: 1)" in result.output


def test_entry_create_invalid(cli_runner, temp_db, client_extra):
    """Test invalid payloads are reported."""
    result = invoke(cli_runner, temp_db, "entry", "create", "client_extra", "5", "hatSize=3")
    assert result.exit_code == 1
    assert "Unknown column" in result.output

    result = invoke(cli_runner, temp_db, "entry", "create", "client_extra", "5", "favoriteColor")
    assert result.exit_code == 1
    assert "Expected FIELD=VALUE" in result.output


def test_entry_create_second_one_to_one(cli_runner, temp_db, client_extra):
    invoke(cli_runner, temp_db, "entry", "create", "client_extra", "5", "favoriteColor=blue")

    result = invoke(cli_runner, temp_db, "entry", "create", "client_extra", "5", "favoriteColor=red")

    assert result.exit_code == 1
    assert "already has an entry" in result.output


def test_entry_update(cli_runner, temp_db, client_extra):
    """Test updating reports only changed fields."""
    invoke(cli_runner, temp_db, "entry", "create", "client_extra", "5", "favoriteColor=blue", "shoeSize=42")

    result = invoke(cli_runner, temp_db, "entry", "update", "client_extra", "5", "favoriteColor=red", "shoeSize=42")
    assert result.exit_code == 0
    assert "Updated entry in 'client_extra' for parent 5:" in result.output
    assert "favoriteColor: red" in result.output
    assert "shoeSize" not in result.output

    result = invoke(cli_runner, temp_db, "entry", "update", "client_extra", "5", "favoriteColor=red")
    assert result.exit_code == 0
    assert "No changes." in result.output


def test_entry_update_row(cli_runner, temp_db, loan_notes):
    """Test updating one row of a one-to-many datatable."""
    invoke(cli_runner, temp_db, "entry", "create", "loan_notes", "12", "note=first")
    invoke(cli_runner, temp_db, "entry", "create", "loan_notes", "12", "note=second")

    result = invoke(cli_runner, temp_db, "entry", "update", "loan_notes", "12", "--row", "2", "note=edited")
    assert result.exit_code == 0

    result = invoke(cli_runner, temp_db, "entry", "show", "loan_notes", "12", "--order", "note")
    lines = [line for line in result.output.splitlines() if line.startswith(("1 |", "2 |"))]
    assert lines == ["2 | 12 | edited | NULL | NULL", "1 | 12 | first | NULL | NULL"]


def test_entry_update_missing(cli_runner, temp_db, client_extra):
    result = invoke(cli_runner, temp_db, "entry", "update", "client_extra", "5", "favoriteColor=red")

    assert result.exit_code == 1
    assert "No entry" in result.output


def test_entry_delete(cli_runner, temp_db, client_extra):
    """Test deleting after confirmation."""
    invoke(cli_runner, temp_db, "entry", "create", "client_extra", "5", "favoriteColor=blue")

    result = invoke(cli_runner, temp_db, "entry", "delete", "client_extra", "5", input="y\n")
    assert result.exit_code == 0
    assert "Deleted all entries in 'client_extra' for parent 5" in result.output

    result = invoke(cli_runner, temp_db, "entry", "show", "client_extra", "5")
    assert "No entries found." in result.output


def test_entry_delete_cancelled(cli_runner, temp_db, client_extra):
    invoke(cli_runner, temp_db, "entry", "create", "client_extra", "5", "favoriteColor=blue")

    result = invoke(cli_runner, temp_db, "entry", "delete", "client_extra", "5", input="n\n")
    assert result.exit_code == 0
    assert "Deletion cancelled." in result.output

    result = invoke(cli_runner, temp_db, "entry", "show", "client_extra", "5")
    assert "blue" in result.output


def test_entry_delete_missing_row(cli_runner, temp_db, loan_notes):
    result = invoke(cli_runner, temp_db, "entry", "delete", "loan_notes", "12", "--row", "9", input="y\n")

    assert result.exit_code == 1
    assert "No entry 9" in result.output


def test_entry_show_unregistered(cli_runner, temp_db):
    result = invoke(cli_runner, temp_db, "entry", "show", "client_extra", "5")

    assert result.exit_code == 1
    assert "not registered" in result.output


def test_audit_list(cli_runner, temp_db, client_extra):
    """Test the audit log lists processed commands."""
    result = invoke(cli_runner, temp_db, "audit", "list")
    assert "No commands recorded." in result.output

    invoke(cli_runner, temp_db, "--user", "alice", "entry", "create", "client_extra", "5", "favoriteColor=blue")
    invoke(cli_runner, temp_db, "--user", "alice", "entry", "update", "client_extra", "5", "favoriteColor=red")

    result = invoke(cli_runner, temp_db, "audit", "list", "--entity", "client_extra")
    assert result.exit_code == 0
    assert "UPDATE client_extra/5" in result.output
    assert "CREATE client_extra/5" in result.output
    assert "alice" in result.output
    assert '{"favoriteColor": "red"}' in result.output


def test_log_level_option(cli_runner, temp_db, monkeypatch):
    """Test logging is configured from the group options."""
    calls = []
    monkeypatch.setattr("extdata.cli.main.setup_logging", lambda **kwargs: calls.append(kwargs))

    result = invoke(cli_runner, temp_db, "--log-level", "info", "--log-json", "datatable", "list")
    assert result.exit_code == 0
    assert calls == [{"level": "INFO", "json_format": True}]

    calls.clear()
    invoke(cli_runner, temp_db, "datatable", "list")
    assert calls == []


class TestParsePayload:
    """Tests for command-line payload parsing."""

    def test_fields(self):
        assert parse_payload(("a=1", "b=x=y"), None) == {"a": "1", "b": "x=y"}

    def test_fields_override_json(self):
        assert parse_payload(("a=2",), '{"a": 1, "b": true}') == {"a": "2", "b": True}

    def test_malformed_json(self):
        with pytest.raises(ValidationError):
            parse_payload((), "[1]")
