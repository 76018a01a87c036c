"""Integration tests for end-to-end workflows."""

import json

from extdata.cli.main import cli
from extdata.domain.commands import CommandWrapperBuilder


def test_full_workflow(cli_runner, temp_db, client_extra_table):
    """Test complete workflow: register → create → show → update → delete → deregister."""
    db_args = ["--db-path", temp_db.database_path]

    # Step 1: Register the table against clients
    result = cli_runner.invoke(cli, [*db_args, "datatable", "register", "client_extra", "CLIENT"])
    assert result.exit_code == 0

    # Step 2: Create an entry for client 5
    result = cli_runner.invoke(
        cli, [*db_args, "entry", "create", "client_extra", "5", "--json", '{"favoriteColor": "blue"}']
    )
    assert result.exit_code == 0

    # Step 3: Read it back
    result = cli_runner.invoke(cli, [*db_args, "entry", "show", "client_extra", "5"])
    assert result.exit_code == 0
    assert "5 | blue |" in result.output

    # Step 4: Update and check only the changed field is reported
    result = cli_runner.invoke(cli, [*db_args, "entry", "update", "client_extra", "5", "favoriteColor=red"])
    assert result.exit_code == 0
    assert "favoriteColor: red" in result.output

    # Step 5: Delete
    result = cli_runner.invoke(cli, [*db_args, "entry", "delete", "client_extra", "5"], input="y\n")
    assert result.exit_code == 0

    result = cli_runner.invoke(cli, [*db_args, "entry", "show", "client_extra", "5"])
    assert "No entries found." in result.output

    # Step 6: Deregister now that the table is empty
    result = cli_runner.invoke(cli, [*db_args, "datatable", "deregister", "client_extra"])
    assert result.exit_code == 0

    # Every mutating command is in the audit log
    commands = temp_db.list_command_sources()
    assert [(c.action_name, c.entity_name) for c in commands] == [
        ("DEREGISTER", "DATATABLE"),
        ("DELETE", "client_extra"),
        ("UPDATE", "client_extra"),
        ("CREATE", "client_extra"),
        ("REGISTER", "DATATABLE"),
    ]
    assert json.loads(commands[2].changes_as_json) == {"favoriteColor": "red"}


def test_command_workflow(processor, datatable_service, client_extra_table):
    """Test the same lifecycle through command processing."""
    processor.process(CommandWrapperBuilder().register_datatable("client_extra", "CLIENT").build())

    create = (
        CommandWrapperBuilder()
        .create_datatable_entry("client_extra", 5)
        .with_json({"favoriteColor": "blue"})
        .build()
    )
    processor.process(create)
    assert datatable_service.read_entries("client_extra", 5).data() == [
        {"favoriteColor": "blue", "shoeSize": None, "vip": None, "birthday": None}
    ]

    update = (
        CommandWrapperBuilder()
        .update_datatable_entry("client_extra", 5)
        .with_json({"favoriteColor": "red"})
        .build()
    )
    assert update.is_update_one_to_one
    result = processor.process(update)
    assert result.changes == {"favoriteColor": "red"}

    delete = CommandWrapperBuilder().delete_datatable_entry("client_extra", 5).build()
    assert delete.is_delete_one_to_one
    processor.process(delete)

    assert datatable_service.read_entries("client_extra", 5).rows == ()


def test_one_to_many_workflow(processor, datatable_service, loan_notes_table):
    """Test several rows per parent with row-scoped update and delete."""
    processor.process(CommandWrapperBuilder().register_datatable("loan_notes", "m_loan").build())

    row_ids = []
    for note in ("called", "visited", "paid"):
        command = (
            CommandWrapperBuilder()
            .create_datatable_entry("loan_notes", 12)
            .with_json({"note": note, "noted_on": "2024-05-01"})
            .build()
        )
        row_ids.append(processor.process(command).resource_id)

    update = (
        CommandWrapperBuilder()
        .update_datatable_entry("loan_notes", 12, row_ids[1])
        .with_json({"note": "visited twice"})
        .build()
    )
    assert update.is_update_multiple
    processor.process(update)

    delete = CommandWrapperBuilder().delete_datatable_entry("loan_notes", 12, row_ids[0]).build()
    assert delete.is_delete_multiple
    processor.process(delete)

    resultset = datatable_service.read_entries("loan_notes", 12, order="id desc")
    assert [(r["id"], r["note"], r["noted_on"]) for r in resultset.rows] == [
        (row_ids[2], "paid", "2024-05-01"),
        (row_ids[1], "visited twice", "2024-05-01"),
    ]
