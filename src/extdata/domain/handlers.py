"""Command handlers delegating datatable commands to the datatable service."""

from abc import ABC, abstractmethod

from extdata.domain.commands import JsonCommand
from extdata.domain.datatable import DatatableService
from extdata.domain.entities import CommandResult
from extdata.domain.errors import ValidationError


class CommandHandler(ABC):
    """Processes one kind of command."""

    def __init__(self, service: DatatableService):
        self.service = service

    @abstractmethod
    def process_command(self, command: JsonCommand) -> CommandResult:
        """Execute the command and describe its outcome."""
        pass


def _require_apptable_id(command: JsonCommand) -> int:
    if command.apptable_id is None:
        raise ValidationError(f"Command on datatable '{command.entity_name}' needs a parent entity ID")
    return command.apptable_id


class CreateDatatableEntryCommandHandler(CommandHandler):
    def process_command(self, command: JsonCommand) -> CommandResult:
        apptable_id = _require_apptable_id(command)
        row_id = self.service.create_entry(command.entity_name, apptable_id, command.payload)
        return CommandResult(
            command_id=command.command_id,
            entity_id=apptable_id,
            resource_id=row_id,
        )


class UpdateDatatableEntryCommandHandler(CommandHandler):
    """Updates a one-to-one entry, or a one-to-many entry when a row ID is given."""

    def process_command(self, command: JsonCommand) -> CommandResult:
        apptable_id = _require_apptable_id(command)
        if command.datatable_id is None:
            changes = self.service.update_entry_one_to_one(command.entity_name, apptable_id, command.payload)
        else:
            changes = self.service.update_entry_one_to_many(
                command.entity_name, apptable_id, command.datatable_id, command.payload
            )
        return CommandResult(
            command_id=command.command_id,
            entity_id=apptable_id,
            resource_id=command.datatable_id,
            changes=changes,
        )


class DeleteDatatableEntryCommandHandler(CommandHandler):
    """Deletes one entry when a row ID is given, otherwise all entries of the parent."""

    def process_command(self, command: JsonCommand) -> CommandResult:
        apptable_id = _require_apptable_id(command)
        if command.datatable_id is None:
            self.service.delete_entries(command.entity_name, apptable_id)
        else:
            self.service.delete_entry(command.entity_name, apptable_id, command.datatable_id)
        return CommandResult(
            command_id=command.command_id,
            entity_id=apptable_id,
            resource_id=command.datatable_id,
        )


class RegisterDatatableCommandHandler(CommandHandler):
    def process_command(self, command: JsonCommand) -> CommandResult:
        datatable = self.service.register_datatable(
            command.string_value("datatable"), command.string_value("apptable")
        )
        return CommandResult(
            command_id=command.command_id,
            entity_id=None,
            changes={
                "datatable": datatable.datatable_name,
                "apptable": datatable.parent_entity_type.app_table,
                "multiRow": datatable.multi_row,
            },
        )


class DeregisterDatatableCommandHandler(CommandHandler):
    def process_command(self, command: JsonCommand) -> CommandResult:
        datatable_name = command.string_value("datatable")
        self.service.deregister_datatable(datatable_name)
        return CommandResult(
            command_id=command.command_id,
            entity_id=None,
            changes={"datatable": datatable_name},
        )
