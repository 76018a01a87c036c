"""Command processing: authorize, record, dispatch.

Every inbound command is checked against the principal's permissions,
recorded in the command audit log and handed to the handler registered for
its ``(Action, EntityCategory)``. The audit record and the handler's writes
share one transaction, so a failed command leaves no trace.
"""

import json
import logging
from dataclasses import replace
from typing import Optional

from extdata.database.base import Database
from extdata.domain.commands import Action, CommandWrapper, EntityCategory, JsonCommand
from extdata.domain.datatable import DatatableService
from extdata.domain.entities import AppUser, CommandResult, CommandSource
from extdata.domain.errors import NotAuthorizedError, UnsupportedCommandError, permission_denied
from extdata.domain.handlers import (
    CommandHandler,
    CreateDatatableEntryCommandHandler,
    DeleteDatatableEntryCommandHandler,
    DeregisterDatatableCommandHandler,
    RegisterDatatableCommandHandler,
    UpdateDatatableEntryCommandHandler,
)
from extdata.domain.values import to_json_value

logger = logging.getLogger(__name__)

ALL_FUNCTIONS = "ALL_FUNCTIONS"


class CommandProcessingService:
    """Service for processing commands on behalf of a user."""

    def __init__(self, db: Database, user: AppUser, datatable_service: Optional[DatatableService] = None):
        """Initialize command processing service.

        Args:
            db: Database instance
            user: Authenticated principal issuing commands
            datatable_service: Optional datatable service (created from db if omitted)
        """
        self.db = db
        self.user = user
        service = datatable_service or DatatableService(db)
        self._handlers: dict[tuple[Action, EntityCategory], CommandHandler] = {
            (Action.CREATE, EntityCategory.DATATABLE_ENTRY): CreateDatatableEntryCommandHandler(service),
            (Action.UPDATE, EntityCategory.DATATABLE_ENTRY): UpdateDatatableEntryCommandHandler(service),
            (Action.DELETE, EntityCategory.DATATABLE_ENTRY): DeleteDatatableEntryCommandHandler(service),
            (Action.REGISTER, EntityCategory.DATATABLE): RegisterDatatableCommandHandler(service),
            (Action.DEREGISTER, EntityCategory.DATATABLE): DeregisterDatatableCommandHandler(service),
        }

    def authorize(self, wrapper: CommandWrapper) -> None:
        """Check the user may run the command.

        Raises:
            NotAuthorizedError: If the user has neither ALL_FUNCTIONS nor the task permission
        """
        if not self.user.has_any_permission(ALL_FUNCTIONS, wrapper.task_permission_name):
            raise NotAuthorizedError(permission_denied(self.user.username, wrapper.task_permission_name))

    def find_handler(self, wrapper: CommandWrapper) -> CommandHandler:
        """Find the handler for a command.

        Raises:
            UnsupportedCommandError: If no handler accepts the command
        """
        handler = self._handlers.get((wrapper.category.action, wrapper.category.entity))
        if handler is None:
            raise UnsupportedCommandError(f"Unsupported command {wrapper.task_permission_name}")
        return handler

    def process(self, wrapper: CommandWrapper) -> CommandResult:
        """Authorize, record and execute a command.

        Args:
            wrapper: Command to process

        Returns:
            Result carrying the assigned command ID and any changes

        Raises:
            NotAuthorizedError: If the user lacks permission
            UnsupportedCommandError: If no handler accepts the command
            ValidationError: If the JSON payload is malformed
            DomainError: Any error raised by the handler; nothing is persisted
        """
        self.authorize(wrapper)
        handler = self.find_handler(wrapper)
        command = JsonCommand.from_wrapper(wrapper)
        logger.debug("Dispatching %s to %s", wrapper.task_permission_name, type(handler).__name__)

        with self.db.transaction():
            command_id = self.db.create_command_source(
                action_name=wrapper.action_name,
                entity_name=wrapper.entity_name,
                maker=self.user.username,
                resource_id=wrapper.resource_id,
                apptable_id=wrapper.apptable_id,
                datatable_id=wrapper.datatable_id,
                command_as_json=wrapper.json,
            )
            result = handler.process_command(replace(command, command_id=command_id))
            changes_as_json = None
            if result.changes:
                changes_as_json = json.dumps({k: to_json_value(v) for k, v in result.changes.items()})
            self.db.update_command_source_result(
                command_id,
                resource_id=result.resource_id if result.resource_id is not None else wrapper.resource_id,
                changes_as_json=changes_as_json,
            )

        logger.info("Processed command %d: %s by %s", command_id, wrapper.task_permission_name, self.user.username)
        return result

    def list_command_sources(self, entity_name: Optional[str] = None) -> list[CommandSource]:
        """List processed commands, newest first."""
        return self.db.list_command_sources(entity_name=entity_name)
