"""Domain error types and the messages they carry."""


class DomainError(ValueError):
    """Root of every error the domain layer raises.

    Derives from ValueError so callers catching ValueError keep working.
    """


class ValidationError(DomainError):
    """Payload, parameter or schema check failed."""


class NotFoundError(DomainError):
    """Requested datatable row or parent entry does not exist."""


class ConflictError(DomainError):
    """Write would violate a uniqueness rule."""


class DependencyError(DomainError):
    """Operation blocked by data that still depends on the target."""


class DuplicateTableError(ConflictError):
    """A datatable with the same name is already registered."""


class UnknownParentEntityError(ValidationError):
    """Parent entity type is not a recognized business entity."""


class TableNotFoundError(NotFoundError):
    """Datatable is not registered or does not exist in storage."""


class NotAuthorizedError(DomainError):
    """Principal lacks the permission required for a command."""


class UnsupportedCommandError(DomainError):
    """No handler is available for a command."""


class StorageError(DomainError):
    """Storage layer failed after the persistence collaborator gave up."""


def datatable_not_registered(name: str) -> str:
    """Return message for an unregistered datatable."""
    return f"Datatable '{name}' is not registered"


def datatable_already_registered(name: str) -> str:
    """Return message for duplicate datatable registration."""
    return f"Datatable '{name}' is already registered"


def unknown_parent_entity(parent_entity_type: str) -> str:
    """Return message for an unrecognized parent entity type."""
    return f"Unknown parent entity type '{parent_entity_type}'"


def physical_table_missing(name: str) -> str:
    """Return message when a datatable has no backing table in storage."""
    return f"Table '{name}' does not exist"


def unknown_columns(name: str, columns: list[str]) -> str:
    """Return message for payload fields absent from the table schema."""
    return f"Unknown column{'s' if len(columns) != 1 else ''} for datatable '{name}': {', '.join(columns)}"


def entry_not_found(name: str, parent_id: int, row_id: int | None = None) -> str:
    """Return message for a missing datatable entry."""
    if row_id is None:
        return f"No entry in datatable '{name}' for parent {parent_id}"
    return f"No entry {row_id} in datatable '{name}' for parent {parent_id}"


def entry_already_exists(name: str, parent_id: int) -> str:
    """Return message when a one-to-one datatable already has a row for the parent."""
    return f"Datatable '{name}' already has an entry for parent {parent_id}"


def deregister_blocked(name: str, row_count: int) -> str:
    """Return message when a datatable still holds rows."""
    return (
        f"Cannot deregister datatable '{name}': it has {row_count} "
        f"entr{'ies' if row_count != 1 else 'y'}. Please delete them first."
    )


def permission_denied(username: str, task_permission_name: str) -> str:
    """Return message for a missing permission."""
    return f"User '{username}' is not authorized to {task_permission_name}"
