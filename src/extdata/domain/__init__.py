"""Domain layer for extdata application."""

__all__ = [
    "DatatableService",
    "CommandProcessingService",
]


# Import services lazily: the database layer imports domain entities, and the
# services import the database layer.
def __getattr__(name):
    if name == "DatatableService":
        from extdata.domain.datatable import DatatableService
        return DatatableService
    if name == "CommandProcessingService":
        from extdata.domain.command_processing import CommandProcessingService
        return CommandProcessingService
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
