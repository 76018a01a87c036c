"""extdata: admin-defined datatables attached to core banking entities."""

__version__ = "0.1.0"


# The CLI is imported on first access of ``extdata.main``.
def __getattr__(name):
    if name == "main":
        from extdata.cli.main import main
        return main
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
