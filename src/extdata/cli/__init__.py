"""Command-line interface for extdata."""
