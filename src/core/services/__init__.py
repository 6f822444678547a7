"""Services orchestrating adapters for the CLI."""
