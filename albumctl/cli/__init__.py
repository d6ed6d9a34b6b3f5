"""Command line interface for albumctl."""
