"""Command line interface for the row advisor."""
