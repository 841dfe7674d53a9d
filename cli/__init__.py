"""Command-line interface for Flow Canvas."""
