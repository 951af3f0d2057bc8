"""Command-line interface for logme."""
