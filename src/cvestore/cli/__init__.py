"""Command-line interface for cvestore."""
