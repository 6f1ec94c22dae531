"""Core configuration for cvestore."""
