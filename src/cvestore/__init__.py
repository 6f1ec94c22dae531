"""cvestore - indexed in-memory query engine for vulnerability records."""

__version__ = "0.1.0"
