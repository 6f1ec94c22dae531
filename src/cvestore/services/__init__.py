"""Services module for cvestore."""

from cvestore.services.engine import QueryEngine
from cvestore.services.handle import EngineHandle
from cvestore.services.scan import ScanService

__all__ = [
    "EngineHandle",
    "QueryEngine",
    "ScanService",
]
