"""Local health-data providers.

Each store implements the HealthStore ABC:

    InMemoryHealthStore    — plain lists; tests and embedding
    AppleHealthExportStore — Apple Health export.xml / JSON export
"""

from healthsync.metrics.stores.apple_health import AppleHealthExportStore
from healthsync.metrics.stores.memory import InMemoryHealthStore

__all__ = [
    "InMemoryHealthStore",
    "AppleHealthExportStore",
]
