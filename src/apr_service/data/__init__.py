"""APR sample persistence layer.

Provides SQLite database management and the typed append-only sample store.
"""

from apr_service.data.database import SampleDatabase
from apr_service.data.store import SampleStore

__all__ = [
    "SampleDatabase",
    "SampleStore",
]
