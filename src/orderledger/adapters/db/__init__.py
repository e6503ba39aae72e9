"""Order record persistence."""

from orderledger.adapters.db.models import Base, ProcessedOrder
from orderledger.adapters.db.store import InMemoryOrderRecordStore, SqlOrderRecordStore

__all__ = [
    "Base",
    "InMemoryOrderRecordStore",
    "ProcessedOrder",
    "SqlOrderRecordStore",
]
