"""Database layer for eventmark."""

from eventmark.database.repository import AnalysisRepository
from eventmark.database.storage import ExecuteResult, Storage, Transaction

__all__ = [
    "AnalysisRepository",
    "ExecuteResult",
    "Storage",
    "Transaction",
]
