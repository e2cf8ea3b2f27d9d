"""
Records module for behaviour services.
Loads searchable collections from the database.
"""

from .record_loader import RecordLoader

__all__ = [
    'RecordLoader'
]
