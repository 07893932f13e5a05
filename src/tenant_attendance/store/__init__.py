"""Generic document persistence used by every feature module.

Paths follow the hosted document database convention:
``collection/docId/subcollection/docId``.
"""

from .base import DocumentStore, WriteBatch
from .document import Document
from .values import SERVER_TIMESTAMP, ArrayUnion, Increment

__all__ = [
    "ArrayUnion",
    "Document",
    "DocumentStore",
    "Increment",
    "SERVER_TIMESTAMP",
    "WriteBatch",
]
