"""Database models."""
from answer_engine.models.db.storage_entry import StorageEntry

__all__ = ["StorageEntry"]
