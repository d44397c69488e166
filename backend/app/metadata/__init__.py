"""
Gallery metadata store: recorder interface and implementations.
"""
from app.metadata.recorder import InMemoryMetadataRecorder, MetadataRecorder
from app.metadata.sql_recorder import SqlMetadataRecorder

__all__ = ["MetadataRecorder", "InMemoryMetadataRecorder", "SqlMetadataRecorder"]
