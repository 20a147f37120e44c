"""Conversational long-term memory: extraction, storage, recall, consolidation."""

from .batch import BatchCoordinator
from .consolidator import consolidate
from .errors import ExtractionFailure, MalformedStoredRecord, MemoryEngineError, StoreUnavailable
from .extractor import MemoryExtractor
from .models import MemoryItem, MemoryKind, Profile, Query, ScoredMemory, Sentiment, Turn
from .pipeline import MemoryPipeline
from .retriever import MemoryRetriever
from .store import InMemoryStore, MemoryStore, SQLiteMemoryStore

__all__ = [
    "BatchCoordinator",
    "consolidate",
    "ExtractionFailure",
    "MalformedStoredRecord",
    "MemoryEngineError",
    "StoreUnavailable",
    "MemoryExtractor",
    "MemoryItem",
    "MemoryKind",
    "Profile",
    "Query",
    "ScoredMemory",
    "Sentiment",
    "Turn",
    "MemoryPipeline",
    "MemoryRetriever",
    "InMemoryStore",
    "MemoryStore",
    "SQLiteMemoryStore",
]
