"""CLI command modules."""

from .memory import consolidate_cmd, context, ingest, profile, query, status

__all__ = [
    "ingest",
    "query",
    "context",
    "profile",
    "consolidate_cmd",
    "status",
]
