"""Conversation source: load user/assistant turns from exported JSON."""

import json
from pathlib import Path

import structlog

from .models import Turn

logger = structlog.get_logger()


def parse_turns(records: list[dict]) -> list[Turn]:
    """Convert raw records to turns, skipping ones without a usable timestamp."""
    turns = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            logger.warning("memory.conversations.bad_record", index=index)
            continue
        try:
            turns.append(Turn.from_dict(record))
        except ValueError as e:
            logger.warning("memory.conversations.bad_timestamp", index=index, error=str(e))
    return turns


def load_turns(path: str | Path) -> list[Turn]:
    """Load turns from a JSON file.

    The file holds either a list of turn records or an object with a
    ``messages`` list (one conversation export).

    Raises:
        ValueError: file is not valid JSON or has neither shape.
    """
    path = Path(path).expanduser()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid conversation file {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("messages")
    if not isinstance(data, list):
        raise ValueError(f"Conversation file {path} must hold a list of turns or a 'messages' list")
    return parse_turns(data)


def chunked(turns: list[Turn], size: int) -> list[list[Turn]]:
    """Split turns into consecutive chunks of ``size``."""
    if size < 1:
        raise ValueError(f"chunk size must be >= 1, got {size}")
    return [turns[i : i + size] for i in range(0, len(turns), size)]
