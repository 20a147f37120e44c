"""Memory extraction from conversation turns: LLM first, rule-based fallback."""

import json
from dataclasses import dataclass, field
from typing import Union

import structlog

from cli.retry import llm_retry
from llm.base import LLMRateLimitError
from observability import metrics

from .errors import ExtractionFailure
from .fallback import extract_rule_based
from .models import IMPORTANCE, MemoryItem, MemoryKind, Sentiment, Turn
from .sentiment import detect_sentiment

logger = structlog.get_logger()

_EXTRACTION_SYSTEM = """You are the memory system of a friendly companion robot.

Analyze one exchange between the user and the robot and extract key information.

Rules:
- Only include information that is clearly stated.
- Every value is a short plain-text string.
- Use empty arrays when nothing applies.
- Output ONLY a JSON object with exactly these keys. No preamble, no markdown fences.

{
  "facts": ["User stated facts about themselves"],
  "preferences": ["User expressed preferences"],
  "emotions": ["User expressed emotions"],
  "topics": ["Main topics discussed"],
  "entities": ["People, places, things mentioned"],
  "questions": ["Questions the user asked"],
  "goals": ["Goals or aspirations mentioned"]
}"""

_TURN_PROMPT = """User: {user_text}
Robot: {assistant_text}"""

EXTRACTION_FIELDS = ("facts", "preferences", "emotions", "topics", "entities", "questions", "goals")

# Array field -> kind of item it produces (topics/entities are shared context)
_FIELD_KINDS = {
    "facts": MemoryKind.FACT,
    "preferences": MemoryKind.PREFERENCE,
    "emotions": MemoryKind.EMOTION,
    "goals": MemoryKind.GOAL,
    "questions": MemoryKind.QUESTION,
}


@dataclass
class Parsed:
    """Well-formed extraction payload."""

    fields: dict[str, list[str]] = field(default_factory=dict)


@dataclass
class ParseFailure:
    """Payload that does not match the expected shape."""

    reason: str


ParseResult = Union[Parsed, ParseFailure]


def parse_extraction(response) -> ParseResult:
    """Parse an LLM extraction response into a tagged result.

    The payload must be a JSON object (markdown fences tolerated). Each present
    field must be a list of strings; missing fields count as empty.
    """
    if not isinstance(response, str):
        return ParseFailure(f"non-text response: {type(response).__name__}")

    text = response.strip()
    # Strip markdown fences if present
    if text.startswith("```"):
        text = text.split("\n", 1)[-1]
    if text.endswith("```"):
        text = text.rsplit("```", 1)[0]
    text = text.strip()

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        return ParseFailure(f"invalid json: {e}")

    if not isinstance(data, dict):
        return ParseFailure(f"expected object, got {type(data).__name__}")

    fields = {}
    for name in EXTRACTION_FIELDS:
        value = data.get(name)
        if value is None:
            fields[name] = []
            continue
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            return ParseFailure(f"field '{name}' is not a list of strings")
        fields[name] = [v.strip() for v in value if v.strip()]

    return Parsed(fields=fields)


class MemoryExtractor:
    """Turns one conversation turn into typed memory items."""

    def __init__(
        self,
        provider=None,
        use_primary: bool = True,
        max_tokens: int = 800,
        max_turn_chars: int = 3000,
        retry_attempts: int = 3,
        retry_min_wait: float = 2.0,
        retry_max_wait: float = 30.0,
    ):
        self._provider = provider
        self.use_primary = use_primary
        self.max_tokens = max_tokens
        self.max_turn_chars = max_turn_chars
        self.retry_attempts = retry_attempts
        self.retry_min_wait = retry_min_wait
        self.retry_max_wait = retry_max_wait

    def _get_provider(self):
        if self._provider:
            return self._provider
        from llm.factory import create_cheap_provider

        self._provider = create_cheap_provider()
        return self._provider

    def extract(self, turn: Turn, conversation_id: str) -> list[MemoryItem]:
        """Extract memory items from a turn. Never raises on extraction failure."""
        if not turn.is_complete():
            return []

        if self.use_primary:
            try:
                items = self._extract_primary(turn, conversation_id)
                metrics.counter("memory.extract.primary")
                return items
            except ExtractionFailure as e:
                logger.warning(
                    "memory.extract.fallback", conversation_id=conversation_id, reason=str(e)
                )

        metrics.counter("memory.extract.fallback")
        return extract_rule_based(turn.user_text, conversation_id, turn.timestamp)

    def _extract_primary(self, turn: Turn, conversation_id: str) -> list[MemoryItem]:
        prompt = _TURN_PROMPT.format(
            user_text=turn.user_text[: self.max_turn_chars],
            assistant_text=turn.assistant_text[: self.max_turn_chars],
        )
        try:
            provider = self._get_provider()
            response = self._generate(provider, prompt)
        except Exception as e:
            raise ExtractionFailure(f"provider call failed: {e}") from e

        result = parse_extraction(response)
        if isinstance(result, ParseFailure):
            raise ExtractionFailure(result.reason)
        return self._to_items(result, conversation_id, turn)

    def _generate(self, provider, prompt: str) -> str:
        @llm_retry(
            max_attempts=self.retry_attempts,
            min_wait=self.retry_min_wait,
            max_wait=self.retry_max_wait,
            exceptions=(LLMRateLimitError,),
        )
        def _call():
            return provider.generate(
                messages=[{"role": "user", "content": prompt}],
                system=_EXTRACTION_SYSTEM,
                max_tokens=self.max_tokens,
                json_mode=True,
            )

        with metrics.timer("memory.extract.primary_call"):
            return _call()

    @staticmethod
    def _to_items(result: Parsed, conversation_id: str, turn: Turn) -> list[MemoryItem]:
        topics = tuple(t.lower() for t in result.fields.get("topics", []))
        entities = tuple(result.fields.get("entities", []))

        items = []
        for name, kind in _FIELD_KINDS.items():
            for content in result.fields.get(name, []):
                sentiment = (
                    detect_sentiment(content) if kind == MemoryKind.EMOTION else Sentiment.NEUTRAL
                )
                items.append(
                    MemoryItem(
                        conversation_id=conversation_id,
                        timestamp=turn.timestamp,
                        kind=kind,
                        content=content,
                        topics=topics,
                        entities=entities,
                        sentiment=sentiment,
                        importance=IMPORTANCE[kind],
                    )
                )
        return items
