"""Lexicon-based sentiment for emotion memories."""

from .models import Sentiment

_POSITIVE = ("happy", "excited", "love", "great", "wonderful", "amazing")
_NEGATIVE = ("sad", "angry", "hate", "terrible", "awful", "scared")

# Fallback emotion keywords in match priority order
EMOTION_KEYWORDS = {
    "sad": Sentiment.NEGATIVE,
    "happy": Sentiment.POSITIVE,
    "angry": Sentiment.NEGATIVE,
    "excited": Sentiment.POSITIVE,
    "scared": Sentiment.NEGATIVE,
    "worried": Sentiment.NEGATIVE,
    "frustrated": Sentiment.NEGATIVE,
}


def detect_sentiment(text: str) -> Sentiment:
    """Count lexicon hits (substring match) in text.

    More positive hits -> positive, more negative -> negative, an equal
    non-zero count -> mixed, no hits -> neutral.
    """
    lower = text.lower()
    pos = sum(1 for word in _POSITIVE if word in lower)
    neg = sum(1 for word in _NEGATIVE if word in lower)

    if pos > neg:
        return Sentiment.POSITIVE
    if neg > pos:
        return Sentiment.NEGATIVE
    if pos and neg:
        return Sentiment.MIXED
    return Sentiment.NEUTRAL
