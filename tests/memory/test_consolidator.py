"""Tests for profile consolidation."""

from datetime import timedelta

import pytest

from memory.consolidator import consolidate
from memory.models import MemoryKind, Sentiment


@pytest.fixture
def emotion(make_item):
    def _make(sentiment, topics=(), content="feelings"):
        return make_item(
            content=content, kind=MemoryKind.EMOTION, sentiment=sentiment, topics=topics,
            importance=0.6,
        )

    return _make


class TestConsolidate:
    def test_empty_corpus(self, now):
        profile = consolidate("u1", [], now=now)
        assert profile.is_empty()
        assert profile.conversation_patterns.average_conversation_length == 0.0
        assert profile.last_updated == now

    def test_deterministic(self, make_item, now):
        items = [
            make_item(content="User is seven", kind=MemoryKind.FACT, importance=0.7),
            make_item(content="Likes pizza"),
        ]
        first = consolidate("u1", items, now=now)
        second = consolidate("u1", items, now=now + timedelta(hours=1))
        assert first.model_dump(exclude={"last_updated"}) == second.model_dump(
            exclude={"last_updated"}
        )

    def test_facts_require_user_and_strip_it(self, make_item, now):
        items = [
            make_item(content="User is seven years old", kind=MemoryKind.FACT, importance=0.7),
            make_item(content="The sky is blue", kind=MemoryKind.FACT, importance=0.7),
        ]
        profile = consolidate("u1", items, now=now)
        assert list(profile.core_facts.values()) == ["is seven years old"]

    def test_possessive_user_stripped(self, make_item, now):
        items = [
            make_item(content="User's dog is Rex", kind=MemoryKind.FACT, importance=0.7),
            make_item(content="The username is bob", kind=MemoryKind.FACT, importance=0.7),
        ]
        profile = consolidate("u1", items, now=now)
        assert list(profile.core_facts.values()) == ["dog is Rex", "The username is bob"]

    def test_preferences_goals_skills(self, make_item, now):
        items = [
            make_item(content="Likes pizza"),
            make_item(content="Likes pizza"),
            make_item(content="Learn to swim", kind=MemoryKind.GOAL, importance=0.9),
            make_item(content="Can count to 100", kind=MemoryKind.SKILL, importance=0.5),
        ]
        profile = consolidate("u1", items, now=now)
        # Equal content at different positions keeps both entries
        assert list(profile.preferences.values()) == ["Likes pizza", "Likes pizza"]
        assert profile.goals == ["Learn to swim"]
        assert profile.skills == ["Can count to 100"]

    def test_relationships_last_write_wins(self, make_item, now):
        items = [
            make_item(content="My friend Sam is nice", kind=MemoryKind.RELATIONSHIP,
                      entities=["Sam"], importance=0.9),
            make_item(content="Sam moved away", kind=MemoryKind.RELATIONSHIP,
                      entities=["Sam"], importance=0.9),
            make_item(content="my dad is tall", kind=MemoryKind.RELATIONSHIP, importance=0.9),
        ]
        profile = consolidate("u1", items, now=now)
        assert profile.relationships == {"Sam": "Sam moved away"}

    def test_interests_need_two_mentions(self, make_item, now):
        items = [
            make_item(topics=["space", "dinosaurs"]),
            make_item(topics=["space"], kind=MemoryKind.FACT, importance=0.7),
            make_item(topics=["music"]),
        ]
        profile = consolidate("u1", items, now=now)
        assert profile.interests == ["space"]
        assert profile.conversation_patterns.common_topics == {
            "space": 2,
            "dinosaurs": 1,
            "music": 1,
        }


class TestEmotionalProfile:
    def test_dominant_emotions_by_frequency(self, emotion, now):
        items = [
            emotion(Sentiment.POSITIVE),
            emotion(Sentiment.NEGATIVE),
            emotion(Sentiment.NEGATIVE),
        ]
        profile = consolidate("u1", items, now=now)
        assert profile.emotional_profile.dominant_emotions == [
            Sentiment.NEGATIVE,
            Sentiment.POSITIVE,
        ]

    def test_triggers_last_write_wins(self, emotion, now):
        items = [
            emotion(Sentiment.POSITIVE, topics=["school"]),
            emotion(Sentiment.NEGATIVE, topics=["school", "dark"]),
        ]
        profile = consolidate("u1", items, now=now)
        assert profile.emotional_profile.triggers == {
            "school": Sentiment.NEGATIVE,
            "dark": Sentiment.NEGATIVE,
        }


class TestConversationPatterns:
    def test_average_items_per_conversation(self, make_item, now):
        items = [
            make_item(conversation_id="0"),
            make_item(conversation_id="0"),
            make_item(conversation_id="0"),
            make_item(conversation_id="1"),
        ]
        profile = consolidate("u1", items, now=now)
        assert profile.conversation_patterns.average_conversation_length == 2.0

    def test_question_types(self, make_item, now):
        items = [
            make_item(content="Why is the sky blue?", kind=MemoryKind.QUESTION, importance=0.5),
            make_item(content="What do whales eat and why?", kind=MemoryKind.QUESTION,
                      importance=0.5),
            make_item(content="Who knows how", kind=MemoryKind.FACT, importance=0.7),
        ]
        profile = consolidate("u1", items, now=now)
        assert profile.conversation_patterns.question_types == ["why", "what"]
