from __future__ import annotations

import random

import pytest

from roger.detectors.feelings import detect_all_feelings, detect_feelings, reflect_feeling
from roger.detectors.ohio import detect_ohio_references, ohio_engagement_response
from roger.detectors.small_talk import (
    detect_audience,
    detect_demographic,
    detect_small_talk,
    detect_social_overstimulation,
    is_greeting,
    is_waiting_room_related,
    should_use_small_talk,
    small_talk_response,
)
from roger.resources_loader import load_feelings, load_ohio_context, load_small_talk


# -------------------------
# Feelings
# -------------------------
def test_intensified_loneliness():
    result = detect_feelings("I feel so lonely and isolated")

    assert result.detected
    assert result.category == "lonely"
    assert result.matched_keywords == ("lonely", "isolated")
    assert result.confidence == pytest.approx(0.8)


def test_feelings_match_whole_words_only():
    # "sad" inside "crusade" is not sadness
    assert not detect_feelings("We read about the crusade in history class").detected


def test_strongest_feeling_first():
    found = detect_all_feelings("I'm anxious, worried and nervous, and a bit sad")

    assert [r.category for r in found][:2] == ["anxious", "sad"]


def test_reflection_comes_from_the_feeling_pool():
    rng = random.Random(3)
    result = detect_feelings("I feel so lonely")
    pool = load_feelings()["reflections"]["lonely"]

    assert reflect_feeling(result, rng) in pool
    assert reflect_feeling(result, rng, intense=True).startswith(load_feelings()["intense_prefix"])
    assert reflect_feeling(detect_feelings("the lobby chairs are blue"), rng) is None


# -------------------------
# Greetings and small talk
# -------------------------
@pytest.mark.parametrize("text", ["hi", "Hello!", "  good morning.  ", "Hey there", "How’s it going?"])
def test_greetings(text):
    assert is_greeting(text)


@pytest.mark.parametrize(
    "text",
    ["", "hi, my boss yelled at me", "hello " * 12, "history"],
)
def test_not_greetings(text):
    assert not is_greeting(text)


def test_waiting_room_question():
    assert is_waiting_room_related("How long is the wait?")
    result = detect_small_talk("How long is the wait?")

    assert result.category == "waiting_room"
    assert small_talk_response(result, random.Random(0))


def test_overstimulation():
    assert detect_social_overstimulation("It's too loud in here")
    assert detect_small_talk("It's too loud in here").category == "overstimulation"


def test_small_talk_topic():
    result = detect_small_talk("It's raining again")

    assert result.category == "weather"
    assert "feeling" in small_talk_response(result, random.Random(0))


def test_small_talk_window():
    assert should_use_small_talk("nice weather today", 1)
    assert not should_use_small_talk("nice weather today", 50)
    assert not should_use_small_talk("", 0)


# -------------------------
# Demographics
# -------------------------
def test_child_patient():
    result = detect_demographic("I'm 9 and my mom brought me")

    assert result.category == "child"
    assert result.confidence == pytest.approx(0.8)
    assert detect_audience("hi", ["I'm 9 and my mom brought me"]) == "child"


def test_newcomer_patient():
    text = "I just moved to Cleveland from Syria"

    assert detect_demographic(text).category == "newcomer"
    assert detect_audience("Where can I get coffee?", [text]) == "newcomer"
    assert detect_audience("I've lived in Parma my whole life") is None


# -------------------------
# Ohio context
# -------------------------
def test_ohio_cultural_reference():
    refs = detect_ohio_references("Do you think the Browns will win this week?")

    assert refs.has_reference
    assert refs.cultural == ("browns",)
    assert 0.5 < refs.confidence <= 0.9


def test_ohio_engagement_reply():
    reply = ohio_engagement_response("Do you think the Browns will win this week?", random.Random(5))
    questions = load_ohio_context()["engaging_questions"]["browns"]

    assert reply.startswith("Browns is definitely a big part of Cleveland culture!")
    assert any(reply.endswith(q) for q in questions)


def test_no_ohio_reference():
    assert ohio_engagement_response("I like turtles", random.Random(5)) is None


def test_opener_and_question_share_one_reference():
    reply = ohio_engagement_response("I walked downtown before the Browns game", random.Random(5))
    questions = load_ohio_context()["engaging_questions"]["browns"]

    assert reply.startswith("Browns is definitely a big part of Cleveland culture!")
    assert "Downtown" not in reply
    assert any(reply.endswith(q) for q in questions)


def test_newcomers_are_welcomed_before_the_local_question():
    reply = ohio_engagement_response("I just moved to Cleveland", random.Random(5), audience="newcomer")
    welcome = load_ohio_context()["audience_openers"]["newcomer"]

    assert reply.startswith(f"{welcome} I notice you mentioned Cleveland.")


def test_child_small_talk_wording():
    result = detect_small_talk("How long is the wait?")
    reply = small_talk_response(result, random.Random(0), audience="child")

    assert reply in load_small_talk()["child_responses"]["waiting_room"]
    # topics without a child line keep the standard wording
    weather = detect_small_talk("It's raining again")
    assert small_talk_response(weather, random.Random(0), audience="child") == small_talk_response(
        weather, random.Random(0)
    )
