from __future__ import annotations

import logging

import pytest

from roger import config
from roger.detectors.specialized import detect_specialized_topic
from roger.routing import classify, lane_budget_ms, route


def test_first_hi_takes_fast_greeting_lane():
    decision = route("hi", [])

    assert decision.lane_type == "greeting"
    assert decision.estimated_time_ms == config.GREETING_FIRST_BUDGET_MS == 200
    assert decision.subsystems_to_engage == frozenset()


def test_later_greeting_uses_returning_budget():
    decision = route("Hello!", ["hi", "I'm waiting for my appointment"])

    assert decision.lane_type == "greeting"
    assert decision.estimated_time_ms == 400


@pytest.mark.parametrize("text", ["", "   ", "\n"])
def test_empty_input_is_neutral_not_an_error(text):
    decision = route(text, [])

    assert decision.lane_type == "greeting"
    assert decision.reason == "empty_input"


def test_explicit_self_harm_routes_to_optimized_crisis_path():
    decision = route("I want to kill myself", [])

    assert decision.lane_type == "crisis"
    assert decision.estimated_time_ms == 300
    assert decision.subsystems_to_engage == frozenset({"crisis-response"})


def test_other_crisis_signals_take_standard_crisis_path():
    decision = route("This is an emergency, I need urgent help", [])

    assert decision.lane_type == "crisis"
    assert decision.estimated_time_ms == 500


@pytest.mark.parametrize(
    "text",
    [
        "I've been restricting my eating and I want to kill myself",
        "I lost everything gambling at the casino and I want to end my life",
        "hi, I think about suicide a lot",
        "My boss keeps yelling at me and I want to die",
    ],
)
def test_crisis_dominates_every_other_signal(text):
    assert route(text, []).lane_type == "crisis"


SUICIDAL_PHRASINGS = [
    "I have no reason to live",
    "I'm thinking about killing myself",
    "I just want to end it all",
    "I wish I was dead",
    "I dont want to live anymore",
    "I don’t want to be alive",
    "I want to take my own life",
    "I might hang myself",
    "Sometimes I think I should just jump off a bridge",
]


@pytest.mark.parametrize("text", SUICIDAL_PHRASINGS)
def test_suicidal_phrasings_take_fast_crisis_path(text):
    decision, signals = classify(text, [])

    assert decision.lane_type == "crisis"
    assert decision.estimated_time_ms == 300
    assert signals.topic.crisis_kind == "suicidal"


@pytest.mark.parametrize("text", SUICIDAL_PHRASINGS)
@pytest.mark.parametrize(
    "context",
    [
        "I've been drinking every night and",
        "My boss keeps yelling at me and",
        "I keep wondering about the meaning of it all and",
        "hi,",
    ],
)
def test_suicidal_phrasings_win_over_other_signals(context, text):
    assert route(f"{context} {text}", []).lane_type == "crisis"


def test_no_reason_to_live_is_not_a_meaning_question():
    result = detect_specialized_topic("I have no reason to live")

    assert result.topic_type == "crisis"
    assert "meaning_focused" not in result.secondary_topics


def test_stressor_message_goes_to_emotional_lane():
    decision, signals = classify("My boss keeps yelling at me and I can't take it anymore", [])

    assert decision.lane_type == "emotional"
    assert decision.estimated_time_ms == 600
    assert decision.subsystems_to_engage == frozenset({"emotion", "memory", "personality"})
    assert signals.stressors[0].stressor.category == "work"


def test_strong_feeling_goes_to_emotional_lane():
    decision, signals = classify("I feel so lonely and isolated lately", [])

    assert decision.lane_type == "emotional"
    assert signals.feeling.category == "lonely"


def test_everything_else_is_complex():
    decision = route("Tell me about the history of jazz music", [])

    assert decision.lane_type == "complex"
    assert decision.estimated_time_ms == 800
    assert "rag" in decision.subsystems_to_engage


def test_greeting_with_content_is_not_a_greeting():
    assert route("hi, I had a really weird dream about jazz music last night", []).lane_type != "greeting"


def test_lane_budgets_are_ordered():
    greeting_first = lane_budget_ms("greeting", first_message=True)
    greeting = lane_budget_ms("greeting")
    emotional = lane_budget_ms("emotional")
    complex_ = lane_budget_ms("complex")

    assert greeting_first < emotional < complex_
    assert greeting < emotional
    assert lane_budget_ms("crisis") <= lane_budget_ms("crisis", fast_crisis=False)
    assert lane_budget_ms("nonsense") is None


def test_broken_crisis_detector_is_logged_critically(monkeypatch, caplog):
    from roger.detectors import specialized

    def boom():
        raise RuntimeError("catalog missing")

    monkeypatch.setattr(specialized, "_families", boom)

    with caplog.at_level(logging.CRITICAL):
        decision = route("I want to kill myself", [])

    # the turn still completes; the failure is escalated in the logs
    assert decision.lane_type in {"emotional", "complex", "greeting"}
    assert any(r.levelno == logging.CRITICAL for r in caplog.records)
