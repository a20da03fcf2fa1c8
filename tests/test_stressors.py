from __future__ import annotations

import pytest

from roger.detectors.stressors import (
    adult_catalog,
    contains_stressor_keywords,
    detect_stressors,
    find_related_stressors,
    general_catalog,
    generate_stressor_response,
    get_primary_stressor,
    get_stressor_by_id,
    get_stressors_by_category,
    related_stressor_response,
)
from roger.resources_loader import load_stressor_responses

BOSS = "My boss keeps yelling at me and I can't take it anymore"


def test_boss_scenario_is_a_severe_work_stressor():
    primary = get_primary_stressor(BOSS)

    assert primary is not None
    assert primary.stressor.id == "adult_stressor_016"
    assert primary.stressor.category == "work"
    assert primary.matched_keywords == ("boss", "yelling")
    assert primary.intensity == "severe"
    assert primary.confidence == pytest.approx(0.5 + 2 / 6 * 0.4)


def test_marginal_match_is_not_primary():
    detected = detect_stressors("I have a quiz")

    assert detected and detected[0].stressor.id == "stressor_002"
    assert detected[0].confidence < 0.6
    assert get_primary_stressor("I have a quiz") is None


def test_results_are_sorted_by_confidence():
    detected = detect_stressors("I'm worried about money, bills and debt")
    scores = [d.confidence for d in detected]

    assert len(detected) >= 3
    assert scores == sorted(scores, reverse=True)
    assert all(0.5 < s <= 0.9 for s in scores)


def test_mild_marker_sets_intensity():
    detected = detect_stressors("I'm a little stressed about my grades")

    assert detected[0].stressor.id == "stressor_001"
    assert detected[0].intensity == "mild"


def test_catalog_severity_is_the_default_intensity():
    detected = detect_stressors("My boss yelled at me again today")

    assert detected[0].intensity == "moderate"


def test_catalogs_have_disjoint_ids_and_prefix_dispatch():
    assert not set(general_catalog()) & set(adult_catalog())
    assert get_stressor_by_id("adult_stressor_001").name == "Debt"
    assert get_stressor_by_id("stressor_001").name == "Academic pressure"
    assert get_stressor_by_id("adult_stressor_999") is None


def test_related_stressors():
    names = [s.name for s in find_related_stressors("adult_stressor_002")]

    assert names == ["Debt", "High cost of living"]
    assert find_related_stressors("stressor_999") == []
    assert related_stressor_response("adult_stressor_016") is not None
    assert related_stressor_response("stressor_001") is None


def test_lookup_by_category():
    ids = {s.id for s in get_stressors_by_category("work")}

    assert {"adult_stressor_004", "adult_stressor_016"} <= ids


def test_keyword_presence():
    assert contains_stressor_keywords("the rent keeps going up")
    assert not contains_stressor_keywords("I like turtles")


def test_severe_reply_asks_about_coping():
    reply = generate_stressor_response(get_primary_stressor(BOSS))

    assert "boss" in reply.lower()
    assert reply.endswith(load_stressor_responses()["severe_follow_up"])


def test_empty_text_detects_nothing():
    assert detect_stressors("") == ()
    assert get_primary_stressor("") is None


def test_follow_up_can_be_replaced():
    primary = get_primary_stressor("My boss yelled at me again today")
    related = related_stressor_response(primary.stressor.id)
    reply = generate_stressor_response(primary, follow_up=related)

    assert reply.endswith(related)
    assert "heavy workload" in reply.lower()
    assert generate_stressor_response(primary, follow_up=None) == generate_stressor_response(primary)
