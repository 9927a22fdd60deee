"""Tests for content pattern analysis."""

import pytest

from pagesentinel.analyzer.detector_content import analyze_content_patterns
from pagesentinel.config import Heuristics


@pytest.fixture
def heuristics():
    return Heuristics()


def test_empty_content_scores_zero(heuristics):
    result = analyze_content_patterns("", heuristics)
    assert result.value == 0.0
    assert result.findings == ()


def test_single_urgency_phrase(heuristics):
    result = analyze_content_patterns("Please act now to keep access.", heuristics)
    assert [f.type for f in result.findings] == ["urgency_language"]
    assert result.value == pytest.approx(0.15)


def test_urgency_counts_repeated_occurrences(heuristics):
    text = "ACT NOW. Act now! act now before it expires."
    result = analyze_content_patterns(text, heuristics)
    finding = result.findings[0]
    assert finding.type == "urgency_manipulation"
    assert finding.severity == 7
    assert "3 instances" in finding.description


def test_sensitive_data_needs_three_distinct_keywords(heuristics):
    two = analyze_content_patterns("Enter your password and password again, then your CVV.", heuristics)
    assert "sensitive_data_request" not in [f.type for f in two.findings]

    three = analyze_content_patterns(
        "Enter your password, credit card and CVV to continue.", heuristics
    )
    assert [f.type for f in three.findings] == ["sensitive_data_request"]
    assert three.findings[0].severity == 8


def test_spelling_anomalies_above_five(heuristics):
    text = "acc0unt secur1ty ver1fy upd4te c0nfirm b4nk"
    result = analyze_content_patterns(text, heuristics)
    assert "poor_quality" in [f.type for f in result.findings]


def test_five_spelling_anomalies_is_not_enough(heuristics):
    text = "acc0unt secur1ty ver1fy upd4te c0nfirm"
    result = analyze_content_patterns(text, heuristics)
    assert "poor_quality" not in [f.type for f in result.findings]


def test_reward_bait(heuristics):
    result = analyze_content_patterns("Congratulations, you are our lucky visitor!", heuristics)
    assert [f.type for f in result.findings] == ["reward_bait"]
    assert result.value == pytest.approx(0.2)


def test_custom_phrases_from_heuristics():
    heuristics = Heuristics(urgency_phrases=["respond immediately"])
    result = analyze_content_patterns("Respond immediately or lose access", heuristics)
    assert [f.type for f in result.findings] == ["urgency_language"]


def test_invalid_spelling_pattern_is_skipped():
    heuristics = Heuristics(spelling_patterns=["(unclosed", r"b[a4]nk"])
    result = analyze_content_patterns("b4nk " * 6, heuristics)
    assert "poor_quality" in [f.type for f in result.findings]
