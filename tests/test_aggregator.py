"""Tests for score aggregation and risk-tier classification."""

import math

import pytest

from pagesentinel.analyzer.aggregator import aggregate, classify_risk, combine_scores, to_percent
from pagesentinel.analyzer.models import CategoryResult, Finding
from pagesentinel.config import DEFAULT_CATEGORY_WEIGHTS
from pagesentinel.constants import CATEGORY_ORDER, Category, RiskLevel


def result(value, *findings):
    return CategoryResult(value=value, findings=tuple(findings))


def test_default_weights_sum_to_one():
    assert math.fsum(DEFAULT_CATEGORY_WEIGHTS.values()) == 1.0


def test_all_present_is_plain_weighted_sum():
    values = [0.3, 0.7, 0.1, 0.5, 0.9, 0.2]
    results = {cat: result(v) for cat, v in zip(CATEGORY_ORDER, values)}
    expected = math.fsum(v * DEFAULT_CATEGORY_WEIGHTS[str(c)] for c, v in zip(CATEGORY_ORDER, values))
    assert combine_scores(results) == expected


def test_absent_categories_leave_the_denominator():
    results = {Category.URL: result(0.5), Category.CONTENT: None}
    assert combine_scores(results) == pytest.approx(0.5)


def test_nothing_present_scores_zero():
    assert combine_scores({}) == 0.0
    assert aggregate({}).risk_level == RiskLevel.SAFE


def test_ip_literal_only_is_medium():
    results = {
        Category.URL: result(0.40, Finding("url_ip_address", 7, "URL uses IP address instead of domain name")),
    }
    outcome = aggregate(results)
    assert outcome.score == 40
    assert outcome.risk_level == RiskLevel.MEDIUM


def test_financial_urgency_and_insecure_form_is_high():
    results = {
        Category.CONTENT: result(
            0.70,
            Finding("urgency_manipulation", 7, "Multiple urgency phrases detected (4 instances)"),
            Finding("sensitive_data_request", 8, "Requests multiple types of sensitive information"),
        ),
        Category.FORM: result(
            0.60,
            Finding("insecure_sensitive_form", 10, "Form requests sensitive data over insecure connection"),
        ),
    }
    outcome = aggregate(results)
    assert outcome.score == 67
    assert outcome.risk_level == RiskLevel.HIGH


def test_known_threat_alone_is_critical():
    results = {
        Category.DOMAIN: result(0.90, Finding("known_threat", 10, "Domain matches known threat database")),
    }
    outcome = aggregate(results)
    assert outcome.score == 90
    assert outcome.risk_level == RiskLevel.CRITICAL


def test_findings_sorted_by_severity_with_stable_ties():
    results = {
        Category.URL: result(0.1, Finding("a", 5, ""), Finding("b", 9, "")),
        Category.CONTENT: result(0.1, Finding("c", 5, "")),
        Category.CERTIFICATE: result(0.1, Finding("d", 9, "")),
    }
    outcome = aggregate(results)
    assert [f.type for f in outcome.findings] == ["b", "d", "a", "c"]


def test_category_values_recorded_for_present_categories():
    outcome = aggregate({Category.URL: result(0.4), Category.FORM: None})
    assert outcome.category_values == {"url": 0.4}


def test_timestamp_from_clock():
    outcome = aggregate({Category.URL: result(0.0)}, clock=lambda: 1234.5)
    assert outcome.timestamp == 1234.5


class TestClassifyRisk:
    def test_two_critical_findings_escalate(self):
        findings = [Finding("x", 9, ""), Finding("y", 10, "")]
        assert classify_risk(0.05, findings) == RiskLevel.CRITICAL

    def test_one_critical_finding_is_high(self):
        assert classify_risk(0.05, [Finding("x", 9, "")]) == RiskLevel.HIGH

    def test_two_high_findings_are_high(self):
        findings = [Finding("x", 7, ""), Finding("y", 8, "")]
        assert classify_risk(0.05, findings) == RiskLevel.HIGH

    def test_one_high_finding_is_medium(self):
        assert classify_risk(0.05, [Finding("x", 7, "")]) == RiskLevel.MEDIUM

    @pytest.mark.parametrize(
        "score,expected",
        [
            (0.80, RiskLevel.CRITICAL),
            (0.60, RiskLevel.HIGH),
            (0.40, RiskLevel.MEDIUM),
            (0.20, RiskLevel.LOW),
            (0.19, RiskLevel.SAFE),
        ],
    )
    def test_score_cutoffs_are_inclusive(self, score, expected):
        assert classify_risk(score, []) == expected

    def test_float_noise_below_cutoff_still_reaches_it(self):
        assert classify_risk(0.6 - 1e-12, []) == RiskLevel.HIGH


@pytest.mark.parametrize(
    "normalized,percent",
    [(0.0, 0), (0.005, 1), (0.4, 40), (0.6714, 67), (1.0, 100), (1.7, 100), (-0.2, 0)],
)
def test_to_percent(normalized, percent):
    assert to_percent(normalized) == percent
