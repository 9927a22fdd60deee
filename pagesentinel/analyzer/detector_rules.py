"""Category rule implementations."""

from __future__ import annotations

from ..constants import Category
from .detector_behavior import analyze_behavioral_indicators
from .detector_content import analyze_content_patterns
from .detector_reputation import check_domain_reputation
from .detector_security import analyze_certificate, analyze_form_security
from .detector_url import analyze_url_structure
from .rules import DetectionContext, RuleOutcome


class UrlStructureRule:
    category = Category.URL

    def apply(self, context: DetectionContext) -> RuleOutcome:
        return analyze_url_structure(context.signals.url, context.heuristics)


class ContentPatternRule:
    category = Category.CONTENT

    def apply(self, context: DetectionContext) -> RuleOutcome:
        content = context.signals.content
        if content is None:
            return None
        return analyze_content_patterns(content, context.heuristics)


class DomainReputationRule:
    category = Category.DOMAIN

    async def apply(self, context: DetectionContext) -> RuleOutcome:
        domain = context.signals.domain
        if not domain:
            return None
        return await check_domain_reputation(
            domain, context.threat_snapshot, context.heuristics
        )


class BehavioralRule:
    category = Category.BEHAVIORAL

    def apply(self, context: DetectionContext) -> RuleOutcome:
        behavioral = context.signals.behavioral
        if behavioral is None:
            return None
        return analyze_behavioral_indicators(behavioral)


class FormSecurityRule:
    category = Category.FORM

    def apply(self, context: DetectionContext) -> RuleOutcome:
        forms = context.signals.forms
        if forms is None:
            return None
        return analyze_form_security(forms, context.signals.protocol)


class CertificateRule:
    category = Category.CERTIFICATE

    def apply(self, context: DetectionContext) -> RuleOutcome:
        certificate = context.signals.certificate
        if certificate is None:
            return None
        return analyze_certificate(certificate)


def default_rules() -> list:
    """One rule per category, in evaluation order."""
    return [
        UrlStructureRule(),
        ContentPatternRule(),
        DomainReputationRule(),
        BehavioralRule(),
        FormSecurityRule(),
        CertificateRule(),
    ]
