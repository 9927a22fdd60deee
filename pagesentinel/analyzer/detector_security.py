"""Transport security analysis: form wiring and certificate state."""

from __future__ import annotations

from typing import Sequence
from urllib.parse import urlsplit

from .models import CategoryResult, Finding
from .signals import CertificateSignal, FormSignal


def _action_scheme(action: str) -> str:
    try:
        return urlsplit(action.strip()).scheme.lower()
    except ValueError:
        return ""


def analyze_form_security(forms: Sequence[FormSignal], page_protocol: str = "") -> CategoryResult:
    """Score every form independently; points accumulate before normalization."""
    if not forms:
        return CategoryResult(0.0)

    score = 0
    findings: list[Finding] = []

    for form in forms:
        protocol = form.protocol or page_protocol
        if form.requests_sensitive_data and protocol != "https":
            score += 60
            findings.append(
                Finding(
                    "insecure_sensitive_form",
                    10,
                    "Form requests sensitive data over insecure connection",
                )
            )

        if form.action and _action_scheme(form.action) == "http":
            score += 30
            findings.append(
                Finding("insecure_form_action", 7, "Form submits to insecure HTTP endpoint")
            )

        if form.external_action:
            score += 20
            findings.append(Finding("external_form_action", 6, "Form submits to external domain"))

    return CategoryResult.from_points(score, findings)


def analyze_certificate(certificate: CertificateSignal) -> CategoryResult:
    """Score the caller-supplied certificate summary."""
    score = 0
    findings: list[Finding] = []

    if not certificate.valid:
        score += 70
        findings.append(
            Finding("invalid_certificate", 9, "SSL/TLS certificate is invalid or expired")
        )

    if certificate.self_signed:
        score += 50
        findings.append(Finding("self_signed_certificate", 8, "Certificate is self-signed"))

    if certificate.mismatch:
        score += 60
        findings.append(Finding("certificate_mismatch", 9, "Certificate does not match domain"))

    return CategoryResult.from_points(score, findings)
