"""Analyzer modules for PageSentinel."""

from .detector_engine import PageRiskDetector
from .models import AnalysisResult, CategoryResult, Finding
from .signals import BehavioralSignals, CertificateSignal, FormSignal, PageSignals, build_form_signal
from .threat_intel import ThreatDatabase, ThreatSnapshot
from .threat_intel_updater import ThreatIntelRefresher

__all__ = [
    "PageRiskDetector",
    "AnalysisResult",
    "CategoryResult",
    "Finding",
    "BehavioralSignals",
    "CertificateSignal",
    "FormSignal",
    "PageSignals",
    "build_form_signal",
    "ThreatDatabase",
    "ThreatSnapshot",
    "ThreatIntelRefresher",
]
