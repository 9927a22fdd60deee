"""PageSentinel: scam and phishing risk scoring for web pages."""

__version__ = "0.1.0"
