"""Configuration management for PageSentinel."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


# Default heuristics for the category analyzers. These can be overridden
# via config/heuristics.yaml without touching code.
DEFAULT_CATEGORY_WEIGHTS: dict[str, float] = {
    "url": 0.20,
    "content": 0.25,
    "domain": 0.25,
    "behavioral": 0.15,
    "form": 0.10,
    "certificate": 0.05,
}

# Cyrillic/Greek characters that look like Latin
DEFAULT_HOMOGLYPHS: dict[str, str] = {
    "а": "a",  # Cyrillic а
    "е": "e",  # Cyrillic е
    "о": "o",  # Cyrillic о
    "р": "p",  # Cyrillic р
    "с": "c",  # Cyrillic с
    "у": "y",  # Cyrillic у
    "х": "x",  # Cyrillic х
    "ѕ": "s",  # Cyrillic ѕ
    "і": "i",  # Cyrillic і
    "ј": "j",  # Cyrillic ј
    "ԁ": "d",  # Cyrillic ԁ
    "ı": "i",  # Latin dotless i
    "ο": "o",  # Greek omicron
    "ν": "v",  # Greek nu
    "α": "a",  # Greek alpha
    "ε": "e",  # Greek epsilon
}

# Brand token -> legitimate host suffixes. Order matters: first match wins.
DEFAULT_BRAND_VARIANTS: dict[str, list[str]] = {
    "paypal": ["paypal.com", "paypal.me"],
    "amazon": ["amazon.com", "amazon.co.uk", "amazon.de", "amazon.fr"],
    "microsoft": ["microsoft.com", "live.com", "outlook.com"],
    "google": ["google.com", "googleapis.com", "googleusercontent.com"],
    "apple": ["apple.com", "icloud.com"],
    "facebook": [],
    "netflix": [],
    "banking": [],
    "secure": [],
}

DEFAULT_SUSPICIOUS_HOST_PATTERNS: list[str] = [
    "-login",
    "verify-",
    "secure-",
    "account-",
    "update-",
]

DEFAULT_REDIRECT_PARAMS: list[str] = ["redirect", "url", "next"]

DEFAULT_URGENCY_PHRASES: list[str] = [
    "act now",
    "urgent action required",
    "immediate action",
    "verify your account",
    "suspended account",
    "unusual activity",
    "confirm your identity",
    "limited time",
    "expires today",
    "click here immediately",
    "verify within 24 hours",
]

DEFAULT_FINANCIAL_KEYWORDS: list[str] = [
    "bank account",
    "credit card",
    "social security",
    "password",
    "pin number",
    "account number",
    "routing number",
    "cvv",
]

DEFAULT_REWARD_PHRASES: list[str] = [
    "you have won",
    "congratulations",
    "free gift",
    "claim your prize",
    "winner",
]

# Digit-for-letter swaps of common security words
DEFAULT_SPELLING_PATTERNS: list[str] = [
    r"acc[o0]unt",
    r"secur[i1]ty",
    r"ver[i1]fy",
    r"upd[a4]te",
    r"c[o0]nfirm",
    r"b[a4]nk",
    r"p[a4]ssw[o0]rd",
]

DEFAULT_HIGH_RISK_TLDS: list[str] = ["tk", "ml", "ga", "cf", "gq", "xyz", "top", "work"]

# Textual proxies for "looks newly registered"
DEFAULT_NEW_DOMAIN_PATTERNS: list[str] = [
    r"\d{4,}",
    r"-\d+-",
    r"temp",
    r"test",
]

DEFAULT_SENSITIVE_FIELD_TOKENS: list[str] = [
    "password",
    "credit",
    "card",
    "cvv",
    "ssn",
    "social",
    "account",
    "routing",
    "pin",
]

DEFAULT_THREAT_DOMAINS: list[str] = [
    "phishing-example.com",
    "scam-site.xyz",
    "fake-banking.tk",
]


@dataclass(frozen=True)
class RiskThresholds:
    """Cutoffs for the risk-tier classifier."""

    critical_score: float = 0.80
    high_score: float = 0.60
    medium_score: float = 0.40
    low_score: float = 0.20
    critical_severity: int = 9
    high_severity: int = 7
    critical_findings: int = 2
    high_findings: int = 2


@dataclass
class Heuristics:
    """Lexical tables consumed by the category analyzers."""

    homoglyphs: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HOMOGLYPHS))
    brand_variants: dict[str, list[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_BRAND_VARIANTS.items()}
    )
    suspicious_host_patterns: list[str] = field(
        default_factory=lambda: list(DEFAULT_SUSPICIOUS_HOST_PATTERNS)
    )
    redirect_params: list[str] = field(default_factory=lambda: list(DEFAULT_REDIRECT_PARAMS))
    urgency_phrases: list[str] = field(default_factory=lambda: list(DEFAULT_URGENCY_PHRASES))
    financial_keywords: list[str] = field(default_factory=lambda: list(DEFAULT_FINANCIAL_KEYWORDS))
    reward_phrases: list[str] = field(default_factory=lambda: list(DEFAULT_REWARD_PHRASES))
    spelling_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_SPELLING_PATTERNS))
    high_risk_tlds: list[str] = field(default_factory=lambda: list(DEFAULT_HIGH_RISK_TLDS))
    new_domain_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_NEW_DOMAIN_PATTERNS))
    sensitive_field_tokens: list[str] = field(
        default_factory=lambda: list(DEFAULT_SENSITIVE_FIELD_TOKENS)
    )
    max_host_labels: int = 4
    max_path_length: int = 100


@dataclass
class Config:
    """Application configuration loaded from environment."""

    # Paths
    config_dir: Path = field(default_factory=lambda: Path("./config"))
    cache_path: Optional[Path] = None  # None keeps the result cache memory-only

    # Result cache
    cache_freshness_seconds: int = 3600
    cache_capacity: int = 100

    # Re-analysis debounce
    reanalysis_debounce_seconds: float = 2.0

    # Threat database refresh
    threat_staleness_seconds: int = 86400
    threat_poll_seconds: int = 3600
    threat_retry_base_seconds: float = 30.0
    threat_feed_file: Optional[Path] = None
    threat_feed_url: str = ""

    # Consumer notifications
    enable_notifications: bool = True

    # Scoring (override via config/heuristics.yaml)
    category_weights: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_CATEGORY_WEIGHTS)
    )
    risk_thresholds: RiskThresholds = field(default_factory=RiskThresholds)
    heuristics: Heuristics = field(default_factory=Heuristics)

    def __post_init__(self):
        """Coerce path-like fields."""
        self.config_dir = Path(self.config_dir)
        if self.cache_path is not None:
            self.cache_path = Path(self.cache_path)
        if self.threat_feed_file is not None:
            self.threat_feed_file = Path(self.threat_feed_file)


def _load_heuristics(config_dir: Path) -> dict:
    """Load heuristic overrides from config/heuristics.yaml (optional)."""
    path = Path(config_dir or ".") / "heuristics.yaml"
    if not path.exists():
        return {}

    try:
        data = yaml.safe_load(path.read_text()) or {}
    except Exception as exc:
        logger.warning("Failed to parse heuristics.yaml: %s", exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Ignoring heuristics.yaml: top level is not a mapping")
        return {}

    def _coerce_weights(raw):
        if not isinstance(raw, dict):
            return None
        weights = dict(DEFAULT_CATEGORY_WEIGHTS)
        for key, value in raw.items():
            if key not in weights:
                logger.warning("Unknown category weight %r in heuristics.yaml", key)
                continue
            try:
                weights[key] = float(value)
            except (TypeError, ValueError):
                logger.warning("Invalid weight for %s: %r", key, value)
        return weights

    def _coerce_thresholds(raw):
        if not isinstance(raw, dict):
            return None
        defaults = RiskThresholds()
        values = {}
        for name in defaults.__dataclass_fields__:
            if name not in raw:
                continue
            caster = type(getattr(defaults, name))
            try:
                values[name] = caster(raw[name])
            except (TypeError, ValueError):
                logger.warning("Invalid risk threshold %s: %r", name, raw[name])
        return RiskThresholds(**values)

    def _coerce_str_list(raw):
        if not isinstance(raw, (list, tuple)):
            return None
        items = [str(item).strip() for item in raw if str(item or "").strip()]
        return items or None

    def _coerce_brands(raw):
        if not isinstance(raw, dict):
            return None
        brands: dict[str, list[str]] = {}
        for brand, suffixes in raw.items():
            token = str(brand or "").strip().lower()
            if not token:
                continue
            brands[token] = [str(s).strip().lower() for s in (suffixes or []) if str(s).strip()]
        return brands or None

    def _coerce_homoglyphs(raw):
        if not isinstance(raw, dict):
            return None
        table = {str(k): str(v) for k, v in raw.items() if len(str(k)) == 1}
        return table or None

    url_cfg = data.get("url", {}) or {}
    content_cfg = data.get("content", {}) or {}
    domain_cfg = data.get("domain", {}) or {}
    form_cfg = data.get("forms", {}) or {}

    overrides = {
        "category_weights": _coerce_weights(data.get("weights")),
        "risk_thresholds": _coerce_thresholds(data.get("risk_thresholds")),
        "homoglyphs": _coerce_homoglyphs(url_cfg.get("homoglyphs")),
        "brand_variants": _coerce_brands(url_cfg.get("brands")),
        "suspicious_host_patterns": _coerce_str_list(url_cfg.get("suspicious_patterns")),
        "redirect_params": _coerce_str_list(url_cfg.get("redirect_params")),
        "urgency_phrases": _coerce_str_list(content_cfg.get("urgency_phrases")),
        "financial_keywords": _coerce_str_list(content_cfg.get("financial_keywords")),
        "reward_phrases": _coerce_str_list(content_cfg.get("reward_phrases")),
        "spelling_patterns": _coerce_str_list(content_cfg.get("spelling_patterns")),
        "high_risk_tlds": _coerce_str_list(domain_cfg.get("high_risk_tlds")),
        "new_domain_patterns": _coerce_str_list(domain_cfg.get("new_domain_patterns")),
        "sensitive_field_tokens": _coerce_str_list(form_cfg.get("sensitive_tokens")),
    }
    return {key: value for key, value in overrides.items() if value is not None}


def _env_path(name: str) -> Optional[Path]:
    raw = os.getenv(name, "").strip()
    return Path(raw) if raw else None


def load_config() -> Config:
    """Load configuration from environment variables."""
    load_dotenv()

    config_dir = Path(os.getenv("CONFIG_DIR", "./config"))
    overrides = _load_heuristics(config_dir)

    heuristics = Heuristics()
    for name in list(overrides):
        if hasattr(heuristics, name):
            setattr(heuristics, name, overrides.pop(name))

    return Config(
        config_dir=config_dir,
        cache_path=_env_path("CACHE_PATH"),
        cache_freshness_seconds=int(os.getenv("CACHE_FRESHNESS_SECONDS", "3600")),
        cache_capacity=int(os.getenv("CACHE_CAPACITY", "100")),
        reanalysis_debounce_seconds=float(os.getenv("REANALYSIS_DEBOUNCE_SECONDS", "2.0")),
        threat_staleness_seconds=int(os.getenv("THREAT_STALENESS_SECONDS", "86400")),
        threat_poll_seconds=int(os.getenv("THREAT_POLL_SECONDS", "3600")),
        threat_retry_base_seconds=float(os.getenv("THREAT_RETRY_BASE_SECONDS", "30")),
        threat_feed_file=_env_path("THREAT_FEED_FILE"),
        threat_feed_url=os.getenv("THREAT_FEED_URL", "").strip(),
        enable_notifications=os.getenv("ENABLE_NOTIFICATIONS", "true").lower() == "true",
        category_weights=overrides.get("category_weights", dict(DEFAULT_CATEGORY_WEIGHTS)),
        risk_thresholds=overrides.get("risk_thresholds", RiskThresholds()),
        heuristics=heuristics,
    )


def validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of error messages."""
    errors: list[str] = []

    weights = config.category_weights or {}
    if any(w < 0 for w in weights.values()):
        errors.append("Category weights must be non-negative")
    total = sum(weights.values())
    if total <= 0:
        errors.append("Category weights must sum to a positive value")
    elif abs(total - 1.0) > 1e-9:
        # Normalisation by present weights still yields a weighted average.
        logger.warning("Category weights sum to %.3f, not 1.0", total)

    t = config.risk_thresholds
    if not (t.critical_score >= t.high_score >= t.medium_score >= t.low_score >= 0):
        errors.append("Risk score thresholds must be descending (critical >= high >= medium >= low >= 0)")
    if t.critical_severity < t.high_severity:
        errors.append("critical_severity must not be below high_severity")

    if config.cache_capacity <= 0:
        errors.append("CACHE_CAPACITY must be positive")
    if config.cache_freshness_seconds <= 0:
        errors.append("CACHE_FRESHNESS_SECONDS must be positive")
    if config.reanalysis_debounce_seconds < 0:
        errors.append("REANALYSIS_DEBOUNCE_SECONDS must not be negative")
    if config.threat_poll_seconds >= config.threat_staleness_seconds:
        errors.append("THREAT_POLL_SECONDS must be shorter than THREAT_STALENESS_SECONDS")

    return errors
