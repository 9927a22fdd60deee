"""Page signal types: the immutable input to one analysis run."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence
from urllib.parse import urljoin

from ..config import DEFAULT_SENSITIVE_FIELD_TOKENS
from ..constants import MAX_CONTENT_LENGTH
from ..errors import SignalValidationError
from ..utils.domains import parse_url


def _normalize_protocol(value: str | None) -> str:
    return (value or "").strip().lower().rstrip(":")


@dataclass(frozen=True)
class FormSignal:
    """Wiring of one form on the page."""

    action: str = ""
    method: str = "get"
    requests_sensitive_data: bool = False
    protocol: str = ""
    external_action: bool = False

    def __post_init__(self):
        object.__setattr__(self, "protocol", _normalize_protocol(self.protocol))


@dataclass(frozen=True)
class BehavioralSignals:
    """Counters observed by the collector. The engine only reads them."""

    auto_redirects: int = 0
    popups: int = 0
    clipboard_access: bool = False
    hidden_iframes: int = 0

    def __post_init__(self):
        for name in ("auto_redirects", "popups", "hidden_iframes"):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                raise SignalValidationError(f"{name} must be a non-negative integer, got {value!r}")


@dataclass(frozen=True)
class CertificateSignal:
    """Best-effort certificate summary supplied by the caller (not verified here)."""

    valid: bool = True
    self_signed: bool = False
    mismatch: bool = False


@dataclass(frozen=True)
class PageSignals:
    """Everything the collector observed about one page.

    A slice left as None means it was not collected; its category is then
    skipped rather than scored as zero.
    """

    url: str
    domain: Optional[str] = None
    protocol: str = ""
    content: Optional[str] = None
    forms: Optional[tuple[FormSignal, ...]] = None
    behavioral: Optional[BehavioralSignals] = None
    certificate: Optional[CertificateSignal] = None

    def __post_init__(self):
        object.__setattr__(self, "url", self.url or "")
        object.__setattr__(self, "protocol", _normalize_protocol(self.protocol))
        if self.domain is not None:
            object.__setattr__(self, "domain", self.domain.strip().lower())
        if self.content is not None and len(self.content) > MAX_CONTENT_LENGTH:
            object.__setattr__(self, "content", self.content[:MAX_CONTENT_LENGTH])
        if self.forms is not None and not isinstance(self.forms, tuple):
            object.__setattr__(self, "forms", tuple(self.forms))

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        sensitive_tokens: Sequence[str] = DEFAULT_SENSITIVE_FIELD_TOKENS,
    ) -> "PageSignals":
        """Build signals from a collector payload (camelCase or snake_case keys).

        A form given as raw field descriptors (`fields`) is classified with
        sensitive_tokens; one given as flags is taken as-is.
        """
        if not isinstance(data, Mapping):
            raise SignalValidationError("signals payload must be a mapping")

        url = str(data.get("url") or "")
        parsed = parse_url(url)
        domain = data.get("domain")
        if domain is None and parsed is not None:
            domain = parsed.hostname
        protocol = data.get("protocol")
        if protocol is None and parsed is not None:
            protocol = parsed.scheme

        content = data.get("content")
        if content is not None:
            content = " ".join(str(content).split())[:MAX_CONTENT_LENGTH]

        forms = data.get("forms")
        if forms is not None:
            forms = tuple(_form_from_dict(f, url, sensitive_tokens) for f in forms)

        behavioral = data.get("behavioral")
        if behavioral is not None:
            behavioral = _behavioral_from_dict(behavioral)

        certificate = data.get("certificate")
        if certificate is not None:
            certificate = _certificate_from_dict(certificate)

        return cls(
            url=url,
            domain=str(domain) if domain is not None else None,
            protocol=str(protocol or ""),
            content=content,
            forms=forms,
            behavioral=behavioral,
            certificate=certificate,
        )


def _pick(data: Mapping[str, Any], camel: str, snake: str, default: Any) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake, default)


def _as_count(value: Any, name: str) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError) as exc:
        raise SignalValidationError(f"{name} must be an integer, got {value!r}") from exc


def _form_from_dict(data: Any, page_url: str, sensitive_tokens: Sequence[str]) -> FormSignal:
    if not isinstance(data, Mapping):
        raise SignalValidationError("each form must be a mapping")
    if "fields" in data:
        fields = data.get("fields") or ()
        if not all(isinstance(f, Mapping) for f in fields):
            raise SignalValidationError("form fields must be mappings")
        return build_form_signal(
            page_url,
            action=str(data.get("action") or ""),
            method=str(data.get("method") or "get"),
            fields=fields,
            sensitive_tokens=sensitive_tokens,
        )
    return FormSignal(
        action=str(data.get("action") or ""),
        method=str(data.get("method") or "get").lower(),
        requests_sensitive_data=bool(_pick(data, "requestsSensitiveData", "requests_sensitive_data", False)),
        protocol=str(data.get("protocol") or ""),
        external_action=bool(_pick(data, "externalAction", "external_action", False)),
    )


def _behavioral_from_dict(data: Any) -> BehavioralSignals:
    if not isinstance(data, Mapping):
        raise SignalValidationError("behavioral must be a mapping")
    return BehavioralSignals(
        auto_redirects=_as_count(_pick(data, "autoRedirects", "auto_redirects", 0), "autoRedirects"),
        popups=_as_count(data.get("popups", 0), "popups"),
        clipboard_access=bool(_pick(data, "clipboardAccess", "clipboard_access", False)),
        hidden_iframes=_as_count(_pick(data, "hiddenIframes", "hidden_iframes", 0), "hiddenIframes"),
    )


def _certificate_from_dict(data: Any) -> CertificateSignal:
    if not isinstance(data, Mapping):
        raise SignalValidationError("certificate must be a mapping")
    return CertificateSignal(
        valid=bool(data.get("valid", True)),
        self_signed=bool(_pick(data, "selfSigned", "self_signed", False)),
        mismatch=bool(data.get("mismatch", False)),
    )


def build_form_signal(
    page_url: str,
    action: str = "",
    method: str = "get",
    fields: Iterable[Mapping[str, Any]] = (),
    sensitive_tokens: Sequence[str] = DEFAULT_SENSITIVE_FIELD_TOKENS,
) -> FormSignal:
    """Derive a FormSignal from a form's action and its field descriptors.

    A form requests sensitive data when any field's type, name or id contains
    a sensitive token. An action whose host differs from the page host, or
    that cannot be parsed, counts as external.
    """
    tokens = [t.lower() for t in sensitive_tokens if t]
    requests_sensitive = False
    for descriptor in fields:
        haystack = " ".join(
            str(descriptor.get(key) or "").lower() for key in ("type", "name", "id")
        )
        if any(token in haystack for token in tokens):
            requests_sensitive = True
            break

    page = parse_url(page_url)
    external = False
    if action:
        try:
            target = parse_url(urljoin(page_url, action))
        except ValueError:
            target = None
        if target is None or page is None:
            external = True
        else:
            external = (target.hostname or "") != (page.hostname or "")

    return FormSignal(
        action=action,
        method=(method or "get").lower(),
        requests_sensitive_data=requests_sensitive,
        protocol=page.scheme if page is not None else "",
        external_action=external,
    )

