# src/tasknag/browser/url_validator.py

"""
URL validation for browser actions.

Checks run in a fixed order (length, dangerous patterns, parse, blocked
protocol, allowed protocol, host) and the first failure wins. Results are
computed per call and never cached.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from urllib.parse import SplitResult, urlsplit

from .models import URLPreview, URLValidationResult

logger = logging.getLogger(__name__)

MAX_URL_LENGTH = 2048

DEFAULT_ALLOWED_PROTOCOLS = frozenset({"http", "https"})
DEFAULT_BLOCKED_PROTOCOLS = frozenset({"javascript", "data", "file", "ftp", "vbscript"})

DANGEROUS_PATTERNS = (
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"data:", re.IGNORECASE),
    re.compile(r"vbscript:", re.IGNORECASE),
    re.compile(r"<script", re.IGNORECASE),
)

_SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.\-]*):")
# "localhost:3000" and "example.com:8080/x" are a host and port, not a scheme.
_HOST_PORT_RE = re.compile(r"^[^:/?#]+:\d+(?:[/?#]|$)")
_DOMAIN_RE = re.compile(r"^[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}$")
_LABEL_RE = re.compile(r"^[a-zA-Z0-9](?:[a-zA-Z0-9\-]*[a-zA-Z0-9])?$")

# Schemes that may be followed by digits ("ftp:21", "tel:5551234"); never read as host:port.
_KNOWN_SCHEMES = frozenset({"mailto", "tel", "sms", "ssh", "sftp", "telnet", "ws", "wss", "about", "blob"})

# Bare names people type instead of a full domain.
_COMMON_DOMAINS = ("google", "github", "youtube", "gmail", "wikipedia")
_TLD_TYPOS = {".con": ".com", ".cmo": ".com", ".ocm": ".com", ".comm": ".com", ".orgg": ".org"}


def _normalized(parts: SplitResult, scheme: str) -> str:
    """Lowercase scheme and host; userinfo, path, query and fragment are kept as typed."""
    userinfo, at, hostport = parts.netloc.rpartition("@")
    return parts._replace(scheme=scheme, netloc=f"{userinfo}{at}{hostport.lower()}").geturl()


class MalformedURL(ValueError):
    pass


@dataclass(slots=True, frozen=True)
class _Parsed:
    parts: SplitResult
    completed: bool  # https:// was prepended


class URLValidator:
    def __init__(
        self,
        *,
        allowed_protocols: frozenset[str] = DEFAULT_ALLOWED_PROTOCOLS,
        blocked_protocols: frozenset[str] = DEFAULT_BLOCKED_PROTOCOLS,
        max_length: int = MAX_URL_LENGTH,
    ) -> None:
        self.allowed_protocols = frozenset(p.lower() for p in allowed_protocols)
        self.blocked_protocols = frozenset(p.lower() for p in blocked_protocols)
        self.max_length = int(max_length)

    def validate(self, url: str) -> URLValidationResult:
        if len(url) > self.max_length:
            return URLValidationResult.invalid(
                f"URL too long: {len(url)} characters (max: {self.max_length})"
            )

        for pattern in DANGEROUS_PATTERNS:
            if pattern.search(url):
                return URLValidationResult.invalid("URL contains dangerous pattern", security=True)

        try:
            parsed = self._parse_with_protocol(url)
        except MalformedURL as e:
            return URLValidationResult.invalid(f"Invalid URL format: {e}")

        scheme = parsed.parts.scheme.lower()
        if scheme in self.blocked_protocols:
            return URLValidationResult.invalid(f"Blocked protocol: {scheme}", security=True)
        if scheme not in self.allowed_protocols:
            return URLValidationResult.invalid(f"Protocol not allowed: {scheme}", security=True)

        try:
            host = parsed.parts.hostname
        except ValueError as e:
            return URLValidationResult.invalid(f"Invalid URL format: {e}")
        if not host:
            return URLValidationResult.invalid("No host found in URL")

        if not self._is_valid_host(host, bare=parsed.completed):
            return URLValidationResult.invalid(f"Invalid host format: {host}")

        return URLValidationResult.valid(scheme, host, _normalized(parsed.parts, scheme))

    def quick_validate(self, url: str) -> bool:
        return self.validate(url).is_valid

    def suggest_corrections(self, url: str) -> list[str]:
        """Advisory fixes for common mistakes; never used to decide validity."""
        raw = url.strip()
        out: list[str] = []

        def add(candidate: str) -> None:
            if candidate and candidate != raw and candidate not in out:
                out.append(candidate)

        if raw and "://" not in raw:
            add(f"https://{raw}")

        if raw.lower().startswith("http://"):
            add("https://" + raw[len("http://"):])

        lowered = raw.lower()
        for typo, fix in _TLD_TYPOS.items():
            idx = lowered.find(typo)
            if idx != -1 and not lowered[idx + len(typo):idx + len(typo) + 1].isalnum():
                add(raw[:idx] + fix + raw[idx + len(typo):])

        for name in _COMMON_DOMAINS:
            idx = lowered.find(name)
            if idx == -1:
                continue
            tail = lowered[idx + len(name):]
            if tail.startswith("."):
                continue
            add(raw[: idx + len(name)] + ".com" + raw[idx + len(name):])

        return out

    def preview(self, url: str) -> URLPreview | None:
        result = self.validate(url)
        if not result.is_valid:
            return None
        return URLPreview(url=result.normalized_url, domain=result.host, title=f"Open {result.host}")

    # ---- internals ----

    @staticmethod
    def _split(text: str) -> SplitResult:
        try:
            parts = urlsplit(text)
            _ = parts.port  # raises on a bad port
        except ValueError as e:
            raise MalformedURL(str(e)) from e
        return parts

    def _has_scheme(self, text: str) -> bool:
        m = _SCHEME_RE.match(text)
        if m is None:
            return False
        if not _HOST_PORT_RE.match(text):
            return True
        token = m.group(1).lower()
        return token in self.allowed_protocols or token in self.blocked_protocols or token in _KNOWN_SCHEMES

    def _parse_with_protocol(self, url: str) -> _Parsed:
        text = url.strip()

        if self._has_scheme(text):
            parts = self._split(text)
            if parts.scheme.lower() in ("http", "https") and not parts.netloc:
                raise MalformedURL("empty host")
            return _Parsed(parts=parts, completed=False)

        if "://" in text:
            raise MalformedURL("missing scheme")

        candidate = f"https://{text}"
        parts = self._split(candidate)
        if not parts.netloc:
            raise MalformedURL("empty host")
        return _Parsed(parts=parts, completed=True)

    @staticmethod
    def _is_valid_host(host: str, *, bare: bool) -> bool:
        if not host:
            return False

        if host == "localhost" or host.startswith("127.") or host.startswith("192.168."):
            return True

        if "." not in host:
            # A bare word typed without a scheme ("google") is accepted as a single
            # label host; explicit URLs need a dotted domain.
            return bare and bool(_LABEL_RE.match(host))

        return bool(_DOMAIN_RE.match(host))
