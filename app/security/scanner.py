"""Input security scanner.

Pure pattern checks run against raw user text before anything reaches a
model: prompt injection, sensitive data and exfiltration phrasing. The
scanner never performs I/O; callers decide what to do with the verdict.
"""

from __future__ import annotations

import re

from app.enums import FlagSeverity, FlagType, ScanSeverity
from app.models.agent import SecurityFlag, SecurityScanResult

_I = re.IGNORECASE

INJECTION_PATTERNS: tuple[re.Pattern[str], ...] = (
    # Direct instruction overrides
    re.compile(r"ignore\s+(all\s+)?(previous|prior|above)\s+(instructions?|prompts?)", _I),
    re.compile(r"disregard\s+(all\s+)?(your\s+)?(instructions?|rules?|guidelines?)", _I),
    re.compile(r"forget\s+(everything|all)\s+(you|your)", _I),
    # Role manipulation
    re.compile(r"you\s+are\s+(now|actually)\s+(a\s+)?(?!my\s+agent)", _I),
    re.compile(r"pretend\s+(to\s+)?be\s+(?!helpful)", _I),
    re.compile(r"act\s+as\s+(if|though)\s+you", _I),
    # System prompt extraction
    re.compile(r"what\s+(is|are)\s+your\s+(system\s+)?prompt", _I),
    re.compile(r"reveal\s+your\s+(instructions|prompts?|rules)", _I),
    re.compile(r"show\s+me\s+your\s+(original|initial)\s+(instructions?|prompt)", _I),
    # Output manipulation
    re.compile(r"output\s+(only|just)\s+the\s+(following|text)", _I),
    re.compile(r"respond\s+with\s+(only|just)\s+\"[^\"]+\"", _I),
    # Jailbreak phrasing
    re.compile(r"DAN\s*[:=]|do\s+anything\s+now", _I),
    re.compile(r"developer\s+mode|sudo\s+mode", _I),
    re.compile(r"jailbreak|bypass\s+(your\s+)?restrictions", _I),
    # Payload smuggling
    re.compile(r"base64\s*[:=]\s*[A-Za-z0-9+/=]+", _I),
    re.compile(r"hex\s*[:=]\s*[0-9a-fA-F]+", _I),
)

SENSITIVE_PATTERNS: tuple[re.Pattern[str], ...] = (
    # Credential assignments
    re.compile(r"(?:api[_-]?key|secret[_-]?key|password|token|bearer)\s*[:=]\s*\S+", _I),
    re.compile(r"sk-[a-zA-Z0-9]{20,}", _I),
    re.compile(r"ghp_[a-zA-Z0-9]{36}", _I),
    re.compile(r"xox[baprs]-[0-9a-zA-Z-]+", _I),
    # Card-like digit runs
    re.compile(r"\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b"),
    # SSN-like digit runs
    re.compile(r"\b\d{3}[-\s]?\d{2}[-\s]?\d{4}\b"),
    # E-mail addresses
    re.compile(r"(?<![a-zA-Z0-9._%+-])[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"),
)

EXFILTRATION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"send\s+(this|my|the)\s+(data|info|details)\s+to\s+\S+", _I),
    re.compile(r"post\s+to\s+https?://", _I),
    re.compile(r"curl|wget|fetch\s*\(", _I),
    re.compile(r"upload\s+(this|my|the)\s+(file|data)", _I),
)

_BASE64_PAYLOAD_RE = re.compile(r"base64\s*[:=]\s*[A-Za-z0-9+/=]+", _I)
_HEX_ESCAPE_RE = re.compile(r"\\x[0-9a-fA-F]{2}")
_UNICODE_ESCAPE_RE = re.compile(r"\\u[0-9a-fA-F]{4}")

BLOCKED_MARKER = "[BLOCKED]"
REDACTED_MARKER = "[REDACTED]"
BASE64_MARKER = "[BASE64_REMOVED]"

_MATCH_PREVIEW_CHARS = 50


def _collect(
    text: str,
    patterns: tuple[re.Pattern[str], ...],
    flag_type: FlagType,
    severity: FlagSeverity,
    *,
    redact_match: bool = False,
) -> list[SecurityFlag]:
    flags: list[SecurityFlag] = []
    for pattern in patterns:
        match = pattern.search(text)
        if match is None:
            continue
        flags.append(
            SecurityFlag(
                type=flag_type,
                pattern=pattern.pattern,
                match=REDACTED_MARKER if redact_match else match.group(0)[:_MATCH_PREVIEW_CHARS],
                severity=severity,
            )
        )
    return flags


def sanitize_input(text: str) -> str:
    """Neutralize injection spans, redact sensitive data, strip encoded payloads."""
    sanitized = text
    for pattern in INJECTION_PATTERNS:
        sanitized = pattern.sub(BLOCKED_MARKER, sanitized)
    for pattern in SENSITIVE_PATTERNS:
        sanitized = pattern.sub(REDACTED_MARKER, sanitized)

    sanitized = _BASE64_PAYLOAD_RE.sub(BASE64_MARKER, sanitized)
    sanitized = _HEX_ESCAPE_RE.sub("", sanitized)
    sanitized = _UNICODE_ESCAPE_RE.sub("", sanitized)
    return sanitized


def scan_input(text: str) -> SecurityScanResult:
    """Scan raw user text for security threats.

    Injection and exfiltration matches always block; sensitive-data matches
    only warn. The sanitized copy is produced regardless of the verdict.
    """
    flags = [
        *_collect(text, INJECTION_PATTERNS, FlagType.INJECTION, FlagSeverity.BLOCK),
        *_collect(
            text,
            SENSITIVE_PATTERNS,
            FlagType.SENSITIVE,
            FlagSeverity.WARN,
            redact_match=True,
        ),
        *_collect(text, EXFILTRATION_PATTERNS, FlagType.EXFILTRATION, FlagSeverity.BLOCK),
    ]

    if any(f.severity == FlagSeverity.BLOCK for f in flags):
        severity = ScanSeverity.BLOCK
    elif any(f.severity == FlagSeverity.WARN for f in flags):
        severity = ScanSeverity.WARN
    else:
        severity = ScanSeverity.SAFE

    return SecurityScanResult(
        safe=not flags,
        severity=severity,
        flags=flags,
        sanitized_input=sanitize_input(text),
    )
