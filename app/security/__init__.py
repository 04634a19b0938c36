"""Input screening and credential handling."""

from app.security.credentials import (
    Base64CredentialCodec,
    CredentialCodec,
    PlainCredentialCodec,
    codec_for,
)
from app.security.scanner import sanitize_input, scan_input

__all__ = [
    "Base64CredentialCodec",
    "CredentialCodec",
    "PlainCredentialCodec",
    "codec_for",
    "sanitize_input",
    "scan_input",
]
