"""Credential codecs for stored provider API keys.

The store hands encoded key material to a ``CredentialCodec`` at lookup
time. ``Base64CredentialCodec`` exists only to read rows written by older
deployments that base64-encoded keys; it provides no confidentiality.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Protocol

from app.enums import CredentialCodecKind

logger = logging.getLogger(__name__)


class CredentialCodec(Protocol):
    def decode(self, ciphertext: str) -> str: ...


class PlainCredentialCodec:
    """Keys are stored as-is (encryption at rest is handled by the database)."""

    def decode(self, ciphertext: str) -> str:
        return ciphertext


class Base64CredentialCodec:
    """Legacy base64 placeholder encoding.

    Values that are not valid base64 are returned unchanged, matching how the
    legacy rows were read.
    """

    def decode(self, ciphertext: str) -> str:
        try:
            return base64.b64decode(ciphertext, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError, ValueError):
            return ciphertext

    @staticmethod
    def encode(plaintext: str) -> str:
        return base64.b64encode(plaintext.encode("utf-8")).decode("ascii")


def codec_for(kind: CredentialCodecKind | str) -> CredentialCodec:
    """Build the codec selected in configuration."""
    kind = CredentialCodecKind(kind)
    if kind == CredentialCodecKind.BASE64:
        logger.warning(
            "Using legacy base64 credential codec; stored API keys are not encrypted"
        )
        return Base64CredentialCodec()
    return PlainCredentialCodec()
