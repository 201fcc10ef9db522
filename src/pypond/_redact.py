"""Helpers for safe debug logging.

Sensor endpoints are sometimes reached through a URL carrying basic-auth
credentials, and misbehaving firmware can answer with very large bodies.
These helpers keep both out of DEBUG logs.
"""

from __future__ import annotations

from typing import Any

from yarl import URL

from pypond._constants import BODY_PREVIEW_CHARS


def redact_url(url: str | URL) -> str:
    """Return *url* with any password replaced by ``***``."""
    parsed = url if isinstance(url, URL) else URL(url)
    if parsed.password is None:
        return str(parsed)
    return str(parsed.with_password("***"))


def preview(value: Any, *, max_chars: int = BODY_PREVIEW_CHARS) -> str:
    """Return a single-line, truncated ``repr``-ish preview of *value*."""
    text = value if isinstance(value, str) else repr(value)
    text = " ".join(text.split())
    if len(text) > max_chars:
        return f"{text[:max_chars]}…<truncated>"
    return text
