"""
Secret redaction for step output.

Both modes do literal substring replacement (no regex) with a fixed
8-character mask token.
"""

from typing import Iterable

SECRET_MASK = "********"


def mask_secrets(message: str, secrets: Iterable[str]) -> str:
    """
    Replace every occurrence of each literal secret with the mask token.

    Args:
        message: Text to redact
        secrets: Literal secret strings; empty strings are ignored

    Returns:
        The redacted text
    """
    out = message
    for secret in secrets:
        if not secret:
            continue
        out = out.replace(secret, SECRET_MASK)
    return out


def mask_secret_envs(message: str, secret_envs: Iterable[str]) -> str:
    """
    Redact the values of KEY=VALUE secret environment entries.

    Each entry must split into exactly two non-empty parts on "=". Entries
    that don't (empty key, empty value, or a value containing "=") are
    skipped and their values stay visible. The KEY= prefix is never altered.

    Args:
        message: Text to redact
        secret_envs: Entries formatted as KEY=VALUE

    Returns:
        The redacted text
    """
    out = message
    for entry in secret_envs:
        if not entry:
            continue
        key, sep, value = entry.partition("=")
        if not sep or "=" in value:
            continue
        if not key or not value:
            # invalid key value pair received
            continue
        out = out.replace(value, SECRET_MASK)
    return out
