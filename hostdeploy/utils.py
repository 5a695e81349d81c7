"""
CLI Utilities

Core helper functions for hostdeploy.
"""

import re
from typing import Iterable
from urllib.parse import quote, urlsplit, urlunsplit

from hostdeploy.constants import REDACTED

ANSI_ESCAPE = re.compile(r"\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])")


def strip_ansi(text: str) -> str:
    """Remove ANSI color codes from text."""
    return ANSI_ESCAPE.sub("", text)


def redact(text: str, secrets: Iterable[str]) -> str:
    """
    Replace every occurrence of each secret in text.

    Both the raw and the URL-encoded form of a secret are masked, since
    tokens end up inside clone URLs.

    Args:
        text: Text to clean
        secrets: Secret values to mask (empty values are ignored)

    Returns:
        Text with secrets replaced by a fixed marker
    """
    if not text:
        return text

    for secret in secrets:
        if not secret:
            continue
        for form in {secret, quote(secret, safe="")}:
            text = text.replace(form, REDACTED)
    return text


def authenticated_url(repository_url: str, token: str) -> str:
    """
    Embed a token as the userinfo part of an HTTP(S) URL.

    Any credentials already present in the URL are replaced.

    Args:
        repository_url: Clean clone URL
        token: Access token

    Returns:
        URL of the form scheme://token@host/path
    """
    parts = urlsplit(repository_url)
    host = parts.netloc.rsplit("@", 1)[-1]
    netloc = f"{quote(token, safe='')}@{host}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def strip_credentials(repository_url: str) -> str:
    """Return the URL without any userinfo part."""
    parts = urlsplit(repository_url)
    host = parts.netloc.rsplit("@", 1)[-1]
    return urlunsplit((parts.scheme, host, parts.path, parts.query, parts.fragment))


def last_line(text: str) -> str:
    """Get the last non-empty line of command output."""
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return lines[-1] if lines else ""
