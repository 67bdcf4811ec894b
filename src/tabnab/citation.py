"""
Citation URL normalization: strip tracking parameters and cosmetic noise.
"""

from __future__ import annotations

import re
from typing import Pattern, Sequence, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

TRACKING_PARAMETERS: Sequence[Union[str, Pattern[str]]] = (
    re.compile(r"^utm_", re.IGNORECASE),
    "ref",
    "source",
    "fbclid",
    "gclid",
)

DEFAULT_PORTS = {"http": 80, "https": 443}


def _is_tracking(name: str) -> bool:
    for rule in TRACKING_PARAMETERS:
        if isinstance(rule, str):
            if name == rule:
                return True
        elif rule.search(name):
            return True
    return False


def normalize_url(url: str) -> str:
    """
    Canonical form of a URL for citing it.

    Lowercases scheme and host, drops ``www.``, default ports, credentials,
    tracking parameters, text fragments and a trailing slash, and sorts the
    remaining query parameters.
    """
    parts = urlsplit(url.strip())
    if parts.scheme not in DEFAULT_PORTS or not parts.hostname:
        return url

    host = parts.hostname.lower()
    if host.startswith("www."):
        host = host[4:]
    if parts.port and parts.port != DEFAULT_PORTS[parts.scheme]:
        host = f"{host}:{parts.port}"

    query = sorted(
        (name, value) for name, value in parse_qsl(parts.query, keep_blank_values=True) if not _is_tracking(name)
    )

    path = re.sub(r"/{2,}", "/", parts.path)
    if path.endswith("/"):
        path = path.rstrip("/")

    fragment = parts.fragment
    if fragment.startswith(":~:"):
        fragment = ""
    elif ":~:" in fragment:
        fragment = fragment.split(":~:", 1)[0]

    return urlunsplit((parts.scheme.lower(), host, path, urlencode(query), fragment))
