"""Detection of "authentication required" markers in integration results.

Integration platforms report a missing connection inside an otherwise normal
result, e.g.

    {"data": {"toolkit": "gmail", "redirect_url": "https://..."}}

The marker may sit in structured content or in a JSON text block.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from deskpilot.integrations.types import IntegrationResult

_URL_KEYS = ("redirect_url", "redirectUrl", "auth_url", "authUrl", "connect_url")
_TOOLKIT_KEYS = ("toolkit", "toolkit_slug", "toolkitSlug", "app", "app_name", "appName")
_MAX_DEPTH = 6


@dataclass(frozen=True)
class AuthRequirement:
    toolkit: str
    redirect_url: str


def _find(payload: Any, depth: int = 0) -> AuthRequirement | None:
    if depth > _MAX_DEPTH:
        return None
    if isinstance(payload, dict):
        for key in _URL_KEYS:
            url = payload.get(key)
            if isinstance(url, str) and url.startswith(("http://", "https://")):
                toolkit = next(
                    (str(payload[k]) for k in _TOOLKIT_KEYS if isinstance(payload.get(k), str)),
                    "unknown",
                )
                return AuthRequirement(toolkit=toolkit, redirect_url=url)
        children = payload.values()
    elif isinstance(payload, list):
        children = payload
    else:
        return None
    for child in children:
        found = _find(child, depth + 1)
        if found:
            return found
    return None


def detect_auth_required(result: IntegrationResult) -> AuthRequirement | None:
    """Return the auth marker carried by a result, if any."""
    if result.structured_content:
        found = _find(result.structured_content)
        if found:
            return found
    for item in result.content:
        if item.get("type") != "text":
            continue
        text = (item.get("text") or "").strip()
        if not text.startswith(("{", "[")):
            continue
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            continue
        found = _find(payload)
        if found:
            return found
    return None
