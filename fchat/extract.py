"""Protocol parameter extraction from the landing document.

This is the only module that reads raw markup. Every other component sees
the ``SessionParams`` it returns.
"""
from __future__ import annotations

import html
import re
from dataclasses import dataclass
from typing import Optional, Tuple

import httpx

from fchat._logging import get_component_logger

logger = get_component_logger("extract")

DEFAULT_REGION = "PRN"
CHECKPOINT_MARKER = "/checkpoint/block/?next"

_ENDPOINT_RE = re.compile(r'"endpoint":"([^"]+)"')
_TOKEN_RE = re.compile(r'DTSGInitialData.*?token":"(.*?)"')
_REVISION_RE = re.compile(r'"client_revision":(\d+)')
_META_REFRESH_RE = re.compile(r'<meta http-equiv="refresh" content="0;url=([^"]+)[^>]+>')


@dataclass
class SessionParams:
    endpoint: Optional[str] = None
    region: str = DEFAULT_REGION
    token: Optional[str] = None
    revision: Optional[str] = None
    checkpointed: bool = False


def extract_endpoint(document: str) -> Tuple[Optional[str], str]:
    match = _ENDPOINT_RE.search(document)
    if not match:
        logger.warning("no_mqtt_endpoint")
        return None, DEFAULT_REGION

    endpoint = match.group(1).replace("\\/", "/")
    try:
        url = httpx.URL(endpoint)
    except httpx.InvalidURL:
        logger.warning("invalid_mqtt_endpoint", endpoint=endpoint)
        return None, DEFAULT_REGION
    if not url.scheme or not url.host:
        logger.warning("invalid_mqtt_endpoint", endpoint=endpoint)
        return None, DEFAULT_REGION

    region = (url.params.get("region") or DEFAULT_REGION).upper()
    return endpoint, region


def extract_token(document: str) -> Optional[str]:
    match = _TOKEN_RE.search(document)
    return match.group(1) if match else None


def find_meta_refresh(document: Optional[str]) -> Optional[str]:
    """Return the target of a ``<meta http-equiv="refresh">`` directive, if any."""
    match = _META_REFRESH_RE.search(document or "")
    if not match or not match.group(1):
        return None
    return html.unescape(match.group(1))


def extract(document: Optional[str]) -> SessionParams:
    """Scan the landing document. Missing parameters are None, never errors."""
    document = document or ""
    endpoint, region = extract_endpoint(document)
    revision = _REVISION_RE.search(document)
    return SessionParams(
        endpoint=endpoint,
        region=region,
        token=extract_token(document),
        revision=revision.group(1) if revision else None,
        checkpointed=CHECKPOINT_MARKER in document,
    )
